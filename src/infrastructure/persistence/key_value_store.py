from __future__ import annotations

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    pass


class KeyValueStore(ABC):
    """Contract for the store that persists the goal and transaction collections."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        raise NotImplementedError

    @abstractmethod
    def put_many(self, items: dict[str, Any]) -> None:
        """Write every key in one step."""
        raise NotImplementedError

    def put(self, key: str, value: Any) -> None:
        self.put_many({key: value})

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: dict[str, Any] | None = None):
        self._store: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._store.get(key)

    def put_many(self, items: dict[str, Any]) -> None:
        self._store.update(items)

    def clear(self) -> None:
        self._store.clear()


class JsonFileKeyValueStore(KeyValueStore):
    """Keeps every key in a single JSON document, replaced atomically on write."""

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path or os.getenv("GOAL_LEDGER_STORE_PATH", "data/goal_ledger.json"))
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._read().get(key)

    def put_many(self, items: dict[str, Any]) -> None:
        with self._lock:
            payload = self._read()
            payload.update(items)
            self._write(payload)
        logger.info("JsonFileKeyValueStore wrote keys=%s path=%s", sorted(items), self._path)

    def clear(self) -> None:
        with self._lock:
            self._write({})

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as exc:
            raise StoreError(f"Store file {self._path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise StoreError(f"Expected a JSON object in {self._path}, got {type(payload).__name__}")
        return payload

    def _write(self, payload: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)
