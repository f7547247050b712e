from __future__ import annotations

import os
from abc import ABC, abstractmethod
from datetime import datetime
from zoneinfo import ZoneInfo


class Clock(ABC):
    """Source of the single ``now`` sampled per readout or mutation."""

    @abstractmethod
    def now(self) -> datetime:
        raise NotImplementedError

    def localize(self, value: datetime) -> datetime:
        """Bring ``value`` to the same zone handling as ``now()``.

        A naive value is read as wall-clock time in the clock's zone. With a
        naive clock, a zone-aware value keeps its wall-clock time and drops
        the zone.
        """
        tz = self.now().tzinfo
        if tz is None:
            return value.replace(tzinfo=None)
        if value.tzinfo is None:
            return value.replace(tzinfo=tz)
        return value.astimezone(tz)


class SystemClock(Clock):
    def __init__(self, timezone: str | None = None) -> None:
        self._tz = ZoneInfo(timezone or os.getenv("GOAL_LEDGER_TIMEZONE", "UTC"))

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock(Clock):
    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def now(self) -> datetime:
        return self.moment
