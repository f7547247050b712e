from __future__ import annotations

from datetime import date, datetime, tzinfo

from domain.schemas import PeriodStats


def calendar_day(value: date | datetime, tz: tzinfo | None = None) -> date:
    """Reduce a timestamp to its calendar date, in ``tz`` when both sides are zone-aware."""
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def days_between(later: date | datetime, earlier: date | datetime, tz: tzinfo | None = None) -> int:
    return (calendar_day(later, tz) - calendar_day(earlier, tz)).days


def inclusive_days(period_start: date | datetime, period_end: date | datetime, tz: tzinfo | None = None) -> int:
    return max(1, days_between(period_end, period_start, tz) + 1)


def period_stats(period_start: date | datetime, period_end: date | datetime, now: datetime) -> PeriodStats:
    """Inclusive day counts for a budget period as seen from ``now``.

    Both boundary dates are budgeted days. ``days_elapsed`` counts today once
    the period has begun; ``days_remaining`` still includes today, so today's
    share of the balance is spendable. Before the period begins
    ``days_remaining`` is ``total_days + 1``.
    """
    tz = now.tzinfo
    total_days = inclusive_days(period_start, period_end, tz)
    days_elapsed = min(total_days, max(0, days_between(now, period_start, tz) + 1))
    days_remaining = max(0, total_days - days_elapsed + 1)
    return PeriodStats(total_days=total_days, days_elapsed=days_elapsed, days_remaining=days_remaining)
