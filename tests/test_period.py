from __future__ import annotations

import unittest
from datetime import date, datetime, timedelta, timezone

from application.period import calendar_day, days_between, inclusive_days, period_stats


class PeriodStatsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.start = datetime(2026, 3, 1, 0, 0)
        self.end = datetime(2026, 3, 3, 0, 0)

    def test_single_day_period_counts_one_day(self) -> None:
        stats = period_stats(self.start, self.start, self.start)
        self.assertEqual(stats.total_days, 1)
        self.assertEqual(stats.days_elapsed, 1)
        self.assertEqual(stats.days_remaining, 1)

    def test_first_day_keeps_today_in_remaining(self) -> None:
        stats = period_stats(self.start, self.end, datetime(2026, 3, 1, 8, 30))
        self.assertEqual(stats.total_days, 3)
        self.assertEqual(stats.days_elapsed, 1)
        self.assertEqual(stats.days_remaining, 3)

    def test_second_day(self) -> None:
        stats = period_stats(self.start, self.end, datetime(2026, 3, 2, 23, 59))
        self.assertEqual(stats.days_elapsed, 2)
        self.assertEqual(stats.days_remaining, 2)

    def test_time_of_day_does_not_change_counts(self) -> None:
        morning = period_stats(self.start, self.end, datetime(2026, 3, 2, 0, 1))
        night = period_stats(self.start, self.end, datetime(2026, 3, 2, 23, 59))
        self.assertEqual(morning, night)

    def test_after_period_end_is_clamped(self) -> None:
        stats = period_stats(self.start, self.end, datetime(2026, 4, 1))
        self.assertEqual(stats.days_elapsed, 3)
        self.assertEqual(stats.days_remaining, 1)

    def test_before_period_start(self) -> None:
        stats = period_stats(self.start, self.end, datetime(2026, 2, 20))
        self.assertEqual(stats.days_elapsed, 0)
        self.assertEqual(stats.days_remaining, 4)

    def test_end_before_start_still_budgets_one_day(self) -> None:
        self.assertEqual(inclusive_days(self.end, self.start), 1)

    def test_plain_dates_are_accepted(self) -> None:
        stats = period_stats(date(2026, 3, 1), date(2026, 3, 31), datetime(2026, 3, 11, 12))
        self.assertEqual(stats.total_days, 31)
        self.assertEqual(stats.days_elapsed, 11)
        self.assertEqual(stats.days_remaining, 21)


class CalendarDayTests(unittest.TestCase):
    def test_aware_values_are_read_in_the_given_zone(self) -> None:
        plus_three = timezone(timedelta(hours=3))
        late_utc = datetime(2026, 3, 1, 22, 0, tzinfo=timezone.utc)
        self.assertEqual(calendar_day(late_utc), date(2026, 3, 1))
        self.assertEqual(calendar_day(late_utc, plus_three), date(2026, 3, 2))

    def test_days_between_ignores_time_of_day(self) -> None:
        self.assertEqual(days_between(datetime(2026, 3, 2, 0, 1), datetime(2026, 3, 1, 23, 59)), 1)


if __name__ == "__main__":
    unittest.main()
