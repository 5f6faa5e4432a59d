"""Tests for the injectable clock (fuel_kernel/domain/clock.py)."""

from datetime import date, datetime, timedelta, timezone

from fuel_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_now_is_stable_until_advanced(self):
        clock = DeterministicClock()

        assert clock.now() == clock.now()
        before = clock.now()
        clock.advance(90)
        assert clock.now() - before == timedelta(seconds=90)

    def test_today_is_utc_date(self):
        # 01:30 at UTC+3 is still the previous day in UTC
        nairobi = timezone(timedelta(hours=3))
        clock = DeterministicClock(datetime(2025, 3, 2, 1, 30, tzinfo=nairobi))

        assert clock.today() == date(2025, 3, 1)

    def test_today_follows_advance_across_midnight(self):
        clock = DeterministicClock(datetime(2025, 1, 15, 23, 59, tzinfo=timezone.utc))

        clock.advance(120)

        assert clock.today() == date(2025, 1, 16)


def test_system_clock_is_timezone_aware():
    assert SystemClock().now().tzinfo is not None
