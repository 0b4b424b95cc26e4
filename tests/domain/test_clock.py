"""Tests for clock injection (orion_kernel/domain/clock.py)."""

from datetime import UTC, datetime, timedelta

from orion_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_default_time(self):
        assert DeterministicClock().now() == datetime(2026, 1, 1, tzinfo=UTC)

    def test_stable_until_advanced(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()
        before = clock.now()
        clock.advance(90)
        assert clock.now() - before == timedelta(seconds=90)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock()
        clock.advance(10)
        target = datetime(2026, 6, 30, 17, 0, tzinfo=UTC)
        clock.set_time(target)
        assert clock.now() == target


class TestSystemClock:
    def test_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None
