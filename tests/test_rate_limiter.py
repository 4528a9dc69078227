"""
Unit tests for the fixed-delay scheduler.
"""
import pytest

from legalease.utils.rate_limiter import FixedDelayScheduler


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestFixedDelayScheduler:
    """Test suite for FixedDelayScheduler."""

    def test_first_acquire_does_not_wait(self, clock):
        """Test that the first acquire returns immediately."""
        scheduler = FixedDelayScheduler(0.5, sleep=clock.sleep, clock=clock)

        assert scheduler.acquire() == 0.0
        assert clock.sleeps == []

    def test_back_to_back_acquires_wait_full_interval(self, clock):
        """Test that back-to-back acquires wait the full interval."""
        scheduler = FixedDelayScheduler(0.5, sleep=clock.sleep, clock=clock)

        scheduler.acquire()
        assert scheduler.acquire() == pytest.approx(0.5)
        assert scheduler.acquire() == pytest.approx(0.5)
        assert clock.sleeps == [pytest.approx(0.5), pytest.approx(0.5)]

    def test_waits_only_for_remaining_interval(self, clock):
        """Test that acquire waits only for the remaining interval."""
        scheduler = FixedDelayScheduler(0.5, sleep=clock.sleep, clock=clock)

        scheduler.acquire()
        clock.now += 0.2
        assert scheduler.acquire() == pytest.approx(0.3)

    def test_no_wait_once_interval_has_passed(self, clock):
        """Test that no wait happens once the interval has elapsed."""
        scheduler = FixedDelayScheduler(0.5, sleep=clock.sleep, clock=clock)

        scheduler.acquire()
        clock.now += 2.0
        assert scheduler.acquire() == 0.0
        assert clock.sleeps == []

    def test_throttle_preserves_order_and_spaces_items(self, clock):
        """Test that throttle yields items in order with spacing."""
        scheduler = FixedDelayScheduler(0.5, sleep=clock.sleep, clock=clock)

        assert list(scheduler.throttle(['a', 'b', 'c'])) == ['a', 'b', 'c']
        assert len(clock.sleeps) == 2

    def test_reset_forgets_last_call(self, clock):
        """Test that reset makes the next acquire free."""
        scheduler = FixedDelayScheduler(0.5, sleep=clock.sleep, clock=clock)

        scheduler.acquire()
        scheduler.reset()
        assert scheduler.acquire() == 0.0

    def test_zero_interval_never_sleeps(self, clock):
        """Test that a zero interval never sleeps."""
        scheduler = FixedDelayScheduler(0.0, sleep=clock.sleep, clock=clock)

        for _ in range(5):
            scheduler.acquire()
        assert clock.sleeps == []

    def test_negative_interval_rejected(self):
        """Test that a negative interval raises ValueError."""
        with pytest.raises(ValueError):
            FixedDelayScheduler(-1)
