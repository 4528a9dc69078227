"""
Fixed-delay scheduler for outbound model calls.
"""
import time
import logging
from typing import Callable, Iterable, Iterator, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class FixedDelayScheduler:
    """
    Enforces a minimum interval between consecutive calls.

    The first ``acquire()`` returns immediately; every later one sleeps until
    ``min_interval`` seconds have passed since the previous acquisition.
    """

    def __init__(
        self,
        min_interval: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if min_interval < 0:
            raise ValueError("min_interval cannot be negative")
        self.min_interval = min_interval
        self._sleep = sleep
        self._clock = clock
        self._last: Optional[float] = None

    def acquire(self) -> float:
        """
        Wait for the next slot.

        Returns:
            Seconds spent waiting.
        """
        waited = 0.0
        if self._last is not None:
            elapsed = self._clock() - self._last
            if elapsed < self.min_interval:
                waited = self.min_interval - elapsed
                logger.debug(f"Rate limit: waiting {waited:.3f}s before next call")
                self._sleep(waited)
        self._last = self._clock()
        return waited

    def throttle(self, items: Iterable[T]) -> Iterator[T]:
        """Yield items one at a time, acquiring a slot before each."""
        for item in items:
            self.acquire()
            yield item

    def reset(self) -> None:
        self._last = None
