"""Rate limiter implementation for batched work."""

import threading
import time
from collections import deque
from collections.abc import Callable


class RateLimiter:
    """Sliding window rate limiter.

    Tracks recorded calls and ensures the number of calls doesn't exceed the
    specified limit within the time window.
    """

    def __init__(
        self,
        max_calls: int,
        time_window: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize rate limiter.

        Args:
            max_calls: Maximum number of calls allowed in the time window
            time_window: Time window in seconds
            clock: Monotonic time source
            sleep: Function used to wait in ``acquire``
        """
        if max_calls <= 0:
            raise ValueError("max_calls must be positive")
        self.max_calls = max_calls
        self.time_window = time_window
        self.calls: deque[float] = deque()
        self._clock = clock
        self._sleep = sleep

    def _expire(self, now: float) -> None:
        while self.calls and now - self.calls[0] >= self.time_window:
            self.calls.popleft()

    def add_call(self) -> None:
        """Record a new call."""
        now = self._clock()
        self._expire(now)
        self.calls.append(now)

    def get_sleep_time(self) -> float:
        """Get the time to sleep before the next call is allowed.

        Returns:
            Number of seconds to sleep. 0 if call can be made immediately.
        """
        if not self.calls:
            return 0

        now = self._clock()
        self._expire(now)

        if len(self.calls) < self.max_calls:
            return 0

        return self.calls[0] + self.time_window - now

    def acquire(self, stop: threading.Event | None = None) -> bool:
        """Wait until a call is allowed, then record it.

        Returns False without recording the call when ``stop`` is set
        while waiting.
        """
        while (delay := self.get_sleep_time()) > 0:
            if stop is None:
                self._sleep(delay)
            elif stop.wait(delay):
                return False
        self.add_call()
        return True
