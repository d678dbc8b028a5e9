import threading
import time
from collections import deque
from typing import Callable, Deque


class RateLimiter:
    """Rolling-window throttle: at most `limit` request starts per `interval` seconds.

    One instance is shared by every thread that talks to the block explorer,
    so the limit holds for the whole process rather than per caller.
    """

    def __init__(
        self,
        limit: int = 5,
        interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if limit <= 0:
            raise ValueError("limit must be positive")
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.limit = limit
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._starts: Deque[float] = deque()
        self._lock = threading.Lock()

    def _evict(self, now: float) -> None:
        while self._starts and now - self._starts[0] >= self.interval:
            self._starts.popleft()

    def acquire(self) -> None:
        """Block until a slot is free in the current window, then take it."""
        while True:
            with self._lock:
                now = self._clock()
                self._evict(now)
                if len(self._starts) < self.limit:
                    self._starts.append(now)
                    return
                wait = self.interval - (now - self._starts[0])
            self._sleep(max(wait, 0.0))
