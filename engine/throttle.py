"""
Rate limiting for published detection lists.
"""
from __future__ import annotations
from typing import Optional


class PublishThrottle:
    """Lets a publish through only when more than `interval` seconds passed since the last one.

    The first publish always passes. Rejected results are dropped, not queued.
    """
    def __init__(self, interval: float = 0.1):
        self.interval = float(interval)
        self._last: Optional[float] = None

    def ready(self, now: float) -> bool:
        if self._last is not None and (now - self._last) <= self.interval:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None

    @property
    def last_publish(self) -> Optional[float]:
        return self._last
