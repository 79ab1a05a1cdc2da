"""Caller-supplied deadlines for bounding provider work."""

import time

from discovery.core.errors import DeadlineExceeded


class Deadline:
    """A point in monotonic time after which no new provider call starts."""

    def __init__(self, seconds: float, clock=time.monotonic):
        self._clock = clock
        self.expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self._clock() >= self.expires_at

    def check(self, what: str = "provider call") -> None:
        """Raise DeadlineExceeded if the deadline has passed."""
        if self.expired:
            raise DeadlineExceeded(f"Deadline expired before {what}")
