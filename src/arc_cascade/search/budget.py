"""Cooperative wall-clock budgets.

Strategies poll a :class:`Deadline` between units of work and return early
when it has passed. Nothing is interrupted preemptively.
"""

import time
from typing import Optional


class Deadline:
    """A point in time after which work should stop."""

    def __init__(self, seconds: Optional[float]):
        """Start the clock.

        Args:
            seconds: Budget in seconds; None or a non-positive value means no limit
        """
        self.seconds = seconds if seconds and seconds > 0 else None
        self.start = time.perf_counter()

    def elapsed(self) -> float:
        return time.perf_counter() - self.start

    def remaining(self) -> float:
        if self.seconds is None:
            return float('inf')
        return max(0.0, self.seconds - self.elapsed())

    def expired(self) -> bool:
        return self.seconds is not None and self.elapsed() > self.seconds

    @classmethod
    def unlimited(cls) -> "Deadline":
        return cls(None)


def expired(deadline: Optional[Deadline]) -> bool:
    """True if ``deadline`` is set and has passed."""
    return deadline is not None and deadline.expired()
