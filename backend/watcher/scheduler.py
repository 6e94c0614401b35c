"""
PrismWatch Single-Slot Scheduler.

Holds the one pending trigger deadline owned by the debounce coordinator.
Requires Python 3.11+.
"""

import time
from collections.abc import Callable


Clock = Callable[[], float]


class PendingTimer:
    """
    A single-slot timer that is either idle or armed with a deadline.

    The timer never runs anything itself; its owner polls ``is_due`` and
    decides when to fire. Time comes from an injected clock so the state
    machine can be driven without real waiting.
    """

    def __init__(self, delay: float, clock: Clock = time.monotonic) -> None:
        """
        Initialize the timer.

        Args:
            delay: Quiet window in seconds
            clock: Monotonic time source returning seconds
        """
        if delay < 0:
            raise ValueError("delay must not be negative")
        self._delay = delay
        self._clock = clock
        self._deadline: float | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def deadline(self) -> float | None:
        """Scheduled fire time, or None when idle."""
        return self._deadline

    @property
    def armed(self) -> bool:
        return self._deadline is not None

    def arm(self) -> bool:
        """
        Arm the timer, or push an armed timer's deadline out.

        Returns:
            True if the timer was idle and is now armed, False on reset
        """
        was_idle = self._deadline is None
        self._deadline = self._clock() + self._delay
        return was_idle

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None when idle."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def is_due(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    def disarm(self) -> None:
        self._deadline = None
