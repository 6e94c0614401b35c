"""
PrismWatch Debounce Coordinator.

Collapses bursts of filesystem events into a single delayed trigger.
Requires Python 3.11+.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from utils.logger import LoggerMixin
from watcher.events import WatchMessage
from watcher.scheduler import Clock, PendingTimer


class DebounceCoordinator(LoggerMixin):
    """
    Debounces a stream of watch messages into trigger fires.

    Every qualifying change arms the pending timer, or pushes it out to a
    full quiet window from now. When the window elapses with no further
    qualifying change, the fire callback is started as an independent
    task and the timer goes idle again.

    Fires are not serialized: a new burst may complete and fire while an
    earlier fire is still running, so two callbacks can be in flight at
    once.
    """

    def __init__(
        self,
        on_fire: Callable[[], Awaitable[Any]],
        delay: float,
        clock: Clock = time.monotonic,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            on_fire: Async callable started once per elapsed quiet window
            delay: Quiet window in seconds
            clock: Monotonic time source, injectable for tests
        """
        self._on_fire = on_fire
        self._timer = PendingTimer(delay, clock)
        self._tasks: set[asyncio.Task[None]] = set()
        self._fire_count = 0

    def handle(self, message: WatchMessage) -> bool:
        """
        Apply one message of the merged stream to the timer state.

        Args:
            message: Change, error or end-of-stream marker

        Returns:
            False once the stream is closed, True otherwise
        """
        if message.closed:
            return False

        if message.error is not None:
            self.log.error("watch_error", error=str(message.error))
            return True

        event = message.change
        if event is None:
            return True

        self.log.debug("filesystem_event", op=event.kind.value, path=str(event.path))
        if not event.qualifies:
            return True

        if self._timer.arm():
            self.log.debug("trigger_scheduled", delay=self._timer.delay)
        else:
            self.log.debug("trigger_rescheduled", delay=self._timer.delay)
        return True

    def fire_if_due(self) -> bool:
        """
        Start the fire callback if the quiet window has elapsed.

        Must be called from within a running event loop.

        Returns:
            True if a fire was started
        """
        if not self._timer.is_due():
            return False

        self._timer.disarm()
        self._fire_count += 1
        task = asyncio.create_task(self._fire(self._fire_count))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _fire(self, number: int) -> None:
        self.log.debug("trigger_fired", fire=number)
        try:
            await self._on_fire()
        except Exception as e:
            self.log.exception("trigger_callback_failed", fire=number, error=str(e))

    async def run(
        self,
        queue: "asyncio.Queue[WatchMessage]",
        stop: asyncio.Event | None = None,
    ) -> None:
        """
        Process messages until the stream closes or ``stop`` is set.

        A timer still pending when the loop ends is discarded.

        Args:
            queue: Merged change/error stream
            stop: Optional shutdown signal
        """
        stop = stop or asyncio.Event()
        stop_task = asyncio.create_task(stop.wait())
        try:
            while not stop.is_set():
                self.fire_if_due()

                get_task = asyncio.create_task(queue.get())
                done, _ = await asyncio.wait(
                    {get_task, stop_task},
                    timeout=self._timer.remaining(),
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if get_task not in done:
                    get_task.cancel()
                    continue

                if not self.handle(get_task.result()):
                    self.log.info("watch_stream_closed")
                    break
        finally:
            stop_task.cancel()
            self._timer.disarm()

    async def drain(self) -> None:
        """Wait for every in-flight fire to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    @property
    def pending(self) -> bool:
        """Whether a fire is currently scheduled."""
        return self._timer.armed

    @property
    def deadline(self) -> float | None:
        return self._timer.deadline

    @property
    def fire_count(self) -> int:
        """Number of fires started so far."""
        return self._fire_count

    @property
    def in_flight(self) -> int:
        """Number of fires currently running."""
        return len(self._tasks)
