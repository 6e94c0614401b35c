"""
PrismWatch File Watcher.

Cross-platform directory monitoring using watchdog, bridged into an
asyncio queue for the debounce coordinator.
Requires Python 3.11+.
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CLOSED_NO_WRITE,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_OPENED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from utils.logger import LoggerMixin
from watcher.events import END_OF_STREAM, ChangeEvent, ChangeKind, WatchMessage


HEALTH_CHECK_INTERVAL = 1.0


class WatchLostError(OSError):
    """The platform watcher stopped while the source was still running."""


_KIND_BY_EVENT_TYPE: dict[str, ChangeKind] = {
    EVENT_TYPE_CREATED: ChangeKind.CREATE,
    EVENT_TYPE_MODIFIED: ChangeKind.WRITE,
    EVENT_TYPE_CLOSED: ChangeKind.WRITE,
    EVENT_TYPE_MOVED: ChangeKind.RENAME,
    EVENT_TYPE_DELETED: ChangeKind.REMOVE,
}


def to_change_event(event: FileSystemEvent) -> ChangeEvent | None:
    """
    Convert a watchdog event into a ChangeEvent.

    Read-only access notifications (opened, closed without write) are not
    changes and yield None, as do modification notices on directories,
    which only echo changes to their entries.

    Unpaired moves carry an empty path on one side: a move out of the
    watched tree is a RENAME without destination, a move into it is a
    CREATE of the destination.

    Args:
        event: Raw watchdog event

    Returns:
        Normalized event, or None if the notification is not a change
    """
    if event.event_type == EVENT_TYPE_MODIFIED and event.is_directory:
        return None

    kind = _KIND_BY_EVENT_TYPE.get(event.event_type)
    if kind is None:
        if event.event_type in (EVENT_TYPE_OPENED, EVENT_TYPE_CLOSED_NO_WRITE):
            return None
        kind = ChangeKind.OTHER

    src = event.src_path
    dest = getattr(event, "dest_path", "") or None
    if kind is ChangeKind.RENAME and not src and dest:
        kind, src, dest = ChangeKind.CREATE, dest, None

    return ChangeEvent(
        path=Path(os.fsdecode(src)),
        kind=kind,
        dest_path=Path(os.fsdecode(dest)) if dest else None,
        is_directory=event.is_directory,
    )


def create_observer() -> Any:
    """
    Create the platform observer.

    On Linux the inotify observer reports unpaired moves as moves, so a
    file moved out of the folder is not mistaken for a deletion.
    """
    if sys.platform.startswith("linux"):
        from watchdog.observers.inotify import InotifyObserver

        return InotifyObserver(generate_full_events=True)
    return Observer()


class ImportFolderHandler(FileSystemEventHandler):
    """
    Forwards watchdog events from the observer thread to the event loop.

    Conversion failures are forwarded as error messages instead of being
    raised inside the observer thread.
    """

    def __init__(self, source: "WatchSource") -> None:
        super().__init__()
        self._source = source

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            change = to_change_event(event)
        except Exception as e:
            self._source.publish(WatchMessage.of_error(e))
            return

        if change is not None:
            self._source.publish(WatchMessage.of_change(change))


class WatchSource(LoggerMixin):
    """
    Watches one directory and publishes a merged change/error stream.

    Messages are delivered on an asyncio queue owned by the running loop.
    ``stop`` closes the stream by publishing the end-of-stream marker.
    """

    def __init__(
        self,
        root_path: Path,
        loop: asyncio.AbstractEventLoop,
        queue: "asyncio.Queue[WatchMessage] | None" = None,
        recursive: bool = False,
    ) -> None:
        """
        Initialize the watch source.

        Args:
            root_path: Directory to watch
            loop: Event loop that consumes the queue
            queue: Destination queue; a new one is created if omitted
            recursive: Whether to watch subdirectories
        """
        self._root_path = root_path
        self._loop = loop
        self._queue: asyncio.Queue[WatchMessage] = queue if queue is not None else asyncio.Queue()
        self._recursive = recursive
        self._handler = ImportFolderHandler(self)
        self._observer: Any = None
        self._watch_lost = False

    @property
    def queue(self) -> "asyncio.Queue[WatchMessage]":
        return self._queue

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def publish(self, message: WatchMessage) -> None:
        """Hand a message to the event loop; safe to call from any thread."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, message)

    def start(self) -> None:
        """
        Register the directory and start watching.

        Raises:
            NotADirectoryError: If the root path is not a directory
            OSError: If the platform watcher cannot be initialized
        """
        if self._observer is not None:
            return

        if not self._root_path.is_dir():
            raise NotADirectoryError(f"{self._root_path}: not a directory")

        observer = create_observer()
        observer.schedule(self._handler, str(self._root_path), recursive=self._recursive)
        observer.start()
        self._observer = observer
        self._watch_lost = False

        self.log.info(
            "watch_started",
            path=str(self._root_path),
            recursive=self._recursive,
        )

    def check_health(self) -> bool:
        """
        Report a dead observer or emitter thread on the error channel.

        The error is published once per start; the stream stays open.

        Returns:
            False if the watch has been lost, True otherwise
        """
        observer = self._observer
        if observer is None:
            return True
        if self._watch_lost:
            return False

        if observer.is_alive() and all(e.is_alive() for e in observer.emitters):
            return True

        self._watch_lost = True
        self.publish(
            WatchMessage.of_error(
                WatchLostError(f"{self._root_path}: watch stopped unexpectedly")
            )
        )
        return False

    async def supervise(self, interval: float = HEALTH_CHECK_INTERVAL) -> None:
        """Run check_health periodically until cancelled."""
        while True:
            await asyncio.sleep(interval)
            self.check_health()

    def stop(self) -> None:
        """
        Stop watching and close the stream.

        Joins the observer thread; call through ``asyncio.to_thread`` from
        a running loop.
        """
        observer = self._observer
        if observer is None:
            return

        observer.stop()
        observer.join(timeout=5.0)
        self._observer = None
        self.publish(END_OF_STREAM)
        self.log.info("watch_stopped", path=str(self._root_path))

    def __enter__(self) -> "WatchSource":
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()
