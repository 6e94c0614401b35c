"""
PrismWatch File Watcher Package.

File system monitoring and debounced import triggering.
Requires Python 3.11+.
"""

from watcher.debouncer import DebounceCoordinator
from watcher.events import END_OF_STREAM, ChangeEvent, ChangeKind, WatchMessage
from watcher.file_watcher import WatchLostError, WatchSource
from watcher.scheduler import PendingTimer

__all__ = [
    "DebounceCoordinator",
    "END_OF_STREAM",
    "ChangeEvent",
    "ChangeKind",
    "WatchLostError",
    "WatchMessage",
    "WatchSource",
    "PendingTimer",
]
