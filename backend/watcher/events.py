"""
PrismWatch Watch Events.

Normalized filesystem change events and the merged message stream
consumed by the debounce coordinator.
Requires Python 3.11+.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ChangeKind(str, Enum):
    """Kinds of filesystem change notifications."""

    CREATE = "create"
    WRITE = "write"
    RENAME = "rename"
    REMOVE = "remove"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A single filesystem change notification."""

    path: Path
    kind: ChangeKind
    dest_path: Path | None = None
    is_directory: bool = False

    @property
    def qualifies(self) -> bool:
        """Whether the event may arm or reset the pending trigger."""
        return self.kind is not ChangeKind.REMOVE


@dataclass(frozen=True, slots=True)
class WatchMessage:
    """
    One item of the merged watch stream.

    Exactly one of ``change`` and ``error`` is set, unless the message is
    the end-of-stream marker (both unset, ``closed`` true).
    """

    change: ChangeEvent | None = None
    error: BaseException | None = None
    closed: bool = False

    @classmethod
    def of_change(cls, event: ChangeEvent) -> "WatchMessage":
        return cls(change=event)

    @classmethod
    def of_error(cls, error: BaseException) -> "WatchMessage":
        return cls(error=error)


END_OF_STREAM = WatchMessage(closed=True)
