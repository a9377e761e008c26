"""Events emitted by a rotating log writer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class EventType(IntEnum):
    """Kinds of events a rotating writer reports."""

    INVALID = 0
    FILE_ROTATED = 1


@dataclass(frozen=True)
class FileRotatedEvent:
    """The writer switched from ``previous_file`` to ``current_file``."""

    previous_file: str
    current_file: str

    def type(self) -> EventType:
        return EventType.FILE_ROTATED