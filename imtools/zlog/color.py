"""ANSI foreground colours for log levels."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Optional


class Color(IntEnum):
    """ANSI foreground colour codes."""

    BLACK = 30
    RED = 31
    GREEN = 32
    YELLOW = 33
    BLUE = 34
    MAGENTA = 35
    CYAN = 36
    WHITE = 37

    def add(self, s: str) -> str:
        """Wrap ``s`` in this colour and a reset sequence."""
        return f"\x1b[{int(self)}m{s}\x1b[0m"


_LEVEL_COLORS = {
    "DEBUG": Color.WHITE,
    "INFO": Color.BLUE,
    "WARN": Color.YELLOW,
    "ERROR": Color.RED,
    "DPANIC": Color.RED,
    "PANIC": Color.RED,
    "FATAL": Color.RED,
}


def level_color(level: Any) -> Optional[Color]:
    """The colour for a level given by name or by an enum member; None if unknown."""
    name = getattr(level, "name", level)
    if not isinstance(name, str):
        return None
    return _LEVEL_COLORS.get(name.upper())