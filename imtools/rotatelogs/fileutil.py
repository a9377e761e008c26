"""File name generation from strftime patterns, and log file creation."""

from __future__ import annotations

import os
import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import BinaryIO

_ZERO_TIME = datetime(1, 1, 1)
_MICROSECOND = timedelta(microseconds=1)

_DAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)
_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)


def _twelve_hour(when: datetime) -> int:
    return when.hour % 12 or 12


def _sunday_week(when: datetime) -> int:
    yday = when.timetuple().tm_yday - 1
    return (yday + 7 - when.isoweekday() % 7) // 7


def _monday_week(when: datetime) -> int:
    yday = when.timetuple().tm_yday - 1
    return (yday + 7 - when.weekday()) // 7


def _utc_offset(when: datetime) -> str:
    offset = when.utcoffset()
    if offset is None:
        return ""
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{mins:02d}"


def _abbr_day(when: datetime) -> str:
    return _DAY_NAMES[when.weekday()][:3]


def _abbr_month(when: datetime) -> str:
    return _MONTH_NAMES[when.month - 1][:3]


_SPECS: dict[str, Callable[[datetime], str]] = {
    "A": lambda d: _DAY_NAMES[d.weekday()],
    "a": _abbr_day,
    "B": lambda d: _MONTH_NAMES[d.month - 1],
    "b": _abbr_month,
    "h": _abbr_month,
    "C": lambda d: f"{d.year // 100:02d}",
    "c": lambda d: (
        f"{_abbr_day(d)} {_abbr_month(d)} {d.day:>2} "
        f"{d.hour:02d}:{d.minute:02d}:{d.second:02d} {d.year:04d}"
    ),
    "D": lambda d: f"{d.month:02d}/{d.day:02d}/{d.year % 100:02d}",
    "d": lambda d: f"{d.day:02d}",
    "e": lambda d: f"{d.day:>2}",
    "F": lambda d: f"{d.year:04d}-{d.month:02d}-{d.day:02d}",
    "H": lambda d: f"{d.hour:02d}",
    "I": lambda d: f"{_twelve_hour(d):02d}",
    "j": lambda d: f"{d.timetuple().tm_yday:03d}",
    "k": lambda d: f"{d.hour:>2}",
    "l": lambda d: f"{_twelve_hour(d):>2}",
    "M": lambda d: f"{d.minute:02d}",
    "m": lambda d: f"{d.month:02d}",
    "n": lambda d: "\n",
    "p": lambda d: "AM" if d.hour < 12 else "PM",
    "R": lambda d: f"{d.hour:02d}:{d.minute:02d}",
    "r": lambda d: (
        f"{_twelve_hour(d):02d}:{d.minute:02d}:{d.second:02d} "
        f"{'AM' if d.hour < 12 else 'PM'}"
    ),
    "S": lambda d: f"{d.second:02d}",
    "T": lambda d: f"{d.hour:02d}:{d.minute:02d}:{d.second:02d}",
    "t": lambda d: "\t",
    "U": lambda d: f"{_sunday_week(d):02d}",
    "u": lambda d: str(d.isoweekday()),
    "V": lambda d: f"{d.isocalendar()[1]:02d}",
    "v": lambda d: f"{d.day:>2}-{_abbr_month(d)}-{d.year:04d}",
    "W": lambda d: f"{_monday_week(d):02d}",
    "w": lambda d: str(d.isoweekday() % 7),
    "X": lambda d: f"{d.hour:02d}:{d.minute:02d}:{d.second:02d}",
    "x": lambda d: f"{d.month:02d}/{d.day:02d}/{d.year % 100:02d}",
    "Y": lambda d: f"{d.year:04d}",
    "y": lambda d: f"{d.year % 100:02d}",
    "Z": lambda d: d.tzname() or "",
    "z": _utc_offset,
    "%": lambda d: "%",
}

_SPEC_RE = re.compile(r"%(.?)", re.DOTALL)


def _strftime(pattern: str, when: datetime) -> str:
    def expand(match: re.Match[str]) -> str:
        spec = match.group(1)
        if not spec:
            return "%"
        try:
            render = _SPECS[spec]
        except KeyError:
            raise ValueError(f"unknown time format specification: %{spec}") from None
        return render(when)

    return _SPEC_RE.sub(expand, pattern)


def generate_fn(
    pattern: str,
    clock: Callable[[], datetime],
    rotation_time: timedelta,
) -> str:
    """Render ``pattern`` for the clock's current time, truncated to ``rotation_time``.

    Truncation works on the wall-clock time as it reads in the clock's own
    zone, so daily rotation switches files at local midnight.
    """
    wall = clock().replace(tzinfo=None)
    step = rotation_time // _MICROSECOND
    if step > 0:
        elapsed = (wall - _ZERO_TIME) // _MICROSECOND
        wall = _ZERO_TIME + timedelta(microseconds=elapsed - elapsed % step)
    return _strftime(pattern, wall.replace(tzinfo=timezone.utc))


def create_file(filename: str) -> BinaryIO:
    """Open ``filename`` for appending, creating missing parent directories."""
    dirname = os.path.dirname(filename) or "."
    os.makedirs(dirname, mode=0o755, exist_ok=True)
    fd = os.open(filename, os.O_CREAT | os.O_APPEND | os.O_WRONLY, 0o644)
    return os.fdopen(fd, "ab", buffering=0)