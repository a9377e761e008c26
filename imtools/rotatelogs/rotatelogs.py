"""A log file writer that rotates and purges files named by a strftime pattern."""

from __future__ import annotations

import contextlib
import glob
import os
import re
import stat
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, BinaryIO, Optional, Union

from .events import FileRotatedEvent
from .fileutil import create_file, generate_fn

Clock = Callable[[], datetime]

_PATTERN_CONVERSIONS = (re.compile(r"%[%+A-Za-z]"), re.compile(r"\*+"))
_DEFAULT_MAX_AGE = timedelta(days=7)
_NO_TIME = timedelta(0)


class RotateLogsError(Exception):
    """Raised when the rotating writer is misconfigured or cannot write."""


def local_now() -> datetime:
    """The current time in the local time zone."""
    return datetime.now().astimezone()


def utc_now() -> datetime:
    """The current time in UTC."""
    return datetime.now(timezone.utc)


def clock_in(tz: tzinfo) -> Clock:
    """A clock that reports the current time in ``tz``."""

    def now() -> datetime:
        return datetime.now(tz)

    return now


def _validation_clock() -> datetime:
    return datetime(2000, 1, 1)


class RotateLogs:
    """A writable file that switches to a new file as time or size requires.

    Old files matching the pattern are purged either by age (``max_age``)
    or by keeping only the newest ``rotation_count`` files.
    """

    def __init__(
        self,
        pattern: str,
        clock: Clock = local_now,
        link_name: str = "",
        max_age: Optional[timedelta] = None,
        rotation_time: timedelta = timedelta(hours=24),
        rotation_size: int = 0,
        rotation_count: int = 0,
        handler: Optional[Callable[[FileRotatedEvent], Any]] = None,
        force_new_file: bool = False,
    ) -> None:
        try:
            generate_fn(pattern, _validation_clock, _NO_TIME)
        except ValueError as exc:
            raise RotateLogsError(f"invalid strftime pattern: {exc}") from exc
        if rotation_count < 0:
            raise ValueError("rotation_count must not be negative")

        max_age = max(max_age or _NO_TIME, _NO_TIME)
        if max_age > _NO_TIME and rotation_count > 0:
            raise RotateLogsError("options max_age and rotation_count cannot be both set")
        if max_age == _NO_TIME and rotation_count == 0:
            max_age = _DEFAULT_MAX_AGE

        glob_pattern = pattern
        for regex in _PATTERN_CONVERSIONS:
            glob_pattern = regex.sub("*", glob_pattern)

        self._pattern = pattern
        self._glob_pattern = glob_pattern
        self._clock = clock
        self._link_name = link_name
        self._max_age = max_age
        self._rotation_time = max(rotation_time, _NO_TIME)
        self._rotation_size = max(rotation_size, 0)
        self._rotation_count = rotation_count
        self._handler = handler
        self._force_new_file = force_new_file

        self._lock = threading.RLock()
        self._out: Optional[BinaryIO] = None
        self._cur_fn = ""
        self._cur_base_fn = ""
        self._generation = 0

    def write(self, data: Union[bytes, bytearray, str]) -> int:
        """Write ``data`` to the current file, rotating first if due."""
        if isinstance(data, str):
            data = data.encode()
        with self._lock:
            out = self._writer(use_generational_names=False)
            return out.write(data)

    def rotate(self) -> None:
        """Switch to a new file now, adding a numeric suffix if the name is taken."""
        with self._lock:
            self._writer(use_generational_names=True)

    def current_filename(self) -> str:
        """The name of the file currently written to."""
        with self._lock:
            return self._cur_fn

    def close(self) -> None:
        with self._lock:
            if self._out is not None:
                self._out.close()
                self._out = None

    def __enter__(self) -> RotateLogs:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _writer(self, use_generational_names: bool) -> BinaryIO:
        generation = self._generation
        previous = self._cur_fn
        base_fn = generate_fn(self._pattern, self._clock, self._rotation_time)
        filename = base_fn
        force_new = False
        size_rotation = False

        if self._rotation_size > 0 and self._cur_fn:
            try:
                size = os.stat(self._cur_fn).st_size
            except OSError:
                size = -1
            if size >= self._rotation_size:
                force_new = size_rotation = True

        if base_fn != self._cur_base_fn:
            generation = 0
            force_new = force_new or self._force_new_file
        else:
            if not use_generational_names and not size_rotation:
                if self._out is None:
                    raise RotateLogsError("failed to acquire target writer: file is closed")
                return self._out
            force_new = True
            generation += 1

        if force_new:
            while True:
                candidate = filename if generation == 0 else f"{filename}.{generation}"
                if not os.path.exists(candidate):
                    filename = candidate
                    break
                generation += 1

        try:
            out = create_file(filename)
        except OSError as exc:
            raise RotateLogsError(f"failed to create a new file {filename}") from exc

        # Failing to relink or purge old files is not worth stopping the writer.
        with contextlib.suppress(OSError, RotateLogsError):
            self._purge(filename)

        if self._out is not None:
            self._out.close()
        self._out = out
        self._cur_base_fn = base_fn
        self._cur_fn = filename
        self._generation = generation

        if self._handler is not None:
            callback = getattr(self._handler, "handle", self._handler)
            event = FileRotatedEvent(previous_file=previous, current_file=filename)
            threading.Thread(target=callback, args=(event,), daemon=True).start()

        return out

    def _purge(self, filename: str) -> None:
        lock_path = filename + "_lock"
        fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        try:
            if self._link_name:
                self._relink(filename)

            if self._max_age <= _NO_TIME and self._rotation_count <= 0:
                raise RotateLogsError("max_age and rotation_count are both unset")

            cutoff = self._clock().timestamp() - self._max_age.total_seconds()
            stale = [
                path
                for path in sorted(glob.glob(self._glob_pattern))
                if self._is_stale(path, cutoff)
            ]

            if self._rotation_count > 0:
                if self._rotation_count >= len(stale):
                    return
                stale = stale[: len(stale) - self._rotation_count]

            for path in stale:
                with contextlib.suppress(OSError):
                    os.remove(path)
        finally:
            os.close(fd)
            with contextlib.suppress(OSError):
                os.remove(lock_path)

    def _is_stale(self, path: str, cutoff: float) -> bool:
        if path.endswith(("_lock", "_symlink")):
            return False
        try:
            info = os.stat(path)
            link_info = os.lstat(path)
        except OSError:
            return False
        if self._max_age > _NO_TIME and info.st_mtime > cutoff:
            return False
        if self._rotation_count > 0 and stat.S_ISLNK(link_info.st_mode):
            return False
        return True

    def _relink(self, filename: str) -> None:
        tmp_link = filename + "_symlink"
        link_dest = filename
        link_dir = os.path.dirname(self._link_name) or "."
        base_dir = os.path.dirname(filename) or "."
        if base_dir in self._link_name:
            link_dest = os.path.relpath(filename, link_dir)
        os.symlink(link_dest, tmp_link)
        os.makedirs(link_dir, mode=0o755, exist_ok=True)
        os.replace(tmp_link, self._link_name)