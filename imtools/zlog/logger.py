"""Leveled, structured logging to the console and to rotating log files."""

from __future__ import annotations

import dataclasses
import inspect
import json
import os
import sys
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any, Optional, TextIO

from .. import mcontext
from ..rotatelogs.rotatelogs import RotateLogs
from .color import level_color

LEVEL_FATAL = 0
LEVEL_PANIC = 1
LEVEL_ERROR = 2
LEVEL_WARN = 3
LEVEL_INFO = 4
LEVEL_DEBUG = 5
LEVEL_DEBUG_WITH_SQL = 6

_CALL_DEPTH = 1
_MESSAGE_WIDTH = 50
_CALLER_WIDTH = 50
_HOURS_PER_DAY = 24


class Level(IntEnum):
    """Severity of a log entry; higher is more severe."""

    DEBUG = -1
    INFO = 0
    WARN = 1
    ERROR = 2
    DPANIC = 3
    PANIC = 4
    FATAL = 5


_LEVEL_MAP = {
    LEVEL_DEBUG_WITH_SQL: Level.DEBUG,
    LEVEL_DEBUG: Level.DEBUG,
    LEVEL_INFO: Level.INFO,
    LEVEL_WARN: Level.WARN,
    LEVEL_ERROR: Level.ERROR,
    LEVEL_PANIC: Level.PANIC,
    LEVEL_FATAL: Level.FATAL,
}


class LogFormatter(ABC):
    """A value that supplies its own loggable form in simplified mode."""

    @abstractmethod
    def format(self) -> Any:
        """The value to log in place of this object."""


Sink = Callable[[str], Any]

_WRITE_LOCK = threading.Lock()


def _write_stdout(line: str) -> None:
    sys.stdout.write(line)
    sys.stdout.flush()


def _stream_sink(stream: TextIO) -> Sink:
    def write(line: str) -> None:
        stream.write(line)
        stream.flush()

    return write


def _fixed(text: str, width: int) -> str:
    return text.ljust(width)


def _dumps(value: Any, spaced: bool) -> str:
    separators = (", ", ": ") if spaced else (",", ":")
    return json.dumps(value, ensure_ascii=False, default=str, separators=separators)


def _json_object(pairs: Sequence[tuple[str, Any]], spaced: bool) -> str:
    sep, colon = (", ", ": ") if spaced else (",", ":")
    body = sep.join(f"{_dumps(k, spaced)}{colon}{_dumps(v, spaced)}" for k, v in pairs)
    return "{" + body + "}"


def _pair_up(keys_and_values: Sequence[Any]) -> list[tuple[str, Any]]:
    pairs: list[tuple[str, Any]] = []
    items = iter(keys_and_values)
    for key in items:
        try:
            value = next(items)
        except StopIteration:
            pairs.append(("ignored", key))
            break
        pairs.append((key if isinstance(key, str) else str(key), value))
    return pairs


def _trimmed_path(filename: str, line: int) -> str:
    parts = filename.replace(os.sep, "/").split("/")
    return f"{'/'.join(parts[-2:])}:{line}"


@dataclasses.dataclass(frozen=True)
class ZapLogger:
    """A structured logger writing console or JSON lines to its sinks."""

    level: Level = Level.INFO
    module_name: str = ""
    module_version: str = ""
    logger_prefix_name: str = ""
    rotation_time: timedelta = timedelta(0)
    sdk_type: str = ""
    platform_name: str = ""
    is_simplify: bool = False
    is_json: bool = False
    align: bool = False
    name: str = ""
    fields: tuple[tuple[str, Any], ...] = ()
    call_depth: int = 0
    sinks: tuple[Sink, ...] = ()
    writer: Optional[RotateLogs] = None

    def debug(self, ctx: Optional[mcontext.Context], msg: str, *args: Any) -> None:
        if self.level > Level.DEBUG:
            return
        self._log(Level.DEBUG, ctx, msg, list(args))

    def info(self, ctx: Optional[mcontext.Context], msg: str, *args: Any) -> None:
        if self.level > Level.INFO:
            return
        self._log(Level.INFO, ctx, msg, list(args))

    def warn(self, ctx: Optional[mcontext.Context], msg: str, err: Optional[BaseException], *args: Any) -> None:
        if self.level > Level.WARN:
            return
        self._log(Level.WARN, ctx, msg, self._with_error(args, err))

    def error(self, ctx: Optional[mcontext.Context], msg: str, err: Optional[BaseException], *args: Any) -> None:
        if self.level > Level.ERROR:
            return
        self._log(Level.ERROR, ctx, msg, self._with_error(args, err))

    def panic(self, ctx: Optional[mcontext.Context], msg: str, err: Optional[BaseException], *args: Any) -> None:
        """Log a critical failure; it is written at error level and does not raise."""
        if self.level > Level.PANIC:
            return
        self._log(Level.ERROR, ctx, msg, self._with_error(args, err))

    def with_values(self, *args: Any) -> ZapLogger:
        """A logger that adds these key/value pairs to every entry."""
        return dataclasses.replace(self, fields=self.fields + tuple(_pair_up(args)))

    def with_name(self, name: str) -> ZapLogger:
        """A logger whose name has ``name`` appended, dot separated."""
        full = f"{self.name}.{name}" if self.name else name
        return dataclasses.replace(self, name=full)

    def with_call_depth(self, depth: int) -> ZapLogger:
        """A logger that reports its caller ``depth`` frames further up."""
        return dataclasses.replace(self, call_depth=self.call_depth + depth)

    def close(self) -> None:
        """Close the rotating file, if any."""
        if self.writer is not None:
            self.writer.close()

    @staticmethod
    def _with_error(args: Sequence[Any], err: Optional[BaseException]) -> list[Any]:
        kvs = list(args)
        if err is not None:
            kvs += ["error", str(err)]
        return kvs

    def _log(self, level: Level, ctx: Optional[mcontext.Context], msg: str, kvs: list[Any]) -> None:
        frame = inspect.currentframe()
        for _ in range(2 + self.call_depth):
            if frame is None:
                break
            frame = frame.f_back
        caller = "undefined" if frame is None else _trimmed_path(frame.f_code.co_filename, frame.f_lineno)
        del frame

        kvs = self._kv_append(ctx, kvs)
        line = self._encode(level, msg, caller, _pair_up(kvs))
        with _WRITE_LOCK:
            for sink in self.sinks:
                sink(line)

    def _kv_append(self, ctx: Optional[mcontext.Context], kvs: list[Any]) -> list[Any]:
        if ctx is None:
            return kvs
        if self.is_simplify:
            if len(kvs) % 2 == 0:
                kvs = [
                    v.format() if i % 2 == 1 and isinstance(v, LogFormatter) else v
                    for i, v in enumerate(kvs)
                ]
            else:
                zerror(ctx, "keysAndValues length is not even", None)

        prefixes = (
            (mcontext.OP_USER_ID, mcontext.get_op_user_id(ctx)),
            (mcontext.OPERATION_ID, mcontext.get_operation_id(ctx)),
            (mcontext.CONN_ID, mcontext.get_conn_id(ctx)),
            (mcontext.TRIGGER_ID, mcontext.get_trigger_id(ctx)),
            (mcontext.OP_USER_PLATFORM, mcontext.get_op_user_platform(ctx)),
            (mcontext.REMOTE_ADDR, mcontext.get_remote_addr(ctx)),
        )
        for key, value in prefixes:
            if value:
                kvs = [key, value, *kvs]
        return kvs

    def _encode(self, level: Level, msg: str, caller: str, pairs: list[tuple[str, Any]]) -> str:
        now = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        message = _fixed(msg, _MESSAGE_WIDTH) if self.align else msg
        if self.is_json:
            entries: list[tuple[str, Any]] = [("level", level.name), ("time", now)]
            if self.name:
                entries.append(("logger", self.name))
            entries += [
                ("caller", caller),
                ("msg", message),
                ("PID", os.getpid()),
                ("version", self.module_version),
            ]
            entries += [*self.fields, *pairs]
            return _json_object(entries, spaced=False) + "\n"

        parts = [now, *self._level_elements(level)]
        if self.name:
            parts.append(self.name)
        parts += self._caller_elements(caller)
        parts.append(message)
        context = [*self.fields, *pairs]
        if context:
            parts.append(_json_object(context, spaced=True))
        return "\t".join(parts) + "\n"

    def _level_elements(self, level: Level) -> list[str]:
        color = level_color(level)
        if color is None:
            return [level.name]
        pid = _fixed(f"[PID:{os.getpid()}]", 15)
        elements = [color.add(level.name), color.add(pid)]
        if self.module_name:
            elements.append(color.add(_fixed(self.module_name, 25)))
        if self.module_version:
            elements.append(_fixed(f"[{self.module_version}]", 30))
        return elements

    def _caller_elements(self, caller: str) -> list[str]:
        elements = []
        if self.sdk_type and self.platform_name:
            elements.append(_fixed(f"[{self.sdk_type}/{self.platform_name}]", _CALLER_WIDTH))
        elements.append(_fixed(f"[{caller}]", _CALLER_WIDTH))
        return elements


def _rotation_pattern(log_location: str, prefix: str, rotation: timedelta) -> str:
    base = log_location + os.sep + prefix
    if rotation % timedelta(hours=_HOURS_PER_DAY) == timedelta(0):
        return base + ".%Y-%m-%d"
    if rotation % timedelta(hours=1) == timedelta(0):
        return base + ".%Y-%m-%d_%H"
    return base + ".%Y-%m-%d_%H_%M_%S"


def new_zap_logger(
    logger_prefix_name: str,
    module_name: str,
    sdk_type: str,
    platform_name: str,
    log_level: int,
    is_stdout: bool,
    is_json: bool,
    log_location: str,
    rotate_count: int,
    rotation_time: int,
    module_version: str,
    is_simplify: bool,
) -> ZapLogger:
    """A logger writing to rotating files under ``log_location`` and/or stdout.

    ``rotation_time`` is in hours; ``rotate_count`` is how many files to keep.
    """
    rotation = timedelta(hours=rotation_time)
    writer = RotateLogs(
        _rotation_pattern(log_location, logger_prefix_name, rotation),
        rotation_count=rotate_count,
        rotation_time=rotation,
    )
    sinks: list[Sink] = []
    if log_location:
        sinks.append(writer.write)
    if is_stdout:
        sinks.append(_write_stdout)
    return ZapLogger(
        level=_LEVEL_MAP.get(log_level, Level.INFO),
        module_name=module_name,
        module_version=module_version,
        logger_prefix_name=logger_prefix_name,
        rotation_time=rotation,
        sdk_type=sdk_type,
        platform_name=platform_name,
        is_simplify=is_simplify,
        is_json=is_json,
        align=True,
        sinks=tuple(sinks),
        writer=writer if log_location else None,
    )


def new_console_zap_logger(
    module_name: str,
    log_level: int,
    is_json: bool,
    module_version: str,
    output: Optional[TextIO] = None,
) -> ZapLogger:
    """A logger writing to ``output``; None means whatever ``sys.stdout`` is at write time."""
    sink = _write_stdout if output is None else _stream_sink(output)
    return ZapLogger(
        level=_LEVEL_MAP.get(log_level, Level.INFO),
        module_name=module_name,
        module_version=module_version,
        is_json=is_json,
        sinks=(sink,),
    )


_pkg_logger: ZapLogger
_console_logger: Optional[ZapLogger] = None


def init_logger_from_config(
    logger_prefix_name: str,
    module_name: str,
    sdk_type: str,
    platform_name: str,
    log_level: int,
    is_stdout: bool,
    is_json: bool,
    log_location: str,
    rotate_count: int,
    rotation_time: int,
    module_version: str,
    is_simplify: bool,
) -> ZapLogger:
    """Install and return the logger used by the module-level logging functions."""
    global _pkg_logger
    logger = new_zap_logger(
        logger_prefix_name, module_name, sdk_type, platform_name, log_level,
        is_stdout, is_json, log_location, rotate_count, rotation_time,
        module_version, is_simplify,
    ).with_call_depth(_CALL_DEPTH)
    if is_json:
        logger = logger.with_name(module_name)
    _pkg_logger = logger
    return logger


def init_console_logger(module_name: str, log_level: int, is_json: bool, module_version: str) -> ZapLogger:
    """Install and return the stdout logger used by :func:`cinfo`."""
    global _console_logger
    logger = new_console_zap_logger(module_name, log_level, is_json, module_version).with_call_depth(_CALL_DEPTH)
    if is_json:
        logger = logger.with_name(module_name)
    _console_logger = logger
    return logger


def zdebug(ctx: Optional[mcontext.Context], msg: str, *args: Any) -> None:
    _pkg_logger.debug(ctx, msg, *args)


def zinfo(ctx: Optional[mcontext.Context], msg: str, *args: Any) -> None:
    _pkg_logger.info(ctx, msg, *args)


def zwarn(ctx: Optional[mcontext.Context], msg: str, err: Optional[BaseException], *args: Any) -> None:
    _pkg_logger.warn(ctx, msg, err, *args)


def zerror(ctx: Optional[mcontext.Context], msg: str, err: Optional[BaseException], *args: Any) -> None:
    _pkg_logger.error(ctx, msg, err, *args)


def zpanic(ctx: Optional[mcontext.Context], msg: str, err: Optional[BaseException], *args: Any) -> None:
    _pkg_logger.panic(ctx, msg, err, *args)


def cinfo(ctx: Optional[mcontext.Context], msg: str, *args: Any) -> None:
    """Log to the console logger, if one was installed."""
    if _console_logger is None:
        return
    _console_logger.info(ctx, msg, *args)


def sdk_log(
    ctx: Optional[mcontext.Context],
    log_level: int,
    file: str,
    line: int,
    msg: str,
    err: Optional[BaseException],
    keys_and_values: Sequence[Any],
) -> None:
    """Log an entry on behalf of native code, tagged with its file and line."""
    kvs = ["native_caller", f"[{file}:{line}]", *keys_and_values]
    if log_level == LEVEL_DEBUG_WITH_SQL:
        zdebug(ctx, msg, *kvs)
    elif log_level == LEVEL_INFO:
        zinfo(ctx, msg, *kvs)
    elif log_level == LEVEL_WARN:
        zwarn(ctx, msg, err, *kvs)
    elif log_level == LEVEL_ERROR:
        zerror(ctx, msg, err, *kvs)


init_logger_from_config(
    "DefaultLogger",
    "DefaultLoggerModule",
    "",
    "",
    LEVEL_DEBUG,
    True,
    False,
    "./logs/",
    1,
    _HOURS_PER_DAY,
    "undefined version",
    False,
)