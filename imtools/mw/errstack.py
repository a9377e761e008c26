"""Readable call paths for exceptions and recovered failures."""

from __future__ import annotations

import traceback
from typing import Any, Optional

from .. import mcontext
from ..zlog.logger import zerror


def simplify_func_name(full_func_name: str) -> str:
    """The last dotted component of the last slash-separated part of a name."""
    last = full_func_name.split("/")[-1]
    parts = last.split(".")
    return parts[-1] if len(parts) > 1 else last


def format_error(err: BaseException) -> BaseException:
    """An exception whose message includes the call path of ``err``'s traceback.

    Exceptions without a traceback are returned unchanged.
    """
    if err.__traceback__ is None:
        return err
    path = [
        f"{simplify_func_name(frame.name)} ({frame.filename}:{frame.lineno})"
        for frame in traceback.extract_tb(err.__traceback__)
    ]
    formatted = Exception(f"Error: {err} | Error trace: " + " -> ".join(path))
    formatted.__cause__ = err
    return formatted


def _panic_stack() -> str:
    frames = reversed(traceback.extract_stack())
    return " -> ".join(f"{frame.name}:{frame.lineno}" for frame in frames)


def panic_stack_to_log(ctx: Optional[mcontext.Context], err: Any) -> None:
    """Log a recovered failure together with the current call stack."""
    stack = _panic_stack()
    if isinstance(err, BaseException):
        zerror(ctx, "recovered from panic", err, "stack", stack)
    else:
        zerror(ctx, "recovered from panic with non-error type", None, "stack", stack)