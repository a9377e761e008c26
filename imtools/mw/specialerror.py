"""Mapping of arbitrary exceptions to coded errors."""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional


class CodeError(Exception):
    """An error carrying a numeric code for the client."""

    def __init__(self, code: int, msg: str = "", detail: str = "") -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg
        self.detail = detail


Handler = Callable[[BaseException], Optional[CodeError]]

_handlers: list[Handler] = []


def add_err_handler(handler: Optional[Handler]) -> None:
    """Register a function that maps an exception to a CodeError or None."""
    if handler is None:
        raise ValueError("nil handler")
    _handlers.append(handler)


def add_replace(target: BaseException, code_err: CodeError) -> None:
    """Map the exact exception object ``target`` to ``code_err``."""

    def handler(err: BaseException) -> Optional[CodeError]:
        return code_err if err is target else None

    add_err_handler(handler)


def err_code(err: BaseException) -> Optional[CodeError]:
    """The CodeError for ``err``, from itself or the first handler that knows it."""
    if isinstance(err, CodeError):
        return err
    for handler in _handlers:
        code_err = handler(err)
        if code_err is not None:
            return code_err
    return None