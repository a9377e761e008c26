"""Request-scoped values carried through calls: operation, user, platform, connection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional

OPERATION_ID = "operationID"
OP_USER_ID = "opUserID"
OP_USER_PLATFORM = "platform"
CONN_ID = "connID"
TRIGGER_ID = "triggerID"
REMOTE_ADDR = "remoteAddr"

_MUST_INFO_KEYS = (OPERATION_ID, OP_USER_ID, OP_USER_PLATFORM, CONN_ID)


class MissingContextValueError(ValueError):
    """A value that the caller requires is absent from the context."""


class Context:
    """An immutable chain of key/value pairs; later values shadow earlier ones."""

    __slots__ = ("_parent", "_key", "_value")

    def __init__(
        self,
        parent: Optional[Context] = None,
        key: Any = None,
        value: Any = None,
    ) -> None:
        self._parent = parent
        self._key = key
        self._value = value

    def value(self, key: Any) -> Any:
        """The innermost value stored under ``key``, or None."""
        ctx: Optional[Context] = self
        while ctx is not None and ctx._parent is not None:
            if ctx._key == key:
                return ctx._value
            ctx = ctx._parent
        return None

    def with_value(self, key: Any, value: Any) -> Context:
        """A new context that holds ``value`` under ``key`` on top of this one."""
        return Context(self, key, value)


_BACKGROUND = Context()


def background() -> Context:
    """The empty root context."""
    return _BACKGROUND


def _get_str(ctx: Context, key: str) -> str:
    value = ctx.value(key)
    return value if isinstance(value, str) else ""


def new_ctx(operation_id: str) -> Context:
    return set_operation_id(background(), operation_id)


def with_op_user_id(ctx: Context, op_user_id: str) -> Context:
    return ctx.with_value(OP_USER_ID, op_user_id)


def with_op_user_platform(ctx: Context, platform: str) -> Context:
    return ctx.with_value(OP_USER_PLATFORM, platform)


def with_trigger_id(ctx: Context, trigger_id: str) -> Context:
    return ctx.with_value(TRIGGER_ID, trigger_id)


def set_operation_id(ctx: Context, operation_id: str) -> Context:
    return ctx.with_value(OPERATION_ID, operation_id)


def set_op_user_id(ctx: Context, op_user_id: str) -> Context:
    return ctx.with_value(OP_USER_ID, op_user_id)


def set_conn_id(ctx: Context, conn_id: str) -> Context:
    return ctx.with_value(CONN_ID, conn_id)


def get_operation_id(ctx: Context) -> str:
    return _get_str(ctx, OPERATION_ID)


def get_op_user_id(ctx: Context) -> str:
    return _get_str(ctx, OP_USER_ID)


def get_conn_id(ctx: Context) -> str:
    return _get_str(ctx, CONN_ID)


def get_trigger_id(ctx: Context) -> str:
    return _get_str(ctx, TRIGGER_ID)


def get_op_user_platform(ctx: Context) -> str:
    return _get_str(ctx, OP_USER_PLATFORM)


def get_remote_addr(ctx: Context) -> str:
    return _get_str(ctx, REMOTE_ADDR)


def _require_str(ctx: Context, key: str, label: str) -> str:
    value = ctx.value(key)
    if not isinstance(value, str):
        raise MissingContextValueError(f"ctx missing {label}")
    return value


def get_must_ctx_info(ctx: Context) -> tuple[str, str, str, str]:
    """Return (operation_id, op_user_id, platform, conn_id); the first three are required."""
    operation_id = _require_str(ctx, OPERATION_ID, "operationID")
    op_user_id = _require_str(ctx, OP_USER_ID, "opUserID")
    platform = _require_str(ctx, OP_USER_PLATFORM, "platform")
    return operation_id, op_user_id, platform, _get_str(ctx, CONN_ID)


def get_ctx_infos(ctx: Context) -> tuple[str, str, str, str]:
    """Return (operation_id, op_user_id, platform, conn_id); only the first is required."""
    operation_id = _require_str(ctx, OPERATION_ID, "operationID")
    return (
        operation_id,
        _get_str(ctx, OP_USER_ID),
        _get_str(ctx, OP_USER_PLATFORM),
        _get_str(ctx, CONN_ID),
    )


def with_must_info_ctx(values: Sequence[str]) -> Context:
    """Build a context from values given in the order operation, user, platform, connection."""
    if len(values) > len(_MUST_INFO_KEYS):
        raise ValueError(
            f"at most {len(_MUST_INFO_KEYS)} values are accepted, got {len(values)}"
        )
    ctx = background()
    for key, value in zip(_MUST_INFO_KEYS, values):
        ctx = ctx.with_value(key, value)
    return ctx