"""Replace missing containers in dataclass trees with empty ones."""

import dataclasses
import types
import typing
from typing import Any, Union

_CONTAINERS = {list: list, dict: dict, set: set}
_CONTAINER_NAMES = {
    "list": list,
    "List": list,
    "dict": dict,
    "Dict": dict,
    "set": set,
    "Set": set,
}
_NONE_NAMES = {"None", "NoneType"}


def _split_top_level(text: str, sep: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return parts


def _factory_from_text(text: str):
    text = text.strip().strip("'\"")
    parts = [p for p in _split_top_level(text, "|") if p not in _NONE_NAMES]
    if len(parts) != 1:
        return None
    part = parts[0]
    if part.endswith("]"):
        head, _, inner = part[:-1].partition("[")
        head = head.rsplit(".", 1)[-1]
        if head == "Optional":
            return _factory_from_text(inner)
        if head == "Union":
            members = [m for m in _split_top_level(inner, ",") if m not in _NONE_NAMES]
            return _factory_from_text(members[0]) if len(members) == 1 else None
        return _CONTAINER_NAMES.get(head)
    return _CONTAINER_NAMES.get(part.rsplit(".", 1)[-1])


def _strip_optional(hint: Any) -> Any:
    origin = typing.get_origin(hint)
    if origin is Union or origin is getattr(types, "UnionType", None):
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _container_factory(hint: Any):
    if isinstance(hint, str):
        return _factory_from_text(hint)
    hint = _strip_optional(hint)
    if isinstance(hint, str):
        return _factory_from_text(hint)
    base = typing.get_origin(hint) or hint
    return _CONTAINERS.get(base)


def replace_nil(data: Any) -> Any:
    """Fill public None fields annotated as list, dict or set with empty ones.

    Nested dataclass values are visited too; other None fields are left alone.
    Returns ``data``.
    """
    if data is None or not dataclasses.is_dataclass(data) or isinstance(data, type):
        return data
    for field in dataclasses.fields(data):
        if field.name.startswith("_"):
            continue
        value = getattr(data, field.name)
        if value is None:
            factory = _container_factory(field.type)
            if factory is not None:
                setattr(data, field.name, factory())
        elif dataclasses.is_dataclass(value) and not isinstance(value, type):
            replace_nil(value)
    return data