"""Combine server interceptors into one."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

Handler = Callable[[Any, Any], Any]
Interceptor = Callable[[Any, Any, Any, Handler], Any]


def intercept_chain(*args: Interceptor) -> Interceptor:
    """An interceptor that runs ``args`` in order, the first outermost."""
    interceptors = tuple(args)

    def chained(ctx: Any, req: Any, info: Any, handler: Handler) -> Any:
        def link(inter: Interceptor, nxt: Handler) -> Handler:
            return lambda c, r: inter(c, r, info, nxt)

        current = handler
        for inter in reversed(interceptors):
            current = link(inter, current)
        return current(ctx, req)

    return chained