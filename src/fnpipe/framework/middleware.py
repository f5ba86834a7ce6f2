"""
Middleware contract.

A middleware is a table of up to three optional hooks::

    before(context)            runs before the handler
    after(context)             runs after a successful handler
    on_error(error, context)   may translate an error into a response

Hooks can be plain functions or coroutines. Implementations need no base
class: :func:`as_middleware` accepts a :class:`Middleware`, any object
exposing some of the hook methods, or a mapping of hook names to
callables, and normalizes it into a frozen hook table at registration.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from fnpipe.core.errors import InvalidMiddlewareError

if TYPE_CHECKING:
    from fnpipe.framework.context import Context

Hook = Callable[["Context"], Union[Awaitable[None], None]]
ErrorHook = Callable[[BaseException, "Context"], Union[Awaitable[None], None]]

HOOK_NAMES = ("before", "after", "on_error")


@dataclass(frozen=True)
class Middleware:
    """Immutable hook table held by a pipeline."""

    before: Hook | None = None
    after: Hook | None = None
    on_error: ErrorHook | None = None
    name: str = "middleware"

    def __post_init__(self) -> None:
        if self.before is None and self.after is None and self.on_error is None:
            raise InvalidMiddlewareError(f"Middleware {self.name!r} defines no hooks")


def as_middleware(value: Any) -> Middleware:
    """Normalize *value* into a :class:`Middleware` hook table."""
    if isinstance(value, Middleware):
        return value

    if isinstance(value, Mapping):
        unknown = set(value) - set(HOOK_NAMES) - {"name"}
        if unknown:
            raise InvalidMiddlewareError(f"Unknown middleware keys: {sorted(unknown)}")
        hooks = {key: value.get(key) for key in HOOK_NAMES}
        name = value.get("name", "middleware")
    else:
        hooks = {key: getattr(value, key, None) for key in HOOK_NAMES}
        name = type(value).__name__

    for key, hook in hooks.items():
        if hook is not None and not callable(hook):
            raise InvalidMiddlewareError(f"{name}.{key} is not callable")

    return Middleware(name=name, **hooks)


async def invoke(hook: Callable[..., Any], *args: Any) -> None:
    """Call a hook and await it when it returns an awaitable."""
    result = hook(*args)
    if inspect.isawaitable(result):
        await result
