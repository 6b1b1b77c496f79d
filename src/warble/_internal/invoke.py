"""Invoke helpers — call sync or async callables uniformly.

Middleware hooks, controller hooks, route handlers, authenticate
capabilities, and lifespan hooks can all be ``def`` or ``async def``.
Any code that calls one of them goes through this helper so the
sync/async check lives in exactly one place.

Usage::

    from warble._internal.invoke import invoke

    result = await invoke(hook, ctx)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync: returns immediately
        def before(ctx):
            return None

        # async: returns a coroutine, awaited here
        async def before(ctx):
            user = await load_user(ctx.request)
            return None if user else unauthorized()
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
