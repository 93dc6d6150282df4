"""Invoke helpers — call sync or async callables uniformly.

Guards and dispatcher hooks can be ``def`` or ``async def``. Any code
that calls a user-provided callable must handle both cases. This module
provides a single helper so the sync/async check lives in exactly one
place.

Usage::

    from turnstile._internal.invoke import invoke

    result = await invoke(guard, context)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable.

    Works with both sync and async callables::

        # sync — decides immediately
        def maintenance(ctx):
            ctx.cancel("maintenance")

        # async — decides after awaiting the session
        async def auth(ctx):
            user = await ctx.session.refresh_user()
            ...
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
