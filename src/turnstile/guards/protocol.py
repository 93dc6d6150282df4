"""Guard protocol.

A guard is any callable matching::

    def my_guard(ctx: GuardContext) -> None: ...
    async def my_guard(ctx: GuardContext) -> None: ...

No base class required. The pipeline checks the shape, not the lineage.

The guard decides by calling exactly one of ``ctx.proceed()``,
``ctx.redirect(to)`` or ``ctx.cancel(reason)``. Returning without
deciding is allowed as long as something decides later (a callback, a
task the guard started); if nothing does before the timeout, the stage
resolves to ``Cancel("guard-timeout")``.
"""

from collections.abc import Awaitable
from typing import Protocol

from turnstile.guards.context import GuardContext


class Guard(Protocol):
    """Protocol for turnstile guards.

    Accepts both functions and callable objects::

        # Function guard
        def not_on_weekends(ctx: GuardContext) -> None:
            if date.today().weekday() >= 5:
                ctx.cancel("weekend")
            else:
                ctx.proceed()

        # Class guard
        class FeatureFlag:
            def __init__(self, flag: str) -> None:
                self.flag = flag

            async def __call__(self, ctx: GuardContext) -> None:
                ...
    """

    def __call__(self, ctx: GuardContext) -> Awaitable[None] | None: ...


def guard_label(guard: object) -> str:
    """Human-readable name for logs and diagnostics."""
    label = getattr(guard, "guard_name", None)
    if isinstance(label, str):
        return label
    name = getattr(guard, "__name__", None)
    if name:
        return name
    return type(guard).__name__
