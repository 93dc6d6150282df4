"""Test utilities for turnstile guards and dispatchers.

``ScriptedGuard`` is a guard whose decision is fixed up front and whose
calls are recorded, so tests can assert on order and short-circuiting.
The ``assert_*`` helpers check a ``NavigationResult`` and produce a
clear message on failure::

    from turnstile.testing import ScriptedGuard, assert_redirected

    first = ScriptedGuard.proceeding("first")
    second = ScriptedGuard.redirecting("/login")
    dispatcher.bind("/private", first, second)

    result = await dispatcher.navigate("/private")
    assert_redirected(result, "/login")
    assert first.calls == 1
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import anyio

from turnstile.dispatcher import NavigationResult, NavigationStatus
from turnstile.guards.context import GuardContext
from turnstile.guards.outcome import PROCEED, Cancel, GuardOutcome, Redirect
from turnstile.routing.location import RouteLocation


class ScriptedGuard:
    """A guard with a preset decision.

    Args:
        outcome: What to decide. ``None`` means never decide (for
            timeout tests).
        name: Label used in logs and ``log`` entries.
        gate: If given, the guard waits for this event before deciding.
        raises: If given, the guard raises this instead of deciding.
        log: Shared list the guard appends its name to on each call,
            for asserting order across several guards.
        decide_twice: Invoke the continuation a second time.
    """

    def __init__(
        self,
        outcome: GuardOutcome | None = PROCEED,
        *,
        name: str = "scripted",
        gate: anyio.Event | None = None,
        raises: BaseException | None = None,
        log: list[str] | None = None,
        decide_twice: bool = False,
        on_call: Callable[[GuardContext], Any] | None = None,
    ) -> None:
        self.outcome = outcome
        self.guard_name = name
        self.gate = gate
        self.raises = raises
        self.log = log
        self.decide_twice = decide_twice
        self.on_call = on_call
        self.contexts: list[GuardContext] = []
        self.finished = 0

    @classmethod
    def proceeding(cls, name: str = "proceed", **kwargs: Any) -> ScriptedGuard:
        return cls(PROCEED, name=name, **kwargs)

    @classmethod
    def redirecting(cls, to: str | RouteLocation, name: str = "redirect", **kwargs: Any) -> ScriptedGuard:
        return cls(Redirect(RouteLocation.coerce(to)), name=name, **kwargs)

    @classmethod
    def cancelling(cls, reason: str = "cancelled", name: str = "cancel", **kwargs: Any) -> ScriptedGuard:
        return cls(Cancel(reason), name=name, **kwargs)

    @property
    def calls(self) -> int:
        return len(self.contexts)

    async def __call__(self, ctx: GuardContext) -> None:
        self.contexts.append(ctx)
        if self.log is not None:
            self.log.append(self.guard_name)
        if self.on_call is not None:
            self.on_call(ctx)
        if self.gate is not None:
            await self.gate.wait()
        if self.raises is not None:
            raise self.raises
        if self.outcome is not None:
            assert ctx.continuation is not None
            ctx.continuation(self.outcome)
            if self.decide_twice:
                ctx.continuation(self.outcome)
        self.finished += 1

    def __repr__(self) -> str:
        return f"ScriptedGuard({self.guard_name!r}, {self.outcome!r})"


# ---------------------------------------------------------------------------
# Result assertions
# ---------------------------------------------------------------------------


def _describe(result: NavigationResult) -> str:
    return (
        f"status={result.status.value}, location={result.location.full_path!r}, "
        f"reason={result.reason!r}, stale={result.stale}"
    )


def assert_allowed(result: NavigationResult, path: str | None = None) -> None:
    """Assert the navigation was allowed (optionally to *path*)."""
    assert result.status is NavigationStatus.ALLOWED, (
        f"Expected an allowed navigation, got {_describe(result)}"
    )
    if path is not None:
        assert result.location.path == path, (
            f"Expected to land on {path!r}, got {result.location.path!r}"
        )


def assert_redirected(result: NavigationResult, path: str, **query: str) -> None:
    """Assert the navigation ended on *path* via a redirect.

    Keyword arguments must each appear in the final location's query.
    """
    assert result.status is NavigationStatus.REDIRECTED, (
        f"Expected a redirected navigation, got {_describe(result)}"
    )
    assert result.location.path == path, (
        f"Expected redirect to {path!r}, got {result.location.path!r}"
    )
    for key, value in query.items():
        actual = result.location.query.get(key)
        assert actual == value, f"Expected query {key}={value!r}, got {actual!r}"


def assert_cancelled(result: NavigationResult, reason: str | None = None) -> None:
    """Assert the navigation was cancelled (optionally for *reason*)."""
    assert result.status is NavigationStatus.CANCELLED, (
        f"Expected a cancelled navigation, got {_describe(result)}"
    )
    if reason is not None:
        assert result.reason == reason, (
            f"Expected cancel reason {reason!r}, got {result.reason!r}"
        )
