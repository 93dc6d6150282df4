"""Transition requests and the context a guard receives.

``TransitionRequest`` describes one navigation attempt. ``GuardContext``
wraps it for a single pipeline stage and carries that stage's
continuation, so a guard can only decide for itself: it cannot reach
the next guard or an earlier one.
"""

from dataclasses import dataclass, field
from typing import Any

from turnstile.guards.continuation import Continuation
from turnstile.guards.outcome import PROCEED, Cancel, GuardOutcome, Redirect
from turnstile.routing.location import RouteLocation


@dataclass(frozen=True, slots=True)
class TransitionRequest:
    """A pending navigation from *origin* to *target*.

    ``generation`` is stamped by the dispatcher; a request whose
    generation is no longer current is stale. ``hops`` counts redirects
    already followed in this navigation.
    """

    target: RouteLocation
    origin: RouteLocation
    generation: int = 0
    hops: int = 0
    redirected_from: RouteLocation | None = None


@dataclass(frozen=True, slots=True)
class GuardContext:
    """Immutable view of a pending transition for one guard.

    Call exactly one of ``proceed()``, ``redirect()`` or ``cancel()``,
    either before returning or later from async work::

        async def maintenance(ctx: GuardContext) -> None:
            if await status_api.is_down():
                ctx.cancel("maintenance")
            else:
                ctx.proceed()
    """

    request: TransitionRequest
    session: Any
    params: dict[str, str] = field(default_factory=dict)
    stage: int = 0
    continuation: Continuation | None = field(default=None, repr=False, compare=False)

    @property
    def target(self) -> RouteLocation:
        return self.request.target

    @property
    def origin(self) -> RouteLocation:
        return self.request.origin

    @property
    def generation(self) -> int:
        return self.request.generation

    @property
    def decided(self) -> bool:
        """Whether this stage's continuation has been used."""
        return self.continuation is not None and self.continuation.decided

    def proceed(self) -> None:
        """Hand control to the next guard (or finish the transition)."""
        self._resolve(PROCEED)

    def redirect(self, to: str | RouteLocation, **query: str) -> None:
        """Abort the chain and navigate to *to* instead.

        Keyword arguments are merged into the redirect's query string.
        """
        location = RouteLocation.coerce(to)
        if query:
            location = location.with_query(**query)
        self._resolve(Redirect(location))

    def cancel(self, reason: str = "cancelled") -> None:
        """Abort the chain and stay on the current route."""
        self._resolve(Cancel(reason))

    def _resolve(self, outcome: GuardOutcome) -> None:
        if self.continuation is None:
            msg = "GuardContext has no continuation; it was not created by a pipeline."
            raise RuntimeError(msg)
        self.continuation(outcome)
