"""Turnstile exception hierarchy.

Shared across the binding table, pipeline, dispatcher, and guards so
every module raises and catches the same types.

Guard-level failures (``GuardTimeout``, ``GuardException``,
``RedirectLoop``) are never raised to the caller of
``TransitionDispatcher.navigate()``. The dispatcher converts them to a
``Cancel`` outcome and hands the error object to its ``on_error`` hooks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from turnstile.guards.context import TransitionRequest


class TurnstileError(Exception):
    """Base for all turnstile-specific errors."""


class ConfigurationError(TurnstileError):
    """Raised when dispatcher configuration or a guard binding is invalid.

    Raised at setup time, never while a navigation is in flight.
    """


class ContinuationError(TurnstileError):
    """A continuation was invoked after its stage had already decided.

    Logged as a programming error. The second call is ignored.
    """


class GuardError(TurnstileError):
    """Base for failures attributed to one guard in one transition.

    Carries the request being guarded and the guard that failed so
    ``on_error`` hooks can report both.
    """

    reason: str = "guard-error"

    def __init__(
        self,
        message: str,
        *,
        request: TransitionRequest | None = None,
        guard: Any = None,
    ) -> None:
        super().__init__(message)
        self.request = request
        self.guard = guard


class GuardTimeout(GuardError):  # noqa: N818 — mirrors the outcome reason
    """The guard neither proceeded, redirected, nor cancelled in time."""

    reason = "guard-timeout"


class GuardException(GuardError):  # noqa: N818 — mirrors the outcome reason
    """The guard raised. The original exception is the ``__cause__``."""

    reason = "guard-exception"


class RedirectLoop(GuardError):  # noqa: N818 — mirrors the outcome reason
    """A navigation followed more redirects than ``max_redirect_hops``."""

    reason = "redirect-loop"

    def __init__(
        self,
        message: str,
        *,
        request: TransitionRequest | None = None,
        guard: Any = None,
        hops: int = 0,
    ) -> None:
        super().__init__(message, request=request, guard=guard)
        self.hops = hops
