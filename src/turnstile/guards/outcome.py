"""Guard outcomes — the three ways a guard can decide.

A tagged union of frozen dataclasses. Dispatch on them with
``match``::

    match outcome:
        case Proceed():
            ...
        case Redirect(location=loc):
            ...
        case Cancel(reason=reason):
            ...
"""

from dataclasses import dataclass

from turnstile.routing.location import RouteLocation


@dataclass(frozen=True, slots=True)
class Proceed:
    """Let the next stage run."""


@dataclass(frozen=True, slots=True)
class Redirect:
    """Abort this chain and start a new navigation to *location*."""

    location: RouteLocation


@dataclass(frozen=True, slots=True)
class Cancel:
    """Abort this chain and leave the user where they are."""

    reason: str = "cancelled"


type GuardOutcome = Proceed | Redirect | Cancel

PROCEED = Proceed()
