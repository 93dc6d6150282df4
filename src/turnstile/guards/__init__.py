"""Guards — Protocol-based, no inheritance required.

A guard is any callable matching:
    def guard(ctx: GuardContext) -> None            (or async def)

and decides with ctx.proceed(), ctx.redirect(to) or ctx.cancel(reason).

Built-in guards:
    auth -- Require a user, refreshing the session once
    guest -- Only for signed-out visitors
    role -- Require a role on the user (bind after auth)
"""

from turnstile.guards.builtin import AuthGuard, GuestGuard, RoleGuard, auth, guest, role
from turnstile.guards.context import GuardContext, TransitionRequest
from turnstile.guards.continuation import Continuation
from turnstile.guards.outcome import PROCEED, Cancel, GuardOutcome, Proceed, Redirect
from turnstile.guards.protocol import Guard

__all__ = [
    "PROCEED",
    "AuthGuard",
    "Cancel",
    "Continuation",
    "GuestGuard",
    "Guard",
    "GuardContext",
    "GuardOutcome",
    "Proceed",
    "Redirect",
    "RoleGuard",
    "TransitionRequest",
    "auth",
    "guest",
    "role",
]
