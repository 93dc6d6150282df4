"""Built-in guards — auth, guest, and role.

Each factory returns a guard bound to its redirect targets. All three
read the user from ``ctx.session`` (a ``SessionService``).

Ordering matters: ``role()`` assumes a resolved user, so bind it after
``auth()``. Placed first, an anonymous visitor is sent to the forbidden
page instead of the login page. ``turnstile.checks`` flags that.

Usage::

    from turnstile.guards import auth, guest, role

    dispatcher.bind("/login", guest())
    dispatcher.bind("/dashboard", auth())
    dispatcher.bind("/admin/{section}", auth(), role("admin"))
"""

import logging

from turnstile.events import emit_navigation_event
from turnstile.guards.context import GuardContext
from turnstile.routing.location import RouteLocation
from turnstile.session import UserWithRoles

_log = logging.getLogger("turnstile.guards")


class AuthGuard:
    """Require a signed-in user; refresh the session once before giving up.

    On failure redirects to *login* with ``{query_key: target.full_path}``
    so the login page can send the user back afterwards.
    """

    __slots__ = ("login", "query_key")

    guard_name = "auth"

    def __init__(self, login: str | RouteLocation = "/login", query_key: str = "redirect") -> None:
        self.login = RouteLocation.coerce(login)
        self.query_key = query_key

    async def __call__(self, ctx: GuardContext) -> None:
        session = ctx.session
        if session.get_user() is not None:
            ctx.proceed()
            return

        user = await session.refresh_user()
        if user is None:
            # The refresh may race with a login elsewhere; trust the store.
            user = session.get_user()

        if user is not None:
            emit_navigation_event("guard.auth.refreshed", request=ctx.request, user_id=user.id)
            ctx.proceed()
            return

        emit_navigation_event("guard.auth.unauthenticated", request=ctx.request)
        _log.info("Unauthenticated navigation to %s; sending to login", ctx.target.full_path)
        ctx.redirect(self.login, **{self.query_key: ctx.target.full_path})


class GuestGuard:
    """Only for signed-out visitors; signed-in users go to *landing*."""

    __slots__ = ("landing",)

    guard_name = "guest"

    def __init__(self, landing: str | RouteLocation = "/dashboard") -> None:
        self.landing = RouteLocation.coerce(landing)

    def __call__(self, ctx: GuardContext) -> None:
        user = ctx.session.get_user()
        if user is None:
            ctx.proceed()
            return
        emit_navigation_event("guard.guest.redirect", request=ctx.request, user_id=user.id)
        ctx.redirect(self.landing)


class RoleGuard:
    """Require ``required`` in ``user.roles``; otherwise go to *forbidden*."""

    __slots__ = ("forbidden", "required")

    guard_name = "role"

    def __init__(self, required: str, forbidden: str | RouteLocation = "/403") -> None:
        self.required = required
        self.forbidden = RouteLocation.coerce(forbidden)

    def __call__(self, ctx: GuardContext) -> None:
        user = ctx.session.get_user()
        if user is None:
            _log.warning(
                "role(%r) ran without a user for %s; is auth() bound before it?",
                self.required,
                ctx.target.full_path,
            )
            emit_navigation_event(
                "guard.role.denied",
                request=ctx.request,
                details={"required": self.required, "reason": "no_user"},
            )
            ctx.redirect(self.forbidden)
            return

        if not isinstance(user, UserWithRoles):
            _log.warning("User %s model does not implement the roles protocol", user.id)
            emit_navigation_event(
                "guard.role.denied",
                request=ctx.request,
                user_id=user.id,
                details={"required": self.required, "reason": "missing_roles_protocol"},
            )
            ctx.redirect(self.forbidden)
            return

        if self.required not in user.roles:
            _log.warning("User %s missing role: %s", user.id, self.required)
            emit_navigation_event(
                "guard.role.denied",
                request=ctx.request,
                user_id=user.id,
                details={"required": self.required},
            )
            ctx.redirect(self.forbidden)
            return

        ctx.proceed()

    def __repr__(self) -> str:
        return f"role({self.required!r})"


def auth(login: str | RouteLocation = "/login", *, query_key: str = "redirect") -> AuthGuard:
    """Build an auth guard redirecting anonymous users to *login*."""
    return AuthGuard(login, query_key)


def guest(landing: str | RouteLocation = "/dashboard") -> GuestGuard:
    """Build a guest guard redirecting signed-in users to *landing*."""
    return GuestGuard(landing)


def role(required: str, *, forbidden: str | RouteLocation = "/403") -> RoleGuard:
    """Build a role guard requiring *required*."""
    return RoleGuard(required, forbidden)
