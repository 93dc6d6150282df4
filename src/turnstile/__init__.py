"""Turnstile — navigation guards for client-side routers.

Runs an ordered chain of guards before a route transition completes.
Each guard proceeds, redirects, or cancels; the first redirect or cancel
halts the chain, and the newest navigation always wins.

Basic usage::

    from turnstile import TransitionDispatcher
    from turnstile.guards import auth, role
    from turnstile.session import MemorySession

    session = MemorySession(loader=fetch_current_user)

    async with TransitionDispatcher(session=session) as router:
        router.bind("/dashboard", auth())
        router.bind("/admin/{section}", auth(), role("admin"))

        result = await router.navigate("/admin/users")
        if result.redirected:
            ...
"""

__version__ = "0.1.0-dev"
__all__ = [
    "Cancel",
    "ConfigurationError",
    "DispatcherConfig",
    "GuardBinding",
    "GuardContext",
    "GuardError",
    "MemorySession",
    "NavigationResult",
    "NavigationStatus",
    "Pipeline",
    "Proceed",
    "Redirect",
    "RouteLocation",
    "TransitionDispatcher",
    "TransitionRequest",
    "TurnstileError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import turnstile`` fast while providing a clean top-level API.
    """
    if name in ("TransitionDispatcher", "NavigationResult", "NavigationStatus"):
        from turnstile import dispatcher as _dispatch

        return getattr(_dispatch, name)

    if name == "DispatcherConfig":
        from turnstile.config import DispatcherConfig

        return DispatcherConfig

    if name == "Pipeline":
        from turnstile.pipeline import Pipeline

        return Pipeline

    if name in ("GuardContext", "TransitionRequest"):
        from turnstile.guards import context as _ctx

        return getattr(_ctx, name)

    if name in ("Proceed", "Redirect", "Cancel"):
        from turnstile.guards import outcome as _outcome

        return getattr(_outcome, name)

    if name in ("RouteLocation", "GuardBinding"):
        from turnstile import routing as _routing

        return getattr(_routing, name)

    if name == "MemorySession":
        from turnstile.session import MemorySession

        return MemorySession

    if name in ("TurnstileError", "ConfigurationError", "GuardError"):
        from turnstile import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
