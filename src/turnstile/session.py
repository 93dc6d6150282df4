"""Session service — the user source guards read from.

The pipeline never owns session persistence. A dispatcher is handed a
``SessionService`` at construction and passes it to every guard through
``GuardContext.session``. Any object with ``get_user()`` and an async
``refresh_user()`` satisfies the protocol.

Usage::

    from turnstile.session import MemorySession

    async def fetch_me() -> User | None:
        return await api.get_current_user()

    session = MemorySession(loader=fetch_me)
    dispatcher = TransitionDispatcher(session=session)
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# User protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class User(Protocol):
    """Minimal user protocol.

    Any object with an ``id`` satisfies this. Bring your own model —
    dataclass, API payload wrapper, etc.
    """

    @property
    def id(self) -> str: ...


@runtime_checkable
class UserWithRoles(User, Protocol):
    """Extended user protocol with role support.

    Used by the ``role(required)`` guard.
    """

    @property
    def roles(self) -> frozenset[str]: ...


@dataclass(frozen=True, slots=True)
class SimpleUser:
    """A ready-made user value for apps and tests."""

    id: str
    roles: frozenset[str] = frozenset()


# ---------------------------------------------------------------------------
# Session service
# ---------------------------------------------------------------------------


@runtime_checkable
class SessionService(Protocol):
    """What guards need from the session layer."""

    def get_user(self) -> User | None: ...

    async def refresh_user(self) -> User | None: ...


class MemorySession:
    """In-memory session service.

    Holds the current user. ``refresh_user()`` calls *loader* (if any)
    and stores whatever it returns, so a refresh that yields ``None``
    logs the user out. Without a loader, refresh just re-reads the held
    user. There is no locking: the last write wins.
    """

    __slots__ = ("_loader", "_user", "refresh_count")

    def __init__(
        self,
        user: User | None = None,
        *,
        loader: Callable[[], Awaitable[User | None]] | None = None,
    ) -> None:
        self._user = user
        self._loader = loader
        self.refresh_count = 0

    def get_user(self) -> User | None:
        return self._user

    def set_user(self, user: User | None) -> None:
        """Replace the current user (login / logout)."""
        self._user = user

    async def refresh_user(self) -> User | None:
        self.refresh_count += 1
        if self._loader is not None:
            self._user = await self._loader()
        return self._user
