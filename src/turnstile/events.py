"""Navigation events.

Opt-in telemetry for navigations and guard decisions. The dispatcher
reports every applied or discarded navigation; the built-in guards
report why they redirected. Nothing is delivered until a sink is set::

    from turnstile.events import set_navigation_event_sink

    set_navigation_event_sink(metrics.record)

Delivery is best-effort: a sink that raises is logged on the
``turnstile.events`` logger and never reaches the navigation.

Scoped registration, mostly for tests::

    with navigation_event_sink(events.append):
        await router.navigate("/dashboard")
"""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from turnstile.guards.context import TransitionRequest

_log = logging.getLogger("turnstile.events")


@dataclass(frozen=True, slots=True)
class NavigationEvent:
    """One navigation or guard occurrence.

    ``path`` and ``generation`` identify the transition the event belongs
    to; both are ``None`` for events raised outside a navigation.
    """

    name: str
    timestamp: float = field(default_factory=time)
    path: str | None = None
    generation: int | None = None
    user_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_request(
        cls,
        name: str,
        request: "TransitionRequest | None",
        **fields: Any,
    ) -> "NavigationEvent":
        if request is None:
            return cls(name=name, **fields)
        return cls(
            name=name,
            path=request.target.full_path,
            generation=request.generation,
            **fields,
        )


type NavigationEventSink = Callable[[NavigationEvent], None]

_lock = threading.Lock()
_sink: NavigationEventSink | None = None


def set_navigation_event_sink(sink: NavigationEventSink | None) -> NavigationEventSink | None:
    """Install *sink* process-wide and return the one it replaces.

    ``None`` turns delivery off.
    """
    global _sink
    with _lock:
        previous, _sink = _sink, sink
    return previous


@contextmanager
def navigation_event_sink(sink: NavigationEventSink) -> Iterator[NavigationEventSink]:
    """Install *sink* for the duration of a ``with`` block."""
    previous = set_navigation_event_sink(sink)
    try:
        yield sink
    finally:
        set_navigation_event_sink(previous)


def emit_navigation_event(
    name: str,
    *,
    request: "TransitionRequest | None" = None,
    user_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Deliver an event to the installed sink, if any."""
    with _lock:
        sink = _sink
    if sink is None:
        return
    event = NavigationEvent.for_request(
        name,
        request,
        user_id=user_id,
        details=details or {},
    )
    try:
        sink(event)
    except Exception:
        _log.exception("Navigation event sink %r failed on %s", sink, name)
