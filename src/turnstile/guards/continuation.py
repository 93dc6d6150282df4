"""Continuation — the single-use "what happens next" slot of one stage.

Each pipeline stage gets a fresh ``Continuation``. The guard resolves it
through ``GuardContext.proceed/redirect/cancel``; the pipeline awaits
``wait()`` and moves its cursor once the slot holds an outcome.

Invoking a continuation that already decided is a programming error in
the guard. It never raises into the guard: the call is ignored and an
``ERROR`` record (with the caller's stack) goes to the
``turnstile.pipeline`` logger.
"""

import logging

import anyio

from turnstile.errors import ContinuationError
from turnstile.guards.outcome import PROCEED, GuardOutcome

_log = logging.getLogger("turnstile.pipeline")


class Continuation:
    """A one-shot decision slot for pipeline stage *stage*.

    Must be created inside a running event loop.
    """

    __slots__ = ("_event", "_expired", "_outcome", "label", "misuse", "stage")

    def __init__(self, stage: int, label: str = "") -> None:
        self.stage = stage
        self.label = label
        self.misuse: list[ContinuationError] = []
        self._event = anyio.Event()
        self._outcome: GuardOutcome | None = None
        self._expired = False

    def __call__(self, outcome: GuardOutcome = PROCEED) -> None:
        if self._outcome is not None:
            if self._expired:
                _log.warning(
                    "Guard %s decided %r after its stage was already closed (%r); ignoring.",
                    self.label or f"#{self.stage}",
                    outcome,
                    self._outcome,
                )
                return
            error = ContinuationError(
                f"Continuation for guard {self.label or f'#{self.stage}'} invoked twice: "
                f"already {self._outcome!r}, ignoring {outcome!r}."
            )
            self.misuse.append(error)
            _log.error("Programming error: %s", error, stack_info=True)
            return
        self._outcome = outcome
        self._event.set()

    @property
    def decided(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> GuardOutcome | None:
        return self._outcome

    def expire(self, outcome: GuardOutcome) -> bool:
        """Close the slot with *outcome* unless the guard already decided.

        Used for timeouts and guard exceptions. Returns ``True`` if this
        call set the outcome.
        """
        if self._outcome is not None:
            return False
        self._outcome = outcome
        self._expired = True
        self._event.set()
        return True

    async def wait(self) -> GuardOutcome:
        """Block until the slot holds an outcome."""
        await self._event.wait()
        assert self._outcome is not None
        return self._outcome

    def __repr__(self) -> str:
        return f"<Continuation stage={self.stage} {self.label!r} outcome={self._outcome!r}>"
