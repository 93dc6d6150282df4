"""Pipeline composer — runs an ordered guard list as a chain.

Conceptually the chain is a nest of continuations built right to left::

    continuation(n) = terminal
    continuation(i) = guard[i](ctx with proceed = continuation(i + 1))

Instead of closures capturing "the next guard", the pipeline keeps an
explicit cursor over an immutable tuple of stages. Each stage gets a
fresh single-use ``Continuation``; when it resolves to ``Proceed`` the
cursor advances, anything else ends the run. The stages stay
inspectable and no guard can reach a stage other than its own.

Guards run as tasks in an anyio task group while the pipeline waits on
the stage's continuation, bounded by *timeout*. A guard that has
decided may keep running its side effects. When the caller supplies a
task group (the dispatcher does) those tasks outlive the run; otherwise
the pipeline opens its own group and cancels leftovers on exit.

Usage::

    pipeline = Pipeline([auth(), role("admin")])
    result = await pipeline.run(request, session=session, terminal=swap_view)
    if result.completed:
        ...
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

import anyio
from anyio.abc import TaskGroup

from turnstile._internal.invoke import invoke
from turnstile.errors import ConfigurationError, GuardError, GuardException, GuardTimeout
from turnstile.guards.context import GuardContext, TransitionRequest
from turnstile.guards.continuation import Continuation
from turnstile.guards.outcome import PROCEED, Cancel, GuardOutcome, Proceed
from turnstile.guards.protocol import Guard, guard_label

_log = logging.getLogger("turnstile.pipeline")

# The action run once every guard has proceeded (the view swap)
type Terminal = Callable[[TransitionRequest], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class Stage:
    """One position in the chain."""

    index: int
    guard: Guard
    label: str


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """How a pipeline run ended.

    ``stage`` is the index of the deciding guard, or ``None`` when every
    guard proceeded. ``completed`` is ``True`` only if the terminal
    action ran.
    """

    outcome: GuardOutcome
    stage: int | None = None
    error: GuardError | None = None
    completed: bool = False


class Pipeline:
    """An immutable, ordered chain of guards."""

    __slots__ = ("_stages",)

    def __init__(self, guards: Iterable[Guard] = ()) -> None:
        stages: list[Stage] = []
        for index, guard in enumerate(guards):
            if not callable(guard):
                msg = f"Guard at position {index} is not callable: {guard!r}."
                raise ConfigurationError(msg)
            stages.append(Stage(index=index, guard=guard, label=guard_label(guard)))
        self._stages: tuple[Stage, ...] = tuple(stages)

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        labels = ", ".join(stage.label for stage in self._stages)
        return f"Pipeline([{labels}])"

    async def run(
        self,
        request: TransitionRequest,
        *,
        session: Any = None,
        terminal: Terminal | None = None,
        params: dict[str, str] | None = None,
        timeout: float | None = None,
        task_group: TaskGroup | None = None,
    ) -> PipelineResult:
        """Run the chain for *request*.

        Exceptions raised by *terminal* propagate; guard failures do not.
        """
        if task_group is not None:
            halted = await self._run_guards(request, session, params or {}, timeout, task_group)
        else:
            async with anyio.create_task_group() as tg:
                try:
                    halted = await self._run_guards(request, session, params or {}, timeout, tg)
                finally:
                    tg.cancel_scope.cancel()

        if halted is not None:
            return halted
        if terminal is not None:
            await invoke(terminal, request)
        return PipelineResult(outcome=PROCEED, completed=terminal is not None)

    async def _run_guards(
        self,
        request: TransitionRequest,
        session: Any,
        params: dict[str, str],
        timeout: float | None,
        task_group: TaskGroup,
    ) -> PipelineResult | None:
        """Advance the cursor; return the halting result, or ``None``."""
        cursor = 0
        while cursor < len(self._stages):
            stage = self._stages[cursor]
            continuation = Continuation(stage.index, stage.label)
            ctx = GuardContext(
                request=request,
                session=session,
                params=params,
                stage=stage.index,
                continuation=continuation,
            )
            errors: list[GuardError] = []
            task_group.start_soon(self._execute, stage, ctx, errors, name=f"guard:{stage.label}")

            with anyio.move_on_after(timeout):
                await continuation.wait()

            if not continuation.decided:
                error = GuardTimeout(
                    f"Guard {stage.label} did not decide within {timeout}s "
                    f"for {request.target.full_path}.",
                    request=request,
                    guard=stage.guard,
                )
                if continuation.expire(Cancel(GuardTimeout.reason)):
                    _log.warning("%s", error)
                    errors.append(error)

            outcome = continuation.outcome
            assert outcome is not None
            if not isinstance(outcome, Proceed):
                _log.debug(
                    "Stage %d (%s) halted %s with %r",
                    stage.index,
                    stage.label,
                    request.target.full_path,
                    outcome,
                )
                return PipelineResult(
                    outcome=outcome,
                    stage=stage.index,
                    error=errors[0] if errors else None,
                )
            cursor += 1
        return None

    async def _execute(
        self,
        stage: Stage,
        ctx: GuardContext,
        errors: list[GuardError],
    ) -> None:
        """Run one guard, turning an exception into ``Cancel``."""
        continuation = ctx.continuation
        assert continuation is not None
        try:
            await invoke(stage.guard, ctx)
        except Exception as exc:
            error = GuardException(
                f"Guard {stage.label} raised {type(exc).__name__}: {exc}",
                request=ctx.request,
                guard=stage.guard,
            )
            error.__cause__ = exc
            if continuation.expire(Cancel(GuardException.reason)):
                errors.append(error)
                _log.warning("%s", error, exc_info=exc)
            else:
                _log.error(
                    "Guard %s raised after deciding %r; the decision stands.",
                    stage.label,
                    continuation.outcome,
                    exc_info=exc,
                )
