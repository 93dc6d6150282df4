"""Tests for turnstile.pipeline — ordered guard chains."""

import anyio
import pytest

from turnstile.errors import ConfigurationError, GuardException, GuardTimeout
from turnstile.guards.context import GuardContext, TransitionRequest
from turnstile.guards.outcome import PROCEED, Cancel, Redirect
from turnstile.pipeline import Pipeline
from turnstile.routing.location import RouteLocation
from turnstile.testing import ScriptedGuard


def _request(target: str = "/dashboard") -> TransitionRequest:
    return TransitionRequest(
        target=RouteLocation.parse(target),
        origin=RouteLocation("/"),
        generation=1,
    )


class _Terminal:
    def __init__(self) -> None:
        self.requests: list[TransitionRequest] = []

    def __call__(self, request: TransitionRequest) -> None:
        self.requests.append(request)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


class TestComposition:
    def test_stages_follow_declaration_order(self) -> None:
        a = ScriptedGuard.proceeding("a")
        b = ScriptedGuard.proceeding("b")
        pipeline = Pipeline([a, b])
        assert [s.index for s in pipeline.stages] == [0, 1]
        assert [s.guard for s in pipeline.stages] == [a, b]
        assert [s.label for s in pipeline.stages] == ["a", "b"]
        assert len(pipeline) == 2

    def test_rejects_non_callable(self) -> None:
        with pytest.raises(ConfigurationError, match="position 1"):
            Pipeline([ScriptedGuard.proceeding(), "not a guard"])  # type: ignore[list-item]

    def test_repr_lists_labels(self) -> None:
        def maintenance(ctx) -> None: ...

        assert repr(Pipeline([maintenance])) == "Pipeline([maintenance])"


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_empty_pipeline_runs_terminal() -> None:
    terminal = _Terminal()
    result = await Pipeline([]).run(_request(), terminal=terminal)
    assert result.outcome == PROCEED
    assert result.completed is True
    assert result.stage is None
    assert len(terminal.requests) == 1


@pytest.mark.anyio
async def test_all_proceed_invokes_terminal_exactly_once() -> None:
    guards = [ScriptedGuard.proceeding(f"g{i}") for i in range(4)]
    terminal = _Terminal()
    result = await Pipeline(guards).run(_request(), terminal=terminal)
    assert result.completed is True
    assert len(terminal.requests) == 1
    assert all(g.calls == 1 for g in guards)


@pytest.mark.anyio
async def test_guards_run_in_declaration_order() -> None:
    log: list[str] = []
    guards = [ScriptedGuard.proceeding(name, log=log) for name in ("first", "second", "third")]
    await Pipeline(guards).run(_request())
    assert log == ["first", "second", "third"]


@pytest.mark.anyio
async def test_redirect_short_circuits() -> None:
    log: list[str] = []
    first = ScriptedGuard.proceeding("first", log=log)
    second = ScriptedGuard.redirecting("/login", log=log)
    third = ScriptedGuard.proceeding("third", log=log)
    terminal = _Terminal()

    result = await Pipeline([first, second, third]).run(_request(), terminal=terminal)

    assert result.outcome == Redirect(RouteLocation("/login"))
    assert result.stage == 1
    assert result.completed is False
    assert third.calls == 0
    assert terminal.requests == []
    assert log == ["first", "redirect"]


@pytest.mark.anyio
async def test_cancel_short_circuits() -> None:
    first = ScriptedGuard.cancelling("nope")
    second = ScriptedGuard.proceeding()
    result = await Pipeline([first, second]).run(_request())
    assert result.outcome == Cancel("nope")
    assert result.stage == 0
    assert second.calls == 0


@pytest.mark.anyio
async def test_swapping_guards_with_same_decision_keeps_outcome() -> None:
    a = ScriptedGuard.proceeding("a")
    b = ScriptedGuard.proceeding("b")
    forward = await Pipeline([a, b]).run(_request())
    backward = await Pipeline([b, a]).run(_request())
    assert forward.outcome == backward.outcome == PROCEED


@pytest.mark.anyio
async def test_swapping_guards_with_different_decisions_changes_outcome() -> None:
    cancel = ScriptedGuard.cancelling("first")
    redirect = ScriptedGuard.redirecting("/elsewhere")
    forward = await Pipeline([cancel, redirect]).run(_request())
    backward = await Pipeline([redirect, cancel]).run(_request())
    assert forward.outcome == Cancel("first")
    assert backward.outcome == Redirect(RouteLocation("/elsewhere"))


@pytest.mark.anyio
async def test_rerun_is_idempotent() -> None:
    pipeline = Pipeline([ScriptedGuard.proceeding(), ScriptedGuard.cancelling("stop")])
    request = _request()
    first = await pipeline.run(request)
    second = await pipeline.run(request)
    assert first == second


@pytest.mark.anyio
async def test_sync_function_guard() -> None:
    def sync_guard(ctx: GuardContext) -> None:
        ctx.redirect("/login", redirect=ctx.target.full_path)

    result = await Pipeline([sync_guard]).run(_request("/reports?y=1"))
    assert result.outcome == Redirect(
        RouteLocation("/login", {"redirect": "/reports?y=1"})
    )


@pytest.mark.anyio
async def test_guard_may_decide_after_returning() -> None:
    async def deferred(ctx: GuardContext) -> None:
        async def later() -> None:
            await anyio.sleep(0.01)
            ctx.proceed()

        tg.start_soon(later)

    terminal = _Terminal()
    async with anyio.create_task_group() as tg:
        result = await Pipeline([deferred]).run(_request(), terminal=terminal)
    assert result.completed is True


@pytest.mark.anyio
async def test_context_carries_request_session_and_params() -> None:
    seen: list[GuardContext] = []
    guard = ScriptedGuard.proceeding(on_call=seen.append)
    session = object()
    request = _request("/admin/users")

    await Pipeline([guard]).run(request, session=session, params={"section": "users"})

    ctx = seen[0]
    assert ctx.request is request
    assert ctx.target == request.target
    assert ctx.origin == request.origin
    assert ctx.generation == 1
    assert ctx.session is session
    assert ctx.params == {"section": "users"}
    assert ctx.stage == 0


@pytest.mark.anyio
async def test_each_stage_gets_its_own_continuation() -> None:
    seen: list[GuardContext] = []
    a = ScriptedGuard.proceeding(on_call=seen.append)
    b = ScriptedGuard.proceeding(on_call=seen.append)
    await Pipeline([a, b]).run(_request())
    assert seen[0].continuation is not seen[1].continuation
    assert [ctx.stage for ctx in seen] == [0, 1]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_exception_becomes_cancel() -> None:
    boom = ScriptedGuard(raises=RuntimeError("boom"))
    after = ScriptedGuard.proceeding()
    result = await Pipeline([boom, after]).run(_request())

    assert result.outcome == Cancel("guard-exception")
    assert isinstance(result.error, GuardException)
    assert isinstance(result.error.__cause__, RuntimeError)
    assert result.error.guard is boom
    assert after.calls == 0


@pytest.mark.anyio
async def test_sync_exception_becomes_cancel() -> None:
    def broken(ctx: GuardContext) -> None:
        raise KeyError("user")

    result = await Pipeline([broken]).run(_request())
    assert result.outcome == Cancel("guard-exception")


@pytest.mark.anyio
async def test_undecided_guard_times_out() -> None:
    silent = ScriptedGuard(None, name="silent")
    after = ScriptedGuard.proceeding()
    result = await Pipeline([silent, after]).run(_request(), timeout=0.05)

    assert result.outcome == Cancel("guard-timeout")
    assert isinstance(result.error, GuardTimeout)
    assert "silent" in str(result.error)
    assert after.calls == 0


@pytest.mark.anyio
async def test_slow_guard_times_out() -> None:
    gate = anyio.Event()
    slow = ScriptedGuard.proceeding(gate=gate)
    result = await Pipeline([slow]).run(_request(), timeout=0.05)
    assert result.outcome == Cancel("guard-timeout")


@pytest.mark.anyio
async def test_double_decision_keeps_first() -> None:
    twice = ScriptedGuard.cancelling("first", decide_twice=True)
    result = await Pipeline([twice]).run(_request())
    assert result.outcome == Cancel("first")
    assert twice.finished == 1


@pytest.mark.anyio
async def test_terminal_exception_propagates() -> None:
    def terminal(request: TransitionRequest) -> None:
        raise RuntimeError("render failed")

    with pytest.raises(RuntimeError, match="render failed"):
        await Pipeline([]).run(_request(), terminal=terminal)


@pytest.mark.anyio
async def test_guard_keeps_running_in_supplied_task_group() -> None:
    release = anyio.Event()

    async def decide_then_work(ctx: GuardContext) -> None:
        ctx.proceed()
        await release.wait()
        finished.append(True)

    finished: list[bool] = []
    async with anyio.create_task_group() as tg:
        result = await Pipeline([decide_then_work]).run(_request(), task_group=tg)
        assert result.outcome == PROCEED
        assert finished == []
        release.set()
    assert finished == [True]
