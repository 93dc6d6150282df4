"""Transition dispatcher — the entry point every navigation goes through.

Resolves the guard binding for the destination, runs the composed
pipeline, and applies the terminal outcome:

- every guard proceeds → the transition hooks run (the view swap) and
  ``current`` moves to the target,
- a guard redirects → a new request for the redirect target re-enters
  the pipeline, up to ``max_redirect_hops`` times per navigation,
- a guard cancels (or times out, or raises) → the user stays put.

Every request is stamped with a generation. A newer navigation bumps
the counter, and a pipeline whose generation is no longer current has
its outcome discarded: last request wins. Superseded guards are never
aborted; they finish their side effects and their decision is ignored.

``navigate()`` never raises for guard failures. It always returns a
``NavigationResult``.

Usage::

    from turnstile import TransitionDispatcher
    from turnstile.guards import auth, guest, role

    async with TransitionDispatcher(session=session) as router:
        router.bind("/login", guest())
        router.bind("/admin/{section}", auth(), role("admin"))

        @router.on_transition
        async def swap_view(request):
            await ui.render(request.target)

        result = await router.navigate("/admin/users")
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import anyio
from anyio.abc import TaskGroup

from turnstile._internal.invoke import invoke
from turnstile.config import DispatcherConfig
from turnstile.errors import ConfigurationError, GuardError, RedirectLoop
from turnstile.events import emit_navigation_event
from turnstile.guards.context import TransitionRequest
from turnstile.guards.outcome import Cancel, Proceed, Redirect
from turnstile.guards.protocol import Guard
from turnstile.pipeline import Pipeline, PipelineResult
from turnstile.routing.binding import GuardBinding
from turnstile.routing.location import ROOT, RouteLocation
from turnstile.routing.table import BindingTable
from turnstile.session import SessionService

if TYPE_CHECKING:
    from turnstile.checks import CheckResult

_log = logging.getLogger("turnstile.dispatch")

type TransitionHook = Callable[[TransitionRequest], Any]
type ErrorHook = Callable[[GuardError], Any]
type AfterHook = Callable[[NavigationResult], Any]


class DispatcherState(Enum):
    """Lifecycle of the dispatcher's current request."""

    IDLE = "idle"
    PENDING = "pending"
    ALLOWED = "allowed"
    REDIRECTED = "redirected"
    CANCELLED = "cancelled"


class NavigationStatus(Enum):
    """Terminal outcome reported to the navigation caller."""

    ALLOWED = "allowed"
    REDIRECTED = "redirected"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class NavigationResult:
    """What happened to one ``navigate()`` call.

    Attributes:
        status: Allowed, redirected (a redirect target was allowed), or
            cancelled.
        location: Where the user is after the navigation.
        request: The last request issued for this navigation.
        reason: Cancel reason (``"guard-timeout"``, ``"superseded"`` ...).
        redirected_from: The originally requested target, when redirected.
        error: The guard failure behind a cancel, if any.
        stale: ``True`` when a newer navigation superseded this one.
    """

    status: NavigationStatus
    location: RouteLocation
    request: TransitionRequest
    reason: str | None = None
    redirected_from: RouteLocation | None = None
    error: GuardError | None = None
    stale: bool = False

    @property
    def allowed(self) -> bool:
        return self.status is NavigationStatus.ALLOWED

    @property
    def redirected(self) -> bool:
        return self.status is NavigationStatus.REDIRECTED

    @property
    def cancelled(self) -> bool:
        return self.status is NavigationStatus.CANCELLED


class TransitionDispatcher:
    """Runs guard pipelines for navigations and applies their outcomes.

    The dispatcher owns its session handle; guards reach it through
    ``ctx.session``. Use it as an async context manager so guard tasks
    live in the dispatcher's task group and may outlive a superseded
    navigation. Without ``async with``, each pipeline run uses its own
    group and cancels leftover guard work when it finishes.
    """

    __slots__ = (
        "_after_hooks",
        "_committed",
        "_current",
        "_error_hooks",
        "_exit_stack",
        "_generation",
        "_global_guards",
        "_last_result",
        "_state",
        "_table",
        "_task_group",
        "_transition_hooks",
        "config",
        "session",
    )

    def __init__(
        self,
        session: SessionService | None = None,
        config: DispatcherConfig | None = None,
        *,
        table: BindingTable | None = None,
        initial: str | RouteLocation = ROOT,
    ) -> None:
        self.session = session
        self.config = config or DispatcherConfig()
        self._table = table if table is not None else BindingTable()
        self._current = RouteLocation.coerce(initial)
        self._generation = 0
        self._committed = 0
        self._state = DispatcherState.IDLE
        self._last_result: NavigationResult | None = None
        self._global_guards: list[Guard] = []
        self._transition_hooks: list[TransitionHook] = []
        self._error_hooks: list[ErrorHook] = []
        self._after_hooks: list[AfterHook] = []
        self._task_group: TaskGroup | None = None
        self._exit_stack: AsyncExitStack | None = None

        if self.config.log_level is not None:
            logging.getLogger("turnstile").setLevel(self.config.log_level.upper())

    # -- Lifecycle --

    async def __aenter__(self) -> TransitionDispatcher:
        stack = AsyncExitStack()
        self._task_group = await stack.enter_async_context(anyio.create_task_group())
        self._exit_stack = stack
        return self

    async def __aexit__(self, *exc_info: Any) -> bool | None:
        stack, self._exit_stack = self._exit_stack, None
        task_group, self._task_group = self._task_group, None
        if task_group is not None:
            task_group.cancel_scope.cancel()
        if stack is None:
            return None
        return await stack.__aexit__(*exc_info)

    # -- Setup --

    @property
    def table(self) -> BindingTable:
        return self._table

    def bind(self, pattern: str, *guards: Guard, name: str | None = None) -> GuardBinding:
        """Attach *guards* (in order) to *pattern*."""
        binding = GuardBinding(pattern=pattern, guards=tuple(guards), name=name)
        self._table.add(binding)
        return binding

    def before_each(self, guard: Guard) -> Guard:
        """Register a guard that runs before every binding's guards.

        Usable as a decorator.
        """
        self._global_guards.append(guard)
        return guard

    def on_transition(self, hook: TransitionHook) -> TransitionHook:
        """Register the view-swap action run when a chain completes.

        Usable as a decorator. Sync or async.
        """
        self._transition_hooks.append(hook)
        return hook

    def on_error(self, hook: ErrorHook) -> ErrorHook:
        """Register a hook receiving guard timeouts, exceptions, and loops.

        Usable as a decorator. Sync or async.
        """
        self._error_hooks.append(hook)
        return hook

    def after_each(self, hook: AfterHook) -> AfterHook:
        """Register a hook receiving every applied ``NavigationResult``.

        Stale results are not delivered. Usable as a decorator.
        """
        self._after_hooks.append(hook)
        return hook

    def check(self) -> CheckResult:
        """Validate bindings; log warnings, raise on errors.

        Raises ``ConfigurationError`` listing every error found.
        """
        from turnstile.checks import check_bindings

        result = check_bindings(self._table, global_guards=self._global_guards)
        for issue in result.warnings:
            _log.warning("%s (%s)", issue.message, issue.pattern)
        if not result.ok:
            raise ConfigurationError(result.summary())
        return result

    # -- Introspection --

    @property
    def current(self) -> RouteLocation:
        """The last committed location."""
        return self._current

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_result(self) -> NavigationResult | None:
        return self._last_result

    def pipeline_for(self, target: str | RouteLocation) -> tuple[Pipeline, dict[str, str]]:
        """Compose the chain that would guard *target*, with path params."""
        location = RouteLocation.coerce(target)
        match = self._table.resolve(location.path)
        guards: list[Guard] = list(self._global_guards)
        params: dict[str, str] = {}
        if match is not None:
            guards.extend(match.binding.guards)
            params = match.path_params
        return Pipeline(guards), params

    # -- Navigation --

    async def navigate(self, to: str | RouteLocation) -> NavigationResult:
        """Guard and apply a navigation to *to*."""
        target = RouteLocation.coerce(to)
        origin = self._current
        request = self._issue(target, origin)

        while True:
            run = await self._run(request)
            if run.error is not None:
                await self._report(run.error)

            committed = self._committed == request.generation
            if not committed and not self._is_current(request):
                return self._discard(request)

            outcome = run.outcome
            if isinstance(outcome, Proceed) and committed:
                status = NavigationStatus.REDIRECTED if request.hops else NavigationStatus.ALLOWED
                return await self._finish(
                    NavigationResult(
                        status=status,
                        location=request.target,
                        request=request,
                        redirected_from=request.redirected_from,
                    )
                )

            if isinstance(outcome, Redirect):
                hops = request.hops + 1
                if hops > self.config.max_redirect_hops:
                    return await self._redirect_loop(request, outcome, hops)
                _log.debug(
                    "Redirect %s -> %s (hop %d)",
                    request.target.full_path,
                    outcome.location.full_path,
                    hops,
                )
                request = self._issue(
                    outcome.location,
                    origin,
                    hops=hops,
                    redirected_from=request.redirected_from or request.target,
                )
                continue

            reason = outcome.reason if isinstance(outcome, Cancel) else "transition-exception"
            return await self._finish(
                NavigationResult(
                    status=NavigationStatus.CANCELLED,
                    location=self._current,
                    request=request,
                    reason=reason,
                    redirected_from=request.redirected_from,
                    error=run.error,
                )
            )

    def _issue(
        self,
        target: RouteLocation,
        origin: RouteLocation,
        *,
        hops: int = 0,
        redirected_from: RouteLocation | None = None,
    ) -> TransitionRequest:
        self._generation += 1
        if self._state is not DispatcherState.PENDING:
            self._set_state(DispatcherState.PENDING)
        return TransitionRequest(
            target=target,
            origin=origin,
            generation=self._generation,
            hops=hops,
            redirected_from=redirected_from,
        )

    def _is_current(self, request: TransitionRequest) -> bool:
        return request.generation == self._generation

    async def _run(self, request: TransitionRequest) -> PipelineResult:
        pipeline, params = self.pipeline_for(request.target)
        _log.debug(
            "Navigation #%d to %s through %r",
            request.generation,
            request.target.full_path,
            pipeline,
        )
        try:
            return await pipeline.run(
                request,
                session=self.session,
                terminal=self._commit,
                params=params,
                timeout=self.config.guard_timeout,
                task_group=self._task_group,
            )
        except Exception:
            _log.exception("Transition hook failed for %s", request.target.full_path)
            return PipelineResult(outcome=Cancel("transition-exception"))

    async def _commit(self, request: TransitionRequest) -> None:
        """Terminal action: swap the view unless a newer request exists."""
        if not self._is_current(request):
            return
        for hook in self._transition_hooks:
            await invoke(hook, request)
        # A hook may suspend; a newer request can have committed meanwhile.
        if not self._is_current(request):
            return
        self._current = request.target
        self._committed = request.generation

    def _discard(self, request: TransitionRequest) -> NavigationResult:
        _log.debug(
            "Discarding stale outcome for #%d (%s); current is #%d",
            request.generation,
            request.target.full_path,
            self._generation,
        )
        emit_navigation_event("navigation.stale", request=request)
        return NavigationResult(
            status=NavigationStatus.CANCELLED,
            location=self._current,
            request=request,
            reason="superseded",
            redirected_from=request.redirected_from,
            stale=True,
        )

    async def _redirect_loop(
        self,
        request: TransitionRequest,
        outcome: Redirect,
        hops: int,
    ) -> NavigationResult:
        chain_start = request.redirected_from or request.target
        error = RedirectLoop(
            f"Navigation to {chain_start.full_path} exceeded {self.config.max_redirect_hops} "
            f"redirect hop(s): {request.target.full_path} -> {outcome.location.full_path}.",
            request=request,
            hops=hops,
        )
        _log.warning("%s", error)
        emit_navigation_event(
            "navigation.redirect_loop",
            request=request,
            details={"next": outcome.location.full_path, "hops": hops},
        )
        await self._report(error)
        return await self._finish(
            NavigationResult(
                status=NavigationStatus.CANCELLED,
                location=self._current,
                request=request,
                reason=RedirectLoop.reason,
                redirected_from=request.redirected_from,
                error=error,
            )
        )

    async def _finish(self, result: NavigationResult) -> NavigationResult:
        self._set_state(DispatcherState(result.status.value))
        self._last_result = result
        emit_navigation_event(
            f"navigation.{result.status.value}",
            request=result.request,
            details={"reason": result.reason} if result.reason else None,
        )
        for hook in self._after_hooks:
            try:
                await invoke(hook, result)
            except Exception:
                _log.exception("after_each hook %r failed", hook)
        self._set_state(DispatcherState.IDLE)
        return result

    async def _report(self, error: GuardError) -> None:
        for hook in self._error_hooks:
            try:
                await invoke(hook, error)
            except Exception:
                _log.exception("on_error hook %r failed", hook)

    def _set_state(self, state: DispatcherState) -> None:
        _log.debug("Dispatcher %s -> %s", self._state.value, state.value)
        self._state = state
