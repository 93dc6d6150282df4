"""Tests for turnstile.guards.continuation — single-use decision slots."""

import logging

import pytest

from turnstile.guards.continuation import Continuation
from turnstile.guards.outcome import PROCEED, Cancel, Proceed, Redirect
from turnstile.routing.location import RouteLocation


@pytest.mark.anyio
async def test_default_call_proceeds() -> None:
    cont = Continuation(0, "auth")
    cont()
    assert cont.decided
    assert await cont.wait() == PROCEED


@pytest.mark.anyio
async def test_records_outcome() -> None:
    cont = Continuation(1)
    cont(Redirect(RouteLocation("/login")))
    assert cont.outcome == Redirect(RouteLocation("/login"))


@pytest.mark.anyio
async def test_second_call_is_ignored_and_logged(caplog: pytest.LogCaptureFixture) -> None:
    cont = Continuation(0, "auth")
    cont(PROCEED)
    with caplog.at_level(logging.ERROR, logger="turnstile.pipeline"):
        cont(Cancel("late"))

    assert isinstance(cont.outcome, Proceed)
    assert len(cont.misuse) == 1
    assert "invoked twice" in str(cont.misuse[0])
    assert any("Programming error" in r.getMessage() for r in caplog.records)


@pytest.mark.anyio
async def test_expire_sets_outcome_when_undecided() -> None:
    cont = Continuation(0)
    assert cont.expire(Cancel("guard-timeout")) is True
    assert cont.outcome == Cancel("guard-timeout")


@pytest.mark.anyio
async def test_expire_does_not_override_decision() -> None:
    cont = Continuation(0)
    cont(PROCEED)
    assert cont.expire(Cancel("guard-timeout")) is False
    assert cont.outcome == PROCEED


@pytest.mark.anyio
async def test_late_decision_after_expire_is_warning_not_misuse(
    caplog: pytest.LogCaptureFixture,
) -> None:
    cont = Continuation(0, "slow")
    cont.expire(Cancel("guard-timeout"))
    with caplog.at_level(logging.WARNING, logger="turnstile.pipeline"):
        cont(PROCEED)

    assert cont.outcome == Cancel("guard-timeout")
    assert cont.misuse == []
    assert any("already closed" in r.getMessage() for r in caplog.records)
