from __future__ import annotations

import signal

import pytest

from ecsdeploy.core.errors import HandlerError, ScopeCancelledError
from ecsdeploy.services.deploy.scope import ExecutionScope


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_scope_without_timeout_never_expires() -> None:
    clock = FakeClock()
    scope = ExecutionScope(clock=clock, handle_signals=False)
    clock.now += 10_000
    assert scope.remaining() is None
    assert not scope.cancelled
    scope.raise_if_cancelled("deploy")


def test_scope_deadline() -> None:
    clock = FakeClock()
    scope = ExecutionScope(timeout=30, clock=clock, handle_signals=False)
    assert scope.remaining() == 30
    clock.now += 20
    assert scope.remaining() == 10
    assert not scope.expired

    clock.now += 15
    assert scope.remaining() == 0.0
    assert scope.expired
    with pytest.raises(ScopeCancelledError, match="timed out") as excinfo:
        scope.raise_if_cancelled("register task definition")
    assert excinfo.value.step == "register task definition"
    assert isinstance(excinfo.value, HandlerError)


def test_cancel() -> None:
    scope = ExecutionScope(handle_signals=False)
    scope.cancel()
    assert scope.cancelled
    with pytest.raises(ScopeCancelledError, match="cancelled"):
        scope.raise_if_cancelled("status")


def test_leaving_scope_cancels_it() -> None:
    with ExecutionScope(handle_signals=False) as scope:
        assert not scope.cancelled
    assert scope.cancelled


def test_signal_handlers_are_restored() -> None:
    before = signal.getsignal(signal.SIGTERM)
    with ExecutionScope() as scope:
        assert signal.getsignal(signal.SIGTERM) != before
        scope._on_signal(signal.SIGTERM, None)
        assert scope.cancelled
        with pytest.raises(KeyboardInterrupt):
            scope._on_signal(signal.SIGTERM, None)
    assert signal.getsignal(signal.SIGTERM) == before
