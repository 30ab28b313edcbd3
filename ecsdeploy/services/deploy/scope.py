from __future__ import annotations

import signal
import threading
import time
from types import FrameType, TracebackType
from typing import Any, Callable

from ecsdeploy.core.errors import ScopeCancelledError

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ExecutionScope:
    """Cancellation and deadline shared by the calls one command makes.

    While the scope is open, SIGINT and SIGTERM cancel it instead of killing
    the process; a second signal falls through to KeyboardInterrupt. Leaving
    the scope cancels it and restores the previous handlers.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        handle_signals: bool = True,
    ) -> None:
        self._clock = clock
        self._deadline = None if timeout is None else clock() + timeout
        self._cancelled = threading.Event()
        self._handle_signals = handle_signals
        self._previous: dict[int, Any] = {}

    def __enter__(self) -> ExecutionScope:
        if self._handle_signals and threading.current_thread() is threading.main_thread():
            for signum in _SIGNALS:
                self._previous[signum] = signal.signal(signum, self._on_signal)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cancel()
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous.clear()

    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        if self._cancelled.is_set():
            raise KeyboardInterrupt
        self.cancel()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set() or self.expired

    def remaining(self) -> float | None:
        """Seconds left before the deadline, None when there is no deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def raise_if_cancelled(self, step: str) -> None:
        if self._cancelled.is_set():
            raise ScopeCancelledError(step, "cancelled before the call was issued")
        if self.expired:
            raise ScopeCancelledError(step, "timed out before the call was issued")
