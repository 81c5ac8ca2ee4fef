# farmlink/runtime/poller.py
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, List, Optional

from farmlink.core.errors import DeviceIOError
from farmlink.model.operation import Operation, OperationKind
from farmlink.runtime.executor import OperationExecutor
from farmlink.runtime.state import STATUS_FAILED, OperationResult, SessionStatus

TickCallback = Callable[[OperationResult], None]


class PollingSession(threading.Thread):
    """
    Re-issues one telemetry Operation until cancelled.

    - first tick fires as soon as the thread starts
    - fixed delay: the next tick starts `period_s` after the previous one
      finished, so two ticks of a session never overlap
    - failed ticks are delivered like successful ones and do not end the session
    - cancel() stops further ticks; a tick already in flight runs to completion
      and its result is dropped
    """

    def __init__(
        self,
        executor: OperationExecutor,
        operation: Operation,
        period_s: float,
        on_tick: TickCallback,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        if operation.kind is not OperationKind.FETCH_TELEMETRY:
            raise ValueError(f"Only fetch_telemetry operations can be polled (got {operation.kind.value})")
        if period_s <= 0:
            raise ValueError("period_s must be > 0")

        super().__init__(daemon=True, name=f"farmlink-poll-{operation.endpoint.farm_id}")
        self._executor = executor
        # results go to on_tick only
        self._operation = replace(operation, on_result=None)
        self.period_s = float(period_s)
        self._on_tick = on_tick
        self._log = logger or logging.getLogger(__name__)

        self._stop_event = threading.Event()
        self._lock = threading.RLock()
        self._ticks = 0
        self._failures = 0
        self._last_error: Optional[str] = None

    # ---------------- Public API ----------------
    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    @property
    def ticks(self) -> int:
        with self._lock:
            return self._ticks

    def status(self) -> SessionStatus:
        with self._lock:
            return SessionStatus(
                active=self.is_alive() and not self._stop_event.is_set(),
                ticks=self._ticks,
                failures=self._failures,
                last_error=self._last_error,
            )

    def cancel(self, *, wait: bool = False, timeout: Optional[float] = None) -> None:
        """
        Stop future ticks. Once this returns no further result is delivered.
        With wait=True also join the thread (which may sit in a blocking read).
        """
        with self._lock:
            if not self._stop_event.is_set():
                self._stop_event.set()
                self._log.info("POLL_CANCELLED farm=%s ticks=%d", self._operation.endpoint.farm_id, self._ticks)
        if wait and self.is_alive() and threading.current_thread() is not self:
            self.join(timeout=timeout)

    # ---------------- Thread body ----------------
    def run(self) -> None:
        farm_id = self._operation.endpoint.farm_id
        self._log.info("POLL_START farm=%s period_s=%.3f", farm_id, self.period_s)

        while True:
            with self._lock:
                if self._stop_event.is_set():
                    break
                try:
                    future = self._executor.submit(self._operation)
                except RuntimeError:
                    self._log.warning("POLL_EXECUTOR_CLOSED farm=%s", farm_id)
                    self._stop_event.set()
                    break
                self._ticks += 1
                tick = self._ticks

            try:
                result = future.result()
            except Exception as e:
                self._log.exception("POLL_TICK_EXCEPTION farm=%s tick=%d", farm_id, tick)
                result = OperationResult(
                    port=self._operation.kind.port,
                    status=STATUS_FAILED,
                    error=DeviceIOError("Telemetry tick failed.", hint=str(e)),
                )

            if not self._deliver(tick, result):
                break

            if self._stop_event.wait(self.period_s):
                break

        self._log.info("POLL_STOP farm=%s ticks=%d", farm_id, self.ticks)

    def _deliver(self, tick: int, result: OperationResult) -> bool:
        with self._lock:
            if self._stop_event.is_set():
                self._log.debug("POLL_TICK_DISCARDED tick=%d status=%s", tick, result.status)
                return False

            if not result.ok:
                self._failures += 1
                self._last_error = result.error.message if result.error is not None else result.status

            try:
                self._on_tick(result)
            except Exception:
                self._log.exception("POLL_ON_TICK_ERROR tick=%d", tick)
            return True


class PollingScheduler:
    """Starts and tracks PollingSessions sharing one OperationExecutor."""

    def __init__(self, executor: OperationExecutor, *, logger: Optional[logging.Logger] = None):
        self._executor = executor
        self._log = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._sessions: List[PollingSession] = []

    def start(self, operation: Operation, period_s: float, on_tick: TickCallback) -> PollingSession:
        session = PollingSession(self._executor, operation, period_s, on_tick, logger=self._log)
        with self._lock:
            self._sessions = [s for s in self._sessions if s.is_alive()]
            self._sessions.append(session)
        session.start()
        return session

    def sessions(self) -> List[PollingSession]:
        with self._lock:
            return [s for s in self._sessions if s.is_alive() and not s.cancelled]

    def cancel_all(self, *, wait: bool = False, timeout: Optional[float] = None) -> None:
        with self._lock:
            sessions = list(self._sessions)
            self._sessions.clear()
        for s in sessions:
            s.cancel(wait=wait, timeout=timeout)
