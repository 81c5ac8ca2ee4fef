# farmlink/runtime/executor.py
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from farmlink.core.errors import DeviceIOError
from farmlink.interfaces.operation_sink import OperationSink
from farmlink.model.endpoint import Endpoint
from farmlink.model.operation import Operation
from farmlink.runtime.state import STATUS_FAILED, OperationResult
from farmlink.runtime.transport_task import TransportTask
from farmlink.transport.registry import TransportDriverRegistry

TaskFactory = Callable[[Endpoint], TransportTask]


class OperationExecutor:
    """
    Bounded worker pool running one TransportTask per submitted Operation.

    At most `max_workers` exchanges are in flight; further submissions queue.
    Returned futures always resolve to an OperationResult (transport failures
    are results, not exceptions).
    """

    def __init__(
        self,
        *,
        max_workers: int = 4,
        drivers: Optional[TransportDriverRegistry] = None,
        connect_timeout_s: Optional[float] = None,
        op_sink: Optional[OperationSink] = None,
        task_factory: Optional[TaskFactory] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        self._log = logger or logging.getLogger(__name__)
        self._drivers = drivers or TransportDriverRegistry.default()
        self._connect_timeout_s = connect_timeout_s
        self._op_sink = op_sink
        self._task_factory = task_factory or self._default_task

        self.max_workers = int(max_workers)
        self._pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="farmlink-op")
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def submit(self, operation: Operation) -> "Future[OperationResult]":
        """Queue `operation`; raises RuntimeError once shutdown() was called."""
        with self._lock:
            if self._closed:
                raise RuntimeError("OperationExecutor is shut down")
            return self._pool.submit(self._run, operation)

    def run_sync(self, operation: Operation, timeout: Optional[float] = None) -> OperationResult:
        return self.submit(operation).result(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._pool.shutdown(wait=wait)
        self._log.info("EXECUTOR_SHUTDOWN wait=%s", wait)

    def __enter__(self) -> "OperationExecutor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # ---------------- Internal ----------------
    def _default_task(self, endpoint: Endpoint) -> TransportTask:
        return TransportTask(
            endpoint,
            drivers=self._drivers,
            connect_timeout_s=self._connect_timeout_s,
            op_sink=self._op_sink,
            logger=self._log,
        )

    def _run(self, operation: Operation) -> OperationResult:
        try:
            return self._task_factory(operation.endpoint).perform(operation)
        except Exception as e:
            # perform() already contains failures; this only guards a broken task factory.
            self._log.exception("OP_WORKER_EXCEPTION name=%s", operation.kind.value)
            return OperationResult(
                port=operation.kind.port,
                status=STATUS_FAILED,
                error=DeviceIOError("Operation worker failed.", hint=str(e)),
            )
