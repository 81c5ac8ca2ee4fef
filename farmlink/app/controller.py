# farmlink/app/controller.py
from __future__ import annotations

import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, List, Optional

from farmlink.app.config import FarmLinkConfig
from farmlink.core.document_store import farm_document_path, load_document, save_document
from farmlink.core.errors import ConfigDocumentError
from farmlink.interfaces import OperationSink, TelemetrySink
from farmlink.model import Command, Document, Endpoint, Operation, TimeRange
from farmlink.protocol.defs import DEFAULT_POLL_PERIOD_S
from farmlink.runtime.executor import OperationExecutor
from farmlink.runtime.poller import PollingScheduler, PollingSession
from farmlink.runtime.state import OperationResult
from farmlink.transport.registry import TransportDriverRegistry

TickCallback = Callable[[OperationResult], None]


class FarmController:
    """
    App-level facade for one farm.

    Every operation runs on the worker pool and returns a Future resolving to
    an OperationResult; device failures never raise here.
    """

    def __init__(
        self,
        config: FarmLinkConfig,
        *,
        endpoint: Endpoint,
        drivers: Optional[TransportDriverRegistry] = None,
        op_sink: Optional[OperationSink] = None,
        executor: Optional[OperationExecutor] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._endpoint = endpoint
        self._log = logger or logging.getLogger(__name__)

        self._executor = executor or OperationExecutor(
            max_workers=config.max_workers or 4,
            drivers=drivers,
            connect_timeout_s=config.connect_timeout_s,
            op_sink=op_sink,
            logger=self._log,
        )
        self._scheduler = PollingScheduler(self._executor, logger=self._log)
        self._telemetry_sinks: List[TelemetrySink] = []
        self._closed = False

    @property
    def config(self) -> FarmLinkConfig:
        return self._config

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    # ---------------- Sinks ----------------
    def add_sink(self, sink: TelemetrySink) -> None:
        if sink not in self._telemetry_sinks:
            self._telemetry_sinks.append(sink)

    def remove_sink(self, sink: TelemetrySink) -> None:
        if sink in self._telemetry_sinks:
            self._telemetry_sinks.remove(sink)

    # ---------------- Operations ----------------
    def apply_config(self, document: Document) -> "Future[OperationResult]":
        """Send a config document; once sent it is saved as the farm's last config."""
        def _remember(result: OperationResult) -> None:
            if result.ok:
                self._save_last_config(document)

        return self._executor.submit(Operation.apply_config(self._endpoint, document, on_result=_remember))

    def resend_last_config(self) -> "Future[OperationResult]":
        document = self.last_config()
        if not document:
            raise ConfigDocumentError(
                f"No saved config for farm '{self._endpoint.label}'.",
                hint="Apply a config file once before resending.",
                details={"path": str(self._state_path()) if self._state_path() else None},
            )
        return self.apply_config(document)

    def last_config(self) -> Document:
        path = self._state_path()
        return load_document(path) if path is not None else {}

    def send_command(self, command: Command | int | str) -> "Future[OperationResult]":
        if not isinstance(command, Command):
            command = Command.parse(command)
        self._log.info("COMMAND farm=%s name=%s index=%d", self._endpoint.farm_id, command.name, command.index)
        return self._executor.submit(Operation.send_command(self._endpoint, command))

    def fetch_telemetry(self, time_range: TimeRange) -> "Future[OperationResult]":
        return self._executor.submit(
            Operation.fetch_telemetry(self._endpoint, time_range, on_result=self._fanout)
        )

    def watch_telemetry(
        self,
        time_range: TimeRange,
        on_tick: TickCallback,
        period_s: Optional[float] = None,
    ) -> PollingSession:
        """
        Re-fetch `time_range` every `period_s` (file default, then 10 s) until
        the returned session is cancelled or the controller is closed.
        """
        period = period_s or self._config.poll_period_s or DEFAULT_POLL_PERIOD_S

        def _tick(result: OperationResult) -> None:
            self._fanout(result)
            on_tick(result)

        return self._scheduler.start(Operation.fetch_telemetry(self._endpoint, time_range), period, _tick)

    def live_sessions(self) -> List[PollingSession]:
        return self._scheduler.sessions()

    # ---------------- Lifecycle ----------------
    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        self._scheduler.cancel_all()
        try:
            self._executor.shutdown(wait=True)
        except Exception:
            self._log.exception("EXECUTOR_SHUTDOWN_ERROR")

        for s in list(self._telemetry_sinks):
            try:
                s.close()
            except Exception:
                self._log.exception("SINK_CLOSE_ERROR")
        self._telemetry_sinks.clear()

    def __enter__(self) -> "FarmController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- Internal ----------------
    def _fanout(self, result: OperationResult) -> None:
        if result.series is None:
            return
        for s in list(self._telemetry_sinks):
            try:
                s.on_series(self._endpoint, result.series)
            except Exception:
                self._log.exception("SINK_ON_SERIES_ERROR")

    def _state_path(self) -> Optional[Path]:
        if not self._config.state_dir:
            return None
        return farm_document_path(self._config.state_dir, self._endpoint.farm_id)

    def _save_last_config(self, document: Document) -> None:
        path = self._state_path()
        if path is None:
            return
        try:
            save_document(path, document)
        except OSError:
            self._log.exception("LAST_CONFIG_SAVE_FAILED path=%s", path)
