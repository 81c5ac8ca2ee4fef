# farmlink/runtime/transport_task.py
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from farmlink.core.errors import (
    DeviceConnectError,
    DeviceIOError,
    EndpointConfigError,
    FarmLinkError,
    TelemetryDecodeError,
)
from farmlink.interfaces.operation_sink import OperationEvent, OperationSink
from farmlink.model.endpoint import Endpoint
from farmlink.model.operation import Operation
from farmlink.protocol.errors import DecodeError
from farmlink.protocol.request import build_request
from farmlink.protocol.telemetry import read_series
from farmlink.runtime.state import STATUS_FAILED, STATUS_RECEIVED, STATUS_SENT, OperationResult
from farmlink.transport.errors import TransportError, TransportOpenError
from farmlink.transport.registry import TransportDriverRegistry


class TransportTask:
    """
    One blocking request/response exchange with a farm.

    Responsibilities:
      - open a fresh connection per execute() (never reused)
      - write the request bytes verbatim
      - for telemetry, read and decode exactly one response frame
      - turn every failure into a failed OperationResult (logged, never raised)

    Meant to run on a worker thread (see OperationExecutor), never on the
    thread that triggered it.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        *,
        drivers: Optional[TransportDriverRegistry] = None,
        connect_timeout_s: Optional[float] = None,
        op_sink: Optional[OperationSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.endpoint = endpoint
        self._drivers = drivers or TransportDriverRegistry.default()
        self._connect_timeout_s = connect_timeout_s
        self._op_sink = op_sink
        self._log = logger or logging.getLogger(__name__)

    def execute(self, port: int, data: bytes, wants_response: bool, *, name: str = "request") -> OperationResult:
        t0 = time.perf_counter()
        self._emit(name, "send", port, {"bytes": len(data)})

        try:
            series = self._exchange(port, data, wants_response)
        except FarmLinkError as e:
            elapsed = time.perf_counter() - t0
            self._log.warning(
                "OP_FAILED name=%s farm=%s port=%d code=%s msg=%s",
                name, self.endpoint.farm_id, port, e.code, e.message,
            )
            self._emit(name, "error", port, {"code": e.code, "error": e.message, "rtt_ms": elapsed * 1000.0})
            return OperationResult(port=port, status=STATUS_FAILED, error=e, elapsed_s=elapsed)
        except Exception as e:
            # Anything unexpected is still local to this one operation.
            elapsed = time.perf_counter() - t0
            self._log.exception("OP_UNEXPECTED_ERROR name=%s farm=%s port=%d", name, self.endpoint.farm_id, port)
            err = DeviceIOError("Unexpected error during device exchange.", hint=str(e), details={"port": port})
            self._emit(name, "error", port, {"code": err.code, "error": str(e), "rtt_ms": elapsed * 1000.0})
            return OperationResult(port=port, status=STATUS_FAILED, error=err, elapsed_s=elapsed)

        elapsed = time.perf_counter() - t0
        status = STATUS_RECEIVED if wants_response else STATUS_SENT
        extra = {"rtt_ms": elapsed * 1000.0}
        if series is not None:
            extra["records"] = series.n
        self._log.info(
            "OP_OK name=%s farm=%s port=%d status=%s elapsed_ms=%.1f",
            name, self.endpoint.farm_id, port, status, elapsed * 1000.0,
        )
        self._emit(name, "ok", port, extra)
        return OperationResult(port=port, status=status, series=series, elapsed_s=elapsed)

    def perform(self, operation: Operation) -> OperationResult:
        """Build the request for `operation`, execute it, then fire operation.on_result."""
        request = build_request(operation.kind, operation.payload)
        self._log.debug(
            "OP_REQUEST name=%s port=%d len=%d data=%r",
            operation.kind.value, request.port, len(request.data), request.data,
        )
        result = self.execute(
            request.port,
            request.data,
            operation.kind.wants_response,
            name=operation.kind.value,
        )

        cb = operation.on_result
        if cb is not None:
            try:
                cb(result)
            except Exception:
                self._log.exception("ON_RESULT_CALLBACK_ERROR name=%s", operation.kind.value)
        return result

    # ---------------- Internal ----------------
    def _exchange(self, port: int, data: bytes, wants_response: bool):
        details = {"farm_id": self.endpoint.farm_id, "host": self.endpoint.host, "port": port}

        try:
            transport = self._drivers.create_for(self.endpoint, port, timeout=self._connect_timeout_s)
        except TransportError as e:
            raise EndpointConfigError(
                f"No transport for farm '{self.endpoint.label}'.",
                hint=str(e),
                details=dict(details, driver=self.endpoint.driver),
            ) from None

        try:
            transport.open()
        except TransportOpenError as e:
            raise DeviceConnectError(
                f"Could not reach {self.endpoint.host}:{port}.",
                hint=str(e),
                details=details,
            ) from None

        try:
            transport.write(data)
            transport.flush()
            if not wants_response:
                transport.shutdown_write()
                return None
            return read_series(transport.read)
        except DecodeError as e:
            raise TelemetryDecodeError(
                "Telemetry response is malformed.",
                hint=str(e),
                details=dict(details, expected=e.expected, received=e.received),
            ) from None
        except TransportError as e:
            raise DeviceIOError(
                f"Connection to {self.endpoint.host}:{port} failed mid-exchange.",
                hint=str(e),
                details=details,
            ) from None
        finally:
            try:
                transport.close()
            except Exception:
                self._log.exception("TRANSPORT_CLOSE_FAILED port=%d", port)

    def _emit(self, name: str, kind: str, port: int, payload: dict) -> None:
        if self._op_sink is None:
            return
        try:
            self._op_sink.on_operation(
                OperationEvent(
                    name=name,
                    kind=kind,
                    farm_id=self.endpoint.farm_id,
                    port=port,
                    payload=payload,
                    ts_utc=datetime.now(timezone.utc).isoformat(),
                )
            )
        except Exception:
            self._log.exception("OP_SINK_ERROR name=%s kind=%s", name, kind)
