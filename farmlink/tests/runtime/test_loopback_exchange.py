from __future__ import annotations

import socket
import threading
import time

import pytest

from farmlink.model.endpoint import Endpoint
from farmlink.model.operation import OperationKind
from farmlink.model.telemetry import TelemetryRecord
from farmlink.protocol.request import build_request
from farmlink.protocol.telemetry import encode_series
from farmlink.runtime.state import STATUS_FAILED, STATUS_RECEIVED, STATUS_SENT
from farmlink.runtime.transport_task import TransportTask


class OneShotServer(threading.Thread):
    """Accepts one connection, reads the request, optionally answers, closes."""

    def __init__(self, reply: bytes | None, *, reply_delay_s: float = 0.0):
        super().__init__(daemon=True)
        self._reply = reply
        self._reply_delay_s = reply_delay_s
        self.received = b""
        self._srv = socket.create_server(("127.0.0.1", 0))
        self._srv.settimeout(5)
        self.port = self._srv.getsockname()[1]

    def run(self) -> None:
        conn, _ = self._srv.accept()
        with conn, self._srv:
            conn.settimeout(5)
            buf = bytearray()
            while not buf.endswith(b"\n"):
                chunk = conn.recv(4096)
                if not chunk:
                    break
                buf += chunk
            if self._reply is None:
                # fire-and-forget: the client half-closes after sending
                while conn.recv(4096):
                    pass
            else:
                time.sleep(self._reply_delay_s)
                conn.sendall(self._reply)
            self.received = bytes(buf)


@pytest.fixture
def local_endpoint():
    return Endpoint(farm_id=1, label="farm001", host="127.0.0.1")


def test_telemetry_over_loopback(local_endpoint):
    records = [TelemetryRecord(1_700_000_000 + 10 * i, (20.0 + i, 19.5, 60.0, 75.0, 40.0, 900.0)) for i in range(3)]
    server = OneShotServer(encode_series(records))
    server.start()

    req = build_request(OperationKind.FETCH_TELEMETRY, {"unix_time_from": 1, "unix_time_to": 2})
    task = TransportTask(local_endpoint, connect_timeout_s=5)
    result = task.execute(server.port, req.data, wants_response=True, name="fetch_telemetry")
    server.join(timeout=5)

    assert result.status == STATUS_RECEIVED
    assert result.series.n == 3
    assert result.series.values(0) == (20.0, 21.0, 22.0)
    assert server.received == b'{"unix_time_from":1,"unix_time_to":2}\n'


def test_command_over_loopback(local_endpoint):
    server = OneShotServer(None)
    server.start()

    req = build_request(OperationKind.SEND_COMMAND, {"command": 4})
    result = TransportTask(local_endpoint, connect_timeout_s=5).execute(server.port, req.data, wants_response=False)
    server.join(timeout=5)

    assert result.status == STATUS_SENT
    assert server.received == b'{"command":4}\n'


def test_closed_port_is_connect_failure(local_endpoint):
    probe = socket.create_server(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    result = TransportTask(local_endpoint, connect_timeout_s=2).execute(port, b"{}\n", wants_response=False)

    assert result.status == STATUS_FAILED
    assert result.error_code == "device_connect_error"


def test_slow_reply_outlives_connect_timeout(local_endpoint):
    frame = encode_series([TelemetryRecord(1_700_000_000, (1.0, 2.0, 3.0, 4.0, 5.0, 6.0))])
    server = OneShotServer(frame, reply_delay_s=0.5)
    server.start()

    result = TransportTask(local_endpoint, connect_timeout_s=0.2).execute(server.port, b"{}\n", wants_response=True)
    server.join(timeout=5)

    assert result.status == STATUS_RECEIVED
    assert result.series.n == 1
