from __future__ import annotations

import csv
import json
import logging
import time

from farmlink.core.recording.async_writer import AsyncWriter
from farmlink.core.recording.telemetry import FIELDNAMES, CsvTelemetrySink
from farmlink.core.recording.trace import OperationTraceLogger
from farmlink.interfaces.operation_sink import OperationEvent
from farmlink.model.telemetry import TelemetryRecord, TelemetrySeries


def _series(*timestamps):
    return TelemetrySeries.from_records(TelemetryRecord(t, (t, 1, 2, 3, 4, 5)) for t in timestamps)


def test_async_writer_flushes_on_close(tmp_path):
    batches = []
    w = AsyncWriter(tmp_path / "x", lambda path, batch: batches.append(list(batch)), flush_interval=10.0)
    for i in range(5):
        w.write(i)
    w.close()
    w.close()

    assert [x for b in batches for x in b] == [0, 1, 2, 3, 4]


def test_async_writer_survives_failing_flush(tmp_path, caplog):
    calls = []

    def flaky(path, batch):
        calls.append(list(batch))
        if len(calls) == 1:
            raise OSError("disk full")

    w = AsyncWriter(tmp_path / "x", flaky, flush_interval=0.01)
    with caplog.at_level(logging.ERROR):
        w.write("a")
        deadline = time.time() + 2
        while not calls and time.time() < deadline:
            time.sleep(0.005)
        w.write("b")
        w.close()

    assert calls[-1] == ["b"]
    assert "ASYNC_WRITER_FLUSH_FAILED" in caplog.text


def test_trace_logger_writes_json_lines(tmp_path):
    path = tmp_path / "trace" / "ops.jsonl"
    sink = OperationTraceLogger(logging.getLogger("test.ops"), path)
    sink.on_operation(OperationEvent(name="send_command", kind="send", farm_id=1, port=1490, payload={"bytes": 14}))
    sink.on_operation(OperationEvent(name="send_command", kind="ok", farm_id=1, port=1490, ts_utc="2026-01-01T00:00:00+00:00"))
    sink.close()

    lines = [json.loads(s) for s in path.read_text(encoding="utf-8").splitlines()]
    assert [d["kind"] for d in lines] == ["send", "ok"]
    assert lines[0]["payload"] == {"bytes": 14}
    assert "payload" not in lines[1]
    assert lines[1]["ts_utc"] == "2026-01-01T00:00:00+00:00"


def test_trace_logger_without_file_only_logs(caplog):
    sink = OperationTraceLogger(logging.getLogger("test.ops"))
    with caplog.at_level(logging.DEBUG, logger="test.ops"):
        sink.on_operation(OperationEvent(name="apply_config", kind="error", port=1489))
    sink.close()
    assert "OP_TRACE" in caplog.text


def test_csv_sink_appends_only_new_records(tmp_path, endpoint):
    sink = CsvTelemetrySink(tmp_path, flush_interval_s=0.01)
    sink.on_series(endpoint, _series(100, 110))
    sink.on_series(endpoint, _series(100, 110, 120))
    sink.on_series(endpoint, TelemetrySeries.empty())
    path = sink.path_for(1)
    sink.close()

    assert path.parent.name == "farm_1"
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    assert list(rows[0].keys()) == FIELDNAMES
    assert [r["unix_time"] for r in rows] == ["100", "110", "120"]
    assert rows[2]["temperature_DHT22"] == "120.0"
    assert rows[0]["timestamp_utc"].startswith("1970-01-01T00:01:40")


def test_csv_sink_ignores_series_after_close(tmp_path, endpoint):
    sink = CsvTelemetrySink(tmp_path)
    sink.close()
    sink.on_series(endpoint, _series(1))
    assert sink.path_for(1) is None
    assert list(tmp_path.iterdir()) == []
