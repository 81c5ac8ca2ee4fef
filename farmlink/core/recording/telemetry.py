# farmlink/core/recording/telemetry.py
from __future__ import annotations

import csv
import logging
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional

from farmlink.core.recording.async_writer import AsyncWriter
from farmlink.interfaces.telemetry_sink import TelemetrySink
from farmlink.model.channels import CHANNEL_NAMES
from farmlink.model.endpoint import Endpoint
from farmlink.model.telemetry import TelemetrySeries

FIELDNAMES: List[str] = ["unix_time", "timestamp_utc", *CHANNEL_NAMES]


def _utc_compact_ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


class CsvTelemetrySink(TelemetrySink):
    """
    Appends received telemetry to CSV, one file per farm per run:
        base_dir/farm_<id>/<start_ts>.csv

    Live views re-fetch overlapping windows, so only records newer than the
    last one written for that farm are appended.
    """

    def __init__(
        self,
        base_dir: Path,
        *,
        flush_interval_s: float = 0.5,
        logger: Optional[logging.Logger] = None,
    ):
        self._base_dir = Path(base_dir)
        self._flush_interval_s = float(flush_interval_s)
        self._log = logger or logging.getLogger(__name__)

        self._lock = RLock()
        self._writers: Dict[int, AsyncWriter] = {}
        self._last_ts: Dict[int, int] = {}
        self._active = True

    def path_for(self, farm_id: int) -> Optional[Path]:
        with self._lock:
            w = self._writers.get(int(farm_id))
            return w.path if w is not None else None

    def on_series(self, endpoint: Endpoint, series: TelemetrySeries) -> None:
        farm_id = int(endpoint.farm_id)

        with self._lock:
            if not self._active:
                return
            last = self._last_ts.get(farm_id)
            rows = [self._row(r.timestamp, r.values) for r in series.records() if last is None or r.timestamp > last]
            if not rows:
                return
            self._last_ts[farm_id] = max(r["unix_time"] for r in rows)

            writer = self._writers.get(farm_id)
            if writer is None:
                folder = self._base_dir / f"farm_{farm_id}"
                folder.mkdir(parents=True, exist_ok=True)
                writer = AsyncWriter(
                    path=folder / f"{_utc_compact_ts()}.csv",
                    write_func=self._write_rows,
                    flush_interval=self._flush_interval_s,
                    logger=self._log,
                )
                self._writers[farm_id] = writer
                self._log.info("TELEMETRY_CSV_OPEN farm=%d path=%s", farm_id, writer.path)

        for row in rows:
            writer.write(row)

    def close(self) -> None:
        with self._lock:
            self._active = False
            writers = list(self._writers.values())
            self._writers.clear()
        for w in writers:
            w.close()

    @staticmethod
    def _row(ts: int, values) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "unix_time": int(ts),
            "timestamp_utc": datetime.fromtimestamp(int(ts), tz=timezone.utc).isoformat(),
        }
        row.update(zip(CHANNEL_NAMES, values))
        return row

    @staticmethod
    def _write_rows(path: Path, batch: List[Dict[str, Any]]) -> None:
        new_file = not path.exists()
        with open(path, "a", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=FIELDNAMES)
            if new_file:
                w.writeheader()
            w.writerows(batch)
