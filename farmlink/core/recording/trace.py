# farmlink/core/recording/trace.py
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from farmlink.core.recording.async_writer import AsyncWriter
from farmlink.interfaces.operation_sink import OperationEvent, OperationSink


class OperationTraceLogger(OperationSink):
    """
    OperationSink writing one JSON object per event to a .jsonl file
    and mirroring each event to `logger` at DEBUG level.
    """

    def __init__(
        self,
        logger: logging.Logger,
        file_path: Optional[Path] = None,
        *,
        flush_interval_s: float = 0.5,
    ):
        self._log = logger
        self._writer: Optional[AsyncWriter] = None
        if file_path is not None:
            file_path = Path(file_path)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            self._writer = AsyncWriter(
                path=file_path,
                write_func=self._append_lines,
                flush_interval=flush_interval_s,
                logger=logger,
            )

    def on_operation(self, event: OperationEvent) -> None:
        out = {
            "ts_utc": event.ts_utc or datetime.now(timezone.utc).isoformat(),
            "name": event.name,
            "kind": event.kind,
            "farm_id": event.farm_id,
            "port": event.port,
            "payload": dict(event.payload) if event.payload is not None else None,
        }
        out = {k: v for k, v in out.items() if v is not None}
        line = json.dumps(out, ensure_ascii=False, default=str)

        self._log.debug("OP_TRACE %s", line)
        if self._writer is not None:
            self._writer.write(line)

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    @staticmethod
    def _append_lines(path: Path, batch: List[str]) -> None:
        with open(path, "a", encoding="utf-8") as f:
            f.writelines(line + "\n" for line in batch)
