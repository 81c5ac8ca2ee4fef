# farmlink/core/recording/async_writer.py
from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from queue import Empty, Queue
from typing import Any, Callable, List, Optional

BatchWriteFn = Callable[[Path, List[Any]], None]


class AsyncWriter:
    """
    Background thread that batches queued items and hands them to `write_func`.

    Items are flushed every `flush_interval` seconds and once more on close().
    A failing flush is logged and its batch dropped; the thread keeps running.
    """

    def __init__(
        self,
        path: Path,
        write_func: BatchWriteFn,
        flush_interval: float = 0.5,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self.path = Path(path)
        self._write_func = write_func
        self._flush_interval = float(flush_interval)
        self._log = logger or logging.getLogger(__name__)

        self._queue: "Queue[Any]" = Queue()
        self._closing = threading.Event()
        self._thread = threading.Thread(target=self._worker, daemon=True, name=f"writer-{self.path.name}")
        self._thread.start()

    def write(self, item: Any) -> None:
        """Queue an item (dropped silently after close())."""
        if not self._closing.is_set():
            self._queue.put(item)

    def close(self) -> None:
        """Flush everything queued so far and stop the thread."""
        if self._closing.is_set():
            return
        self._closing.set()
        self._thread.join()

    def _worker(self) -> None:
        batch: List[Any] = []
        deadline = time.monotonic() + self._flush_interval

        while not (self._closing.is_set() and self._queue.empty()):
            try:
                batch.append(self._queue.get(timeout=0.05))
            except Empty:
                pass

            if batch and (time.monotonic() >= deadline or self._closing.is_set()):
                self._flush(batch)
                batch = []
                deadline = time.monotonic() + self._flush_interval

        if batch:
            self._flush(batch)

    def _flush(self, batch: List[Any]) -> None:
        try:
            self._write_func(self.path, batch)
        except Exception:
            self._log.exception("ASYNC_WRITER_FLUSH_FAILED path=%s batch_len=%d", self.path, len(batch))
