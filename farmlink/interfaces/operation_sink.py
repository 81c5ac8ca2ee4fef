# farmlink/interfaces/operation_sink.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol


@dataclass(frozen=True, slots=True)
class OperationEvent:
    """
    Runtime operation trace event (for recording/debugging).
    Keep this small + stable; put details into payload.
    """
    name: str                   # operation kind, e.g. "send_command"
    kind: str                   # "send" | "ok" | "error"
    farm_id: Optional[int] = None
    port: Optional[int] = None
    payload: Optional[Mapping[str, Any]] = None
    ts_utc: Optional[str] = None


class OperationSink(Protocol):
    def on_operation(self, event: OperationEvent) -> None: ...
    def close(self) -> None: ...
