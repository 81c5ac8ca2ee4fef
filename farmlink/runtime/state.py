# farmlink/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from farmlink.core.errors import FarmLinkError
from farmlink.model.telemetry import TelemetrySeries

STATUS_SENT = "sent"          # fire-and-forget request written
STATUS_RECEIVED = "received"  # telemetry response decoded
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of one transport exchange, safe to share across threads.

    For fire-and-forget kinds "sent" only means the bytes left this host;
    there is no acknowledgement from the device.
    """
    port: int
    status: str
    series: Optional[TelemetrySeries] = None
    error: Optional[FarmLinkError] = None
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status != STATUS_FAILED

    @property
    def error_code(self) -> Optional[str]:
        return self.error.code if self.error is not None else None

    def describe(self) -> str:
        if self.error is not None:
            return f"{self.status}: {self.error.message}"
        if self.series is not None:
            return f"{self.status}: {self.series.n} record(s)"
        return self.status


@dataclass(frozen=True)
class SessionStatus:
    """Snapshot of a polling session."""
    active: bool
    ticks: int
    failures: int
    last_error: Optional[str] = None
