# farmlink/interfaces/telemetry_sink.py
from __future__ import annotations

from typing import Protocol

from farmlink.model.endpoint import Endpoint
from farmlink.model.telemetry import TelemetrySeries


class TelemetrySink(Protocol):
    def on_series(self, endpoint: Endpoint, series: TelemetrySeries) -> None: ...
    def close(self) -> None: ...
