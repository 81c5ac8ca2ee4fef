from .operation_sink import OperationEvent, OperationSink
from .telemetry_sink import TelemetrySink

__all__ = ["OperationEvent", "OperationSink", "TelemetrySink"]
