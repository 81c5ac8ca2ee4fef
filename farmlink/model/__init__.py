from .channels import Channel, CHANNELS, CHANNEL_NAMES
from .command import Command, COMMAND_NAMES
from .endpoint import Endpoint
from .operation import Document, Operation, OperationKind
from .telemetry import TelemetryRecord, TelemetrySeries, TimeRange

__all__ = ["Channel",
           "CHANNELS",
           "CHANNEL_NAMES",
           "Command",
           "COMMAND_NAMES",
           "Endpoint",
           "Document",
           "Operation",
           "OperationKind",
           "TelemetryRecord",
           "TelemetrySeries",
           "TimeRange"]
