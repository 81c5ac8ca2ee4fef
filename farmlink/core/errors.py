# farmlink/core/errors.py
from __future__ import annotations


class FarmLinkError(Exception):
    """
    Base class for all expected operational errors in farmlink.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, UI feedback, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no network access yet)
# ---------------------------------------------------------------------------

class EndpointConfigError(FarmLinkError):
    """
    Client configuration is invalid or does not name a usable farm.

    Examples:
      - farms file missing or malformed
      - unknown farm id
      - unknown transport driver key
    """
    code = "endpoint_config_error"


# ---------------------------------------------------------------------------
# Per-operation failures (reported through OperationResult, never raised
# out of a TransportTask)
# ---------------------------------------------------------------------------

class DeviceConnectError(FarmLinkError):
    """
    Device could not be reached.

    Examples:
      - connection refused
      - host unreachable
      - name resolution failure
    """
    code = "device_connect_error"


class DeviceIOError(FarmLinkError):
    """
    Connection was open but a write or read failed mid-stream.

    Examples:
      - connection reset while sending the request
      - socket error while reading the telemetry response
    """
    code = "device_io_error"


class TelemetryDecodeError(FarmLinkError):
    """
    Telemetry response arrived but its framing is inconsistent.

    Examples:
      - stream ended before the announced record count
      - negative record count
    """
    code = "telemetry_decode_error"


# ---------------------------------------------------------------------------
# Local state
# ---------------------------------------------------------------------------

class ConfigDocumentError(FarmLinkError):
    """
    A configuration document could not be obtained.

    Examples:
      - resending the last config of a farm that never had one applied
      - config file missing or not a JSON object
    """
    code = "config_document_error"
