# farmlink/protocol/errors.py
from __future__ import annotations


class ProtocolError(Exception):
    """Base for wire-level failures (framing/serialization)."""


class DecodeError(ProtocolError):
    """Telemetry framing is inconsistent (short read, bad count, length mismatch)."""

    def __init__(self, message: str, *, expected: int | None = None, received: int | None = None):
        super().__init__(message)
        self.expected = expected
        self.received = received
