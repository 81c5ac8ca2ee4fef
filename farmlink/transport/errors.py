# farmlink/transport/errors.py
from __future__ import annotations

class TransportError(Exception):
    """Base class for transport-layer failures."""

class TransportOpenError(TransportError):
    """Connection could not be established."""

class TransportIOError(TransportError):
    """Read/write failed on an open connection."""
