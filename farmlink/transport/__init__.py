from .base import Transport
from .errors import TransportError, TransportIOError, TransportOpenError
from .registry import TransportDriverRegistry
from .tcp import TCPTransport

__all__ = ["Transport",
           "TransportError",
           "TransportIOError",
           "TransportOpenError",
           "TransportDriverRegistry",
           "TCPTransport"]
