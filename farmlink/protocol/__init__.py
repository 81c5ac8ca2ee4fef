# farmlink/protocol/__init__.py

from .defs import PORTS, DEFAULT_DEVICE_HOST
from .errors import ProtocolError, DecodeError
from .request import WireRequest, build_request

__all__ = [
    "PORTS", "DEFAULT_DEVICE_HOST",
    "ProtocolError", "DecodeError",
    "WireRequest", "build_request",
]
