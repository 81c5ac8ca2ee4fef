# farmlink/protocol/request.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from .defs import PORTS, REQUEST_ENCODING, REQUEST_TERMINATOR


@dataclass(frozen=True)
class WireRequest:
    port: int
    data: bytes


def encode_document(document: Mapping[str, Any]) -> bytes:
    """
    Serialize a document as one request line: compact JSON, UTF-8, newline-terminated.

    The document shape is not validated; the device is the only judge.
    """
    text = json.dumps(document, ensure_ascii=False, separators=(",", ":"))
    return text.encode(REQUEST_ENCODING) + REQUEST_TERMINATOR


def port_for(kind: Any) -> int:
    key = getattr(kind, "value", kind)
    try:
        return PORTS[str(key)]
    except KeyError:
        raise ValueError(f"Unknown operation kind '{key}'") from None


def build_request(kind: Any, document: Mapping[str, Any]) -> WireRequest:
    """Resolve the destination port for `kind` and serialize `document`."""
    if document is None:
        raise ValueError("build_request() called without a document")
    return WireRequest(port=port_for(kind), data=encode_document(document))
