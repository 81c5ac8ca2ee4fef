from __future__ import annotations

import json

import pytest

from farmlink.model.operation import OperationKind
from farmlink.protocol.request import WireRequest, build_request, encode_document, port_for


@pytest.mark.parametrize(
    "kind,port",
    [
        (OperationKind.FETCH_TELEMETRY, 1488),
        (OperationKind.APPLY_CONFIG, 1489),
        (OperationKind.SEND_COMMAND, 1490),
        ("send_command", 1490),
    ],
)
def test_port_per_kind(kind, port):
    assert port_for(kind) == port
    assert build_request(kind, {}).port == port


def test_command_request_bytes():
    req = build_request(OperationKind.SEND_COMMAND, {"command": 3})
    assert req == WireRequest(port=1490, data=b'{"command":3}\n')


def test_request_is_single_compact_line():
    doc = {"light": {"on": "07:00", "off": "21:00"}, "pump": [1, 2]}
    data = encode_document(doc)
    assert data.endswith(b"\n")
    assert data.count(b"\n") == 1
    assert b" " not in data
    assert json.loads(data) == doc


def test_non_ascii_is_sent_as_utf8():
    data = encode_document({"name": "ферма"})
    assert "ферма".encode("utf-8") in data


def test_missing_document_rejected():
    with pytest.raises(ValueError):
        build_request(OperationKind.APPLY_CONFIG, None)


def test_unknown_kind_rejected():
    with pytest.raises(ValueError, match="Unknown operation kind"):
        port_for("reboot")
