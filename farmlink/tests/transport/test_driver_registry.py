from __future__ import annotations

import pytest

from farmlink.model.endpoint import Endpoint
from farmlink.transport.base import Transport
from farmlink.transport.errors import TransportError
from farmlink.transport.registry import TransportDriverRegistry
from farmlink.transport.tcp import TCPTransport


class DummyTransport(Transport):
    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout

    def open(self): ...
    def close(self): ...
    def read(self, n): return b""
    def write(self, data): return len(data)
    def flush(self): ...


def test_default_registry_has_tcp():
    reg = TransportDriverRegistry.default()
    assert reg.has("tcp")
    assert reg.get_class("TCP") is TCPTransport


def test_create_for_builds_unopened_transport():
    reg = TransportDriverRegistry.default()
    ep = Endpoint(farm_id=1, label="farm001", host="10.1.2.3")

    t = reg.create_for(ep, 1489, timeout=3.0)

    assert isinstance(t, TCPTransport)
    assert (t.host, t.port, t.timeout) == ("10.1.2.3", 1489, 3.0)
    assert t.is_open() is False


def test_register_custom_driver():
    reg = TransportDriverRegistry.default()
    reg.register("Dummy", DummyTransport)

    t = reg.create_for(Endpoint(2, "farm002", host="sim", driver="dummy"), 1488)
    assert isinstance(t, DummyTransport)
    assert t.port == 1488


def test_unknown_driver_lists_known_ones():
    reg = TransportDriverRegistry.default()
    with pytest.raises(TransportError) as ei:
        reg.get_class("lora")
    assert "lora" in str(ei.value)
    assert "tcp" in str(ei.value)
