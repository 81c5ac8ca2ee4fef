from __future__ import annotations

import socket

import pytest

import farmlink.transport.tcp as tcp_mod
from farmlink.transport.errors import TransportIOError, TransportOpenError


class FakeSocket:
    def __init__(self):
        self.recv_chunks = []
        self.sent = bytearray()
        self.raise_on_recv = None
        self.raise_on_send = None
        self.shutdown_how = None
        self.close_called = 0
        self.timeouts = []

    def settimeout(self, value) -> None:
        self.timeouts.append(value)

    def recv(self, n: int) -> bytes:
        if self.raise_on_recv is not None:
            raise self.raise_on_recv
        if not self.recv_chunks:
            return b""
        chunk = self.recv_chunks.pop(0)
        if len(chunk) > n:
            self.recv_chunks.insert(0, chunk[n:])
            chunk = chunk[:n]
        return chunk

    def sendall(self, data: bytes) -> None:
        if self.raise_on_send is not None:
            raise self.raise_on_send
        self.sent += data

    def shutdown(self, how) -> None:
        self.shutdown_how = how

    def close(self) -> None:
        self.close_called += 1


@pytest.fixture
def fake_sock(monkeypatch):
    sock = FakeSocket()
    calls = {}

    def fake_create_connection(address, timeout=None):
        calls["address"] = address
        calls["timeout"] = timeout
        return sock

    monkeypatch.setattr(tcp_mod.socket, "create_connection", fake_create_connection)
    sock.calls = calls
    return sock


def test_open_connects_to_host_and_port(fake_sock):
    t = tcp_mod.TCPTransport("10.0.0.7", 1488, timeout=2.5)
    t.open()

    assert t.is_open() is True
    assert fake_sock.calls == {"address": ("10.0.0.7", 1488), "timeout": 2.5}


def test_connect_timeout_does_not_bound_reads(fake_sock):
    t = tcp_mod.TCPTransport("10.0.0.7", 1488, timeout=2.5)
    t.open()

    assert fake_sock.calls["timeout"] == 2.5
    assert fake_sock.timeouts == [None]


def test_open_failure_raises_transport_open_error(monkeypatch):
    def refuse(address, timeout=None):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(tcp_mod.socket, "create_connection", refuse)

    t = tcp_mod.TCPTransport("10.0.0.7", 1490)
    with pytest.raises(TransportOpenError, match="10.0.0.7:1490"):
        t.open()
    assert t.is_open() is False


def test_read_collects_chunks_until_n(fake_sock):
    fake_sock.recv_chunks = [b"\x00\x00", b"\x00\x03abc"]
    t = tcp_mod.TCPTransport("h", 1488)
    t.open()

    assert t.read(4) == b"\x00\x00\x00\x03"
    assert t.read(3) == b"abc"


def test_read_returns_short_at_end_of_stream(fake_sock):
    fake_sock.recv_chunks = [b"ab"]
    t = tcp_mod.TCPTransport("h", 1488)
    t.open()

    assert t.read(10) == b"ab"
    assert t.read(10) == b""


def test_read_error_closes_and_raises(fake_sock):
    fake_sock.raise_on_recv = ConnectionResetError("reset")
    t = tcp_mod.TCPTransport("h", 1488)
    t.open()

    with pytest.raises(TransportIOError, match="read failed"):
        t.read(4)
    assert t.is_open() is False
    assert fake_sock.close_called == 1


def test_write_sends_everything(fake_sock):
    t = tcp_mod.TCPTransport("h", 1490)
    t.open()

    assert t.write(b'{"command":1}\n') == 14
    t.flush()
    assert bytes(fake_sock.sent) == b'{"command":1}\n'


def test_write_error_closes_and_raises(fake_sock):
    fake_sock.raise_on_send = BrokenPipeError("pipe")
    t = tcp_mod.TCPTransport("h", 1490)
    t.open()

    with pytest.raises(TransportIOError, match="write failed"):
        t.write(b"x")
    assert t.is_open() is False


def test_shutdown_write_half_closes(fake_sock):
    t = tcp_mod.TCPTransport("h", 1489)
    t.open()
    t.shutdown_write()
    assert fake_sock.shutdown_how == socket.SHUT_WR


def test_operations_require_open_transport():
    t = tcp_mod.TCPTransport("h", 1488)
    for call in (lambda: t.read(1), lambda: t.write(b"x"), t.flush, t.shutdown_write):
        with pytest.raises(TransportIOError):
            call()


def test_close_is_idempotent(fake_sock):
    t = tcp_mod.TCPTransport("h", 1488)
    with t:
        assert t.is_open()
    t.close()
    assert fake_sock.close_called == 1
