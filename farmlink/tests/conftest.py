from __future__ import annotations

import logging
from typing import List, Optional

import pytest

from farmlink.model.endpoint import Endpoint
from farmlink.transport.base import Transport
from farmlink.transport.errors import TransportIOError, TransportOpenError
from farmlink.transport.registry import TransportDriverRegistry


class FakeTransport(Transport):
    """In-memory stand-in for one TCP connection."""

    def __init__(self, host, port, timeout=None, *, link: "FakeLink"):
        self.host = host
        self.port = port
        self.timeout = timeout
        self._link = link
        self._response = bytearray(link.response)

        self.written = bytearray()
        self.opened = False
        self.closed = False
        self.half_closed = False

    def open(self) -> None:
        if self._link.open_error:
            raise TransportOpenError(self._link.open_error)
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def read(self, n: int) -> bytes:
        if self._link.read_error:
            raise TransportIOError(self._link.read_error)
        chunk = bytes(self._response[:n])
        del self._response[:n]
        return chunk

    def write(self, data: bytes) -> int:
        if self._link.write_error:
            raise TransportIOError(self._link.write_error)
        self.written += data
        return len(data)

    def flush(self) -> None:
        return None

    def shutdown_write(self) -> None:
        self.half_closed = True


class FakeLink:
    """Registry with a 'fake' driver; every connection it creates is kept in `created`."""

    def __init__(self):
        self.response = b""
        self.open_error: Optional[str] = None
        self.read_error: Optional[str] = None
        self.write_error: Optional[str] = None
        self.created: List[FakeTransport] = []

        link = self

        class _Bound(FakeTransport):
            def __init__(self, host, port, timeout=None):
                super().__init__(host, port, timeout, link=link)
                link.created.append(self)

        self.registry = TransportDriverRegistry({"fake": _Bound})

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


@pytest.fixture
def fake_link() -> FakeLink:
    return FakeLink()


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint(farm_id=1, label="farm001", host="10.0.0.7", driver="fake")


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
