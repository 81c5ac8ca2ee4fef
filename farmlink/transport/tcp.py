# farmlink/transport/tcp.py
from __future__ import annotations

import socket
from typing import Optional

from .base import Transport
from .errors import TransportIOError, TransportOpenError


class TCPTransport(Transport):
    """
    One TCP connection to a farm service port.

    timeout bounds connect() only (None = OS default). Once connected the
    socket is blocking: reads and writes wait on the peer with no deadline.
    """

    def __init__(self, host: str, port: int, timeout: Optional[float] = None):
        self.host = host
        self.port = int(port)
        self.timeout = timeout
        self.sock: Optional[socket.socket] = None

    def open(self) -> None:
        if self.sock is not None:
            return
        try:
            self.sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
            self.sock.settimeout(None)
        except OSError as e:
            self.sock = None
            raise TransportOpenError(f"connect to {self.host}:{self.port} failed: {e}") from None

    def close(self) -> None:
        if self.sock is not None:
            try:
                self.sock.close()
            finally:
                self.sock = None

    def is_open(self) -> bool:
        return self.sock is not None

    def read(self, n: int) -> bytes:
        if self.sock is None:
            raise TransportIOError("read while transport not open")

        buf = bytearray()
        try:
            while len(buf) < n:
                chunk = self.sock.recv(n - len(buf))
                if not chunk:
                    # peer closed -> return whatever is collected
                    break
                buf += chunk
        except OSError as e:
            self.close()
            raise TransportIOError(f"TCP read failed: {e}") from None
        return bytes(buf)

    def write(self, data: bytes) -> int:
        if self.sock is None:
            raise TransportIOError("write while transport not open")

        try:
            self.sock.sendall(data)
        except OSError as e:
            self.close()
            raise TransportIOError(f"TCP write failed: {e}") from None
        return len(data)

    def flush(self) -> None:
        # sendall() hands everything to the kernel; nothing is buffered here.
        if self.sock is None:
            raise TransportIOError("flush while transport not open")

    def shutdown_write(self) -> None:
        if self.sock is None:
            raise TransportIOError("shutdown while transport not open")

        try:
            self.sock.shutdown(socket.SHUT_WR)
        except OSError as e:
            self.close()
            raise TransportIOError(f"TCP shutdown failed: {e}") from None
