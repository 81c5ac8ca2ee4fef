# farmlink/transport/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Transport(ABC):
    """
    Abstract byte pipe to a device (TCP today; the registry allows others).

    Contract:
      - open()/close() manage one underlying connection; close() is idempotent.
      - read(n) blocks until n bytes arrived or the peer closed the stream;
        it returns fewer than n bytes only at end of stream.
      - write(data) sends all of data and returns the number of bytes written.
      - flush() forces pending output to be transmitted.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    def shutdown_write(self) -> None:
        """Signal end-of-request to the peer. Default: nothing to do."""

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
