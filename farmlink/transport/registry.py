# farmlink/transport/registry.py
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional, Type

from .base import Transport
from .errors import TransportError
from .tcp import TCPTransport

if TYPE_CHECKING:
    from farmlink.model.endpoint import Endpoint


class TransportDriverRegistry:
    """
    Maps Endpoint.driver keys -> transport classes.

    Drivers are constructed as cls(host=..., port=..., timeout=...) and are
    returned unopened; the caller owns the connection lifecycle.
    """

    def __init__(self, drivers: Optional[Dict[str, Type[Transport]]] = None):
        self._drivers: Dict[str, Type[Transport]] = {}
        for key, cls in (drivers or {}).items():
            self.register(key, cls)

    @classmethod
    def default(cls) -> "TransportDriverRegistry":
        return cls({"tcp": TCPTransport})

    def register(self, driver: str, transport_cls: Type[Transport]) -> None:
        self._drivers[driver.strip().lower()] = transport_cls

    def has(self, driver: str) -> bool:
        return driver.strip().lower() in self._drivers

    def get_class(self, driver: str) -> Type[Transport]:
        try:
            return self._drivers[driver.strip().lower()]
        except KeyError:
            known = ", ".join(sorted(self._drivers)) or "-"
            raise TransportError(f"Transport driver '{driver}' not registered (known: {known})") from None

    def create_for(self, endpoint: "Endpoint", port: int, *, timeout: Optional[float] = None) -> Transport:
        transport_cls = self.get_class(endpoint.driver)
        return transport_cls(host=endpoint.host, port=int(port), timeout=timeout)
