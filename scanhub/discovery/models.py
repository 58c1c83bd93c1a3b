"""
Discovery data structures and models.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

logger = logging.getLogger("scanhub.discovery.models")


class DeviceOrigin(str, Enum):
    """Protocol a device was discovered through."""
    LOCAL = "local"
    WSD = "wsd"
    MDNS = "mdns"
    SSDP = "ssdp"
    ESCL = "escl"


# Identity prefixes for network devices, e.g. "SSDP:192.168.1.50"
_IDENTITY_PREFIX = {
    DeviceOrigin.WSD: "WSD",
    DeviceOrigin.MDNS: "MDNS",
    DeviceOrigin.SSDP: "SSDP",
    DeviceOrigin.ESCL: "ESCL",
}


def make_identity(origin: DeviceOrigin, host: str, port: Optional[int] = None) -> str:
    """Build the identity key for a network device."""
    if origin == DeviceOrigin.LOCAL:
        raise ValueError("Local devices use the handle from the acquisition service")
    identity = f"{_IDENTITY_PREFIX[origin]}:{host}"
    if port is not None:
        identity = f"{identity}:{port}"
    return identity


@dataclass(frozen=True)
class DiscoveredDevice:
    """A scanner found during one discovery run."""

    identity: str  # Local handle, or "WSD:ip", "MDNS:ip", "SSDP:ip", "ESCL:ip:port"
    display_name: str
    origin: DeviceOrigin
    is_network: bool

    def __post_init__(self):
        if not self.display_name:
            raise ValueError(f"Device {self.identity!r} has an empty display name")

    @classmethod
    def local(cls, handle: str, name: str) -> "DiscoveredDevice":
        return cls(identity=handle, display_name=name, origin=DeviceOrigin.LOCAL, is_network=False)

    @classmethod
    def network(
        cls,
        origin: DeviceOrigin,
        host: str,
        display_name: str,
        port: Optional[int] = None,
    ) -> "DiscoveredDevice":
        return cls(
            identity=make_identity(origin, host, port),
            display_name=display_name,
            origin=origin,
            is_network=True,
        )

    @property
    def host(self) -> Optional[str]:
        """IP address of a network device, None for local devices."""
        if not self.is_network:
            return None
        return self.identity.split(":")[1]

    @property
    def port(self) -> Optional[int]:
        """Port recorded in the identity (eSCL devices only)."""
        if not self.is_network:
            return None
        parts = self.identity.split(":")
        if len(parts) < 3:
            return None
        try:
            return int(parts[2])
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "display_name": self.display_name,
            "origin": self.origin.value,
            "is_network": self.is_network,
        }


class DeviceRegistry:
    """
    Immutable, ordered snapshot of one discovery run.

    Order is discovery completion order. Identities are unique; the first
    device reported under an identity wins. Display names are not unique.
    """

    def __init__(self, devices: Iterable[DiscoveredDevice] = ()):
        seen: set[str] = set()
        ordered: list[DiscoveredDevice] = []
        for device in devices:
            if device.identity in seen:
                logger.debug("Dropping duplicate identity %s", device.identity)
                continue
            seen.add(device.identity)
            ordered.append(device)
        self._devices: tuple[DiscoveredDevice, ...] = tuple(ordered)

    def __iter__(self) -> Iterator[DiscoveredDevice]:
        return iter(self._devices)

    def __len__(self) -> int:
        return len(self._devices)

    def __getitem__(self, index: int) -> DiscoveredDevice:
        return self._devices[index]

    def __repr__(self) -> str:
        return f"DeviceRegistry({len(self._devices)} devices)"

    @property
    def devices(self) -> tuple[DiscoveredDevice, ...]:
        return self._devices

    def names(self) -> list[str]:
        """Display names in registry order."""
        return [d.display_name for d in self._devices]

    def resolve(self, display_name: str) -> Optional[DiscoveredDevice]:
        """Return the first device with this display name, or None."""
        for device in self._devices:
            if device.display_name == display_name:
                return device
        return None

    def by_identity(self, identity: str) -> Optional[DiscoveredDevice]:
        for device in self._devices:
            if device.identity == identity:
                return device
        return None

    def local_devices(self) -> list[DiscoveredDevice]:
        return [d for d in self._devices if not d.is_network]

    def network_devices(self) -> list[DiscoveredDevice]:
        return [d for d in self._devices if d.is_network]

    def to_list(self) -> list[dict[str, Any]]:
        return [d.to_dict() for d in self._devices]
