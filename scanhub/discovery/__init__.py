"""
Scanner discovery module.

Finds locally attached scanners and network scanners reachable over
WS-Discovery, mDNS, SSDP and eSCL, and returns them as one ordered
DeviceRegistry snapshot.
"""

from .models import DeviceOrigin, DeviceRegistry, DiscoveredDevice, make_identity
from .service import DiscoveryService, build_probers

__all__ = [
    "DeviceOrigin",
    "DeviceRegistry",
    "DiscoveredDevice",
    "DiscoveryService",
    "build_probers",
    "make_identity",
]
