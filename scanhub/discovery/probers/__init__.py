"""
Network probers for scanner discovery.

Each prober implements a specific discovery protocol:
- WSD: WS-Discovery probe variants (printers, MFPs, vendor namespaces)
- mDNS: Multicast DNS service queries (presence only)
- SSDP: UPnP M-SEARCH for printers and scanner services
- eSCL: Active HTTP range scan of local subnets
"""

from .base import BaseProber, DeviceSink
from .escl import EsclRangeScanner
from .mdns import MDNSProber
from .ssdp import SSDPProber
from .wsd import WSDProber

__all__ = [
    "BaseProber",
    "DeviceSink",
    "WSDProber",
    "MDNSProber",
    "SSDPProber",
    "EsclRangeScanner",
]
