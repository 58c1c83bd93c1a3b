"""
mDNS (Multicast DNS) prober.

Sends one PTR question per service type to the mDNS group. Any reply
with the response flag set and at least one answer counts as a hit.
A hit only proves an mDNS responder is present on that host; it does
not confirm the host can scan.
"""

import logging
import struct
import threading
from typing import Optional

from zeroconf import DNSOutgoing, DNSQuestion

from ...config import DiscoveryConfig
from ..models import DeviceOrigin, DiscoveredDevice
from .base import BaseProber, DeviceSink

logger = logging.getLogger("scanhub.discovery.probers.mdns")

MDNS_ADDR = "224.0.0.251"
MDNS_PORT = 5353

SERVICE_TYPES = [
    "_scanner._tcp.local.",
    "_ipp._tcp.local.",
    "_http._tcp.local.",
    "_printer._tcp.local.",
]

# DNS wire constants (RFC 1035)
TYPE_PTR = 12
CLASS_IN = 1
FLAGS_QUERY = 0x0000
FLAGS_QR_MASK = 0x8000

_HEADER = struct.Struct("!HHHHHH")  # id, flags, qd, an, ns, ar


def build_query(service_type: str) -> bytes:
    """Build a single-question PTR query (12-byte header + question)."""
    out = DNSOutgoing(FLAGS_QUERY, multicast=True)
    out.add_question(DNSQuestion(service_type, TYPE_PTR, CLASS_IN))
    return out.packets()[0]


def is_positive_reply(data: bytes) -> bool:
    """True if the datagram is a DNS response carrying at least one answer."""
    if len(data) < _HEADER.size:
        return False
    _, flags, _, answers, _, _ = _HEADER.unpack_from(data)
    return bool(flags & FLAGS_QR_MASK) and answers > 0


class MDNSProber(BaseProber):
    """Coarse mDNS presence prober for printer/scanner service types."""

    def __init__(self, config: Optional[DiscoveryConfig] = None):
        self.config = config or DiscoveryConfig()

    @property
    def protocol_name(self) -> str:
        return "mdns"

    @property
    def origin(self) -> DeviceOrigin:
        return DeviceOrigin.MDNS

    def probe(
        self,
        cancel: threading.Event,
        sink: Optional[DeviceSink] = None,
    ) -> list[DiscoveredDevice]:
        logger.info("Starting mDNS probe (%d service types)", len(SERVICE_TYPES))

        devices: list[DiscoveredDevice] = []
        seen_hosts: set[str] = set()

        for service_type in SERVICE_TYPES:
            if cancel.is_set():
                break

            responses = self._collect(
                build_query(service_type),
                MDNS_ADDR,
                MDNS_PORT,
                window=self.config.mdns_window,
                buffer_size=self.config.receive_buffer_size,
                cancel=cancel,
            )

            for sender_ip, data in responses:
                if sender_ip in seen_hosts or not is_positive_reply(data):
                    continue
                seen_hosts.add(sender_ip)
                device = DiscoveredDevice.network(
                    DeviceOrigin.MDNS,
                    sender_ip,
                    f"mDNS Scanner ({sender_ip})",
                )
                devices.append(device)
                if sink is not None:
                    sink.add(device)
                logger.debug("mDNS responder at %s for %s", sender_ip, service_type)

        logger.info("mDNS probe complete: found %d responders", len(devices))
        return devices
