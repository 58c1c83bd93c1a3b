"""
SSDP (Simple Service Discovery Protocol) prober.

Sends M-SEARCH requests for root devices, UPnP printers and UPnP
scanner services, and keeps replies that carry a LOCATION header and
mention printing or scanning.
"""

import logging
import threading
from typing import Optional
from urllib.parse import urlparse

from ...config import DiscoveryConfig
from ..models import DeviceOrigin, DiscoveredDevice
from .base import BaseProber, DeviceSink

logger = logging.getLogger("scanhub.discovery.probers.ssdp")

# SSDP multicast address and port
SSDP_ADDR = "239.255.255.250"
SSDP_PORT = 1900

# M-SEARCH request template
MSEARCH_TEMPLATE = (
    "M-SEARCH * HTTP/1.1\r\n"
    "HOST: {addr}:{port}\r\n"
    "MAN: \"ssdp:discover\"\r\n"
    "ST: {st}\r\n"
    "MX: {mx}\r\n"
    "\r\n"
)

# Search targets for scanner-capable devices
SEARCH_TARGETS = [
    "upnp:rootdevice",
    "urn:schemas-upnp-org:device:Printer:1",
    "urn:schemas-upnp-org:service:Scanner:1",
]

SCANNER_KEYWORDS = ("printer", "scanner", "multifunction")


def parse_headers(response: str) -> dict[str, str]:
    """Parse SSDP response headers, keys upper-cased."""
    headers: dict[str, str] = {}
    for line in response.split("\r\n")[1:]:  # Skip status line
        if ":" in line:
            key, value = line.split(":", 1)
            headers[key.strip().upper()] = value.strip()
    return headers


def is_scanner_response(response: str) -> bool:
    """A LOCATION header and a printer/scanner keyword are both required."""
    lowered = response.lower()
    if "location:" not in lowered:
        return False
    return any(keyword in lowered for keyword in SCANNER_KEYWORDS)


def location_host(location: str) -> Optional[str]:
    """Host part of the LOCATION URL authority, without the port."""
    try:
        return urlparse(location).hostname
    except ValueError:
        return None


def parse_ssdp_response(data: bytes, sender_ip: str) -> Optional[DiscoveredDevice]:
    """Turn one SSDP reply into a device, or None if it is not a scanner."""
    response = data.decode("utf-8", errors="ignore")
    if not is_scanner_response(response):
        return None

    headers = parse_headers(response)
    host = location_host(headers.get("LOCATION", "")) or sender_ip

    return DiscoveredDevice.network(
        DeviceOrigin.SSDP,
        sender_ip,
        f"SSDP Scanner ({host})",
    )


class SSDPProber(BaseProber):
    """
    SSDP/UPnP network prober.

    Sends M-SEARCH multicast requests and collects responses
    to discover printers and scanners on the local network.
    """

    def __init__(self, config: Optional[DiscoveryConfig] = None):
        self.config = config or DiscoveryConfig()

    @property
    def protocol_name(self) -> str:
        return "ssdp"

    @property
    def origin(self) -> DeviceOrigin:
        return DeviceOrigin.SSDP

    def probe(
        self,
        cancel: threading.Event,
        sink: Optional[DeviceSink] = None,
    ) -> list[DiscoveredDevice]:
        window = self.config.ssdp_window
        logger.info("Starting SSDP probe (window=%.1fs)", window)

        devices: list[DiscoveredDevice] = []
        seen_hosts: set[str] = set()  # deduplicate by sender

        for st in SEARCH_TARGETS:
            if cancel.is_set():
                break

            request = MSEARCH_TEMPLATE.format(
                addr=SSDP_ADDR,
                port=SSDP_PORT,
                st=st,
                mx=max(1, int(window)),
            ).encode()
            logger.debug("Sending M-SEARCH for %s", st)

            responses = self._collect(
                request,
                SSDP_ADDR,
                SSDP_PORT,
                window=window,
                buffer_size=self.config.receive_buffer_size,
                cancel=cancel,
            )

            for sender_ip, data in responses:
                if sender_ip in seen_hosts:
                    continue
                device = parse_ssdp_response(data, sender_ip)
                if device is None:
                    continue
                seen_hosts.add(sender_ip)
                devices.append(device)
                if sink is not None:
                    sink.add(device)
                logger.debug("SSDP scanner at %s: %s", sender_ip, device.display_name)

        logger.info("SSDP probe complete: found %d scanners", len(devices))
        return devices
