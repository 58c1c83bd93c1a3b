"""
WS-Discovery prober.

Sends several probe variants (generic discovery, printer device and
vendor namespaces) to the WS-Discovery group and keeps replies that
mention scanning or printing hardware.
"""

import logging
import re
import threading
from typing import Optional

from ...config import DiscoveryConfig
from ..models import DeviceOrigin, DiscoveredDevice
from .base import BaseProber, DeviceSink

logger = logging.getLogger("scanhub.discovery.probers.wsd")

WSD_ADDR = "239.255.255.250"
WSD_PORT = 3702

PROBE_TEMPLATE = (
    "M-SEARCH * HTTP/1.1\r\n"
    "HOST: {addr}:{port}\r\n"
    "MAN: \"ssdp:discover\"\r\n"
    "ST: {st}\r\n"
    "MX: 3\r\n"
    "\r\n"
)

# Probe variants, sent in order
PROBE_TARGETS = [
    "urn:schemas-xmlsoap-org:ws:2005:04:discovery",  # Generic discovery
    "urn:schemas-upnp-org:device:Printer:1",  # Printer/scanner devices
    "urn:hp-com:device:Printer:1",  # HP
    "urn:canon-com:device:Scanner:1",  # Canon
]

SCANNER_KEYWORDS = (
    "scanner",
    "scan",
    "printer",
    "multifunction",
    "mfp",
    "all-in-one",
    "wsd",
    "escl",
)

_NAME_HEADER = re.compile(r"^(?:SERVER|USN|ST):[ \t]*(.+?)[ \t]*\r?$", re.IGNORECASE | re.MULTILINE)

# Header values outside this length range are treated as garbage
_MIN_NAME_LEN = 6
_MAX_NAME_LEN = 49


def is_scanner_response(text: str) -> bool:
    """True if the reply mentions any scanner-bearing keyword."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in SCANNER_KEYWORDS)


def extract_device_name(text: str, sender_ip: str) -> str:
    """Best-effort display name from SERVER/USN/ST header lines."""
    name = "Network Scanner"
    match = _NAME_HEADER.search(text)
    if match:
        candidate = match.group(1)
        if _MIN_NAME_LEN <= len(candidate) <= _MAX_NAME_LEN:
            name = candidate
    return f"{name} ({sender_ip})"


def parse_wsd_response(data: bytes, sender_ip: str) -> Optional[DiscoveredDevice]:
    """Turn one WS-Discovery reply into a device, or None if it is not a scanner."""
    text = data.decode("utf-8", errors="ignore")
    if not is_scanner_response(text):
        return None
    return DiscoveredDevice.network(
        DeviceOrigin.WSD,
        sender_ip,
        extract_device_name(text, sender_ip),
    )


class WSDProber(BaseProber):
    """WS-Discovery prober for network scanners and multifunction printers."""

    def __init__(self, config: Optional[DiscoveryConfig] = None):
        self.config = config or DiscoveryConfig()

    @property
    def protocol_name(self) -> str:
        return "wsd"

    @property
    def origin(self) -> DeviceOrigin:
        return DeviceOrigin.WSD

    def probe(
        self,
        cancel: threading.Event,
        sink: Optional[DeviceSink] = None,
    ) -> list[DiscoveredDevice]:
        logger.info("Starting WS-Discovery probe (%d variants)", len(PROBE_TARGETS))

        devices: list[DiscoveredDevice] = []
        seen_hosts: set[str] = set()

        for st in PROBE_TARGETS:
            if cancel.is_set():
                break

            payload = PROBE_TEMPLATE.format(addr=WSD_ADDR, port=WSD_PORT, st=st).encode()
            responses = self._collect(
                payload,
                WSD_ADDR,
                WSD_PORT,
                window=self.config.wsd_window,
                buffer_size=self.config.receive_buffer_size,
                cancel=cancel,
                broadcast=True,
            )

            for sender_ip, data in responses:
                if sender_ip in seen_hosts:
                    continue
                device = parse_wsd_response(data, sender_ip)
                if device is None:
                    logger.debug("WSD reply from %s is not a scanner", sender_ip)
                    continue
                seen_hosts.add(sender_ip)
                devices.append(device)
                if sink is not None:
                    sink.add(device)
                logger.debug("WSD scanner: %s", device.display_name)

        logger.info("WS-Discovery probe complete: found %d scanners", len(devices))
        return devices
