"""
eSCL/HTTP range scanner.

eSCL devices do not announce themselves, so every host on each local
/24 is connect-probed on a fixed port list and confirmed by fetching
well-known scanner endpoints over HTTP.
"""

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import httpx

from ...config import EsclConfig
from ...errors import map_http_status
from ..interfaces import enumerate_subnet_prefixes
from ..models import DeviceOrigin, DiscoveredDevice
from ..transport import can_connect
from .base import BaseProber, DeviceSink

logger = logging.getLogger("scanhub.discovery.probers.escl")

# Endpoints whose response proves a scanner/printer service
PROBE_ENDPOINTS = [
    "/eSCL/ScannerCapabilities",
    "/eSCL/ScannerStatus",
    "/ipp/print",
    "/hp/device/info_ConfigDyn.xml",
    "/canon/info/device.xml",
    "/DevMgmt/DiscoveryTree.xml",
]

# Endpoints queried for manufacturer/model once a scanner is confirmed
INFO_ENDPOINTS = [
    "/eSCL/ScannerCapabilities",
    "/DevMgmt/DiscoveryTree.xml",
    "/hp/device/info_ConfigDyn.xml",
    "/canon/info/device.xml",
]

MANUFACTURER_TAGS = ("manufacturer", "make", "vendor")
MODEL_TAGS = ("model", "modelname", "product")

BODY_SIGNATURES = ("scannercapabilities", "escl", "printer")

TLS_PORTS = frozenset({443, 8443})

REQUEST_HEADERS = {
    "Accept": "text/xml, application/xml, */*",
    "Connection": "close",
}

PrefixProvider = Callable[[], list[str]]


def has_scanner_signature(response: httpx.Response) -> bool:
    """True if a 200 response body carries an eSCL or printer signature."""
    if response.status_code != 200:
        return False
    body = response.text.lower()
    return any(sig in body for sig in BODY_SIGNATURES)


def extract_xml_value(xml: str, tags: tuple[str, ...]) -> str:
    """First non-empty text of any candidate tag, namespace prefix allowed."""
    for tag in tags:
        pattern = re.compile(
            rf"<(?:[\w.-]+:)?{tag}\b[^>]*>\s*([^<]*?)\s*</(?:[\w.-]+:)?{tag}>",
            re.IGNORECASE,
        )
        match = pattern.search(xml)
        if match and match.group(1):
            return match.group(1)
    return ""


def compose_name(manufacturer: str, model: str, ip: str, port: int) -> str:
    """Display name from whichever device fields were found."""
    if manufacturer and model:
        name = f"{manufacturer} {model}"
    elif model:
        name = model
    elif manufacturer:
        name = f"{manufacturer} Scanner"
    else:
        name = "eSCL Scanner"
    return f"{name} ({ip}:{port})"


class EsclRangeScanner(BaseProber):
    """
    Active eSCL/HTTP scanner for local subnets.

    One worker thread per subnet prefix walks hosts in order; for each
    host the first answering port wins. Workers stop between attempts
    once the cancellation token is set.
    """

    def __init__(
        self,
        config: Optional[EsclConfig] = None,
        prefix_provider: Optional[PrefixProvider] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config or EsclConfig()
        self._prefix_provider = prefix_provider or enumerate_subnet_prefixes
        self._http_transport = http_transport

    @property
    def protocol_name(self) -> str:
        return "escl"

    @property
    def origin(self) -> DeviceOrigin:
        return DeviceOrigin.ESCL

    def subnet_prefixes(self) -> list[str]:
        """Local prefixes, or the configured private ranges when none are found."""
        try:
            prefixes = self._prefix_provider()
        except Exception as e:
            logger.warning("Local interface enumeration failed: %s", e)
            prefixes = []
        if not prefixes:
            logger.info("No local interfaces found, using fallback prefixes")
            return list(self.config.fallback_prefixes)
        return prefixes

    def probe(
        self,
        cancel: threading.Event,
        sink: Optional[DeviceSink] = None,
    ) -> list[DiscoveredDevice]:
        prefixes = self.subnet_prefixes()
        if not prefixes:
            return []
        logger.info("Starting eSCL range scan over %d prefixes", len(prefixes))

        if sink is not None:
            for prefix in prefixes:
                sink.open_lane(prefix)

        with ThreadPoolExecutor(
            max_workers=len(prefixes),
            thread_name_prefix="scanhub-escl",
        ) as executor:
            futures = [
                executor.submit(self._scan_prefix, prefix, cancel, sink)
                for prefix in prefixes
            ]

            devices: list[DiscoveredDevice] = []
            for prefix, future in zip(prefixes, futures):
                try:
                    devices.extend(future.result())
                except Exception as e:
                    logger.warning("eSCL worker for %s* failed: %s", prefix, e)

        logger.info("eSCL range scan complete: found %d scanners", len(devices))
        return devices

    def _client(self, timeout: float) -> httpx.Client:
        return httpx.Client(
            timeout=timeout,
            verify=False,
            headers=REQUEST_HEADERS,
            transport=self._http_transport,
        )

    def _scan_prefix(
        self,
        prefix: str,
        cancel: threading.Event,
        sink: Optional[DeviceSink] = None,
    ) -> list[DiscoveredDevice]:
        """Walk every host suffix of one prefix; runs on its own worker thread."""
        found: list[DiscoveredDevice] = []

        with self._client(self.config.connect_timeout) as client:
            for suffix in range(self.config.host_first, self.config.host_last + 1):
                if cancel.is_set():
                    logger.debug("eSCL worker for %s* cancelled at host %d", prefix, suffix)
                    break

                ip = f"{prefix}{suffix}"
                for port in self.config.ports:
                    if cancel.is_set():
                        break
                    if self._probe_with_retry(client, ip, port, cancel):
                        name = self.describe(ip, port)
                        device = DiscoveredDevice.network(DeviceOrigin.ESCL, ip, name, port)
                        found.append(device)
                        if sink is not None:
                            sink.add(device, lane=prefix)
                        logger.info("eSCL scanner found: %s", name)
                        break
                    # Pace sequential attempts on the same host
                    if cancel.wait(self.config.inter_attempt_delay):
                        break

        return found

    def _probe_with_retry(
        self,
        client: httpx.Client,
        ip: str,
        port: int,
        cancel: threading.Event,
    ) -> bool:
        attempts = self.config.max_attempts
        for attempt in range(attempts):
            if self.probe_host(client, ip, port):
                return True
            if attempt < attempts - 1:
                # Exponential backoff; wait() returns early on cancellation
                if cancel.wait(self.config.backoff_base * (2 ** attempt)):
                    return False
        return False

    def probe_host(self, client: httpx.Client, ip: str, port: int) -> bool:
        """Connect-probe ip:port, then look for a scanner signature on any endpoint."""
        if not can_connect(ip, port, self.config.connect_timeout):
            return False

        base_url = self._base_url(ip, port)
        for endpoint in PROBE_ENDPOINTS:
            try:
                response = client.get(f"{base_url}{endpoint}")
            except httpx.HTTPError as e:
                logger.debug("GET %s%s failed: %s", base_url, endpoint, e)
                continue
            if has_scanner_signature(response):
                return True
            code = map_http_status(response.status_code)
            logger.debug(
                "HTTP %d (%s) for %s%s",
                response.status_code,
                code.value if code else "no signature",
                base_url,
                endpoint,
            )
        return False

    def describe(self, ip: str, port: int) -> str:
        """Fetch capability/info XML and build a display name."""
        manufacturer = ""
        model = ""
        base_url = self._base_url(ip, port)

        with self._client(self.config.info_timeout) as client:
            for endpoint in INFO_ENDPOINTS:
                try:
                    response = client.get(f"{base_url}{endpoint}")
                except httpx.HTTPError as e:
                    logger.debug("Info fetch %s%s failed: %s", base_url, endpoint, e)
                    continue
                if response.status_code != 200 or not response.text:
                    continue

                manufacturer = extract_xml_value(response.text, MANUFACTURER_TAGS)
                model = extract_xml_value(response.text, MODEL_TAGS)
                if manufacturer or model:
                    break

        return compose_name(manufacturer, model, ip, port)

    @staticmethod
    def _base_url(ip: str, port: int) -> str:
        scheme = "https" if port in TLS_PORTS else "http"
        return f"{scheme}://{ip}:{port}"
