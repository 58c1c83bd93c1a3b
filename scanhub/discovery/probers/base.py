"""
Base prober protocol for network scanner discovery.

All network probers must implement this interface.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from ...errors import map_socket_error
from ..models import DeviceOrigin, DiscoveredDevice
from ..transport import Response, send_and_collect

logger = logging.getLogger("scanhub.discovery.probers.base")


class DeviceSink:
    """
    Thread-safe collector for devices reported while a probe is running.

    Devices are grouped into lanes (one per eSCL worker, a single default
    lane otherwise). Lane order is first-open order, so a snapshot lists
    devices in worker order regardless of which worker finished first.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._lanes: dict[str, list[DiscoveredDevice]] = {}

    def open_lane(self, lane: str) -> None:
        with self._lock:
            self._lanes.setdefault(lane, [])

    def add(self, device: DiscoveredDevice, lane: str = "") -> None:
        with self._lock:
            self._lanes.setdefault(lane, []).append(device)

    def snapshot(self) -> list[DiscoveredDevice]:
        """Devices reported so far, lane by lane."""
        with self._lock:
            return [device for devices in self._lanes.values() for device in devices]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(devices) for devices in self._lanes.values())


class BaseProber(ABC):
    """
    Abstract base class for network probers.

    Probers are blocking and run on a worker thread. A prober that fails
    returns no devices instead of raising, and stops early once the
    cancellation token is set.
    """

    @property
    @abstractmethod
    def protocol_name(self) -> str:
        """Name of the discovery protocol (e.g., 'wsd', 'ssdp')."""
        ...

    @property
    @abstractmethod
    def origin(self) -> DeviceOrigin:
        """Origin tag applied to every device this prober reports."""
        ...

    @abstractmethod
    def probe(
        self,
        cancel: threading.Event,
        sink: Optional[DeviceSink] = None,
    ) -> list[DiscoveredDevice]:
        """
        Probe the network and return discovered scanners.

        Args:
            cancel: Set by the orchestrator when its time budget runs out
            sink: Optional collector; receives each device as soon as it is found

        Returns:
            Devices in this prober's discovery order
        """
        ...

    def is_available(self) -> bool:
        """
        Check if this prober can run on the current system.

        Override if the prober has system requirements.
        """
        return True

    def _collect(
        self,
        payload: bytes,
        destination: str,
        port: int,
        window: float,
        buffer_size: int,
        cancel: Optional[threading.Event] = None,
        broadcast: bool = False,
    ) -> list[Response]:
        """Send one probe and return replies; socket errors yield no replies."""
        try:
            return send_and_collect(
                payload,
                destination,
                port,
                listen_duration=window,
                buffer_size=buffer_size,
                broadcast=broadcast,
                cancel=cancel,
            )
        except OSError as e:
            logger.warning(
                "%s probe to %s:%d failed (%s): %s",
                self.protocol_name,
                destination,
                port,
                map_socket_error(e).value,
                e,
            )
            return []
