"""
Discovery Service - Orchestrates scanner discovery.

Enumerates locally attached devices first, then runs every enabled
network prober under one wall-clock budget and merges the results into
an immutable DeviceRegistry snapshot.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Optional

from ..acquisition.protocols import AcquisitionService
from ..config import DiscoveryConfig, EsclConfig
from .models import DeviceRegistry, DiscoveredDevice
from .probers import (
    BaseProber,
    DeviceSink,
    EsclRangeScanner,
    MDNSProber,
    SSDPProber,
    WSDProber,
)

logger = logging.getLogger("scanhub.discovery.service")


def build_probers(
    config: DiscoveryConfig,
    escl_config: Optional[EsclConfig] = None,
) -> list[BaseProber]:
    """Instantiate enabled probers in merge order: WSD, mDNS, SSDP, eSCL."""
    probers: list[BaseProber] = []

    if config.wsd_enabled:
        probers.append(WSDProber(config))
        logger.info("WSD prober enabled")

    if config.mdns_enabled:
        probers.append(MDNSProber(config))
        logger.info("mDNS prober enabled")

    if config.ssdp_enabled:
        probers.append(SSDPProber(config))
        logger.info("SSDP prober enabled")

    if config.escl_enabled:
        probers.append(EsclRangeScanner(escl_config))
        logger.info("eSCL range scanner enabled")

    return probers


class DiscoveryService:
    """
    Coordinates local enumeration and network probing.

    Features:
    - Local devices always come first in the registry
    - One worker thread per network prober, merged in prober order
    - A single deadline; probers still running when it passes are
      cancelled, keeping only the devices they reported before it
    - Prober failures are contained and yield zero devices
    """

    def __init__(
        self,
        acquisition: Optional[AcquisitionService] = None,
        config: Optional[DiscoveryConfig] = None,
        escl_config: Optional[EsclConfig] = None,
        probers: Optional[list[BaseProber]] = None,
    ):
        self.acquisition = acquisition
        self.config = config or DiscoveryConfig()
        self._probers = probers if probers is not None else build_probers(self.config, escl_config)

    @property
    def probers(self) -> list[BaseProber]:
        return list(self._probers)

    def discover(self) -> DeviceRegistry:
        """
        Run one discovery pass.

        Returns:
            A fresh registry snapshot; never raises
        """
        start_time = time.monotonic()
        logger.info("Starting scanner discovery...")

        devices = self._local_devices()
        logger.info("Local enumeration found %d devices", len(devices))

        devices.extend(self._network_devices())

        registry = DeviceRegistry(devices)
        logger.info(
            "Discovery complete: %d devices in %.1fs",
            len(registry),
            time.monotonic() - start_time,
        )
        return registry

    def _local_devices(self) -> list[DiscoveredDevice]:
        if self.acquisition is None:
            return []

        try:
            entries = self.acquisition.enumerate_local_devices()
        except Exception as e:
            logger.error("Local device enumeration failed: %s", e)
            return []

        devices = []
        for name, handle in entries:
            if not name or not handle:
                logger.debug("Skipping local device with missing name or handle: %r", (name, handle))
                continue
            devices.append(DiscoveredDevice.local(handle, name))
        return devices

    def _network_devices(self) -> list[DiscoveredDevice]:
        probers = [p for p in self._probers if self._available(p)]
        if not probers:
            logger.warning("No network probers available")
            return []

        cancel = threading.Event()
        deadline = time.monotonic() + self.config.overall_timeout
        executor = ThreadPoolExecutor(
            max_workers=len(probers),
            thread_name_prefix="scanhub-probe",
        )

        devices: list[DiscoveredDevice] = []
        try:
            futures = []
            for prober in probers:
                sink = DeviceSink()
                futures.append((prober, sink, executor.submit(self._run_prober, prober, cancel, sink)))

            for prober, sink, future in futures:
                remaining = max(0.0, deadline - time.monotonic())
                try:
                    results = future.result(timeout=remaining)
                except FuturesTimeoutError:
                    cancel.set()
                    # Keep what was found before the deadline; later hits are dropped
                    results = sink.snapshot()
                    logger.warning(
                        "%s prober exceeded the %.1fs budget; keeping %d devices found so far",
                        prober.protocol_name.upper(),
                        self.config.overall_timeout,
                        len(results),
                    )

                devices.extend(results)
                logger.info(
                    "%s prober found %d devices",
                    prober.protocol_name.upper(),
                    len(results),
                )
        finally:
            # Unblock any worker still running so it ends at its next check
            cancel.set()
            executor.shutdown(wait=False, cancel_futures=True)

        return devices

    @staticmethod
    def _available(prober: BaseProber) -> bool:
        try:
            if prober.is_available():
                return True
        except Exception as e:
            logger.warning("%s availability check failed: %s", prober.protocol_name, e)
            return False
        logger.warning("%s prober not available", prober.protocol_name)
        return False

    @staticmethod
    def _run_prober(
        prober: BaseProber,
        cancel: threading.Event,
        sink: DeviceSink,
    ) -> list[DiscoveredDevice]:
        try:
            return prober.probe(cancel, sink)
        except Exception as e:
            logger.error("%s prober failed: %s", prober.protocol_name, e)
            return []
