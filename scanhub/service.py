"""
Scanner Service - the entry point used by the host process.

Constructed once by the host and passed by reference; exposes discover(),
scan(), submit_scan() and advise(). Scans resolve devices only from a
registry snapshot produced by discover(); discovery is never re-run
implicitly during a scan.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Union

from .acquisition import (
    AcquisitionService,
    ScanOutcome,
    ScanSession,
    ScanSettings,
)
from .acquisition.session import ReachabilityCheck
from .advisor import Advice, advise
from .config import Settings
from .discovery import DeviceRegistry, DiscoveryService
from .errors import ErrorCode

logger = logging.getLogger("scanhub.service")


class ScannerService:
    """
    Discovery and scanning against one acquisition binding.

    Usage:
        service = ScannerService(acquisition)
        registry = service.discover()
        outcome = service.scan(registry.names()[0], registry=registry)
        if not outcome.ok:
            print(service.advise(outcome.error).message)
        service.close()
    """

    def __init__(
        self,
        acquisition: AcquisitionService,
        settings: Optional[Settings] = None,
        discovery: Optional[DiscoveryService] = None,
        reachability: Optional[ReachabilityCheck] = None,
        max_workers: int = 2,
    ):
        self.acquisition = acquisition
        self.settings = settings or Settings()
        self.discovery = discovery or DiscoveryService(
            acquisition,
            self.settings.discovery,
            self.settings.escl,
        )
        self._reachability = reachability
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="scanhub-scan",
        )
        self._lock = threading.Lock()
        self._last_registry: Optional[DeviceRegistry] = None
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def last_registry(self) -> Optional[DeviceRegistry]:
        """Snapshot from the most recent discover() call."""
        with self._lock:
            return self._last_registry

    def discover(self) -> DeviceRegistry:
        """Run discovery and remember the snapshot for later scans."""
        if self._closed:
            logger.warning("discover() called on a closed scanner service")
            return DeviceRegistry()

        registry = self.discovery.discover()
        with self._lock:
            self._last_registry = registry
        return registry

    def scan(
        self,
        display_name: str,
        settings: Optional[ScanSettings] = None,
        output_path: Optional[Union[str, Path]] = None,
        registry: Optional[DeviceRegistry] = None,
    ) -> ScanOutcome:
        """
        Scan one document from the named device.

        Args:
            display_name: Name as it appears in the registry
            settings: Scan settings; device-kind defaults when omitted
            output_path: Destination file; generated under output_dir when omitted
            registry: Snapshot to resolve against; defaults to the last discover()

        Returns:
            ScanOutcome with output_path on success or a canonical error code
        """
        if self._closed:
            return ScanOutcome.failure(ErrorCode.PLUGIN_NOT_INITIALIZED)

        snapshot = registry if registry is not None else self.last_registry
        if snapshot is None:
            logger.warning("scan(%r) called before any discovery", display_name)
            snapshot = DeviceRegistry()

        session = ScanSession(
            self.acquisition,
            snapshot,
            self.settings.scan,
            reachability=self._reachability,
        )
        path = str(output_path) if output_path is not None else None
        return session.run(display_name, settings, path)

    def submit_scan(
        self,
        display_name: str,
        settings: Optional[ScanSettings] = None,
        output_path: Optional[Union[str, Path]] = None,
        registry: Optional[DeviceRegistry] = None,
    ) -> "Future[ScanOutcome]":
        """Run scan() on a worker thread; the future always resolves to a ScanOutcome."""
        if self._closed:
            future: Future = Future()
            future.set_result(ScanOutcome.failure(ErrorCode.PLUGIN_NOT_INITIALIZED))
            return future

        snapshot = registry if registry is not None else self.last_registry
        return self._executor.submit(self._scan_safely, display_name, settings, output_path, snapshot)

    def _scan_safely(self, *args) -> ScanOutcome:
        try:
            return self.scan(*args)
        except Exception as e:
            logger.error("Background scan failed: %s", e, exc_info=True)
            return ScanOutcome.failure(ErrorCode.UNKNOWN_SCANNER_ERROR, str(e))

    def advise(self, code: Union[ErrorCode, str]) -> Advice:
        """Message and troubleshooting suggestions for an error code."""
        return advise(code)

    def close(self) -> None:
        """Stop accepting work; later scans return PLUGIN_NOT_INITIALIZED."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("Scanner service closed")

    def __enter__(self) -> "ScannerService":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
