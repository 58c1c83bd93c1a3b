"""
Scan session state machine.

Idle -> Resolving -> Opening -> Locating -> Configuring -> Transferring
-> Succeeded | Failed. Each phase maps acquisition faults to one
canonical error code. Device and item handles are released on every
exit path.
"""

import logging
from contextlib import ExitStack
from typing import Any, Callable, Optional
from uuid import uuid4

from ..config import ScanConfig
from ..discovery.models import DeviceRegistry, DiscoveredDevice
from ..discovery.transport import can_connect
from ..errors import ErrorCode, ScanSessionError
from .models import ScanOutcome, ScanSettings, SessionState
from .protocols import (
    SCAN_CATEGORIES,
    AcquisitionError,
    AcquisitionFault,
    AcquisitionService,
    ScanItem,
)

logger = logging.getLogger("scanhub.acquisition.session")

ReachabilityCheck = Callable[[DiscoveredDevice], bool]

_OPEN_FAULTS = {
    AcquisitionFault.ACCESS_DENIED: ErrorCode.SCANNER_BUSY,
    AcquisitionFault.BUSY: ErrorCode.SCANNER_BUSY,
    AcquisitionFault.OFFLINE: ErrorCode.SCANNER_OFFLINE,
    AcquisitionFault.TIMEOUT: ErrorCode.SCANNER_TIMEOUT,
}

# Paper and cover conditions, shared by the locating and transfer phases
_MECHANICAL_FAULTS = {
    AcquisitionFault.PAPER_EMPTY: ErrorCode.NO_PAPER,
    AcquisitionFault.PAPER_JAM: ErrorCode.PAPER_JAM,
    AcquisitionFault.COVER_OPEN: ErrorCode.COVER_OPEN,
}

_LOCATE_FAULTS = {
    **_MECHANICAL_FAULTS,
    AcquisitionFault.OFFLINE: ErrorCode.SCANNER_OFFLINE,
}

_TRANSFER_FAULTS = {
    **_MECHANICAL_FAULTS,
    AcquisitionFault.BUSY: ErrorCode.SCANNER_BUSY,
    AcquisitionFault.OFFLINE: ErrorCode.SCANNER_OFFLINE,
    AcquisitionFault.TRANSFER_UNAVAILABLE: ErrorCode.DATA_TRANSFER_FAILED,
}


def tcp_reachability(config: ScanConfig) -> ReachabilityCheck:
    """Reachability check that TCP-connects to the device's port or known ports."""

    def check(device: DiscoveredDevice) -> bool:
        host = device.host
        if not host:
            return False
        ports = [device.port] if device.port else config.precheck_ports
        return any(can_connect(host, port, config.precheck_timeout) for port in ports)

    return check


class ScanSession:
    """
    Drives one scan against one device from an immutable registry snapshot.

    A session is single-use. run() never raises; every failure comes back
    as a ScanOutcome carrying a canonical error code.
    """

    def __init__(
        self,
        acquisition: AcquisitionService,
        registry: DeviceRegistry,
        config: Optional[ScanConfig] = None,
        reachability: Optional[ReachabilityCheck] = None,
    ):
        self.acquisition = acquisition
        self.registry = registry
        self.config = config or ScanConfig()
        self._reachability = reachability or tcp_reachability(self.config)
        self._states: list[SessionState] = [SessionState.IDLE]
        self._device: Optional[DiscoveredDevice] = None

    @property
    def state(self) -> SessionState:
        return self._states[-1]

    @property
    def states(self) -> list[SessionState]:
        return list(self._states)

    def _transition(self, state: SessionState) -> None:
        logger.debug("Scan session %s -> %s", self.state.value, state.value)
        self._states.append(state)

    def run(
        self,
        display_name: str,
        settings: Optional[ScanSettings],
        output_path: Optional[str] = None,
    ) -> ScanOutcome:
        """
        Resolve, open, locate, configure and transfer; return the outcome.

        When output_path is omitted a file name is generated under
        ScanConfig.output_dir once the device is open and configured.
        """
        if self.state != SessionState.IDLE:
            raise RuntimeError("ScanSession instances are single-use")

        try:
            bytes_written, output_path = self._run(display_name, settings, output_path)
        except ScanSessionError as e:
            self._transition(SessionState.FAILED)
            logger.warning("Scan of %r failed: %s", display_name, e)
            return ScanOutcome.failure(
                e.code,
                e.detail,
                identity=self._identity,
                states=self.states,
            )
        except Exception as e:
            self._transition(SessionState.FAILED)
            logger.error("Unexpected scanner error for %r: %s", display_name, e, exc_info=True)
            return ScanOutcome.failure(
                ErrorCode.UNKNOWN_SCANNER_ERROR,
                str(e),
                identity=self._identity,
                states=self.states,
            )

        self._transition(SessionState.SUCCEEDED)
        logger.info("Scan of %r complete: %d bytes -> %s", display_name, bytes_written, output_path)
        return ScanOutcome(
            output_path=output_path,
            identity=self._identity,
            final_state=SessionState.SUCCEEDED,
            bytes_written=bytes_written,
            states=self.states,
        )

    @property
    def _identity(self) -> Optional[str]:
        return self._device.identity if self._device else None

    def _run(
        self,
        display_name: str,
        settings: Optional[ScanSettings],
        output_path: Optional[str],
    ) -> tuple[int, str]:
        self._transition(SessionState.RESOLVING)
        device = self._resolve(display_name)
        if settings is None:
            settings = ScanSettings.defaults(device.is_network, self.config)

        if device.is_network and not self._reachability(device):
            raise ScanSessionError(ErrorCode.NETWORK_SCANNER_UNREACHABLE, device.identity)

        with ExitStack() as stack:
            self._transition(SessionState.OPENING)
            handle = self._open(device)
            stack.callback(self._release, handle)

            self._transition(SessionState.LOCATING)
            item = self._locate(handle, stack)

            self._transition(SessionState.CONFIGURING)
            self._configure(item, device, settings)

            self._transition(SessionState.TRANSFERRING)
            path = output_path or self._generate_output_path(settings)
            return self._transfer(item, path), path

    def _resolve(self, display_name: str) -> DiscoveredDevice:
        device = self.registry.resolve(display_name)
        if device is None:
            raise ScanSessionError(ErrorCode.SCANNER_NOT_FOUND, display_name)
        self._device = device
        return device

    def _open(self, device: DiscoveredDevice) -> Any:
        try:
            handle = self.acquisition.open_device(device.identity)
        except AcquisitionError as e:
            code = _OPEN_FAULTS.get(e.fault, ErrorCode.SCANNER_CONNECTION_FAILED)
            raise ScanSessionError(code, e.detail) from e
        if handle is None:
            raise ScanSessionError(ErrorCode.SCANNER_CONNECTION_FAILED, "no device handle")
        return handle

    def _locate(self, handle: Any, stack: ExitStack) -> ScanItem:
        try:
            items = self.acquisition.enumerate_items(handle)
        except AcquisitionError as e:
            code = _LOCATE_FAULTS.get(e.fault, ErrorCode.SCANNER_ITEM_NOT_FOUND)
            raise ScanSessionError(code, e.detail) from e

        for item in items:
            stack.callback(self._release, item.handle)

        for item in items:
            if item.category in SCAN_CATEGORIES:
                logger.debug("Using %s item %s", item.category.value, item.name or item.handle)
                return item
        raise ScanSessionError(ErrorCode.SCANNER_ITEM_NOT_FOUND, f"{len(items)} child items")

    def _configure(self, item: ScanItem, device: DiscoveredDevice, settings: ScanSettings) -> None:
        if device.is_network:
            settings = settings.for_network(self.config)

        buffer_size = settings.buffer_size_bytes
        if buffer_size is not None and buffer_size < self.config.min_buffer_size:
            raise ScanSessionError(
                ErrorCode.BUFFER_TOO_SMALL,
                f"{buffer_size} < {self.config.min_buffer_size} bytes",
            )

        try:
            self.acquisition.apply_settings(item.handle, settings)
        except AcquisitionError as e:
            raise ScanSessionError(ErrorCode.SCANNER_PROPERTIES_FAILED, e.detail) from e

    def _generate_output_path(self, settings: ScanSettings) -> str:
        out_dir = self.config.output_dir
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ScanSessionError(ErrorCode.DATA_TRANSFER_FAILED, f"cannot create {out_dir}: {e}") from e
        return str(out_dir / f"scan_{uuid4().hex}.{settings.output_format.extension}")

    def _transfer(self, item: ScanItem, output_path: str) -> int:
        try:
            written = self.acquisition.transfer(item.handle, output_path)
        except AcquisitionError as e:
            code = _TRANSFER_FAULTS.get(e.fault, ErrorCode.SCAN_OPERATION_FAILED)
            raise ScanSessionError(code, e.detail) from e

        if not written:
            # An empty image after a reported success: ask the device why
            condition = self._pending_condition(item)
            code = _MECHANICAL_FAULTS.get(condition, ErrorCode.SCAN_FAILED)
            raise ScanSessionError(code, "transfer produced no data")
        return written

    def _pending_condition(self, item: ScanItem) -> Optional[AcquisitionFault]:
        try:
            return self.acquisition.check_condition(item.handle)
        except AcquisitionError as e:
            logger.debug("Condition check failed: %s", e)
            return None

    def _release(self, handle: Any) -> None:
        try:
            self.acquisition.release(handle)
        except AcquisitionError as e:
            logger.warning("Failed to release handle %r: %s", handle, e)
