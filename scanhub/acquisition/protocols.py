"""
Protocol definitions for the platform acquisition binding.

The platform layer (device driver binding) implements AcquisitionService.
It reports failures by raising AcquisitionError with a fault kind; the
scan session maps fault kinds to canonical error codes per phase.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import ScanSettings


class AcquisitionFault(str, Enum):
    """Failure kinds reported by the acquisition binding."""
    ACCESS_DENIED = "access_denied"
    BUSY = "busy"
    OFFLINE = "offline"
    TIMEOUT = "timeout"
    PAPER_EMPTY = "paper_empty"
    PAPER_JAM = "paper_jam"
    COVER_OPEN = "cover_open"
    ITEM_NOT_FOUND = "item_not_found"
    TRANSFER_UNAVAILABLE = "transfer_unavailable"
    OTHER = "other"


class AcquisitionError(Exception):
    """Raised by an AcquisitionService; carries a fault kind and native diagnostic."""

    def __init__(self, fault: AcquisitionFault, detail: Optional[str] = None):
        self.fault = fault
        self.detail = detail
        super().__init__(f"{fault.value}: {detail}" if detail else fault.value)


class ItemCategory(str, Enum):
    """Category of a child item under an opened device."""
    FLATBED = "flatbed"
    FEEDER = "feeder"
    FILM = "film"
    FOLDER = "folder"
    OTHER = "other"


SCAN_CATEGORIES = frozenset({ItemCategory.FLATBED, ItemCategory.FEEDER})


@dataclass
class ScanItem:
    """A child item of an opened device."""
    handle: Any
    category: ItemCategory
    name: Optional[str] = None


@runtime_checkable
class AcquisitionService(Protocol):
    """
    Platform capability for enumerating and driving scanner devices.

    Handles returned by open_device() and enumerate_items() are opaque and
    must be given back to release() exactly once.
    """

    def enumerate_local_devices(self) -> list[tuple[str, str]]:
        """Return (display_name, handle) for each locally attached scanner."""
        ...

    def open_device(self, identity: str) -> Any:
        """Open a device by identity and return a device handle."""
        ...

    def enumerate_items(self, device: Any) -> list[ScanItem]:
        """List child items of an opened device."""
        ...

    def apply_settings(self, item: Any, settings: "ScanSettings") -> None:
        """Write scan settings to a child item."""
        ...

    def transfer(self, item: Any, output_path: str) -> int:
        """Stream image data to output_path; return bytes written."""
        ...

    def check_condition(self, item: Any) -> Optional[AcquisitionFault]:
        """Report a pending device condition (paper, cover), if any."""
        ...

    def release(self, handle: Any) -> None:
        """Release a device or item handle."""
        ...


class UnavailableAcquisitionService:
    """Placeholder binding for hosts without a scanner driver layer.

    Enumerates no local devices and refuses to open any device, so
    discovery still reports network scanners.
    """

    def enumerate_local_devices(self) -> list[tuple[str, str]]:
        return []

    def open_device(self, identity: str) -> Any:
        raise AcquisitionError(AcquisitionFault.OTHER, "no acquisition backend on this host")

    def enumerate_items(self, device: Any) -> list[ScanItem]:
        return []

    def apply_settings(self, item: Any, settings: "ScanSettings") -> None:
        raise AcquisitionError(AcquisitionFault.OTHER, "no acquisition backend on this host")

    def transfer(self, item: Any, output_path: str) -> int:
        raise AcquisitionError(AcquisitionFault.TRANSFER_UNAVAILABLE, "no acquisition backend on this host")

    def check_condition(self, item: Any) -> Optional[AcquisitionFault]:
        return None

    def release(self, handle: Any) -> None:
        return None
