"""
Scan acquisition: the platform binding contract, scan settings and the
scan session state machine.
"""

from .protocols import (
    AcquisitionError,
    AcquisitionFault,
    AcquisitionService,
    ItemCategory,
    ScanItem,
    UnavailableAcquisitionService,
)
from .models import ColorMode, OutputFormat, ScanOutcome, ScanSettings, SessionState
from .session import ScanSession, tcp_reachability

__all__ = [
    "AcquisitionError",
    "AcquisitionFault",
    "AcquisitionService",
    "ItemCategory",
    "ScanItem",
    "UnavailableAcquisitionService",
    "ColorMode",
    "OutputFormat",
    "ScanOutcome",
    "ScanSettings",
    "SessionState",
    "ScanSession",
    "tcp_reachability",
]
