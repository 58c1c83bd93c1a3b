"""
scanhub - scanner discovery and scan sessions.

Discovers locally attached and network document scanners and drives
scan sessions against them, reporting every failure as one canonical
error code.
"""

from .advisor import Advice, advise
from .errors import ErrorCode, ScanSessionError
from .service import ScannerService

__version__ = "0.1.0"

__all__ = [
    "Advice",
    "ErrorCode",
    "ScanSessionError",
    "ScannerService",
    "advise",
]
