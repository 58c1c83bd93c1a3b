"""
Troubleshooting advice for canonical scanner error codes.

advise() is a pure lookup: the same code always yields the same message
and the same ordered suggestions.
"""

from dataclasses import dataclass
from typing import Union

from .errors import ErrorCode


@dataclass(frozen=True)
class Advice:
    """Human-readable message plus ordered remediation hints."""

    code: str
    message: str
    suggestions: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "suggestions": list(self.suggestions),
        }


MESSAGES: dict[str, str] = {
    "SCANNER_NOT_FOUND": "The selected scanner was not found",
    "SCANNER_BUSY": "The scanner is busy",
    "SCANNER_OFFLINE": "The scanner is offline",
    "SCANNER_TIMEOUT": "The scanner timed out",
    "SCANNER_CONNECTION_FAILED": "Could not connect to the scanner",
    "NETWORK_SCANNER_UNREACHABLE": "The network scanner cannot be reached",
    "NO_PAPER": "There is no paper in the scanner",
    "PAPER_JAM": "Paper is jammed in the scanner",
    "COVER_OPEN": "The scanner cover is open",
    "SCANNER_ITEM_NOT_FOUND": "No flatbed or document feeder was found on the scanner",
    "SCANNER_PROPERTIES_FAILED": "The scan settings could not be applied",
    "DATA_TRANSFER_FAILED": "The scanner could not start the image transfer",
    "SCAN_OPERATION_FAILED": "The scan operation failed",
    "SCAN_FAILED": "The scan produced no image",
    "PLUGIN_NOT_INITIALIZED": "The scanner service is not initialized",
    "BUFFER_TOO_SMALL": "The transfer buffer is too small",
    "UNKNOWN_SCANNER_ERROR": "An unknown scanner error occurred",
    "NETWORK_DOWN": "The network connection is down",
    "NETWORK_UNREACHABLE": "The network is unreachable",
    "SCANNER_CONNECTION_REFUSED": "The scanner refused the connection",
    "SCANNER_HOST_UNREACHABLE": "The scanner host is unreachable",
    "SCANNER_HOST_DOWN": "The scanner host is down",
    "NETWORK_BUFFER_FULL": "The network buffer is full",
    "NETWORK_MESSAGE_TOO_LARGE": "The data is too large for the network",
    "SCANNER_CONNECTION_RESET": "The connection to the scanner was reset",
    "SCANNER_CONNECTION_ABORTED": "The connection to the scanner was aborted",
    "SCANNER_ADDRESS_NOT_AVAILABLE": "The scanner address is not available",
    "INVALID_SCANNER_ADDRESS": "The scanner address is invalid",
    "NETWORK_SCANNER_UNKNOWN_ERROR": "An unknown network scanner error occurred",
    "ESCL_BAD_REQUEST": "The scanner rejected the request",
    "ESCL_UNAUTHORIZED": "The scanner requires authorization",
    "ESCL_FORBIDDEN": "Access to the scanner is forbidden",
    "ESCL_NOT_FOUND": "The scanner service endpoint was not found",
    "ESCL_CONFLICT": "The scanner reported a conflicting job",
    "ESCL_INTERNAL_SERVER_ERROR": "The scanner reported an internal error",
    "ESCL_SERVICE_UNAVAILABLE": "The scanner service is unavailable",
}

# (substrings, suggestions) in declaration order
SUGGESTION_BUCKETS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (
        ("NETWORK", "WIFI"),
        (
            "Check your Wi-Fi or Ethernet connection",
            "Restart the router",
            "Make sure the scanner is connected to the same network",
        ),
    ),
    (
        ("TIMEOUT",),
        (
            "Move closer to the router and try again",
            "Try again when network traffic is lower",
            "Increase the scanner timeout in the settings",
        ),
    ),
    (
        ("UNREACHABLE", "HOST_DOWN"),
        (
            "Check the scanner's IP address",
            "Restart the scanner",
            "Check the firewall settings",
        ),
    ),
    (
        ("BUSY", "LOCKED"),
        (
            "Check whether the scanner is running another job",
            "Wait a few minutes and try again",
            "Cancel pending jobs from the scanner panel",
        ),
    ),
    (
        ("ACCESS_DENIED", "UNAUTHORIZED"),
        (
            "Check the scanner security settings",
            "Check whether a username and password are required",
            "Check the scanner access permissions",
        ),
    ),
    (
        ("ESCL",),
        (
            "Make sure AirPrint/eSCL scanning is enabled on the scanner",
            "Update the scanner firmware",
            "Check the eSCL settings in the scanner web interface",
        ),
    ),
)

GENERIC_SUGGESTIONS: tuple[str, ...] = (
    "Update the scanner drivers",
    "Restart the computer",
    "Contact your system administrator",
)


def advise(code: Union[ErrorCode, str]) -> Advice:
    """Return the message and ordered troubleshooting suggestions for a code."""
    raw = code.value if isinstance(code, ErrorCode) else str(code)

    message = MESSAGES.get(raw, f"Unknown scanner error: {raw}")

    suggestions: list[str] = []
    for needles, hints in SUGGESTION_BUCKETS:
        if any(needle in raw for needle in needles):
            suggestions.extend(hints)
    suggestions.extend(GENERIC_SUGGESTIONS)

    return Advice(code=raw, message=message, suggestions=tuple(suggestions))
