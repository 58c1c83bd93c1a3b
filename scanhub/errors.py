"""
Canonical error vocabulary for discovery and scan sessions.

Every failure surfaced to a caller is one ErrorCode. Codes are chosen
where the failure happens and are never inferred from message text.
"""

import errno
import socket
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Closed set of canonical scanner error codes."""

    # Identity resolution
    SCANNER_NOT_FOUND = "SCANNER_NOT_FOUND"

    # Connection
    SCANNER_BUSY = "SCANNER_BUSY"
    SCANNER_OFFLINE = "SCANNER_OFFLINE"
    SCANNER_TIMEOUT = "SCANNER_TIMEOUT"
    SCANNER_CONNECTION_FAILED = "SCANNER_CONNECTION_FAILED"
    NETWORK_SCANNER_UNREACHABLE = "NETWORK_SCANNER_UNREACHABLE"

    # Device mechanical
    NO_PAPER = "NO_PAPER"
    PAPER_JAM = "PAPER_JAM"
    COVER_OPEN = "COVER_OPEN"

    # Locating / configuration
    SCANNER_ITEM_NOT_FOUND = "SCANNER_ITEM_NOT_FOUND"
    SCANNER_PROPERTIES_FAILED = "SCANNER_PROPERTIES_FAILED"

    # Transfer
    DATA_TRANSFER_FAILED = "DATA_TRANSFER_FAILED"
    SCAN_OPERATION_FAILED = "SCAN_OPERATION_FAILED"
    SCAN_FAILED = "SCAN_FAILED"

    # Plumbing
    PLUGIN_NOT_INITIALIZED = "PLUGIN_NOT_INITIALIZED"
    BUFFER_TOO_SMALL = "BUFFER_TOO_SMALL"
    UNKNOWN_SCANNER_ERROR = "UNKNOWN_SCANNER_ERROR"

    # Native network diagnostics
    NETWORK_DOWN = "NETWORK_DOWN"
    NETWORK_UNREACHABLE = "NETWORK_UNREACHABLE"
    SCANNER_CONNECTION_REFUSED = "SCANNER_CONNECTION_REFUSED"
    SCANNER_HOST_UNREACHABLE = "SCANNER_HOST_UNREACHABLE"
    SCANNER_HOST_DOWN = "SCANNER_HOST_DOWN"
    NETWORK_BUFFER_FULL = "NETWORK_BUFFER_FULL"
    NETWORK_MESSAGE_TOO_LARGE = "NETWORK_MESSAGE_TOO_LARGE"
    SCANNER_CONNECTION_RESET = "SCANNER_CONNECTION_RESET"
    SCANNER_CONNECTION_ABORTED = "SCANNER_CONNECTION_ABORTED"
    SCANNER_ADDRESS_NOT_AVAILABLE = "SCANNER_ADDRESS_NOT_AVAILABLE"
    INVALID_SCANNER_ADDRESS = "INVALID_SCANNER_ADDRESS"
    NETWORK_SCANNER_UNKNOWN_ERROR = "NETWORK_SCANNER_UNKNOWN_ERROR"

    # eSCL HTTP diagnostics
    ESCL_BAD_REQUEST = "ESCL_BAD_REQUEST"
    ESCL_UNAUTHORIZED = "ESCL_UNAUTHORIZED"
    ESCL_FORBIDDEN = "ESCL_FORBIDDEN"
    ESCL_NOT_FOUND = "ESCL_NOT_FOUND"
    ESCL_CONFLICT = "ESCL_CONFLICT"
    ESCL_INTERNAL_SERVER_ERROR = "ESCL_INTERNAL_SERVER_ERROR"
    ESCL_SERVICE_UNAVAILABLE = "ESCL_SERVICE_UNAVAILABLE"


class ScanSessionError(Exception):
    """A scan failure tagged with its canonical code."""

    def __init__(self, code: ErrorCode, detail: Optional[str] = None):
        self.code = code
        self.detail = detail
        message = code.value if not detail else f"{code.value}: {detail}"
        super().__init__(message)


_ERRNO_CODES: dict[int, ErrorCode] = {
    errno.ENETDOWN: ErrorCode.NETWORK_DOWN,
    errno.ENETUNREACH: ErrorCode.NETWORK_UNREACHABLE,
    errno.ETIMEDOUT: ErrorCode.SCANNER_TIMEOUT,
    errno.ECONNREFUSED: ErrorCode.SCANNER_CONNECTION_REFUSED,
    errno.EHOSTUNREACH: ErrorCode.SCANNER_HOST_UNREACHABLE,
    errno.EHOSTDOWN: ErrorCode.SCANNER_HOST_DOWN,
    errno.ENOBUFS: ErrorCode.NETWORK_BUFFER_FULL,
    errno.EMSGSIZE: ErrorCode.NETWORK_MESSAGE_TOO_LARGE,
    errno.ECONNRESET: ErrorCode.SCANNER_CONNECTION_RESET,
    errno.ECONNABORTED: ErrorCode.SCANNER_CONNECTION_ABORTED,
    errno.EADDRNOTAVAIL: ErrorCode.SCANNER_ADDRESS_NOT_AVAILABLE,
    errno.EINVAL: ErrorCode.INVALID_SCANNER_ADDRESS,
}

_HTTP_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.ESCL_BAD_REQUEST,
    401: ErrorCode.ESCL_UNAUTHORIZED,
    403: ErrorCode.ESCL_FORBIDDEN,
    404: ErrorCode.ESCL_NOT_FOUND,
    409: ErrorCode.ESCL_CONFLICT,
    500: ErrorCode.ESCL_INTERNAL_SERVER_ERROR,
    503: ErrorCode.ESCL_SERVICE_UNAVAILABLE,
}

_NETWORK_CODES = frozenset({
    ErrorCode.NETWORK_DOWN,
    ErrorCode.NETWORK_UNREACHABLE,
    ErrorCode.SCANNER_TIMEOUT,
    ErrorCode.SCANNER_CONNECTION_REFUSED,
    ErrorCode.SCANNER_HOST_UNREACHABLE,
    ErrorCode.SCANNER_HOST_DOWN,
    ErrorCode.SCANNER_OFFLINE,
    ErrorCode.SCANNER_BUSY,
    ErrorCode.NETWORK_SCANNER_UNREACHABLE,
})


def map_socket_error(exc: OSError) -> ErrorCode:
    """Map a socket-level OSError to its canonical network code."""
    if isinstance(exc, (socket.timeout, TimeoutError)) and exc.errno is None:
        return ErrorCode.SCANNER_TIMEOUT
    if exc.errno in _ERRNO_CODES:
        return _ERRNO_CODES[exc.errno]
    return ErrorCode.NETWORK_SCANNER_UNKNOWN_ERROR


def map_http_status(status: int) -> Optional[ErrorCode]:
    """Map an eSCL HTTP status to a diagnostic code; None for non-error statuses."""
    if status in _HTTP_CODES:
        return _HTTP_CODES[status]
    if status >= 400:
        return ErrorCode.NETWORK_SCANNER_UNKNOWN_ERROR
    return None


def is_network_error(code: ErrorCode) -> bool:
    """True when the code describes a transport or reachability problem."""
    return code in _NETWORK_CODES
