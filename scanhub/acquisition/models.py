"""
Scan settings and session outcome models.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from ..config import ScanConfig
from ..errors import ErrorCode


class ColorMode(str, Enum):
    COLOR = "color"
    GRAYSCALE = "grayscale"
    BLACK_WHITE = "black_white"


class OutputFormat(str, Enum):
    PDF = "pdf"
    JPEG = "jpeg"
    PNG = "png"
    TIFF = "tiff"
    BMP = "bmp"

    @property
    def extension(self) -> str:
        return "jpg" if self is OutputFormat.JPEG else self.value


class SessionState(str, Enum):
    """States of one scan session."""
    IDLE = "idle"
    RESOLVING = "resolving"
    OPENING = "opening"
    LOCATING = "locating"
    CONFIGURING = "configuring"
    TRANSFERRING = "transferring"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ScanSettings:
    """Requested scan parameters."""

    resolution_dpi: int = 300
    color_mode: ColorMode = ColorMode.COLOR
    output_format: OutputFormat = OutputFormat.BMP
    buffer_size_bytes: Optional[int] = None

    @classmethod
    def defaults(cls, is_network: bool, config: Optional[ScanConfig] = None) -> "ScanSettings":
        """Defaults by device kind; network devices get lower DPI and an explicit buffer."""
        config = config or ScanConfig()
        if is_network:
            return cls(
                resolution_dpi=config.network_resolution,
                buffer_size_bytes=config.network_buffer_size,
            )
        return cls(resolution_dpi=config.local_resolution)

    def for_network(self, config: ScanConfig) -> "ScanSettings":
        """Clamp resolution and fill the transfer buffer for a network device."""
        return replace(
            self,
            resolution_dpi=min(self.resolution_dpi, config.network_resolution),
            buffer_size_bytes=self.buffer_size_bytes or config.network_buffer_size,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "resolution_dpi": self.resolution_dpi,
            "color_mode": self.color_mode.value,
            "output_format": self.output_format.value,
            "buffer_size_bytes": self.buffer_size_bytes,
        }


@dataclass
class ScanOutcome:
    """Result of one scan session: an output path or a canonical error."""

    output_path: Optional[str] = None
    error: Optional[ErrorCode] = None
    detail: Optional[str] = None
    identity: Optional[str] = None
    final_state: SessionState = SessionState.IDLE
    bytes_written: int = 0
    states: list[SessionState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and self.output_path is not None

    @classmethod
    def failure(cls, code: ErrorCode, detail: Optional[str] = None, **kwargs: Any) -> "ScanOutcome":
        return cls(error=code, detail=detail, final_state=SessionState.FAILED, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "output_path": self.output_path,
            "error": self.error.value if self.error else None,
            "detail": self.detail,
            "identity": self.identity,
            "final_state": self.final_state.value,
            "bytes_written": self.bytes_written,
        }
