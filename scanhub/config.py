"""
Centralized configuration management using Pydantic Settings.

Configuration is loaded from environment variables with sensible defaults.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiscoveryConfig(BaseSettings):
    """Network scanner discovery configuration."""

    model_config = SettingsConfigDict(env_prefix="SCANHUB_DISCOVERY_")

    wsd_enabled: bool = Field(default=True, description="Enable WS-Discovery probing")
    mdns_enabled: bool = Field(default=True, description="Enable multicast DNS probing")
    ssdp_enabled: bool = Field(default=True, description="Enable SSDP probing")
    escl_enabled: bool = Field(default=True, description="Enable eSCL/HTTP range scanning")
    overall_timeout: float = Field(
        default=10.0,
        description="Wall-clock cap in seconds on waiting for network probers",
    )
    wsd_window: float = Field(default=2.0, description="Listen window per WS-Discovery probe variant")
    mdns_window: float = Field(default=1.0, description="Listen window per mDNS service query")
    ssdp_window: float = Field(default=2.0, description="Listen window per SSDP M-SEARCH")
    receive_buffer_size: int = Field(default=4096, description="Datagram receive buffer in bytes")


class EsclConfig(BaseSettings):
    """eSCL/HTTP subnet range scanner configuration."""

    model_config = SettingsConfigDict(env_prefix="SCANHUB_ESCL_")

    ports: list[int] = Field(
        default=[80, 443, 8080, 8443, 631],
        description="Ports probed per host, in order",
    )
    connect_timeout: float = Field(default=1.0, description="Per-attempt TCP connect/GET timeout")
    info_timeout: float = Field(default=2.0, description="Timeout for capability/info XML fetches")
    max_attempts: int = Field(default=2, description="Attempts per (host, port) pair")
    backoff_base: float = Field(default=0.1, description="Base delay for exponential backoff")
    inter_attempt_delay: float = Field(
        default=0.01,
        description="Delay between sequential port attempts on the same host",
    )
    fallback_prefixes: list[str] = Field(
        default=["192.168.1.", "192.168.0.", "10.0.0.", "172.16.0."],
        description="Subnet prefixes scanned when no local interface is found",
    )
    host_first: int = Field(default=1, description="First host suffix scanned per prefix")
    host_last: int = Field(default=254, description="Last host suffix scanned per prefix")

    @field_validator("fallback_prefixes")
    @classmethod
    def normalize_prefixes(cls, v: list[str]) -> list[str]:
        """Ensure every prefix ends with a dot."""
        return [p if p.endswith(".") else f"{p}." for p in v]


class ScanConfig(BaseSettings):
    """Scan session configuration."""

    model_config = SettingsConfigDict(env_prefix="SCANHUB_SCAN_")

    local_resolution: int = Field(default=300, description="Default DPI for local devices")
    network_resolution: int = Field(default=200, description="Default DPI for network devices")
    network_buffer_size: int = Field(
        default=32768,
        description="Transfer buffer size in bytes for network devices",
    )
    min_buffer_size: int = Field(default=4096, description="Smallest accepted transfer buffer")
    precheck_timeout: float = Field(default=2.0, description="Network reachability pre-check timeout")
    precheck_ports: list[int] = Field(
        default=[80, 443, 631, 5357, 8080],
        description="Ports tried by the reachability pre-check when the identity has none",
    )
    output_dir: Path = Field(default=Path("scans"), description="Directory for generated scan files")


class Settings(BaseSettings):
    """Root settings for scanhub."""

    model_config = SettingsConfigDict(
        env_prefix="SCANHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # General
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Nested configs
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    escl: EsclConfig = Field(default_factory=EsclConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)


# Singleton settings instance
settings = Settings()
