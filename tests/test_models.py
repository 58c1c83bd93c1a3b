"""Tests for discovery and acquisition data models."""

import pytest

from scanhub.acquisition import OutputFormat, ScanOutcome, ScanSettings, SessionState
from scanhub.config import ScanConfig
from scanhub.discovery import DeviceOrigin, DeviceRegistry, DiscoveredDevice, make_identity
from scanhub.errors import ErrorCode


# ---------------------------------------------------------------------------
# DiscoveredDevice
# ---------------------------------------------------------------------------


class TestDiscoveredDevice:

    def test_identity_formats(self):
        assert make_identity(DeviceOrigin.WSD, "10.0.0.2") == "WSD:10.0.0.2"
        assert make_identity(DeviceOrigin.MDNS, "10.0.0.2") == "MDNS:10.0.0.2"
        assert make_identity(DeviceOrigin.SSDP, "10.0.0.2") == "SSDP:10.0.0.2"
        assert make_identity(DeviceOrigin.ESCL, "10.0.0.2", 8080) == "ESCL:10.0.0.2:8080"

    def test_local_origin_has_no_network_identity(self):
        with pytest.raises(ValueError):
            make_identity(DeviceOrigin.LOCAL, "10.0.0.2")

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            DiscoveredDevice.local("wia-1", "")

    def test_network_host_and_port(self):
        device = DiscoveredDevice.network(DeviceOrigin.ESCL, "10.0.0.7", "eSCL Scanner (10.0.0.7:443)", 443)
        assert device.host == "10.0.0.7"
        assert device.port == 443
        assert device.is_network

    def test_port_absent_for_multicast_origins(self):
        device = DiscoveredDevice.network(DeviceOrigin.SSDP, "10.0.0.9", "SSDP Scanner (10.0.0.9)")
        assert device.port is None

    def test_local_has_no_host(self):
        device = DiscoveredDevice.local("{6BDD1FC6-810F}\\0000", "Flatbed")
        assert device.host is None
        assert device.port is None
        assert device.to_dict()["origin"] == "local"


# ---------------------------------------------------------------------------
# DeviceRegistry
# ---------------------------------------------------------------------------


class TestDeviceRegistry:

    def test_preserves_order_and_dedupes(self):
        a = DiscoveredDevice.local("wia-1", "Scanner")
        b = DiscoveredDevice.network(DeviceOrigin.WSD, "10.0.0.2", "Scanner")
        dup = DiscoveredDevice.network(DeviceOrigin.WSD, "10.0.0.2", "Other")
        registry = DeviceRegistry([a, b, dup])

        assert len(registry) == 2
        assert registry.names() == ["Scanner", "Scanner"]
        assert registry.resolve("Scanner") is a
        assert registry.by_identity("WSD:10.0.0.2") is b

    def test_resolve_missing(self):
        assert DeviceRegistry().resolve("Anything") is None

    def test_local_and_network_split(self):
        a = DiscoveredDevice.local("wia-1", "Local")
        b = DiscoveredDevice.network(DeviceOrigin.MDNS, "10.0.0.3", "mDNS Scanner (10.0.0.3)")
        registry = DeviceRegistry([a, b])

        assert registry.local_devices() == [a]
        assert registry.network_devices() == [b]
        assert [d["identity"] for d in registry.to_list()] == ["wia-1", "MDNS:10.0.0.3"]

    def test_snapshot_is_immutable(self):
        registry = DeviceRegistry([DiscoveredDevice.local("wia-1", "Local")])
        assert isinstance(registry.devices, tuple)
        with pytest.raises(AttributeError):
            registry.devices[0].display_name = "Renamed"


# ---------------------------------------------------------------------------
# Settings and outcome
# ---------------------------------------------------------------------------


class TestScanSettings:

    def test_defaults_by_device_kind(self):
        config = ScanConfig()
        assert ScanSettings.defaults(False, config).resolution_dpi == 300
        network = ScanSettings.defaults(True, config)
        assert network.resolution_dpi == 200
        assert network.buffer_size_bytes == 32768

    def test_for_network_keeps_explicit_buffer(self):
        settings = ScanSettings(resolution_dpi=150, buffer_size_bytes=65536).for_network(ScanConfig())
        assert settings.resolution_dpi == 150
        assert settings.buffer_size_bytes == 65536

    def test_jpeg_extension(self):
        assert OutputFormat.JPEG.extension == "jpg"
        assert OutputFormat.PDF.extension == "pdf"


class TestScanOutcome:

    def test_failure(self):
        outcome = ScanOutcome.failure(ErrorCode.COVER_OPEN, "lid up", identity="wia-1")

        assert not outcome.ok
        assert outcome.final_state == SessionState.FAILED
        assert outcome.to_dict()["error"] == "COVER_OPEN"

    def test_success_requires_path(self):
        assert ScanOutcome(output_path="/tmp/x.bmp").ok
        assert not ScanOutcome().ok
