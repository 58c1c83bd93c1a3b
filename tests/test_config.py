"""Tests for environment-driven configuration."""

from pathlib import Path

from scanhub.config import DiscoveryConfig, EsclConfig, ScanConfig, Settings


class TestDefaults:

    def test_discovery_defaults(self):
        config = DiscoveryConfig()
        assert config.overall_timeout == 10.0
        assert config.wsd_enabled and config.mdns_enabled and config.ssdp_enabled and config.escl_enabled

    def test_escl_defaults(self):
        config = EsclConfig()
        assert config.ports == [80, 443, 8080, 8443, 631]
        assert config.fallback_prefixes[0] == "192.168.1."
        assert (config.host_first, config.host_last) == (1, 254)

    def test_scan_defaults(self):
        config = ScanConfig()
        assert config.local_resolution == 300
        assert config.network_resolution == 200
        assert config.output_dir == Path("scans")


class TestOverrides:

    def test_prefix_normalized(self):
        assert EsclConfig(fallback_prefixes=["10.1.1", "10.2.2."]).fallback_prefixes == ["10.1.1.", "10.2.2."]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SCANHUB_DISCOVERY_OVERALL_TIMEOUT", "3.5")
        monkeypatch.setenv("SCANHUB_ESCL_PORTS", "[80, 631]")
        monkeypatch.setenv("SCANHUB_DISCOVERY_SSDP_ENABLED", "false")

        assert DiscoveryConfig().overall_timeout == 3.5
        assert DiscoveryConfig().ssdp_enabled is False
        assert EsclConfig().ports == [80, 631]

    def test_root_settings(self, monkeypatch):
        monkeypatch.setenv("SCANHUB_LOG_LEVEL", "DEBUG")
        settings = Settings()
        assert settings.log_level == "DEBUG"
        assert isinstance(settings.scan, ScanConfig)
