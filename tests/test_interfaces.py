"""Tests for local interface prefix enumeration."""

import socket
from types import SimpleNamespace
from unittest.mock import patch

from scanhub.discovery.interfaces import enumerate_subnet_prefixes


def _addr(family, address):
    return SimpleNamespace(family=family, address=address)


def _patched(addrs, stats):
    return (
        patch("scanhub.discovery.interfaces.psutil.net_if_addrs", return_value=addrs),
        patch("scanhub.discovery.interfaces.psutil.net_if_stats", return_value=stats),
    )


class TestEnumerateSubnetPrefixes:

    def test_active_ipv4_interfaces(self):
        addrs = {
            "lo": [_addr(socket.AF_INET, "127.0.0.1")],
            "eth0": [_addr(socket.AF_INET, "192.168.1.23"), _addr(socket.AF_INET6, "fe80::1")],
            "wlan0": [_addr(socket.AF_INET, "10.0.5.7")],
            "docker0": [_addr(socket.AF_INET, "172.17.0.1")],
            "eth1": [_addr(socket.AF_INET, "169.254.3.4")],
        }
        stats = {
            "lo": SimpleNamespace(isup=True),
            "eth0": SimpleNamespace(isup=True),
            "wlan0": SimpleNamespace(isup=True),
            "docker0": SimpleNamespace(isup=False),
            "eth1": SimpleNamespace(isup=True),
        }
        p_addrs, p_stats = _patched(addrs, stats)
        with p_addrs, p_stats:
            assert enumerate_subnet_prefixes() == ["192.168.1.", "10.0.5."]

    def test_duplicate_prefixes_collapsed(self):
        addrs = {
            "eth0": [_addr(socket.AF_INET, "192.168.1.23")],
            "eth1": [_addr(socket.AF_INET, "192.168.1.99")],
        }
        stats = {name: SimpleNamespace(isup=True) for name in addrs}
        p_addrs, p_stats = _patched(addrs, stats)
        with p_addrs, p_stats:
            assert enumerate_subnet_prefixes() == ["192.168.1."]

    def test_enumeration_error(self):
        with patch("scanhub.discovery.interfaces.psutil.net_if_addrs", side_effect=OSError("denied")):
            assert enumerate_subnet_prefixes() == []
