"""Tests for the eSCL/HTTP range scanner.

HTTP is served by httpx.MockTransport and the TCP connect probe is
patched, so nothing leaves the process.
"""

import threading
import time
from unittest.mock import patch

import httpx
import pytest

from scanhub.config import EsclConfig
from scanhub.discovery.models import DeviceOrigin, DiscoveredDevice
from scanhub.discovery.probers import DeviceSink
from scanhub.discovery.probers.escl import (
    EsclRangeScanner,
    compose_name,
    extract_xml_value,
    has_scanner_signature,
)

_PATCH_CONNECT = "scanhub.discovery.probers.escl.can_connect"

_CAPABILITIES = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    "<scan:ScannerCapabilities>"
    "<pwg:Version>2.6</pwg:Version>"
    "<scan:Manufacturer>HP</scan:Manufacturer>"
    "<scan:ModelName>OfficeJet 8010</scan:ModelName>"
    "</scan:ScannerCapabilities>"
)


@pytest.fixture
def config():
    return EsclConfig(
        ports=[80, 8080],
        host_first=7,
        host_last=7,
        max_attempts=2,
        backoff_base=0.0,
        inter_attempt_delay=0.0,
    )


def _scanner(config, handler, prefixes=("10.0.0.",)):
    return EsclRangeScanner(
        config,
        prefix_provider=lambda: list(prefixes),
        http_transport=httpx.MockTransport(handler),
    )


def _capabilities_on_port(port):
    def handler(request: httpx.Request) -> httpx.Response:
        # httpx reports the default port as None
        request_port = request.url.port or 80
        if request_port == port and request.url.path == "/eSCL/ScannerCapabilities":
            return httpx.Response(
                200,
                text=_CAPABILITIES,
                headers={"content-type": "text/xml"},
            )
        return httpx.Response(404)
    return handler


def _not_found(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404)


# ---------------------------------------------------------------------------
# Response classification
# ---------------------------------------------------------------------------


class TestSignature:

    def test_escl_body(self):
        assert has_scanner_signature(httpx.Response(200, text="<ScannerCapabilities/>"))

    def test_xml_content_type_alone_is_not_enough(self):
        response = httpx.Response(200, text="<root/>", headers={"content-type": "application/xml"})
        assert not has_scanner_signature(response)

    def test_xml_body_with_escl_namespace(self):
        body = '<scan:ScannerStatus xmlns:scan="http://schemas.hp.com/imaging/escl/2011/05/03"/>'
        response = httpx.Response(200, text=body, headers={"content-type": "text/xml"})
        assert has_scanner_signature(response)

    def test_printer_html(self):
        response = httpx.Response(200, text="<html>Printer status</html>", headers={"content-type": "text/html"})
        assert has_scanner_signature(response)

    def test_plain_web_page(self):
        response = httpx.Response(200, text="<html>router login</html>", headers={"content-type": "text/html"})
        assert not has_scanner_signature(response)

    def test_non_200_rejected(self):
        response = httpx.Response(404, text="<ScannerCapabilities/>", headers={"content-type": "text/xml"})
        assert not has_scanner_signature(response)


class TestNaming:

    def test_extracts_namespaced_tags(self):
        assert extract_xml_value(_CAPABILITIES, ("manufacturer", "make")) == "HP"
        assert extract_xml_value(_CAPABILITIES, ("model", "modelname")) == "OfficeJet 8010"

    def test_missing_tag(self):
        assert extract_xml_value("<root/>", ("vendor",)) == ""

    def test_name_variants(self):
        assert compose_name("HP", "OfficeJet", "10.0.0.7", 80) == "HP OfficeJet (10.0.0.7:80)"
        assert compose_name("", "OfficeJet", "10.0.0.7", 80) == "OfficeJet (10.0.0.7:80)"
        assert compose_name("Canon", "", "10.0.0.7", 631) == "Canon Scanner (10.0.0.7:631)"
        assert compose_name("", "", "10.0.0.7", 8080) == "eSCL Scanner (10.0.0.7:8080)"


# ---------------------------------------------------------------------------
# Range scan
# ---------------------------------------------------------------------------


class TestRangeScan:

    def test_all_not_found_yields_nothing(self, config):
        with patch(_PATCH_CONNECT, return_value=True):
            assert _scanner(config, _not_found).probe(threading.Event()) == []

    def test_capabilities_hit_yields_named_device(self, config):
        with patch(_PATCH_CONNECT, return_value=True):
            devices = _scanner(config, _capabilities_on_port(80)).probe(threading.Event())

        assert len(devices) == 1
        device = devices[0]
        assert device.identity == "ESCL:10.0.0.7:80"
        assert device.origin == DeviceOrigin.ESCL
        assert device.display_name == "HP OfficeJet 8010 (10.0.0.7:80)"
        assert device.port == 80

    def test_first_answering_port_wins(self, config):
        with patch(_PATCH_CONNECT, return_value=True) as connect:
            devices = _scanner(config, _capabilities_on_port(80)).probe(threading.Event())

        assert [d.identity for d in devices] == ["ESCL:10.0.0.7:80"]
        assert [c.args[1] for c in connect.call_args_list] == [80]

    def test_later_port_found(self, config):
        with patch(_PATCH_CONNECT, return_value=True):
            devices = _scanner(config, _capabilities_on_port(8080)).probe(threading.Event())
        assert [d.identity for d in devices] == ["ESCL:10.0.0.7:8080"]

    def test_connect_retried_before_giving_up(self, config):
        with patch(_PATCH_CONNECT, side_effect=[False, True]):
            devices = _scanner(config, _capabilities_on_port(80)).probe(threading.Event())
        assert len(devices) == 1

    def test_closed_ports_skip_http(self, config):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(404)

        with patch(_PATCH_CONNECT, return_value=False) as connect:
            assert _scanner(config, handler).probe(threading.Event()) == []

        assert connect.call_count == len(config.ports) * config.max_attempts
        assert requests == []

    def test_results_ordered_by_prefix(self, config):
        with patch(_PATCH_CONNECT, return_value=True):
            scanner = _scanner(config, _capabilities_on_port(80), prefixes=("10.0.0.", "192.168.5."))
            devices = scanner.probe(threading.Event())
        assert [d.host for d in devices] == ["10.0.0.7", "192.168.5.7"]

    def test_cancelled_before_start(self, config):
        cancel = threading.Event()
        cancel.set()
        with patch(_PATCH_CONNECT, return_value=True) as connect:
            assert _scanner(config, _capabilities_on_port(80)).probe(cancel) == []
        connect.assert_not_called()


class TestPrefixes:

    def test_fallback_when_no_interfaces(self, config):
        scanner = EsclRangeScanner(config, prefix_provider=lambda: [])
        assert scanner.subnet_prefixes() == config.fallback_prefixes

    def test_fallback_when_enumeration_raises(self, config):
        def broken():
            raise RuntimeError("no interfaces")

        scanner = EsclRangeScanner(config, prefix_provider=broken)
        assert scanner.subnet_prefixes() == config.fallback_prefixes

    def test_local_prefixes_used(self, config):
        scanner = EsclRangeScanner(config, prefix_provider=lambda: ["172.20.1."])
        assert scanner.subnet_prefixes() == ["172.20.1."]


# ---------------------------------------------------------------------------
# Incremental reporting and cancellation
# ---------------------------------------------------------------------------


class TestIncrementalReporting:

    def test_sink_snapshot_in_lane_order(self):
        first = DiscoveredDevice.network(DeviceOrigin.ESCL, "10.0.0.7", "A (10.0.0.7:80)", 80)
        second = DiscoveredDevice.network(DeviceOrigin.ESCL, "192.168.5.7", "B (192.168.5.7:80)", 80)
        sink = DeviceSink()
        sink.open_lane("10.0.0.")
        sink.open_lane("192.168.5.")

        sink.add(second, lane="192.168.5.")
        sink.add(first, lane="10.0.0.")

        assert sink.snapshot() == [first, second]
        assert len(sink) == 2

    def test_hits_reported_to_sink(self, config):
        sink = DeviceSink()
        with patch(_PATCH_CONNECT, return_value=True):
            scanner = _scanner(config, _capabilities_on_port(80), prefixes=("10.0.0.", "192.168.5."))
            devices = scanner.probe(threading.Event(), sink)

        assert sink.snapshot() == devices
        assert [d.host for d in devices] == ["10.0.0.7", "192.168.5.7"]

    def test_cancel_interrupts_port_pacing(self, config):
        cancel = threading.Event()
        config.inter_attempt_delay = 5.0
        config.max_attempts = 1

        def refuse_and_cancel(ip, port, timeout):
            cancel.set()
            return False

        with patch(_PATCH_CONNECT, side_effect=refuse_and_cancel) as connect:
            start = time.monotonic()
            assert _scanner(config, _not_found).probe(cancel) == []
            elapsed = time.monotonic() - start

        assert connect.call_count == 1
        assert elapsed < 2.0
