"""
Local network interface enumeration.

Produces the /24 subnet prefixes ("192.168.1.") scanned by the eSCL
range scanner, one per active non-loopback IPv4 adapter.
"""

import ipaddress
import logging
import socket

import psutil

logger = logging.getLogger("scanhub.discovery.interfaces")


def enumerate_subnet_prefixes() -> list[str]:
    """Return unique /24 prefixes for every active IPv4 interface."""
    prefixes: list[str] = []

    try:
        addrs = psutil.net_if_addrs()
        stats = psutil.net_if_stats()
    except (OSError, RuntimeError) as e:
        logger.warning("Interface enumeration failed: %s", e)
        return prefixes

    for ifname, entries in addrs.items():
        st = stats.get(ifname)
        if not st or not st.isup:
            continue

        for entry in entries:
            if entry.family != socket.AF_INET or not entry.address:
                continue
            try:
                ip = ipaddress.IPv4Address(entry.address)
            except ValueError:
                continue
            if ip.is_loopback or ip.is_link_local or ip.is_unspecified:
                continue

            prefix = entry.address.rsplit(".", 1)[0] + "."
            if prefix not in prefixes:
                logger.debug("Interface %s contributes prefix %s", ifname, prefix)
                prefixes.append(prefix)

    return prefixes
