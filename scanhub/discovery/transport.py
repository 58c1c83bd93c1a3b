"""
Raw UDP/TCP probe primitives with per-operation timeouts.

Timeouts are a normal outcome here: an empty result means nobody answered.
Sockets are closed on every exit path.
"""

import logging
import socket
import threading
import time
from typing import Optional

logger = logging.getLogger("scanhub.discovery.transport")

Response = tuple[str, bytes]  # (sender address, response bytes)


def send_and_collect(
    payload: bytes,
    destination: str,
    port: int,
    listen_duration: float,
    buffer_size: int = 4096,
    broadcast: bool = False,
    cancel: Optional[threading.Event] = None,
) -> list[Response]:
    """
    Send one datagram and collect every reply until the window closes.

    Args:
        payload: Datagram to send
        destination: Multicast group, broadcast or unicast address
        port: Destination port
        listen_duration: Receive window in seconds
        buffer_size: Max bytes read per datagram
        broadcast: Enable SO_BROADCAST before sending
        cancel: Optional token; stops collecting once set

    Returns:
        List of (sender_ip, data) in arrival order

    Raises:
        OSError: If the socket cannot be created or the send fails.
            Receive errors and timeouts end collection silently.
    """
    responses: list[Response] = []

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if broadcast:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.settimeout(listen_duration)
        sock.bind(("", 0))

        sock.sendto(payload, (destination, port))

        end_time = time.monotonic() + listen_duration
        while True:
            if cancel is not None and cancel.is_set():
                break
            remaining = end_time - time.monotonic()
            if remaining <= 0:
                break
            sock.settimeout(remaining)
            try:
                data, addr = sock.recvfrom(buffer_size)
            except socket.timeout:
                break
            except OSError as e:
                logger.debug("Receive from %s:%d ended: %s", destination, port, e)
                break
            responses.append((addr[0], data))
    finally:
        sock.close()

    return responses


def can_connect(host: str, port: int, timeout: float) -> bool:
    """Return True if a TCP connection to host:port completes within timeout."""
    try:
        conn = socket.create_connection((host, port), timeout=timeout)
    except OSError:
        return False
    conn.close()
    return True
