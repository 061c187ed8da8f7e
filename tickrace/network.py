"""Socket setup for the trading engine."""

from __future__ import annotations

import ipaddress
import socket
import struct


def open_tcp_connection(host: str, port: int) -> socket.socket:
    """Resolve ``host`` and return a TCP socket connected to it."""
    return socket.create_connection((host, port))


def open_multicast_socket(group: str, port: int) -> socket.socket:
    """Return a UDP socket bound to ``port`` that has joined the IPv4 ``group``."""
    address = ipaddress.ip_address(group)
    if address.version != 4 or not address.is_multicast:
        raise ValueError(f"not an IPv4 multicast address: {group}")

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("", port))
        membership = struct.pack("4s4s", address.packed, socket.inet_aton("0.0.0.0"))
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, membership)
    except OSError:
        sock.close()
        raise
    return sock