"""Trading engine: answers each multicast challenge over TCP."""

from __future__ import annotations

import argparse
import socket
import sys

from tickrace.network import open_multicast_socket, open_tcp_connection
from tickrace.parsing import build_response

DEFAULT_TRADER_NAME = "SebsBoys"
DEFAULT_BUFFER_SIZE = 400
DEFAULT_UDP_GROUP = "239.255.0.1"
DEFAULT_UDP_PORT = 3001
DEFAULT_TCP_HOST = "127.0.0.1"
DEFAULT_TCP_PORT = 4000


def respond(
    udp_socket: socket.socket,
    tcp_socket: socket.socket,
    trader_name: str,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> str:
    """Receive one challenge, send the response over TCP and return it."""
    datagram, _sender = udp_socket.recvfrom(buffer_size)
    response = build_response(datagram.decode("ascii"), trader_name)
    tcp_socket.sendall(response.encode("ascii"))
    return response


def trade(
    name: str = DEFAULT_TRADER_NAME,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    udp_group: str = DEFAULT_UDP_GROUP,
    udp_port: int = DEFAULT_UDP_PORT,
    tcp_host: str = DEFAULT_TCP_HOST,
    tcp_port: int = DEFAULT_TCP_PORT,
) -> int:
    """Answer challenges until something fails; return 1 on failure."""
    try:
        with open_multicast_socket(udp_group, udp_port) as udp_socket, open_tcp_connection(
            tcp_host, tcp_port
        ) as tcp_socket:
            while True:
                response = respond(udp_socket, tcp_socket, name, buffer_size)
                print(f"SENT: {response}", flush=True)
    except Exception as exc:  # any failure ends trading with an error status
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point for the trading engine."""
    parser = argparse.ArgumentParser(description="Answer market-data challenges.")
    parser.add_argument("--name", default=DEFAULT_TRADER_NAME)
    parser.add_argument("--buffer-size", type=int, default=DEFAULT_BUFFER_SIZE)
    parser.add_argument("--udp-group", default=DEFAULT_UDP_GROUP)
    parser.add_argument("--udp-port", type=int, default=DEFAULT_UDP_PORT)
    parser.add_argument("--tcp-host", default=DEFAULT_TCP_HOST)
    parser.add_argument("--tcp-port", type=int, default=DEFAULT_TCP_PORT)
    args = parser.parse_args(argv)
    return trade(
        args.name,
        args.buffer_size,
        args.udp_group,
        args.udp_port,
        args.tcp_host,
        args.tcp_port,
    )


if __name__ == "__main__":
    sys.exit(main())