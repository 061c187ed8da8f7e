import socket

import pytest

from tickrace.network import open_multicast_socket, open_tcp_connection


def test_open_tcp_connection_reaches_listener():
    with socket.create_server(("127.0.0.1", 0)) as server:
        port = server.getsockname()[1]
        with open_tcp_connection("127.0.0.1", port) as client:
            conn, _ = server.accept()
            with conn:
                assert client.getpeername()[1] == port
                client.sendall(b"ping")
                assert conn.recv(4) == b"ping"


def test_open_tcp_connection_refused():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as unused:
        unused.bind(("127.0.0.1", 0))
        port = unused.getsockname()[1]
        with pytest.raises(OSError):
            open_tcp_connection("127.0.0.1", port)


@pytest.mark.parametrize("group", ["not-an-address", "10.0.0.1", "127.0.0.1", "ff02::1"])
def test_open_multicast_socket_rejects_bad_groups(group):
    with pytest.raises(ValueError):
        open_multicast_socket(group, 0)