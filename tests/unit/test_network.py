"""Tests for local host IP discovery."""

import socket
from ipaddress import IPv4Address
from unittest.mock import MagicMock, patch

import pytest

from member_cluster.exceptions import HostInterfaceError
from member_cluster.network import choose_host_ip


def fake_socket(address=None, error=None):
    sock = MagicMock()
    if error is not None:
        sock.connect.side_effect = error
    sock.getsockname.return_value = (address, 54321)
    return sock


def test_choose_host_ip_uses_default_route_source():
    """The socket's local address after connecting is the host IP."""
    sock = fake_socket("192.168.1.23")

    with patch("member_cluster.network.socket.socket", return_value=sock) as factory:
        assert choose_host_ip() == IPv4Address("192.168.1.23")

    factory.assert_called_once_with(socket.AF_INET, socket.SOCK_DGRAM)
    sock.connect.assert_called_once_with(("8.8.8.8", 80))
    sock.close.assert_called_once_with()


def test_choose_host_ip_without_route():
    """No default route is fatal."""
    sock = fake_socket(error=OSError(101, "Network is unreachable"))

    with patch("member_cluster.network.socket.socket", return_value=sock):
        with pytest.raises(HostInterfaceError, match="Unable to determine the local host IP"):
            choose_host_ip()

    sock.close.assert_called_once_with()


@pytest.mark.parametrize("address", ["127.0.0.1", "0.0.0.0"])
def test_choose_host_ip_rejects_unroutable(address):
    """Loopback and unspecified addresses are not usable host IPs."""
    with patch("member_cluster.network.socket.socket", return_value=fake_socket(address)):
        with pytest.raises(HostInterfaceError, match="not routable"):
            choose_host_ip()
