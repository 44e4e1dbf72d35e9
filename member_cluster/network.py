"""Local host address discovery and member cluster endpoint selection."""

import ipaddress
import socket
from collections.abc import Iterable
from ipaddress import IPv4Address, IPv6Address

from member_cluster.exceptions import HostInterfaceError, InvalidCIDRError
from member_cluster.logging_config import get_logger
from member_cluster.models.cluster import ServerAddressByClientCIDR

logger = get_logger(__name__)

# Any routable address works; connecting a UDP socket sends no packets
_ROUTE_PROBE_ADDRESSES = {
    socket.AF_INET: ("8.8.8.8", 80),
    socket.AF_INET6: ("2001:4860:4860::8888", 80),
}


def choose_host_ip(family: int = socket.AF_INET) -> IPv4Address | IPv6Address:
    """
    Determine the source address of the host's default route.

    Args:
        family: Address family to probe (AF_INET or AF_INET6)

    Returns:
        The local address the kernel would use for outbound traffic.

    Raises:
        HostInterfaceError: If no usable outbound address exists.
    """
    target = _ROUTE_PROBE_ADDRESSES[family]
    sock = socket.socket(family, socket.SOCK_DGRAM)
    try:
        sock.connect(target)
        local_ip = sock.getsockname()[0]
    except OSError as e:
        logger.error(f"Failed to determine local host IP: {e}")
        raise HostInterfaceError(
            "Unable to determine the local host IP",
            f"No default route is available for outbound traffic: {e}",
        )
    finally:
        sock.close()

    address = ipaddress.ip_address(local_ip)
    if address.is_loopback or address.is_unspecified:
        raise HostInterfaceError(
            f"Local host IP {address} is not routable",
            "Check that the host has a configured network interface with a default route",
        )

    logger.debug(f"Chose host IP {address}")
    return address


def select_server_address(
    host_ip: str | IPv4Address | IPv6Address, pairs: Iterable[ServerAddressByClientCIDR]
) -> str | None:
    """
    Pick the server address whose client CIDR contains the host IP.

    Pairs are evaluated in order and the first match wins.

    Args:
        host_ip: The local host's routable IP
        pairs: Advertised (client CIDR, server address) pairs

    Returns:
        The matching server address, or None if no CIDR contains host_ip.

    Raises:
        InvalidCIDRError: If a CIDR reached during iteration cannot be parsed.
    """
    address = ipaddress.ip_address(str(host_ip))

    for item in pairs:
        try:
            network = ipaddress.ip_network(item.client_cidr, strict=False)
        except ValueError as e:
            raise InvalidCIDRError(item.client_cidr, str(e))

        if address in network:
            logger.debug(
                f"Host IP {address} matched client CIDR {item.client_cidr}, "
                f"using server address {item.server_address}"
            )
            return item.server_address

    logger.debug(f"No client CIDR contains host IP {address}")
    return None
