"""Network address helpers"""
import ipaddress
from typing import Optional, Tuple


def split_host_port(addr: str) -> Optional[Tuple[str, str]]:
    """Split ``host:port`` or ``[v6-host]:port``; None when there is no port"""
    if addr.startswith("["):
        end = addr.find("]")
        if end == -1 or not addr[end + 1:].startswith(":"):
            return None
        return addr[1:end], addr[end + 2:]

    # A bare IPv6 address has more than one colon and no port
    if addr.count(":") != 1:
        return None
    host, port = addr.split(":", 1)
    return host, port


def normalize_ip(value: str) -> Optional[str]:
    """Canonical text form of an IP address, or None if it is not one"""
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        return None


def extract_ip(addr: str) -> str:
    """Peer IP from a remote address.

    ``host:port`` gives the normalized IP (or the host when it is not an IP);
    an address without a port is returned unchanged.
    """
    parts = split_host_port(addr)
    if parts is None:
        return addr

    host = parts[0]
    return normalize_ip(host) or host
