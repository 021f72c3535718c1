"""Render addresses as Python expressions for generated flow code."""

from __future__ import annotations

import ipaddress


def hw_addr_code(addr: bytes) -> str:
    """Return a ``bytes([...])`` expression that rebuilds a hardware address."""
    octets = ", ".join(f"0x{octet:02x}" for octet in bytes(addr))
    return f"bytes([{octets}])"


def ipv4_code(ip) -> str:
    """Return an ``ipaddress.IPv4Address(...)`` expression for an IPv4 address.

    IPv4-mapped IPv6 addresses are accepted and rendered in their IPv4 form.
    Anything that is not an IPv4 address raises ValueError.
    """
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        raise ValueError("invalid IPv4 address") from None

    if isinstance(address, ipaddress.IPv6Address):
        mapped = address.ipv4_mapped
        if mapped is None:
            raise ValueError("invalid IPv4 address")
        address = mapped

    return f"ipaddress.IPv4Address({str(address)!r})"