import ipaddress

import pytest

from vswitchctl.codegen import hw_addr_code, ipv4_code


def _octets(code):
    assert code.startswith("bytes([") and code.endswith("])")
    inner = code[len("bytes(["):-2]
    return [int(token, 16) for token in inner.split(", ")] if inner else []


def test_hw_addr_code_pinned():
    addr = bytes([0xDE, 0xAD, 0xBE, 0xEF, 0xDE, 0xAD])
    assert hw_addr_code(addr) == "bytes([0xde, 0xad, 0xbe, 0xef, 0xde, 0xad])"


@pytest.mark.parametrize(
    "addr",
    [bytes([0x00, 0x11, 0x22, 0x33, 0x44, 0x55]), bytes([0x0A]), bytes(range(8))],
)
def test_hw_addr_code_preserves_octets(addr):
    assert _octets(hw_addr_code(addr)) == list(addr)


def test_hw_addr_code_empty():
    assert _octets(hw_addr_code(b"")) == []


def test_hw_addr_code_accepts_bytearray():
    addr = bytearray([0xAA, 0xBB, 0xCC, 0xDD, 0xEE, 0xFF])
    assert hw_addr_code(addr) == hw_addr_code(bytes(addr))


def test_ipv4_code_pinned():
    assert ipv4_code("192.168.1.1") == "ipaddress.IPv4Address('192.168.1.1')"


def test_ipv4_code_same_for_all_input_forms():
    expected = ipv4_code("192.168.1.1")
    assert ipv4_code(ipaddress.IPv4Address("192.168.1.1")) == expected
    assert ipv4_code(bytes([192, 168, 1, 1])) == expected
    assert ipv4_code("::ffff:192.168.1.1") == expected


def test_ipv4_code_contains_address():
    assert "'10.0.0.1'" in ipv4_code("10.0.0.1")


@pytest.mark.parametrize("ip", ["2001:db8::1", bytes([0xFF]), "foo", None])
def test_ipv4_code_rejects_non_ipv4(ip):
    with pytest.raises(ValueError, match="invalid IPv4 address"):
        ipv4_code(ip)