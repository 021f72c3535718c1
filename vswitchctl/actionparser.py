"""Parse the actions part of an Open vSwitch flow into Action objects."""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterator
from typing import TextIO

from .actions import (
    ACTION_DROP,
    ACTION_FLOOD,
    ACTION_IN_PORT,
    ACTION_LOCAL,
    ACTION_NORMAL,
    ACTION_STRIP_VLAN,
    Action,
    ActionError,
    connection_tracking,
    drop,
    flood,
    in_port,
    local,
    mod_data_link_destination,
    mod_data_link_source,
    mod_network_destination,
    mod_network_source,
    mod_transport_destination_port,
    mod_transport_source_port,
    mod_vlan_vid,
    normal,
    output,
    strip_vlan,
)
from .fieldactions import conjunction, load, move, resubmit, resubmit_port, set_field

_SIMPLE_ACTIONS = {
    ACTION_DROP: drop,
    ACTION_FLOOD: flood,
    ACTION_IN_PORT: in_port,
    ACTION_LOCAL: local,
    ACTION_NORMAL: normal,
    ACTION_STRIP_VLAN: strip_vlan,
}

_RESUBMIT_RE = re.compile(r"resubmit\((\d*),(\d*)\)", re.ASCII)
_RESUBMIT_PORT_RE = re.compile(r"resubmit:(\d+)", re.ASCII)
_CT_RE = re.compile(r"ct\((\S+)\)", re.ASCII)
_LOAD_RE = re.compile(r"load:(\S+)->(\S+)", re.ASCII)
_MOVE_RE = re.compile(r"move:(\S+)->(\S+)", re.ASCII)
_SET_FIELD_RE = re.compile(r"set_field:(\S+)->(\S+)", re.ASCII)

_SIGNED_INT_RE = re.compile(r"\s*([+-]?[0-9]+)")
_UNSIGNED_INT_RE = re.compile(r"\s*([0-9]+)")
_CONJUNCTION_RE = re.compile(
    r"conjunction\(\s*([+-]?[0-9]+),\s*([+-]?[0-9]+)/\s*([+-]?[0-9]+)\)"
)

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

_MOD_DL_DST = "mod_dl_dst:"
_MOD_DL_SRC = "mod_dl_src:"
_MOD_NW_DST = "mod_nw_dst:"
_MOD_NW_SRC = "mod_nw_src:"
_MOD_TP_DST = "mod_tp_dst:"
_MOD_TP_SRC = "mod_tp_src:"
_MOD_VLAN_VID = "mod_vlan_vid:"
_CONJUNCTION = "conjunction"
_OUTPUT = "output:"


def _check_int64(token: str) -> int:
    value = int(token)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ActionError(f"integer out of range: {token!r}")
    return value


def _scan_token(rest: str) -> str:
    """Return the first whitespace-delimited token of ``rest``."""
    parts = rest.split()
    if not parts:
        raise ActionError("unexpected end of action text")
    return parts[0]


def _scan_signed(rest: str) -> int:
    match = _SIGNED_INT_RE.match(rest)
    if match is None:
        raise ActionError(f"expected integer in {rest!r}")
    return _check_int64(match.group(1))


def _scan_uint16(rest: str) -> int:
    match = _UNSIGNED_INT_RE.match(rest)
    if match is None:
        raise ActionError(f"expected unsigned integer in {rest!r}")
    value = int(match.group(1))
    if value > 0xFFFF:
        raise ActionError(f"unsigned integer overflow: {match.group(1)!r}")
    return value


def _parse_mac(text: str) -> bytes:
    """Parse a hardware address in colon, hyphen or dotted notation."""
    error = ActionError(f"invalid MAC address: {text!r}")
    if len(text) < 14:
        raise error

    if text[2] in ":-":
        groups = text.split(text[2])
        width, per_group = 2, 1
    elif text[4] == ".":
        groups = text.split(".")
        width, per_group = 4, 2
    else:
        raise error

    if any(
        len(group) != width
        or not all(c in "0123456789abcdefABCDEF" for c in group)
        for group in groups
    ):
        raise error
    if len(groups) * per_group not in (6, 8, 20):
        raise error
    return bytes.fromhex("".join(groups))


def _parse_ipv4(text: str) -> ipaddress.IPv4Address:
    error = ActionError(f"invalid IPv4 address: {text}")
    if "%" in text:
        raise error
    try:
        address = ipaddress.ip_address(text)
    except ValueError:
        raise error from None
    if isinstance(address, ipaddress.IPv6Address):
        mapped = address.ipv4_mapped
        if mapped is None:
            raise error
        return mapped
    return address


def _parse_resubmit_number(token: str) -> int:
    return _check_int64(token) if token else 0


def parse_action(text: str) -> Action:
    """Build an Action from the text of a single action."""
    simple = _SIMPLE_ACTIONS.get(text.lower())
    if simple is not None:
        return simple()

    match = _CT_RE.search(text)
    if match:
        return connection_tracking(match.group(1))

    if text.startswith(_MOD_DL_DST):
        mac = _parse_mac(_scan_token(text[len(_MOD_DL_DST):]))
        return mod_data_link_destination(mac)

    if text.startswith(_MOD_DL_SRC):
        mac = _parse_mac(_scan_token(text[len(_MOD_DL_SRC):]))
        return mod_data_link_source(mac)

    if text.startswith(_MOD_NW_DST):
        ip = _parse_ipv4(_scan_token(text[len(_MOD_NW_DST):]))
        return mod_network_destination(ip)

    if text.startswith(_MOD_NW_SRC):
        ip = _parse_ipv4(_scan_token(text[len(_MOD_NW_SRC):]))
        return mod_network_source(ip)

    if text.startswith(_MOD_TP_DST):
        return mod_transport_destination_port(_scan_uint16(text[len(_MOD_TP_DST):]))

    if text.startswith(_MOD_TP_SRC):
        return mod_transport_source_port(_scan_uint16(text[len(_MOD_TP_SRC):]))

    if text.startswith(_MOD_VLAN_VID):
        return mod_vlan_vid(_scan_signed(text[len(_MOD_VLAN_VID):]))

    if text.startswith(_CONJUNCTION):
        match = _CONJUNCTION_RE.match(text)
        if match is None:
            raise ActionError(f"input does not match conjunction format: {text!r}")
        conj_id, number, size = (_check_int64(group) for group in match.groups())
        return conjunction(conj_id, number, size)

    if text.startswith(_OUTPUT):
        return output(_scan_signed(text[len(_OUTPUT):]))

    match = _RESUBMIT_RE.search(text)
    if match:
        port = _parse_resubmit_number(match.group(1))
        table = _parse_resubmit_number(match.group(2))
        return resubmit(port, table)

    match = _RESUBMIT_PORT_RE.search(text)
    if match:
        return resubmit_port(_check_int64(match.group(1)))

    match = _LOAD_RE.search(text)
    if match:
        return load(match.group(1), match.group(2))

    match = _MOVE_RE.search(text)
    if match:
        return move(match.group(1), match.group(2))

    match = _SET_FIELD_RE.search(text)
    if match:
        return set_field(match.group(1), match.group(2))

    raise ActionError(f"no action matched for {text!r}")


class ActionParser:
    """Parses a comma-separated list of actions, honouring nested parentheses."""

    def __init__(self, source: str | TextIO) -> None:
        self._text = source if isinstance(source, str) else source.read()

    def _raw_actions(self) -> Iterator[str]:
        depth = 0
        buf: list[str] = []
        for ch in self._text:
            if ch == "," and depth == 0:
                yield "".join(buf)
                buf = []
                continue
            if ch == "(":
                depth += 1
            elif ch == ")":
                if depth == 0:
                    raise ActionError(f"invalid action: {''.join(buf) + ch!r}")
                depth -= 1
            buf.append(ch)

        if depth > 0:
            raise ActionError(f"invalid action: {''.join(buf)!r}")
        if buf:
            yield "".join(buf)

    def parse(self) -> tuple[list[Action], list[str]]:
        """Return the parsed actions together with their raw text."""
        actions: list[Action] = []
        raw: list[str] = []
        for text in self._raw_actions():
            actions.append(parse_action(text))
            raw.append(text)
        return actions, raw


def parse_actions(text: str | TextIO) -> tuple[list[Action], list[str]]:
    """Parse a comma-separated action list into actions and their raw text."""
    return ActionParser(text).parse()