"""OpenFlow actions that can be rendered to their Open vSwitch text form."""

from __future__ import annotations

import ipaddress
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .codegen import hw_addr_code, ipv4_code

ETHERNET_ADDR_LEN = 6

ACTION_ALL = "all"
ACTION_DROP = "drop"
ACTION_FLOOD = "flood"
ACTION_IN_PORT = "in_port"
ACTION_LOCAL = "local"
ACTION_NORMAL = "normal"
ACTION_STRIP_VLAN = "strip_vlan"

_TEXT_ACTION_CODE = {
    ACTION_ALL: "all_ports()",
    ACTION_DROP: "drop()",
    ACTION_FLOOD: "flood()",
    ACTION_IN_PORT: "in_port()",
    ACTION_LOCAL: "local()",
    ACTION_NORMAL: "normal()",
    ACTION_STRIP_VLAN: "strip_vlan()",
}

ERR_CT_NO_ARGUMENTS = "no arguments for connection tracking"
ERR_INVALID_VLAN_VID = "VLAN VID must be between 0 and 4095"
ERR_OUTPUT_NEGATIVE_PORT = "output port number must not be negative"
ERR_OUTPUT_FIELD_EMPTY = "field for action output (output:field syntax) is empty"
ERR_INVALID_IPV4 = "invalid IPv4 address for mod_network action"
ERR_INVALID_TRANSPORT_PORT = "transport port must be between 0 and 65535"


class ActionError(ValueError):
    """Raised when an action cannot be rendered to text."""


class Action(ABC):
    """An action performed on packets matched by a flow."""

    @abstractmethod
    def marshal_text(self) -> str:
        """Return the Open vSwitch text form of the action."""

    @abstractmethod
    def to_code(self) -> str:
        """Return a Python expression that rebuilds the action."""


@dataclass(frozen=True)
class TextAction(Action):
    """An action referred to by its name alone."""

    action: str

    def marshal_text(self) -> str:
        return self.action

    def to_code(self) -> str:
        try:
            return _TEXT_ACTION_CODE[self.action]
        except KeyError:
            raise ActionError(f"unimplemented text action: {self.action!r}") from None


def all_ports() -> Action:
    """Output the packet on all ports except the one it arrived on."""
    return TextAction(ACTION_ALL)


def drop() -> Action:
    """Discard the packet; must be the only action of a flow."""
    return TextAction(ACTION_DROP)


def flood() -> Action:
    """Output the packet on all flooding-enabled ports except its ingress port."""
    return TextAction(ACTION_FLOOD)


def in_port() -> Action:
    """Output the packet on the port it was received on."""
    return TextAction(ACTION_IN_PORT)


def local() -> Action:
    """Output the packet on the bridge's local port."""
    return TextAction(ACTION_LOCAL)


def normal() -> Action:
    """Subject the packet to normal L2/L3 processing."""
    return TextAction(ACTION_NORMAL)


def strip_vlan() -> Action:
    """Strip the VLAN tag from the packet, if present."""
    return TextAction(ACTION_STRIP_VLAN)


@dataclass(frozen=True)
class ConnectionTrackingAction(Action):
    """Send the packet through the connection tracker."""

    args: str

    def marshal_text(self) -> str:
        if not self.args:
            raise ActionError(ERR_CT_NO_ARGUMENTS)
        return f"ct({self.args})"

    def to_code(self) -> str:
        return f"connection_tracking({self.args!r})"


def connection_tracking(args: str) -> Action:
    """Send the packet through the connection tracker with ``args``."""
    return ConnectionTrackingAction(args)


@dataclass(frozen=True)
class ModDataLinkAction(Action):
    """Rewrite the Ethernet source or destination address."""

    source: bool
    addr: bytes

    def marshal_text(self) -> str:
        if len(self.addr) != ETHERNET_ADDR_LEN:
            raise ActionError(
                f"hardware address must be {ETHERNET_ADDR_LEN} octets, "
                f"but got {len(self.addr)}"
            )
        key = "mod_dl_src" if self.source else "mod_dl_dst"
        return f"{key}:{self.addr.hex(':')}"

    def to_code(self) -> str:
        name = "mod_data_link_source" if self.source else "mod_data_link_destination"
        return f"{name}({hw_addr_code(self.addr)})"


def mod_data_link_destination(addr: bytes) -> Action:
    """Rewrite the Ethernet destination address."""
    return ModDataLinkAction(source=False, addr=bytes(addr))


def mod_data_link_source(addr: bytes) -> Action:
    """Rewrite the Ethernet source address."""
    return ModDataLinkAction(source=True, addr=bytes(addr))


def _as_ipv4(ip) -> ipaddress.IPv4Address | None:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address):
        return address.ipv4_mapped
    return address


@dataclass(frozen=True)
class ModNetworkAction(Action):
    """Rewrite the IPv4 source or destination address."""

    source: bool
    ip: ipaddress.IPv4Address | None

    def marshal_text(self) -> str:
        if self.ip is None:
            raise ActionError(ERR_INVALID_IPV4)
        key = "mod_nw_src" if self.source else "mod_nw_dst"
        return f"{key}:{self.ip}"

    def to_code(self) -> str:
        name = "mod_network_source" if self.source else "mod_network_destination"
        return f"{name}({ipv4_code(self.ip)})"


def mod_network_destination(ip) -> Action:
    """Rewrite the IPv4 destination address."""
    return ModNetworkAction(source=False, ip=_as_ipv4(ip))


def mod_network_source(ip) -> Action:
    """Rewrite the IPv4 source address."""
    return ModNetworkAction(source=True, ip=_as_ipv4(ip))


@dataclass(frozen=True)
class ModTransportPortAction(Action):
    """Rewrite the transport source or destination port."""

    source: bool
    port: int

    def marshal_text(self) -> str:
        if not 0 <= self.port <= 0xFFFF:
            raise ActionError(ERR_INVALID_TRANSPORT_PORT)
        key = "mod_tp_src" if self.source else "mod_tp_dst"
        return f"{key}:{self.port}"

    def to_code(self) -> str:
        name = (
            "mod_transport_source_port"
            if self.source
            else "mod_transport_destination_port"
        )
        return f"{name}({self.port})"


def mod_transport_destination_port(port: int) -> Action:
    """Rewrite the transport destination port."""
    return ModTransportPortAction(source=False, port=port)


def mod_transport_source_port(port: int) -> Action:
    """Rewrite the transport source port."""
    return ModTransportPortAction(source=True, port=port)


@dataclass(frozen=True)
class ModVLANVIDAction(Action):
    """Set the VLAN ID, adding a VLAN tag if none is present."""

    vid: int

    def marshal_text(self) -> str:
        if not valid_vlan_vid(self.vid):
            raise ActionError(ERR_INVALID_VLAN_VID)
        return f"mod_vlan_vid:{self.vid}"

    def to_code(self) -> str:
        return f"mod_vlan_vid({self.vid})"


def mod_vlan_vid(vid: int) -> Action:
    """Set the VLAN ID; ``vid`` must be within 0 to 4095."""
    return ModVLANVIDAction(vid)


@dataclass(frozen=True)
class OutputAction(Action):
    """Output the packet to a numbered switch port."""

    port: int

    def marshal_text(self) -> str:
        if self.port < 0:
            raise ActionError(ERR_OUTPUT_NEGATIVE_PORT)
        return f"output:{self.port}"

    def to_code(self) -> str:
        return f"output({self.port})"


def output(port: int) -> Action:
    """Output the packet to ``port``, which must not be negative."""
    return OutputAction(port)


@dataclass(frozen=True)
class OutputFieldAction(Action):
    """Output the packet to the port held in a field."""

    field: str

    def marshal_text(self) -> str:
        if not self.field:
            raise ActionError(ERR_OUTPUT_FIELD_EMPTY)
        return f"output:{self.field}"

    def to_code(self) -> str:
        return f"output_field({self.field!r})"


def output_field(field: str) -> Action:
    """Output the packet to the port described by ``field``."""
    return OutputFieldAction(field)


def valid_arp_op(op: int) -> bool:
    """Report whether an ARP opcode lies in the range 1 to 4."""
    return 1 <= op <= 4


def valid_ipv6_label(label: int) -> bool:
    """Report whether an IPv6 flow label uses only the low 20 bits."""
    return (label & 0xFFF00000) == 0


def valid_vlan_vid(vid: int) -> bool:
    """Report whether a VLAN ID lies in the range 0 to 4095."""
    return 0 <= vid <= 0xFFF


def valid_vlan_pcp(pcp: int) -> bool:
    """Report whether a VLAN priority lies in the range 0 to 7."""
    return 0 <= pcp <= 7