"""OpenFlow flows and learned flows in their Open vSwitch text form."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol as _TypingProtocol

from .actions import Action, OutputFieldAction
from .fieldactions import LoadSetFieldAction

# Special in_port value which refers to the local port of a bridge.
PORT_LOCAL = -1

ERR_ACTIONS_WITH_DROP = "Flow actions include drop, but multiple actions specified"
ERR_INVALID_ACTIONS = "invalid actions for Flow"
ERR_NO_ACTIONS = "no actions defined for Flow"
ERR_NOT_ENOUGH_ELEMENTS = "not enough elements for valid Flow"
ERR_INVALID_LEARNED_ACTIONS = "invalid actions for LearnedFlow"

_PORT_LOCAL_TEXT = "LOCAL"
_ACTION_DROP = "drop"


class _Match(_TypingProtocol):
    def marshal_text(self) -> str: ...


class Protocol(str, Enum):
    """An OpenFlow protocol designation accepted by Open vSwitch."""

    ARP = "arp"
    ICMPV4 = "icmp"
    ICMPV6 = "icmp6"
    IPV4 = "ip"
    IPV6 = "ipv6"
    TCPV4 = "tcp"
    TCPV6 = "tcp6"
    UDPV4 = "udp"
    UDPV6 = "udp6"

    def __str__(self) -> str:
        return self.value


class FlowError(ValueError):
    """Raised when a flow cannot be marshaled or unmarshaled."""

    def __init__(self, reason: str, text: str = "") -> None:
        self.reason = reason
        self.text = text
        if text:
            message = f"flow error due to string {json.dumps(text)}: {reason}"
        else:
            message = reason
        super().__init__(message)


def marshal_actions(actions: Iterable[Action]) -> list[str]:
    """Return the text form of every action, in order."""
    return [action.marshal_text() for action in actions]


def marshal_matches(matches: Iterable[_Match]) -> list[str]:
    """Return the text form of every match, in order."""
    return [match.marshal_text() for match in matches]


def padded_hex_uint64(value: int) -> str:
    """Format ``value`` as ``0x`` followed by 16 zero-padded hex digits."""
    return f"0x{value:016x}"


def _protocol_text(protocol: Protocol | str) -> str:
    if isinstance(protocol, Protocol):
        return protocol.value
    return str(protocol)


def _in_port_text(port: int) -> str:
    return _PORT_LOCAL_TEXT if port == PORT_LOCAL else str(port)


def _code_of(item: object) -> str:
    to_code = getattr(item, "to_code", None)
    return to_code() if callable(to_code) else repr(item)


@dataclass
class Flow:
    """An OpenFlow flow to be added to a software bridge."""

    priority: int = 0
    protocol: Protocol | str = ""
    in_port: int = 0
    matches: list = field(default_factory=list)
    table: int = 0
    idle_timeout: int = 0
    cookie: int = 0
    actions: list = field(default_factory=list)

    def marshal_text(self) -> str:
        """Return the Open vSwitch text form of the flow."""
        if not self.actions:
            raise FlowError(ERR_NO_ACTIONS)

        actions = marshal_actions(self.actions)
        matches = marshal_matches(self.matches)

        # "drop" must be the only action when it is used.
        if len(actions) > 1 and _ACTION_DROP in actions:
            raise FlowError(ERR_ACTIONS_WITH_DROP)

        parts = [f"priority={self.priority}"]
        protocol = _protocol_text(self.protocol)
        if protocol:
            parts.append(protocol)
        if self.in_port != 0:
            parts.append(f"in_port={_in_port_text(self.in_port)}")
        parts.extend(matches)
        parts.append(f"table={self.table}")
        parts.append(f"idle_timeout={self.idle_timeout}")
        if self.cookie > 0:
            parts.append(f"cookie={padded_hex_uint64(self.cookie)}")
        parts.append("actions=" + ",".join(actions))
        return ",".join(parts)


@dataclass
class LearnedFlow:
    """A flow installed dynamically by a learn action."""

    priority: int = 0
    in_port: int = 0
    matches: list = field(default_factory=list)
    table: int = 0
    idle_timeout: int = 0
    cookie: int = 0
    actions: list = field(default_factory=list)
    delete_learned: bool = False
    fin_hard_timeout: int = 0
    hard_timeout: int = 0
    limit: int = 0

    def _check_actions(self) -> None:
        # Only load and output:field actions may appear in a learned flow.
        for action in self.actions:
            if isinstance(action, LoadSetFieldAction):
                if not action.load:
                    raise FlowError(ERR_INVALID_LEARNED_ACTIONS)
            elif not isinstance(action, OutputFieldAction):
                raise FlowError(ERR_INVALID_LEARNED_ACTIONS)

    def marshal_text(self) -> str:
        """Return the text form used inside a learn action."""
        if not self.actions:
            raise FlowError(ERR_NO_ACTIONS)
        self._check_actions()

        actions = marshal_actions(self.actions)
        matches = marshal_matches(self.matches)

        parts = [f"priority={self.priority}"]
        if self.in_port != 0:
            parts.append(f"in_port={_in_port_text(self.in_port)}")
        parts.extend(matches)
        parts.append(f"table={self.table}")
        parts.append(f"idle_timeout={self.idle_timeout}")
        parts.append(f"fin_hard_timeout={self.fin_hard_timeout}")
        parts.append(f"hard_timeout={self.hard_timeout}")
        # Older Open vSwitch releases lack the limit option; omit it when unset.
        if self.limit > 0:
            parts.append(f"limit={self.limit}")
        if self.delete_learned:
            parts.append("delete_learned")
        if self.cookie > 0:
            parts.append(f"cookie={padded_hex_uint64(self.cookie)}")
        parts.extend(actions)
        return ",".join(parts)

    def to_code(self) -> str:
        """Return a Python expression that rebuilds the learned flow."""
        matches = ", ".join(_code_of(match) for match in self.matches)
        actions = ", ".join(_code_of(action) for action in self.actions)
        return (
            f"LearnedFlow(priority={self.priority}, in_port={self.in_port}, "
            f"matches=[{matches}], table={self.table}, "
            f"idle_timeout={self.idle_timeout}, cookie={self.cookie:#x}, "
            f"actions=[{actions}], delete_learned={self.delete_learned}, "
            f"fin_hard_timeout={self.fin_hard_timeout}, "
            f"hard_timeout={self.hard_timeout}, limit={self.limit})"
        )