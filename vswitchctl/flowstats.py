"""Aggregate flow statistics as reported by ``ovs-ofctl dump-aggregate``."""

from __future__ import annotations

from dataclasses import dataclass

_PACKET_COUNT = "packet_count"
_BYTE_COUNT = "byte_count"
_FLOW_COUNT = "flow_count"
_FIELDS = (_PACKET_COUNT, _BYTE_COUNT, _FLOW_COUNT)


class InvalidFlowStatsError(ValueError):
    """Raised when flow statistics do not have the expected format."""

    def __init__(self, message: str = "invalid flow statistics") -> None:
        super().__init__(message)


def _parse_uint64(text: str) -> int:
    if not (text.isascii() and text.isdigit()):
        raise ValueError(f"invalid unsigned integer: {text!r}")
    value = int(text)
    if value >= 1 << 64:
        raise ValueError(f"value out of range: {text!r}")
    return value


@dataclass(frozen=True)
class FlowStats:
    """Packet and byte totals across a set of flows."""

    packet_count: int = 0
    byte_count: int = 0

    @classmethod
    def from_text(cls, text: str | bytes) -> FlowStats:
        """Parse statistics text; the flow count is checked but not kept."""
        if isinstance(text, bytes):
            text = text.decode()

        idx = text.find(_PACKET_COUNT)
        if idx == -1:
            raise InvalidFlowStatsError()

        parts = text[idx:].split()
        if len(parts) != len(_FIELDS):
            raise InvalidFlowStatsError()

        values = []
        for part, expected_key in zip(parts, _FIELDS):
            kv = part.split("=")
            if len(kv) != 2 or kv[0] != expected_key:
                raise InvalidFlowStatsError()
            values.append(_parse_uint64(kv[1]))

        return cls(packet_count=values[0], byte_count=values[1])