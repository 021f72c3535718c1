"""Actions that operate on fields, tables and learned flows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from .actions import Action, ActionError

ERR_RESUBMIT_PORT_TABLE_ZERO = "both port and table are zero for action resubmit"
ERR_LOAD_SET_FIELD_ZERO = "value and/or field for action load or set_field are empty"
ERR_RESUBMIT_PORT_INVALID = "resubmit port must be between 0 and 65279 inclusive"
ERR_DIMENSION_TOO_LARGE = "dimension number exceeds total number of dimensions"
ERR_MOVE_EMPTY = "src and/or dst field for action move are empty"
ERR_LEARNED_NONE = "learned flow for action learn is nil"

# Largest valid OpenFlow port ID.
MAX_RESUBMIT_PORT = 0xFFFFFEFF


class _Learnable(Protocol):
    def marshal_text(self) -> str: ...

    def to_code(self) -> str: ...


@dataclass(frozen=True)
class MultipathAction(Action):
    """Hash fields and select one of several links into a destination field."""

    fields: str
    basis: int
    algorithm: str
    nlinks: int
    arg: int
    dst: str

    def marshal_text(self) -> str:
        return (
            f"multipath({self.fields},{self.basis},{self.algorithm},"
            f"{self.nlinks},{self.arg},{self.dst})"
        )

    def to_code(self) -> str:
        return (
            f"multipath({self.fields!r}, {self.basis}, {self.algorithm!r}, "
            f"{self.nlinks}, {self.arg}, {self.dst!r})"
        )


def multipath(
    fields: str, basis: int, algorithm: str, nlinks: int, arg: int, dst: str
) -> Action:
    """Select one of ``nlinks`` links by hashing ``fields`` and store it in ``dst``."""
    return MultipathAction(fields, basis, algorithm, nlinks, arg, dst)


@dataclass(frozen=True)
class ConjunctionAction(Action):
    """Tie a flow to one dimension of a conjunctive match."""

    conj_id: int
    dimension_number: int
    dimension_size: int

    def marshal_text(self) -> str:
        if self.dimension_number > self.dimension_size:
            raise ActionError(ERR_DIMENSION_TOO_LARGE)
        return (
            f"conjunction({self.conj_id},"
            f"{self.dimension_number}/{self.dimension_size})"
        )

    def to_code(self) -> str:
        return (
            f"conjunction({self.conj_id}, {self.dimension_number}, "
            f"{self.dimension_size})"
        )


def conjunction(conj_id: int, dimension_number: int, dimension_size: int) -> Action:
    """Associate a flow with conjunction ``conj_id`` in the given dimension."""
    return ConjunctionAction(conj_id, dimension_number, dimension_size)


@dataclass(frozen=True)
class ResubmitAction(Action):
    """Resubmit the packet with the given port and table; zero means unset."""

    port: int
    table: int

    def marshal_text(self) -> str:
        if self.port == 0 and self.table == 0:
            raise ActionError(ERR_RESUBMIT_PORT_TABLE_ZERO)
        port = str(self.port) if self.port else ""
        table = str(self.table) if self.table else ""
        return f"resubmit({port},{table})"

    def to_code(self) -> str:
        return f"resubmit({self.port}, {self.table})"


def resubmit(port: int, table: int) -> Action:
    """Resubmit the packet to ``port`` and ``table``; both zero is an error."""
    return ResubmitAction(port, table)


@dataclass(frozen=True)
class ResubmitPortAction(Action):
    """Resubmit the packet into the current table as if from ``port``."""

    port: int

    def marshal_text(self) -> str:
        if not 0 <= self.port <= MAX_RESUBMIT_PORT:
            raise ActionError(ERR_RESUBMIT_PORT_INVALID)
        return f"resubmit:{self.port}"

    def to_code(self) -> str:
        return f"resubmit_port({self.port})"


def resubmit_port(port: int) -> Action:
    """Resubmit the packet into the current table as if it arrived on ``port``."""
    return ResubmitPortAction(port)


@dataclass(frozen=True)
class LoadSetFieldAction(Action):
    """Write a value into a field, with either ``load`` or ``set_field``."""

    value: str
    field: str
    load: bool

    def marshal_text(self) -> str:
        if not self.value or not self.field:
            raise ActionError(ERR_LOAD_SET_FIELD_ZERO)
        key = "load" if self.load else "set_field"
        return f"{key}:{self.value}->{self.field}"

    def to_code(self) -> str:
        name = "load" if self.load else "set_field"
        return f"{name}({self.value!r}, {self.field!r})"


def set_field(value: str, field: str) -> Action:
    """Overwrite ``field`` with ``value``."""
    return LoadSetFieldAction(value, field, load=False)


def load(value: str, field: str) -> Action:
    """Load ``value`` into ``field``."""
    return LoadSetFieldAction(value, field, load=True)


@dataclass(frozen=True)
class SetTunnelAction(Action):
    """Set the tunnel ID, such as the VNI of a VXLAN tunnel."""

    tunnel_id: int

    def marshal_text(self) -> str:
        return f"set_tunnel:{self.tunnel_id:#x}"

    def to_code(self) -> str:
        return f"set_tunnel({self.tunnel_id:#x})"


def set_tunnel(tunnel_id: int) -> Action:
    """Set the tunnel ID of the packet."""
    return SetTunnelAction(tunnel_id)


@dataclass(frozen=True)
class MoveAction(Action):
    """Copy the value of one field into another."""

    src: str
    dst: str

    def marshal_text(self) -> str:
        if not self.src or not self.dst:
            raise ActionError(ERR_MOVE_EMPTY)
        return f"move:{self.src}->{self.dst}"

    def to_code(self) -> str:
        return f"move({self.src!r}, {self.dst!r})"


def move(src: str, dst: str) -> Action:
    """Set ``dst`` to the value of ``src``."""
    return MoveAction(src, dst)


@dataclass(frozen=True)
class LearnAction(Action):
    """Install a learned flow dynamically."""

    learned: Any

    def marshal_text(self) -> str:
        if self.learned is None:
            raise ActionError(ERR_LEARNED_NONE)
        return f"learn({self.learned.marshal_text()})"

    def to_code(self) -> str:
        if self.learned is None:
            return "learn(None)"
        return f"learn({self.learned.to_code()})"


def learn(learned: _Learnable | None) -> Action:
    """Install ``learned`` as a new flow when this action runs."""
    return LearnAction(learned)