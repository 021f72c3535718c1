"""Datapath and conntrack limit management through ``ovs-dpctl``."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from .client import Client, new, sudo

ERR_MISSING_DATAPATH_NAME = "datapath name argument is mandatory"
ERR_UNINITIALIZED_CLIENT = "client unitialized"
ERR_MISSING_ZONE = "at least 1 zone is mandatory"
ERR_WRONG_ARGUMENT_NUMBER = "missing or too many arguments to setup ct limits"
ERR_WRONG_DEFAULT_ARGUMENT = "wrong argument while setting default ct limits"
ERR_WRONG_ZONE_ARGUMENT = "wrong argument while setting zone ct limits"

_DEFAULT = "default"
_ZONE = "zone"
_LIMIT = "limit"


class DataPathError(ValueError):
    """Raised when a datapath request is malformed or cannot be run."""


class CLI(Protocol):
    """Something that runs ``ovs-dpctl`` with arguments and returns its output."""

    def exec(self, *args: str) -> bytes: ...


@dataclass
class ConntrackOutput:
    """Conntrack limits as reported by ``ovs-dpctl ct-get-limits``.

    ``default_limit`` holds the global ``default`` setting, if reported;
    ``zone_limits`` holds one mapping per zone line, e.g.
    ``{"zone": 2, "limit": 0, "count": 0}``.
    """

    default_limit: dict[str, int] = field(default_factory=dict)
    zone_limits: list[dict[str, int]] = field(default_factory=list)


@dataclass
class DpCLI:
    """Runs ``ovs-dpctl`` through a Client."""

    client: Client | None = None

    def exec(self, *args: str) -> bytes:
        """Run ``ovs-dpctl`` with ``args`` and return its output."""
        if self.client is None:
            raise DataPathError(ERR_UNINITIALIZED_CLIENT)
        return self.client.exec("ovs-dpctl", *args)


def _to_text(data: bytes | str) -> str:
    return data.decode() if isinstance(data, (bytes, bytearray)) else str(data)


def _lenient_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def get_zone_string(zones: Iterable[int]) -> str:
    """Format zones as ``zone=2,3,4``; no zones give an empty string."""
    numbers = [str(zone) for zone in zones]
    if not numbers:
        return ""
    return "zone=" + ",".join(numbers)


def ct_set_limits_args_to_string(zone: Mapping[str, int]) -> str:
    """Build the ``ct-set-limits`` argument from a mapping.

    Either ``{"default": n}`` giving ``default=n``, or a zone and its limit
    giving ``zone=z,limit=n`` in the mapping's order. Other keys are ignored.
    """
    default_setup = False
    args: list[str] = []
    for key, value in zone.items():
        if key == _DEFAULT:
            args.append(f"{key}={value}")
            default_setup = True
        elif key in (_ZONE, _LIMIT):
            args.append(f"{key}={value}")

    if not 1 <= len(args) <= 2:
        raise DataPathError(ERR_WRONG_ARGUMENT_NUMBER)
    if default_setup and len(args) != 1:
        raise DataPathError(ERR_WRONG_DEFAULT_ARGUMENT)
    if not default_setup and len(args) != 2:
        raise DataPathError(ERR_WRONG_ZONE_ARGUMENT)
    return ",".join(args)


def _parse_zone_entry(entry: str) -> dict[str, int]:
    limits: dict[str, int] = {}
    for item in entry.split(","):
        parts = item.split("=")
        if len(parts) < 2:
            raise DataPathError(f"malformed conntrack limit entry: {entry!r}")
        limits[parts[0]] = _lenient_int(parts[1])
    return limits


@dataclass
class DataPathService:
    """Datapath operations supported by ``ovs-dpctl``."""

    cli: CLI

    def version(self) -> str:
        """Return the output of ``ovs-dpctl --version``."""
        return _to_text(self.cli.exec("--version"))

    def get_data_paths(self) -> list[str]:
        """Return the datapaths listed by ``ovs-dpctl dump-dps``."""
        return _to_text(self.cli.exec("dump-dps")).split("\n")

    def add_data_path(self, dp_name: str) -> None:
        """Create a datapath with ``ovs-dpctl add-dp``."""
        self.cli.exec("add-dp", dp_name)

    def del_data_path(self, dp_name: str) -> None:
        """Delete a datapath with ``ovs-dpctl del-dp``."""
        self.cli.exec("del-dp", dp_name)

    def get_ct_limits(self, dp_name: str, zones: Iterable[int]) -> ConntrackOutput:
        """Return the conntrack limits of a datapath, optionally for some zones."""
        if not dp_name:
            raise DataPathError(ERR_MISSING_DATAPATH_NAME)

        args = ["ct-get-limits", dp_name]
        zone_param = get_zone_string(zones)
        if zone_param:
            args.append(zone_param)

        entries = _to_text(self.cli.exec(*args)).split("\n")
        result = ConntrackOutput()

        zone_entries: list[str] = []
        for entry in entries:
            if _DEFAULT in entry:
                parts = entry.split("=")
                if len(parts) < 2:
                    raise DataPathError(f"malformed default limit entry: {entry!r}")
                try:
                    limit = int(parts[1])
                except ValueError as exc:
                    raise DataPathError(
                        f"invalid default limit: {parts[1]!r}"
                    ) from exc
                result.default_limit = {_DEFAULT: limit}
            else:
                zone_entries.append(entry)

        result.zone_limits = [_parse_zone_entry(entry) for entry in zone_entries]
        return result

    def set_ct_limits(self, dp_name: str, zone: Mapping[str, int]) -> str:
        """Set the default limit or the limit of one zone; return the output."""
        if not dp_name:
            raise DataPathError(ERR_MISSING_DATAPATH_NAME)
        argument = ct_set_limits_args_to_string(zone)
        return _to_text(self.cli.exec("ct-set-limits", dp_name, argument))

    def del_ct_limits(self, dp_name: str, zones: Iterable[int]) -> str:
        """Delete the limits of the given zones; return the output."""
        if not dp_name:
            raise DataPathError(ERR_MISSING_DATAPATH_NAME)
        zone_param = get_zone_string(zones)
        if not zone_param:
            raise DataPathError(ERR_MISSING_ZONE)
        return _to_text(self.cli.exec("ct-del-limits", dp_name, zone_param))


def new_data_path_service() -> DataPathService:
    """Create a DataPathService whose commands run under sudo."""
    return DataPathService(cli=DpCLI(client=new(sudo())))