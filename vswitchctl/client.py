"""Client that runs the Open vSwitch command-line tools."""

from __future__ import annotations

import io
import json
import logging
import subprocess
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import BinaryIO, Union

logger = logging.getLogger(__name__)

# Flow format allowing Nicira extended match with a table ID.
FLOW_FORMAT_NXM_TABLE_ID = "NXM+table_id"
# Flow format allowing OpenFlow 1.4 extensible match.
FLOW_FORMAT_OXM_OPENFLOW14 = "OXM-OpenFlow14"

PROTOCOL_OPENFLOW10 = "OpenFlow10"
PROTOCOL_OPENFLOW11 = "OpenFlow11"
PROTOCOL_OPENFLOW12 = "OpenFlow12"
PROTOCOL_OPENFLOW13 = "OpenFlow13"
PROTOCOL_OPENFLOW14 = "OpenFlow14"
PROTOCOL_OPENFLOW15 = "OpenFlow15"

StdinSource = Union[bytes, bytearray, str, BinaryIO, io.TextIOBase]
ExecFunc = Callable[..., bytes]
PipeFunc = Callable[..., bytes]


def _quote(data: bytes) -> str:
    return json.dumps(data.decode(errors="replace"))


def _as_bytes(data) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode()
    return bytes(data)


def _read_all(stdin: StdinSource) -> bytes:
    if isinstance(stdin, (bytes, bytearray, str)):
        return _as_bytes(stdin)
    return _as_bytes(stdin.read())


class CommandError(RuntimeError):
    """Raised when a command fails; carries its combined output."""

    def __init__(self, output: bytes, cause: BaseException) -> None:
        self.output = output
        self.cause = cause
        super().__init__(f"{cause}: {_quote(output)}")


class PipeError(RuntimeError):
    """Raised when a piped command fails; carries its combined output."""

    def __init__(self, output: bytes, cause: BaseException) -> None:
        self.output = output
        self.cause = cause
        super().__init__(f"pipe error: {cause}: {_quote(output)}")


def shell_exec(cmd: str, *args: str) -> bytes:
    """Run ``cmd`` and return its combined stdout and stderr.

    A non-zero exit status raises CalledProcessError carrying the output.
    """
    argv = [cmd, *args]
    proc = subprocess.run(
        argv, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
    )
    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, argv, output=proc.stdout)
    return proc.stdout


def shell_pipe(stdin: StdinSource, cmd: str, *args: str) -> bytes:
    """Run ``cmd`` feeding it ``stdin``; return stdout followed by stderr.

    A non-zero exit status raises CalledProcessError carrying the output.
    """
    argv = [cmd, *args]
    proc = subprocess.run(
        argv,
        input=_read_all(stdin),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=False,
    )
    out = proc.stdout + proc.stderr
    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, argv, output=out)
    return out


@dataclass
class Client:
    """Runs Open vSwitch commands with shared flags and options."""

    flags: list[str] = field(default_factory=list)
    ofctl_flags: list[str] = field(default_factory=list)
    debug: bool = False
    sudo: bool = False
    exec_func: ExecFunc = shell_exec
    pipe_func: PipeFunc = shell_pipe

    def _debugf(self, fmt: str, *args) -> None:
        if self.debug:
            logger.debug("ovs: " + fmt, *args)

    def _command(self, cmd: str, args: Sequence[str]) -> tuple[str, list[str]]:
        argv = [*self.flags, *args]
        if self.sudo:
            return "sudo", [cmd, *argv]
        return cmd, argv

    def exec(self, cmd: str, *args: str) -> bytes:
        """Run ``cmd`` with the client's flags and return its trimmed output."""
        cmd, argv = self._command(cmd, args)
        self._debugf("exec: %s %s", cmd, argv)
        try:
            out = self.exec_func(cmd, *argv)
        except Exception as exc:
            output = _as_bytes(getattr(exc, "output", None)).strip()
            self._debugf("exec: %r", output)
            raise CommandError(output, exc) from exc
        output = _as_bytes(out).strip()
        self._debugf("exec: %r", output)
        return output

    def pipe(self, stdin: StdinSource, cmd: str, *args: str) -> None:
        """Run ``cmd`` with the client's flags, writing ``stdin`` to it."""
        cmd, argv = self._command(cmd, args)
        data = _read_all(stdin)
        self._debugf("pipe: %s %s", cmd, argv)
        self._debugf("bundle:")
        self._debugf("%s", data.decode(errors="replace"))
        try:
            self.pipe_func(io.BytesIO(data), cmd, *argv)
        except Exception as exc:
            output = _as_bytes(getattr(exc, "output", None))
            self._debugf("pipe error: %s: %r", exc, output)
            raise PipeError(output, exc) from exc


OptionFunc = Callable[[Client], None]


def new(*args: OptionFunc) -> Client:
    """Create a Client with the given options applied in order."""
    client = Client()
    for option in args:
        option(client)
    return client


def timeout(seconds: int) -> OptionFunc:
    """Set a timeout in seconds for all Open vSwitch commands."""

    def apply(client: Client) -> None:
        client.flags.append(f"--timeout={seconds}")

    return apply


def debug(enable: bool) -> OptionFunc:
    """Enable or disable debug logging of commands."""

    def apply(client: Client) -> None:
        client.debug = enable

    return apply


def exec_func(fn: ExecFunc) -> OptionFunc:
    """Replace the function used to run commands."""

    def apply(client: Client) -> None:
        client.exec_func = fn

    return apply


def pipe_func(fn: PipeFunc) -> OptionFunc:
    """Replace the function used to run commands fed from stdin."""

    def apply(client: Client) -> None:
        client.pipe_func = fn

    return apply


def flow_format(fmt: str) -> OptionFunc:
    """Set the flow format passed to ``ovs-ofctl``."""

    def apply(client: Client) -> None:
        client.ofctl_flags.append(f"--flow-format={fmt}")

    return apply


def protocols(versions: Iterable[str]) -> OptionFunc:
    """Set the OpenFlow protocol versions passed to ``ovs-ofctl``."""
    joined = ",".join(versions)

    def apply(client: Client) -> None:
        client.ofctl_flags.append(f"--protocols={joined}")

    return apply


def set_ssl_param(pkey: str, cert: str, cacert: str) -> OptionFunc:
    """Configure SSL private key, certificate and CA certificate for ``ovs-ofctl``."""

    def apply(client: Client) -> None:
        client.ofctl_flags.extend(
            [
                f"--private-key={pkey}",
                f"--certificate={cert}",
                f"--ca-cert={cacert}",
            ]
        )

    return apply


def set_tcp_param(addr: str) -> OptionFunc:
    """Connect to the OVSDB over TCP at ``addr`` (``ip:port``)."""

    def apply(client: Client) -> None:
        client.flags.append(f"--db=tcp:{addr}")

    return apply


def sudo() -> OptionFunc:
    """Prefix every command with ``sudo``."""

    def apply(client: Client) -> None:
        client.sudo = True

    return apply