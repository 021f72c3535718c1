import io
import logging
import subprocess
import sys

import pytest

from vswitchctl.client import (
    FLOW_FORMAT_NXM_TABLE_ID,
    PROTOCOL_OPENFLOW10,
    PROTOCOL_OPENFLOW13,
    Client,
    CommandError,
    PipeError,
    debug,
    exec_func,
    flow_format,
    new,
    pipe_func,
    protocols,
    set_ssl_param,
    set_tcp_param,
    shell_exec,
    shell_pipe,
    sudo,
    timeout,
)


class Recorder:
    def __init__(self, output=b"", error=None):
        self.calls = []
        self.output = output
        self.error = error

    def __call__(self, cmd, *args):
        self.calls.append((cmd, list(args)))
        if self.error is not None:
            raise self.error
        return self.output


class PipeRecorder:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def __call__(self, stdin, cmd, *args):
        self.calls.append((stdin.read(), cmd, list(args)))
        if self.error is not None:
            raise self.error
        return b""


def test_exec_passes_command_and_args():
    rec = Recorder(output=b"ok")
    client = new(exec_func(rec))
    assert client.exec("ovs-vsctl", "show") == b"ok"
    assert rec.calls == [("ovs-vsctl", ["show"])]


def test_exec_trims_whitespace():
    rec = Recorder(output=b"  hello\n\n")
    client = new(exec_func(rec))
    assert client.exec("ovs-ofctl") == b"hello"


def test_exec_prepends_flags_before_args():
    rec = Recorder()
    client = new(timeout(5), exec_func(rec))
    client.exec("ovs-vsctl", "add-br", "br0")
    assert rec.calls == [("ovs-vsctl", ["--timeout=5", "add-br", "br0"])]


def test_exec_with_sudo_prefix():
    rec = Recorder()
    client = new(sudo(), timeout(5), exec_func(rec))
    client.exec("ovs-dpctl", "dump-dps")
    assert rec.calls == [("sudo", ["ovs-dpctl", "--timeout=5", "dump-dps"])]


def test_exec_does_not_mutate_flags():
    rec = Recorder()
    client = new(timeout(1), exec_func(rec))
    client.exec("ovs-vsctl", "a")
    client.exec("ovs-vsctl", "b")
    assert client.flags == ["--timeout=1"]
    assert rec.calls[1] == ("ovs-vsctl", ["--timeout=1", "b"])


def test_exec_wraps_errors_with_output():
    cause = subprocess.CalledProcessError(1, ["x"], output=b" failure \n")
    client = new(exec_func(Recorder(error=cause)))
    with pytest.raises(CommandError) as info:
        client.exec("ovs-vsctl", "show")
    assert info.value.output == b"failure"
    assert info.value.cause is cause
    assert isinstance(info.value.__cause__, subprocess.CalledProcessError)


def test_exec_wraps_errors_without_output():
    cause = OSError("boom")
    client = new(exec_func(Recorder(error=cause)))
    with pytest.raises(CommandError) as info:
        client.exec("ovs-vsctl")
    assert info.value.output == b""
    assert "boom" in str(info.value)


def test_pipe_feeds_stdin_and_flags():
    rec = PipeRecorder()
    client = new(sudo(), timeout(3), pipe_func(rec))
    client.pipe(io.BytesIO(b"add priority=0,actions=drop\n"), "ovs-ofctl", "--bundle")
    assert rec.calls == [
        (
            b"add priority=0,actions=drop\n",
            "sudo",
            ["ovs-ofctl", "--timeout=3", "--bundle"],
        )
    ]


def test_pipe_accepts_str_input():
    rec = PipeRecorder()
    client = new(pipe_func(rec))
    client.pipe("text", "ovs-ofctl")
    assert rec.calls[0][0] == b"text"


def test_pipe_wraps_errors():
    cause = subprocess.CalledProcessError(2, ["x"], output=b"bad input")
    client = new(pipe_func(PipeRecorder(error=cause)))
    with pytest.raises(PipeError) as info:
        client.pipe(b"data", "ovs-ofctl")
    assert info.value.output == b"bad input"
    assert str(info.value).startswith("pipe error: ")
    assert '"bad input"' in str(info.value)


def test_option_flow_format():
    client = new(flow_format(FLOW_FORMAT_NXM_TABLE_ID))
    assert client.ofctl_flags == ["--flow-format=NXM+table_id"]


def test_option_protocols():
    client = new(protocols([PROTOCOL_OPENFLOW10, PROTOCOL_OPENFLOW13]))
    assert client.ofctl_flags == ["--protocols=OpenFlow10,OpenFlow13"]


def test_option_ssl_param():
    client = new(set_ssl_param("key.pem", "cert.pem", "ca.pem"))
    assert client.ofctl_flags == [
        "--private-key=key.pem",
        "--certificate=cert.pem",
        "--ca-cert=ca.pem",
    ]


def test_option_tcp_param():
    client = new(set_tcp_param("127.0.0.1:6640"))
    assert client.flags == ["--db=tcp:127.0.0.1:6640"]


def test_new_defaults():
    client = new()
    assert client.flags == []
    assert client.ofctl_flags == []
    assert client.debug is False
    assert client.sudo is False
    assert client.exec_func is shell_exec
    assert client.pipe_func is shell_pipe


def test_debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="vswitchctl.client")
    client = new(debug(True), exec_func(Recorder(output=b"out")))
    client.exec("ovs-vsctl", "show")
    assert "exec: ovs-vsctl" in caplog.text


def test_no_logging_without_debug(caplog):
    caplog.set_level(logging.DEBUG, logger="vswitchctl.client")
    client = Client(exec_func=Recorder(output=b"out"))
    client.exec("ovs-vsctl", "show")
    assert caplog.text == ""


def test_shell_exec_combines_output():
    out = shell_exec(
        sys.executable,
        "-c",
        "import sys; sys.stdout.write('a'); sys.stdout.flush(); sys.stderr.write('b')",
    )
    assert out == b"ab"


def test_shell_exec_failure_carries_output():
    with pytest.raises(subprocess.CalledProcessError) as info:
        shell_exec(sys.executable, "-c", "import sys; print('no'); sys.exit(3)")
    assert info.value.returncode == 3
    assert info.value.output.strip() == b"no"


def test_shell_pipe_round_trip():
    script = "import sys; sys.stdout.write(sys.stdin.read())"
    assert shell_pipe(io.BytesIO(b"flow data"), sys.executable, "-c", script) == b"flow data"


def test_client_exec_with_shell():
    client = new()
    assert client.exec(sys.executable, "-c", "print('  hi  ')") == b"hi"