"""Fallback probe tests.

The command runner is injected so no system tools are required.
"""
from __future__ import annotations

import logging
import sys

import pytest

from tinabuild.core.readiness import FALLBACK_PROBES, ProbeTarget, hex_port, probe_fallback, run_command

SS_OUTPUT = """\
Netid State  Recv-Q Send-Q Local Address:Port  Peer Address:Port Process
tcp   LISTEN 0      511          0.0.0.0:4001       0.0.0.0:*
tcp   LISTEN 0      128        127.0.0.1:5432       0.0.0.0:*
"""

NETSTAT_BSD_OUTPUT = """\
Active Internet connections (only servers)
Proto Recv-Q Send-Q  Local Address          Foreign Address        (state)
tcp4       0      0  127.0.0.1.4001         *.*                    LISTEN
"""

LSOF_OUTPUT = """\
COMMAND   PID USER   FD   TYPE DEVICE SIZE/OFF NODE NAME
node    12345 app    23u  IPv6 0x1234      0t0  TCP *:4001 (LISTEN)
"""

PROC_TCP_OUTPUT = """\
  sl  local_address rem_address   st tx_queue rx_queue tr tm->when retrnsmt   uid  timeout inode
   0: 00000000:0FA1 00000000:0000 0A 00000000:00000000 00:00000000 00000000  1000        0 12345 1
   1: 0100007F:1538 00000000:0000 0A 00000000:00000000 00:00000000 00000000  1000        0 12346 1
"""


class FakeRunner:
    """Serves canned output per command name and records the calls."""

    def __init__(self, outputs):
        self.outputs = outputs
        self.calls: list[list[str]] = []

    def __call__(self, argv, timeout_seconds):
        self.calls.append(list(argv))
        value = self.outputs.get(argv[0])
        if isinstance(value, BaseException):
            raise value
        return value

    @property
    def commands(self) -> list[str]:
        return [c[0] for c in self.calls]


TARGET = ProbeTarget("localhost", 4001)


def test_probe_order_is_fixed():
    assert [p.name for p in FALLBACK_PROBES] == ["ss", "netstat", "lsof", "proc"]
    assert FALLBACK_PROBES[2].argv(4001) == ["lsof", "-nP", "-i", ":4001"]
    assert FALLBACK_PROBES[3].argv(4001) == ["cat", "/proc/net/tcp"]


def test_hex_port_is_lowercase():
    assert hex_port(4001) == "fa1"
    assert hex_port(8080) == "1f90"


def test_ss_match_stops_the_chain():
    runner = FakeRunner({"ss": SS_OUTPUT})
    result = probe_fallback(TARGET, runner=runner)
    assert result.reachable is True
    assert result.method == "fallback-ss"
    assert result.via_fallback
    assert runner.commands == ["ss"]


def test_port_prefix_does_not_match():
    # 40010 must not be mistaken for 4001.
    runner = FakeRunner({"ss": SS_OUTPUT.replace(":4001", ":40010")})
    result = probe_fallback(TARGET, runner=runner)
    assert result.reachable is False
    assert runner.commands == ["ss", "netstat", "lsof", "cat"]


NETSTAT_LINUX_OUTPUT = """\
Active Internet connections (only servers)
Proto Recv-Q Send-Q Local Address           Foreign Address         State
tcp        0      0 127.0.0.53:22           0.0.0.0:*               LISTEN
tcp        0      0 127.0.0.1:631           0.0.0.0:*               LISTEN
tcp6       0      0 ::1:631                 :::*                    LISTEN
"""


@pytest.mark.parametrize("port", [53, 1, 127])
def test_address_octets_are_not_ports(port):
    # 127.0.0.53:22 listens on 22, not 53; ::1:631 listens on 631, not 1.
    runner = FakeRunner({"netstat": NETSTAT_LINUX_OUTPUT})
    result = probe_fallback(ProbeTarget("localhost", port), runner=runner)
    assert result.reachable is False


@pytest.mark.parametrize("port", [22, 631])
def test_linux_netstat_listening_port_matches(port):
    runner = FakeRunner({"netstat": NETSTAT_LINUX_OUTPUT})
    result = probe_fallback(ProbeTarget("localhost", port), runner=runner)
    assert result.method == "fallback-netstat"


def test_failed_commands_fall_through_to_next():
    runner = FakeRunner({"ss": None, "netstat": NETSTAT_BSD_OUTPUT})
    result = probe_fallback(TARGET, runner=runner)
    assert result.reachable is True
    assert result.method == "fallback-netstat"


def test_lsof_match():
    runner = FakeRunner({"ss": "", "netstat": None, "lsof": LSOF_OUTPUT})
    result = probe_fallback(TARGET, runner=runner)
    assert result.method == "fallback-lsof"


def test_proc_table_matches_uppercase_padded_hex():
    runner = FakeRunner({"cat": PROC_TCP_OUTPUT})
    result = probe_fallback(TARGET, runner=runner)
    assert result.reachable is True
    assert result.method == "fallback-proc"


def test_proc_table_ignores_remote_address_column():
    output = (
        "  sl  local_address rem_address   st\n"
        "   0: 0100007F:1F90 0100007F:0FA1 01\n"
    )
    result = probe_fallback(TARGET, runner=FakeRunner({"cat": output}))
    assert result.reachable is False


def test_runner_exceptions_are_swallowed():
    runner = FakeRunner(
        {
            "ss": RuntimeError("boom"),
            "netstat": OSError("missing"),
            "lsof": None,
            "cat": PROC_TCP_OUTPUT,
        }
    )
    result = probe_fallback(TARGET, runner=runner)
    assert result.reachable is True
    assert result.method == "fallback-proc"


def test_malformed_output_is_no_match():
    garbage = "\x00\x01 not a table ::: \n:\n   \n"
    runner = FakeRunner({"ss": garbage, "netstat": garbage, "lsof": garbage, "cat": garbage})
    result = probe_fallback(TARGET, runner=runner)
    assert result.reachable is False
    assert result.method == "none"


def test_all_failed_logs_summary(caplog):
    caplog.set_level(logging.INFO, logger="tinabuild")
    result = probe_fallback(TARGET, runner=FakeRunner({}))
    assert result.reachable is False
    assert "All fallback methods failed for localhost:4001" in caplog.text


def test_success_logs_command(caplog):
    caplog.set_level(logging.INFO, logger="tinabuild")
    probe_fallback(TARGET, runner=FakeRunner({"ss": SS_OUTPUT}))
    assert "Fallback method found port 4001 listening using: ss -tuln" in caplog.text


class TestRunCommand:
    def test_returns_stdout(self):
        out = run_command([sys.executable, "-c", "print('ok')"], 10)
        assert out is not None
        assert out.strip() == "ok"

    def test_non_zero_exit_is_none(self):
        assert run_command([sys.executable, "-c", "import sys; sys.exit(3)"], 10) is None

    def test_missing_binary_is_none(self):
        assert run_command(["tinabuild-no-such-binary-xyz"], 1) is None

    @pytest.mark.slow
    def test_timeout_is_none(self):
        assert run_command([sys.executable, "-c", "import time; time.sleep(5)"], 0.2) is None
