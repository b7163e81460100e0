"""Single-shot readiness probes.

Two detection methods:

- ``probe_once``: direct TCP connect with a fixed per-attempt timeout.
- ``probe_fallback``: OS port-inspection commands (``ss``, ``netstat``,
  ``lsof``, the kernel TCP table) tried in order until one reports the port.

The fallback exists for minimal containers where a loopback connect can fail
even though the server is bound (missing raw-socket support, asymmetric
network namespaces). It is strictly best-effort: every failure mode ends in
"not reachable", never in an exception.
"""

from __future__ import annotations

import logging
import re
import shlex
import socket
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .models import (
    FALLBACK_METHOD_PREFIX,
    METHOD_SOCKET,
    ProbeResult,
    ProbeTarget,
)

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 3.0
DEFAULT_COMMAND_TIMEOUT_SECONDS = 5.0

# (argv, timeout_seconds) -> stdout, or None when the command failed.
CommandRunner = Callable[[Sequence[str], float], Optional[str]]


def probe_once(target: ProbeTarget, *, timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS) -> ProbeResult:
    """Try one TCP connection to ``target``.

    The connection is closed as soon as it is established; no data is sent.
    Resolution may return several addresses (``localhost`` is commonly both
    ``::1`` and ``127.0.0.1``); they share one deadline so the whole call stays
    within ``timeout_seconds`` for the connect phase.
    """
    timeout_seconds = max(0.01, float(timeout_seconds))
    deadline = time.monotonic() + timeout_seconds

    try:
        infos = socket.getaddrinfo(target.host, target.port, type=socket.SOCK_STREAM)
    except OSError as exc:
        logger.info("Connection error for %s: %s", target, exc)
        return ProbeResult.unreachable(f"resolve failed: {exc}")

    last_error: str | None = None
    for family, socktype, proto, _canon, sockaddr in infos:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        try:
            # Creation fails for families the host cannot use (::1 with IPv6 disabled).
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            last_error = str(exc) or exc.__class__.__name__
            continue
        try:
            sock.settimeout(remaining)
            sock.connect(sockaddr)
        except socket.timeout:
            last_error = "timeout"
        except OSError as exc:
            last_error = str(exc) or exc.__class__.__name__
        else:
            logger.info("Successfully connected to %s", target)
            return ProbeResult(reachable=True, method=METHOD_SOCKET)
        finally:
            sock.close()

    if not infos:
        last_error = "no addresses"
    elif last_error is None:
        last_error = "timeout"
    if last_error == "timeout":
        logger.info("Connection timeout for %s", target)
    else:
        logger.info("Connection error for %s: %s", target, last_error)
    return ProbeResult.unreachable(last_error)


def run_command(argv: Sequence[str], timeout_seconds: float) -> str | None:
    """Run ``argv`` and return stdout, or None on any failure.

    Non-zero exit, a missing binary and a timeout are all failures.
    """
    try:
        result = subprocess.run(  # noqa: S603
            list(argv),
            capture_output=True,
            text=True,
            timeout=max(0.1, float(timeout_seconds)),
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("Fallback command %s failed: %s", shlex.join(argv), exc)
        return None
    if result.returncode != 0:
        logger.debug("Fallback command %s exited %s", shlex.join(argv), result.returncode)
        return None
    return result.stdout or ""


def _decimal_port_pattern(port: int, separators: str = ":") -> re.Pattern[str]:
    # The port must end the address token: whitespace, end of line or lsof's "->".
    return re.compile(rf"[{re.escape(separators)}]{port}(?=\s|->|$)", re.MULTILINE)


def _match_ss(output: str, port: int) -> bool:
    return bool(_decimal_port_pattern(port).search(output))


def _match_netstat(output: str, port: int) -> bool:
    # BSD netstat prints addresses as 127.0.0.1.4001
    return bool(_decimal_port_pattern(port, ":.").search(output))


def _match_lsof(output: str, port: int) -> bool:
    return bool(_decimal_port_pattern(port).search(output))


def hex_port(port: int) -> str:
    """Lowercase hexadecimal port, as used to scan the kernel TCP table."""
    return format(int(port), "x")


def _match_proc_tcp(output: str, port: int) -> bool:
    """Match ``port`` against the local_address column of /proc/net/tcp rows.

    The kernel prints ports as zero-padded uppercase hex (``0FA1``), so the
    comparison is case-insensitive and ignores the padding.
    """
    wanted = hex_port(port)
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 2 or not fields[0].endswith(":"):
            continue
        _addr, sep, local_port = fields[1].rpartition(":")
        if not sep or not local_port:
            continue
        if local_port.lower().lstrip("0") == wanted:
            return True
    return False


@dataclass(frozen=True)
class FallbackProbe:
    name: str
    argv: Callable[[int], list[str]]
    matches: Callable[[str, int], bool]

    @property
    def method(self) -> str:
        return f"{FALLBACK_METHOD_PREFIX}{self.name}"


FALLBACK_PROBES: tuple[FallbackProbe, ...] = (
    FallbackProbe("ss", lambda port: ["ss", "-tuln"], _match_ss),
    FallbackProbe("netstat", lambda port: ["netstat", "-tuln"], _match_netstat),
    FallbackProbe("lsof", lambda port: ["lsof", "-nP", "-i", f":{port}"], _match_lsof),
    FallbackProbe("proc", lambda port: ["cat", "/proc/net/tcp"], _match_proc_tcp),
)


def probe_fallback(
    target: ProbeTarget,
    *,
    command_timeout_seconds: float = DEFAULT_COMMAND_TIMEOUT_SECONDS,
    runner: CommandRunner | None = None,
) -> ProbeResult:
    """Look for a listener on ``target.port`` with OS inspection commands.

    Stops at the first command that succeeds and whose output mentions the
    port. The host is not checked: these tools report local sockets only.
    """
    run = runner or run_command
    for probe in FALLBACK_PROBES:
        argv = probe.argv(target.port)
        try:
            output = run(argv, command_timeout_seconds)
        except Exception as exc:
            logger.debug("Fallback %s raised: %s", probe.name, exc)
            continue
        if not output or not output.strip():
            continue
        try:
            matched = probe.matches(output, target.port)
        except Exception as exc:
            # Unexpected output shape counts as "no match".
            logger.debug("Fallback %s output not understood: %s", probe.name, exc)
            continue
        if matched:
            logger.info(
                "Fallback method found port %s listening using: %s",
                target.port,
                shlex.join(argv),
            )
            return ProbeResult(reachable=True, method=probe.method)

    logger.info("All fallback methods failed for %s", target)
    return ProbeResult.unreachable("no fallback command reported the port")


__all__ = [
    "CommandRunner",
    "DEFAULT_COMMAND_TIMEOUT_SECONDS",
    "DEFAULT_PROBE_TIMEOUT_SECONDS",
    "FALLBACK_PROBES",
    "FallbackProbe",
    "hex_port",
    "probe_fallback",
    "probe_once",
    "run_command",
]
