"""TCP readiness polling.

Decides whether a dev server is accepting connections yet, using a direct
socket connect first and OS port-inspection commands as a fallback, retried
at a fixed interval until a wall-clock deadline.
"""

from .models import (
    METHOD_NONE,
    METHOD_SOCKET,
    PollSession,
    ProbeResult,
    ProbeTarget,
)
from .poller import wait_until_ready
from .probe import (
    FALLBACK_PROBES,
    FallbackProbe,
    hex_port,
    probe_fallback,
    probe_once,
    run_command,
)

__all__ = [
    "METHOD_NONE",
    "METHOD_SOCKET",
    "FALLBACK_PROBES",
    "FallbackProbe",
    "PollSession",
    "ProbeResult",
    "ProbeTarget",
    "hex_port",
    "probe_fallback",
    "probe_once",
    "run_command",
    "wait_until_ready",
]
