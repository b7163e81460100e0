from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

METHOD_SOCKET = "socket"
METHOD_NONE = "none"
FALLBACK_METHOD_PREFIX = "fallback-"


@dataclass(frozen=True)
class ProbeTarget:
    """A TCP endpoint to probe."""

    host: str
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.host, str) or not self.host.strip():
            raise ValueError("ProbeTarget.host must be a non-empty string")
        # bool is an int subclass; reject it explicitly.
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ValueError(f"ProbeTarget.port must be an integer, got {self.port!r}")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"ProbeTarget.port out of range (1-65535): {self.port}")

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class ProbeResult:
    reachable: bool
    method: str = METHOD_NONE
    detail: str | None = None

    @classmethod
    def unreachable(cls, detail: str | None = None) -> ProbeResult:
        return cls(reachable=False, method=METHOD_NONE, detail=detail)

    @property
    def via_fallback(self) -> bool:
        return self.method.startswith(FALLBACK_METHOD_PREFIX)

    def to_dict(self) -> dict[str, object]:
        return {"reachable": self.reachable, "method": self.method, "detail": self.detail}


@dataclass
class PollSession:
    """Book-keeping for one wait_until_ready call.

    Times come from ``clock`` (monotonic by default) so wall-clock jumps do not
    stretch or shrink the deadline.
    """

    target: ProbeTarget
    max_wait_seconds: float
    interval_seconds: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    start_time: float = field(init=False)
    deadline: float = field(init=False)
    attempt_count: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.max_wait_seconds = max(0.0, float(self.max_wait_seconds))
        self.interval_seconds = max(0.0, float(self.interval_seconds))
        self.start_time = self.clock()
        self.deadline = self.start_time + self.max_wait_seconds

    def next_attempt(self) -> int:
        self.attempt_count += 1
        return self.attempt_count

    def elapsed(self) -> float:
        return max(0.0, self.clock() - self.start_time)

    def remaining(self) -> float:
        return max(0.0, self.deadline - self.clock())

    def expired(self) -> bool:
        return self.elapsed() >= self.max_wait_seconds

    def next_delay(self) -> float:
        """Delay before the next attempt, never past the deadline."""
        return min(self.interval_seconds, self.remaining())


__all__ = [
    "METHOD_SOCKET",
    "METHOD_NONE",
    "FALLBACK_METHOD_PREFIX",
    "ProbeTarget",
    "ProbeResult",
    "PollSession",
]
