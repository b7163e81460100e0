from __future__ import annotations

from typing import Any, Dict, Mapping


class TinabuildError(Exception):
    """Base exception for tinabuild."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class ReadinessTimeoutError(TinabuildError, TimeoutError):
    """Raised when a target did not become reachable before the deadline."""

    def __init__(
        self,
        message: str = "",
        *,
        attempts: int = 0,
        max_wait_seconds: float = 0.0,
        target: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        ctx["attempts"] = int(attempts)
        ctx["max_wait_seconds"] = float(max_wait_seconds)
        if target:
            ctx["target"] = target
        TinabuildError.__init__(self, message, context=ctx)
        TimeoutError.__init__(self, message)
        self.attempts = int(attempts)
        self.max_wait_seconds = float(max_wait_seconds)


class ConfigError(TinabuildError, ValueError):
    """Raised when configuration cannot be loaded or fails validation."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        TinabuildError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class DevServerError(TinabuildError, RuntimeError):
    """Raised when the dev server cannot be started."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        TinabuildError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class BuildStepError(TinabuildError, RuntimeError):
    """Raised when the build command is missing or exits non-zero."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        command: list[str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if returncode is not None:
            ctx["returncode"] = returncode
        if command:
            ctx["command"] = list(command)
        TinabuildError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)
        self.returncode = returncode


__all__ = [
    "TinabuildError",
    "ReadinessTimeoutError",
    "ConfigError",
    "DevServerError",
    "BuildStepError",
]
