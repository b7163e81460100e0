from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from typing import Any

from tinabuild.core.exceptions import ConfigError
from tinabuild.core.readiness.models import ProbeTarget


def _as_float(v: Any, default: float) -> float:
    try:
        if v is None:
            return float(default)
        return float(v)
    except (TypeError, ValueError):
        return float(default)


def _as_argv(raw: Any, *, key: str) -> list[str]:
    if isinstance(raw, str):
        argv = shlex.split(raw)
    elif isinstance(raw, list):
        argv = [str(part) for part in raw]
    else:
        argv = []
    if not argv:
        raise ConfigError(f"{key} must be a non-empty command", context={"key": key})
    return argv


def _as_cwd(raw: Any) -> str | None:
    if raw is None:
        return None
    cwd = os.path.expandvars(str(raw).strip())
    return cwd or None


def _as_env(raw: Any) -> dict[str, str]:
    if not isinstance(raw, dict):
        return {}
    return {str(k): os.path.expandvars(str(v)) for k, v in raw.items()}


def _section(raw: Any, name: str) -> dict[str, Any]:
    section = raw.get(name) if isinstance(raw, dict) else None
    return section if isinstance(section, dict) else {}


@dataclass(frozen=True)
class ReadinessConfig:
    host: str = "localhost"
    port: int = 4001
    max_wait_seconds: float = 60.0
    interval_seconds: float = 2.0
    probe_timeout_seconds: float = 3.0
    fallback_enabled: bool = True
    fallback_command_timeout_seconds: float = 5.0

    @classmethod
    def from_raw(cls, raw: Any) -> ReadinessConfig:
        section = raw if isinstance(raw, dict) else {}
        fallback = section.get("fallback") if isinstance(section.get("fallback"), dict) else {}
        try:
            port = int(section.get("port", 4001))
        except (TypeError, ValueError) as exc:
            raise ConfigError(
                f"readiness.port must be an integer: {section.get('port')!r}",
                context={"key": "readiness.port"},
            ) from exc
        return cls(
            host=str(section.get("host") or "localhost").strip() or "localhost",
            port=port,
            max_wait_seconds=_as_float(section.get("max_wait_seconds"), 60.0),
            interval_seconds=_as_float(section.get("interval_seconds"), 2.0),
            probe_timeout_seconds=_as_float(section.get("probe_timeout_seconds"), 3.0),
            fallback_enabled=bool(fallback.get("enabled", True)),
            fallback_command_timeout_seconds=_as_float(fallback.get("command_timeout_seconds"), 5.0),
        )

    @property
    def target(self) -> ProbeTarget:
        try:
            return ProbeTarget(host=self.host, port=self.port)
        except ValueError as exc:
            raise ConfigError(str(exc), context={"key": "readiness"}) from exc


@dataclass(frozen=True)
class DevServerConfig:
    """How to launch the CMS dev server. ``{port}`` in the command is substituted."""

    command: list[str]
    label: str = "TinaCMS"
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    shutdown_grace_seconds: float = 2.0

    @classmethod
    def from_raw(cls, raw: Any) -> DevServerConfig:
        section = raw if isinstance(raw, dict) else {}
        return cls(
            command=_as_argv(section.get("command"), key="dev_server.command"),
            label=str(section.get("label") or "TinaCMS"),
            cwd=_as_cwd(section.get("cwd")),
            env=_as_env(section.get("env")),
            shutdown_grace_seconds=_as_float(section.get("shutdown_grace_seconds"), 2.0),
        )

    def argv(self, *, port: int) -> list[str]:
        return [part.replace("{port}", str(port)) for part in self.command]


@dataclass(frozen=True)
class BuildConfig:
    command: list[str]
    enabled: bool = True
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any) -> BuildConfig:
        section = raw if isinstance(raw, dict) else {}
        return cls(
            command=_as_argv(section.get("command"), key="build.command"),
            enabled=bool(section.get("enabled", True)),
            cwd=_as_cwd(section.get("cwd")),
            env=_as_env(section.get("env")),
        )


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    prefix: str = "[tina-docker]"
    file: str | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> LoggingConfig:
        section = raw if isinstance(raw, dict) else {}
        file_raw = section.get("file")
        return cls(
            level=str(section.get("level") or "INFO").upper(),
            prefix=str(section.get("prefix") if section.get("prefix") is not None else "[tina-docker]"),
            file=os.path.expandvars(str(file_raw)) if file_raw else None,
        )


@dataclass(frozen=True)
class TinabuildConfig:
    readiness: ReadinessConfig
    dev_server: DevServerConfig
    build: BuildConfig
    logging: LoggingConfig

    @classmethod
    def from_raw(cls, raw: Any) -> TinabuildConfig:
        return cls(
            readiness=ReadinessConfig.from_raw(_section(raw, "readiness")),
            dev_server=DevServerConfig.from_raw(_section(raw, "dev_server")),
            build=BuildConfig.from_raw(_section(raw, "build")),
            logging=LoggingConfig.from_raw(_section(raw, "logging")),
        )


__all__ = [
    "BuildConfig",
    "DevServerConfig",
    "LoggingConfig",
    "ReadinessConfig",
    "TinabuildConfig",
]
