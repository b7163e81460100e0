"""Layered configuration: bundled defaults, project YAML, TINABUILD_* env vars."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from .manager import ENV_PREFIX, PROJECT_CONFIG_NAMES, ConfigManager
from .models import (
    BuildConfig,
    DevServerConfig,
    LoggingConfig,
    ReadinessConfig,
    TinabuildConfig,
)


def load_config(
    project_root: Optional[Path] = None,
    *,
    config_path: Optional[Path | str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TinabuildConfig:
    """Load, validate and parse the effective configuration."""
    raw = ConfigManager(project_root, config_path=config_path, environ=environ).load_config()
    return TinabuildConfig.from_raw(raw)


__all__ = [
    "BuildConfig",
    "ConfigManager",
    "DevServerConfig",
    "ENV_PREFIX",
    "LoggingConfig",
    "PROJECT_CONFIG_NAMES",
    "ReadinessConfig",
    "TinabuildConfig",
    "load_config",
]
