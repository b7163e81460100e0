"""Shared helpers for CLI commands."""
from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path

from tinabuild.core.config import ReadinessConfig, TinabuildConfig, load_config
from tinabuild.core.log import configure_logging


def get_project_root(args: argparse.Namespace) -> Path:
    raw = getattr(args, "project_root", None)
    return Path(raw).expanduser().resolve() if raw else Path.cwd().resolve()


def load_cli_config(args: argparse.Namespace) -> TinabuildConfig:
    """Load config and apply the command-line overrides present on ``args``."""
    cfg = load_config(get_project_root(args), config_path=getattr(args, "config", None))

    overrides: dict[str, object] = {}
    for arg_name, field_name in (
        ("host", "host"),
        ("port", "port"),
        ("max_wait", "max_wait_seconds"),
        ("interval", "interval_seconds"),
        ("probe_timeout", "probe_timeout_seconds"),
        ("fallback", "fallback_enabled"),
    ):
        value = getattr(args, arg_name, None)
        if value is not None:
            overrides[field_name] = value
    if overrides:
        readiness: ReadinessConfig = dataclasses.replace(cfg.readiness, **overrides)
        cfg = dataclasses.replace(cfg, readiness=readiness)

    level = getattr(args, "log_level", None)
    if level:
        cfg = dataclasses.replace(cfg, logging=dataclasses.replace(cfg.logging, level=level))
    return cfg


def setup_logging(cfg: TinabuildConfig) -> None:
    configure_logging(level=cfg.logging.level, prefix=cfg.logging.prefix, log_path=cfg.logging.file)


__all__ = ["get_project_root", "load_cli_config", "setup_logging"]
