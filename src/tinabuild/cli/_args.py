"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_config_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a tinabuild YAML config file (default: tinabuild.yaml in the project root)",
    )


def add_project_root_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--project-root",
        type=str,
        default=None,
        help="Project directory (default: current directory)",
    )


def add_log_level_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override logging.level from config",
    )


def add_target_args(parser: argparse.ArgumentParser) -> None:
    """Add --host/--port overrides for readiness.host/readiness.port."""
    parser.add_argument("--host", type=str, default=None, help="Host to probe (default: readiness.host)")
    parser.add_argument("--port", type=int, default=None, help="Port to probe (default: readiness.port)")
    parser.add_argument(
        "--no-fallback",
        dest="fallback",
        action="store_false",
        default=None,
        help="Only use the socket probe; skip ss/netstat/lsof/proc checks",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    add_config_flag(parser)
    add_project_root_flag(parser)
    add_log_level_flag(parser)
    add_json_flag(parser)


__all__ = [
    "add_config_flag",
    "add_json_flag",
    "add_log_level_flag",
    "add_project_root_flag",
    "add_standard_flags",
    "add_target_args",
]
