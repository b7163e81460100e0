"""
tinabuild config command.

SUMMARY: Show the effective configuration (defaults + project file + environment)
"""

from __future__ import annotations

import argparse
import sys

import yaml

from tinabuild.cli import OutputFormatter, add_config_flag, add_json_flag, add_project_root_flag, get_project_root
from tinabuild.core.config import ConfigManager
from tinabuild.core.exceptions import TinabuildError

SUMMARY = "Show the effective configuration (defaults + project file + environment)"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--section",
        type=str,
        default=None,
        choices=["readiness", "dev_server", "build", "logging"],
        help="Only show one section",
    )
    add_config_flag(parser)
    add_project_root_flag(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        manager = ConfigManager(get_project_root(args), config_path=getattr(args, "config", None))
        cfg = manager.load_config()
    except TinabuildError as e:
        formatter.error(e, error_code="config_error")
        return 1

    section = getattr(args, "section", None)
    data = cfg.get(section, {}) if section else cfg
    if formatter.json_mode:
        formatter.json_output(data)
    else:
        formatter.text(yaml.safe_dump(data, sort_keys=False).rstrip())
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
