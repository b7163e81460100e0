"""
tinabuild probe command.

SUMMARY: Check once whether the dev server port accepts connections
"""

from __future__ import annotations

import argparse
import sys

from tinabuild.cli import (
    OutputFormatter,
    add_standard_flags,
    add_target_args,
    load_cli_config,
    setup_logging,
)
from tinabuild.core.exceptions import TinabuildError
from tinabuild.core.readiness import probe_fallback, probe_once

SUMMARY = "Check once whether the dev server port accepts connections"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_target_args(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        cfg = load_cli_config(args)
        setup_logging(cfg)
        readiness = cfg.readiness
        target = readiness.target

        result = probe_once(target, timeout_seconds=readiness.probe_timeout_seconds)
        if not result.reachable and readiness.fallback_enabled:
            result = probe_fallback(
                target,
                command_timeout_seconds=readiness.fallback_command_timeout_seconds,
            )
    except TinabuildError as e:
        formatter.error(e, error_code="probe_error")
        return 1

    data = {"target": str(target), **result.to_dict()}
    if result.reachable:
        formatter.success(data, f"{target} is reachable (method: {result.method})")
        return 0
    formatter.success(data, f"{target} is not reachable", status="unreachable")
    return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
