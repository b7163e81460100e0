"""
tinabuild wait command.

SUMMARY: Poll the dev server port until it accepts connections or the wait budget runs out
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
from tinabuild.core.exceptions import ReadinessTimeoutError, TinabuildError
from tinabuild.core.readiness import wait_until_ready

SUMMARY = "Poll the dev server port until it accepts connections or the wait budget runs out"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_target_args(parser)
    parser.add_argument(
        "--max-wait",
        type=float,
        default=None,
        help="Overall wait budget in seconds (default: readiness.max_wait_seconds)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between attempts (default: readiness.interval_seconds)",
    )
    parser.add_argument(
        "--probe-timeout",
        type=float,
        default=None,
        help="Per-attempt connect timeout in seconds (default: readiness.probe_timeout_seconds)",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        cfg = load_cli_config(args)
        setup_logging(cfg)
        readiness = cfg.readiness
        target = readiness.target
        result = wait_until_ready(
            target,
            readiness.max_wait_seconds,
            readiness.interval_seconds,
            probe_timeout_seconds=readiness.probe_timeout_seconds,
            fallback=readiness.fallback_enabled,
            command_timeout_seconds=readiness.fallback_command_timeout_seconds,
        )
    except ReadinessTimeoutError as e:
        formatter.error(e, error_code="readiness_timeout")
        return 1
    except TinabuildError as e:
        formatter.error(e, error_code="wait_error")
        return 1

    formatter.success(
        {"target": str(target), **result.to_dict()},
        f"{target} is ready (method: {result.method})",
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
