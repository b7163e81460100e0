"""
tinabuild run command.

SUMMARY: Start the dev server, wait until it is ready, run the build, shut the dev server down
"""

from __future__ import annotations

import argparse
import sys

from tinabuild.cli import (
    OutputFormatter,
    add_standard_flags,
    get_project_root,
    load_cli_config,
    setup_logging,
)
from tinabuild.core.exceptions import TinabuildError
from tinabuild.core.pipeline import run_pipeline

SUMMARY = "Start the dev server, wait until it is ready, run the build, shut the dev server down"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--skip-build",
        action="store_true",
        help="Stop after the dev server is ready (useful to check the dev server setup)",
    )
    parser.add_argument(
        "--max-wait",
        type=float,
        default=None,
        help="Overall wait budget in seconds (default: readiness.max_wait_seconds)",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        cfg = load_cli_config(args)
        setup_logging(cfg)
        result = run_pipeline(
            cfg,
            skip_build=bool(getattr(args, "skip_build", False)),
            cwd=get_project_root(args),
            stdout_to_stderr=formatter.json_mode,
        )
    except TinabuildError as e:
        formatter.error(e, message=f"Build process failed: {e}", error_code="build_failed")
        return 1

    formatter.success(result.to_dict(), "Build process completed successfully")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
