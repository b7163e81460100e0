"""Build orchestration.

Sequence: start the dev server, wait for its port, run the build command,
shut the dev server down. The dev server is stopped on every exit path.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tinabuild.core.config.models import BuildConfig, TinabuildConfig
from tinabuild.core.exceptions import BuildStepError, ReadinessTimeoutError
from tinabuild.core.process import DevServerHandle, start_dev_server, stop_dev_server
from tinabuild.core.readiness import ProbeResult, wait_until_ready

logger = logging.getLogger(__name__)

# The build inherits this descriptor as its stderr too.
STDERR_FD = 2


@dataclass(frozen=True)
class PipelineResult:
    readiness: ProbeResult
    build_returncode: int | None
    dev_server_returncode: int | None
    elapsed_seconds: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "readiness": self.readiness.to_dict(),
            "build_returncode": self.build_returncode,
            "dev_server_returncode": self.dev_server_returncode,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }


@contextmanager
def dev_server_lifecycle(config: TinabuildConfig, *, cwd: Path | None = None) -> Iterator[DevServerHandle]:
    """Start the dev server for the duration of the block."""
    handle = start_dev_server(config.dev_server, port=config.readiness.port, cwd=cwd)
    try:
        yield handle
    finally:
        stop_dev_server(handle, grace_seconds=config.dev_server.shutdown_grace_seconds)


def run_build(config: BuildConfig, *, cwd: Path | None = None, stdout_to_stderr: bool = False) -> int:
    """Run the build command with inherited stdio and return its exit code.

    ``stdout_to_stderr`` keeps the build log off stdout, for callers that
    print a machine-readable result there.
    """
    argv = list(config.command)
    run_cwd = Path(config.cwd).expanduser() if config.cwd else cwd
    env = dict(os.environ)
    env.update(config.env)

    logger.info("Running build: %s", shlex.join(argv))
    try:
        completed = subprocess.run(  # noqa: S603
            argv,
            cwd=str(run_cwd) if run_cwd else None,
            env=env,
            stdout=STDERR_FD if stdout_to_stderr else None,
            check=False,
        )
    except FileNotFoundError as exc:
        raise BuildStepError(f"Build command not found: {argv[0]}", command=argv) from exc

    if completed.returncode != 0:
        raise BuildStepError(
            f"Build failed with code {completed.returncode}",
            returncode=completed.returncode,
            command=argv,
        )
    logger.info("Build completed successfully")
    return completed.returncode


def run_pipeline(
    config: TinabuildConfig,
    *,
    skip_build: bool = False,
    cwd: Path | None = None,
    stdout_to_stderr: bool = False,
) -> PipelineResult:
    started = time.monotonic()
    readiness = config.readiness
    target = readiness.target

    logger.info("Starting build process...")
    build_rc: int | None = None
    with dev_server_lifecycle(config, cwd=cwd) as handle:
        try:
            probe = wait_until_ready(
                target,
                readiness.max_wait_seconds,
                readiness.interval_seconds,
                probe_timeout_seconds=readiness.probe_timeout_seconds,
                fallback=readiness.fallback_enabled,
                command_timeout_seconds=readiness.fallback_command_timeout_seconds,
            )
        except ReadinessTimeoutError as exc:
            if not handle.is_running():
                exc.context["dev_server_returncode"] = handle.returncode
                logger.error(
                    "%s dev server exited with code %s before becoming ready",
                    handle.label,
                    handle.returncode,
                )
            raise

        if skip_build or not config.build.enabled:
            logger.info("Build step skipped")
        else:
            build_rc = run_build(config.build, cwd=cwd, stdout_to_stderr=stdout_to_stderr)

    logger.info("Build process completed successfully")
    return PipelineResult(
        readiness=probe,
        build_returncode=build_rc,
        dev_server_returncode=handle.returncode,
        elapsed_seconds=time.monotonic() - started,
    )


__all__ = ["PipelineResult", "dev_server_lifecycle", "run_build", "run_pipeline"]
