from __future__ import annotations

import logging
import time
from typing import Callable

from tinabuild.core.exceptions import ReadinessTimeoutError

from .models import PollSession, ProbeResult, ProbeTarget
from .probe import (
    DEFAULT_COMMAND_TIMEOUT_SECONDS,
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    CommandRunner,
    probe_fallback,
    probe_once,
)

logger = logging.getLogger(__name__)


def wait_until_ready(
    target: ProbeTarget,
    max_wait_seconds: float,
    interval_seconds: float,
    *,
    probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
    fallback: bool = True,
    command_timeout_seconds: float = DEFAULT_COMMAND_TIMEOUT_SECONDS,
    runner: CommandRunner | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> ProbeResult:
    """Poll ``target`` until it accepts connections or the deadline passes.

    Each attempt tries the socket probe first and only runs the fallback
    commands when the socket probe fails. Attempts are spaced by a fixed
    ``interval_seconds``; the last delay is shortened so polling never runs
    past ``max_wait_seconds``.

    Returns:
        The ProbeResult that reported the target reachable.

    Raises:
        ReadinessTimeoutError: the deadline passed without a successful probe.
    """
    session = PollSession(
        target=target,
        max_wait_seconds=max_wait_seconds,
        interval_seconds=interval_seconds,
        clock=clock,
    )
    logger.info("Waiting for %s to be ready (up to %.0fs)...", target, session.max_wait_seconds)

    while not session.expired():
        attempt = session.next_attempt()
        logger.info("Attempt %d: Checking if server is ready on %s...", attempt, target)

        result = probe_once(target, timeout_seconds=probe_timeout_seconds)
        if result.reachable:
            _log_ready(session, result)
            return result

        if fallback:
            logger.info("Primary method failed, trying fallback method...")
            result = probe_fallback(
                target,
                command_timeout_seconds=command_timeout_seconds,
                runner=runner,
            )
            if result.reachable:
                _log_ready(session, result)
                return result

        delay = session.next_delay()
        logger.info(
            "Server not ready yet, waiting... (%.0fs elapsed, %.0fs remaining)",
            session.elapsed(),
            session.remaining(),
        )
        if delay > 0:
            sleep(delay)

    raise ReadinessTimeoutError(
        f"{target} did not become ready within {session.max_wait_seconds:g} seconds "
        f"after {session.attempt_count} attempts",
        attempts=session.attempt_count,
        max_wait_seconds=session.max_wait_seconds,
        target=str(target),
    )


def _log_ready(session: PollSession, result: ProbeResult) -> None:
    logger.info(
        "Server is ready on %s via %s after %d attempts (%.1fs)",
        session.target,
        result.method,
        session.attempt_count,
        session.elapsed(),
    )


__all__ = ["wait_until_ready"]
