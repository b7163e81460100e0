from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER_NAME = "tinabuild"

_STREAM_HANDLER: logging.Handler | None = None
_FILE_HANDLER: logging.Handler | None = None
_CONFIGURED_LOG_PATH: str | None = None


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(*, level: str = "INFO", prefix: str = "[tina-docker]", log_path: Path | str | None = None) -> logging.Logger:
    """Configure the ``tinabuild`` logger.

    Installs one stderr handler formatted ``"<prefix> message"`` and, when
    ``log_path`` is given, a file handler with timestamps. Idempotent: calling
    again replaces only the handlers installed here. stdout is left alone so
    ``--json`` output stays machine-readable.
    """
    global _STREAM_HANDLER, _FILE_HANDLER, _CONFIGURED_LOG_PATH

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(_level_from_name(level))
    logger.propagate = False

    if _STREAM_HANDLER is not None:
        logger.removeHandler(_STREAM_HANDLER)
        _STREAM_HANDLER.close()
    fmt = f"{prefix} %(message)s" if prefix else "%(message)s"
    sh = logging.StreamHandler(sys.stderr)
    sh.setFormatter(logging.Formatter(fmt))
    logger.addHandler(sh)
    _STREAM_HANDLER = sh

    resolved = str(Path(log_path).expanduser().resolve()) if log_path else None
    if resolved != _CONFIGURED_LOG_PATH and _FILE_HANDLER is not None:
        logger.removeHandler(_FILE_HANDLER)
        _FILE_HANDLER.close()
        _FILE_HANDLER = None
        _CONFIGURED_LOG_PATH = None

    if resolved and _FILE_HANDLER is None:
        Path(resolved).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(resolved, encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(fh)
        _FILE_HANDLER = fh
        _CONFIGURED_LOG_PATH = resolved

    return logger


def reset_logging_for_tests() -> None:
    """Test-only: remove handlers installed by configure_logging."""
    global _STREAM_HANDLER, _FILE_HANDLER, _CONFIGURED_LOG_PATH
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for h in (_STREAM_HANDLER, _FILE_HANDLER):
        if h is not None:
            logger.removeHandler(h)
            h.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _STREAM_HANDLER = None
    _FILE_HANDLER = None
    _CONFIGURED_LOG_PATH = None


__all__ = ["ROOT_LOGGER_NAME", "configure_logging", "reset_logging_for_tests"]
