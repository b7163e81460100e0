"""Dev server process lifecycle: spawn, forward output to the log, tear down."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

import psutil

from tinabuild.core.config.models import DevServerConfig
from tinabuild.core.exceptions import DevServerError

logger = logging.getLogger(__name__)


def _popen_kwargs() -> dict[str, Any]:
    if os.name == "posix":
        return {"start_new_session": True}
    if os.name == "nt":
        creationflags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", None)
        if isinstance(creationflags, int):
            return {"creationflags": creationflags}
    return {}


def _forward_stream(stream: IO[str], *, label: str, level: int) -> None:
    try:
        for line in iter(stream.readline, ""):
            text = line.rstrip()
            if text:
                logger.log(level, "%s: %s", label, text)
    except (OSError, ValueError):
        # Pipe closed underneath us during teardown.
        return
    finally:
        try:
            stream.close()
        except OSError:
            pass


@dataclass
class DevServerHandle:
    process: subprocess.Popen[str]
    label: str
    argv: list[str]
    forwarders: list[threading.Thread] = field(default_factory=list)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        return self.process.poll()

    def is_running(self) -> bool:
        return self.process.poll() is None


def start_dev_server(config: DevServerConfig, *, port: int, cwd: Path | None = None) -> DevServerHandle:
    """Start the dev server and forward its stdout/stderr lines to the log."""
    argv = config.argv(port=port)
    run_cwd = cwd
    if config.cwd:
        run_cwd = Path(config.cwd).expanduser()
    env = dict(os.environ)
    env.update(config.env)

    logger.info("Starting %s dev server: %s", config.label, shlex.join(argv))
    try:
        proc = subprocess.Popen(  # noqa: S603
            argv,
            cwd=str(run_cwd) if run_cwd else None,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,
            **_popen_kwargs(),
        )
    except FileNotFoundError as exc:
        raise DevServerError(
            f"{config.label} dev server command not found: {argv[0]}",
            context={"command": argv},
        ) from exc
    except OSError as exc:
        raise DevServerError(
            f"Failed to start {config.label} dev server: {exc}",
            context={"command": argv},
        ) from exc

    handle = DevServerHandle(process=proc, label=config.label, argv=argv)
    for stream, suffix, level in (
        (proc.stdout, "", logging.INFO),
        (proc.stderr, " Error", logging.WARNING),
    ):
        if stream is None:
            continue
        t = threading.Thread(
            target=_forward_stream,
            args=(stream,),
            kwargs={"label": f"{config.label}{suffix}", "level": level},
            name=f"tinabuild-devserver-{proc.pid}{suffix.strip().lower() or '-out'}",
            daemon=True,
        )
        t.start()
        handle.forwarders.append(t)
    return handle


def is_process_alive(pid: int) -> bool:
    """Check if a process exists and is not a zombie."""
    try:
        proc = psutil.Process(pid)
        return proc.status() != psutil.STATUS_ZOMBIE
    except (psutil.NoSuchProcess, psutil.ZombieProcess):
        return False
    except psutil.AccessDenied:
        # Exists but belongs to someone else.
        return True


def _descendants(pid: int) -> list[psutil.Process]:
    try:
        return psutil.Process(pid).children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return []


def terminate_process_tree(process: subprocess.Popen[Any], *, grace_seconds: float) -> None:
    """SIGTERM ``process`` and all its descendants, SIGKILL whatever survives ``grace_seconds``.

    ``npx`` wraps the real server in child processes, so killing only the
    direct child would leave the server bound to its port. The direct child
    is reaped through ``process`` so its exit code is preserved.
    """
    grace = max(0.1, float(grace_seconds))
    children = _descendants(process.pid)

    if process.poll() is None:
        try:
            process.terminate()
        except OSError:
            pass
    for child in children:
        try:
            child.terminate()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue

    try:
        process.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        logger.info("Process %s still running after %.1fs, killing", process.pid, grace)
        process.kill()
        process.wait(timeout=1.0)

    if not children:
        return
    _gone, alive = psutil.wait_procs(children, timeout=grace)
    for child in alive:
        logger.info("Process %s still running after %.1fs, killing", child.pid, grace)
        try:
            child.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    if alive:
        psutil.wait_procs(alive, timeout=1.0)


def stop_dev_server(handle: DevServerHandle, *, grace_seconds: float = 2.0) -> int | None:
    """Shut the dev server down and return its exit code.

    Safe to call more than once and on a process that already exited.
    """
    if handle.is_running():
        logger.info("Shutting down %s dev server (pid %s)...", handle.label, handle.pid)
    terminate_process_tree(handle.process, grace_seconds=grace_seconds)
    for t in handle.forwarders:
        t.join(timeout=1.0)
    return handle.process.returncode


__all__ = [
    "DevServerHandle",
    "is_process_alive",
    "start_dev_server",
    "stop_dev_server",
    "terminate_process_tree",
]
