import os
import socket
import sys
from pathlib import Path
from typing import Iterator

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'tinabuild' without an editable install.
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from tinabuild.core.log import reset_logging_for_tests  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_tinabuild_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop TINABUILD_* overrides from the developer's shell and reset logging."""
    for key in list(os.environ):
        if key.startswith("TINABUILD_"):
            monkeypatch.delenv(key, raising=False)
    yield
    reset_logging_for_tests()


@pytest.fixture
def free_port() -> int:
    """A local TCP port with nothing listening on it (at the time of the call)."""
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    _host, port = sock.getsockname()
    sock.close()
    return int(port)


@pytest.fixture
def listening_socket() -> Iterator[socket.socket]:
    """A TCP socket listening on 127.0.0.1 with an OS-assigned port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind(("127.0.0.1", 0))
    sock.listen(16)
    try:
        yield sock
    finally:
        sock.close()


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty project directory used as cwd."""
    root = tmp_path / "site"
    root.mkdir()
    monkeypatch.chdir(root)
    return root
