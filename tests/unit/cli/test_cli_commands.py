from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
import yaml

from tinabuild import __version__
from tinabuild.cli._dispatcher import discover_commands, main

SERVER_SCRIPT = (
    "import socket, sys, time\n"
    "s = socket.socket()\n"
    "s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)\n"
    "s.bind(('127.0.0.1', int(sys.argv[1])))\n"
    "s.listen(8)\n"
    "time.sleep(60)\n"
)


def _write_project_config(root: Path, port: int, *, build_code: str = "pass") -> None:
    cfg = {
        "readiness": {
            "host": "127.0.0.1",
            "port": port,
            "max_wait_seconds": 10,
            "interval_seconds": 0.2,
            "fallback": {"enabled": False},
        },
        "dev_server": {
            "command": [sys.executable, "-c", SERVER_SCRIPT, "{port}"],
            "shutdown_grace_seconds": 1,
        },
        "build": {"command": [sys.executable, "-c", build_code]},
    }
    (root / "tinabuild.yaml").write_text(yaml.safe_dump(cfg), encoding="utf-8")


def test_commands_are_discovered():
    assert {"probe", "wait", "run", "config"} <= set(discover_commands())


def test_version(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "commands" in capsys.readouterr().out


class TestProbe:
    def test_reachable(self, project_dir, listening_socket, capsys):
        port = listening_socket.getsockname()[1]
        rc = main(["probe", "--host", "127.0.0.1", "--port", str(port), "--json", "--log-level", "error"])
        assert rc == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["status"] == "success"
        assert payload["reachable"] is True
        assert payload["method"] == "socket"
        assert payload["target"] == f"127.0.0.1:{port}"

    def test_unreachable(self, project_dir, free_port, capsys):
        rc = main(["probe", "--host", "127.0.0.1", "--port", str(free_port), "--no-fallback", "--json"])
        assert rc == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["status"] == "unreachable"
        assert payload["reachable"] is False

    def test_text_output(self, project_dir, listening_socket, capsys):
        port = listening_socket.getsockname()[1]
        assert main(["probe", "--host", "127.0.0.1", "--port", str(port)]) == 0
        captured = capsys.readouterr()
        assert f"127.0.0.1:{port} is reachable (method: socket)" in captured.out
        assert "[tina-docker] Successfully connected to 127.0.0.1:" in captured.err

    def test_invalid_port_is_reported(self, project_dir, capsys):
        rc = main(["probe", "--port", "70000", "--json", "--log-level", "error"])
        assert rc == 1
        payload = json.loads(capsys.readouterr().err)
        assert payload["error"] == "probe_error"
        assert payload["code"] == "ConfigError"


class TestWait:
    def test_ready(self, project_dir, listening_socket, capsys):
        port = listening_socket.getsockname()[1]
        rc = main(["wait", "--host", "127.0.0.1", "--port", str(port), "--max-wait", "5", "--json", "--log-level", "error"])
        assert rc == 0
        assert json.loads(capsys.readouterr().out)["reachable"] is True

    def test_timeout(self, project_dir, free_port, capsys):
        rc = main(
            [
                "wait",
                "--host", "127.0.0.1",
                "--port", str(free_port),
                "--max-wait", "0",
                "--no-fallback",
                "--json",
                "--log-level", "error",
            ]
        )
        assert rc == 1
        payload = json.loads(capsys.readouterr().err)
        assert payload["error"] == "readiness_timeout"
        assert payload["code"] == "ReadinessTimeoutError"
        assert payload["context"]["attempts"] == 0


@pytest.mark.integration
class TestRun:
    def test_run_pipeline(self, project_dir, free_port, capsys):
        _write_project_config(project_dir, free_port)
        rc = main(["run", "--json", "--log-level", "error"])
        assert rc == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["status"] == "success"
        assert payload["build_returncode"] == 0
        assert payload["readiness"]["method"] == "socket"

    def test_json_stdout_excludes_build_output(self, project_dir, free_port, capfd):
        _write_project_config(project_dir, free_port, build_code="print('Route (app) Size')")
        rc = main(["run", "--json", "--log-level", "error"])
        assert rc == 0
        captured = capfd.readouterr()
        payload = json.loads(captured.out)
        assert payload["build_returncode"] == 0
        assert "Route (app) Size" in captured.err

    def test_build_failure(self, project_dir, free_port, capsys):
        _write_project_config(project_dir, free_port, build_code="import sys; sys.exit(2)")
        rc = main(["run", "--project-root", str(project_dir)])
        assert rc == 1
        assert "Error: Build process failed: Build failed with code 2" in capsys.readouterr().err


class TestConfig:
    def test_section_json(self, project_dir, capsys):
        assert main(["config", "--section", "readiness", "--json"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["port"] == 4001
        assert payload["fallback"]["enabled"] is True

    def test_yaml_output_reflects_env(self, project_dir, monkeypatch, capsys):
        monkeypatch.setenv("TINABUILD_READINESS__PORT", "4555")
        assert main(["config"]) == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["readiness"]["port"] == 4555

    def test_missing_config_file(self, project_dir, capsys):
        assert main(["config", "--config", "absent.yaml"]) == 1
        assert "Config file not found" in capsys.readouterr().err
