"""Printing command results.

Results go to stdout and errors to stderr, so ``--json`` output can be piped
while the dev server log keeps streaming to the terminal.
"""
from __future__ import annotations

import json
import sys
from typing import IO, Any, Dict, Optional


class OutputFormatter:
    """Text or JSON rendering of a command's outcome."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        self.json_mode = json_mode
        self.indent = indent

    def _dump(self, payload: Any, stream: Optional[IO[str]] = None) -> None:
        print(json.dumps(payload, indent=self.indent, default=str), file=stream or sys.stdout)

    def success(
        self,
        data: Dict[str, Any],
        message: str,
        *,
        status: str = "success",
    ) -> None:
        """``message`` in text mode; ``{"status": status, **data}`` in JSON mode."""
        if self.json_mode:
            self._dump({"status": status, **data})
        else:
            print(message)

    def error(
        self,
        error: Exception,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
    ) -> None:
        """Report ``error`` on stderr.

        In JSON mode a TinabuildError also contributes its class name and
        context (attempts, returncode, config path, ...).
        """
        text = message or str(error)
        if not self.json_mode:
            print(f"Error: {text}", file=sys.stderr)
            return
        payload: Dict[str, Any] = {"error": error_code, "message": text}
        to_json = getattr(error, "to_json_error", None)
        if callable(to_json):
            details = to_json()
            payload["code"] = details.get("code")
            payload["context"] = details.get("context", {})
        self._dump(payload, sys.stderr)

    def json_output(self, data: Any) -> None:
        self._dump(data)

    def text(self, message: str) -> None:
        print(message)


__all__ = ["OutputFormatter"]
