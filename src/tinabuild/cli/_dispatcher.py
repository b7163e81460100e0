"""
Entry point of the ``tinabuild`` console script.

Every public module in ``tinabuild.cli.commands`` becomes a subcommand named
after the module (underscores shown as dashes). A command module provides
``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``.
"""

from __future__ import annotations

import argparse
import importlib
import pkgutil
import sys
from dataclasses import dataclass
from functools import lru_cache
from types import ModuleType
from typing import Callable, Optional

from tinabuild import __version__

COMMANDS_PACKAGE = "tinabuild.cli.commands"

EXIT_INTERRUPTED = 130


@dataclass(frozen=True)
class Command:
    name: str
    summary: str
    register_args: Optional[Callable[[argparse.ArgumentParser], None]]
    main: Optional[Callable[[argparse.Namespace], int]]

    @classmethod
    def from_module(cls, name: str, module: ModuleType) -> Command:
        return cls(
            name=name,
            summary=getattr(module, "SUMMARY", name),
            register_args=getattr(module, "register_args", None),
            main=getattr(module, "main", None),
        )

    @property
    def cli_name(self) -> str:
        return self.name.replace("_", "-")


@lru_cache(maxsize=1)
def discover_commands() -> dict[str, Command]:
    """Import every public module of the commands package, keyed by module name."""
    package = importlib.import_module(COMMANDS_PACKAGE)
    found: dict[str, Command] = {}
    for info in sorted(pkgutil.iter_modules(package.__path__), key=lambda m: m.name):
        if info.name.startswith("_") or info.ispkg:
            continue
        try:
            module = importlib.import_module(f"{COMMANDS_PACKAGE}.{info.name}")
        except ImportError as e:
            print(f"Warning: Could not import command {info.name}: {e}", file=sys.stderr)
            continue
        found[info.name] = Command.from_module(info.name, module)
    return found


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinabuild",
        description="Start the CMS dev server, wait for its port, run the site build, shut down",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", title="commands", metavar="<command>")
    for command in discover_commands().values():
        aliases = [command.name] if command.cli_name != command.name else []
        sub = subparsers.add_parser(command.cli_name, aliases=aliases, help=command.summary)
        if command.register_args is not None:
            command.register_args(sub)
        if command.main is not None:
            sub.set_defaults(_func=command.main)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse ``argv`` (default: ``sys.argv[1:]``), run the command, return its exit code."""
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    func = getattr(args, "_func", None)
    if func is None:
        parser.print_help()
        return 0

    try:
        return int(func(args) or 0)
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
