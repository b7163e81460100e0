"""
tinabuild CLI package.

Commands are auto-discovered from ``tinabuild/cli/commands``: each module
exposes ``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``.
"""
from ._args import (
    add_config_flag,
    add_json_flag,
    add_log_level_flag,
    add_project_root_flag,
    add_standard_flags,
    add_target_args,
)
from ._output import OutputFormatter
from ._utils import get_project_root, load_cli_config, setup_logging

__all__ = [
    "OutputFormatter",
    "add_config_flag",
    "add_json_flag",
    "add_log_level_flag",
    "add_project_root_flag",
    "add_standard_flags",
    "add_target_args",
    "get_project_root",
    "load_cli_config",
    "setup_logging",
]
