"""Dev server process management."""

from .devserver import (
    DevServerHandle,
    is_process_alive,
    start_dev_server,
    stop_dev_server,
    terminate_process_tree,
)

__all__ = [
    "DevServerHandle",
    "is_process_alive",
    "start_dev_server",
    "stop_dev_server",
    "terminate_process_tree",
]
