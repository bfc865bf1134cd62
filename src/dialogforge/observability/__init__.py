"""Observability module for DialogForge.

Provides structured logging for the compiler, the loader and the CLI.
"""

from dialogforge.observability.logging import (
    bind_project,
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

__all__ = [
    "bind_project",
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "get_logs_dir",
]
