"""
Utility functions and helpers.

Common utilities for command execution, logging, and boundary validation.
"""

from clustercodex.utils.command import run_command
from clustercodex.utils.logging import configure_logging, get_logger, log_prompt_metadata

__all__ = [
    "run_command",
    "configure_logging",
    "get_logger",
    "log_prompt_metadata",
]
