"""Logging module for nskv."""

from .context import clear_log_context, set_log_context
from .logger import ContextLogger, get_logger, setup_app_logging, setup_logging

__all__ = [
    "ContextLogger",
    "clear_log_context",
    "get_logger",
    "set_log_context",
    "setup_app_logging",
    "setup_logging",
]
