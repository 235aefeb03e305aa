"""
Custom Rich-based logger with namespace and operation context support.

Provides context-aware logging so every line emitted while working on a
keyspace carries the prefix it was issued against.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from nskv.core.config.settings import settings


class CompactFormatter(logging.Formatter):
    """Custom formatter that shortens long module names for better readability."""

    def format(self, record):
        if record.name.startswith("nskv."):
            # nskv.redis.redis_handler.scanner -> redis_handler.scanner
            parts = record.name.split(".")
            if len(parts) > 2:
                record.name = ".".join(parts[-2:])

        return super().format(record)


_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "debug": "dim white",
    }
)
_console = Console(theme=_theme, stderr=True)


class ContextLogger:
    """
    Logger wrapper that adds namespace and operation context to messages.

    Context is added as a message prefix instead of through the format string,
    so records stay usable by handlers that know nothing about it.
    """

    def __init__(
        self,
        logger: logging.Logger,
        namespace: str | None = None,
        operation: str | None = None,
    ):
        self.logger = logger
        self.namespace = namespace or "---"
        self.operation = operation or "---"

    def _format_message(self, message: str) -> str:
        """Add context prefix to message."""
        from .context import (
            get_current_namespace_context,
            get_current_operation_context,
        )

        current_namespace = get_current_namespace_context() or self.namespace
        current_operation = get_current_operation_context() or self.operation

        prefix = ""
        if current_namespace and current_namespace != "---":
            prefix += f"[NS:{current_namespace}]"
        if current_operation and current_operation != "---":
            prefix += f"[OP:{current_operation}]"
        return f"{prefix} {message}" if prefix else message

    def debug(self, message: str, *args, **kwargs) -> None:
        self.logger.debug(self._format_message(message), *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        self.logger.info(self._format_message(message), *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        self.logger.warning(self._format_message(message), *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        self.logger.error(self._format_message(message), *args, **kwargs)

    def exception(self, message: str, *args, **kwargs) -> None:
        self.logger.exception(self._format_message(message), *args, **kwargs)

    def bind(self, **kwargs) -> ContextLogger:
        """
        Create a new ContextLogger with additional or updated context.

        Returns a new instance instead of modifying the current one.

        Example:
            scan_logger = logger.bind(operation="scan")
        """
        new_namespace = kwargs.get("namespace", self.namespace)
        new_operation = kwargs.get("operation", self.operation)
        return ContextLogger(
            self.logger, namespace=new_namespace, operation=new_operation
        )


def setup_logging(
    *,
    level: str = "INFO",
    mode: str = "PROD",
    log_dir: str | None = None,
    console_fmt: str | None = None,
    file_fmt: str | None = None,
) -> None:
    """
    Initialize the root logger with Rich formatting.

    Parameters
    ----------
    level : str
        Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
    mode : str
        "DEV" creates daily log files + console; anything else → console only
    log_dir : str, optional
        Directory for log files (DEV mode only)
    console_fmt : str, optional
        Console format string
    file_fmt : str, optional
        File format string
    """
    lvl = level.upper()
    lvl = lvl if lvl in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"

    # RichHandler already shows level and time
    console_format = console_fmt or "[%(name)s] %(message)s"
    file_format = file_fmt or "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

    rich_handler = RichHandler(
        console=_console,
        rich_tracebacks=True,
        show_time=True,
        show_level=True,
        markup=False,
    )
    rich_handler.setFormatter(CompactFormatter(console_format))

    handlers: list[logging.Handler] = [rich_handler]

    if mode.upper() == "DEV" and log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logfile = os.path.join(log_dir, f"nskv_{datetime.now():%Y%m%d}.log")
        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(CompactFormatter(file_format))
        handlers.append(file_handler)

    logging.basicConfig(level=lvl, handlers=handlers, force=True)

    setup_logger = logging.getLogger("NskvLoggerSetup")
    setup_logger.debug(f"Logging initialized ({lvl}, mode={mode})")


def setup_app_logging() -> None:
    """Initialize logging from settings; called once by entry points."""
    setup_logging(
        level=settings.log_level,
        mode="DEV" if settings.is_development else "PROD",
        log_dir=settings.log_dir if settings.is_development else None,
    )


def get_logger(name: str) -> ContextLogger:
    """
    Get a logger that automatically uses the current namespace/operation context.

    Args:
        name: Logger name (usually __name__)

    Returns:
        ContextLogger instance with automatic context from context variables
    """
    from .context import get_current_namespace_context, get_current_operation_context

    base_logger = logging.getLogger(name)
    return ContextLogger(
        base_logger,
        namespace=get_current_namespace_context(),
        operation=get_current_operation_context(),
    )
