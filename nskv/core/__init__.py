"""
nskv core components: configuration and logging.
"""

from .config.settings import settings
from .logging import get_logger, setup_app_logging

__all__ = ["settings", "get_logger", "setup_app_logging"]
