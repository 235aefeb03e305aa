"""
Tests for context-aware logging.
"""

import logging

import pytest

from nskv.core.logging import (
    ContextLogger,
    clear_log_context,
    get_logger,
    set_log_context,
    setup_logging,
)
from nskv.core.logging.context import get_context_info
from nskv.core.logging.logger import CompactFormatter


@pytest.fixture(autouse=True)
def reset_context():
    clear_log_context()
    yield
    clear_log_context()


class TestContextLogger:
    def test_no_context_no_prefix(self, caplog):
        logger = get_logger("nskv.test")

        with caplog.at_level(logging.INFO, logger="nskv.test"):
            logger.info("hello")

        assert caplog.messages == ["hello"]

    def test_context_variables_prefix_messages(self, caplog):
        set_log_context(namespace="app:", operation="purge")
        logger = get_logger("nskv.test")

        with caplog.at_level(logging.INFO, logger="nskv.test"):
            logger.info("deleted %d keys", 3)

        assert caplog.messages == ["[NS:app:][OP:purge] deleted 3 keys"]

    def test_bind_returns_new_logger(self, caplog):
        base = ContextLogger(logging.getLogger("nskv.test"), namespace="a:")
        bound = base.bind(operation="scan")

        with caplog.at_level(logging.WARNING, logger="nskv.test"):
            bound.warning("slow")
            base.warning("plain")

        assert caplog.messages == ["[NS:a:][OP:scan] slow", "[NS:a:] plain"]

    def test_context_info(self):
        set_log_context(operation="drain")
        assert get_context_info() == {"namespace": None, "operation": "drain"}


class TestSetup:
    def test_compact_formatter_shortens_names(self):
        record = logging.LogRecord(
            "nskv.redis.redis_handler.scanner", logging.INFO, "", 0, "m", None, None
        )
        CompactFormatter("%(name)s").format(record)
        assert record.name == "redis_handler.scanner"

    def test_prod_mode_console_only(self, tmp_path):
        setup_logging(level="warning", mode="PROD", log_dir=str(tmp_path))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert list(tmp_path.iterdir()) == []

    def test_dev_mode_writes_daily_file(self, tmp_path):
        setup_logging(level="nonsense", mode="DEV", log_dir=str(tmp_path))

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 2
        [logfile] = list(tmp_path.iterdir())
        assert logfile.name.startswith("nskv_")
        for handler in root.handlers[1:]:
            handler.close()
