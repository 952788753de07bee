"""Unit tests for structured logging."""

import logging
from unittest.mock import MagicMock, patch

import pytest
import structlog

from payguard.core.logging import (
    LogContext,
    add_environment_info,
    clear_contextvars,
    drop_color_message_key,
    get_logger,
    setup_logging,
)


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.log_level = "INFO"
    settings.ENVIRONMENT = "test"
    with patch("payguard.core.logging.get_settings", return_value=settings):
        yield settings


class TestAddEnvironmentInfo:
    """Tests for add_environment_info processor."""

    def test_adds_environment(self, mock_settings):
        """Test environment is added to event dict."""
        mock_settings.ENVIRONMENT = "production"

        result = add_environment_info(None, "info", {})

        assert result["environment"] == "production"


class TestDropColorMessageKey:
    """Tests for drop_color_message_key processor."""

    def test_drops_color_message(self):
        event_dict = {"message": "test", "color_message": "colored test"}
        result = drop_color_message_key(None, "info", event_dict)

        assert "color_message" not in result
        assert result["message"] == "test"

    def test_no_color_message(self):
        result = drop_color_message_key(None, "info", {"message": "test"})

        assert result == {"message": "test"}


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_default(self, mock_settings):
        """Test logging setup with default settings."""
        setup_logging()

        assert logging.getLogger().level == logging.INFO
        assert get_logger("test") is not None

    def test_setup_logging_custom_level(self, mock_settings):
        setup_logging(log_level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_json_format(self, mock_settings, capsys):
        """Test JSON output carries bound fields."""
        setup_logging(json_format=True, add_timestamp=False)

        get_logger("payguard.test").info("Erasure request created", request_id="r-1")

        output = capsys.readouterr().out
        assert '"request_id": "r-1"' in output
        assert '"environment": "test"' in output

    def test_quiets_database_loggers(self, mock_settings):
        setup_logging(log_level="DEBUG")

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("aiosqlite").level == logging.WARNING


class TestLogContext:
    """Tests for LogContext context manager."""

    def test_log_context_binds_values(self):
        """Test that LogContext binds values during block."""
        clear_contextvars()

        with LogContext(request_id="r-1", subject_id="emp-0001"):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx.get("request_id") == "r-1"
            assert ctx.get("subject_id") == "emp-0001"

        ctx = structlog.contextvars.get_contextvars()
        assert "request_id" not in ctx
        assert "subject_id" not in ctx

    def test_unbinds_on_error(self):
        clear_contextvars()

        with pytest.raises(RuntimeError):
            with LogContext(job_id="j-1"):
                raise RuntimeError("boom")

        assert "job_id" not in structlog.contextvars.get_contextvars()

    def test_clear_contextvars(self):
        structlog.contextvars.bind_contextvars(key1="value1")

        clear_contextvars()

        assert structlog.contextvars.get_contextvars() == {}
