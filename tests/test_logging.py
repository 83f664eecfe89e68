"""Tests for the logging module."""

import time

import pytest
import structlog

from src.streaming_research.logging import (
    bind_run_context,
    configure_logging,
    get_logger,
    log_duration,
    preview,
)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_default(self):
        """Test that logging can be configured with defaults."""
        configure_logging()
        logger = get_logger("test")
        assert logger is not None

    def test_configure_logging_json_mode(self):
        """Test that logging can be configured for JSON output."""
        configure_logging(level="DEBUG", json_logs=True)
        logger = get_logger("test")
        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")


class TestLogDuration:
    """Tests for log_duration context manager."""

    def test_log_duration_measures_time(self):
        """Test that log_duration wraps an operation."""
        configure_logging(level="INFO")
        logger = get_logger("test")

        with log_duration(logger, "test_operation") as ctx:
            time.sleep(0.01)
            ctx["result_value"] = 42

        assert ctx == {"result_value": 42}

    def test_log_duration_propagates_exceptions(self):
        """Test that log_duration re-raises what the block raises."""
        configure_logging(level="INFO")
        logger = get_logger("test")

        with pytest.raises(ValueError, match="test error"):
            with log_duration(logger, "test_operation", custom_field="value"):
                raise ValueError("test error")


class TestRunContext:
    """Tests for binding run identifiers."""

    def test_bind_run_context(self):
        """Test that run fields are bound only inside the block."""
        with bind_run_context("run123", "What is solar power?"):
            bound = structlog.contextvars.get_contextvars()
            assert bound["run_id"] == "run123"
            assert bound["query_preview"] == "What is solar power?"

        assert "run_id" not in structlog.contextvars.get_contextvars()

    def test_preview(self):
        """Test shortening long values."""
        assert preview("short") == "short"
        assert preview("x" * 100, limit=10) == "x" * 10 + "..."
