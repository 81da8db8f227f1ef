"""
Unit tests for structured logging helpers.
"""

import importlib

import structlog
from structlog.testing import capture_logs

from src.campus_client.logging import get_logger, operation_context


class TestGetLogger:
    """Test cases for get_logger."""

    def test_events_carry_module_name(self):
        """Test the module name is bound on every event."""
        log = get_logger("src.campus_client.cache")

        with capture_logs() as logs:
            log.info("cache_written", key="timetable")

        assert logs == [
            {"module": "src.campus_client.cache", "key": "timetable", "event": "cache_written", "log_level": "info"}
        ]

    def test_package_modules_import(self):
        """Test every module that creates a logger at import time loads."""
        for name in ("cache", "export", "fallback", "mapping", "reservations", "timetable", "transport"):
            module = importlib.import_module(f"src.campus_client.{name}")
            assert module.__name__ == f"src.campus_client.{name}"


class TestOperationContext:
    """Test cases for operation_context."""

    def test_binds_values_inside_block_only(self):
        with operation_context(reservation_id="42"):
            assert structlog.contextvars.get_contextvars()["reservation_id"] == "42"
        assert "reservation_id" not in structlog.contextvars.get_contextvars()
