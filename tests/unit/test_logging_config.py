"""Tests for structlog-backed logging setup."""

from __future__ import annotations

import logging

import pytest
import structlog

from claim_context.core.config import ObservabilityConfig
from claim_context.hooks import setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("claim_context").setLevel(logging.NOTSET)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


class TestSetupLogging:
    def test_single_structlog_handler(self) -> None:
        setup_logging(ObservabilityConfig(log_level="debug"))
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.DEBUG
        assert logging.getLogger("claim_context").level == logging.DEBUG

    def test_binds_service_name(self) -> None:
        setup_logging(ObservabilityConfig(service_name="claims-api"))
        assert structlog.contextvars.get_contextvars()["service"] == "claims-api"

    def test_unknown_level_falls_back_to_info(self) -> None:
        setup_logging(ObservabilityConfig(log_level="chatty"))
        assert logging.getLogger().level == logging.INFO

    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        config = ObservabilityConfig()
        setup_logging(config)
        setup_logging(config)
        assert len(logging.getLogger().handlers) == 1
