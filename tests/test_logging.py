"""Tests for logging configuration"""
import json
import logging
import os
from unittest.mock import Mock, patch
import pytest

from config import Config
from logging_config import (
    setup_structured_logging,
    get_logger,
    log_delivery,
    log_enrichment,
    log_server_startup,
    log_error
)
from metrics.models import EnrichmentContext


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Put the root logger back the way pytest configured it"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestLoggingConfig:
    """Test logging configuration and structured logging"""

    def test_setup_structured_logging(self, tmp_path):
        """Test structured logging setup"""
        log_file = tmp_path / "logs" / "relay.log"
        config = Config(log_file=log_file, log_level="DEBUG")

        setup_structured_logging(config)

        assert log_file.parent.exists()
        assert logging.getLogger("test").isEnabledFor(logging.DEBUG)

    def test_noisy_loggers_quieted(self):
        """Test client and access loggers are raised to WARNING"""
        setup_structured_logging(Config(log_level="DEBUG"))

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_json_lines_written_to_file(self, tmp_path):
        """Test production logging renders one JSON object per event"""
        log_file = tmp_path / "relay.log"

        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            setup_structured_logging(Config(log_file=log_file))
            log_delivery(get_logger("test.delivery"), "http://vminsert:8480/import", 204, 128, 0.01234)

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["event"] == "Forwarded metrics"
        assert record["event_type"] == "metrics_delivery"
        assert record["status_code"] == 204
        assert record["duration_seconds"] == 0.012

    def test_get_logger(self):
        """Test getting structured logger"""
        logger = get_logger("test_logger")

        assert logger is not None
        assert hasattr(logger, 'info')
        assert hasattr(logger, 'error')
        assert hasattr(logger, 'warning')

    def test_log_server_startup(self):
        """Test startup event carries relay configuration"""
        logger = Mock()
        config = Config()

        log_server_startup(logger, config)

        kwargs = logger.info.call_args.kwargs
        assert kwargs["listen_addr"] == ":8081"
        assert kwargs["forward_url"] == config.forward_url
        assert kwargs["event_type"] == "server_startup"

    def test_log_enrichment(self):
        """Test enrichment event fields"""
        logger = Mock()
        context = EnrichmentContext(cluster_id="prod-1", source_ip="10.0.0.1", country_code="unknown")

        log_enrichment(logger, context, sample_count=6, metadata_count=3)

        kwargs = logger.info.call_args.kwargs
        assert kwargs["cluster_id"] == "prod-1"
        assert kwargs["source_ip"] == "10.0.0.1"
        assert kwargs["samples"] == 6
        assert kwargs["metadata"] == 3

    def test_log_error(self):
        """Test structured error logging"""
        logger = Mock()
        error = ValueError("Test error")

        log_error(logger, error, {"component": "test"})
        log_error(logger, error)

        first, second = logger.error.call_args_list
        assert first.kwargs["error_type"] == "ValueError"
        assert first.kwargs["context"] == {"component": "test"}
        assert second.kwargs["context"] == {}

    def test_development_vs_production_logging(self, tmp_path):
        """Test different renderers for development vs production"""
        log_file = tmp_path / "relay.log"
        config = Config(log_file=log_file)

        with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
            setup_structured_logging(config)
            get_logger("test.dev").info("development event")

        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            setup_structured_logging(config)
            get_logger("test.prod").info("production event")

        lines = log_file.read_text().strip().splitlines()
        assert "development event" in lines[0]
        assert not lines[0].startswith("{")
        assert json.loads(lines[-1])["event"] == "production event"
