"""
Tests for Logging Configuration

Tests for production_manifest/core/logging_config.py
"""

import logging

import pytest

from production_manifest.core.logging_config import (
    NOISY_LOGGERS,
    ROOT_LOGGER_NAME,
    LogContext,
    LogLevel,
    get_logger,
    manifest_logger,
    resolve_level,
    setup_logging,
)


@pytest.fixture
def restore_logging():
    """Undo handler and level changes made by setup_logging."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level = list(root.handlers), root.level
    sdk_levels = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    for name, sdk_level in sdk_levels.items():
        logging.getLogger(name).setLevel(sdk_level)


class TestResolveLevel:
    """Tests for level coercion."""

    def test_accepts_names_enums_and_numbers(self):
        """Test every accepted level form."""
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level(" Warning ") == logging.WARNING
        assert resolve_level(LogLevel.ERROR) == logging.ERROR
        assert resolve_level(15) == 15

    def test_unknown_name_raises(self):
        """Test an unknown level name is rejected."""
        with pytest.raises(ValueError, match="loud"):
            resolve_level("loud")


class TestGetLogger:
    """Tests for namespaced loggers."""

    def test_namespacing(self):
        """Test names are placed under the package tree once."""
        assert get_logger("repair.pipeline").name == "production_manifest.repair.pipeline"
        assert get_logger("production_manifest.jobs").name == "production_manifest.jobs"

    def test_cached(self):
        """Test the same logger object is returned."""
        assert get_logger("graph.cache") is get_logger("graph.cache")


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_writes_log_file(self, restore_logging, temp_dir):
        """Test records reach the log file, creating its directory."""
        log_file = temp_dir / "logs" / "run.log"
        setup_logging("info", log_file=log_file, console_output=False)

        get_logger("setup.test").info("manifest assembled")
        for handler in restore_logging.handlers:
            handler.flush()

        text = log_file.read_text(encoding="utf-8")
        assert "manifest assembled" in text
        assert "production_manifest.setup.test" in text

    def test_repeat_call_replaces_handlers(self, restore_logging):
        """Test handlers do not pile up across calls."""
        setup_logging(LogLevel.DEBUG)
        setup_logging(LogLevel.INFO)

        assert len(restore_logging.handlers) == 1
        assert restore_logging.level == logging.INFO

    def test_quiets_sdk_loggers(self, restore_logging):
        """Test HTTP client and SDK loggers are held at WARNING."""
        logging.getLogger("httpx").setLevel(logging.DEBUG)
        setup_logging(console_output=False)

        assert logging.getLogger("httpx").level == logging.WARNING


class TestManifestLogger:
    """Tests for per-manifest log prefixes."""

    def test_prefixes_manifest_id(self, caplog):
        """Test each message carries the manifest id."""
        caplog.set_level(logging.INFO, logger=ROOT_LOGGER_NAME)
        manifest_logger("pipelines.repair", "manifest_abc").info("state change")

        assert caplog.records[-1].getMessage() == "[manifest_abc] state change"
        assert caplog.records[-1].name == "production_manifest.pipelines.repair"

    def test_missing_id(self, caplog):
        """Test manifests without an id still log."""
        caplog.set_level(logging.INFO, logger=ROOT_LOGGER_NAME)
        manifest_logger("pipelines.repair", None).info("state change")

        assert caplog.records[-1].getMessage() == "[unidentified] state change"


class TestLogContext:
    """Tests for LogContext."""

    def test_restores_level(self):
        """Test the previous level comes back on exit."""
        logger = get_logger("context.test")
        logger.setLevel(logging.WARNING)

        with LogContext("context.test", "debug") as active:
            assert active is logger
            assert logger.level == logging.DEBUG

        assert logger.level == logging.WARNING
