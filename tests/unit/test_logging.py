"""Unit tests for credledger logging configuration."""

import logging
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from credledger.logging import get_logger, setup_logging, short_id


@pytest.fixture(autouse=True)
def reset_credledger_logger():
    """Detach handlers so each test starts from a clean logger."""
    yield
    logger = logging.getLogger("credledger")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_creates_log_directory(self) -> None:
        """Log directory is created if it doesn't exist."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir) / "nested" / "logs"
            setup_logging(log_dir=log_dir, console=False)

            assert log_dir.exists()

    def test_writes_to_log_file(self) -> None:
        """Log messages are written to the file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(log_dir=tmpdir, console=False)
            logger.info("test message 123")

            content = (Path(tmpdir) / "credledger.log").read_text()
            assert "test message 123" in content

    def test_log_format(self) -> None:
        """Log entries include level and logger name."""
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(log_dir=tmpdir, console=False)
            logger.info("format test")

            content = (Path(tmpdir) / "credledger.log").read_text()
            # Format: 2026-01-28 16:30:45 | INFO     | credledger | message
            assert " | INFO" in content
            assert " | credledger | " in content

    def test_component_loggers_share_file(self) -> None:
        """Registry and API loggers write to the same log file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, console=False)

            logging.getLogger("credledger.registry.registry").info("registry log")
            logging.getLogger("credledger.api.app").info("api log")

            content = (Path(tmpdir) / "credledger.log").read_text()
            assert "credledger.registry.registry" in content
            assert "registry log" in content
            assert "api log" in content

    def test_log_level_configurable(self) -> None:
        """Log level filters messages appropriately."""
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, level="WARNING", console=False)
            logger = logging.getLogger("credledger")
            logger.info("should not appear")
            logger.warning("should appear")

            content = (Path(tmpdir) / "credledger.log").read_text()
            assert "should not appear" not in content
            assert "should appear" in content

    @patch.dict(os.environ, {"CREDLEDGER_LOG_LEVEL": "DEBUG"})
    def test_log_level_from_env(self) -> None:
        """Log level can be set via environment variable."""
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(log_dir=tmpdir, console=False)

            assert logger.level == logging.DEBUG

    def test_log_dir_from_env(self) -> None:
        """Log directory can be set via environment variable."""
        with (
            tempfile.TemporaryDirectory() as tmpdir,
            patch.dict(os.environ, {"CREDLEDGER_LOG_DIR": tmpdir}),
        ):
            setup_logging(console=False)

            assert (Path(tmpdir) / "credledger.log").exists()

    def test_custom_log_filename(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, log_file="custom.log", console=False)

            assert (Path(tmpdir) / "custom.log").exists()

    def test_no_duplicate_handlers_on_repeated_setup(self) -> None:
        """Repeated setup_logging calls don't add duplicate handlers."""
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, console=False)
            logger = setup_logging(log_dir=tmpdir, console=False)

            assert logger.name == "credledger"
            assert len(logger.handlers) == 1


@pytest.mark.unit
class TestRotation:
    """Tests for log rotation."""

    def test_rotation_configured(self) -> None:
        """RotatingFileHandler is configured with correct max size."""
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(log_dir=tmpdir, max_bytes=1024, backup_count=3, console=False)

            file_handler = next(h for h in logger.handlers if hasattr(h, "maxBytes"))
            assert file_handler.maxBytes == 1024
            assert file_handler.backupCount == 3

    def test_logs_rotate_at_max_size(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = setup_logging(log_dir=tmpdir, max_bytes=500, backup_count=2, console=False)

            for i in range(50):
                logger.info("Rotation test message number %d with padding data", i)

            assert (Path(tmpdir) / "credledger.log").exists()
            assert (Path(tmpdir) / "credledger.log.1").exists()


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_prefixes_credledger(self) -> None:
        assert get_logger("registry").name == "credledger.registry"

    def test_get_logger_no_double_prefix(self) -> None:
        """Already prefixed names are not double-prefixed."""
        assert get_logger("credledger.api").name == "credledger.api"


@pytest.mark.unit
class TestShortId:
    """Tests for short_id function."""

    def test_short_value_unchanged(self) -> None:
        assert short_id("0xabc") == "0xabc"

    def test_long_value_abbreviated(self) -> None:
        result = short_id("a" * 64)

        assert result == "a" * 10 + "..."

    def test_custom_length(self) -> None:
        assert short_id("abcdefgh", length=4) == "abcd..."
