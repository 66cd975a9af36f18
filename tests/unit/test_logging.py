"""Unit tests for logging setup."""

import logging

from hotsnet.config import LoggingParams
from hotsnet.logging_utils import LOGGER_NAME, ColoredFormatter, setup_logging


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_console_only(self, restore_hotsnet_logger):
        """Test the default console handler and level."""
        logger = setup_logging()

        assert logger.name == LOGGER_NAME
        assert logger.level == logging.INFO
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, ColoredFormatter)

    def test_file_handler(self, tmp_path, restore_hotsnet_logger):
        """Test that a log file is created under output_dir/log_dir."""
        params = LoggingParams(log_level="DEBUG", log_dir="logs", console=False)

        logger = setup_logging(params, output_dir=tmp_path, experiment_name="run")
        logging.getLogger("hotsnet.core.run").debug("layer trained")
        for handler in logger.handlers:
            handler.flush()

        files = list((tmp_path / "logs").glob("run_*.log"))
        assert len(files) == 1
        content = files[0].read_text()
        assert "layer trained" in content
        assert "hotsnet.core.run" in content

    def test_repeated_setup_replaces_handlers(self, restore_hotsnet_logger):
        """Test that calling setup twice does not duplicate handlers."""
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1

    def test_no_console(self, restore_hotsnet_logger):
        """Test that console output can be disabled."""
        logger = setup_logging(LoggingParams(console=False))

        assert logger.handlers == []


class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def test_level_colored_without_mutating_record(self):
        """Test that the original record keeps its plain level name."""
        formatter = ColoredFormatter('%(levelname)s %(message)s')
        record = logging.LogRecord("hotsnet", logging.WARNING, __file__, 1, "msg", None, None)

        text = formatter.format(record)

        assert "\033[33m" in text
        assert text.endswith("msg")
        assert record.levelname == "WARNING"
