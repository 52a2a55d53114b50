"""Tests for logging setup."""

import logging

import pytest
from rich.logging import RichHandler

from warelay.config.schema import LoggingConfig
from warelay.logger import LEVELS, setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    """Put the warelay logger back the way pytest left it."""
    root = logging.getLogger("warelay")
    handlers = list(root.handlers)
    level = root.level
    propagate = root.propagate
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    root.propagate = propagate


class TestSetupLogging:
    def test_defaults_to_info_on_rich(self):
        root = setup_logging()

        assert root.name == "warelay"
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], RichHandler)

    @pytest.mark.parametrize(
        "name, level",
        [
            ("trace", logging.DEBUG),
            ("debug", logging.DEBUG),
            ("warn", logging.WARNING),
            ("fatal", logging.CRITICAL),
        ],
    )
    def test_level_names(self, name, level):
        assert setup_logging(LoggingConfig(level=name)).level == level

    def test_silent_drops_critical(self):
        root = setup_logging(LoggingConfig(level="silent"))
        assert not root.isEnabledFor(logging.CRITICAL)
        assert LEVELS["silent"] > logging.CRITICAL

    def test_file_handler(self, temp_dir):
        log_file = temp_dir / "logs" / "warelay.log"
        root = setup_logging(LoggingConfig(file=str(log_file)))

        logging.getLogger("warelay.test").info("hello file")
        for handler in root.handlers:
            handler.flush()

        assert "INFO warelay.test: hello file" in log_file.read_text()

    def test_repeated_setup_replaces_handlers(self, temp_dir):
        setup_logging(LoggingConfig(file=str(temp_dir / "a.log")))
        root = setup_logging()

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], RichHandler)
