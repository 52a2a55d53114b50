"""Logging setup for the warelay process."""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from warelay.config.schema import LoggingConfig

# Config level names -> stdlib levels. "silent" sits above CRITICAL.
LEVELS = {
    "silent": logging.CRITICAL + 10,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the ``warelay`` logger from config.

    Console output goes through rich on stderr; ``config.file`` adds a plain
    text file handler. Calling this again replaces previously installed
    handlers.
    """
    config = config or LoggingConfig()
    level = LEVELS[config.level]

    root = logging.getLogger("warelay")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)
    root.propagate = False

    rich_handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    rich_handler.setLevel(level)
    root.addHandler(rich_handler)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(file_handler)

    return root
