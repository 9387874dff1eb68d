"""Logging utilities for twscan commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "twscan"
_CONSOLE_FORMAT = "[twscan] %(levelname)s %(message)s"
_WATCH_FORMAT = "[twscan %(asctime)s] %(levelname)s %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``twscan`` hierarchy (``twscan.<name>``)."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    timestamps: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Install console (and optional file) handlers on the ``twscan`` logger.

    ``verbose`` wins over ``quiet``. Long-running watch sessions pass
    ``timestamps=True`` so each recompilation can be told apart.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(
        logging.Formatter(_WATCH_FORMAT if timestamps else _CONSOLE_FORMAT, "%H:%M:%S")
    )
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
