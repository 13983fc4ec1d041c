"""Core logging setup module."""
from __future__ import annotations

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from tradekernel.core.config import SystemConfig


_LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def setup_logging(
    name: str = "tradekernel",
    level: str = "INFO",
    log_dir: str | None = None,
) -> logging.Logger:
    """Configure the ``tradekernel`` logger tree for a backtest session.

    Module loggers (``tradekernel.backtest.engine`` and friends) propagate
    here, so one call routes entry/exit, trigger and validation messages to
    stdout and, when ``log_dir`` is given, to a daily ``<name>.log`` file.
    Calling it again for the same name keeps the existing handlers.
    """
    logger = logging.getLogger(name)
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    if not logger.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(console)

        # One file per run day, a month of history
        if log_dir:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            file_handler = TimedRotatingFileHandler(
                filename=log_path / f"{name}.log",
                when="midnight",
                backupCount=30,
                encoding="utf-8",
            )
            file_handler.suffix = "%Y-%m-%d"
            file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
            logger.addHandler(file_handler)

    return logger


def setup_logging_from_config(config: SystemConfig, name: str = "tradekernel") -> logging.Logger:
    """Configure the package logger from the ``system`` settings section."""
    return setup_logging(name, level=config.log_level, log_dir=config.log_dir)
