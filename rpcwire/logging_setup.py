"""Logging configuration for rpcwire processes.

Library modules only create loggers (logging.getLogger(__name__)); handlers
are installed here, by the CLI, so embedding applications keep control of
their own logging.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "rpcwire"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: int | str = logging.WARNING, log_file: Path | str | None = None) -> None:
    """Configure the rpcwire logger.

    Replaces any handlers installed by a previous call, so calling this twice
    does not duplicate output.

    Args:
        level: Level for the rpcwire namespace (int or name like "DEBUG").
        log_file: Optional file that also receives the logs, rotated at 5MB
            with 3 backups kept.
    """
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")

    rpc_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(rpc_logger.handlers):
        rpc_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    rpc_logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        rpc_logger.addHandler(file_handler)

    rpc_logger.setLevel(level)
    rpc_logger.propagate = False
