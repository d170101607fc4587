# serialsend/logging_config.py
"""
Logging configuration for serialsend.

Progress and diagnostics go to stderr; stdout is never written to.
"""

import logging
import logging.handlers
import sys
from contextlib import contextmanager
from pathlib import Path

CONSOLE_HANDLER_NAME = "serialsend.console"
QUIET_LEVEL = logging.CRITICAL + 1


def setup_logging(log_level: str = "INFO", quiet: bool = False,
                  log_to_file: bool = False, log_dir: str = "logs"):
    """
    Configure the root logger for one run of the tool.

    Args:
        log_level: Console level name (DEBUG, INFO, WARNING, ERROR); the log
            file always records DEBUG
        quiet: Silence the console entirely (``/quiet``)
        log_to_file: Also write a detailed rotating log file
        log_dir: Directory for the log file
    """

    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d [%(name)24s] %(levelname)8s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # Console output reads like the tool talking, not like a log
    console_formatter = logging.Formatter(fmt="%(message)s")

    root_logger = logging.getLogger()
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(logging.DEBUG if log_to_file else level)

    # Drop handlers left over from an earlier call
    for handler in list(root_logger.handlers):
        if handler.get_name() == CONSOLE_HANDLER_NAME or isinstance(
                handler, logging.handlers.RotatingFileHandler):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_handler.setLevel(QUIET_LEVEL if quiet else level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path / "serialsend.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

    setup_log = logging.getLogger("serialsend.logging")
    setup_log.debug("Log level: %s, quiet: %s, log to file: %s",
                    log_level, quiet, log_to_file)


@contextmanager
def quiet_console(enabled: bool = True):
    """Silence the console handler for the duration of the block."""
    handlers = [h for h in logging.getLogger().handlers
                if h.get_name() == CONSOLE_HANDLER_NAME] if enabled else []
    saved = [h.level for h in handlers]
    for handler in handlers:
        handler.setLevel(QUIET_LEVEL)
    try:
        yield
    finally:
        for handler, level in zip(handlers, saved):
            handler.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_hex_data(logger: logging.Logger, level: int, message: str, data: bytes, max_bytes: int = 64):
    """
    Log binary data as hex, eliding the middle of long buffers.

    Args:
        logger: Target logger
        level: Logging level (logging.DEBUG, logging.INFO, ...)
        message: Description printed before the dump
        data: Bytes to render
        max_bytes: Longest buffer rendered in full
    """
    if not logger.isEnabledFor(level):
        return

    if len(data) <= max_bytes:
        hex_data = data.hex(" ").upper()
        logger.log(level, "%s (%d bytes): %s", message, len(data), hex_data)
    else:
        hex_start = data[:max_bytes//2].hex(" ").upper()
        hex_end = data[-max_bytes//2:].hex(" ").upper()
        logger.log(level, "%s (%d bytes): %s ... %s",
                   message, len(data), hex_start, hex_end)
