"""
Logging setup for playlister.

One run of the CLI writes to three places:
    - Console: INFO and above (DEBUG with --verbose), printed above the
      progress bar instead of through it
    - log_full_{timestamp}.log: every record, DEBUG included
    - log_errors_{timestamp}.log: ERROR and CRITICAL only, for a quick look
      at what went wrong

Log files live in <storage directory>/logs (see core.config), one pair per
run.

Usage:
    from playlister.core.logger import setup_logging, get_logger

    setup_logging(config.storage.logs_directory)
    logger = get_logger(__name__)

    logger.info("Processing 12 tracks")

Access tokens and PKCE verifiers are never passed to the logger.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Noisy at DEBUG, and urllib3 logs full request URLs
QUIET_LOGGERS = ("urllib3", "requests")


class Colors:
    """ANSI escape codes used by the console formatter."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    GREY = "\033[90m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Console formatter.

    INFO records are printed as plain messages; every other level gets a
    colored level prefix. With show_names=True (--verbose) the logger
    name is added, e.g. "DEBUG playlister.spotify.client: GET ...".
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def __init__(self, show_names: bool = False) -> None:
        super().__init__()
        self.show_names = show_names

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if record.levelno == logging.INFO and not self.show_names:
            return message

        color = self.LEVEL_COLORS.get(record.levelno, Colors.GREEN)
        prefix = f"{color}{record.levelname}{Colors.RESET}"
        if self.show_names:
            prefix = f"{prefix} {Colors.GREY}{record.name}{Colors.RESET}"
        return f"{prefix}: {message}"


class TqdmLoggingHandler(logging.Handler):
    """
    Console handler that prints through tqdm.write().

    The stream is looked up on every record unless one was given: while a
    rich progress bar is live, sys.stderr is replaced by a proxy that
    prints above the bar, and the handler must write to that proxy.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream or sys.stderr)
        except Exception:
            self.handleError(record)


class ErrorOnlyFilter(logging.Filter):
    """Keeps ERROR and CRITICAL records (used by the error log file)."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def _file_handler(path: Path, formatter: logging.Formatter) -> logging.FileHandler:
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging(logs_dir: Path | None, verbose: bool = False) -> Path | None:
    """
    Configure the root logger for one run.

    Call once, right after the configuration is loaded. Calling it again
    replaces the handlers of the previous call.

    Args:
        logs_dir: Directory for the log files, created if missing.
                  None logs to the console only.
        verbose: Show DEBUG records and logger names on the console.

    Returns:
        Path of this run's full log file, or None without file logging.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    shutdown_logging()

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter(show_names=verbose))
    root_logger.addHandler(console_handler)

    if logs_dir is None:
        return None

    logs_dir.mkdir(parents=True, exist_ok=True)
    run_id = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    formatter = logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT)

    full_log_path = logs_dir / f"log_full_{run_id}.log"
    root_logger.addHandler(_file_handler(full_log_path, formatter))

    error_handler = _file_handler(logs_dir / f"log_errors_{run_id}.log", formatter)
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    return full_log_path


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__ (e.g. 'playlister.sync.pipeline')."""
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """
    Flush, close and detach every handler of the root logger.

    Called from a finally block at CLI exit.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        try:
            handler.flush()
            handler.close()
        except OSError:
            pass
