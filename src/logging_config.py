import logging
import os
import sys
from typing import Optional

from tqdm import tqdm

from src.errors import ConfigurationError

# All modules log through children of this logger (logging.getLogger(__name__)).
PACKAGE_LOGGER_NAME = "src"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Client libraries that log every token refresh and HTTP connection at INFO/DEBUG.
THIRD_PARTY_LOGGERS = ("google", "google.auth", "google.api_core", "urllib3", "requests")

CONSOLE_STREAMS = ("stderr", "stdout")


class TqdmLoggingHandler(logging.Handler):
    """Writes records with tqdm.write so they land above the content type progress bar."""

    def __init__(self, stream_name: str = "stderr", level=logging.NOTSET):
        super().__init__(level)
        self.stream_name = stream_name

    def emit(self, record):
        try:
            # Looked up per record so a redirected sys.stdout/sys.stderr is honoured
            tqdm.write(self.format(record), file=getattr(sys, self.stream_name))
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def quiet_third_party_loggers(level: int) -> None:
    """Raise client library loggers to WARNING unless the job itself runs at DEBUG."""
    third_party_level = logging.NOTSET if level <= logging.DEBUG else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def _file_handler(log_file_path: str) -> logging.Handler:
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    return logging.FileHandler(log_file_path, encoding='utf-8')


def _console_handler(console_stream: str) -> logging.Handler:
    stream_name = console_stream.lower()
    if stream_name not in CONSOLE_STREAMS:
        raise ConfigurationError(f"logging.console_stream must be one of {', '.join(CONSOLE_STREAMS)}, got '{console_stream}'")
    return TqdmLoggingHandler(stream_name)


def setup_logger(log_level_str: str, log_file_path: Optional[str] = None, log_to_console: bool = True,
                 console_stream: str = "stderr") -> logging.Logger:
    """
    Configure the package logger for the report job.

    Safe to call again on a warm function instance: existing handlers are
    closed and replaced, never stacked. Records stop at the package logger,
    so the hosting runtime's root handlers do not print them a second time.

    Args:
        log_level_str: Level name such as 'INFO' or 'DEBUG'. Unknown names fall back to INFO.
        log_file_path: Optional UTF-8 log file; parent directories are created.
        log_to_console: Whether to attach the tqdm-aware console handler.
        console_stream: 'stderr' (default) or 'stdout'.

    Returns:
        The configured package logger.
    """
    level = logging.getLevelName(log_level_str.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = []
    if log_file_path:
        handlers.append(_file_handler(log_file_path))
    if log_to_console:
        handlers.append(_console_handler(console_stream))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    quiet_third_party_loggers(level)
    return logger
