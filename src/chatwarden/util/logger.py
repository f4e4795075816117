"""
Logging for ChatWarden.

Every logger gets two handlers: a colored console handler that prints through
prompt_toolkit (so log lines never tear the operator prompt) and a rotating
file handler writing the session log. All loggers share one session file.

The log directory and rotation limits come from the ``logging:`` section of
the app config. Loggers created at import time start out writing under the
default directory; :func:`configure_file_logging` moves every file handler to
the configured one once the config is loaded.
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

# -------------------- Configuration --------------------
DEFAULT_LOGS_DIR: Path = (Path(__file__).parents[3] / "logs").resolve()

LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

DEFAULT_MAX_BYTES: int = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT: int = 5

# A log touched this recently belongs to a process that just restarted
SESSION_REUSE_SECONDS: float = 60.0

LOG_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[38;5;88m",
}
RESET_COLOR = "\033[0m"


class _FileLogSettings:
    """Where the session log lives and how it rotates; shared by every logger."""

    def __init__(self) -> None:
        self.directory: Path = Path(os.getenv("CHATWARDEN_LOG_DIR") or DEFAULT_LOGS_DIR)
        self.max_bytes: int = DEFAULT_MAX_BYTES
        self.backup_count: int = DEFAULT_BACKUP_COUNT
        self.filepath: Path | None = None


_file_settings = _FileLogSettings()
_configured_loggers: Dict[str, logging.Logger] = {}


# -------------------- Formatters and handlers --------------------
class ColorFormatter(logging.Formatter):
    """Wraps each record in the ANSI color of its level; unknown levels stay plain."""

    def format(self, record: logging.LogRecord) -> str:
        color = LOG_COLORS.get(record.levelname, "")
        message = super().format(record)
        return f"{color}{message}{RESET_COLOR}" if color else message


class PromptToolkitHandler(logging.Handler):
    """Console handler that prints through ``print_formatted_text``."""

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


plain_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def should_use_color() -> bool:
    """Return True when stderr is a terminal that can render ANSI colors."""
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


color_formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else plain_formatter


# -------------------- Session log file --------------------
def select_session_log_file(log_dir: Path, now: datetime) -> Path:
    """Pick the file this session logs to.

    Today's newest log is reused when it was written within the last
    ``SESSION_REUSE_SECONDS``; otherwise a fresh timestamped name is returned.
    """
    todays_logs = sorted(
        log_dir.glob(f"{now:%Y-%m-%d}*.log"),
        key=lambda path: path.stat().st_mtime,
        reverse=True,
    )
    if todays_logs and now.timestamp() - todays_logs[0].stat().st_mtime < SESSION_REUSE_SECONDS:
        return todays_logs[0]
    return log_dir / f"{now.strftime(DATE_FORMAT)}.log"


def get_log_filepath() -> Path:
    """Session log path, chosen on first use and shared by every logger."""
    if _file_settings.filepath is None:
        _file_settings.directory.mkdir(parents=True, exist_ok=True)
        _file_settings.filepath = select_session_log_file(_file_settings.directory, datetime.now())
    return _file_settings.filepath


def _build_file_handler() -> RotatingFileHandler:
    handler = RotatingFileHandler(
        get_log_filepath(),
        maxBytes=_file_settings.max_bytes,
        backupCount=_file_settings.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(plain_formatter)
    return handler


def configure_file_logging(
    log_dir: Path,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> Path:
    """Point every ChatWarden logger's file output at ``log_dir``.

    Existing file handlers are closed and replaced. Returns the new session
    log path.
    """
    log_dir = Path(log_dir).resolve()
    unchanged = (
        _file_settings.filepath is not None
        and _file_settings.directory == log_dir
        and _file_settings.max_bytes == max_bytes
        and _file_settings.backup_count == backup_count
    )
    if unchanged:
        return _file_settings.filepath

    _file_settings.directory = log_dir
    _file_settings.max_bytes = max_bytes
    _file_settings.backup_count = backup_count
    _file_settings.filepath = None

    for logger in _configured_loggers.values():
        for handler in [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]:
            logger.removeHandler(handler)
            handler.close()
        logger.addHandler(_build_file_handler())

    return get_log_filepath()


# -------------------- Logger setup --------------------
def setup_logger(logger_name: str) -> logging.Logger:
    """Configure ``logger_name`` with console and file handlers, once."""
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = PromptToolkitHandler(formatter=color_formatter)
    console_handler.setLevel(logging.INFO)
    logger.addHandler(console_handler)
    logger.addHandler(_build_file_handler())

    _configured_loggers[logger_name] = logger
    return logger


def get_logger(logger_name: str) -> logging.Logger:
    return setup_logger(logger_name)


# -------------------- Exception handling --------------------
def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """``sys.excepthook`` that logs uncaught exceptions; Ctrl+C keeps its default behavior."""
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
    else:
        logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


# -------------------- Noisy libraries --------------------
NOISY_LOGGERS = ["aiosqlite", "asyncio", "yaml"]

for noisy_logger in NOISY_LOGGERS:
    lg = logging.getLogger(noisy_logger)
    lg.setLevel(logging.ERROR)
    lg.propagate = False
    lg.handlers = []


sys.excepthook = handle_exception
