import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler

import pytest

from chatwarden.util import logger as logger_module
from chatwarden.util.logger import (
    ColorFormatter,
    configure_file_logging,
    get_log_filepath,
    get_logger,
    handle_exception,
    select_session_log_file,
    setup_logger,
    should_use_color,
)


class DummyStream:
    def __init__(self):
        self.written = []

    def write(self, msg):
        self.written.append(msg)

    def isatty(self):
        return True


def test_get_logger_returns_logger():
    logger = get_logger("test_logger")
    assert isinstance(logger, logging.Logger)
    assert any(isinstance(h, logging.Handler) for h in logger.handlers)


def test_setup_logger_idempotent():
    logger1 = setup_logger("test_logger_idem")
    logger2 = setup_logger("test_logger_idem")
    assert logger1 is logger2
    assert len(logger1.handlers) == 2


def test_color_formatter_applies_color():
    formatter = ColorFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("test", logging.ERROR, "", 0, "error occurred", None, None)
    formatted = formatter.format(record)
    assert "\033[31m" in formatted and "error occurred" in formatted


def test_color_formatter_skips_unknown_level():
    formatter = ColorFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("test", 25, "", 0, "custom", None, None)
    assert "\033[" not in formatter.format(record)


def test_should_use_color_true(monkeypatch):
    monkeypatch.setattr("sys.stderr", DummyStream())
    assert should_use_color() is True


def test_get_log_filepath_is_stable():
    path = get_log_filepath()
    assert path.parent.exists()
    assert get_log_filepath() == path


def test_handle_exception_logs_error(caplog):
    class DummyException(Exception):
        pass
    with caplog.at_level(logging.ERROR):
        try:
            raise DummyException("fail")
        except DummyException as exc:
            handle_exception(DummyException, exc, exc.__traceback__)
    assert any("Uncaught exception" in r.message for r in caplog.records)


@pytest.fixture()
def restore_file_logging():
    settings = logger_module._file_settings
    saved = (settings.directory, settings.max_bytes, settings.backup_count)
    yield
    configure_file_logging(*saved)


def test_select_session_log_file_reuses_recent_log(tmp_path):
    now = datetime(2026, 3, 1, 12, 0, 0)
    recent = tmp_path / "2026-03-01 11-59-30.log"
    recent.write_text("", encoding="utf-8")
    os.utime(recent, (now.timestamp() - 30, now.timestamp() - 30))

    assert select_session_log_file(tmp_path, now) == recent


def test_select_session_log_file_starts_fresh_after_quiet_period(tmp_path):
    now = datetime(2026, 3, 1, 12, 0, 0)
    stale = tmp_path / "2026-03-01 08-00-00.log"
    stale.write_text("", encoding="utf-8")
    os.utime(stale, (now.timestamp() - 3600, now.timestamp() - 3600))

    assert select_session_log_file(tmp_path, now) == tmp_path / "2026-03-01 12-00-00.log"


def test_configure_file_logging_moves_existing_handlers(tmp_path, restore_file_logging):
    log = get_logger("test_logger_relocated")

    path = configure_file_logging(tmp_path / "logs", max_bytes=2048, backup_count=2)
    log.info("relocated line")

    file_handlers = [h for h in log.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].baseFilename == str(path)
    assert file_handlers[0].maxBytes == 2048
    assert file_handlers[0].backupCount == 2
    assert path.parent == (tmp_path / "logs").resolve()
    file_handlers[0].flush()
    assert "relocated line" in path.read_text(encoding="utf-8")


def test_configure_file_logging_same_settings_keeps_session_file(tmp_path, restore_file_logging):
    first = configure_file_logging(tmp_path)

    assert configure_file_logging(tmp_path) == first
