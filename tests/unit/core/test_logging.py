"""
core/logging.py 테스트
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.config.loader import LedgerSettings
from core.logging import LOG_FILE_BACKUP_COUNT, get_log_file_path, setup_logging


@pytest.fixture
def restore_root_logger():
    """테스트 후 루트 로거 핸들러 복원 (pytest 캡처 핸들러 유지)"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestGetLogFilePath:
    def test_named_after_process(self, temp_dir: Path) -> None:
        assert get_log_file_path("web", temp_dir) == temp_dir / "web.log"


class TestSetupLogging:
    """setup_logging 테스트"""

    def test_levels_from_settings(self, temp_dir: Path, restore_root_logger) -> None:
        settings = LedgerSettings(
            db_path=temp_dir / "ledger.db",
            console_log_level="WARNING",
            file_log_level="DEBUG",
        )

        root = setup_logging("admin", settings, log_dir=temp_dir)

        file_handlers = [h for h in root.handlers if isinstance(h, TimedRotatingFileHandler)]
        console_handlers = [
            h for h in root.handlers if not isinstance(h, TimedRotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert len(console_handlers) == 1
        assert file_handlers[0].backupCount == LOG_FILE_BACKUP_COUNT
        assert file_handlers[0].level == logging.DEBUG
        assert console_handlers[0].level == logging.WARNING
        assert (temp_dir / "admin.log").exists()

    def test_defaults_without_settings(self, temp_dir: Path, restore_root_logger) -> None:
        root = setup_logging("web", log_dir=temp_dir)

        assert all(h.level == logging.INFO for h in root.handlers)

    def test_repeated_setup_does_not_duplicate(self, temp_dir: Path, restore_root_logger) -> None:
        setup_logging("web", log_dir=temp_dir)
        root = setup_logging("web", log_dir=temp_dir)

        assert len(root.handlers) == 2

    def test_library_loggers_quieted(self, temp_dir: Path, restore_root_logger) -> None:
        setup_logging("web", log_dir=temp_dir)

        assert logging.getLogger("aiosqlite").level == logging.WARNING
