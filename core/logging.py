"""
로깅 설정

웹 서버(web)와 관리 CLI(admin)가 같은 포맷으로 로그를 남김.
레벨은 settings.yaml의 logging 섹션(LedgerSettings)에서 가져옴.

사용법:
    from core.config.loader import get_settings
    from core.logging import setup_logging

    setup_logging("web", get_settings().ledger)
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.config.loader import LedgerSettings
from core.constants import Defaults, Paths

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7

# 라이브러리 로거별 최소 레벨
QUIET_LOGGERS: dict[str, int] = {
    "aiosqlite": logging.WARNING,
    "asyncio": logging.WARNING,
    "httpcore": logging.WARNING,
    "httpx": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def get_log_file_path(process_name: str, log_dir: Path | None = None) -> Path:
    """{log_dir}/{process_name}.log"""
    return (log_dir or Paths.LOGS_DIR) / f"{process_name}.log"


def _console_handler(level: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(path: Path, level: str, formatter: logging.Formatter) -> logging.Handler:
    """자정마다 롤링 (web.log.2024-02-15 형식으로 보관)"""
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=path,
        when="midnight",
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    process_name: str,
    settings: LedgerSettings | None = None,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거에 콘솔/파일 핸들러 설치

    여러 번 호출해도 핸들러는 두 개만 유지됨.

    Args:
        process_name: 로그 파일 이름 ("web", "admin")
        settings: 레벨 설정 (None이면 Defaults.LOG_LEVEL)
        log_dir: 로그 디렉토리 (None이면 Paths.LOGS_DIR)

    Returns:
        루트 Logger
    """
    console_level = settings.console_log_level if settings else Defaults.LOG_LEVEL
    file_level = settings.file_log_level if settings else Defaults.LOG_LEVEL
    log_file = get_log_file_path(process_name, log_dir)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)  # 필터링은 핸들러 레벨에서
    _drop_handlers(root)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    root.addHandler(_console_handler(console_level, formatter))
    root.addHandler(_file_handler(log_file, file_level, formatter))

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    root.info(
        f"[{process_name}] 로깅 시작: console={console_level}, "
        f"file={log_file} ({file_level}, {LOG_FILE_BACKUP_COUNT}일 보관)"
    )
    return root
