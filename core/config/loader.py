"""
설정 로더

settings.yaml 로드 및 원장 설정 생성.
파일이 없으면 core.constants의 기본값 사용.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LedgerSettings:
    """원장 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지.
    연결 객체는 담지 않음 (설정값만).
    """

    db_path: Path
    console_log_level: str = Defaults.LOG_LEVEL
    file_log_level: str = Defaults.LOG_LEVEL
    web_host: str = Defaults.WEB_HOST
    web_port: int = Defaults.WEB_PORT


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def _resolve_path(value: Any, base_dir: Path) -> Path:
    """상대 경로는 설정 파일의 상위(프로젝트 루트) 기준으로 해석"""
    path = Path(str(value)).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path


def _log_level(section: dict[str, Any], key: str) -> str:
    value = str(section.get(key, Defaults.LOG_LEVEL)).upper()
    if value not in _LOG_LEVELS:
        raise SettingsLoadError(
            f"settings.yaml의 logging.{key} 값이 잘못되었습니다: '{value}'. "
            f"유효한 값: {list(_LOG_LEVELS)}"
        )
    return value


def load_settings(path: Path | None = None) -> LedgerSettings:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerSettings 인스턴스 (파일이 없으면 기본값)

    Raises:
        SettingsLoadError: 파일을 읽을 수 없거나 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        logging.getLogger(__name__).debug(
            f"settings.yaml 없음, 기본값 사용: {path}"
        )
        return LedgerSettings(db_path=Paths.LEDGER_DB)

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except OSError as e:
        raise SettingsLoadError(f"settings.yaml 읽기 실패: {e}") from e
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return LedgerSettings(db_path=Paths.LEDGER_DB)

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    database = data.get("database") or {}
    logging_section = data.get("logging") or {}
    web = data.get("web") or {}
    for name, section in (("database", database), ("logging", logging_section), ("web", web)):
        if not isinstance(section, dict):
            raise SettingsLoadError(f"settings.yaml의 '{name}' 섹션은 매핑이어야 합니다")

    base_dir = path.resolve().parent.parent
    db_path = (
        _resolve_path(database["path"], base_dir)
        if database.get("path")
        else Paths.LEDGER_DB
    )

    try:
        web_port = int(web.get("port", Defaults.WEB_PORT))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(
            f"settings.yaml의 web.port 값이 잘못되었습니다: {web.get('port')!r}"
        ) from e

    return LedgerSettings(
        db_path=db_path,
        console_log_level=_log_level(logging_section, "console_level"),
        file_log_level=_log_level(logging_section, "file_level"),
        web_host=str(web.get("host", Defaults.WEB_HOST)),
        web_port=web_port,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _settings: LedgerSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._settings is None:
            self._settings = load_settings(settings_path)

    @property
    def ledger(self) -> LedgerSettings:
        """로드된 설정 전체"""
        if self._settings is None:
            raise SettingsLoadError("Settings have not been loaded")
        return self._settings

    @property
    def db_path(self) -> Path:
        """원장 DB 경로"""
        return self.ledger.db_path

    @property
    def console_log_level(self) -> str:
        return self.ledger.console_log_level

    @property
    def file_log_level(self) -> str:
        return self.ledger.file_log_level

    @property
    def web_host(self) -> str:
        return self.ledger.web_host

    @property
    def web_port(self) -> int:
        return self.ledger.web_port

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._settings = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
