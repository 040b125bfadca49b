"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, 기본값, 싱글턴 테스트
"""

from pathlib import Path

import pytest

from core.config.loader import (
    LedgerSettings,
    Settings,
    SettingsLoadError,
    get_settings,
    load_settings,
)
from core.constants import Paths


@pytest.fixture
def settings_file(temp_dir: Path) -> Path:
    """테스트용 config/settings.yaml (상위 디렉토리가 프로젝트 루트 역할)"""
    config_dir = temp_dir / "config"
    config_dir.mkdir()
    path = config_dir / "settings.yaml"
    path.write_text(
        """# 테스트용 settings.yaml
database:
  path: data/test_ledger.db

logging:
  console_level: debug
  file_level: WARNING

web:
  host: 0.0.0.0
  port: 9000
""",
        encoding="utf-8",
    )
    return path


class TestLedgerSettings:
    """LedgerSettings 데이터클래스 테스트"""

    def test_defaults(self) -> None:
        settings = LedgerSettings(db_path=Path("ledger.db"))

        assert settings.console_log_level == "INFO"
        assert settings.web_port == 8000

    def test_frozen(self) -> None:
        """불변성 확인"""
        settings = LedgerSettings(db_path=Path("ledger.db"))

        with pytest.raises(AttributeError):
            settings.web_port = 1  # type: ignore


class TestLoadSettings:
    """load_settings 함수 테스트"""

    def test_load_valid_file(self, settings_file: Path) -> None:
        settings = load_settings(settings_file)

        assert settings.db_path == settings_file.resolve().parent.parent / "data" / "test_ledger.db"
        assert settings.console_log_level == "DEBUG"
        assert settings.file_log_level == "WARNING"
        assert settings.web_host == "0.0.0.0"
        assert settings.web_port == 9000

    def test_missing_file_uses_defaults(self, temp_dir: Path) -> None:
        """파일이 없으면 기본값"""
        settings = load_settings(temp_dir / "nonexistent.yaml")

        assert settings.db_path == Paths.LEDGER_DB
        assert settings.web_host == "127.0.0.1"

    def test_empty_file_uses_defaults(self, temp_dir: Path) -> None:
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_settings(path) == LedgerSettings(db_path=Paths.LEDGER_DB)

    def test_absolute_db_path(self, temp_dir: Path) -> None:
        db_path = temp_dir / "abs.db"
        path = temp_dir / "settings.yaml"
        path.write_text(f"database:\n  path: {db_path}\n", encoding="utf-8")

        assert load_settings(path).db_path == db_path

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "invalid.yaml"
        path.write_text("database: [unclosed", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="파싱 실패"):
            load_settings(path)

    def test_non_mapping_document(self, temp_dir: Path) -> None:
        path = temp_dir / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError):
            load_settings(path)

    def test_invalid_log_level(self, temp_dir: Path) -> None:
        path = temp_dir / "level.yaml"
        path.write_text("logging:\n  console_level: LOUD\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="console_level"):
            load_settings(path)

    def test_invalid_port(self, temp_dir: Path) -> None:
        path = temp_dir / "port.yaml"
        path.write_text("web:\n  port: eighty\n", encoding="utf-8")

        with pytest.raises(SettingsLoadError, match="web.port"):
            load_settings(path)


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, settings_file: Path) -> None:
        first = get_settings(settings_file)
        second = get_settings()

        assert first is second
        assert second.web_port == 9000

    def test_reset(self, settings_file: Path, temp_dir: Path) -> None:
        get_settings(settings_file)
        Settings.reset()

        settings = get_settings(temp_dir / "nonexistent.yaml")

        assert settings.web_port == 8000
        assert settings.db_path == Paths.LEDGER_DB
