"""
core/constants.py 테스트

모든 경로가 pathlib.Path 타입이고, 상수가 정상적으로 접근 가능한지 확인
"""

from decimal import Decimal
from pathlib import Path

from core.constants import PROJECT_ROOT, Defaults, LedgerLimits, Paths


class TestProjectRoot:
    """PROJECT_ROOT 테스트"""

    def test_project_root_is_path(self) -> None:
        """PROJECT_ROOT가 Path 타입인지 확인"""
        assert isinstance(PROJECT_ROOT, Path)

    def test_project_root_is_absolute(self) -> None:
        """PROJECT_ROOT가 절대 경로인지 확인"""
        assert PROJECT_ROOT.is_absolute()

    def test_project_root_contains_core_directory(self) -> None:
        """PROJECT_ROOT에 core 디렉토리가 있는지 확인"""
        assert (PROJECT_ROOT / "core").exists()


class TestPaths:
    """Paths 테스트"""

    def test_all_paths_are_path_objects(self) -> None:
        for path in (
            Paths.CONFIG_DIR,
            Paths.DATA_DIR,
            Paths.LOGS_DIR,
            Paths.SETTINGS_FILE,
            Paths.LEDGER_DB,
        ):
            assert isinstance(path, Path)

    def test_paths_under_project_root(self) -> None:
        assert Paths.LEDGER_DB.parent == Paths.DATA_DIR
        assert Paths.SETTINGS_FILE.parent == Paths.CONFIG_DIR
        assert Paths.DATA_DIR.parent == PROJECT_ROOT


class TestDefaults:
    """Defaults 테스트"""

    def test_web_defaults(self) -> None:
        assert Defaults.WEB_HOST == "127.0.0.1"
        assert Defaults.WEB_PORT == 8000


class TestLedgerLimits:
    """LedgerLimits 테스트"""

    def test_tolerance_is_one_cent(self) -> None:
        assert LedgerLimits.BALANCE_TOLERANCE == Decimal("0.01")

    def test_text_limits(self) -> None:
        assert LedgerLimits.DESCRIPTION_MAX_LENGTH == 200
        assert LedgerLimits.REFERENCE_MAX_LENGTH == 50
