"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → ledgerengine/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    LEDGER_DB: Path = DATA_DIR / "ledger.db"


class LedgerLimits:
    """원장 검증 한도"""

    # 차변/대변 합계 허용 오차
    BALANCE_TOLERANCE: Decimal = Decimal("0.01")

    # 금액 소수 자릿수 (센트 단위 저장)
    AMOUNT_PLACES: int = 2

    # 분개 한 줄 최대 금액 (센트, 9,999,999,999,999.99)
    MAX_AMOUNT_CENTS: int = 10**15 - 1

    # 계정 잔액 캐시 한도 (SQLite INTEGER 범위)
    MAX_BALANCE_CENTS: int = 2**63 - 1

    DESCRIPTION_MAX_LENGTH: int = 200
    REFERENCE_MAX_LENGTH: int = 50
    ACCOUNT_NAME_MAX_LENGTH: int = 100

    MIN_ENTRIES: int = 2
    MIN_DISTINCT_ACCOUNTS: int = 2

    # 계정 코드 범위 폭 (Asset 1000~1999 등)
    ACCOUNT_CODE_RANGE: int = 1000

    # 거래번호 UNIQUE 충돌 시 재시도 횟수
    NUMBER_ALLOCATION_ATTEMPTS: int = 3

    # 검색 결과 최대 개수
    SEARCH_LIMIT: int = 50
