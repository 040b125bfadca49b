"""
pytest 공통 fixture 정의

임시 원장 DB, 기본 계정과목표, 전기 엔진 등 통합 테스트용 fixture
"""

import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.ledger import (
    AccountRegistry,
    LedgerStore,
    PostingEngine,
    ReportAggregator,
    init_ledger_schema,
)


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_settings():
    """Settings 싱글턴 초기화 (테스트 간 격리)"""
    Settings.reset()
    yield
    Settings.reset()


@pytest_asyncio.fixture
async def db(temp_dir: Path) -> SQLiteAdapter:
    """스키마가 생성된 빈 원장 DB"""
    adapter = SQLiteAdapter(temp_dir / "ledger.db")
    await adapter.connect()
    await init_ledger_schema(adapter)
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def registry(db: SQLiteAdapter) -> AccountRegistry:
    """기본 계정과목표가 생성된 계정 관리자"""
    registry = AccountRegistry(db)
    await registry.seed_default_accounts()
    return registry


@pytest.fixture
def engine(db: SQLiteAdapter, registry: AccountRegistry) -> PostingEngine:
    """전기 엔진 (기본 계정과목표 포함)"""
    return PostingEngine(db)


@pytest.fixture
def reports(db: SQLiteAdapter, registry: AccountRegistry) -> ReportAggregator:
    return ReportAggregator(db)


@pytest.fixture
def store(db: SQLiteAdapter, registry: AccountRegistry) -> LedgerStore:
    return LedgerStore(db)


@pytest_asyncio.fixture
async def accounts(db: SQLiteAdapter, registry: AccountRegistry) -> dict[str, int]:
    """계정 코드 → 계정 ID"""
    rows = await db.fetchall("SELECT code, id FROM account")
    return {code: account_id for code, account_id in rows}
