"""
복식부기 스키마 초기화

CLI/Web 시작 시 자동으로 원장 테이블과 인덱스 생성.
CREATE IF NOT EXISTS 패턴으로 여러 번 호출해도 안전하게 동작.

금액 컬럼은 정수 센트 (balance_cents, amount_cents).
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


_TABLES: tuple[str, ...] = (
    # account 테이블
    """
    CREATE TABLE IF NOT EXISTS account (
        id               INTEGER PRIMARY KEY AUTOINCREMENT,
        code             TEXT NOT NULL UNIQUE,
        name             TEXT NOT NULL,
        account_type     TEXT NOT NULL
            CHECK (account_type IN ('Asset', 'Liability', 'Capital', 'Revenue', 'Expense')),
        subtype          TEXT,
        normal_balance   TEXT NOT NULL
            CHECK (normal_balance IN ('Debit', 'Credit')),
        balance_cents    INTEGER NOT NULL DEFAULT 0,
        is_active        INTEGER NOT NULL DEFAULT 1,
        created_at       TEXT NOT NULL,
        updated_at       TEXT NOT NULL
    )
    """,
    # ledger_transaction 테이블 (거래 헤더)
    """
    CREATE TABLE IF NOT EXISTS ledger_transaction (
        id                 INTEGER PRIMARY KEY AUTOINCREMENT,
        transaction_number INTEGER NOT NULL UNIQUE,
        transaction_date   TEXT NOT NULL,
        description        TEXT NOT NULL,
        reference          TEXT NOT NULL DEFAULT '',
        created_at         TEXT NOT NULL,
        updated_at         TEXT NOT NULL
    )
    """,
    # journal_entry 테이블 (분개 항목, 거래 삭제 시 CASCADE)
    """
    CREATE TABLE IF NOT EXISTS journal_entry (
        id               INTEGER PRIMARY KEY AUTOINCREMENT,
        transaction_id   INTEGER NOT NULL
            REFERENCES ledger_transaction(id) ON DELETE CASCADE,
        account_id       INTEGER NOT NULL
            REFERENCES account(id),
        amount_cents     INTEGER NOT NULL CHECK (amount_cents > 0),
        entry_type       TEXT NOT NULL
            CHECK (entry_type IN ('Debit', 'Credit')),
        created_at       TEXT NOT NULL
    )
    """,
    # ledger_sequence 테이블 (거래번호 최고 기록, 삭제돼도 감소하지 않음)
    """
    CREATE TABLE IF NOT EXISTS ledger_sequence (
        name             TEXT PRIMARY KEY,
        last_value       INTEGER NOT NULL
    )
    """,
)

_INDEXES: tuple[str, ...] = (
    "CREATE INDEX IF NOT EXISTS idx_account_type ON account(account_type)",
    "CREATE INDEX IF NOT EXISTS idx_account_active ON account(is_active)",
    "CREATE INDEX IF NOT EXISTS idx_transaction_date ON ledger_transaction(transaction_date)",
    "CREATE INDEX IF NOT EXISTS idx_transaction_number ON ledger_transaction(transaction_number)",
    "CREATE INDEX IF NOT EXISTS idx_journal_entry_transaction ON journal_entry(transaction_id)",
    "CREATE INDEX IF NOT EXISTS idx_journal_entry_account ON journal_entry(account_id)",
)

# 기존 DB는 현재 최대 거래번호에서 시작
_SEED_SEQUENCE = """
    INSERT OR IGNORE INTO ledger_sequence (name, last_value)
    SELECT 'transaction', COALESCE(MAX(transaction_number), 0) FROM ledger_transaction
"""


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """원장 스키마 초기화 (테이블 + 인덱스)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).
    기본 계정과목표는 AccountRegistry.seed_default_accounts()가 담당.

    Args:
        db: SQLiteAdapter 인스턴스
    """
    async with db.transaction() as conn:
        for statement in _TABLES:
            await conn.execute(statement)
        for statement in _INDEXES:
            await conn.execute(statement)
        await conn.execute(_SEED_SEQUENCE)

    logger.info("원장 스키마 초기화 완료", extra={"db_path": str(db.db_path)})
