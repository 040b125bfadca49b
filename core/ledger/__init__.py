"""
복식부기 (Double-Entry Bookkeeping) 원장

거래 검증, 원자적 전기, 계정 잔액 캐시, 재무 보고서 집계.

사용 예시:
```python
from adapters.db import SQLiteAdapter
from core.ledger import (
    EntryDraft,
    PostingEngine,
    ReportAggregator,
    TransactionDraft,
    init_ledger_schema,
)

db = SQLiteAdapter("data/ledger.db")
await db.connect()
await init_ledger_schema(db)

# 거래 전기
engine = PostingEngine(db)
result = await engine.create_posting(TransactionDraft(
    date="01/01/2024",
    description="Owner investment",
    entries=[
        EntryDraft(account_id=1, amount="1000", entry_type="Debit"),
        EntryDraft(account_id=10, amount="1000", entry_type="Credit"),
    ],
))

# 계정 원장 조회
ledger = await ReportAggregator(db).get_account_ledger(1, "01/02/2024", "28/02/2024")
```
"""

from core.ledger.accounts import AccountRegistry, ChartOfAccounts
from core.ledger.models import (
    Account,
    BalanceMismatch,
    DeletionResult,
    JournalEntry,
    PostingResult,
    Transaction,
)
from core.ledger.posting import PostingEngine
from core.ledger.reports import (
    AccountLedger,
    BalanceSheet,
    EquationCheck,
    FinancialRatios,
    IncomeStatement,
    LedgerLine,
    ReportAggregator,
    ReportLine,
    SystemStats,
)
from core.ledger.schema import init_ledger_schema
from core.ledger.sequencer import TransactionNumberSequencer
from core.ledger.store import LedgerStore
from core.ledger.types import (
    DEFAULT_ACCOUNTS,
    AccountSubtype,
    AccountType,
    EntryType,
)
from core.ledger.validator import (
    EntryDraft,
    TransactionDraft,
    ValidatedTransaction,
    validate,
    validate_metadata,
)

__all__ = [
    # 핵심 클래스
    "PostingEngine",
    "ReportAggregator",
    "AccountRegistry",
    "LedgerStore",
    "TransactionNumberSequencer",
    "init_ledger_schema",
    # 입력/검증
    "EntryDraft",
    "TransactionDraft",
    "ValidatedTransaction",
    "validate",
    "validate_metadata",
    # 레코드
    "Account",
    "Transaction",
    "JournalEntry",
    "PostingResult",
    "DeletionResult",
    "BalanceMismatch",
    "ChartOfAccounts",
    # 보고서
    "BalanceSheet",
    "IncomeStatement",
    "AccountLedger",
    "LedgerLine",
    "ReportLine",
    "EquationCheck",
    "FinancialRatios",
    "SystemStats",
    # Enum
    "AccountType",
    "AccountSubtype",
    "EntryType",
    # 상수
    "DEFAULT_ACCOUNTS",
]
