"""
원장 레코드 정의

DB 행(tuple)을 저장소 경계에서 한 번만 파싱하여 타입이 명확한 레코드로 변환.
금액은 DB에 정수 센트(cents)로 저장하고 경계에서 Decimal(0.01 단위)로 변환.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from core.ledger.types import AccountType, EntryType
from core.utils.dates import from_db_date
from core.utils.timezone import parse_timestamp

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """Decimal 금액 → 정수 센트

    Example:
        >>> to_cents(Decimal("1000.5"))
        100050
    """
    return int((amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """정수 센트 → Decimal 금액 (소수 2자리)

    Example:
        >>> from_cents(100050)
        Decimal('1000.50')
    """
    return (Decimal(cents) / 100).quantize(CENT)


# account 테이블 조회 컬럼 (from_row 순서와 일치)
ACCOUNT_COLUMNS = (
    "id, code, name, account_type, subtype, normal_balance, "
    "balance_cents, is_active, created_at, updated_at"
)

# ledger_transaction 테이블 조회 컬럼
TRANSACTION_COLUMNS = (
    "id, transaction_number, transaction_date, description, reference, "
    "created_at, updated_at"
)


@dataclass(frozen=True)
class Account:
    """계정

    balance는 캐시된 잔액 (= 해당 계정 전체 분개의 부호 합계).
    """

    id: int
    code: str
    name: str
    account_type: AccountType
    subtype: str | None
    normal_balance: EntryType
    balance: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> Account:
        """ACCOUNT_COLUMNS 순서의 행에서 생성"""
        return cls(
            id=row[0],
            code=row[1],
            name=row[2],
            account_type=AccountType(row[3]),
            subtype=row[4],
            normal_balance=EntryType(row[5]),
            balance=from_cents(row[6]),
            is_active=bool(row[7]),
            created_at=parse_timestamp(row[8]),
            updated_at=parse_timestamp(row[9]),
        )


@dataclass(frozen=True)
class JournalEntry:
    """분개 항목 (거래의 한 줄)"""

    id: int
    transaction_id: int
    account_id: int
    amount: Decimal
    entry_type: EntryType
    created_at: datetime

    # 조회 편의용 (JOIN 결과, 없으면 None)
    account_code: str | None = None
    account_name: str | None = None


@dataclass(frozen=True)
class Transaction:
    """거래 (1..N 분개 항목 소유)"""

    id: int
    transaction_number: int
    transaction_date: date
    description: str
    reference: str
    created_at: datetime
    updated_at: datetime
    entries: tuple[JournalEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_row(
        cls,
        row: tuple[Any, ...],
        entries: tuple[JournalEntry, ...] = (),
    ) -> Transaction:
        """TRANSACTION_COLUMNS 순서의 행에서 생성"""
        return cls(
            id=row[0],
            transaction_number=row[1],
            transaction_date=from_db_date(row[2]),
            description=row[3],
            reference=row[4] or "",
            created_at=parse_timestamp(row[5]),
            updated_at=parse_timestamp(row[6]),
            entries=entries,
        )

    @property
    def total_debits(self) -> Decimal:
        return sum(
            (e.amount for e in self.entries if e.entry_type is EntryType.DEBIT),
            Decimal("0.00"),
        )

    @property
    def total_credits(self) -> Decimal:
        return sum(
            (e.amount for e in self.entries if e.entry_type is EntryType.CREDIT),
            Decimal("0.00"),
        )

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_debits - self.total_credits) < CENT


@dataclass(frozen=True)
class PostingResult:
    """전기(생성/전체 수정) 결과"""

    transaction_id: int
    transaction_number: int
    total_debits: Decimal
    total_credits: Decimal
    entries_reversed: int = 0


@dataclass(frozen=True)
class DeletionResult:
    """거래 삭제 결과"""

    transaction_id: int
    transaction_number: int
    entries_reversed: int


@dataclass(frozen=True)
class BalanceMismatch:
    """캐시 잔액과 분개 합계 불일치"""

    account_id: int
    code: str
    cached: Decimal
    computed: Decimal

    @property
    def difference(self) -> Decimal:
        return self.cached - self.computed
