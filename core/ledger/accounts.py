"""
계정 관리 (Account Registry)

계정 생성/수정/비활성화와 계정과목표 조회.

규칙:
- 계정 코드 = 유형별 범위 내 최대 코드 + 1 (INSERT와 같은 트랜잭션에서 계산)
- 분개가 있는 계정은 수정/삭제 불가 (ConflictError)
- 삭제는 is_active = 0 (소프트 삭제)
- 잔액 캐시는 PostingEngine만 변경
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import aiosqlite

from core.constants import LedgerLimits
from core.errors import ConflictError, NotFoundError, ValidationError
from core.ledger.models import ACCOUNT_COLUMNS, Account
from core.ledger.types import (
    ACCOUNT_CODE_BASE,
    DEFAULT_ACCOUNTS,
    AccountSubtype,
    AccountType,
    EntryType,
)
from core.utils.timezone import utc_timestamp

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountFields:
    """검증된 계정 입력"""

    name: str
    account_type: AccountType
    normal_balance: EntryType
    subtype: str | None


@dataclass
class ChartOfAccounts:
    """계정과목표 (유형/유동성별 계층)"""

    current_assets: list[Account] = field(default_factory=list)
    non_current_assets: list[Account] = field(default_factory=list)
    current_liabilities: list[Account] = field(default_factory=list)
    non_current_liabilities: list[Account] = field(default_factory=list)
    capital: list[Account] = field(default_factory=list)
    revenue: list[Account] = field(default_factory=list)
    expenses: list[Account] = field(default_factory=list)


def validate_account_fields(
    name: Any,
    account_type: Any,
    normal_balance: Any,
    subtype: Any = None,
) -> AccountFields:
    """계정 입력 검증 (오류를 모두 수집)

    Raises:
        ValidationError: 하나 이상의 입력 오류
    """
    errors: list[str] = []

    text = name.strip() if isinstance(name, str) else ""
    if not text:
        errors.append("Account name is required")
    elif len(text) > LedgerLimits.ACCOUNT_NAME_MAX_LENGTH:
        errors.append(
            f"Account name must be at most {LedgerLimits.ACCOUNT_NAME_MAX_LENGTH} characters"
        )

    try:
        parsed_type: AccountType | None = AccountType(account_type)
    except ValueError:
        parsed_type = None
        errors.append(
            "Account type must be one of: "
            + ", ".join(t.value for t in AccountType)
        )

    try:
        parsed_balance: EntryType | None = EntryType(normal_balance)
    except ValueError:
        parsed_balance = None
        errors.append("Normal balance must be Debit or Credit")

    clean_subtype = subtype.strip() if isinstance(subtype, str) and subtype.strip() else None
    if clean_subtype and parsed_type in (AccountType.ASSET, AccountType.LIABILITY):
        allowed = [s.value for s in AccountSubtype]
        if clean_subtype not in allowed:
            errors.append(
                f"Subtype for {parsed_type.value} accounts must be one of: {', '.join(allowed)}"
            )

    if errors or parsed_type is None or parsed_balance is None:
        raise ValidationError(errors)

    return AccountFields(
        name=text,
        account_type=parsed_type,
        normal_balance=parsed_balance,
        subtype=clean_subtype,
    )


async def allocate_account_code(conn: aiosqlite.Connection, account_type: AccountType) -> str:
    """유형별 범위에서 다음 계정 코드 계산

    범위가 비어 있으면 시작 번호 자체 (예: Asset → 1000).

    Raises:
        ConflictError: 범위가 가득 찬 경우
    """
    base = ACCOUNT_CODE_BASE[account_type]
    last = base + LedgerLimits.ACCOUNT_CODE_RANGE - 1

    cursor = await conn.execute(
        """
        SELECT MAX(CAST(code AS INTEGER))
        FROM account
        WHERE CAST(code AS INTEGER) BETWEEN ? AND ?
        """,
        (base, last),
    )
    row = await cursor.fetchone()
    next_code = base if row is None or row[0] is None else row[0] + 1

    if next_code > last:
        raise ConflictError(
            f"No account codes left for {account_type.value} accounts ({base}-{last})"
        )
    return str(next_code)


class AccountRegistry:
    """계정 관리

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # =========================================================================
    # 조회
    # =========================================================================

    async def get_account(self, account_id: int) -> Account:
        """활성 계정 조회

        Raises:
            NotFoundError: 없거나 비활성인 경우
        """
        row = await self.db.fetchone(
            f"SELECT {ACCOUNT_COLUMNS} FROM account WHERE id = ? AND is_active = 1",
            (account_id,),
        )
        if row is None:
            raise NotFoundError("Account", account_id)
        return Account.from_row(row)

    async def list_accounts(
        self,
        account_type: AccountType | str | None = None,
    ) -> list[Account]:
        """활성 계정 목록 (코드 순)"""
        if account_type is None:
            rows = await self.db.fetchall(
                f"SELECT {ACCOUNT_COLUMNS} FROM account WHERE is_active = 1 ORDER BY code"
            )
        else:
            try:
                parsed = AccountType(account_type)
            except ValueError:
                raise ValidationError(f"Unknown account type '{account_type}'") from None
            rows = await self.db.fetchall(
                f"""
                SELECT {ACCOUNT_COLUMNS} FROM account
                WHERE is_active = 1 AND account_type = ?
                ORDER BY code
                """,
                (parsed.value,),
            )
        return [Account.from_row(row) for row in rows]

    async def get_account_usage(self, account_id: int) -> int:
        """계정을 참조하는 분개 수"""
        row = await self.db.fetchone(
            "SELECT COUNT(*) FROM journal_entry WHERE account_id = ?",
            (account_id,),
        )
        return int(row[0]) if row else 0

    async def get_chart_of_accounts(self) -> ChartOfAccounts:
        """계정과목표 (자산/부채는 유동/비유동 구분)"""
        chart = ChartOfAccounts()
        for account in await self.list_accounts():
            current = account.subtype == AccountSubtype.CURRENT.value
            if account.account_type is AccountType.ASSET:
                (chart.current_assets if current else chart.non_current_assets).append(account)
            elif account.account_type is AccountType.LIABILITY:
                (chart.current_liabilities if current else chart.non_current_liabilities).append(account)
            elif account.account_type is AccountType.CAPITAL:
                chart.capital.append(account)
            elif account.account_type is AccountType.REVENUE:
                chart.revenue.append(account)
            else:
                chart.expenses.append(account)
        return chart

    # =========================================================================
    # 변경
    # =========================================================================

    async def create_account(
        self,
        name: str,
        account_type: AccountType | str,
        normal_balance: EntryType | str,
        subtype: str | None = None,
    ) -> Account:
        """계정 생성 (잔액 0, 코드 자동 할당)

        Raises:
            ValidationError: 입력 오류
            ConflictError: 코드 범위 소진
        """
        fields = validate_account_fields(name, account_type, normal_balance, subtype)
        now = utc_timestamp()

        async with self.db.transaction() as conn:
            code = await allocate_account_code(conn, fields.account_type)
            cursor = await conn.execute(
                """
                INSERT INTO account (
                    code, name, account_type, subtype, normal_balance,
                    balance_cents, is_active, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, 0, 1, ?, ?)
                """,
                (
                    code,
                    fields.name,
                    fields.account_type.value,
                    fields.subtype,
                    fields.normal_balance.value,
                    now,
                    now,
                ),
            )
            account_id = cursor.lastrowid
            account = await self._fetch(conn, account_id)

        logger.info(
            f"계정 생성: {code} {fields.name}",
            extra={"account_id": account_id, "account_type": fields.account_type.value},
        )
        return account

    async def update_account(
        self,
        account_id: int,
        name: str,
        account_type: AccountType | str,
        normal_balance: EntryType | str,
        subtype: str | None = None,
    ) -> Account:
        """계정 정보 수정 (분개가 없는 계정만)

        유형이 바뀌면 새 유형의 범위에서 코드를 다시 할당.

        Raises:
            ValidationError: 입력 오류
            NotFoundError: 없거나 비활성인 경우
            ConflictError: 분개가 있는 경우
        """
        fields = validate_account_fields(name, account_type, normal_balance, subtype)
        now = utc_timestamp()

        async with self.db.transaction() as conn:
            current = await self._fetch_active_unused(conn, account_id, "update")

            code = current.code
            if fields.account_type is not current.account_type:
                code = await allocate_account_code(conn, fields.account_type)

            await conn.execute(
                """
                UPDATE account
                SET code = ?, name = ?, account_type = ?, subtype = ?,
                    normal_balance = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    code,
                    fields.name,
                    fields.account_type.value,
                    fields.subtype,
                    fields.normal_balance.value,
                    now,
                    account_id,
                ),
            )
            account = await self._fetch(conn, account_id)

        logger.info(f"계정 수정: {account.code} {account.name}", extra={"account_id": account_id})
        return account

    async def deactivate_account(self, account_id: int) -> Account:
        """계정 비활성화 (소프트 삭제, 분개가 없는 계정만)

        Raises:
            NotFoundError: 없거나 이미 비활성인 경우
            ConflictError: 분개가 있는 경우
        """
        now = utc_timestamp()

        async with self.db.transaction() as conn:
            await self._fetch_active_unused(conn, account_id, "delete")
            await conn.execute(
                "UPDATE account SET is_active = 0, updated_at = ? WHERE id = ?",
                (now, account_id),
            )
            account = await self._fetch(conn, account_id)

        logger.info(f"계정 비활성화: {account.code} {account.name}", extra={"account_id": account_id})
        return account

    async def seed_default_accounts(self) -> int:
        """기본 계정과목표 생성 (계정 테이블이 비어 있을 때만)

        Returns:
            생성된 계정 수 (이미 계정이 있으면 0)
        """
        now = utc_timestamp()

        async with self.db.transaction() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM account")
            row = await cursor.fetchone()
            if row[0] > 0:
                logger.debug("계정이 이미 존재하여 기본 계정과목표 생성 생략")
                return 0

            await conn.executemany(
                """
                INSERT INTO account (
                    code, name, account_type, subtype, normal_balance,
                    balance_cents, is_active, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, 0, 1, ?, ?)
                """,
                [(*account, now, now) for account in DEFAULT_ACCOUNTS],
            )

        logger.info(f"기본 계정과목표 생성: {len(DEFAULT_ACCOUNTS)}개 계정")
        return len(DEFAULT_ACCOUNTS)

    # =========================================================================
    # 내부
    # =========================================================================

    @staticmethod
    async def _fetch(conn: aiosqlite.Connection, account_id: int) -> Account:
        cursor = await conn.execute(
            f"SELECT {ACCOUNT_COLUMNS} FROM account WHERE id = ?",
            (account_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            raise NotFoundError("Account", account_id)
        return Account.from_row(row)

    @staticmethod
    async def _fetch_active_unused(
        conn: aiosqlite.Connection,
        account_id: int,
        action: str,
    ) -> Account:
        """수정/삭제 가능한 계정 확인 (활성 + 분개 없음)"""
        cursor = await conn.execute(
            f"SELECT {ACCOUNT_COLUMNS} FROM account WHERE id = ? AND is_active = 1",
            (account_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            raise NotFoundError("Account", account_id)

        cursor = await conn.execute(
            "SELECT COUNT(*) FROM journal_entry WHERE account_id = ?",
            (account_id,),
        )
        usage = (await cursor.fetchone())[0]
        if usage > 0:
            raise ConflictError(
                f"Cannot {action} account that has transactions ({usage} journal entries)"
            )
        return Account.from_row(row)
