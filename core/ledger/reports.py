"""
재무 보고서 집계 (Report Aggregator)

- 전체 기간 보고서: 캐시된 계정 잔액 합산 (분개 스캔 없음)
- 기간 보고서: 기간 내 분개를 정상 잔액 부호 규칙으로 재계산
- 계정 원장: 기초 잔액 + 기간 내 라인별 누적 잔액
- 회계 등식 검증: 자산 = 부채 + 자본 + 당기순이익

모든 보고서는 읽기 스냅샷 안에서 실행되어 부분 커밋 상태를 보지 않음.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Iterable

import aiosqlite

from core.constants import LedgerLimits
from core.errors import NotFoundError
from core.ledger.balance import balance_effect, signed_amount_sql
from core.ledger.models import ACCOUNT_COLUMNS, CENT, Account, from_cents
from core.ledger.sequencer import TransactionNumberSequencer
from core.ledger.types import (
    BALANCE_SHEET_TYPES,
    INCOME_STATEMENT_TYPES,
    AccountType,
    EntryType,
)
from core.utils.dates import from_db_date, parse_period, to_db_date

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


# =============================================================================
# 결과 레코드
# =============================================================================


@dataclass(frozen=True)
class ReportLine:
    """보고서의 계정 한 줄

    balance: 전체 기간 보고서는 캐시 잔액, 기간 보고서는 기간 잔액.
    """

    account_id: int
    code: str
    name: str
    account_type: AccountType
    subtype: str | None
    normal_balance: EntryType
    balance: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    """대차대조표"""

    assets: tuple[ReportLine, ...]
    liabilities: tuple[ReportLine, ...]
    capital: tuple[ReportLine, ...]
    total_assets: Decimal
    total_liabilities: Decimal
    total_capital: Decimal
    start_date: date | None = None
    end_date: date | None = None

    @property
    def total_liabilities_and_capital(self) -> Decimal:
        return self.total_liabilities + self.total_capital


@dataclass(frozen=True)
class IncomeStatementRatios:
    """손익 비율 (매출 대비 %, 매출 ≤ 0이면 0)"""

    profit_margin: Decimal
    expense_ratio: Decimal


@dataclass(frozen=True)
class IncomeStatement:
    """손익계산서"""

    revenue: tuple[ReportLine, ...]
    expenses: tuple[ReportLine, ...]
    total_revenue: Decimal
    total_expenses: Decimal
    start_date: date | None = None
    end_date: date | None = None

    @property
    def net_income(self) -> Decimal:
        return self.total_revenue - self.total_expenses

    @property
    def ratios(self) -> IncomeStatementRatios:
        return IncomeStatementRatios(
            profit_margin=percentage(self.net_income, self.total_revenue),
            expense_ratio=percentage(self.total_expenses, self.total_revenue),
        )


@dataclass(frozen=True)
class LedgerLine:
    """계정 원장의 한 줄 (분개 1건)"""

    transaction_id: int
    transaction_number: int
    transaction_date: date
    description: str
    reference: str
    entry_id: int
    entry_type: EntryType
    amount: Decimal
    balance_effect: Decimal
    running_balance: Decimal
    other_accounts: tuple[str, ...] = ()


@dataclass(frozen=True)
class AccountLedger:
    """계정 원장"""

    account: Account
    start_date: date
    end_date: date
    opening_balance: Decimal
    closing_balance: Decimal
    lines: tuple[LedgerLine, ...]
    total_debits: Decimal
    total_credits: Decimal

    @property
    def line_count(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class EquationCheck:
    """회계 등식 검증 결과"""

    total_assets: Decimal
    total_liabilities: Decimal
    total_capital: Decimal
    net_income: Decimal
    difference: Decimal

    @property
    def holds(self) -> bool:
        return self.difference < LedgerLimits.BALANCE_TOLERANCE


@dataclass(frozen=True)
class FinancialRatios:
    """재무 비율 (current_ratio는 배수, 나머지는 %)"""

    debt_ratio: Decimal
    equity_ratio: Decimal
    profit_margin: Decimal
    current_ratio: Decimal
    return_on_assets: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_capital: Decimal
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class SystemStats:
    """원장 현황"""

    active_accounts: int
    total_transactions: int
    journal_entries: int
    latest_transaction_date: date | None
    next_transaction_number: int


# =============================================================================
# 계산 헬퍼
# =============================================================================


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole × 100 (소수 2자리, whole ≤ 0이면 0)"""
    if whole <= 0:
        return ZERO
    return (part / whole * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


def ratio(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole (소수 2자리, whole ≤ 0이면 0)"""
    if whole <= 0:
        return ZERO
    return (part / whole).quantize(CENT, rounding=ROUND_HALF_UP)


def capital_total(lines: Iterable[ReportLine]) -> Decimal:
    """자본 합계 (차변 정상 잔액 계정(인출금)은 차감)"""
    total = ZERO
    for line in lines:
        if line.normal_balance is EntryType.DEBIT:
            total -= line.balance
        else:
            total += line.balance
    return total


def _total(lines: Iterable[ReportLine]) -> Decimal:
    return sum((line.balance for line in lines), ZERO)


def _line_from_row(row: tuple[Any, ...]) -> ReportLine:
    return ReportLine(
        account_id=row[0],
        code=row[1],
        name=row[2],
        account_type=AccountType(row[3]),
        subtype=row[4],
        normal_balance=EntryType(row[5]),
        balance=from_cents(row[6]),
    )


def _type_placeholders(types: tuple[AccountType, ...]) -> tuple[str, list[str]]:
    return ", ".join("?" for _ in types), [t.value for t in types]


async def _cached_lines(
    conn: aiosqlite.Connection,
    types: tuple[AccountType, ...],
) -> list[ReportLine]:
    """활성 계정의 캐시 잔액"""
    placeholders, values = _type_placeholders(types)
    cursor = await conn.execute(
        f"""
        SELECT id, code, name, account_type, subtype, normal_balance, balance_cents
        FROM account
        WHERE is_active = 1 AND account_type IN ({placeholders})
        ORDER BY code
        """,
        values,
    )
    return [_line_from_row(row) for row in await cursor.fetchall()]


async def _period_lines(
    conn: aiosqlite.Connection,
    types: tuple[AccountType, ...],
    start: date,
    end: date,
) -> list[ReportLine]:
    """활성 계정의 기간 잔액

    기간 조건은 LEFT JOIN 하위 쿼리 안에 두어
    기간 내 분개가 없는 계정도 0으로 포함.
    """
    placeholders, values = _type_placeholders(types)
    signed = signed_amount_sql("a.normal_balance", "p.entry_type", "p.amount_cents")
    cursor = await conn.execute(
        f"""
        SELECT a.id, a.code, a.name, a.account_type, a.subtype, a.normal_balance,
               COALESCE(SUM({signed}), 0) AS period_balance
        FROM account a
        LEFT JOIN (
            SELECT je.account_id, je.entry_type, je.amount_cents
            FROM journal_entry je
            JOIN ledger_transaction t ON t.id = je.transaction_id
            WHERE t.transaction_date BETWEEN ? AND ?
        ) p ON p.account_id = a.id
        WHERE a.is_active = 1 AND a.account_type IN ({placeholders})
        GROUP BY a.id
        ORDER BY a.code
        """,
        [to_db_date(start), to_db_date(end), *values],
    )
    return [_line_from_row(row) for row in await cursor.fetchall()]


def _build_balance_sheet(
    lines: list[ReportLine],
    start: date | None = None,
    end: date | None = None,
) -> BalanceSheet:
    assets = tuple(line for line in lines if line.account_type is AccountType.ASSET)
    liabilities = tuple(line for line in lines if line.account_type is AccountType.LIABILITY)
    capital = tuple(line for line in lines if line.account_type is AccountType.CAPITAL)
    return BalanceSheet(
        assets=assets,
        liabilities=liabilities,
        capital=capital,
        total_assets=_total(assets),
        total_liabilities=_total(liabilities),
        total_capital=capital_total(capital),
        start_date=start,
        end_date=end,
    )


def _build_income_statement(
    lines: list[ReportLine],
    start: date | None = None,
    end: date | None = None,
) -> IncomeStatement:
    revenue = tuple(line for line in lines if line.account_type is AccountType.REVENUE)
    expenses = tuple(line for line in lines if line.account_type is AccountType.EXPENSE)
    return IncomeStatement(
        revenue=revenue,
        expenses=expenses,
        total_revenue=_total(revenue),
        total_expenses=_total(expenses),
        start_date=start,
        end_date=end,
    )


# =============================================================================
# 집계기
# =============================================================================


class ReportAggregator:
    """재무 보고서 집계기

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get_balance_sheet(self) -> BalanceSheet:
        """대차대조표 (캐시 잔액 기준)"""
        async with self.db.snapshot() as conn:
            lines = await _cached_lines(conn, BALANCE_SHEET_TYPES)
        return _build_balance_sheet(lines)

    async def get_balance_sheet_for_period(
        self,
        start: date | str,
        end: date | str,
    ) -> BalanceSheet:
        """기간 대차대조표 (기간 내 분개 재계산)

        Raises:
            ValidationError: 날짜 형식 오류 또는 start > end
        """
        start_date, end_date = parse_period(start, end)
        async with self.db.snapshot() as conn:
            lines = await _period_lines(conn, BALANCE_SHEET_TYPES, start_date, end_date)
        return _build_balance_sheet(lines, start_date, end_date)

    async def get_income_statement(self) -> IncomeStatement:
        """손익계산서 (캐시 잔액 기준)"""
        async with self.db.snapshot() as conn:
            lines = await _cached_lines(conn, INCOME_STATEMENT_TYPES)
        return _build_income_statement(lines)

    async def get_income_statement_for_period(
        self,
        start: date | str,
        end: date | str,
    ) -> IncomeStatement:
        """기간 손익계산서

        Raises:
            ValidationError: 날짜 형식 오류 또는 start > end
        """
        start_date, end_date = parse_period(start, end)
        async with self.db.snapshot() as conn:
            lines = await _period_lines(conn, INCOME_STATEMENT_TYPES, start_date, end_date)
        return _build_income_statement(lines, start_date, end_date)

    async def get_account_ledger(
        self,
        account_id: int,
        start: date | str,
        end: date | str,
    ) -> AccountLedger:
        """계정 원장

        기초 잔액 = 시작일 이전 분개의 부호 합계.
        라인은 (거래일자, 거래 ID, 분개 ID) 오름차순.
        running_balance[i] = running_balance[i-1] + balance_effect[i]

        Raises:
            ValidationError: 날짜 형식 오류 또는 start > end
            NotFoundError: 계정이 없거나 비활성
        """
        start_date, end_date = parse_period(start, end)
        db_start, db_end = to_db_date(start_date), to_db_date(end_date)

        async with self.db.snapshot() as conn:
            cursor = await conn.execute(
                f"SELECT {ACCOUNT_COLUMNS} FROM account WHERE id = ? AND is_active = 1",
                (account_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                raise NotFoundError("Account", account_id)
            account = Account.from_row(row)

            signed = signed_amount_sql("?", "je.entry_type", "je.amount_cents")
            cursor = await conn.execute(
                f"""
                SELECT COALESCE(SUM({signed}), 0)
                FROM journal_entry je
                JOIN ledger_transaction t ON t.id = je.transaction_id
                WHERE je.account_id = ? AND t.transaction_date < ?
                """,
                (account.normal_balance.value, account_id, db_start),
            )
            opening_cents = (await cursor.fetchone())[0]

            cursor = await conn.execute(
                """
                SELECT t.id, t.transaction_number, t.transaction_date, t.description,
                       t.reference, je.id, je.entry_type, je.amount_cents
                FROM journal_entry je
                JOIN ledger_transaction t ON t.id = je.transaction_id
                WHERE je.account_id = ? AND t.transaction_date BETWEEN ? AND ?
                ORDER BY t.transaction_date, t.id, je.id
                """,
                (account_id, db_start, db_end),
            )
            rows = list(await cursor.fetchall())
            others = await self._other_accounts(conn, account_id, {r[0] for r in rows})

        lines: list[LedgerLine] = []
        running = from_cents(opening_cents)
        total_debits = ZERO
        total_credits = ZERO
        for r in rows:
            entry_type = EntryType(r[6])
            amount = from_cents(r[7])
            effect = balance_effect(account.normal_balance, entry_type, amount)
            running += effect
            if entry_type is EntryType.DEBIT:
                total_debits += amount
            else:
                total_credits += amount
            lines.append(
                LedgerLine(
                    transaction_id=r[0],
                    transaction_number=r[1],
                    transaction_date=from_db_date(r[2]),
                    description=r[3],
                    reference=r[4] or "",
                    entry_id=r[5],
                    entry_type=entry_type,
                    amount=amount,
                    balance_effect=effect,
                    running_balance=running,
                    other_accounts=others.get(r[0], ()),
                )
            )

        return AccountLedger(
            account=account,
            start_date=start_date,
            end_date=end_date,
            opening_balance=from_cents(opening_cents),
            closing_balance=running,
            lines=tuple(lines),
            total_debits=total_debits,
            total_credits=total_credits,
        )

    @staticmethod
    async def _other_accounts(
        conn: aiosqlite.Connection,
        account_id: int,
        transaction_ids: set[int],
    ) -> dict[int, tuple[str, ...]]:
        """거래별 상대 계정 ('계정명 (Debit)' 형식, 중복 제거)"""
        if not transaction_ids:
            return {}

        ids = sorted(transaction_ids)
        placeholders = ", ".join("?" for _ in ids)
        cursor = await conn.execute(
            f"""
            SELECT je.transaction_id, a.name, je.entry_type
            FROM journal_entry je
            JOIN account a ON a.id = je.account_id
            WHERE je.transaction_id IN ({placeholders}) AND je.account_id != ?
            ORDER BY je.id
            """,
            [*ids, account_id],
        )
        grouped: dict[int, list[str]] = defaultdict(list)
        for transaction_id, name, entry_type in await cursor.fetchall():
            label = f"{name} ({entry_type})"
            if label not in grouped[transaction_id]:
                grouped[transaction_id].append(label)
        return {tx_id: tuple(labels) for tx_id, labels in grouped.items()}

    async def check_accounting_equation(self) -> EquationCheck:
        """회계 등식 검증: 자산 = 부채 + 자본 + 당기순이익 (허용 오차 0.01)"""
        async with self.db.snapshot() as conn:
            sheet = _build_balance_sheet(await _cached_lines(conn, BALANCE_SHEET_TYPES))
            income = _build_income_statement(
                await _cached_lines(conn, INCOME_STATEMENT_TYPES)
            )

        difference = abs(
            sheet.total_assets
            - (sheet.total_liabilities + sheet.total_capital + income.net_income)
        )
        result = EquationCheck(
            total_assets=sheet.total_assets,
            total_liabilities=sheet.total_liabilities,
            total_capital=sheet.total_capital,
            net_income=income.net_income,
            difference=difference,
        )
        if not result.holds:
            logger.warning(
                f"회계 등식 불일치: 차이 {difference}",
                extra={"total_assets": str(sheet.total_assets)},
            )
        return result

    async def get_financial_ratios(self) -> FinancialRatios:
        """재무 비율 (캐시 잔액 기준)"""
        async with self.db.snapshot() as conn:
            sheet = _build_balance_sheet(await _cached_lines(conn, BALANCE_SHEET_TYPES))
            income = _build_income_statement(
                await _cached_lines(conn, INCOME_STATEMENT_TYPES)
            )

        return FinancialRatios(
            debt_ratio=percentage(sheet.total_liabilities, sheet.total_assets),
            equity_ratio=percentage(sheet.total_capital, sheet.total_assets),
            profit_margin=percentage(income.net_income, income.total_revenue),
            current_ratio=ratio(sheet.total_assets, sheet.total_liabilities),
            return_on_assets=percentage(income.net_income, sheet.total_assets),
            total_assets=sheet.total_assets,
            total_liabilities=sheet.total_liabilities,
            total_capital=sheet.total_capital,
            total_revenue=income.total_revenue,
            total_expenses=income.total_expenses,
            net_income=income.net_income,
        )

    async def get_system_stats(self) -> SystemStats:
        """원장 현황 (계정/거래/분개 수, 최근 거래일, 다음 거래번호)"""
        async with self.db.snapshot() as conn:
            cursor = await conn.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM account WHERE is_active = 1),
                    (SELECT COUNT(*) FROM ledger_transaction),
                    (SELECT COUNT(*) FROM journal_entry),
                    (SELECT MAX(transaction_date) FROM ledger_transaction)
                """
            )
            row = await cursor.fetchone()
            next_number = await TransactionNumberSequencer(self.db).next_number(conn)

        return SystemStats(
            active_accounts=row[0],
            total_transactions=row[1],
            journal_entries=row[2],
            latest_transaction_date=from_db_date(row[3]) if row[3] else None,
            next_transaction_number=next_number,
        )
