"""
Ledger 저장소

거래/분개 조회와 잔액 캐시 검증·복구.
쓰기(전기)는 PostingEngine, 계정 관리는 AccountRegistry 담당.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import TYPE_CHECKING, Any, Iterable

import aiosqlite

from core.constants import LedgerLimits
from core.errors import NotFoundError, ValidationError
from core.ledger.balance import signed_amount_sql
from core.ledger.models import (
    TRANSACTION_COLUMNS,
    BalanceMismatch,
    JournalEntry,
    Transaction,
    from_cents,
)
from core.ledger.types import EntryType
from core.utils.dates import parse_date, parse_period, to_db_date
from core.utils.timezone import parse_timestamp, utc_timestamp

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


_ENTRY_SELECT = """
    SELECT je.id, je.transaction_id, je.account_id, je.amount_cents,
           je.entry_type, je.created_at, a.code, a.name
    FROM journal_entry je
    JOIN account a ON a.id = je.account_id
"""

# 캐시와 무관하게 분개에서 다시 계산한 계정 잔액 (센트)
_COMPUTED_BALANCE_SQL = f"""
    COALESCE((
        SELECT SUM({signed_amount_sql("account.normal_balance", "je.entry_type", "je.amount_cents")})
        FROM journal_entry je
        WHERE je.account_id = account.id
    ), 0)
"""


def _entry_from_row(row: tuple[Any, ...]) -> JournalEntry:
    return JournalEntry(
        id=row[0],
        transaction_id=row[1],
        account_id=row[2],
        amount=from_cents(row[3]),
        entry_type=EntryType(row[4]),
        created_at=parse_timestamp(row[5]),
        account_code=row[6],
        account_name=row[7],
    )


async def fetch_entries(
    conn: aiosqlite.Connection,
    transaction_ids: Iterable[int],
) -> dict[int, tuple[JournalEntry, ...]]:
    """거래 ID별 분개 항목 조회 (id 오름차순)"""
    ids = list(transaction_ids)
    if not ids:
        return {}

    placeholders = ", ".join("?" for _ in ids)
    cursor = await conn.execute(
        f"{_ENTRY_SELECT} WHERE je.transaction_id IN ({placeholders}) ORDER BY je.id",
        ids,
    )
    grouped: dict[int, list[JournalEntry]] = defaultdict(list)
    for row in await cursor.fetchall():
        entry = _entry_from_row(row)
        grouped[entry.transaction_id].append(entry)
    return {tx_id: tuple(entries) for tx_id, entries in grouped.items()}


async def fetch_transactions(
    conn: aiosqlite.Connection,
    where: str = "",
    parameters: tuple[Any, ...] = (),
    order_by: str = "transaction_date DESC, transaction_number DESC",
    limit: int | None = None,
    offset: int = 0,
) -> list[Transaction]:
    """거래 헤더 + 분개 항목 조회

    Args:
        conn: 연결 (스냅샷 또는 쓰기 트랜잭션)
        where: WHERE 절 (파라미터는 ?)
        parameters: WHERE 절 파라미터
        order_by: 정렬
        limit: 최대 개수 (None이면 전체)
        offset: 건너뛸 개수
    """
    sql = f"SELECT {TRANSACTION_COLUMNS} FROM ledger_transaction"
    params: list[Any] = list(parameters)
    if where:
        sql += f" WHERE {where}"
    sql += f" ORDER BY {order_by}"
    if limit is not None:
        sql += " LIMIT ? OFFSET ?"
        params.extend([limit, offset])

    cursor = await conn.execute(sql, params)
    rows = list(await cursor.fetchall())
    entries = await fetch_entries(conn, (row[0] for row in rows))
    return [Transaction.from_row(row, entries.get(row[0], ())) for row in rows]


async def fetch_transaction(
    conn: aiosqlite.Connection,
    transaction_id: int,
) -> Transaction | None:
    """단일 거래 조회 (없으면 None)"""
    transactions = await fetch_transactions(conn, "id = ?", (transaction_id,))
    return transactions[0] if transactions else None


def _like_pattern(term: str) -> str:
    """LIKE 검색 패턴 (와일드카드 문자 이스케이프)"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class LedgerStore:
    """Ledger 저장소

    거래 조회와 잔액 캐시 검증/복구를 담당.
    여러 쿼리로 구성된 조회는 스냅샷 안에서 실행.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # =========================================================================
    # 거래 조회
    # =========================================================================

    async def get_transaction(self, transaction_id: int) -> Transaction:
        """거래 조회 (분개 항목 포함)

        Raises:
            NotFoundError: 거래가 없는 경우
        """
        async with self.db.snapshot() as conn:
            transaction = await fetch_transaction(conn, transaction_id)

        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    async def list_transactions(
        self,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """전체 거래 목록 (최신 거래일자 우선)"""
        async with self.db.snapshot() as conn:
            return await fetch_transactions(conn, limit=limit, offset=offset)

    async def list_transactions_by_date_range(
        self,
        start: date | str,
        end: date | str,
    ) -> list[Transaction]:
        """기간 내 거래 목록 (거래일자 오름차순)

        Raises:
            ValidationError: 날짜 형식 오류 또는 start > end
        """
        start_date, end_date = parse_period(start, end)
        async with self.db.snapshot() as conn:
            return await fetch_transactions(
                conn,
                "transaction_date BETWEEN ? AND ?",
                (to_db_date(start_date), to_db_date(end_date)),
                order_by="transaction_date, transaction_number",
            )

    async def list_transactions_by_date(self, day: date | str) -> list[Transaction]:
        """특정 일자의 거래 목록"""
        target = parse_date(day)
        async with self.db.snapshot() as conn:
            return await fetch_transactions(
                conn,
                "transaction_date = ?",
                (to_db_date(target),),
                order_by="transaction_number",
            )

    async def search_transactions(
        self,
        term: str,
        limit: int = LedgerLimits.SEARCH_LIMIT,
    ) -> list[Transaction]:
        """거래 검색

        적요, 참조번호, 관련 계정명, 거래번호를 부분 일치로 검색.

        Raises:
            ValidationError: 검색어가 비어 있는 경우
        """
        text = (term or "").strip()
        if not text:
            raise ValidationError("Search term is required")

        pattern = _like_pattern(text)
        where = """
            description LIKE ? ESCAPE '\\'
            OR reference LIKE ? ESCAPE '\\'
            OR CAST(transaction_number AS TEXT) LIKE ? ESCAPE '\\'
            OR EXISTS (
                SELECT 1
                FROM journal_entry je
                JOIN account a ON a.id = je.account_id
                WHERE je.transaction_id = ledger_transaction.id
                  AND a.name LIKE ? ESCAPE '\\'
            )
        """
        async with self.db.snapshot() as conn:
            return await fetch_transactions(
                conn,
                where,
                (pattern, pattern, pattern, pattern),
                limit=limit,
            )

    # =========================================================================
    # 잔액 캐시 검증/복구
    # =========================================================================

    async def verify_balances(self) -> list[BalanceMismatch]:
        """캐시 잔액과 분개 합계가 다른 계정 목록

        정상이면 빈 리스트.
        """
        rows = await self.db.fetchall(
            f"""
            SELECT id, code, balance_cents, computed
            FROM (
                SELECT id, code, balance_cents, {_COMPUTED_BALANCE_SQL} AS computed
                FROM account
            )
            WHERE balance_cents != computed
            ORDER BY code
            """
        )
        mismatches = [
            BalanceMismatch(
                account_id=row[0],
                code=row[1],
                cached=from_cents(row[2]),
                computed=from_cents(row[3]),
            )
            for row in rows
        ]
        if mismatches:
            logger.warning(
                f"잔액 캐시 불일치: {len(mismatches)}개 계정",
                extra={"codes": [m.code for m in mismatches]},
            )
        return mismatches

    async def rebuild_balances(self) -> int:
        """모든 계정 잔액 캐시를 분개에서 다시 계산 (관리용 복구)

        Returns:
            수정된 계정 수
        """
        now = utc_timestamp()
        async with self.db.transaction() as conn:
            cursor = await conn.execute(
                f"""
                UPDATE account
                SET balance_cents = {_COMPUTED_BALANCE_SQL},
                    updated_at = ?
                WHERE balance_cents != {_COMPUTED_BALANCE_SQL}
                """,
                (now,),
            )
            corrected = cursor.rowcount

        logger.info("잔액 캐시 재계산 완료", extra={"corrected": corrected})
        return corrected
