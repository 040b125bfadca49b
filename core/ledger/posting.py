"""
전기 엔진 (Posting Engine)

거래 생성/수정/삭제를 하나의 원자적 작업 단위로 처리.

작업 단위 (생성):
1. 거래번호 할당 (최고 기록 + 1, 삭제된 번호는 재사용하지 않음)
2. ledger_transaction INSERT
3. 각 분개: 계정 확인 + 잔액 캐시 증감 + journal_entry INSERT

어느 단계든 실패하면 전체 롤백. 부분 상태는 외부에 노출되지 않음.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Iterable

import aiosqlite

from core.constants import LedgerLimits
from core.errors import NotFoundError, PostingError, UniqueViolation
from core.ledger.balance import apply_entry, reverse_entry
from core.ledger.models import DeletionResult, PostingResult, Transaction, from_cents
from core.ledger.sequencer import TransactionNumberSequencer
from core.ledger.store import fetch_transaction
from core.ledger.types import EntryType
from core.ledger.validator import (
    TransactionDraft,
    ValidatedEntry,
    ValidatedTransaction,
    validate,
    validate_metadata,
)
from core.utils.dates import to_db_date
from core.utils.timezone import utc_timestamp

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class PostingEngine:
    """전기 엔진

    모든 쓰기는 SQLiteAdapter.transaction() 안에서 실행되며
    잔액 캐시는 balance 모듈의 원자적 증감으로만 변경.

    Args:
        db: SQLite 어댑터
        sequencer: 거래번호 할당기 (None이면 생성)

    사용 예시:
    ```python
    engine = PostingEngine(db)
    result = await engine.create_posting(TransactionDraft(
        date="15/02/2024",
        description="Owner investment",
        entries=[
            EntryDraft(account_id=1, amount="1000", entry_type="Debit"),
            EntryDraft(account_id=10, amount="1000", entry_type="Credit"),
        ],
    ))
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        sequencer: TransactionNumberSequencer | None = None,
    ):
        self.db = db
        self.sequencer = sequencer or TransactionNumberSequencer(db)

    # =========================================================================
    # 생성
    # =========================================================================

    async def create_posting(self, draft: TransactionDraft) -> PostingResult:
        """거래 생성 및 전기

        Args:
            draft: 거래 입력

        Returns:
            거래 ID, 거래번호, 차변/대변 합계

        Raises:
            ValidationError: 입력 오류 (DB 접근 없음)
            ImbalanceError: 차변 ≠ 대변 (DB 접근 없음)
            NotFoundError: 계정이 없거나 비활성
            PostingError: 거래번호 할당 재시도 초과
            StoreError: DB 장애
        """
        validated = validate(draft)

        attempts = LedgerLimits.NUMBER_ALLOCATION_ATTEMPTS
        for attempt in range(1, attempts + 1):
            try:
                result = await self._insert_transaction(validated)
            except UniqueViolation:
                logger.warning(
                    f"거래번호 충돌, 재시도 ({attempt}/{attempts})",
                )
                continue

            logger.info(
                f"거래 전기 완료: #{result.transaction_number}",
                extra={
                    "transaction_id": result.transaction_id,
                    "transaction_number": result.transaction_number,
                    "total_debits": str(result.total_debits),
                    "entries": len(validated.entries),
                },
            )
            return result

        raise PostingError(
            f"Could not allocate a unique transaction number after {attempts} attempts"
        )

    async def _insert_transaction(self, validated: ValidatedTransaction) -> PostingResult:
        """거래 INSERT 작업 단위 (번호 할당 포함)"""
        now = utc_timestamp()

        async with self.db.transaction() as conn:
            number = await self.sequencer.next_number(conn)
            cursor = await conn.execute(
                """
                INSERT INTO ledger_transaction (
                    transaction_number, transaction_date, description,
                    reference, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    number,
                    to_db_date(validated.normalized_date),
                    validated.description,
                    validated.reference,
                    now,
                    now,
                ),
            )
            transaction_id = cursor.lastrowid
            await self._post_entries(conn, transaction_id, validated.entries, now)

        return PostingResult(
            transaction_id=transaction_id,
            transaction_number=number,
            total_debits=validated.total_debits,
            total_credits=validated.total_credits,
        )

    @staticmethod
    async def _post_entries(
        conn: aiosqlite.Connection,
        transaction_id: int,
        entries: Iterable[ValidatedEntry],
        timestamp: str,
    ) -> None:
        """분개 INSERT + 잔액 반영

        apply_entry가 먼저 계정을 확인하므로 없는/비활성 계정은
        외래키 오류가 아닌 NotFoundError로 보고됨.
        """
        for entry in entries:
            await apply_entry(
                conn,
                entry.account_id,
                entry.amount_cents,
                entry.entry_type,
                timestamp,
            )
            await conn.execute(
                """
                INSERT INTO journal_entry (
                    transaction_id, account_id, amount_cents, entry_type, created_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    transaction_id,
                    entry.account_id,
                    entry.amount_cents,
                    entry.entry_type.value,
                    timestamp,
                ),
            )

    # =========================================================================
    # 수정 / 삭제
    # =========================================================================

    async def edit_posting(
        self,
        transaction_id: int,
        draft: TransactionDraft,
    ) -> PostingResult:
        """거래 전체 수정 (분개 교체)

        기존 분개를 모두 역분개 → 삭제 → 기본 정보 수정 → 새 분개 전기.
        거래번호는 유지.

        Raises:
            ValidationError: 입력 오류
            NotFoundError: 거래 또는 계정이 없는 경우
            PostingError: 분개가 없는 거래 (무결성 오류)
        """
        validated = validate(draft)
        now = utc_timestamp()

        async with self.db.transaction() as conn:
            number, old_entries = await self._load_for_change(conn, transaction_id)
            await self._reverse_entries(conn, old_entries, now)

            await conn.execute(
                "DELETE FROM journal_entry WHERE transaction_id = ?",
                (transaction_id,),
            )
            await conn.execute(
                """
                UPDATE ledger_transaction
                SET transaction_date = ?, description = ?, reference = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    to_db_date(validated.normalized_date),
                    validated.description,
                    validated.reference,
                    now,
                    transaction_id,
                ),
            )
            await self._post_entries(conn, transaction_id, validated.entries, now)

        logger.info(
            f"거래 수정 완료: #{number}",
            extra={
                "transaction_id": transaction_id,
                "entries_reversed": len(old_entries),
                "entries": len(validated.entries),
            },
        )
        return PostingResult(
            transaction_id=transaction_id,
            transaction_number=number,
            total_debits=validated.total_debits,
            total_credits=validated.total_credits,
            entries_reversed=len(old_entries),
        )

    async def delete_posting(self, transaction_id: int) -> DeletionResult:
        """거래 삭제

        모든 분개의 잔액 영향을 취소한 뒤 거래 삭제 (분개는 CASCADE).

        Raises:
            NotFoundError: 거래가 없는 경우
            PostingError: 분개가 없는 거래 (무결성 오류)
        """
        now = utc_timestamp()

        async with self.db.transaction() as conn:
            number, old_entries = await self._load_for_change(conn, transaction_id)
            await self._reverse_entries(conn, old_entries, now)
            await conn.execute(
                "DELETE FROM ledger_transaction WHERE id = ?",
                (transaction_id,),
            )

        logger.info(
            f"거래 삭제 완료: #{number}",
            extra={"transaction_id": transaction_id, "entries_reversed": len(old_entries)},
        )
        return DeletionResult(
            transaction_id=transaction_id,
            transaction_number=number,
            entries_reversed=len(old_entries),
        )

    async def update_metadata(
        self,
        transaction_id: int,
        transaction_date: date | str,
        description: str,
        reference: str | None = "",
    ) -> Transaction:
        """거래 기본 정보 수정 (분개/잔액 변경 없음)

        Raises:
            ValidationError: 입력 오류
            NotFoundError: 거래가 없는 경우
        """
        metadata = validate_metadata(transaction_date, description, reference)
        now = utc_timestamp()

        async with self.db.transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE ledger_transaction
                SET transaction_date = ?, description = ?, reference = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    to_db_date(metadata.normalized_date),
                    metadata.description,
                    metadata.reference,
                    now,
                    transaction_id,
                ),
            )
            transaction = await fetch_transaction(conn, transaction_id) if cursor.rowcount else None
            if transaction is None:
                raise NotFoundError("Transaction", transaction_id)

        logger.info(
            f"거래 기본 정보 수정: #{transaction.transaction_number}",
            extra={"transaction_id": transaction_id},
        )
        return transaction

    @staticmethod
    async def _load_for_change(
        conn: aiosqlite.Connection,
        transaction_id: int,
    ) -> tuple[int, list[tuple[Any, ...]]]:
        """수정/삭제 대상 거래번호와 기존 분개 조회

        Returns:
            (거래번호, [(account_id, amount_cents, entry_type), ...])
        """
        cursor = await conn.execute(
            "SELECT transaction_number FROM ledger_transaction WHERE id = ?",
            (transaction_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            raise NotFoundError("Transaction", transaction_id)

        cursor = await conn.execute(
            """
            SELECT account_id, amount_cents, entry_type
            FROM journal_entry
            WHERE transaction_id = ?
            ORDER BY id
            """,
            (transaction_id,),
        )
        entries = list(await cursor.fetchall())
        if not entries:
            raise PostingError(
                f"Transaction {transaction_id} has no journal entries"
            )
        return row[0], entries

    @staticmethod
    async def _reverse_entries(
        conn: aiosqlite.Connection,
        entries: list[tuple[Any, ...]],
        timestamp: str,
    ) -> None:
        """기존 분개의 잔액 영향 취소"""
        for account_id, amount_cents, entry_type in entries:
            await reverse_entry(conn, account_id, amount_cents, EntryType(entry_type), timestamp)
            logger.debug(
                "역분개",
                extra={"account_id": account_id, "amount": str(from_cents(amount_cents))},
            )
