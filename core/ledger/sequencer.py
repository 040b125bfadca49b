"""
거래번호 할당기

ledger_sequence 테이블에 지금까지 할당한 최고 번호를 기록.
거래를 삭제해도 최고 기록은 줄지 않으므로 번호는 재사용되지 않음.
할당은 거래 INSERT와 같은 트랜잭션 안에서 이루어지며,
동시 할당 충돌은 UNIQUE 제약이 최종 방어선이고 PostingEngine이 재시도.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiosqlite

from core.utils.timezone import utc_timestamp

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

SEQUENCE_NAME = "transaction"

_MAX_NUMBER = "SELECT COALESCE(MAX(transaction_number), 0) FROM ledger_transaction"

# 최고 기록과 실제 최대값 중 큰 쪽 + 1 (행이 없으면 생성)
_ADVANCE_SQL = f"""
    INSERT INTO ledger_sequence (name, last_value)
    VALUES (?, ({_MAX_NUMBER}) + 1)
    ON CONFLICT(name) DO UPDATE
    SET last_value = MAX(last_value, excluded.last_value - 1) + 1
"""

_PEEK_SQL = f"""
    SELECT MAX(
        COALESCE((SELECT last_value FROM ledger_sequence WHERE name = ?), 0),
        ({_MAX_NUMBER})
    ) + 1
"""

_RESET_SQL = """
    INSERT INTO ledger_sequence (name, last_value) VALUES (?, ?)
    ON CONFLICT(name) DO UPDATE SET last_value = excluded.last_value
"""


class TransactionNumberSequencer:
    """거래번호 할당기

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def next_number(self, conn: aiosqlite.Connection) -> int:
        """다음 거래번호 할당

        반드시 거래 INSERT와 같은 트랜잭션 연결(conn)에서 호출.
        트랜잭션이 롤백되면 최고 기록 증가도 함께 취소됨.

        Returns:
            지금까지 할당된 최고 번호 + 1 (빈 원장이면 1)
        """
        await conn.execute(_ADVANCE_SQL, (SEQUENCE_NAME,))
        cursor = await conn.execute(
            "SELECT last_value FROM ledger_sequence WHERE name = ?", (SEQUENCE_NAME,)
        )
        row = await cursor.fetchone()
        return int(row[0])

    async def peek_next(self) -> int:
        """다음 거래가 받을 번호 조회 (참고용, 예약하지 않음)"""
        row = await self.db.fetchone(_PEEK_SQL, (SEQUENCE_NAME,))
        return int(row[0]) if row else 1

    async def resequence(self) -> int:
        """전체 거래번호 재부여 (관리용)

        (created_at, id) 오름차순으로 1부터 다시 번호를 매기고
        최고 기록을 거래 수로 재설정.
        중간 UNIQUE 충돌을 피하기 위해 먼저 모든 번호를 -id로 이동.

        Returns:
            재부여된 거래 수
        """
        now = utc_timestamp()

        async with self.db.transaction() as conn:
            await conn.execute("UPDATE ledger_transaction SET transaction_number = -id")
            cursor = await conn.execute(
                """
                UPDATE ledger_transaction
                SET transaction_number = (
                        SELECT COUNT(*)
                        FROM ledger_transaction AS earlier
                        WHERE earlier.created_at < ledger_transaction.created_at
                           OR (earlier.created_at = ledger_transaction.created_at
                               AND earlier.id <= ledger_transaction.id)
                    ),
                    updated_at = ?
                """,
                (now,),
            )
            count = cursor.rowcount
            await conn.execute(_RESET_SQL, (SEQUENCE_NAME, count))

        logger.info("거래번호 재부여 완료", extra={"count": count})
        return count
