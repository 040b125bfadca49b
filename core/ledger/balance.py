"""
계정 잔액 갱신 헬퍼

전기(생성/수정/삭제)와 보고서가 공유하는 부호 규칙:
    분개 방향 == 정상 잔액 → +금액
    분개 방향 != 정상 잔액 → -금액

잔액 캐시는 반드시 DB에서 원자적 증감(balance_cents = balance_cents + ?)으로 갱신.
애플리케이션 메모리에서 읽고-계산하고-쓰지 않음.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TypeVar

import aiosqlite

from core.constants import LedgerLimits
from core.errors import ConflictError, NotFoundError
from core.ledger.types import EntryType

logger = logging.getLogger(__name__)

N = TypeVar("N", int, Decimal)


def balance_effect(normal_balance: EntryType | str, entry_type: EntryType | str, amount: N) -> N:
    """분개 한 줄이 계정 잔액에 미치는 영향

    Args:
        normal_balance: 계정의 정상 잔액 방향
        entry_type: 분개 방향
        amount: 금액 (양수, 센트 정수 또는 Decimal)

    Returns:
        +amount 또는 -amount

    Example:
        >>> balance_effect(EntryType.DEBIT, EntryType.CREDIT, 500)
        -500
    """
    return amount if EntryType(normal_balance) is EntryType(entry_type) else -amount


def signed_amount_sql(normal_balance_col: str, entry_type_col: str, amount_col: str) -> str:
    """balance_effect와 동일한 규칙의 SQL 식

    보고서의 기간 잔액/기초 잔액 집계에서 사용.
    """
    return (
        f"CASE WHEN {entry_type_col} = {normal_balance_col} "
        f"THEN {amount_col} ELSE -{amount_col} END"
    )


async def apply_entry(
    conn: aiosqlite.Connection,
    account_id: int,
    amount_cents: int,
    entry_type: EntryType,
    timestamp: str,
    require_active: bool = True,
) -> int:
    """분개 한 줄을 계정 잔액 캐시에 반영

    열린 트랜잭션(SQLiteAdapter.transaction) 안에서만 호출.

    Args:
        conn: 트랜잭션 연결
        account_id: 계정 ID
        amount_cents: 금액 (센트, 양수)
        entry_type: 분개 방향 (역분개는 반대 방향을 전달)
        timestamp: updated_at 값
        require_active: 비활성 계정 거부 여부 (역분개 시 False)

    Returns:
        적용된 잔액 변화량 (센트)

    Raises:
        NotFoundError: 계정이 없거나 비활성인 경우
        ConflictError: 잔액 캐시가 저장 가능한 범위를 넘는 경우
    """
    sql = "SELECT code, normal_balance, balance_cents FROM account WHERE id = ?"
    if require_active:
        sql += " AND is_active = 1"

    cursor = await conn.execute(sql, (account_id,))
    row = await cursor.fetchone()
    if row is None:
        raise NotFoundError("Account", account_id)

    code, normal_balance, balance_cents = row
    delta = balance_effect(normal_balance, entry_type, amount_cents)
    if abs(balance_cents + delta) > LedgerLimits.MAX_BALANCE_CENTS:
        raise ConflictError(f"Posting would overflow the balance of account {code}")

    await conn.execute(
        """
        UPDATE account
        SET balance_cents = balance_cents + ?, updated_at = ?
        WHERE id = ?
        """,
        (delta, timestamp, account_id),
    )
    return delta


async def reverse_entry(
    conn: aiosqlite.Connection,
    account_id: int,
    amount_cents: int,
    entry_type: EntryType,
    timestamp: str,
) -> int:
    """기존 분개의 잔액 영향 취소 (같은 계정/금액, 반대 방향)"""
    return await apply_entry(
        conn,
        account_id,
        amount_cents,
        EntryType(entry_type).opposite,
        timestamp,
        require_active=False,
    )
