"""TransactionNumberSequencer 통합 테스트"""

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import NotFoundError
from core.ledger import PostingEngine, TransactionNumberSequencer, init_ledger_schema
from tests.helpers import make_draft


async def _numbers(db: SQLiteAdapter) -> dict[int, int]:
    rows = await db.fetchall("SELECT id, transaction_number FROM ledger_transaction")
    return {tx_id: number for tx_id, number in rows}


class TestPeekNext:

    @pytest.mark.asyncio
    async def test_empty_ledger(self, db: SQLiteAdapter) -> None:
        assert await TransactionNumberSequencer(db).peek_next() == 1

    @pytest.mark.asyncio
    async def test_does_not_reserve(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """조회만 하고 번호를 예약하지 않음"""
        sequencer = TransactionNumberSequencer(db)
        await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))

        assert await sequencer.peek_next() == 2
        assert await sequencer.peek_next() == 2


class TestResequence:
    """거래번호 재부여"""

    @pytest.mark.asyncio
    async def test_closes_gaps(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """삭제로 생긴 빈 번호 제거"""
        results = [
            await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
            for _ in range(3)
        ]
        await engine.delete_posting(results[1].transaction_id)

        count = await TransactionNumberSequencer(db).resequence()

        assert count == 2
        assert await _numbers(db) == {
            results[0].transaction_id: 1,
            results[2].transaction_id: 2,
        }

    @pytest.mark.asyncio
    async def test_orders_by_creation_time(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """생성 시각 순서로 번호 부여"""
        first = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        second = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        await db.execute(
            "UPDATE ledger_transaction SET created_at = ? WHERE id = ?",
            ("2099-01-01T00:00:00.000000+00:00", first.transaction_id),
        )

        await TransactionNumberSequencer(db).resequence()

        assert await _numbers(db) == {second.transaction_id: 1, first.transaction_id: 2}

    @pytest.mark.asyncio
    async def test_empty_ledger(self, db: SQLiteAdapter) -> None:
        assert await TransactionNumberSequencer(db).resequence() == 0

    @pytest.mark.asyncio
    async def test_next_number_after_resequence(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        first = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        await engine.delete_posting(first.transaction_id)
        await TransactionNumberSequencer(db).resequence()

        result = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))

        assert result.transaction_number == 2


class TestHighWaterMark:
    """삭제된 번호는 재사용하지 않음"""

    @pytest.mark.asyncio
    async def test_delete_newest_then_recreate(
        self,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """가장 최근 거래를 삭제해도 다음 번호는 증가"""
        draft = make_draft(accounts["1001"], accounts["3001"])
        first = await engine.create_posting(draft)
        await engine.delete_posting(first.transaction_id)

        recreated = await engine.create_posting(draft)

        assert first.transaction_number == 1
        assert recreated.transaction_number == 2

    @pytest.mark.asyncio
    async def test_peek_after_deleting_newest(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        sequencer = TransactionNumberSequencer(db)
        await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        second = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        await engine.delete_posting(second.transaction_id)

        assert await sequencer.peek_next() == 3

    @pytest.mark.asyncio
    async def test_rolled_back_allocation_not_consumed(
        self,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """전기 실패(없는 계정) 시 번호 증가도 롤백"""
        with pytest.raises(NotFoundError):
            await engine.create_posting(make_draft(accounts["1001"], 9999))

        result = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))

        assert result.transaction_number == 1

    @pytest.mark.asyncio
    async def test_existing_ledger_starts_from_max(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """최고 기록 행이 없는 기존 DB는 스키마 초기화 시 최대 번호로 채움"""
        await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        await db.execute("DELETE FROM ledger_sequence")

        await init_ledger_schema(db)

        row = await db.fetchone("SELECT last_value FROM ledger_sequence WHERE name = 'transaction'")
        assert row[0] == 2
        assert await TransactionNumberSequencer(db).peek_next() == 3
