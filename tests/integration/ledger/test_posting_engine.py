"""PostingEngine 통합 테스트

거래 생성/수정/삭제가 잔액 캐시와 회계 등식을 유지하는지 확인.
"""

import asyncio
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import LedgerLimits
from core.errors import (
    ConflictError,
    ImbalanceError,
    NotFoundError,
    PostingError,
    ValidationError,
)
from core.ledger import (
    AccountRegistry,
    EntryDraft,
    LedgerStore,
    PostingEngine,
    ReportAggregator,
    TransactionDraft,
    TransactionNumberSequencer,
)
from tests.helpers import account_balance, make_draft


class StaleSequencer(TransactionNumberSequencer):
    """처음 N번은 이미 사용된 번호(1)를 돌려주는 할당기 (동시 할당 충돌 재현)"""

    def __init__(self, db: SQLiteAdapter, stale_attempts: int):
        super().__init__(db)
        self.stale_attempts = stale_attempts
        self.calls = 0

    async def next_number(self, conn) -> int:
        self.calls += 1
        if self.stale_attempts > 0:
            self.stale_attempts -= 1
            return 1
        return await super().next_number(conn)


async def _count(db: SQLiteAdapter, table: str) -> int:
    row = await db.fetchone(f"SELECT COUNT(*) FROM {table}")
    return row[0]


class TestCreatePosting:
    """거래 생성"""

    @pytest.mark.asyncio
    async def test_owner_investment(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        reports: ReportAggregator,
        accounts: dict[str, int],
    ) -> None:
        """현금 1000 / 자본금 1000 → 잔액 반영 + 회계 등식 성립"""
        result = await engine.create_posting(
            make_draft(accounts["1001"], accounts["3001"], "1000", description="Owner investment")
        )

        assert result.transaction_number == 1
        assert result.total_debits == Decimal("1000")
        assert result.total_credits == Decimal("1000")
        assert await account_balance(db, "1001") == Decimal("1000.00")
        assert await account_balance(db, "3001") == Decimal("1000.00")

        check = await reports.check_accounting_equation()
        assert check.holds
        assert check.difference == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_credit_to_debit_normal_account_decreases(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """차변 정상 계정에 대변 → 잔액 감소"""
        await engine.create_posting(make_draft(accounts["1001"], accounts["3001"], "1000"))
        await engine.create_posting(make_draft(accounts["5003"], accounts["1001"], "250.50"))

        assert await account_balance(db, "1001") == Decimal("749.50")
        assert await account_balance(db, "5003") == Decimal("250.50")

    @pytest.mark.asyncio
    async def test_imbalance_writes_nothing(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """1000 vs 900 → ImbalanceError, DB 변화 없음"""
        with pytest.raises(ImbalanceError) as exc_info:
            await engine.create_posting(
                make_draft(accounts["1001"], accounts["3001"], "1000", credit_amount="900")
            )

        assert exc_info.value.difference == Decimal("100")
        assert await _count(db, "ledger_transaction") == 0
        assert await _count(db, "journal_entry") == 0
        assert await account_balance(db, "1001") == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_unknown_account_rolls_back(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """두 번째 줄의 계정이 없으면 첫 줄 잔액 반영도 롤백"""
        with pytest.raises(NotFoundError) as exc_info:
            await engine.create_posting(make_draft(accounts["1001"], 9999, "100"))

        assert exc_info.value.identifier == 9999
        assert await _count(db, "ledger_transaction") == 0
        assert await account_balance(db, "1001") == Decimal("0.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["1e30", "99999999999999999999"])
    async def test_oversized_amount_rejected(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
        amount: str,
    ) -> None:
        """저장 범위를 넘는 금액은 DB 접근 전에 ValidationError"""
        with pytest.raises(ValidationError) as exc_info:
            await engine.create_posting(make_draft(accounts["1001"], accounts["3001"], amount))

        assert any("Amount is too large" in e for e in exc_info.value.errors)
        assert await _count(db, "ledger_transaction") == 0

    @pytest.mark.asyncio
    async def test_balance_overflow_rolls_back(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """잔액 캐시가 INTEGER 범위를 넘으면 ConflictError, 부분 쓰기 없음"""
        near_limit = LedgerLimits.MAX_BALANCE_CENTS - 50
        await db.execute(
            "UPDATE account SET balance_cents = ? WHERE id = ?", (near_limit, accounts["3001"])
        )

        # 차변 1001 반영 후 대변 3001에서 초과
        with pytest.raises(ConflictError, match="overflow the balance of account 3001"):
            await engine.create_posting(make_draft(accounts["1001"], accounts["3001"], "1"))

        row = await db.fetchone("SELECT balance_cents FROM account WHERE id = ?", (accounts["3001"],))
        assert row[0] == near_limit
        assert await account_balance(db, "1001") == Decimal("0.00")
        assert await _count(db, "ledger_transaction") == 0

    @pytest.mark.asyncio
    async def test_inactive_account_rejected(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        registry: AccountRegistry,
        accounts: dict[str, int],
    ) -> None:
        """비활성 계정은 전기 불가"""
        await registry.deactivate_account(accounts["1004"])

        with pytest.raises(NotFoundError):
            await engine.create_posting(make_draft(accounts["1004"], accounts["3001"], "10"))

        assert await _count(db, "journal_entry") == 0

    @pytest.mark.asyncio
    async def test_sequential_numbers(
        self,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        first = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        second = await engine.create_posting(make_draft(accounts["1002"], accounts["3001"]))

        assert (first.transaction_number, second.transaction_number) == (1, 2)

    @pytest.mark.asyncio
    async def test_concurrent_posts_get_distinct_numbers(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        reports: ReportAggregator,
        accounts: dict[str, int],
    ) -> None:
        """동시 전기 → 번호 중복 없음, 잔액 합계 정확"""
        results = await asyncio.gather(
            *(
                engine.create_posting(make_draft(accounts["1001"], accounts["4001"], "10.10"))
                for _ in range(8)
            )
        )

        assert sorted(r.transaction_number for r in results) == list(range(1, 9))
        assert await account_balance(db, "1001") == Decimal("80.80")
        assert (await reports.check_accounting_equation()).holds

    @pytest.mark.asyncio
    async def test_retries_number_collision(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """거래번호 UNIQUE 충돌 시 재시도"""
        await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        sequencer = StaleSequencer(db, stale_attempts=2)
        retrying = PostingEngine(db, sequencer)

        result = await retrying.create_posting(make_draft(accounts["1001"], accounts["3001"]))

        assert result.transaction_number == 2
        assert sequencer.calls == 3
        assert await account_balance(db, "1001") == Decimal("2000.00")

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """재시도 한도 초과 → PostingError, 부분 쓰기 없음"""
        await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))
        retrying = PostingEngine(db, StaleSequencer(db, stale_attempts=10))

        with pytest.raises(PostingError):
            await retrying.create_posting(make_draft(accounts["1001"], accounts["3001"]))

        assert await _count(db, "ledger_transaction") == 1
        assert await account_balance(db, "1001") == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_compound_entry(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        store: LedgerStore,
        accounts: dict[str, int],
    ) -> None:
        """복합 분개 (3줄)"""
        draft = TransactionDraft(
            date="01/03/2024",
            description="Equipment purchase",
            reference="PO-7",
            entries=[
                EntryDraft(account_id=accounts["1101"], amount="1500", entry_type="Debit"),
                EntryDraft(account_id=accounts["1001"], amount="500", entry_type="Credit"),
                EntryDraft(account_id=accounts["2001"], amount="1000", entry_type="Credit"),
            ],
        )
        result = await engine.create_posting(draft)
        transaction = await store.get_transaction(result.transaction_id)

        assert len(transaction.entries) == 3
        assert transaction.is_balanced
        assert transaction.reference == "PO-7"
        assert await account_balance(db, "1001") == Decimal("-500.00")
        assert await account_balance(db, "2001") == Decimal("1000.00")


class TestEditPosting:
    """거래 수정"""

    @pytest.mark.asyncio
    async def test_identical_edit_is_net_zero(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """같은 내용으로 수정 → 잔액 변화 없음, 번호 유지"""
        draft = make_draft(accounts["1001"], accounts["3001"], "1000")
        created = await engine.create_posting(draft)

        edited = await engine.edit_posting(created.transaction_id, draft)

        assert edited.transaction_number == created.transaction_number
        assert edited.entries_reversed == 2
        assert await account_balance(db, "1001") == Decimal("1000.00")
        assert await account_balance(db, "3001") == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_edit_moves_balances(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        store: LedgerStore,
        accounts: dict[str, int],
    ) -> None:
        """계정/금액 변경 → 이전 영향 취소 + 새 영향 반영"""
        created = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"], "1000"))

        await engine.edit_posting(
            created.transaction_id,
            make_draft(accounts["1002"], accounts["3001"], "750", description="Corrected"),
        )

        assert await account_balance(db, "1001") == Decimal("0.00")
        assert await account_balance(db, "1002") == Decimal("750.00")
        assert await account_balance(db, "3001") == Decimal("750.00")
        transaction = await store.get_transaction(created.transaction_id)
        assert transaction.description == "Corrected"
        assert len(transaction.entries) == 2

    @pytest.mark.asyncio
    async def test_failed_edit_keeps_original(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """새 분개 전기 실패 → 역분개까지 모두 롤백"""
        created = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"], "1000"))

        with pytest.raises(NotFoundError):
            await engine.edit_posting(created.transaction_id, make_draft(accounts["1001"], 9999, "5"))

        assert await account_balance(db, "1001") == Decimal("1000.00")
        assert await _count(db, "journal_entry") == 2

    @pytest.mark.asyncio
    async def test_edit_missing_transaction(
        self,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        with pytest.raises(NotFoundError):
            await engine.edit_posting(42, make_draft(accounts["1001"], accounts["3001"]))

    @pytest.mark.asyncio
    async def test_edit_invalid_draft(
        self,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        created = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"]))

        with pytest.raises(ValidationError):
            await engine.edit_posting(
                created.transaction_id,
                make_draft(accounts["1001"], accounts["3001"], description=""),
            )

    @pytest.mark.asyncio
    async def test_update_metadata_keeps_balances(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """기본 정보 수정은 분개/잔액 불변"""
        created = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"], "1000"))

        transaction = await engine.update_metadata(
            created.transaction_id, "20/02/2024", "Renamed", "REF-1"
        )

        assert transaction.description == "Renamed"
        assert transaction.reference == "REF-1"
        assert transaction.transaction_date.isoformat() == "2024-02-20"
        assert len(transaction.entries) == 2
        assert await account_balance(db, "1001") == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_update_metadata_missing(self, engine: PostingEngine) -> None:
        with pytest.raises(NotFoundError):
            await engine.update_metadata(42, "20/02/2024", "Renamed")


class TestDeletePosting:
    """거래 삭제"""

    @pytest.mark.asyncio
    async def test_delete_reverses_balances(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """삭제 → 잔액 원복, 분개 CASCADE 삭제"""
        created = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"], "1000"))

        deleted = await engine.delete_posting(created.transaction_id)

        assert deleted.entries_reversed == 2
        assert deleted.transaction_number == 1
        assert await account_balance(db, "1001") == Decimal("0.00")
        assert await account_balance(db, "3001") == Decimal("0.00")
        assert await _count(db, "ledger_transaction") == 0
        assert await _count(db, "journal_entry") == 0

    @pytest.mark.asyncio
    async def test_delete_then_recreate(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        reports: ReportAggregator,
        accounts: dict[str, int],
    ) -> None:
        """삭제 후 같은 거래를 다시 만들어도 잔액은 한 번만 반영"""
        draft = make_draft(accounts["1001"], accounts["3001"], "1000")
        first = await engine.create_posting(draft)
        second = await engine.create_posting(make_draft(accounts["5002"], accounts["1001"], "200"))
        await engine.delete_posting(first.transaction_id)

        recreated = await engine.create_posting(draft)

        assert recreated.transaction_number == second.transaction_number + 1
        assert await account_balance(db, "1001") == Decimal("800.00")
        assert (await reports.check_accounting_equation()).holds

    @pytest.mark.asyncio
    async def test_delete_missing(self, engine: PostingEngine) -> None:
        with pytest.raises(NotFoundError):
            await engine.delete_posting(42)

    @pytest.mark.asyncio
    async def test_delete_with_deactivated_account(
        self,
        db: SQLiteAdapter,
        engine: PostingEngine,
        accounts: dict[str, int],
    ) -> None:
        """역분개는 비활성 계정에도 적용"""
        created = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"], "10"))
        await db.execute("UPDATE account SET is_active = 0 WHERE id = ?", (accounts["1001"],))

        await engine.delete_posting(created.transaction_id)

        assert await account_balance(db, "1001") == Decimal("0.00")


class TestCacheConsistency:
    """잔액 캐시 = 분개 합계"""

    @pytest.mark.asyncio
    async def test_no_mismatch_after_mixed_operations(
        self,
        engine: PostingEngine,
        store: LedgerStore,
        reports: ReportAggregator,
        accounts: dict[str, int],
    ) -> None:
        a = await engine.create_posting(make_draft(accounts["1001"], accounts["3001"], "5000"))
        b = await engine.create_posting(make_draft(accounts["5003"], accounts["1001"], "1200"))
        c = await engine.create_posting(make_draft(accounts["1003"], accounts["4002"], "800.40"))
        await engine.edit_posting(b.transaction_id, make_draft(accounts["5003"], accounts["1002"], "1100"))
        await engine.delete_posting(c.transaction_id)
        await engine.create_posting(make_draft(accounts["3003"], accounts["1001"], "300"))
        await engine.update_metadata(a.transaction_id, "01/01/2024", "Opening capital")

        assert await store.verify_balances() == []
        assert (await reports.check_accounting_equation()).holds
