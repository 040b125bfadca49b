"""
core/ledger/balance.py, core/ledger/models.py 금액 헬퍼 테스트
"""

from decimal import Decimal

import pytest

from core.ledger.balance import balance_effect, signed_amount_sql
from core.ledger.models import BalanceMismatch, from_cents, to_cents
from core.ledger.types import EntryType


class TestBalanceEffect:
    """부호 규칙: 분개 방향 == 정상 잔액 → +, 아니면 -"""

    @pytest.mark.parametrize(
        "normal, entry, expected",
        [
            (EntryType.DEBIT, EntryType.DEBIT, 500),
            (EntryType.DEBIT, EntryType.CREDIT, -500),
            (EntryType.CREDIT, EntryType.CREDIT, 500),
            (EntryType.CREDIT, EntryType.DEBIT, -500),
        ],
    )
    def test_sign(self, normal: EntryType, entry: EntryType, expected: int) -> None:
        assert balance_effect(normal, entry, 500) == expected

    def test_accepts_strings_and_decimals(self) -> None:
        assert balance_effect("Credit", "Debit", Decimal("12.34")) == Decimal("-12.34")

    def test_opposite_cancels(self) -> None:
        """역분개는 원래 영향을 정확히 상쇄"""
        effect = balance_effect(EntryType.DEBIT, EntryType.CREDIT, 700)
        reversal = balance_effect(EntryType.DEBIT, EntryType.CREDIT.opposite, 700)

        assert effect + reversal == 0

    def test_sql_expression(self) -> None:
        sql = signed_amount_sql("a.normal_balance", "je.entry_type", "je.amount_cents")

        assert sql == (
            "CASE WHEN je.entry_type = a.normal_balance "
            "THEN je.amount_cents ELSE -je.amount_cents END"
        )


class TestCents:
    """센트 변환"""

    def test_to_cents(self) -> None:
        assert to_cents(Decimal("1000")) == 100000
        assert to_cents(Decimal("0.01")) == 1

    def test_to_cents_rounds_half_up(self) -> None:
        assert to_cents(Decimal("0.005")) == 1

    def test_from_cents(self) -> None:
        assert from_cents(100050) == Decimal("1000.50")
        assert str(from_cents(0)) == "0.00"
        assert from_cents(-250) == Decimal("-2.50")

    def test_mismatch_difference(self) -> None:
        mismatch = BalanceMismatch(
            account_id=1, code="1001", cached=Decimal("10.00"), computed=Decimal("7.50")
        )

        assert mismatch.difference == Decimal("2.50")
