"""
테스트 헬퍼

거래 입력 생성 등 여러 테스트 모듈이 공유하는 함수.
"""

from decimal import Decimal

from core.ledger import EntryDraft, TransactionDraft


def make_draft(
    debit_id: int,
    credit_id: int,
    amount: str | Decimal = "1000",
    date: str = "15/02/2024",
    description: str = "Test transaction",
    reference: str = "",
    credit_amount: str | Decimal | None = None,
) -> TransactionDraft:
    """2줄짜리 거래 입력 생성 (차변 1줄 + 대변 1줄)"""
    return TransactionDraft(
        date=date,
        description=description,
        reference=reference,
        entries=[
            EntryDraft(account_id=debit_id, amount=str(amount), entry_type="Debit"),
            EntryDraft(
                account_id=credit_id,
                amount=str(credit_amount if credit_amount is not None else amount),
                entry_type="Credit",
            ),
        ],
    )


async def account_balance(db, code: str) -> Decimal:
    """계정 코드로 캐시 잔액 조회"""
    row = await db.fetchone("SELECT balance_cents FROM account WHERE code = ?", (code,))
    return (Decimal(row[0]) / 100).quantize(Decimal("0.01"))
