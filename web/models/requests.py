"""
요청 스키마 (Pydantic)

Web API 요청 데이터 수신.

필드 타입은 느슨하게 받고 (문자열/숫자 모두 허용) 실제 검증은
core.ledger.validator가 담당하여 모든 오류를 한 번에 400으로 보고.
"""

from pydantic import BaseModel, Field

from core.ledger.validator import EntryDraft, TransactionDraft


class EntryRequest(BaseModel):
    """분개 항목 요청"""

    account_id: int | str | None = Field(default=None, description="계정 ID")
    amount: int | float | str | None = Field(default=None, description="금액 (양수, 소수 2자리 이하)")
    entry_type: str | None = Field(default=None, description="Debit 또는 Credit")

    def to_draft(self) -> EntryDraft:
        return EntryDraft(
            account_id=self.account_id,
            amount=self.amount,
            entry_type=self.entry_type,
        )


class TransactionRequest(BaseModel):
    """거래 생성 요청"""

    date: str | None = Field(default=None, description="거래일자 (dd/mm/yyyy)")
    description: str | None = Field(default=None, description="적요 (200자 이하)")
    reference: str | None = Field(default="", description="참조번호 (50자 이하)")
    entries: list[EntryRequest] = Field(default_factory=list, description="분개 항목 (2줄 이상)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "date": "15/02/2024",
                    "description": "Owner investment",
                    "reference": "INV-001",
                    "entries": [
                        {"account_id": 1, "amount": "1000.00", "entry_type": "Debit"},
                        {"account_id": 10, "amount": "1000.00", "entry_type": "Credit"},
                    ],
                },
            ]
        }
    }

    def to_draft(self) -> TransactionDraft:
        return TransactionDraft(
            date=self.date,
            description=self.description,
            reference=self.reference,
            entries=[entry.to_draft() for entry in self.entries],
        )


class TransactionUpdateRequest(BaseModel):
    """거래 수정 요청

    entries가 있으면 전체 수정 (역분개 후 재전기),
    없으면 기본 정보만 수정 (분개/잔액 변경 없음).
    """

    date: str | None = Field(default=None, description="거래일자 (dd/mm/yyyy)")
    description: str | None = Field(default=None, description="적요")
    reference: str | None = Field(default="", description="참조번호")
    entries: list[EntryRequest] | None = Field(default=None, description="새 분개 항목 (전체 수정 시)")

    @property
    def is_full_edit(self) -> bool:
        return self.entries is not None

    def to_draft(self) -> TransactionDraft:
        return TransactionDraft(
            date=self.date,
            description=self.description,
            reference=self.reference,
            entries=[entry.to_draft() for entry in self.entries or []],
        )


class AccountRequest(BaseModel):
    """계정 생성/수정 요청"""

    name: str | None = Field(default=None, description="계정명 (100자 이하)")
    account_type: str | None = Field(default=None, description="Asset/Liability/Capital/Revenue/Expense")
    normal_balance: str | None = Field(default=None, description="Debit 또는 Credit")
    subtype: str | None = Field(default=None, description="Current/Non-Current (자산/부채)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Petty Cash",
                    "account_type": "Asset",
                    "normal_balance": "Debit",
                    "subtype": "Current",
                },
            ]
        }
    }
