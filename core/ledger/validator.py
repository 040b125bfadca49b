"""
거래 검증기

복식부기 불변식을 DB 쓰기 전에 검증하는 순수 함수.
오류를 하나씩 던지지 않고 모두 수집하여 한 번에 보고.

검증 항목:
- 거래일자 필수, 형식 (dd/mm/yyyy)
- 적요 필수, 200자 이하
- 참조번호 50자 이하
- 분개 2줄 이상
- 각 줄: 양수 금액 (소수 2자리 이하, 최대 금액 이하), Debit/Credit, 계정 ID
- |차변 합계 - 대변 합계| < 0.01
- 서로 다른 계정 2개 이상
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from core.constants import LedgerLimits
from core.errors import ImbalanceError, ValidationError
from core.ledger.models import CENT, from_cents, to_cents
from core.ledger.types import EntryType
from core.utils.dates import try_parse_date

_MAX_AMOUNT = from_cents(LedgerLimits.MAX_AMOUNT_CENTS)


@dataclass
class EntryDraft:
    """분개 항목 입력 (검증 전)

    값은 외부 입력 그대로 받으며 타입 변환은 검증기가 담당.
    """

    account_id: Any
    amount: Any
    entry_type: Any


@dataclass
class TransactionDraft:
    """거래 입력 (검증 전)"""

    date: Any
    description: Any
    entries: list[EntryDraft] = field(default_factory=list)
    reference: Any = ""


@dataclass(frozen=True)
class ValidatedEntry:
    """검증된 분개 항목"""

    account_id: int
    amount: Decimal
    entry_type: EntryType

    @property
    def amount_cents(self) -> int:
        return to_cents(self.amount)


@dataclass(frozen=True)
class ValidatedTransaction:
    """검증 결과 (정규화된 값)"""

    normalized_date: date
    description: str
    reference: str
    entries: tuple[ValidatedEntry, ...]
    total_debits: Decimal
    total_credits: Decimal


@dataclass(frozen=True)
class ValidatedMetadata:
    """거래 기본 정보 검증 결과 (기본 수정용)"""

    normalized_date: date
    description: str
    reference: str


def _check_metadata(
    raw_date: Any,
    description: Any,
    reference: Any,
    errors: list[str],
) -> tuple[date | None, str, str]:
    """일자/적요/참조번호 검증 (오류는 errors에 추가)"""
    parsed = try_parse_date(raw_date)
    normalized_date: date | None = None
    if isinstance(parsed, str):
        errors.append(parsed)
    else:
        normalized_date = parsed

    text = description.strip() if isinstance(description, str) else ""
    if not text:
        errors.append("Transaction description is required")
    elif len(text) > LedgerLimits.DESCRIPTION_MAX_LENGTH:
        errors.append(
            f"Description must be at most {LedgerLimits.DESCRIPTION_MAX_LENGTH} characters"
        )

    if reference is None:
        ref = ""
    elif isinstance(reference, str):
        ref = reference.strip()
    else:
        ref = str(reference)
    if len(ref) > LedgerLimits.REFERENCE_MAX_LENGTH:
        errors.append(
            f"Reference must be at most {LedgerLimits.REFERENCE_MAX_LENGTH} characters"
        )

    return normalized_date, text, ref


def _parse_amount(raw: Any) -> Decimal | None:
    """금액 파싱 (bool, NaN, 무한대 거부)"""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def _has_cent_precision(amount: Decimal) -> bool:
    """소수 2자리 이하 여부 (quantize 불가한 값은 False)"""
    try:
        return amount == amount.quantize(CENT)
    except InvalidOperation:
        return False


def _parse_account_id(raw: Any) -> int | None:
    """계정 ID 파싱 (양의 정수만 허용)"""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    if isinstance(raw, str) and raw.strip().isdigit():
        value = int(raw.strip())
        return value if value > 0 else None
    return None


def _check_entry(index: int, entry: EntryDraft, errors: list[str]) -> ValidatedEntry | None:
    """분개 한 줄 검증 (문제가 있으면 None, 오류는 errors에 추가)"""
    label = f"Entry {index + 1}"
    before = len(errors)

    account_id = _parse_account_id(entry.account_id)
    if entry.account_id is None or entry.account_id == "":
        errors.append(f"{label}: Account ID is required")
    elif account_id is None:
        errors.append(f"{label}: Account ID '{entry.account_id}' is not a valid account reference")

    amount = _parse_amount(entry.amount)
    if entry.amount is None or entry.amount == "":
        errors.append(f"{label}: Amount is required")
    elif amount is None or amount <= 0:
        errors.append(f"{label}: Amount must be a positive number")
    elif amount > _MAX_AMOUNT:
        errors.append(f"{label}: Amount is too large (maximum {_MAX_AMOUNT})")
    elif not _has_cent_precision(amount):
        errors.append(
            f"{label}: Amount must have at most {LedgerLimits.AMOUNT_PLACES} decimal places"
        )

    try:
        entry_type = EntryType(entry.entry_type)
    except ValueError:
        entry_type = None
        errors.append(f"{label}: Entry type must be Debit or Credit")

    if len(errors) > before or account_id is None or amount is None or entry_type is None:
        return None
    return ValidatedEntry(account_id=account_id, amount=amount, entry_type=entry_type)


def validate(draft: TransactionDraft) -> ValidatedTransaction:
    """거래 입력 검증

    Args:
        draft: 거래 입력

    Returns:
        정규화된 일자, 차변/대변 합계, 검증된 분개 항목

    Raises:
        ImbalanceError: 항목은 정상이나 차변 ≠ 대변
        ValidationError: 그 외 모든 입력 오류 (모든 메시지 포함)
    """
    errors: list[str] = []
    normalized_date, description, reference = _check_metadata(
        draft.date, draft.description, draft.reference, errors
    )

    raw_entries = list(draft.entries or [])
    if len(raw_entries) < LedgerLimits.MIN_ENTRIES:
        errors.append(
            "Transaction must have at least two journal entries (double-entry)"
        )

    entries: list[ValidatedEntry] = []
    for index, raw in enumerate(raw_entries):
        checked = _check_entry(index, raw, errors)
        if checked is not None:
            entries.append(checked)

    if errors or normalized_date is None:
        raise ValidationError(errors)

    total_debits = sum(
        (e.amount for e in entries if e.entry_type is EntryType.DEBIT), Decimal("0")
    ).quantize(CENT)
    total_credits = sum(
        (e.amount for e in entries if e.entry_type is EntryType.CREDIT), Decimal("0")
    ).quantize(CENT)

    account_errors: list[str] = []
    if len({e.account_id for e in entries}) < LedgerLimits.MIN_DISTINCT_ACCOUNTS:
        account_errors.append(
            "Transaction must involve at least two different accounts"
        )

    if abs(total_debits - total_credits) >= LedgerLimits.BALANCE_TOLERANCE:
        raise ImbalanceError(total_debits, total_credits, account_errors)
    if account_errors:
        raise ValidationError(account_errors)

    return ValidatedTransaction(
        normalized_date=normalized_date,
        description=description,
        reference=reference,
        entries=tuple(entries),
        total_debits=total_debits,
        total_credits=total_credits,
    )


def validate_metadata(raw_date: Any, description: Any, reference: Any = "") -> ValidatedMetadata:
    """거래 기본 정보만 검증 (분개/잔액 미변경 수정용)

    Raises:
        ValidationError: 일자/적요/참조번호 오류
    """
    errors: list[str] = []
    normalized_date, text, ref = _check_metadata(raw_date, description, reference, errors)
    if errors or normalized_date is None:
        raise ValidationError(errors)
    return ValidatedMetadata(normalized_date=normalized_date, description=text, reference=ref)
