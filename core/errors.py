"""
원장 예외 정의

ValidationError  - 입력 오류 (DB 접근 전 거부)
ImbalanceError   - 차변/대변 불일치 (ValidationError 하위)
NotFoundError    - 계정/거래 없음
ConflictError    - 무결성 규칙상 수정/삭제 불가
PostingError     - 전기 단위 내부 무결성 오류
StoreError       - DB 장애 (원본 예외는 __cause__로 보존)
"""

from decimal import Decimal


class LedgerError(Exception):
    """원장 예외 최상위 클래스"""

    pass


class ValidationError(LedgerError):
    """입력 검증 실패

    검증 항목을 모두 수집하여 한 번에 보고.

    Args:
        errors: 오류 메시지 목록
    """

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class ImbalanceError(ValidationError):
    """차변 합계 ≠ 대변 합계"""

    def __init__(
        self,
        total_debits: Decimal,
        total_credits: Decimal,
        extra_errors: list[str] | None = None,
    ):
        self.total_debits = total_debits
        self.total_credits = total_credits
        message = (
            f"Debits ({total_debits:.2f}) do not equal "
            f"Credits ({total_credits:.2f})"
        )
        super().__init__([message, *(extra_errors or [])])

    @property
    def difference(self) -> Decimal:
        return abs(self.total_debits - self.total_credits)


class NotFoundError(LedgerError):
    """참조한 계정 또는 거래가 없음"""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class ConflictError(LedgerError):
    """무결성 규칙 위반 (분개가 있는 계정 수정 등)"""

    pass


class PostingError(LedgerError):
    """전기 처리 중 무결성 오류"""

    pass


class StoreError(LedgerError):
    """DB 장애

    sqlite3 예외를 감싸되 재해석하지 않음.
    호출자에게는 일반 메시지, 운영자에게는 __cause__ 전체 정보.
    """

    pass


class UniqueViolation(StoreError):
    """UNIQUE 제약 위반 (거래번호 동시 할당 충돌 등)"""

    pass
