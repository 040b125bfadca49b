"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액은 문자열(Decimal, 소수 2자리), 날짜는 ISO + dd/mm/yyyy 표시 형식.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from core.ledger.accounts import ChartOfAccounts
from core.ledger.models import (
    Account,
    BalanceMismatch,
    DeletionResult,
    JournalEntry,
    PostingResult,
    Transaction,
)
from core.ledger.reports import (
    AccountLedger,
    BalanceSheet,
    EquationCheck,
    FinancialRatios,
    IncomeStatement,
    LedgerLine,
    ReportLine,
    SystemStats,
)
from core.utils.dates import format_display_date


def _money(value) -> str:
    return f"{value:.2f}"


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="API 버전")
    database: str = Field(..., description="DB 연결 상태 (connected/disconnected)")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class ErrorResponse(BaseModel):
    """오류 응답"""

    detail: str = Field(..., description="오류 메시지")
    errors: list[str] = Field(default_factory=list, description="전체 오류 목록")
    total_debits: str | None = Field(default=None, description="차변 합계 (불균형 시)")
    total_credits: str | None = Field(default=None, description="대변 합계 (불균형 시)")


# 라우터 공통 오류 응답 (OpenAPI 문서용)
ERROR_RESPONSES: dict = {
    400: {"model": ErrorResponse, "description": "입력 검증 실패"},
    404: {"model": ErrorResponse, "description": "계정 또는 거래 없음"},
    409: {"model": ErrorResponse, "description": "무결성 규칙 위반"},
    500: {"model": ErrorResponse, "description": "원장 내부 오류"},
}


# =========================================================================
# 계정
# =========================================================================


class AccountResponse(BaseModel):
    """계정 응답"""

    id: int
    code: str
    name: str
    account_type: str
    subtype: str | None = None
    normal_balance: str
    balance: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            code=account.code,
            name=account.name,
            account_type=account.account_type.value,
            subtype=account.subtype,
            normal_balance=account.normal_balance.value,
            balance=_money(account.balance),
            is_active=account.is_active,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class AccountUsageResponse(BaseModel):
    """계정 사용 현황 응답"""

    account_id: int
    entry_count: int


class ChartOfAccountsResponse(BaseModel):
    """계정과목표 응답"""

    current_assets: list[AccountResponse]
    non_current_assets: list[AccountResponse]
    current_liabilities: list[AccountResponse]
    non_current_liabilities: list[AccountResponse]
    capital: list[AccountResponse]
    revenue: list[AccountResponse]
    expenses: list[AccountResponse]

    @classmethod
    def from_chart(cls, chart: ChartOfAccounts) -> "ChartOfAccountsResponse":
        def convert(accounts: list[Account]) -> list[AccountResponse]:
            return [AccountResponse.from_account(a) for a in accounts]

        return cls(
            current_assets=convert(chart.current_assets),
            non_current_assets=convert(chart.non_current_assets),
            current_liabilities=convert(chart.current_liabilities),
            non_current_liabilities=convert(chart.non_current_liabilities),
            capital=convert(chart.capital),
            revenue=convert(chart.revenue),
            expenses=convert(chart.expenses),
        )


# =========================================================================
# 거래
# =========================================================================


class JournalEntryResponse(BaseModel):
    """분개 항목 응답"""

    id: int
    account_id: int
    account_code: str | None = None
    account_name: str | None = None
    amount: str
    entry_type: str

    @classmethod
    def from_entry(cls, entry: JournalEntry) -> "JournalEntryResponse":
        return cls(
            id=entry.id,
            account_id=entry.account_id,
            account_code=entry.account_code,
            account_name=entry.account_name,
            amount=_money(entry.amount),
            entry_type=entry.entry_type.value,
        )


class TransactionResponse(BaseModel):
    """거래 응답 (분개 포함)"""

    id: int
    transaction_number: int
    transaction_date: date
    transaction_date_formatted: str = Field(..., description="dd/mm/yyyy")
    description: str
    reference: str
    total_debits: str
    total_credits: str
    entries: list[JournalEntryResponse]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            transaction_number=transaction.transaction_number,
            transaction_date=transaction.transaction_date,
            transaction_date_formatted=format_display_date(transaction.transaction_date),
            description=transaction.description,
            reference=transaction.reference,
            total_debits=_money(transaction.total_debits),
            total_credits=_money(transaction.total_credits),
            entries=[JournalEntryResponse.from_entry(e) for e in transaction.entries],
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
        )


class PostingResponse(BaseModel):
    """거래 생성 응답"""

    transaction_id: int
    transaction_number: int
    total_debits: str
    total_credits: str

    @classmethod
    def from_result(cls, result: PostingResult) -> "PostingResponse":
        return cls(
            transaction_id=result.transaction_id,
            transaction_number=result.transaction_number,
            total_debits=_money(result.total_debits),
            total_credits=_money(result.total_credits),
        )


class DeletionResponse(BaseModel):
    """거래 삭제 응답"""

    transaction_id: int
    transaction_number: int
    entries_reversed: int

    @classmethod
    def from_result(cls, result: DeletionResult) -> "DeletionResponse":
        return cls(
            transaction_id=result.transaction_id,
            transaction_number=result.transaction_number,
            entries_reversed=result.entries_reversed,
        )


class NextNumberResponse(BaseModel):
    """다음 거래번호 응답"""

    next_number: int


# =========================================================================
# 보고서
# =========================================================================


class ReportLineResponse(BaseModel):
    """보고서 계정 한 줄"""

    account_id: int
    code: str
    name: str
    subtype: str | None = None
    normal_balance: str
    balance: str

    @classmethod
    def from_line(cls, line: ReportLine) -> "ReportLineResponse":
        return cls(
            account_id=line.account_id,
            code=line.code,
            name=line.name,
            subtype=line.subtype,
            normal_balance=line.normal_balance.value,
            balance=_money(line.balance),
        )


class BalanceSheetResponse(BaseModel):
    """대차대조표 응답"""

    assets: list[ReportLineResponse]
    liabilities: list[ReportLineResponse]
    capital: list[ReportLineResponse]
    total_assets: str
    total_liabilities: str
    total_capital: str
    total_liabilities_and_capital: str
    start_date: date | None = None
    end_date: date | None = None

    @classmethod
    def from_report(cls, sheet: BalanceSheet) -> "BalanceSheetResponse":
        return cls(
            assets=[ReportLineResponse.from_line(line) for line in sheet.assets],
            liabilities=[ReportLineResponse.from_line(line) for line in sheet.liabilities],
            capital=[ReportLineResponse.from_line(line) for line in sheet.capital],
            total_assets=_money(sheet.total_assets),
            total_liabilities=_money(sheet.total_liabilities),
            total_capital=_money(sheet.total_capital),
            total_liabilities_and_capital=_money(sheet.total_liabilities_and_capital),
            start_date=sheet.start_date,
            end_date=sheet.end_date,
        )


class IncomeStatementResponse(BaseModel):
    """손익계산서 응답"""

    revenue: list[ReportLineResponse]
    expenses: list[ReportLineResponse]
    total_revenue: str
    total_expenses: str
    net_income: str
    profit_margin: str = Field(..., description="순이익률 (%)")
    expense_ratio: str = Field(..., description="비용률 (%)")
    start_date: date | None = None
    end_date: date | None = None

    @classmethod
    def from_report(cls, statement: IncomeStatement) -> "IncomeStatementResponse":
        ratios = statement.ratios
        return cls(
            revenue=[ReportLineResponse.from_line(line) for line in statement.revenue],
            expenses=[ReportLineResponse.from_line(line) for line in statement.expenses],
            total_revenue=_money(statement.total_revenue),
            total_expenses=_money(statement.total_expenses),
            net_income=_money(statement.net_income),
            profit_margin=_money(ratios.profit_margin),
            expense_ratio=_money(ratios.expense_ratio),
            start_date=statement.start_date,
            end_date=statement.end_date,
        )


class LedgerLineResponse(BaseModel):
    """계정 원장 한 줄"""

    transaction_id: int
    transaction_number: int
    transaction_date: date
    date_formatted: str
    description: str
    reference: str
    entry_type: str
    amount: str
    balance_effect: str
    running_balance: str
    other_accounts: list[str]

    @classmethod
    def from_line(cls, line: LedgerLine) -> "LedgerLineResponse":
        return cls(
            transaction_id=line.transaction_id,
            transaction_number=line.transaction_number,
            transaction_date=line.transaction_date,
            date_formatted=format_display_date(line.transaction_date),
            description=line.description,
            reference=line.reference,
            entry_type=line.entry_type.value,
            amount=_money(line.amount),
            balance_effect=_money(line.balance_effect),
            running_balance=_money(line.running_balance),
            other_accounts=list(line.other_accounts),
        )


class LedgerSummaryResponse(BaseModel):
    """계정 원장 요약"""

    total_debits: str
    total_credits: str
    transaction_count: int


class AccountLedgerResponse(BaseModel):
    """계정 원장 응답"""

    account: AccountResponse
    start_date: date
    end_date: date
    opening_balance: str
    closing_balance: str
    lines: list[LedgerLineResponse]
    summary: LedgerSummaryResponse

    @classmethod
    def from_report(cls, ledger: AccountLedger) -> "AccountLedgerResponse":
        return cls(
            account=AccountResponse.from_account(ledger.account),
            start_date=ledger.start_date,
            end_date=ledger.end_date,
            opening_balance=_money(ledger.opening_balance),
            closing_balance=_money(ledger.closing_balance),
            lines=[LedgerLineResponse.from_line(line) for line in ledger.lines],
            summary=LedgerSummaryResponse(
                total_debits=_money(ledger.total_debits),
                total_credits=_money(ledger.total_credits),
                transaction_count=ledger.line_count,
            ),
        )


class EquationResponse(BaseModel):
    """회계 등식 검증 응답"""

    equation_holds: bool
    total_assets: str
    total_liabilities: str
    total_capital: str
    net_income: str
    difference: str

    @classmethod
    def from_check(cls, check: EquationCheck) -> "EquationResponse":
        return cls(
            equation_holds=check.holds,
            total_assets=_money(check.total_assets),
            total_liabilities=_money(check.total_liabilities),
            total_capital=_money(check.total_capital),
            net_income=_money(check.net_income),
            difference=_money(check.difference),
        )


class FinancialRatiosResponse(BaseModel):
    """재무 비율 응답"""

    debt_ratio: str
    equity_ratio: str
    profit_margin: str
    current_ratio: str
    return_on_assets: str

    @classmethod
    def from_ratios(cls, ratios: FinancialRatios) -> "FinancialRatiosResponse":
        return cls(
            debt_ratio=_money(ratios.debt_ratio),
            equity_ratio=_money(ratios.equity_ratio),
            profit_margin=_money(ratios.profit_margin),
            current_ratio=_money(ratios.current_ratio),
            return_on_assets=_money(ratios.return_on_assets),
        )


class SystemStatsResponse(BaseModel):
    """원장 현황 응답"""

    active_accounts: int
    total_transactions: int
    journal_entries: int
    latest_transaction_date: date | None = None
    next_transaction_number: int

    @classmethod
    def from_stats(cls, stats: SystemStats) -> "SystemStatsResponse":
        return cls(
            active_accounts=stats.active_accounts,
            total_transactions=stats.total_transactions,
            journal_entries=stats.journal_entries,
            latest_transaction_date=stats.latest_transaction_date,
            next_transaction_number=stats.next_transaction_number,
        )


class BalanceMismatchResponse(BaseModel):
    """잔액 캐시 불일치 응답"""

    account_id: int
    code: str
    cached: str
    computed: str

    @classmethod
    def from_mismatch(cls, mismatch: BalanceMismatch) -> "BalanceMismatchResponse":
        return cls(
            account_id=mismatch.account_id,
            code=mismatch.code,
            cached=_money(mismatch.cached),
            computed=_money(mismatch.computed),
        )
