"""
보고서 라우트

대차대조표, 손익계산서, 계정 원장, 회계 등식 검증, 재무 비율 API
"""

from fastapi import APIRouter, Depends, Query

from core.errors import ValidationError
from core.ledger import LedgerStore, ReportAggregator
from web.dependencies import get_ledger_store, get_report_aggregator
from web.models.responses import (
    ERROR_RESPONSES,
    AccountLedgerResponse,
    BalanceMismatchResponse,
    BalanceSheetResponse,
    EquationResponse,
    FinancialRatiosResponse,
    IncomeStatementResponse,
    SystemStatsResponse,
)

router = APIRouter(prefix="/api/reports", tags=["Reports"], responses=ERROR_RESPONSES)


def _wants_period(start_date: str | None, end_date: str | None) -> bool:
    """기간 보고서 여부 (한쪽만 지정하면 400)"""
    if start_date is None and end_date is None:
        return False
    if start_date is None or end_date is None:
        raise ValidationError("Both start_date and end_date are required for a period report")
    return True


@router.get("/balance-sheet", response_model=BalanceSheetResponse)
async def get_balance_sheet(
    start_date: str | None = Query(default=None, description="시작일 (dd/mm/yyyy)"),
    end_date: str | None = Query(default=None, description="종료일 (dd/mm/yyyy)"),
    reports: ReportAggregator = Depends(get_report_aggregator),
) -> BalanceSheetResponse:
    """대차대조표 (기간 미지정 시 캐시 잔액 기준)"""
    if _wants_period(start_date, end_date):
        sheet = await reports.get_balance_sheet_for_period(start_date, end_date)
    else:
        sheet = await reports.get_balance_sheet()
    return BalanceSheetResponse.from_report(sheet)


@router.get("/income-statement", response_model=IncomeStatementResponse)
async def get_income_statement(
    start_date: str | None = Query(default=None, description="시작일 (dd/mm/yyyy)"),
    end_date: str | None = Query(default=None, description="종료일 (dd/mm/yyyy)"),
    reports: ReportAggregator = Depends(get_report_aggregator),
) -> IncomeStatementResponse:
    """손익계산서 (기간 미지정 시 캐시 잔액 기준)"""
    if _wants_period(start_date, end_date):
        statement = await reports.get_income_statement_for_period(start_date, end_date)
    else:
        statement = await reports.get_income_statement()
    return IncomeStatementResponse.from_report(statement)


@router.get("/ledger/{account_id}", response_model=AccountLedgerResponse)
async def get_account_ledger(
    account_id: int,
    start_date: str = Query(..., description="시작일 (dd/mm/yyyy)"),
    end_date: str = Query(..., description="종료일 (dd/mm/yyyy)"),
    reports: ReportAggregator = Depends(get_report_aggregator),
) -> AccountLedgerResponse:
    """계정 원장 (기초 잔액, 라인별 누적 잔액, 기말 잔액)"""
    ledger = await reports.get_account_ledger(account_id, start_date, end_date)
    return AccountLedgerResponse.from_report(ledger)


@router.get("/equation", response_model=EquationResponse)
async def check_accounting_equation(
    reports: ReportAggregator = Depends(get_report_aggregator),
) -> EquationResponse:
    """회계 등식 검증: 자산 = 부채 + 자본 + 당기순이익"""
    return EquationResponse.from_check(await reports.check_accounting_equation())


@router.get("/ratios", response_model=FinancialRatiosResponse)
async def get_financial_ratios(
    reports: ReportAggregator = Depends(get_report_aggregator),
) -> FinancialRatiosResponse:
    """재무 비율"""
    return FinancialRatiosResponse.from_ratios(await reports.get_financial_ratios())


@router.get("/stats", response_model=SystemStatsResponse)
async def get_system_stats(
    reports: ReportAggregator = Depends(get_report_aggregator),
) -> SystemStatsResponse:
    """원장 현황"""
    return SystemStatsResponse.from_stats(await reports.get_system_stats())


@router.get("/balance-check", response_model=list[BalanceMismatchResponse])
async def verify_balances(
    store: LedgerStore = Depends(get_ledger_store),
) -> list[BalanceMismatchResponse]:
    """잔액 캐시 검증 (불일치 계정 목록, 정상이면 빈 목록)"""
    return [BalanceMismatchResponse.from_mismatch(m) for m in await store.verify_balances()]
