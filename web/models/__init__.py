"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountRequest,
    EntryRequest,
    TransactionRequest,
    TransactionUpdateRequest,
)
from web.models.responses import (
    AccountLedgerResponse,
    AccountResponse,
    AccountUsageResponse,
    BalanceMismatchResponse,
    BalanceSheetResponse,
    ChartOfAccountsResponse,
    DeletionResponse,
    EquationResponse,
    ErrorResponse,
    FinancialRatiosResponse,
    HealthResponse,
    IncomeStatementResponse,
    NextNumberResponse,
    PostingResponse,
    SystemStatsResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "AccountRequest",
    "EntryRequest",
    "TransactionRequest",
    "TransactionUpdateRequest",
    # Responses
    "AccountLedgerResponse",
    "AccountResponse",
    "AccountUsageResponse",
    "BalanceMismatchResponse",
    "BalanceSheetResponse",
    "ChartOfAccountsResponse",
    "DeletionResponse",
    "EquationResponse",
    "ErrorResponse",
    "FinancialRatiosResponse",
    "HealthResponse",
    "IncomeStatementResponse",
    "NextNumberResponse",
    "PostingResponse",
    "SystemStatsResponse",
    "TransactionResponse",
]
