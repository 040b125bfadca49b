"""
계정 라우트

계정 생성/조회/수정/비활성화 및 계정과목표 API
"""

from fastapi import APIRouter, Depends, Query, status

from core.ledger import AccountRegistry
from web.dependencies import get_account_registry
from web.models.requests import AccountRequest
from web.models.responses import (
    ERROR_RESPONSES,
    AccountResponse,
    AccountUsageResponse,
    ChartOfAccountsResponse,
)

router = APIRouter(prefix="/api", tags=["Accounts"], responses=ERROR_RESPONSES)


@router.get("/accounts", response_model=list[AccountResponse])
async def list_accounts(
    account_type: str | None = Query(default=None, description="계정 유형 필터"),
    registry: AccountRegistry = Depends(get_account_registry),
) -> list[AccountResponse]:
    """활성 계정 목록 (코드 순)"""
    accounts = await registry.list_accounts(account_type)
    return [AccountResponse.from_account(a) for a in accounts]


@router.post(
    "/accounts",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_account(
    request: AccountRequest,
    registry: AccountRegistry = Depends(get_account_registry),
) -> AccountResponse:
    """계정 생성 (코드 자동 할당)"""
    account = await registry.create_account(
        name=request.name,
        account_type=request.account_type,
        normal_balance=request.normal_balance,
        subtype=request.subtype,
    )
    return AccountResponse.from_account(account)


@router.get("/accounts/chart", response_model=ChartOfAccountsResponse)
async def get_chart_of_accounts(
    registry: AccountRegistry = Depends(get_account_registry),
) -> ChartOfAccountsResponse:
    """계정과목표 (자산/부채는 유동/비유동 구분)"""
    return ChartOfAccountsResponse.from_chart(await registry.get_chart_of_accounts())


@router.get("/accounts/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: int,
    registry: AccountRegistry = Depends(get_account_registry),
) -> AccountResponse:
    """계정 조회"""
    return AccountResponse.from_account(await registry.get_account(account_id))


@router.get("/accounts/{account_id}/usage", response_model=AccountUsageResponse)
async def get_account_usage(
    account_id: int,
    registry: AccountRegistry = Depends(get_account_registry),
) -> AccountUsageResponse:
    """계정을 참조하는 분개 수"""
    await registry.get_account(account_id)
    return AccountUsageResponse(
        account_id=account_id,
        entry_count=await registry.get_account_usage(account_id),
    )


@router.put("/accounts/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: int,
    request: AccountRequest,
    registry: AccountRegistry = Depends(get_account_registry),
) -> AccountResponse:
    """계정 수정 (분개가 있으면 409)"""
    account = await registry.update_account(
        account_id,
        name=request.name,
        account_type=request.account_type,
        normal_balance=request.normal_balance,
        subtype=request.subtype,
    )
    return AccountResponse.from_account(account)


@router.delete("/accounts/{account_id}", response_model=AccountResponse)
async def delete_account(
    account_id: int,
    registry: AccountRegistry = Depends(get_account_registry),
) -> AccountResponse:
    """계정 비활성화 (분개가 있으면 409)"""
    return AccountResponse.from_account(await registry.deactivate_account(account_id))
