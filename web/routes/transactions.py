"""
거래 라우트

거래 생성/조회/수정/삭제/검색 API
"""

from fastapi import APIRouter, Depends, Query, status

from core.errors import ValidationError
from core.ledger import LedgerStore, PostingEngine, TransactionNumberSequencer
from web.dependencies import get_ledger_store, get_posting_engine, get_sequencer
from web.models.requests import TransactionRequest, TransactionUpdateRequest
from web.models.responses import (
    ERROR_RESPONSES,
    DeletionResponse,
    NextNumberResponse,
    PostingResponse,
    TransactionResponse,
)

router = APIRouter(prefix="/api", tags=["Transactions"], responses=ERROR_RESPONSES)


@router.post(
    "/transactions",
    response_model=PostingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_transaction(
    request: TransactionRequest,
    engine: PostingEngine = Depends(get_posting_engine),
) -> PostingResponse:
    """거래 생성 및 전기

    차변 합계 ≠ 대변 합계이면 400 (합계 포함).
    """
    result = await engine.create_posting(request.to_draft())
    return PostingResponse.from_result(result)


@router.get("/transactions", response_model=list[TransactionResponse])
async def list_transactions(
    start_date: str | None = Query(default=None, description="시작일 (dd/mm/yyyy)"),
    end_date: str | None = Query(default=None, description="종료일 (dd/mm/yyyy)"),
    date: str | None = Query(default=None, description="특정 일자 (dd/mm/yyyy)"),
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: LedgerStore = Depends(get_ledger_store),
) -> list[TransactionResponse]:
    """거래 목록 조회

    - date: 해당 일자의 거래
    - start_date + end_date: 기간 내 거래 (오름차순)
    - 둘 다 없으면 전체 (최신 우선, limit/offset 적용)
    """
    if date is not None:
        transactions = await store.list_transactions_by_date(date)
    elif start_date is not None or end_date is not None:
        transactions = await store.list_transactions_by_date_range(start_date, end_date)
    else:
        transactions = await store.list_transactions(limit=limit, offset=offset)
    return [TransactionResponse.from_transaction(t) for t in transactions]


@router.get("/transactions/search", response_model=list[TransactionResponse])
async def search_transactions(
    q: str = Query(default="", description="검색어 (적요/참조번호/계정명/거래번호)"),
    store: LedgerStore = Depends(get_ledger_store),
) -> list[TransactionResponse]:
    """거래 검색 (최대 50건)"""
    transactions = await store.search_transactions(q)
    return [TransactionResponse.from_transaction(t) for t in transactions]


@router.get("/transactions/next-number", response_model=NextNumberResponse)
async def get_next_transaction_number(
    sequencer: TransactionNumberSequencer = Depends(get_sequencer),
) -> NextNumberResponse:
    """다음 거래번호 조회 (참고용, 예약하지 않음)"""
    return NextNumberResponse(next_number=await sequencer.peek_next())


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    store: LedgerStore = Depends(get_ledger_store),
) -> TransactionResponse:
    """거래 상세 조회 (분개 포함)"""
    return TransactionResponse.from_transaction(await store.get_transaction(transaction_id))


@router.put("/transactions/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    request: TransactionUpdateRequest,
    engine: PostingEngine = Depends(get_posting_engine),
    store: LedgerStore = Depends(get_ledger_store),
) -> TransactionResponse:
    """거래 수정

    entries가 있으면 전체 수정 (역분개 후 재전기), 없으면 기본 정보만 수정.
    """
    if request.is_full_edit:
        await engine.edit_posting(transaction_id, request.to_draft())
        transaction = await store.get_transaction(transaction_id)
    else:
        if request.description is None and request.date is None:
            raise ValidationError("Nothing to update: provide date and description, or entries")
        transaction = await engine.update_metadata(
            transaction_id,
            request.date,
            request.description,
            request.reference,
        )
    return TransactionResponse.from_transaction(transaction)


@router.delete("/transactions/{transaction_id}", response_model=DeletionResponse)
async def delete_transaction(
    transaction_id: int,
    engine: PostingEngine = Depends(get_posting_engine),
) -> DeletionResponse:
    """거래 삭제 (잔액 영향 취소 후 삭제)"""
    return DeletionResponse.from_result(await engine.delete_posting(transaction_id))
