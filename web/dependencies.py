"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
서비스 객체는 lifespan에서 생성되어 app.state에 보관.
"""

from fastapi import Request

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger import (
    AccountRegistry,
    LedgerStore,
    PostingEngine,
    ReportAggregator,
    TransactionNumberSequencer,
)


def get_db(request: Request) -> SQLiteAdapter:
    """공유 DB 어댑터 반환"""
    return request.app.state.db


def get_posting_engine(request: Request) -> PostingEngine:
    return request.app.state.posting_engine


def get_sequencer(request: Request) -> TransactionNumberSequencer:
    return request.app.state.posting_engine.sequencer


def get_report_aggregator(request: Request) -> ReportAggregator:
    return request.app.state.reports


def get_account_registry(request: Request) -> AccountRegistry:
    return request.app.state.accounts


def get_ledger_store(request: Request) -> LedgerStore:
    return request.app.state.ledger_store
