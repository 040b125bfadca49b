"""
FastAPI 애플리케이션

라우터 등록, 예외 매핑 및 앱 생명주기 관리.

실행:
    python -m web
    uvicorn web.app:create_app --factory
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerSettings, get_settings
from core.errors import (
    ConflictError,
    ImbalanceError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from core.ledger import (
    AccountRegistry,
    LedgerStore,
    PostingEngine,
    ReportAggregator,
    init_ledger_schema,
)
from web.routes import accounts, health, reports, transactions
from web.routes.health import API_VERSION

logger = logging.getLogger(__name__)


def _error_body(exc: LedgerError) -> tuple[int, dict]:
    """원장 예외 → (HTTP 상태 코드, 응답 본문)"""
    if isinstance(exc, ValidationError):
        body: dict = {"detail": str(exc), "errors": exc.errors}
        if isinstance(exc, ImbalanceError):
            body["total_debits"] = f"{exc.total_debits:.2f}"
            body["total_credits"] = f"{exc.total_credits:.2f}"
        return 400, body
    if isinstance(exc, NotFoundError):
        return 404, {"detail": str(exc)}
    if isinstance(exc, ConflictError):
        return 409, {"detail": str(exc)}
    # PostingError, StoreError: 상세 정보는 로그에만
    return 500, {"detail": "Internal ledger error"}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """원장 예외 핸들러

    ValidationError 400, NotFoundError 404, ConflictError 409, 그 외 500.
    """
    status_code, body = _error_body(exc)
    if status_code >= 500:
        logger.error(
            f"원장 오류: {request.method} {request.url.path}",
            exc_info=exc,
        )
    else:
        logger.info(f"요청 거부 ({status_code}): {exc}")
    return JSONResponse(status_code=status_code, content=body)


def create_app(settings: LedgerSettings | None = None) -> FastAPI:
    """FastAPI 앱 생성

    Args:
        settings: 원장 설정 (None이면 settings.yaml 로드)

    Returns:
        설정된 FastAPI 앱
    """
    if settings is None:
        settings = get_settings().ledger

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """앱 생명주기 관리 (DB 연결 + 스키마 초기화 + 서비스 생성)"""
        db = SQLiteAdapter(settings.db_path)
        await db.connect()
        await init_ledger_schema(db)

        accounts_registry = AccountRegistry(db)
        await accounts_registry.seed_default_accounts()

        app.state.settings = settings
        app.state.db = db
        app.state.posting_engine = PostingEngine(db)
        app.state.reports = ReportAggregator(db)
        app.state.accounts = accounts_registry
        app.state.ledger_store = LedgerStore(db)
        logger.info("Web: 원장 서비스 초기화 완료", extra={"db_path": str(settings.db_path)})

        try:
            yield
        finally:
            await db.close()
            logger.info("Web: DB 연결 종료 완료")

    app = FastAPI(
        title="LedgerEngine API",
        description="복식부기 원장 전기 및 재무 보고서 API",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS 설정 (개발용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)

    # =========================================================================
    # API 라우터 등록
    # =========================================================================

    app.include_router(health.router)
    app.include_router(transactions.router)
    app.include_router(accounts.router)
    app.include_router(reports.router)

    return app
