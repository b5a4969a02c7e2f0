"""
FastAPI 애플리케이션

라우터 등록, 에러 핸들러, 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config.loader import get_settings
from core.errors import (
    ConflictError,
    InvalidStateError,
    LedgerError,
    NotFoundError,
    TransientError,
    UnsupportedError,
)
from core.logging import setup_logging

# 로깅 설정 (콘솔 + 파일)
setup_logging("web")

from web.routes import (  # noqa: E402
    categories,
    goals,
    health,
    loans,
    templates,
    transactions,
    wallets,
)

logger = logging.getLogger(__name__)

# 에러 종류 → HTTP 상태 코드
ERROR_STATUS: dict[type[LedgerError], int] = {
    NotFoundError: 404,
    InvalidStateError: 400,
    ConflictError: 409,
    TransientError: 500,
    UnsupportedError: 500,
}


def status_for(error: LedgerError) -> int:
    """LedgerError → HTTP 상태 코드 (알 수 없는 종류는 500)"""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger.schema import init_ledger_schema

    settings = get_settings()

    # 시작 시 - DB 스키마 자동 초기화
    async with SQLiteAdapter(settings.db_path, busy_timeout_ms=settings.busy_timeout_ms) as db:
        await init_ledger_schema(db)

    logger.info(f"Web: DB 준비 완료 ({settings.db_path})")
    yield


app = FastAPI(
    title="PocketLedger API",
    description="개인 가계부 복식부기 원장 API",
    version=health.API_VERSION,
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


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """도메인 에러 → JSON 에러 응답"""
    status = status_for(exc)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} 실패: [{exc.code}] {exc.message}")
    else:
        logger.debug(f"{request.method} {request.url.path} 거부: [{exc.code}]")

    return JSONResponse(
        status_code=status,
        content={"success": False, "code": exc.code, "message": exc.message},
    )


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(wallets.router)
app.include_router(categories.router)
app.include_router(transactions.router)
app.include_router(templates.router)
app.include_router(loans.router)
app.include_router(goals.router)
