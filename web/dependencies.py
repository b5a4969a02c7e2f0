"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
요청마다 SQLiteAdapter를 열고, 그 위에 원장/저장소 컴포넌트를 생성.
"""

from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from core.goals import GoalStore
from core.ledger import LedgerStore, TransactionEngine
from core.storage import CategoryStore, LoanStore, TemplateStore, WalletStore


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환

    조회는 공유 연결, 쓰기는 unit_of_work()의 전용 연결을 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, busy_timeout_ms=settings.busy_timeout_ms) as db:
        yield db


def get_owner_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    """요청 사용자 ID (X-User-Id 헤더)

    Raises:
        HTTPException: 헤더가 없으면 401
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="X-User-Id 헤더가 필요합니다")
    return x_user_id.strip()


# =========================================================================
# 컴포넌트
# =========================================================================


def get_engine(db: SQLiteAdapter = Depends(get_db)) -> TransactionEngine:
    return TransactionEngine(db)


def get_ledger_store(db: SQLiteAdapter = Depends(get_db)) -> LedgerStore:
    return LedgerStore(db)


def get_wallet_store(db: SQLiteAdapter = Depends(get_db)) -> WalletStore:
    return WalletStore(db)


def get_category_store(db: SQLiteAdapter = Depends(get_db)) -> CategoryStore:
    return CategoryStore(db)


def get_template_store(db: SQLiteAdapter = Depends(get_db)) -> TemplateStore:
    return TemplateStore(db)


def get_loan_store(db: SQLiteAdapter = Depends(get_db)) -> LoanStore:
    return LoanStore(db)


def get_goal_store(db: SQLiteAdapter = Depends(get_db)) -> GoalStore:
    return GoalStore(db)
