"""
pytest 공통 fixture 정의

임시 파일 DB (WAL 모드는 파일 DB에서만 동작) 및 지갑/카테고리 생성 헬퍼.
"""

from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.schema import init_ledger_schema
from core.ledger.types import Wallet
from core.storage import Category, CategoryStore, WalletStore
from core.types import CategoryType, WalletKind

OWNER = "user-1"
OTHER_OWNER = "user-2"


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """OS 독립적인 임시 디렉토리"""
    return tmp_path


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 초기화된 테스트용 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "test_ledger.db", busy_timeout_ms=5000)
    await adapter.connect()
    await init_ledger_schema(adapter)
    yield adapter
    await adapter.close()


@pytest.fixture
def wallet_store(db: SQLiteAdapter) -> WalletStore:
    return WalletStore(db)


@pytest.fixture
def category_store(db: SQLiteAdapter) -> CategoryStore:
    return CategoryStore(db)


@pytest.fixture
def make_wallet(wallet_store: WalletStore):
    """지갑 생성 헬퍼

    사용 예시:
        wallet = await make_wallet("Cash", "1000")
    """

    async def _make(
        name: str = "Cash",
        opening_balance: Decimal | str = "0",
        kind: WalletKind = WalletKind.CASH,
        owner_id: str = OWNER,
    ) -> Wallet:
        return await wallet_store.create_wallet(owner_id, name, kind, opening_balance)

    return _make


@pytest.fixture
def make_category(category_store: CategoryStore):
    """카테고리 생성 헬퍼"""

    async def _make(
        name: str,
        category_type: CategoryType = CategoryType.EXPENSE,
        owner_id: str = OWNER,
        parent_id: str | None = None,
    ) -> Category:
        return await category_store.create_category(owner_id, category_type, name, parent_id)

    return _make
