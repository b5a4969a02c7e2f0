"""LedgerStore 통합 테스트"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import NotFoundError
from core.ledger import (
    ExpenseIntent,
    IncomeIntent,
    LedgerStore,
    TransactionEngine,
    TransferIntent,
    WalletLedger,
)
from core.ledger.store import clamp_limit
from core.types import CategoryType, TransactionType

OWNER = "user-1"


@pytest_asyncio.fixture
async def seeded(db: SQLiteAdapter, make_wallet, make_category) -> dict:
    """지갑 2개 + 3월 수입, 4월 지출, 5월 이체"""
    cash = await make_wallet("Cash", "1000")
    bank = await make_wallet("Bank", "0")
    salary = await make_category("Salary", CategoryType.INCOME)
    food = await make_category("Food", CategoryType.EXPENSE)
    engine = TransactionEngine(db)

    income = await engine.post_transaction(
        OWNER,
        IncomeIntent(cash.wallet_id, salary.category_id, Decimal("500"),
                     datetime(2024, 3, 10, tzinfo=timezone.utc)),
    )
    expense = await engine.post_transaction(
        OWNER,
        ExpenseIntent(cash.wallet_id, food.category_id, Decimal("100"),
                      datetime(2024, 4, 10, tzinfo=timezone.utc)),
    )
    transfer = await engine.post_transaction(
        OWNER,
        TransferIntent(cash.wallet_id, bank.wallet_id, Decimal("200"),
                       datetime(2024, 5, 10, tzinfo=timezone.utc)),
    )
    return {
        "cash": cash,
        "bank": bank,
        "food": food,
        "income": income.transaction,
        "expense": expense.transaction,
        "transfer": transfer.transaction,
    }


class TestListTransactions:
    """list_transactions 테스트"""

    @pytest.mark.asyncio
    async def test_newest_first(self, db: SQLiteAdapter, seeded: dict) -> None:
        page = await LedgerStore(db).list_transactions(OWNER)

        assert page.total == 3
        assert [t.type for t in page.items] == [
            TransactionType.TRANSFER,
            TransactionType.EXPENSE,
            TransactionType.INCOME,
        ]
        assert not page.has_more

    @pytest.mark.asyncio
    async def test_filter_by_type(self, db: SQLiteAdapter, seeded: dict) -> None:
        page = await LedgerStore(db).list_transactions(OWNER, tx_type="expense")

        assert [t.transaction_id for t in page.items] == [seeded["expense"].transaction_id]

    @pytest.mark.asyncio
    async def test_filter_by_date_range(self, db: SQLiteAdapter, seeded: dict) -> None:
        page = await LedgerStore(db).list_transactions(
            OWNER,
            start_date=datetime(2024, 4, 1, tzinfo=timezone.utc),
            end_date=datetime(2024, 4, 30, tzinfo=timezone.utc),
        )

        assert page.total == 1
        assert page.items[0].type == TransactionType.EXPENSE

    @pytest.mark.asyncio
    async def test_filter_by_category(self, db: SQLiteAdapter, seeded: dict) -> None:
        page = await LedgerStore(db).list_transactions(OWNER, category_id=seeded["food"].category_id)

        assert page.total == 1

    @pytest.mark.asyncio
    async def test_filter_by_wallet_matches_transfer_side(
        self, db: SQLiteAdapter, seeded: dict
    ) -> None:
        """입금 쪽 지갑으로도 이체가 조회됨"""
        page = await LedgerStore(db).list_transactions(OWNER, wallet_id=seeded["bank"].wallet_id)

        assert [t.transaction_id for t in page.items] == [seeded["transfer"].transaction_id]

    @pytest.mark.asyncio
    async def test_pagination(self, db: SQLiteAdapter, seeded: dict) -> None:
        page = await LedgerStore(db).list_transactions(OWNER, limit=2, offset=0)

        assert len(page.items) == 2
        assert page.has_more

        second = await LedgerStore(db).list_transactions(OWNER, limit=2, offset=2)
        assert len(second.items) == 1
        assert not second.has_more

    @pytest.mark.asyncio
    async def test_other_owner_sees_nothing(self, db: SQLiteAdapter, seeded: dict) -> None:
        page = await LedgerStore(db).list_transactions("user-2")

        assert page.total == 0
        assert page.items == []

    def test_clamp_limit(self) -> None:
        assert clamp_limit(None) == 50
        assert clamp_limit(0) == 50
        assert clamp_limit(10) == 10
        assert clamp_limit(1000) == 100


class TestGetTransaction:
    """get_transaction 테스트"""

    @pytest.mark.asyncio
    async def test_includes_entries(self, db: SQLiteAdapter, seeded: dict) -> None:
        tx = await LedgerStore(db).get_transaction(OWNER, seeded["transfer"].transaction_id)

        assert len(tx.entries) == 2
        assert tx.entries[0].wallet_id == seeded["cash"].wallet_id
        assert tx.entries[1].wallet_id == seeded["bank"].wallet_id

    @pytest.mark.asyncio
    async def test_other_owner_not_found(self, db: SQLiteAdapter, seeded: dict) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await LedgerStore(db).get_transaction("user-2", seeded["income"].transaction_id)
        assert exc_info.value.code == "TRANSACTION_NOT_FOUND"


class TestSoftDelete:
    """소프트 삭제 테스트"""

    @pytest.mark.asyncio
    async def test_soft_delete_keeps_balances(self, db: SQLiteAdapter, seeded: dict) -> None:
        """삭제해도 잔액과 분개는 그대로"""
        store = LedgerStore(db)
        ledger = WalletLedger(db)
        before = (await ledger.get_wallet(OWNER, seeded["cash"].wallet_id)).current_balance

        await store.soft_delete_transaction(OWNER, seeded["expense"].transaction_id)

        after = (await ledger.get_wallet(OWNER, seeded["cash"].wallet_id)).current_balance
        assert before == after == Decimal("1200.00")
        assert await ledger.find_drift(OWNER) == []

        page = await store.list_transactions(OWNER)
        assert seeded["expense"].transaction_id not in [t.transaction_id for t in page.items]

        with pytest.raises(NotFoundError):
            await store.get_transaction(OWNER, seeded["expense"].transaction_id)

        deleted = await store.get_transaction(
            OWNER, seeded["expense"].transaction_id, include_deleted=True
        )
        assert deleted.is_deleted
        assert len(deleted.entries) == 1

    @pytest.mark.asyncio
    async def test_delete_twice(self, db: SQLiteAdapter, seeded: dict) -> None:
        store = LedgerStore(db)
        await store.soft_delete_transaction(OWNER, seeded["income"].transaction_id)

        with pytest.raises(NotFoundError):
            await store.soft_delete_transaction(OWNER, seeded["income"].transaction_id)

    @pytest.mark.asyncio
    async def test_other_owner_cannot_delete(self, db: SQLiteAdapter, seeded: dict) -> None:
        with pytest.raises(NotFoundError):
            await LedgerStore(db).soft_delete_transaction("user-2", seeded["income"].transaction_id)


class TestEntriesByWallet:
    """지갑별 분개 조회"""

    @pytest.mark.asyncio
    async def test_entries_include_deleted_flag(self, db: SQLiteAdapter, seeded: dict) -> None:
        store = LedgerStore(db)
        await store.soft_delete_transaction(OWNER, seeded["income"].transaction_id)

        rows = await store.get_entries_by_wallet(OWNER, seeded["cash"].wallet_id)

        assert [r["type"] for r in rows] == ["transfer", "expense", "income"]
        assert [r["direction"] for r in rows] == ["out", "out", "in"]
        assert rows[0]["amount"] == "200.00"
        assert rows[2]["is_deleted"] is True
