"""WalletLedger 통합 테스트"""

from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import InvalidStateError, NotFoundError
from core.ledger import ExpenseIntent, TransactionEngine, WalletLedger
from core.types import CategoryType
from core.utils.timezone import now_utc

OWNER = "user-1"


class TestOwnershipCheck:
    """ownership_check 테스트"""

    @pytest.mark.asyncio
    async def test_owner_match(self, db: SQLiteAdapter, make_wallet) -> None:
        wallet = await make_wallet("Cash", "100")
        ledger = WalletLedger(db)

        found = await ledger.ownership_check(OWNER, wallet.wallet_id)

        assert found.wallet_id == wallet.wallet_id
        assert found.current_balance == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_other_owner_is_not_found(self, db: SQLiteAdapter, make_wallet) -> None:
        """다른 사용자의 지갑은 존재하지 않는 것과 동일"""
        wallet = await make_wallet("Cash", "100")

        with pytest.raises(NotFoundError) as exc_info:
            await WalletLedger(db).ownership_check("user-2", wallet.wallet_id)
        assert exc_info.value.code == "WALLET_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_archived_is_not_found(self, db: SQLiteAdapter, make_wallet) -> None:
        wallet = await make_wallet("Old", "0")
        ledger = WalletLedger(db)
        await ledger.archive(OWNER, wallet.wallet_id)

        with pytest.raises(NotFoundError):
            await ledger.ownership_check(OWNER, wallet.wallet_id)


class TestArchive:
    """archive 테스트"""

    @pytest.mark.asyncio
    async def test_archive_without_entries(self, db: SQLiteAdapter, make_wallet) -> None:
        wallet = await make_wallet("Spare", "50")

        archived = await WalletLedger(db).archive(OWNER, wallet.wallet_id)

        assert archived.is_archived
        assert archived.current_balance == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_archive_with_entries_rejected(
        self, db: SQLiteAdapter, make_wallet, make_category
    ) -> None:
        wallet = await make_wallet("Cash", "100")
        food = await make_category("Food", CategoryType.EXPENSE)
        await TransactionEngine(db).post_transaction(
            OWNER,
            ExpenseIntent(wallet.wallet_id, food.category_id, Decimal("10"), now_utc()),
        )

        with pytest.raises(InvalidStateError) as exc_info:
            await WalletLedger(db).archive(OWNER, wallet.wallet_id)
        assert exc_info.value.code == "WALLET_HAS_ENTRIES"

        refreshed = await WalletLedger(db).get_wallet(OWNER, wallet.wallet_id)
        assert not refreshed.is_archived

    @pytest.mark.asyncio
    async def test_archive_unknown_wallet(self, db: SQLiteAdapter) -> None:
        with pytest.raises(NotFoundError):
            await WalletLedger(db).archive(OWNER, "missing")


class TestSetBalance:
    """관리용 잔액 설정"""

    @pytest.mark.asyncio
    async def test_rebases_opening_balance(
        self, db: SQLiteAdapter, make_wallet, make_category
    ) -> None:
        """opening_balance가 같은 차이만큼 이동하여 불변식 유지"""
        wallet = await make_wallet("Cash", "100")
        food = await make_category("Food", CategoryType.EXPENSE)
        await TransactionEngine(db).post_transaction(
            OWNER,
            ExpenseIntent(wallet.wallet_id, food.category_id, Decimal("30"), now_utc()),
        )
        ledger = WalletLedger(db)

        updated = await ledger.set_balance(OWNER, wallet.wallet_id, "500")

        assert updated.current_balance == Decimal("500.00")
        assert updated.opening_balance == Decimal("530.00")
        assert await ledger.find_drift(OWNER) == []

    @pytest.mark.asyncio
    async def test_other_owner_rejected(self, db: SQLiteAdapter, make_wallet) -> None:
        wallet = await make_wallet("Cash", "100")

        with pytest.raises(NotFoundError):
            await WalletLedger(db).set_balance("user-2", wallet.wallet_id, "1")

    @pytest.mark.asyncio
    async def test_negative_rejected(self, db: SQLiteAdapter, make_wallet) -> None:
        wallet = await make_wallet("Cash", "100")

        with pytest.raises(InvalidStateError):
            await WalletLedger(db).set_balance(OWNER, wallet.wallet_id, "-5")


class TestFindDrift:
    """잔액 불변식 점검"""

    @pytest.mark.asyncio
    async def test_no_drift_after_normal_operations(
        self, db: SQLiteAdapter, make_wallet, make_category
    ) -> None:
        wallet = await make_wallet("Cash", "100")
        food = await make_category("Food", CategoryType.EXPENSE)
        engine = TransactionEngine(db)
        for amount in ("10", "20.50", "0.01"):
            await engine.post_transaction(
                OWNER,
                ExpenseIntent(wallet.wallet_id, food.category_id, Decimal(amount), now_utc()),
            )

        assert await WalletLedger(db).find_drift() == []

    @pytest.mark.asyncio
    async def test_detects_out_of_band_change(self, db: SQLiteAdapter, make_wallet) -> None:
        """원장을 거치지 않은 직접 수정은 불일치로 검출"""
        wallet = await make_wallet("Cash", "100")
        async with db.unit_of_work() as uow:
            await uow.execute(
                "UPDATE wallet SET current_balance = current_balance + 1 WHERE wallet_id = ?",
                (wallet.wallet_id,),
            )

        drifts = await WalletLedger(db).find_drift(OWNER)

        assert len(drifts) == 1
        assert drifts[0]["wallet_id"] == wallet.wallet_id
        assert drifts[0]["current_balance"] == Decimal("100.01")
        assert drifts[0]["expected_balance"] == Decimal("100.00")
