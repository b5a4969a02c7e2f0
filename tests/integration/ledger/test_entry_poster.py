"""EntryPoster 통합 테스트"""

from decimal import Decimal
from uuid import uuid4

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import InvalidStateError, TransientError
from core.ledger import EntryPoster, Posting, WalletLedger
from core.types import EntryDirection
from core.utils.timezone import now_utc

OWNER = "user-1"


async def _insert_header(uow, transaction_id: str, amount_minor: int) -> None:
    await uow.execute(
        """
        INSERT INTO ledger_transaction (transaction_id, owner_id, type, transaction_date, amount)
        VALUES (?, ?, 'transfer', ?, ?)
        """,
        (transaction_id, OWNER, now_utc().isoformat(), amount_minor),
    )


class TestEntryPoster:
    """EntryPoster.post 테스트"""

    @pytest.mark.asyncio
    async def test_post_applies_deltas_and_entries(self, db: SQLiteAdapter, make_wallet) -> None:
        cash = await make_wallet("Cash", "100")
        bank = await make_wallet("Bank", "0")
        ledger = WalletLedger(db)
        poster = EntryPoster(ledger)
        transaction_id = str(uuid4())

        async with db.unit_of_work() as uow:
            await _insert_header(uow, transaction_id, 4000)
            entries = await poster.post(
                uow,
                OWNER,
                transaction_id,
                [
                    Posting(cash.wallet_id, EntryDirection.OUT, Decimal("40")),
                    Posting(bank.wallet_id, EntryDirection.IN, Decimal("40")),
                ],
            )

        assert [e.line_order for e in entries] == [0, 1]
        assert [e.direction for e in entries] == [EntryDirection.OUT, EntryDirection.IN]
        assert (await ledger.get_wallet(OWNER, cash.wallet_id)).current_balance == Decimal("60.00")
        assert (await ledger.get_wallet(OWNER, bank.wallet_id)).current_balance == Decimal("40.00")

    @pytest.mark.asyncio
    async def test_empty_postings_rejected(self, db: SQLiteAdapter) -> None:
        poster = EntryPoster(WalletLedger(db))

        with pytest.raises(InvalidStateError) as exc_info:
            async with db.unit_of_work() as uow:
                await poster.post(uow, OWNER, "tx", [])
        assert exc_info.value.code == "EMPTY_POSTINGS"

    @pytest.mark.asyncio
    async def test_unavailable_wallet_rolls_back_everything(
        self, db: SQLiteAdapter, make_wallet
    ) -> None:
        """두 번째 포스팅 지갑이 다른 사용자 소유면 첫 번째 반영도 롤백"""
        cash = await make_wallet("Cash", "100")
        foreign = await make_wallet("Foreign", "0", owner_id="user-2")
        ledger = WalletLedger(db)
        poster = EntryPoster(ledger)
        transaction_id = str(uuid4())

        with pytest.raises(TransientError) as exc_info:
            async with db.unit_of_work() as uow:
                await _insert_header(uow, transaction_id, 1000)
                await poster.post(
                    uow,
                    OWNER,
                    transaction_id,
                    [
                        Posting(cash.wallet_id, EntryDirection.OUT, Decimal("10")),
                        Posting(foreign.wallet_id, EntryDirection.IN, Decimal("10")),
                    ],
                )
        assert exc_info.value.code == "WALLET_UNAVAILABLE"

        assert (await ledger.get_wallet(OWNER, cash.wallet_id)).current_balance == Decimal("100.00")
        assert await db.fetchone("SELECT 1 FROM entry") is None
        assert await db.fetchone("SELECT 1 FROM ledger_transaction") is None

    def test_posting_delta(self) -> None:
        assert Posting("w", EntryDirection.IN, Decimal("5")).delta == Decimal("5")
        assert Posting("w", EntryDirection.OUT, Decimal("5")).delta == Decimal("-5")
