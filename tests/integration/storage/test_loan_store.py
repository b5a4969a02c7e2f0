"""LoanStore 통합 테스트"""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.errors import InvalidStateError, NotFoundError
from core.ledger.types import Wallet
from core.ledger.wallet_ledger import WalletLedger
from core.storage import LoanStore
from core.types import LoanKind, LoanStatus

OWNER = "user-1"


@pytest_asyncio.fixture
async def cash(make_wallet) -> Wallet:
    return await make_wallet("Cash", "500")


@pytest.fixture
def loan_store(db: SQLiteAdapter) -> LoanStore:
    return LoanStore(db)


class TestCreateLoan:
    """대출 생성"""

    @pytest.mark.asyncio
    async def test_outstanding_equals_principal(self, loan_store: LoanStore, cash: Wallet) -> None:
        loan = await loan_store.create_loan(
            OWNER, "you_owe", "Alice", "300", cash.wallet_id, date(2024, 1, 1),
            due_date=date(2024, 12, 31),
        )

        assert loan.kind == LoanKind.YOU_OWE
        assert loan.principal == Decimal("300.00")
        assert loan.outstanding == Decimal("300.00")
        assert loan.paid == Decimal("0.00")
        assert loan.status == LoanStatus.OPEN
        assert loan.due_date is not None

    @pytest.mark.asyncio
    async def test_does_not_touch_wallet(
        self, db: SQLiteAdapter, loan_store: LoanStore, cash: Wallet
    ) -> None:
        """대출 기록은 원장 분개를 만들지 않음"""
        await loan_store.create_loan(OWNER, "owed_to_you", "Bob", "100", cash.wallet_id, date(2024, 1, 1))

        wallet = await WalletLedger(db).get_wallet(OWNER, cash.wallet_id)
        assert wallet.current_balance == Decimal("500.00")
        assert await db.fetchone("SELECT 1 FROM entry") is None

    @pytest.mark.asyncio
    async def test_foreign_wallet(self, loan_store: LoanStore, make_wallet) -> None:
        foreign = await make_wallet("Cash", "0", owner_id="user-2")

        with pytest.raises(NotFoundError):
            await loan_store.create_loan(OWNER, "you_owe", "Alice", "10", foreign.wallet_id, date(2024, 1, 1))

    @pytest.mark.asyncio
    async def test_blank_counterparty(self, loan_store: LoanStore, cash: Wallet) -> None:
        with pytest.raises(InvalidStateError) as exc_info:
            await loan_store.create_loan(OWNER, "you_owe", " ", "10", cash.wallet_id, date(2024, 1, 1))
        assert exc_info.value.code == "INVALID_NAME"


class TestLoanPayments:
    """상환 기록"""

    @pytest.mark.asyncio
    async def test_partial_then_full_payment_closes(self, loan_store: LoanStore, cash: Wallet) -> None:
        loan = await loan_store.create_loan(OWNER, "you_owe", "Alice", "300", cash.wallet_id, date(2024, 1, 1))

        loan, payment = await loan_store.record_payment(
            OWNER, loan.loan_id, cash.wallet_id, "100", date(2024, 2, 1)
        )
        assert loan.outstanding == Decimal("200.00")
        assert loan.status == LoanStatus.OPEN
        assert payment.amount == Decimal("100.00")

        loan, _ = await loan_store.record_payment(
            OWNER, loan.loan_id, cash.wallet_id, "200", date(2024, 3, 1), note="done"
        )
        assert loan.outstanding == Decimal("0.00")
        assert loan.paid == Decimal("300.00")
        assert loan.status == LoanStatus.CLOSED

        payments = await loan_store.list_payments(OWNER, loan.loan_id)
        assert [p.amount for p in payments] == [Decimal("200.00"), Decimal("100.00")]

    @pytest.mark.asyncio
    async def test_overpayment_rejected(self, loan_store: LoanStore, cash: Wallet) -> None:
        loan = await loan_store.create_loan(OWNER, "you_owe", "Alice", "50", cash.wallet_id, date(2024, 1, 1))

        with pytest.raises(InvalidStateError) as exc_info:
            await loan_store.record_payment(OWNER, loan.loan_id, cash.wallet_id, "50.01", date(2024, 2, 1))
        assert exc_info.value.code == "LOAN_PAYMENT_EXCEEDS_OUTSTANDING"

        assert (await loan_store.get_loan(OWNER, loan.loan_id)).outstanding == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_payment_on_closed_loan(self, loan_store: LoanStore, cash: Wallet) -> None:
        loan = await loan_store.create_loan(OWNER, "you_owe", "Alice", "50", cash.wallet_id, date(2024, 1, 1))
        await loan_store.record_payment(OWNER, loan.loan_id, cash.wallet_id, "50", date(2024, 2, 1))

        with pytest.raises(InvalidStateError) as exc_info:
            await loan_store.record_payment(OWNER, loan.loan_id, cash.wallet_id, "1", date(2024, 3, 1))
        assert exc_info.value.code == "LOAN_CLOSED"


class TestLoanCrud:
    """조회/수정/삭제/통계"""

    @pytest.mark.asyncio
    async def test_list_and_stats(self, loan_store: LoanStore, cash: Wallet) -> None:
        await loan_store.create_loan(OWNER, "you_owe", "Alice", "100", cash.wallet_id, date(2024, 1, 1))
        await loan_store.create_loan(OWNER, "you_owe", "Carol", "50", cash.wallet_id, date(2024, 2, 1))
        lent = await loan_store.create_loan(OWNER, "owed_to_you", "Bob", "70", cash.wallet_id, date(2024, 3, 1))
        await loan_store.record_payment(OWNER, lent.loan_id, cash.wallet_id, "70", date(2024, 4, 1))

        loans, total = await loan_store.list_loans(OWNER)
        assert total == 3
        assert [loan.counterparty_name for loan in loans] == ["Bob", "Carol", "Alice"]

        open_loans, open_total = await loan_store.list_loans(OWNER, status="open")
        assert open_total == 2

        stats = await loan_store.get_stats(OWNER)
        assert stats["you_owe"] == {"count": 2, "outstanding": Decimal("150.00")}
        assert stats["owed_to_you"] == {"count": 0, "outstanding": Decimal("0.00")}

    @pytest.mark.asyncio
    async def test_update(self, loan_store: LoanStore, cash: Wallet) -> None:
        loan = await loan_store.create_loan(OWNER, "you_owe", "Alice", "100", cash.wallet_id, date(2024, 1, 1))

        updated = await loan_store.update_loan(OWNER, loan.loan_id, counterparty_name="Alicia", note="family")

        assert updated.counterparty_name == "Alicia"
        assert updated.note == "family"

    @pytest.mark.asyncio
    async def test_soft_delete(self, loan_store: LoanStore, cash: Wallet) -> None:
        loan = await loan_store.create_loan(OWNER, "you_owe", "Alice", "100", cash.wallet_id, date(2024, 1, 1))

        await loan_store.delete_loan(OWNER, loan.loan_id)

        with pytest.raises(NotFoundError) as exc_info:
            await loan_store.get_loan(OWNER, loan.loan_id)
        assert exc_info.value.code == "LOAN_NOT_FOUND"

        _, total = await loan_store.list_loans(OWNER)
        assert total == 0

    @pytest.mark.asyncio
    async def test_other_owner(self, loan_store: LoanStore, cash: Wallet) -> None:
        loan = await loan_store.create_loan(OWNER, "you_owe", "Alice", "100", cash.wallet_id, date(2024, 1, 1))

        with pytest.raises(NotFoundError):
            await loan_store.get_loan("user-2", loan.loan_id)
        with pytest.raises(NotFoundError):
            await loan_store.delete_loan("user-2", loan.loan_id)
