"""
거래 엔진

거래 의도(Intent)를 검증하고 포스팅을 계산하여 EntryPoster에 전달.

흐름:
1. 금액/메모 검증 (쿼리 없음)
2. 지갑 소유권, 카테고리 유형 검증 (읽기 전용 쿼리)
3. 작업 단위 안에서 거래 헤더 삽입 → 분개 삽입 + 잔액 반영 → 커밋

엔진 내부에서 재시도하지 않음. TransientError는 호출자에게 전파.
"""

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Awaitable, Callable
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import MoneyLimits
from core.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    TransientError,
    UnsupportedError,
)
from core.ledger.poster import EntryPoster
from core.ledger.types import (
    ExpenseIntent,
    IncomeIntent,
    LedgerTransaction,
    Posting,
    PostResult,
    TransactionIntent,
    TransferIntent,
)
from core.ledger.wallet_ledger import WalletLedger
from core.types import CategoryType, EntryDirection, TransactionType
from core.utils.money import to_minor, validate_amount
from core.utils.timezone import now_utc, to_utc

logger = logging.getLogger(__name__)


def build_intent(
    tx_type: TransactionType | str,
    amount: Decimal | int | float | str,
    transaction_date: datetime | date | None = None,
    wallet_id: str | None = None,
    category_id: str | None = None,
    from_wallet_id: str | None = None,
    to_wallet_id: str | None = None,
    note: str | None = None,
) -> TransactionIntent:
    """평면 입력값 → 거래 의도

    Web 요청과 템플릿 자동 채우기에서 사용.

    Args:
        tx_type: 거래 유형 (income/expense/transfer)
        amount: 금액
        transaction_date: 거래 일시 (None이면 현재, date면 자정 UTC)
        wallet_id: 수입/지출 지갑
        category_id: 수입/지출 카테고리
        from_wallet_id: 이체 출금 지갑
        to_wallet_id: 이체 입금 지갑
        note: 메모

    Returns:
        IncomeIntent / ExpenseIntent / TransferIntent

    Raises:
        UnsupportedError: UNSUPPORTED_TRANSACTION_TYPE
        InvalidStateError: 필수 필드 누락 (MISSING_WALLET, MISSING_CATEGORY),
            이체에 카테고리 지정 (TRANSFER_WITH_CATEGORY)
    """
    try:
        tx_type = TransactionType(tx_type)
    except ValueError as e:
        raise UnsupportedError(
            "UNSUPPORTED_TRANSACTION_TYPE",
            f"지원하지 않는 거래 유형: {tx_type}",
        ) from e

    if transaction_date is None:
        when = now_utc()
    elif isinstance(transaction_date, datetime):
        when = to_utc(transaction_date)
    else:
        when = to_utc(datetime.combine(transaction_date, time.min))

    value = validate_amount(amount)

    if tx_type == TransactionType.TRANSFER:
        if not from_wallet_id or not to_wallet_id:
            raise InvalidStateError("MISSING_WALLET", "이체에는 출금/입금 지갑이 필요합니다")
        if category_id:
            raise InvalidStateError("TRANSFER_WITH_CATEGORY", "이체에는 카테고리를 지정할 수 없습니다")
        return TransferIntent(
            from_wallet_id=from_wallet_id,
            to_wallet_id=to_wallet_id,
            amount=value,
            transaction_date=when,
            note=note,
        )

    if not wallet_id:
        raise InvalidStateError("MISSING_WALLET", "지갑이 필요합니다")
    if not category_id:
        raise InvalidStateError("MISSING_CATEGORY", "카테고리가 필요합니다")

    intent_cls = IncomeIntent if tx_type == TransactionType.INCOME else ExpenseIntent
    return intent_cls(
        wallet_id=wallet_id,
        category_id=category_id,
        amount=value,
        transaction_date=when,
        note=note,
    )


class TransactionEngine:
    """거래 엔진

    Args:
        db: SQLite 어댑터 (연결된 상태)

    사용 예시:
    ```python
    engine = TransactionEngine(db)
    result = await engine.post_transaction(
        owner_id,
        ExpenseIntent(wallet_id, category_id, Decimal("30"), now_utc()),
    )
    print(result.affected_wallets[0].current_balance)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.wallet_ledger = WalletLedger(db)
        self.poster = EntryPoster(self.wallet_ledger)

        self._planners: dict[
            type, Callable[[str, Any], Awaitable[tuple[str | None, list[Posting]]]]
        ] = {
            IncomeIntent: self._plan_income,
            ExpenseIntent: self._plan_expense,
            TransferIntent: self._plan_transfer,
        }

    async def post_transaction(
        self,
        owner_id: str,
        intent: TransactionIntent,
    ) -> PostResult:
        """거래 기록

        Args:
            owner_id: 거래 소유자
            intent: 거래 의도

        Returns:
            PostResult (거래, 분개, 반영 후 지갑 목록)

        Raises:
            InvalidStateError: INVALID_AMOUNT, NOTE_TOO_LONG, SAME_WALLET_TRANSFER,
                INVALID_CATEGORY_TYPE_FOR_INCOME, INVALID_CATEGORY_TYPE_FOR_EXPENSE
            NotFoundError: WALLET_NOT_FOUND, CATEGORY_NOT_FOUND
            UnsupportedError: UNSUPPORTED_TRANSACTION_TYPE
            TransientError: 저장소 실패 또는 검증 후 동시 변경으로 인한 제약 위반
                (STORAGE_COMMIT_FAILED, WALLET_UNAVAILABLE; 작업 단위 롤백됨)
        """
        planner = self._planners.get(type(intent))
        if planner is None:
            raise UnsupportedError(
                "UNSUPPORTED_TRANSACTION_TYPE",
                f"지원하지 않는 거래 유형: {type(intent).__name__}",
            )

        amount = validate_amount(intent.amount)
        if intent.note is not None and len(intent.note) > MoneyLimits.NOTE_MAX_LENGTH:
            raise InvalidStateError(
                "NOTE_TOO_LONG",
                f"메모는 {MoneyLimits.NOTE_MAX_LENGTH}자 이하여야 합니다",
            )

        category_id, postings = await planner(owner_id, intent)

        transaction_id = str(uuid4())
        transaction_date = to_utc(intent.transaction_date)

        try:
            async with self.db.unit_of_work() as uow:
                await uow.execute(
                    """
                    INSERT INTO ledger_transaction (
                        transaction_id, owner_id, type, transaction_date,
                        category_id, amount, note, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        transaction_id,
                        owner_id,
                        intent.type.value,
                        transaction_date.isoformat(),
                        category_id,
                        to_minor(amount),
                        intent.note,
                        now_utc().isoformat(),
                    ),
                )

                entries = await self.poster.post(uow, owner_id, transaction_id, postings)

                affected = tuple(
                    [await self.wallet_ledger.get_wallet_in(uow, p.wallet_id) for p in postings]
                )
                header = await uow.fetchone_dict(
                    "SELECT * FROM ledger_transaction WHERE transaction_id = ?",
                    (transaction_id,),
                )
        except ConflictError as e:
            # 검증 통과 후의 제약 위반은 동시 변경(카테고리/지갑 삭제 등)에 의한 경합
            if e.code != "CONSTRAINT_VIOLATION":
                raise
            logger.warning(
                f"Transaction aborted by concurrent change: {e.message}",
                extra={"owner_id": owner_id, "transaction_id": transaction_id},
            )
            raise TransientError(
                "STORAGE_COMMIT_FAILED",
                f"동시 변경으로 거래를 기록하지 못했습니다. 다시 시도하세요: {e.message}",
            ) from e

        transaction = LedgerTransaction.from_row(header, entries)  # type: ignore[arg-type]

        logger.info(
            f"Transaction posted: {intent.type.value} {amount}",
            extra={
                "transaction_id": transaction_id,
                "owner_id": owner_id,
                "wallets": [w.wallet_id for w in affected],
            },
        )

        return PostResult(transaction=transaction, affected_wallets=affected)

    # -------------------------------------------------------------------------
    # 유형별 검증 + 포스팅 계산
    # -------------------------------------------------------------------------

    async def _plan_income(
        self,
        owner_id: str,
        intent: IncomeIntent,
    ) -> tuple[str | None, list[Posting]]:
        await self.wallet_ledger.ownership_check(owner_id, intent.wallet_id)
        await self._check_category(
            owner_id, intent.category_id, CategoryType.INCOME,
            "INVALID_CATEGORY_TYPE_FOR_INCOME",
        )
        return intent.category_id, [
            Posting(intent.wallet_id, EntryDirection.IN, validate_amount(intent.amount)),
        ]

    async def _plan_expense(
        self,
        owner_id: str,
        intent: ExpenseIntent,
    ) -> tuple[str | None, list[Posting]]:
        await self.wallet_ledger.ownership_check(owner_id, intent.wallet_id)
        await self._check_category(
            owner_id, intent.category_id, CategoryType.EXPENSE,
            "INVALID_CATEGORY_TYPE_FOR_EXPENSE",
        )
        return intent.category_id, [
            Posting(intent.wallet_id, EntryDirection.OUT, validate_amount(intent.amount)),
        ]

    async def _plan_transfer(
        self,
        owner_id: str,
        intent: TransferIntent,
    ) -> tuple[str | None, list[Posting]]:
        if intent.from_wallet_id == intent.to_wallet_id:
            raise InvalidStateError(
                "SAME_WALLET_TRANSFER",
                "출금 지갑과 입금 지갑이 같을 수 없습니다",
            )

        await self.wallet_ledger.ownership_check(owner_id, intent.from_wallet_id)
        await self.wallet_ledger.ownership_check(owner_id, intent.to_wallet_id)

        amount = validate_amount(intent.amount)
        return None, [
            Posting(intent.from_wallet_id, EntryDirection.OUT, amount),
            Posting(intent.to_wallet_id, EntryDirection.IN, amount),
        ]

    async def _check_category(
        self,
        owner_id: str,
        category_id: str,
        expected: CategoryType,
        mismatch_code: str,
    ) -> None:
        row = await self.db.fetchone(
            "SELECT type FROM category WHERE category_id = ? AND owner_id = ?",
            (category_id, owner_id),
        )
        if row is None:
            raise NotFoundError("CATEGORY_NOT_FOUND", f"카테고리를 찾을 수 없습니다: {category_id}")
        if row[0] != expected.value:
            raise InvalidStateError(
                mismatch_code,
                f"카테고리 유형이 {expected.value}가 아닙니다: {category_id}",
            )
