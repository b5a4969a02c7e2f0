"""
분개 기록기

포스팅 목록을 받아 분개를 생성하고 지갑 잔액에 반영.
모든 작업은 호출자가 연 작업 단위(unit of work) 안에서 수행되며,
하나라도 실패하면 작업 단위 전체가 롤백됨.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING
from uuid import uuid4

from core.errors import InvalidStateError, TransientError
from core.ledger.types import Entry, Posting
from core.ledger.wallet_ledger import WalletLedger
from core.utils.money import to_minor
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import UnitOfWork

logger = logging.getLogger(__name__)


class EntryPoster:
    """포스팅 → 분개 + 잔액 반영

    Args:
        wallet_ledger: 잔액 상대 갱신을 담당하는 WalletLedger
    """

    def __init__(self, wallet_ledger: WalletLedger):
        self.wallet_ledger = wallet_ledger

    async def post(
        self,
        uow: UnitOfWork,
        owner_id: str,
        transaction_id: str,
        postings: Sequence[Posting],
    ) -> list[Entry]:
        """포스팅 목록 기록

        각 포스팅에 대해 지갑 잔액을 먼저 상대 갱신하고 분개 행을 삽입.
        잔액 갱신 조건(소유자, 미보관)에 맞는 지갑이 없으면 검증 이후 상태가 바뀐 것이므로
        TransientError로 작업 단위 전체를 중단.

        Args:
            uow: 열린 작업 단위
            owner_id: 거래 소유자
            transaction_id: 이미 삽입된 거래 헤더 ID
            postings: 순서가 있는 포스팅 목록

        Returns:
            생성된 분개 목록 (포스팅 순서)

        Raises:
            InvalidStateError: EMPTY_POSTINGS, INVALID_AMOUNT
            TransientError: WALLET_UNAVAILABLE
        """
        if not postings:
            raise InvalidStateError("EMPTY_POSTINGS", f"포스팅이 없습니다: {transaction_id}")

        created_at = now_utc().isoformat()
        entries: list[Entry] = []

        for line_order, posting in enumerate(postings):
            if posting.amount <= 0:
                raise InvalidStateError(
                    "INVALID_AMOUNT",
                    f"포스팅 금액은 0보다 커야 합니다: {posting.amount}",
                )

            applied = await self.wallet_ledger.apply_delta(
                uow, owner_id, posting.wallet_id, posting.delta
            )
            if not applied:
                raise TransientError(
                    "WALLET_UNAVAILABLE",
                    f"검증 이후 지갑 상태가 변경되었습니다: {posting.wallet_id}",
                )

            entry = Entry(
                entry_id=str(uuid4()),
                transaction_id=transaction_id,
                wallet_id=posting.wallet_id,
                direction=posting.direction,
                amount=posting.amount,
                line_order=line_order,
            )
            await uow.execute(
                """
                INSERT INTO entry (
                    entry_id, transaction_id, wallet_id, direction, amount,
                    line_order, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.entry_id,
                    entry.transaction_id,
                    entry.wallet_id,
                    entry.direction.value,
                    to_minor(entry.amount),
                    entry.line_order,
                    created_at,
                ),
            )
            entries.append(entry)

        logger.debug(f"Posted {len(entries)} entries for transaction {transaction_id}")
        return entries
