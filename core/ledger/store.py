"""
Ledger 저장소

거래/분개 조회 및 거래 소프트 삭제.
쓰기는 TransactionEngine이 담당하고, 이 클래스는 조회 위주.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.errors import NotFoundError
from core.ledger.types import Entry, LedgerTransaction
from core.types import TransactionType
from core.utils.money import from_minor
from core.utils.timezone import now_utc, to_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass
class TransactionPage:
    """거래 목록 페이지"""

    items: list[LedgerTransaction]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


def clamp_limit(limit: int | None) -> int:
    """페이지 크기 보정 (1 ~ PAGE_LIMIT_MAX)"""
    if limit is None or limit <= 0:
        return Defaults.PAGE_LIMIT
    return min(limit, Defaults.PAGE_LIMIT_MAX)


class LedgerStore:
    """Ledger 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get_transaction(
        self,
        owner_id: str,
        transaction_id: str,
        include_deleted: bool = False,
    ) -> LedgerTransaction:
        """거래 단건 조회 (분개 포함)

        Raises:
            NotFoundError: TRANSACTION_NOT_FOUND
        """
        sql = "SELECT * FROM ledger_transaction WHERE transaction_id = ? AND owner_id = ?"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"

        row = await self.db.fetchone_dict(sql, (transaction_id, owner_id))
        if row is None:
            raise NotFoundError(
                "TRANSACTION_NOT_FOUND",
                f"거래를 찾을 수 없습니다: {transaction_id}",
            )

        entries = await self.get_entries(transaction_id)
        return LedgerTransaction.from_row(row, entries)

    async def get_entries(self, transaction_id: str) -> list[Entry]:
        """거래의 분개 목록 (포스팅 순서)"""
        rows = await self.db.fetchall_dict(
            """
            SELECT entry_id, transaction_id, wallet_id, direction, amount, line_order
            FROM entry
            WHERE transaction_id = ?
            ORDER BY line_order
            """,
            (transaction_id,),
        )
        return [Entry.from_row(row) for row in rows]

    async def list_transactions(
        self,
        owner_id: str,
        tx_type: TransactionType | str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        category_id: str | None = None,
        wallet_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> TransactionPage:
        """거래 목록 조회 (소프트 삭제 제외, 최신순)

        Args:
            owner_id: 소유자
            tx_type: 거래 유형 필터
            start_date: 시작 일시 (포함)
            end_date: 종료 일시 (포함)
            category_id: 카테고리 필터
            wallet_id: 지갑 필터 (분개 기준, 이체 양쪽 모두 매칭)
            limit: 페이지 크기
            offset: 시작 위치

        Returns:
            TransactionPage
        """
        where = "WHERE t.owner_id = ? AND t.deleted_at IS NULL"
        params: list[Any] = [owner_id]

        if tx_type is not None:
            where += " AND t.type = ?"
            params.append(TransactionType(tx_type).value)

        if start_date is not None:
            where += " AND t.transaction_date >= ?"
            params.append(to_utc(start_date).isoformat())

        if end_date is not None:
            where += " AND t.transaction_date <= ?"
            params.append(to_utc(end_date).isoformat())

        if category_id is not None:
            where += " AND t.category_id = ?"
            params.append(category_id)

        if wallet_id is not None:
            where += " AND EXISTS (SELECT 1 FROM entry e WHERE e.transaction_id = t.transaction_id AND e.wallet_id = ?)"
            params.append(wallet_id)

        total_row = await self.db.fetchone(
            f"SELECT COUNT(*) FROM ledger_transaction t {where}",
            tuple(params),
        )
        total = total_row[0] if total_row else 0

        limit = clamp_limit(limit)
        offset = max(offset, 0)
        rows = await self.db.fetchall_dict(
            f"""
            SELECT t.* FROM ledger_transaction t
            {where}
            ORDER BY t.transaction_date DESC, t.created_at DESC
            LIMIT ? OFFSET ?
            """,
            tuple(params) + (limit, offset),
        )

        items = [
            LedgerTransaction.from_row(row, await self.get_entries(row["transaction_id"]))
            for row in rows
        ]

        logger.debug(f"Listed {len(items)}/{total} transactions for {owner_id}")
        return TransactionPage(items=items, total=total, limit=limit, offset=offset)

    async def get_entries_by_wallet(
        self,
        owner_id: str,
        wallet_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """지갑별 분개 조회

        소프트 삭제된 거래의 분개도 포함 (잔액에 반영된 기록이므로).
        """
        rows = await self.db.fetchall(
            """
            SELECT
                e.entry_id,
                e.transaction_id,
                t.type,
                t.transaction_date,
                e.direction,
                e.amount,
                t.deleted_at
            FROM entry e
            JOIN ledger_transaction t ON t.transaction_id = e.transaction_id
            WHERE e.wallet_id = ? AND t.owner_id = ?
            ORDER BY t.transaction_date DESC, e.line_order
            LIMIT ? OFFSET ?
            """,
            (wallet_id, owner_id, limit, offset),
        )

        return [
            {
                "entry_id": row[0],
                "transaction_id": row[1],
                "type": row[2],
                "transaction_date": row[3],
                "direction": row[4],
                "amount": str(from_minor(row[5])),
                "is_deleted": row[6] is not None,
            }
            for row in rows
        ]

    async def soft_delete_transaction(self, owner_id: str, transaction_id: str) -> None:
        """거래 소프트 삭제

        deleted_at만 설정. 분개와 지갑 잔액은 그대로 유지됨.

        Raises:
            NotFoundError: TRANSACTION_NOT_FOUND (없음, 이미 삭제됨, 다른 사용자 소유)
        """
        async with self.db.unit_of_work() as uow:
            updated = await uow.update_one(
                """
                UPDATE ledger_transaction
                SET deleted_at = ?
                WHERE transaction_id = ? AND owner_id = ? AND deleted_at IS NULL
                """,
                (now_utc().isoformat(), transaction_id, owner_id),
            )
            if not updated:
                raise NotFoundError(
                    "TRANSACTION_NOT_FOUND",
                    f"거래를 찾을 수 없습니다: {transaction_id}",
                )

        logger.info(
            "Transaction soft-deleted",
            extra={"transaction_id": transaction_id, "owner_id": owner_id},
        )
