"""
WalletStore - 지갑 저장소

지갑 생성/조회/수정/통계.
잔액 변경은 WalletLedger를 통해서만 수행 (보관, 관리용 잔액 설정).
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter, UnitOfWork
from core.constants import MoneyLimits
from core.errors import ConflictError, InvalidStateError, NotFoundError
from core.ledger.store import clamp_limit
from core.ledger.types import Wallet
from core.ledger.wallet_ledger import WALLET_COLUMNS, WalletLedger
from core.types import WalletKind
from core.utils.money import from_minor, to_minor, validate_amount
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


@dataclass
class WalletPage:
    """지갑 목록 페이지"""

    items: list[Wallet]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name or len(name) > MoneyLimits.NAME_MAX_LENGTH:
        raise InvalidStateError("INVALID_NAME", "이름은 1~100자여야 합니다")
    return name


class WalletStore:
    """지갑 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.ledger = WalletLedger(db)

    async def create_wallet(
        self,
        owner_id: str,
        name: str,
        kind: WalletKind | str,
        opening_balance: Decimal | int | float | str = 0,
    ) -> Wallet:
        """지갑 생성 (current_balance = opening_balance)

        Raises:
            ConflictError: WALLET_NAME_EXISTS (보관되지 않은 지갑 중 같은 이름)
            InvalidStateError: INVALID_AMOUNT, INVALID_NAME
        """
        name = _validate_name(name)
        kind = WalletKind(kind)
        opening = validate_amount(opening_balance, allow_zero=True)
        wallet_id = str(uuid4())
        now = now_utc().isoformat()

        async with self.db.unit_of_work() as uow:
            await self._ensure_unique_name(uow, owner_id, name)
            await uow.execute(
                """
                INSERT INTO wallet (
                    wallet_id, owner_id, name, kind, opening_balance,
                    current_balance, is_archived, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (wallet_id, owner_id, name, kind.value, to_minor(opening),
                 to_minor(opening), now, now),
            )
            wallet = await self.ledger.get_wallet_in(uow, wallet_id)

        logger.info(
            f"Wallet created: {name}",
            extra={"wallet_id": wallet_id, "owner_id": owner_id, "kind": kind.value},
        )
        return wallet

    async def get_wallet(self, owner_id: str, wallet_id: str) -> Wallet:
        """지갑 조회 (보관된 지갑 포함)

        Raises:
            NotFoundError: WALLET_NOT_FOUND
        """
        wallet = await self.ledger.get_wallet(owner_id, wallet_id)
        if wallet is None:
            raise NotFoundError("WALLET_NOT_FOUND", f"지갑을 찾을 수 없습니다: {wallet_id}")
        return wallet

    async def list_wallets(
        self,
        owner_id: str,
        kind: WalletKind | str | None = None,
        include_archived: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> WalletPage:
        """지갑 목록 (활성 지갑 먼저, 최신 생성순)"""
        where = "WHERE owner_id = ?"
        params: list[Any] = [owner_id]

        if not include_archived:
            where += " AND is_archived = 0"
        if kind is not None:
            where += " AND kind = ?"
            params.append(WalletKind(kind).value)

        total_row = await self.db.fetchone(f"SELECT COUNT(*) FROM wallet {where}", tuple(params))
        total = total_row[0] if total_row else 0

        limit = clamp_limit(limit)
        offset = max(offset, 0)
        rows = await self.db.fetchall_dict(
            f"""
            SELECT {WALLET_COLUMNS} FROM wallet
            {where}
            ORDER BY is_archived ASC, created_at DESC
            LIMIT ? OFFSET ?
            """,
            tuple(params) + (limit, offset),
        )
        return WalletPage(
            items=[Wallet.from_row(row) for row in rows],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def update_wallet(
        self,
        owner_id: str,
        wallet_id: str,
        name: str | None = None,
        kind: WalletKind | str | None = None,
        current_balance: Decimal | int | float | str | None = None,
    ) -> Wallet:
        """지갑 수정

        이름/유형 갱신과 잔액 설정(WalletLedger.set_balance_in, opening_balance를
        같은 차이만큼 이동)은 한 작업 단위에서 함께 반영되거나 함께 취소됨.

        Raises:
            InvalidStateError: INVALID_AMOUNT
            NotFoundError: WALLET_NOT_FOUND
            ConflictError: WALLET_NAME_EXISTS
        """
        if current_balance is not None:
            current_balance = validate_amount(current_balance, allow_zero=True)

        async with self.db.unit_of_work() as uow:
            if name is not None or kind is not None:
                row = await uow.fetchone_dict(
                    "SELECT name, kind FROM wallet WHERE wallet_id = ? AND owner_id = ?",
                    (wallet_id, owner_id),
                )
                if row is None:
                    raise NotFoundError("WALLET_NOT_FOUND", f"지갑을 찾을 수 없습니다: {wallet_id}")

                new_name = row["name"]
                if name is not None:
                    new_name = _validate_name(name)
                    if new_name != row["name"]:
                        await self._ensure_unique_name(uow, owner_id, new_name, exclude_id=wallet_id)

                new_kind = WalletKind(kind).value if kind is not None else row["kind"]

                await uow.execute(
                    "UPDATE wallet SET name = ?, kind = ?, updated_at = ? WHERE wallet_id = ?",
                    (new_name, new_kind, now_utc().isoformat(), wallet_id),
                )

            if current_balance is not None:
                await self.ledger.set_balance_in(uow, owner_id, wallet_id, current_balance)

        return await self.get_wallet(owner_id, wallet_id)

    async def archive_wallet(self, owner_id: str, wallet_id: str) -> Wallet:
        """지갑 삭제 요청 → 보관 (분개가 있으면 거부)"""
        return await self.ledger.archive(owner_id, wallet_id)

    async def get_stats(self, owner_id: str) -> dict[str, Any]:
        """활성 지갑 통계 (유형별 개수, 총 잔액)"""
        rows = await self.db.fetchall(
            """
            SELECT kind, COUNT(*), COALESCE(SUM(current_balance), 0)
            FROM wallet
            WHERE owner_id = ? AND is_archived = 0
            GROUP BY kind
            """,
            (owner_id,),
        )

        by_kind = {row[0]: row[1] for row in rows}
        total_minor = sum(row[2] for row in rows)
        return {
            "by_kind": by_kind,
            "total_wallets": sum(by_kind.values()),
            "total_balance": from_minor(total_minor),
        }

    async def _ensure_unique_name(
        self,
        uow: UnitOfWork,
        owner_id: str,
        name: str,
        exclude_id: str | None = None,
    ) -> None:
        sql = "SELECT 1 FROM wallet WHERE owner_id = ? AND name = ? AND is_archived = 0"
        params: list[Any] = [owner_id, name]
        if exclude_id is not None:
            sql += " AND wallet_id != ?"
            params.append(exclude_id)

        if await uow.fetchone(sql, tuple(params)) is not None:
            raise ConflictError("WALLET_NAME_EXISTS", f"이미 존재하는 지갑 이름입니다: {name}")
