"""
지갑 원장

지갑별 현재 잔액의 단일 진실 공급원.
잔액 변경은 저장소 수준의 상대 갱신(`current_balance = current_balance + ?`)으로만 수행.
애플리케이션에서 잔액을 읽고 다시 쓰는 경로는 없음.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.errors import InvalidStateError, NotFoundError
from core.ledger.types import Wallet
from core.utils.money import from_minor, to_minor, validate_amount
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter, UnitOfWork

logger = logging.getLogger(__name__)

WALLET_COLUMNS = """
    wallet_id, owner_id, name, kind, opening_balance, current_balance,
    is_archived, created_at, updated_at
"""


class WalletLedger:
    """지갑 원장

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get_wallet(
        self,
        owner_id: str,
        wallet_id: str,
    ) -> Wallet | None:
        """지갑 조회 (보관된 지갑 포함)

        Args:
            owner_id: 소유 사용자 ID
            wallet_id: 지갑 ID

        Returns:
            Wallet 또는 None (없거나 다른 사용자 소유)
        """
        row = await self.db.fetchone_dict(
            f"SELECT {WALLET_COLUMNS} FROM wallet WHERE wallet_id = ? AND owner_id = ?",
            (wallet_id, owner_id),
        )
        return Wallet.from_row(row) if row else None

    async def get_wallet_in(self, uow: UnitOfWork, wallet_id: str) -> Wallet:
        """작업 단위 내부 시점의 지갑 조회 (커밋 직전 잔액)"""
        row = await uow.fetchone_dict(
            f"SELECT {WALLET_COLUMNS} FROM wallet WHERE wallet_id = ?",
            (wallet_id,),
        )
        if row is None:
            raise NotFoundError("WALLET_NOT_FOUND", f"지갑을 찾을 수 없습니다: {wallet_id}")
        return Wallet.from_row(row)

    async def ownership_check(self, owner_id: str, wallet_id: str) -> Wallet:
        """지갑 소유권 검증

        모든 Ledger 변경 전에 호출됨.

        Raises:
            NotFoundError: WALLET_NOT_FOUND (없음, 보관됨, 다른 사용자 소유)
        """
        wallet = await self.get_wallet(owner_id, wallet_id)
        if wallet is None or wallet.is_archived:
            raise NotFoundError("WALLET_NOT_FOUND", f"지갑을 찾을 수 없습니다: {wallet_id}")
        return wallet

    async def has_entries(self, wallet_id: str) -> bool:
        """분개 존재 여부 (소프트 삭제된 거래의 분개 포함)"""
        row = await self.db.fetchone(
            "SELECT 1 FROM entry WHERE wallet_id = ? LIMIT 1",
            (wallet_id,),
        )
        return row is not None

    async def apply_delta(
        self,
        uow: UnitOfWork,
        owner_id: str,
        wallet_id: str,
        delta: Decimal,
    ) -> bool:
        """잔액 상대 갱신

        소유자 일치 + 보관되지 않은 지갑에만 적용.
        반드시 호출자의 작업 단위 안에서 실행.

        Returns:
            True: 1행 갱신됨 / False: 조건에 맞는 지갑 없음
        """
        return await uow.update_one(
            """
            UPDATE wallet
            SET current_balance = current_balance + ?,
                updated_at = ?
            WHERE wallet_id = ? AND owner_id = ? AND is_archived = 0
            """,
            (to_minor(delta), now_utc().isoformat(), wallet_id, owner_id),
        )

    async def archive(self, owner_id: str, wallet_id: str) -> Wallet:
        """지갑 보관

        분개가 하나라도 있으면 거부. 확인과 보관 플래그 설정은 하나의 작업 단위.

        Raises:
            NotFoundError: WALLET_NOT_FOUND
            InvalidStateError: WALLET_HAS_ENTRIES
        """
        async with self.db.unit_of_work() as uow:
            row = await uow.fetchone(
                "SELECT is_archived FROM wallet WHERE wallet_id = ? AND owner_id = ?",
                (wallet_id, owner_id),
            )
            if row is None:
                raise NotFoundError("WALLET_NOT_FOUND", f"지갑을 찾을 수 없습니다: {wallet_id}")

            has_entry = await uow.fetchone(
                "SELECT 1 FROM entry WHERE wallet_id = ? LIMIT 1",
                (wallet_id,),
            )
            if has_entry is not None:
                raise InvalidStateError(
                    "WALLET_HAS_ENTRIES",
                    f"분개가 있는 지갑은 보관할 수 없습니다: {wallet_id}",
                )

            await uow.execute(
                "UPDATE wallet SET is_archived = 1, updated_at = ? WHERE wallet_id = ?",
                (now_utc().isoformat(), wallet_id),
            )
            wallet = await self.get_wallet_in(uow, wallet_id)

        logger.info("Wallet archived", extra={"wallet_id": wallet_id, "owner_id": owner_id})
        return wallet

    async def set_balance(
        self,
        owner_id: str,
        wallet_id: str,
        new_balance: Decimal | int | float | str,
    ) -> Wallet:
        """관리용 잔액 직접 설정

        지갑 CRUD 수정에서만 사용. 거래 경로에서는 호출 금지.
        opening_balance를 같은 차이만큼 이동시켜 잔액 불변식을 유지.
        두 컬럼 모두 단일 UPDATE 안에서 갱신됨 (SET 우변은 갱신 전 값 기준).

        Raises:
            InvalidStateError: INVALID_AMOUNT
            NotFoundError: WALLET_NOT_FOUND
        """
        balance = validate_amount(new_balance, allow_zero=True)

        async with self.db.unit_of_work() as uow:
            return await self.set_balance_in(uow, owner_id, wallet_id, balance)

    async def set_balance_in(
        self,
        uow: UnitOfWork,
        owner_id: str,
        wallet_id: str,
        new_balance: Decimal | int | float | str,
    ) -> Wallet:
        """호출자의 작업 단위 안에서 잔액 설정 (set_balance와 동일 규칙)

        Raises:
            InvalidStateError: INVALID_AMOUNT
            NotFoundError: WALLET_NOT_FOUND
        """
        balance = validate_amount(new_balance, allow_zero=True)
        minor = to_minor(balance)

        updated = await uow.update_one(
            """
            UPDATE wallet
            SET opening_balance = opening_balance + (? - current_balance),
                current_balance = ?,
                updated_at = ?
            WHERE wallet_id = ? AND owner_id = ?
            """,
            (minor, minor, now_utc().isoformat(), wallet_id, owner_id),
        )
        if not updated:
            raise NotFoundError("WALLET_NOT_FOUND", f"지갑을 찾을 수 없습니다: {wallet_id}")

        logger.info(
            "Wallet balance set (admin)",
            extra={"wallet_id": wallet_id, "balance": str(balance)},
        )
        return await self.get_wallet_in(uow, wallet_id)

    async def find_drift(self, owner_id: str | None = None) -> list[dict[str, Any]]:
        """잔액 불변식 위반 지갑 조회

        current_balance != opening_balance + Σin - Σout 인 지갑 목록.
        정상 상태에서는 항상 빈 목록.
        """
        sql = """
            SELECT wallet_id, owner_id, current_balance, expected_balance
            FROM v_wallet_drift
            WHERE current_balance != expected_balance
        """
        params: tuple[Any, ...] = ()
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params = (owner_id,)

        rows = await self.db.fetchall_dict(sql, params)
        drifts = [
            {
                "wallet_id": row["wallet_id"],
                "owner_id": row["owner_id"],
                "current_balance": from_minor(row["current_balance"]),
                "expected_balance": from_minor(row["expected_balance"]),
            }
            for row in rows
        ]

        if drifts:
            logger.error(f"Wallet balance drift detected: {len(drifts)} wallet(s)")

        return drifts
