"""
TemplateStore - 거래 템플릿 저장소

템플릿은 거래 의도를 자동으로 채우는 용도로만 사용.
템플릿 자체가 거래를 생성하지 않음 (build_intent 결과를 엔진에 전달해야 기록됨).
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter, UnitOfWork
from core.constants import MoneyLimits
from core.errors import ConflictError, InvalidStateError, NotFoundError
from core.ledger.engine import build_intent
from core.ledger.store import clamp_limit
from core.ledger.types import TransactionIntent
from core.types import TransactionType
from core.utils.money import from_minor, to_minor, validate_amount
from core.utils.timezone import now_utc, parse_iso

logger = logging.getLogger(__name__)

# 필드 변경 없음 표식 (None은 "값 제거"를 의미)
UNCHANGED: Any = object()


@dataclass
class TransactionTemplate:
    """거래 템플릿"""

    template_id: str
    owner_id: str
    name: str
    type: TransactionType
    wallet_id: str | None = None
    category_id: str | None = None
    amount: Decimal | None = None
    note: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "TransactionTemplate":
        """DB 행에서 생성"""
        return cls(
            template_id=row["template_id"],
            owner_id=row["owner_id"],
            name=row["name"],
            type=TransactionType(row["type"]),
            wallet_id=row.get("wallet_id"),
            category_id=row.get("category_id"),
            amount=from_minor(row["amount"]) if row.get("amount") is not None else None,
            note=row.get("note"),
            created_at=parse_iso(row.get("created_at")),
            updated_at=parse_iso(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환"""
        return {
            "template_id": self.template_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "type": self.type.value,
            "wallet_id": self.wallet_id,
            "category_id": self.category_id,
            "amount": str(self.amount) if self.amount is not None else None,
            "note": self.note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name or len(name) > MoneyLimits.NAME_MAX_LENGTH:
        raise InvalidStateError("INVALID_NAME", "이름은 1~100자여야 합니다")
    return name


class TemplateStore:
    """거래 템플릿 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create_template(
        self,
        owner_id: str,
        name: str,
        tx_type: TransactionType | str,
        wallet_id: str | None = None,
        category_id: str | None = None,
        amount: Decimal | int | float | str | None = None,
        note: str | None = None,
    ) -> TransactionTemplate:
        """템플릿 생성

        이체 템플릿은 카테고리를 저장하지 않음.

        Raises:
            ConflictError: TEMPLATE_NAME_EXISTS
            NotFoundError: TEMPLATE_WALLET_NOT_FOUND, TEMPLATE_CATEGORY_NOT_FOUND
            InvalidStateError: TEMPLATE_CATEGORY_TYPE_MISMATCH, INVALID_AMOUNT
        """
        tx_type = TransactionType(tx_type)
        name = _validate_name(name)
        value = validate_amount(amount) if amount is not None else None
        if tx_type == TransactionType.TRANSFER:
            category_id = None

        template_id = str(uuid4())
        now = now_utc().isoformat()

        async with self.db.unit_of_work() as uow:
            await self._check_wallet(uow, owner_id, wallet_id)
            await self._check_category(uow, owner_id, category_id, tx_type)
            await self._ensure_unique_name(uow, owner_id, name)

            await uow.execute(
                """
                INSERT INTO transaction_template (
                    template_id, owner_id, name, type, wallet_id, category_id,
                    amount, note, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    template_id, owner_id, name, tx_type.value, wallet_id, category_id,
                    to_minor(value) if value is not None else None, note, now, now,
                ),
            )

        logger.info(f"Template created: {name}", extra={"template_id": template_id})
        return await self.get_template(owner_id, template_id)

    async def create_from_transaction(
        self,
        owner_id: str,
        transaction_id: str,
        name: str,
    ) -> TransactionTemplate:
        """기존 거래에서 템플릿 생성

        지갑은 첫 번째 분개의 지갑 (이체면 출금 지갑).

        Raises:
            NotFoundError: TRANSACTION_NOT_FOUND
            ConflictError: TEMPLATE_NAME_EXISTS
        """
        name = _validate_name(name)
        template_id = str(uuid4())
        now = now_utc().isoformat()

        async with self.db.unit_of_work() as uow:
            tx = await uow.fetchone_dict(
                """
                SELECT type, category_id, amount, note
                FROM ledger_transaction
                WHERE transaction_id = ? AND owner_id = ? AND deleted_at IS NULL
                """,
                (transaction_id, owner_id),
            )
            if tx is None:
                raise NotFoundError("TRANSACTION_NOT_FOUND", f"거래를 찾을 수 없습니다: {transaction_id}")

            first_entry = await uow.fetchone(
                "SELECT wallet_id FROM entry WHERE transaction_id = ? ORDER BY line_order LIMIT 1",
                (transaction_id,),
            )
            wallet_id = first_entry[0] if first_entry else None

            await self._ensure_unique_name(uow, owner_id, name)

            await uow.execute(
                """
                INSERT INTO transaction_template (
                    template_id, owner_id, name, type, wallet_id, category_id,
                    amount, note, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    template_id, owner_id, name, tx["type"], wallet_id,
                    tx["category_id"], tx["amount"], tx["note"], now, now,
                ),
            )

        logger.info(
            f"Template created from transaction: {name}",
            extra={"template_id": template_id, "transaction_id": transaction_id},
        )
        return await self.get_template(owner_id, template_id)

    async def get_template(self, owner_id: str, template_id: str) -> TransactionTemplate:
        """템플릿 조회

        Raises:
            NotFoundError: TEMPLATE_NOT_FOUND
        """
        row = await self.db.fetchone_dict(
            "SELECT * FROM transaction_template WHERE template_id = ? AND owner_id = ?",
            (template_id, owner_id),
        )
        if row is None:
            raise NotFoundError("TEMPLATE_NOT_FOUND", f"템플릿을 찾을 수 없습니다: {template_id}")
        return TransactionTemplate.from_row(row)

    async def list_templates(
        self,
        owner_id: str,
        tx_type: TransactionType | str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[TransactionTemplate], int]:
        """템플릿 목록 (유형순, 최신순)

        Returns:
            (템플릿 목록, 전체 개수)
        """
        where = "WHERE owner_id = ?"
        params: list[Any] = [owner_id]
        if tx_type is not None:
            where += " AND type = ?"
            params.append(TransactionType(tx_type).value)

        total_row = await self.db.fetchone(
            f"SELECT COUNT(*) FROM transaction_template {where}", tuple(params)
        )
        rows = await self.db.fetchall_dict(
            f"""
            SELECT * FROM transaction_template
            {where}
            ORDER BY type ASC, created_at DESC
            LIMIT ? OFFSET ?
            """,
            tuple(params) + (clamp_limit(limit), max(offset, 0)),
        )
        return [TransactionTemplate.from_row(row) for row in rows], (total_row[0] if total_row else 0)

    async def update_template(
        self,
        owner_id: str,
        template_id: str,
        name: str | None = None,
        wallet_id: Any = UNCHANGED,
        category_id: Any = UNCHANGED,
        amount: Any = UNCHANGED,
        note: Any = UNCHANGED,
    ) -> TransactionTemplate:
        """템플릿 수정 (유형은 변경 불가)

        Raises:
            NotFoundError: TEMPLATE_NOT_FOUND, TEMPLATE_WALLET_NOT_FOUND,
                TEMPLATE_CATEGORY_NOT_FOUND
            ConflictError: TEMPLATE_NAME_EXISTS
            InvalidStateError: TEMPLATE_CATEGORY_TYPE_MISMATCH
        """
        async with self.db.unit_of_work() as uow:
            row = await uow.fetchone_dict(
                "SELECT * FROM transaction_template WHERE template_id = ? AND owner_id = ?",
                (template_id, owner_id),
            )
            if row is None:
                raise NotFoundError("TEMPLATE_NOT_FOUND", f"템플릿을 찾을 수 없습니다: {template_id}")
            current = TransactionTemplate.from_row(row)

            fields: dict[str, Any] = {}

            if name is not None:
                new_name = _validate_name(name)
                if new_name != current.name:
                    await self._ensure_unique_name(uow, owner_id, new_name)
                fields["name"] = new_name

            if wallet_id is not UNCHANGED:
                await self._check_wallet(uow, owner_id, wallet_id)
                fields["wallet_id"] = wallet_id

            if category_id is not UNCHANGED:
                if current.type == TransactionType.TRANSFER:
                    category_id = None
                await self._check_category(uow, owner_id, category_id, current.type)
                fields["category_id"] = category_id

            if amount is not UNCHANGED:
                fields["amount"] = to_minor(validate_amount(amount)) if amount is not None else None

            if note is not UNCHANGED:
                fields["note"] = note

            if fields:
                fields["updated_at"] = now_utc().isoformat()
                assignments = ", ".join(f"{column} = ?" for column in fields)
                await uow.execute(
                    f"UPDATE transaction_template SET {assignments} WHERE template_id = ?",
                    tuple(fields.values()) + (template_id,),
                )

        return await self.get_template(owner_id, template_id)

    async def delete_template(self, owner_id: str, template_id: str) -> None:
        """템플릿 삭제 (하드 삭제)

        Raises:
            NotFoundError: TEMPLATE_NOT_FOUND
        """
        async with self.db.unit_of_work() as uow:
            cursor = await uow.execute(
                "DELETE FROM transaction_template WHERE template_id = ? AND owner_id = ?",
                (template_id, owner_id),
            )
            if cursor.rowcount != 1:
                raise NotFoundError("TEMPLATE_NOT_FOUND", f"템플릿을 찾을 수 없습니다: {template_id}")

        logger.info(f"Template deleted: {template_id}")

    async def build_intent(
        self,
        owner_id: str,
        template_id: str,
        transaction_date: datetime | date | None = None,
        **overrides: Any,
    ) -> TransactionIntent:
        """템플릿 + 덮어쓰기 값 → 거래 의도

        거래 일시는 템플릿에 저장되지 않으므로 매번 새로 지정.
        이체 템플릿의 wallet_id는 출금 지갑으로 사용.

        Args:
            owner_id: 소유자
            template_id: 템플릿 ID
            transaction_date: 거래 일시
            **overrides: wallet_id, category_id, amount, note, from_wallet_id, to_wallet_id

        Raises:
            NotFoundError: TEMPLATE_NOT_FOUND
            InvalidStateError: INVALID_AMOUNT (금액이 템플릿/덮어쓰기 모두 없음)
        """
        template = await self.get_template(owner_id, template_id)

        values: dict[str, Any] = {
            "wallet_id": template.wallet_id,
            "category_id": template.category_id,
            "amount": template.amount,
            "note": template.note,
        }
        if template.type == TransactionType.TRANSFER:
            values["from_wallet_id"] = template.wallet_id
            values["wallet_id"] = None
        values.update({k: v for k, v in overrides.items() if v is not None})

        if values.get("amount") is None:
            raise InvalidStateError("INVALID_AMOUNT", "금액이 지정되지 않았습니다")

        return build_intent(template.type, transaction_date=transaction_date, **values)

    # -------------------------------------------------------------------------
    # 내부 검증
    # -------------------------------------------------------------------------

    async def _ensure_unique_name(self, uow: UnitOfWork, owner_id: str, name: str) -> None:
        existing = await uow.fetchone(
            "SELECT 1 FROM transaction_template WHERE owner_id = ? AND name = ?",
            (owner_id, name),
        )
        if existing is not None:
            raise ConflictError("TEMPLATE_NAME_EXISTS", f"이미 존재하는 템플릿 이름입니다: {name}")

    async def _check_wallet(self, uow: UnitOfWork, owner_id: str, wallet_id: str | None) -> None:
        if wallet_id is None:
            return
        row = await uow.fetchone(
            "SELECT 1 FROM wallet WHERE wallet_id = ? AND owner_id = ? AND is_archived = 0",
            (wallet_id, owner_id),
        )
        if row is None:
            raise NotFoundError("TEMPLATE_WALLET_NOT_FOUND", f"지갑을 찾을 수 없습니다: {wallet_id}")

    async def _check_category(
        self,
        uow: UnitOfWork,
        owner_id: str,
        category_id: str | None,
        tx_type: TransactionType,
    ) -> None:
        if category_id is None or tx_type == TransactionType.TRANSFER:
            return
        row = await uow.fetchone(
            "SELECT type FROM category WHERE category_id = ? AND owner_id = ?",
            (category_id, owner_id),
        )
        if row is None:
            raise NotFoundError(
                "TEMPLATE_CATEGORY_NOT_FOUND",
                f"카테고리를 찾을 수 없습니다: {category_id}",
            )
        if row[0] != tx_type.value:
            raise InvalidStateError(
                "TEMPLATE_CATEGORY_TYPE_MISMATCH",
                f"카테고리 유형이 템플릿 유형({tx_type.value})과 다릅니다",
            )
