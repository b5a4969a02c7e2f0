"""
CategoryStore - 카테고리 저장소

수입/지출 분류 태그. 같은 유형의 부모만 가질 수 있고 순환 참조 불가.
Ledger 잔액 불변식과는 무관.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter, UnitOfWork
from core.constants import MoneyLimits
from core.errors import ConflictError, InvalidStateError, NotFoundError
from core.types import CategoryType
from core.utils.timezone import now_utc, parse_iso

logger = logging.getLogger(__name__)

# 부모 변경 없음을 나타내는 표식 (None은 "부모 제거"를 의미)
UNCHANGED: Any = object()


@dataclass
class Category:
    """카테고리"""

    category_id: str
    owner_id: str
    type: CategoryType
    name: str
    parent_id: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Category":
        """DB 행에서 생성"""
        return cls(
            category_id=row["category_id"],
            owner_id=row["owner_id"],
            type=CategoryType(row["type"]),
            name=row["name"],
            parent_id=row.get("parent_id"),
            created_at=parse_iso(row.get("created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환"""
        return {
            "category_id": self.category_id,
            "owner_id": self.owner_id,
            "type": self.type.value,
            "name": self.name,
            "parent_id": self.parent_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class CategoryPreset:
    """카테고리 프리셋 (새 사용자용 기본 분류)"""

    preset_id: str
    type: CategoryType
    name: str
    sort_order: int

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리 변환"""
        return {
            "preset_id": self.preset_id,
            "type": self.type.value,
            "name": self.name,
            "sort_order": self.sort_order,
        }


CATEGORY_PRESETS: tuple[CategoryPreset, ...] = (
    CategoryPreset("income-salary", CategoryType.INCOME, "Salary", 1),
    CategoryPreset("income-bonus", CategoryType.INCOME, "Bonus", 2),
    CategoryPreset("income-investment", CategoryType.INCOME, "Investment", 3),
    CategoryPreset("income-gift", CategoryType.INCOME, "Gift", 4),
    CategoryPreset("income-other", CategoryType.INCOME, "Other income", 99),
    CategoryPreset("expense-food", CategoryType.EXPENSE, "Food", 1),
    CategoryPreset("expense-transport", CategoryType.EXPENSE, "Transport", 2),
    CategoryPreset("expense-shopping", CategoryType.EXPENSE, "Shopping", 3),
    CategoryPreset("expense-bills", CategoryType.EXPENSE, "Bills", 4),
    CategoryPreset("expense-health", CategoryType.EXPENSE, "Health", 5),
    CategoryPreset("expense-entertainment", CategoryType.EXPENSE, "Entertainment", 6),
    CategoryPreset("expense-education", CategoryType.EXPENSE, "Education", 7),
    CategoryPreset("expense-other", CategoryType.EXPENSE, "Other expense", 99),
)

_PRESETS_BY_ID = {preset.preset_id: preset for preset in CATEGORY_PRESETS}


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name or len(name) > MoneyLimits.NAME_MAX_LENGTH:
        raise InvalidStateError("INVALID_NAME", "이름은 1~100자여야 합니다")
    return name


class CategoryStore:
    """카테고리 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get_category(self, owner_id: str, category_id: str) -> Category | None:
        """카테고리 조회 (다른 사용자 소유면 None)"""
        row = await self.db.fetchone_dict(
            "SELECT * FROM category WHERE category_id = ? AND owner_id = ?",
            (category_id, owner_id),
        )
        return Category.from_row(row) if row else None

    async def list_categories(
        self,
        owner_id: str,
        category_type: CategoryType | None = None,
    ) -> list[Category]:
        """카테고리 목록 (유형, 이름 순)"""
        sql = "SELECT * FROM category WHERE owner_id = ?"
        params: list[Any] = [owner_id]
        if category_type is not None:
            sql += " AND type = ?"
            params.append(CategoryType(category_type).value)
        sql += " ORDER BY type, name"

        rows = await self.db.fetchall_dict(sql, tuple(params))
        return [Category.from_row(row) for row in rows]

    async def create_category(
        self,
        owner_id: str,
        category_type: CategoryType | str,
        name: str,
        parent_id: str | None = None,
    ) -> Category:
        """카테고리 생성

        Raises:
            ConflictError: CATEGORY_NAME_EXISTS
            NotFoundError: PARENT_CATEGORY_NOT_FOUND
            InvalidStateError: INVALID_PARENT_TYPE
        """
        category_type = CategoryType(category_type)
        name = _validate_name(name)
        category_id = str(uuid4())

        async with self.db.unit_of_work() as uow:
            await self._ensure_unique_name(uow, owner_id, category_type, name)

            if parent_id is not None:
                await self._check_parent(uow, owner_id, category_type, parent_id)

            await uow.execute(
                """
                INSERT INTO category (category_id, owner_id, type, name, parent_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (category_id, owner_id, category_type.value, name, parent_id,
                 now_utc().isoformat()),
            )

        logger.info(
            f"Category created: {category_id}",
            extra={"owner_id": owner_id, "type": category_type.value},
        )
        return await self.get_category(owner_id, category_id)  # type: ignore[return-value]

    async def update_category(
        self,
        owner_id: str,
        category_id: str,
        name: str | None = None,
        parent_id: Any = UNCHANGED,
    ) -> Category:
        """카테고리 수정 (이름, 부모)

        Args:
            parent_id: 새 부모 ID (None이면 부모 제거, 생략하면 변경 없음)

        Raises:
            NotFoundError: CATEGORY_NOT_FOUND, PARENT_CATEGORY_NOT_FOUND
            ConflictError: CATEGORY_NAME_EXISTS
            InvalidStateError: INVALID_PARENT_TYPE, CIRCULAR_CATEGORY_PARENT
        """
        async with self.db.unit_of_work() as uow:
            row = await uow.fetchone_dict(
                "SELECT * FROM category WHERE category_id = ? AND owner_id = ?",
                (category_id, owner_id),
            )
            if row is None:
                raise NotFoundError("CATEGORY_NOT_FOUND", f"카테고리를 찾을 수 없습니다: {category_id}")
            current = Category.from_row(row)

            new_name = current.name
            if name is not None:
                new_name = _validate_name(name)
                if new_name != current.name:
                    await self._ensure_unique_name(uow, owner_id, current.type, new_name)

            new_parent = current.parent_id
            if parent_id is not UNCHANGED:
                new_parent = parent_id
                if new_parent is not None:
                    await self._check_parent(uow, owner_id, current.type, new_parent)
                    await self._check_not_circular(uow, category_id, new_parent)

            await uow.execute(
                "UPDATE category SET name = ?, parent_id = ? WHERE category_id = ?",
                (new_name, new_parent, category_id),
            )

        return await self.get_category(owner_id, category_id)  # type: ignore[return-value]

    async def delete_category(self, owner_id: str, category_id: str) -> None:
        """카테고리 삭제 (하드 삭제)

        Raises:
            NotFoundError: CATEGORY_NOT_FOUND
            InvalidStateError: CATEGORY_HAS_TRANSACTIONS, CATEGORY_HAS_CHILDREN
        """
        async with self.db.unit_of_work() as uow:
            row = await uow.fetchone(
                "SELECT 1 FROM category WHERE category_id = ? AND owner_id = ?",
                (category_id, owner_id),
            )
            if row is None:
                raise NotFoundError("CATEGORY_NOT_FOUND", f"카테고리를 찾을 수 없습니다: {category_id}")

            if await uow.fetchone(
                "SELECT 1 FROM ledger_transaction WHERE category_id = ? LIMIT 1",
                (category_id,),
            ):
                raise InvalidStateError("CATEGORY_HAS_TRANSACTIONS", "거래가 있는 카테고리입니다")

            if await uow.fetchone(
                "SELECT 1 FROM category WHERE parent_id = ? LIMIT 1",
                (category_id,),
            ):
                raise InvalidStateError("CATEGORY_HAS_CHILDREN", "하위 카테고리가 있습니다")

            await uow.execute("DELETE FROM category WHERE category_id = ?", (category_id,))

        logger.info(f"Category deleted: {category_id}")

    # -------------------------------------------------------------------------
    # 프리셋
    # -------------------------------------------------------------------------

    def list_presets(self, category_type: CategoryType | str | None = None) -> list[CategoryPreset]:
        """프리셋 목록 (유형, 정렬 순서 순)"""
        presets = list(CATEGORY_PRESETS)
        if category_type is not None:
            category_type = CategoryType(category_type)
            presets = [p for p in presets if p.type == category_type]
        return sorted(presets, key=lambda p: (p.type.value, p.sort_order))

    async def create_from_preset(
        self,
        owner_id: str,
        preset_id: str,
        custom_name: str | None = None,
    ) -> Category:
        """프리셋으로 카테고리 생성

        Args:
            owner_id: 소유자
            preset_id: 프리셋 ID
            custom_name: 이름 (None이면 프리셋 이름 사용)

        Raises:
            NotFoundError: CATEGORY_TEMPLATE_NOT_FOUND
            ConflictError: CATEGORY_NAME_EXISTS
        """
        preset = _PRESETS_BY_ID.get(preset_id)
        if preset is None:
            raise NotFoundError(
                "CATEGORY_TEMPLATE_NOT_FOUND",
                f"카테고리 프리셋을 찾을 수 없습니다: {preset_id}",
            )
        name = custom_name if custom_name is not None else preset.name
        return await self.create_category(owner_id, preset.type, name)

    async def seed_from_presets(self, owner_id: str) -> int:
        """모든 프리셋을 사용자 카테고리로 생성

        같은 유형에 같은 이름이 이미 있으면 건너뜀.

        Returns:
            새로 생성한 카테고리 수
        """
        created = 0
        async with self.db.unit_of_work() as uow:
            for preset in self.list_presets():
                existing = await uow.fetchone(
                    "SELECT 1 FROM category WHERE owner_id = ? AND type = ? AND name = ?",
                    (owner_id, preset.type.value, preset.name),
                )
                if existing is not None:
                    continue
                await uow.execute(
                    """
                    INSERT INTO category (category_id, owner_id, type, name, parent_id, created_at)
                    VALUES (?, ?, ?, ?, NULL, ?)
                    """,
                    (str(uuid4()), owner_id, preset.type.value, preset.name,
                     now_utc().isoformat()),
                )
                created += 1

        logger.info(f"Categories seeded: {created}", extra={"owner_id": owner_id})
        return created

    # -------------------------------------------------------------------------
    # 내부 검증
    # -------------------------------------------------------------------------

    async def _ensure_unique_name(
        self,
        uow: UnitOfWork,
        owner_id: str,
        category_type: CategoryType,
        name: str,
    ) -> None:
        existing = await uow.fetchone(
            "SELECT 1 FROM category WHERE owner_id = ? AND type = ? AND name = ?",
            (owner_id, category_type.value, name),
        )
        if existing is not None:
            raise ConflictError("CATEGORY_NAME_EXISTS", f"이미 존재하는 카테고리 이름입니다: {name}")

    async def _check_parent(
        self,
        uow: UnitOfWork,
        owner_id: str,
        category_type: CategoryType,
        parent_id: str,
    ) -> None:
        parent = await uow.fetchone(
            "SELECT type FROM category WHERE category_id = ? AND owner_id = ?",
            (parent_id, owner_id),
        )
        if parent is None:
            raise NotFoundError("PARENT_CATEGORY_NOT_FOUND", f"상위 카테고리를 찾을 수 없습니다: {parent_id}")
        if parent[0] != category_type.value:
            raise InvalidStateError("INVALID_PARENT_TYPE", "상위 카테고리는 같은 유형이어야 합니다")

    async def _check_not_circular(
        self,
        uow: UnitOfWork,
        category_id: str,
        new_parent_id: str,
    ) -> None:
        """새 부모에서 루트까지 거슬러 올라가며 자기 자신이 나오면 순환"""
        cursor: str | None = new_parent_id
        visited: set[str] = set()
        while cursor is not None:
            if cursor == category_id or cursor in visited:
                raise InvalidStateError(
                    "CIRCULAR_CATEGORY_PARENT",
                    "카테고리 부모 관계가 순환합니다",
                )
            visited.add(cursor)
            row = await uow.fetchone(
                "SELECT parent_id FROM category WHERE category_id = ?",
                (cursor,),
            )
            cursor = row[0] if row else None
