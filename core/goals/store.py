"""
GoalStore - 목표/마일스톤 저장소

연간 목표 아래 월간 하위 목표를 두는 2단계 계층.
하위 목표가 바뀌면 GoalAggregator로 상위 목표를 재계산.
"""

import logging
from decimal import Decimal
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter, UnitOfWork
from core.errors import InvalidStateError, NotFoundError
from core.goals.aggregator import GoalAggregator
from core.goals.types import Goal, Milestone
from core.ledger.store import clamp_limit
from core.types import GoalPeriod, GoalPriority, GoalStatus, GoalTracking
from core.utils.money import to_decimal
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)

# 수정 가능한 목표 컬럼
_GOAL_FIELDS = (
    "title", "description", "tracking_type", "target_value", "current_value",
    "unit", "status", "priority", "month", "year", "auto_calculate",
)


def _value(value: Any) -> str | None:
    """목표 값 → 저장용 TEXT"""
    if value is None:
        return None
    return str(to_decimal(value))


class GoalStore:
    """목표 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.aggregator = GoalAggregator(db)

    async def create_goal(
        self,
        owner_id: str,
        title: str,
        period_type: GoalPeriod | str,
        tracking_type: GoalTracking | str = GoalTracking.CHECKBOX,
        description: str | None = None,
        target_value: Decimal | int | float | str | None = None,
        current_value: Decimal | int | float | str = 0,
        unit: str | None = None,
        parent_goal_id: str | None = None,
        auto_calculate: bool = False,
        status: GoalStatus | str = GoalStatus.PENDING,
        priority: GoalPriority | str = GoalPriority.MEDIUM,
        month: int | None = None,
        year: int | None = None,
        milestones: list[dict[str, Any]] | None = None,
        create_monthly_sub_goals: bool = False,
        monthly_target_value: Decimal | int | float | str | None = None,
    ) -> Goal:
        """목표 생성

        Args:
            milestones: [{"title", "description", "target_value", "current_value",
                "is_completed", "order"}] 목록
            create_monthly_sub_goals: 연간 목표에 1~12월 하위 목표 생성
                (monthly_target_value와 year 필요)

        Raises:
            NotFoundError: GOAL_NOT_FOUND (상위 목표)
            InvalidStateError: INVALID_PARENT_GOAL_TYPE, INVALID_NAME
        """
        period_type = GoalPeriod(period_type)
        tracking_type = GoalTracking(tracking_type)
        title = (title or "").strip()
        if not title:
            raise InvalidStateError("INVALID_NAME", "목표 제목이 필요합니다")

        goal_id = str(uuid4())

        async with self.db.unit_of_work() as uow:
            if parent_goal_id is not None:
                parent = await uow.fetchone(
                    "SELECT period_type FROM goal WHERE goal_id = ? AND owner_id = ?",
                    (parent_goal_id, owner_id),
                )
                if parent is None:
                    raise NotFoundError("GOAL_NOT_FOUND", f"상위 목표를 찾을 수 없습니다: {parent_goal_id}")
                if parent[0] != GoalPeriod.YEARLY.value or period_type != GoalPeriod.MONTHLY:
                    raise InvalidStateError(
                        "INVALID_PARENT_GOAL_TYPE",
                        "월간 목표만 연간 목표의 하위 목표가 될 수 있습니다",
                    )

            await self._insert_goal(
                uow,
                goal_id=goal_id,
                owner_id=owner_id,
                title=title,
                description=description,
                period_type=period_type,
                tracking_type=tracking_type,
                target_value=_value(target_value),
                current_value=_value(current_value) or "0",
                unit=unit,
                parent_goal_id=parent_goal_id,
                auto_calculate=auto_calculate,
                status=GoalStatus(status),
                priority=GoalPriority(priority),
                month=month,
                year=year,
            )

            for index, m in enumerate(milestones or []):
                await self._insert_milestone(
                    uow,
                    goal_id=goal_id,
                    title=m["title"],
                    description=m.get("description"),
                    target_value=_value(m.get("target_value")),
                    current_value=_value(m.get("current_value")) or "0",
                    is_completed=bool(m.get("is_completed", False)),
                    sort_order=m["order"] if m.get("order") is not None else index,
                )

            if (
                period_type == GoalPeriod.YEARLY
                and create_monthly_sub_goals
                and monthly_target_value is not None
                and year is not None
            ):
                for m in range(1, 13):
                    await self._insert_goal(
                        uow,
                        goal_id=str(uuid4()),
                        owner_id=owner_id,
                        title=f"{title} - {m}월",
                        description=None,
                        period_type=GoalPeriod.MONTHLY,
                        tracking_type=tracking_type,
                        target_value=_value(monthly_target_value),
                        current_value="0",
                        unit=unit,
                        parent_goal_id=goal_id,
                        auto_calculate=True,
                        status=GoalStatus.PENDING,
                        priority=GoalPriority(priority),
                        month=m,
                        year=year,
                    )

        logger.info(
            f"Goal created: {title}",
            extra={"goal_id": goal_id, "owner_id": owner_id, "period": period_type.value},
        )

        if parent_goal_id is not None:
            await self.aggregator.recalculate_goal(parent_goal_id)

        return await self.get_goal(owner_id, goal_id)

    async def get_goal(self, owner_id: str, goal_id: str) -> Goal:
        """목표 조회 (마일스톤, 하위 목표 포함)

        Raises:
            NotFoundError: GOAL_NOT_FOUND
        """
        row = await self.db.fetchone_dict(
            "SELECT * FROM goal WHERE goal_id = ? AND owner_id = ?",
            (goal_id, owner_id),
        )
        if row is None:
            raise NotFoundError("GOAL_NOT_FOUND", f"목표를 찾을 수 없습니다: {goal_id}")
        return await self._load_relations(Goal.from_row(row))

    async def list_goals(
        self,
        owner_id: str,
        period_type: GoalPeriod | str | None = None,
        status: GoalStatus | str | None = None,
        priority: GoalPriority | str | None = None,
        year: int | None = None,
        month: int | None = None,
        parent_goal_id: str | None = None,
        top_level_only: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[Goal], int]:
        """목표 목록

        Returns:
            (목표 목록, 전체 개수)
        """
        where = "WHERE owner_id = ?"
        params: list[Any] = [owner_id]

        filters = {
            "period_type": GoalPeriod(period_type).value if period_type else None,
            "status": GoalStatus(status).value if status else None,
            "priority": GoalPriority(priority).value if priority else None,
            "year": year,
            "month": month,
            "parent_goal_id": parent_goal_id,
        }
        for column, value in filters.items():
            if value is not None:
                where += f" AND {column} = ?"
                params.append(value)
        if top_level_only and parent_goal_id is None:
            where += " AND parent_goal_id IS NULL"

        total_row = await self.db.fetchone(f"SELECT COUNT(*) FROM goal {where}", tuple(params))
        rows = await self.db.fetchall_dict(
            f"""
            SELECT * FROM goal {where}
            ORDER BY
                CASE status WHEN 'pending' THEN 0 WHEN 'in_progress' THEN 1 ELSE 2 END,
                CASE priority WHEN 'high' THEN 0 WHEN 'medium' THEN 1 ELSE 2 END,
                created_at DESC
            LIMIT ? OFFSET ?
            """,
            tuple(params) + (clamp_limit(limit), max(offset, 0)),
        )

        goals = [await self._load_relations(Goal.from_row(row)) for row in rows]
        return goals, (total_row[0] if total_row else 0)

    async def update_goal(self, owner_id: str, goal_id: str, **changes: Any) -> Goal:
        """목표 수정

        값 추적 목표에서 current_value가 바뀌면 상태 자동 갱신
        (target 이상이면 completed, 0 초과면 in_progress).
        수정 후 상위 목표와 (auto_calculate인 경우) 자기 자신을 재계산.

        Args:
            **changes: _GOAL_FIELDS 중 변경할 값

        Raises:
            NotFoundError: GOAL_NOT_FOUND
        """
        unknown = set(changes) - set(_GOAL_FIELDS)
        if unknown:
            raise InvalidStateError("INVALID_FIELD", f"수정할 수 없는 필드: {sorted(unknown)}")

        async with self.db.unit_of_work() as uow:
            row = await uow.fetchone_dict(
                "SELECT * FROM goal WHERE goal_id = ? AND owner_id = ?",
                (goal_id, owner_id),
            )
            if row is None:
                raise NotFoundError("GOAL_NOT_FOUND", f"목표를 찾을 수 없습니다: {goal_id}")
            current = Goal.from_row(row)

            fields: dict[str, Any] = {}
            for column, value in changes.items():
                if value is None and column in ("title", "tracking_type", "status", "priority", "auto_calculate"):
                    continue
                if column in ("target_value", "current_value"):
                    value = _value(value) if value is not None else ("0" if column == "current_value" else None)
                elif column == "tracking_type":
                    value = GoalTracking(value).value
                elif column == "status":
                    value = GoalStatus(value).value
                elif column == "priority":
                    value = GoalPriority(value).value
                elif column == "auto_calculate":
                    value = 1 if value else 0
                fields[column] = value

            tracking = GoalTracking(fields.get("tracking_type", current.tracking_type.value))
            if "current_value" in fields and tracking == GoalTracking.VALUE:
                target = fields["target_value"] if "target_value" in fields else current.target_value
                value = Decimal(fields["current_value"])
                if target is not None and value >= Decimal(str(target)):
                    fields["status"] = GoalStatus.COMPLETED.value
                elif value > 0:
                    fields["status"] = GoalStatus.IN_PROGRESS.value

            if fields:
                fields["updated_at"] = now_utc().isoformat()
                assignments = ", ".join(f"{column} = ?" for column in fields)
                await uow.execute(
                    f"UPDATE goal SET {assignments} WHERE goal_id = ?",
                    tuple(fields.values()) + (goal_id,),
                )

        logger.info(f"Goal updated: {goal_id}", extra={"fields": sorted(changes)})

        if current.parent_goal_id is not None:
            await self.aggregator.recalculate_goal(current.parent_goal_id)
        await self.aggregator.recalculate_goal(goal_id)

        return await self.get_goal(owner_id, goal_id)

    async def delete_goal(self, owner_id: str, goal_id: str) -> None:
        """목표 삭제 (하드 삭제, 마일스톤 함께 삭제)

        Raises:
            NotFoundError: GOAL_NOT_FOUND
            InvalidStateError: GOAL_HAS_SUB_GOALS
        """
        async with self.db.unit_of_work() as uow:
            row = await uow.fetchone(
                "SELECT parent_goal_id FROM goal WHERE goal_id = ? AND owner_id = ?",
                (goal_id, owner_id),
            )
            if row is None:
                raise NotFoundError("GOAL_NOT_FOUND", f"목표를 찾을 수 없습니다: {goal_id}")
            parent_goal_id = row[0]

            if await uow.fetchone("SELECT 1 FROM goal WHERE parent_goal_id = ? LIMIT 1", (goal_id,)):
                raise InvalidStateError("GOAL_HAS_SUB_GOALS", "하위 목표가 있는 목표는 삭제할 수 없습니다")

            await uow.execute("DELETE FROM milestone WHERE goal_id = ?", (goal_id,))
            await uow.execute("DELETE FROM goal WHERE goal_id = ?", (goal_id,))

        logger.info(f"Goal deleted: {goal_id}")

        if parent_goal_id is not None:
            await self.aggregator.recalculate_goal(parent_goal_id)

    async def get_stats(self, owner_id: str) -> dict[str, Any]:
        """목표 통계 (기간별, 상태별 개수, 완료율)"""
        by_period = dict(await self.db.fetchall(
            "SELECT period_type, COUNT(*) FROM goal WHERE owner_id = ? GROUP BY period_type",
            (owner_id,),
        ))
        by_status = dict(await self.db.fetchall(
            "SELECT status, COUNT(*) FROM goal WHERE owner_id = ? GROUP BY status",
            (owner_id,),
        ))
        total = sum(by_period.values())
        completed = by_status.get(GoalStatus.COMPLETED.value, 0)
        return {
            "by_period": by_period,
            "by_status": by_status,
            "total_goals": total,
            "completed_goals": completed,
            "completion_rate": round(completed * 100 / total) if total else 0,
        }

    # -------------------------------------------------------------------------
    # 마일스톤
    # -------------------------------------------------------------------------

    async def create_milestone(
        self,
        owner_id: str,
        goal_id: str,
        title: str,
        description: str | None = None,
        target_value: Decimal | int | float | str | None = None,
        current_value: Decimal | int | float | str = 0,
        order: int = 0,
    ) -> Milestone:
        """마일스톤 생성

        Raises:
            NotFoundError: GOAL_NOT_FOUND
        """
        async with self.db.unit_of_work() as uow:
            if await uow.fetchone(
                "SELECT 1 FROM goal WHERE goal_id = ? AND owner_id = ?", (goal_id, owner_id)
            ) is None:
                raise NotFoundError("GOAL_NOT_FOUND", f"목표를 찾을 수 없습니다: {goal_id}")

            milestone_id = await self._insert_milestone(
                uow,
                goal_id=goal_id,
                title=title,
                description=description,
                target_value=_value(target_value),
                current_value=_value(current_value) or "0",
                is_completed=False,
                sort_order=order,
            )
            row = await uow.fetchone_dict("SELECT * FROM milestone WHERE milestone_id = ?", (milestone_id,))

        return Milestone.from_row(row)  # type: ignore[arg-type]

    async def update_milestone(
        self,
        owner_id: str,
        milestone_id: str,
        title: str | None = None,
        description: str | None = None,
        target_value: Decimal | int | float | str | None = None,
        current_value: Decimal | int | float | str | None = None,
        is_completed: bool | None = None,
        order: int | None = None,
    ) -> Milestone:
        """마일스톤 수정

        완료 여부가 바뀐 뒤 목표의 모든 마일스톤이 완료되면 목표를 completed로 변경.

        Raises:
            NotFoundError: MILESTONE_NOT_FOUND
        """
        async with self.db.unit_of_work() as uow:
            row = await uow.fetchone(
                """
                SELECT m.goal_id FROM milestone m
                JOIN goal g ON g.goal_id = m.goal_id
                WHERE m.milestone_id = ? AND g.owner_id = ?
                """,
                (milestone_id, owner_id),
            )
            if row is None:
                raise NotFoundError("MILESTONE_NOT_FOUND", f"마일스톤을 찾을 수 없습니다: {milestone_id}")
            goal_id = row[0]

            fields: dict[str, Any] = {}
            if title is not None:
                fields["title"] = title
            if description is not None:
                fields["description"] = description
            if target_value is not None:
                fields["target_value"] = _value(target_value)
            if current_value is not None:
                fields["current_value"] = _value(current_value)
            if is_completed is not None:
                fields["is_completed"] = 1 if is_completed else 0
            if order is not None:
                fields["sort_order"] = order

            if fields:
                assignments = ", ".join(f"{column} = ?" for column in fields)
                await uow.execute(
                    f"UPDATE milestone SET {assignments} WHERE milestone_id = ?",
                    tuple(fields.values()) + (milestone_id,),
                )

            if is_completed is not None:
                counts = await uow.fetchone(
                    "SELECT COUNT(*), COALESCE(SUM(is_completed), 0) FROM milestone WHERE goal_id = ?",
                    (goal_id,),
                )
                if counts and counts[0] > 0 and counts[0] == counts[1]:
                    await uow.execute(
                        "UPDATE goal SET status = ?, updated_at = ? WHERE goal_id = ?",
                        (GoalStatus.COMPLETED.value, now_utc().isoformat(), goal_id),
                    )
                    logger.info(f"All milestones completed: {goal_id}")

            updated = await uow.fetchone_dict(
                "SELECT * FROM milestone WHERE milestone_id = ?", (milestone_id,)
            )

        return Milestone.from_row(updated)  # type: ignore[arg-type]

    async def delete_milestone(self, owner_id: str, milestone_id: str) -> None:
        """마일스톤 삭제

        Raises:
            NotFoundError: MILESTONE_NOT_FOUND
        """
        async with self.db.unit_of_work() as uow:
            cursor = await uow.execute(
                """
                DELETE FROM milestone
                WHERE milestone_id = ?
                  AND goal_id IN (SELECT goal_id FROM goal WHERE owner_id = ?)
                """,
                (milestone_id, owner_id),
            )
            if cursor.rowcount != 1:
                raise NotFoundError("MILESTONE_NOT_FOUND", f"마일스톤을 찾을 수 없습니다: {milestone_id}")

    # -------------------------------------------------------------------------
    # 내부 헬퍼
    # -------------------------------------------------------------------------

    async def _load_relations(self, goal: Goal) -> Goal:
        milestone_rows = await self.db.fetchall_dict(
            "SELECT * FROM milestone WHERE goal_id = ? ORDER BY sort_order",
            (goal.goal_id,),
        )
        goal.milestones = [Milestone.from_row(r) for r in milestone_rows]

        sub_rows = await self.db.fetchall_dict(
            "SELECT * FROM goal WHERE parent_goal_id = ? ORDER BY month, created_at",
            (goal.goal_id,),
        )
        goal.sub_goals = [Goal.from_row(r) for r in sub_rows]
        return goal

    async def _insert_goal(
        self,
        uow: UnitOfWork,
        *,
        goal_id: str,
        owner_id: str,
        title: str,
        description: str | None,
        period_type: GoalPeriod,
        tracking_type: GoalTracking,
        target_value: str | None,
        current_value: str,
        unit: str | None,
        parent_goal_id: str | None,
        auto_calculate: bool,
        status: GoalStatus,
        priority: GoalPriority,
        month: int | None,
        year: int | None,
    ) -> None:
        now = now_utc().isoformat()
        await uow.execute(
            """
            INSERT INTO goal (
                goal_id, owner_id, title, description, period_type, tracking_type,
                target_value, current_value, unit, parent_goal_id, auto_calculate,
                status, priority, month, year, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                goal_id, owner_id, title, description, period_type.value,
                tracking_type.value, target_value, current_value, unit,
                parent_goal_id, 1 if auto_calculate else 0, status.value,
                priority.value, month, year, now, now,
            ),
        )

    async def _insert_milestone(
        self,
        uow: UnitOfWork,
        *,
        goal_id: str,
        title: str,
        description: str | None,
        target_value: str | None,
        current_value: str,
        is_completed: bool,
        sort_order: int,
    ) -> str:
        milestone_id = str(uuid4())
        await uow.execute(
            """
            INSERT INTO milestone (
                milestone_id, goal_id, title, description, target_value,
                current_value, is_completed, sort_order, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                milestone_id, goal_id, title, description, target_value,
                current_value, 1 if is_completed else 0, sort_order,
                now_utc().isoformat(),
            ),
        )
        return milestone_id
