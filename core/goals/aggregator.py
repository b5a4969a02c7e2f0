"""
목표 자동 집계

auto_calculate가 설정된 상위 목표의 current_value를 하위 목표 합계로 다시 계산.
원장과 독립적이며 최선 노력(best effort) 재계산.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from core.goals.types import Goal, Milestone
from core.types import GoalStatus, GoalTracking
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)


def compute_progress(
    total: Decimal,
    tracking_type: GoalTracking,
    target_value: Decimal | None,
    milestones: list[Milestone],
) -> int:
    """진행률 (0~100 정수)

    마일스톤이 있으면 완료 비율, 없으면 값 추적 목표의 total / target (100 상한).
    """
    if milestones:
        done = sum(1 for m in milestones if m.is_completed)
        ratio = Decimal(done) / Decimal(len(milestones)) * _HUNDRED
        return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))

    if tracking_type == GoalTracking.VALUE and target_value:
        ratio = total / target_value * _HUNDRED
        return min(100, int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP)))

    return 0


class GoalAggregator:
    """목표 자동 집계기

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def recalculate_goal(self, goal_id: str) -> Goal | None:
        """하위 목표 합계로 목표 재계산

        Returns:
            갱신된 Goal, 재계산 대상이 아니면 None
            (목표 없음, auto_calculate 꺼짐, 하위 목표 없음)
        """
        async with self.db.unit_of_work() as uow:
            row = await uow.fetchone_dict("SELECT * FROM goal WHERE goal_id = ?", (goal_id,))
            if row is None:
                return None
            goal = Goal.from_row(row)
            if not goal.auto_calculate:
                return None

            child_rows = await uow.fetchall(
                "SELECT current_value FROM goal WHERE parent_goal_id = ?",
                (goal_id,),
            )
            if not child_rows:
                return None

            total = sum((Decimal(str(r[0] or "0")) for r in child_rows), Decimal("0"))

            milestone_rows = await uow.fetchall(
                "SELECT milestone_id, goal_id, title, is_completed FROM milestone WHERE goal_id = ?",
                (goal_id,),
            )
            milestones = [
                Milestone(milestone_id=r[0], goal_id=r[1], title=r[2], is_completed=bool(r[3]))
                for r in milestone_rows
            ]

            progress = compute_progress(total, goal.tracking_type, goal.target_value, milestones)

            status = goal.status
            if progress >= 100:
                status = GoalStatus.COMPLETED
            elif total > 0:
                status = GoalStatus.IN_PROGRESS

            await uow.execute(
                "UPDATE goal SET current_value = ?, status = ?, updated_at = ? WHERE goal_id = ?",
                (str(total), status.value, now_utc().isoformat(), goal_id),
            )

        goal.current_value = total
        goal.status = status
        goal.milestones = milestones

        logger.info(
            f"Goal recalculated: {total} ({progress}%)",
            extra={"goal_id": goal_id, "status": status.value},
        )
        return goal
