"""
목표 타입 정의

Goal / Milestone 데이터 구조.
값(target_value, current_value)은 Decimal이며 DB에는 TEXT로 저장.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.types import GoalPeriod, GoalPriority, GoalStatus, GoalTracking
from core.utils.timezone import parse_iso


def _dec(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


@dataclass
class Milestone:
    """목표 마일스톤"""

    milestone_id: str
    goal_id: str
    title: str
    description: str | None = None
    target_value: Decimal | None = None
    current_value: Decimal = Decimal("0")
    is_completed: bool = False
    sort_order: int = 0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Milestone":
        """DB 행에서 생성"""
        return cls(
            milestone_id=row["milestone_id"],
            goal_id=row["goal_id"],
            title=row["title"],
            description=row.get("description"),
            target_value=_dec(row.get("target_value")),
            current_value=_dec(row.get("current_value")) or Decimal("0"),
            is_completed=bool(row["is_completed"]),
            sort_order=row.get("sort_order", 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "milestone_id": self.milestone_id,
            "goal_id": self.goal_id,
            "title": self.title,
            "description": self.description,
            "target_value": str(self.target_value) if self.target_value is not None else None,
            "current_value": str(self.current_value),
            "is_completed": self.is_completed,
            "order": self.sort_order,
        }


@dataclass
class Goal:
    """목표

    Attributes:
        period_type: yearly / monthly (월간 목표만 연간 목표의 하위가 될 수 있음)
        tracking_type: checkbox / value
        auto_calculate: True면 current_value = Σ 하위 목표 current_value
        milestones: 정렬된 마일스톤 목록
        sub_goals: 하위 목표 목록 (월 순)
    """

    goal_id: str
    owner_id: str
    title: str
    period_type: GoalPeriod
    tracking_type: GoalTracking = GoalTracking.CHECKBOX
    description: str | None = None
    target_value: Decimal | None = None
    current_value: Decimal = Decimal("0")
    unit: str | None = None
    parent_goal_id: str | None = None
    auto_calculate: bool = False
    status: GoalStatus = GoalStatus.PENDING
    priority: GoalPriority = GoalPriority.MEDIUM
    month: int | None = None
    year: int | None = None
    milestones: list[Milestone] = field(default_factory=list)
    sub_goals: list["Goal"] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Goal":
        """DB 행에서 생성 (마일스톤/하위 목표 제외)"""
        return cls(
            goal_id=row["goal_id"],
            owner_id=row["owner_id"],
            title=row["title"],
            description=row.get("description"),
            period_type=GoalPeriod(row["period_type"]),
            tracking_type=GoalTracking(row["tracking_type"]),
            target_value=_dec(row.get("target_value")),
            current_value=_dec(row.get("current_value")) or Decimal("0"),
            unit=row.get("unit"),
            parent_goal_id=row.get("parent_goal_id"),
            auto_calculate=bool(row["auto_calculate"]),
            status=GoalStatus(row["status"]),
            priority=GoalPriority(row["priority"]),
            month=row.get("month"),
            year=row.get("year"),
            created_at=parse_iso(row.get("created_at")),
            updated_at=parse_iso(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal_id": self.goal_id,
            "owner_id": self.owner_id,
            "title": self.title,
            "description": self.description,
            "period_type": self.period_type.value,
            "tracking_type": self.tracking_type.value,
            "target_value": str(self.target_value) if self.target_value is not None else None,
            "current_value": str(self.current_value),
            "unit": self.unit,
            "parent_goal_id": self.parent_goal_id,
            "auto_calculate": self.auto_calculate,
            "status": self.status.value,
            "priority": self.priority.value,
            "month": self.month,
            "year": self.year,
            "milestones": [m.to_dict() for m in self.milestones],
            "sub_goals": [g.to_dict() for g in self.sub_goals],
        }
