"""
목표 관리

연간/월간 목표, 마일스톤, 하위 목표 합계 자동 집계.
"""

from core.goals.aggregator import GoalAggregator, compute_progress
from core.goals.store import GoalStore
from core.goals.types import Goal, Milestone

__all__ = [
    "Goal",
    "Milestone",
    "GoalStore",
    "GoalAggregator",
    "compute_progress",
]
