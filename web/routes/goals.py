"""
목표 API 라우터

목표/마일스톤 CRUD.
하위 목표 변경 시 상위 목표는 자동 재계산됨 (auto_calculate).
"""

from fastapi import APIRouter, Depends, Query

from core.goals import Goal, GoalStore
from core.types import GoalPeriod, GoalPriority, GoalStatus
from web.dependencies import get_goal_store, get_owner_id
from web.models.requests import (
    GoalCreateRequest,
    GoalUpdateRequest,
    MilestoneCreateRequest,
    MilestoneUpdateRequest,
)
from web.models.responses import (
    GoalListResponse,
    GoalResponse,
    MilestoneResponse,
    StatsResponse,
    SuccessResponse,
    pagination,
)

router = APIRouter(prefix="/api/goals", tags=["Goals"])


def to_goal_response(goal: Goal) -> GoalResponse:
    return GoalResponse(**goal.to_dict())


@router.post("", response_model=GoalResponse, status_code=201)
async def create_goal(
    request: GoalCreateRequest,
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> GoalResponse:
    """목표 생성 (마일스톤, 월간 하위 목표 선택)"""
    data = request.model_dump(exclude={"milestones"})
    milestones = [m.model_dump() for m in request.milestones]
    goal = await store.create_goal(owner_id, milestones=milestones, **data)
    return to_goal_response(goal)


@router.get("", response_model=GoalListResponse)
async def list_goals(
    period_type: GoalPeriod | None = Query(default=None),
    status: GoalStatus | None = Query(default=None),
    priority: GoalPriority | None = Query(default=None),
    year: int | None = Query(default=None),
    month: int | None = Query(default=None, ge=1, le=12),
    parent_goal_id: str | None = Query(default=None),
    top_level_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> GoalListResponse:
    """목표 목록"""
    goals, total = await store.list_goals(
        owner_id,
        period_type=period_type,
        status=status,
        priority=priority,
        year=year,
        month=month,
        parent_goal_id=parent_goal_id,
        top_level_only=top_level_only,
        limit=limit,
        offset=offset,
    )
    return GoalListResponse(
        goals=[to_goal_response(g) for g in goals],
        pagination=pagination(total, limit, offset, len(goals)),
    )


@router.get("/stats", response_model=StatsResponse)
async def goal_stats(
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> StatsResponse:
    """목표 통계"""
    return StatsResponse(stats=await store.get_stats(owner_id))


@router.patch("/milestones/{milestone_id}", response_model=MilestoneResponse)
async def update_milestone(
    milestone_id: str,
    request: MilestoneUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> MilestoneResponse:
    """마일스톤 수정 (모두 완료되면 목표 완료)"""
    milestone = await store.update_milestone(
        owner_id, milestone_id, **request.model_dump(exclude_unset=True)
    )
    return MilestoneResponse(**milestone.to_dict())


@router.delete("/milestones/{milestone_id}", response_model=SuccessResponse)
async def delete_milestone(
    milestone_id: str,
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> SuccessResponse:
    """마일스톤 삭제"""
    await store.delete_milestone(owner_id, milestone_id)
    return SuccessResponse(id=milestone_id)


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal(
    goal_id: str,
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> GoalResponse:
    """목표 조회 (마일스톤, 하위 목표 포함)"""
    return to_goal_response(await store.get_goal(owner_id, goal_id))


@router.patch("/{goal_id}", response_model=GoalResponse)
async def update_goal(
    goal_id: str,
    request: GoalUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> GoalResponse:
    """목표 수정 (전달된 필드만 변경)"""
    goal = await store.update_goal(owner_id, goal_id, **request.model_dump(exclude_unset=True))
    return to_goal_response(goal)


@router.delete("/{goal_id}", response_model=SuccessResponse)
async def delete_goal(
    goal_id: str,
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> SuccessResponse:
    """목표 삭제 (하위 목표가 있으면 400)"""
    await store.delete_goal(owner_id, goal_id)
    return SuccessResponse(id=goal_id)


@router.post("/{goal_id}/milestones", response_model=MilestoneResponse, status_code=201)
async def create_milestone(
    goal_id: str,
    request: MilestoneCreateRequest,
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> MilestoneResponse:
    """마일스톤 생성"""
    milestone = await store.create_milestone(owner_id, goal_id, **request.model_dump())
    return MilestoneResponse(**milestone.to_dict())


@router.post("/{goal_id}/recalculate", response_model=GoalResponse)
async def recalculate_goal(
    goal_id: str,
    owner_id: str = Depends(get_owner_id),
    store: GoalStore = Depends(get_goal_store),
) -> GoalResponse:
    """하위 목표 합계로 재계산 (대상이 아니면 현재 값 그대로 반환)"""
    await store.get_goal(owner_id, goal_id)
    await store.aggregator.recalculate_goal(goal_id)
    return to_goal_response(await store.get_goal(owner_id, goal_id))
