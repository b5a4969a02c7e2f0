"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액은 소수점 2자리 문자열로 반환 (부동소수점 오차 방지).
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="API 버전")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class SuccessResponse(BaseModel):
    """단순 성공 응답"""

    success: bool = True
    id: str | None = None


class ErrorResponse(BaseModel):
    """에러 응답"""

    success: bool = False
    code: str
    message: str


class PaginationResponse(BaseModel):
    """페이지 정보"""

    total: int
    limit: int
    offset: int
    has_more: bool


# =========================================================================
# 지갑
# =========================================================================


class WalletResponse(BaseModel):
    """지갑 응답"""

    wallet_id: str
    name: str
    kind: str
    opening_balance: str
    current_balance: str
    is_archived: bool
    created_at: str | None = None
    updated_at: str | None = None


class WalletListResponse(BaseModel):
    """지갑 목록 응답"""

    wallets: list[WalletResponse]
    pagination: PaginationResponse


class WalletStatsResponse(BaseModel):
    """지갑 통계 응답"""

    by_kind: dict[str, int]
    total_wallets: int
    total_balance: str


class WalletEntryResponse(BaseModel):
    """지갑별 분개 응답"""

    entry_id: str
    transaction_id: str
    type: str
    transaction_date: str
    direction: str
    amount: str
    is_deleted: bool


class DriftResponse(BaseModel):
    """잔액 불일치 응답 (정상이면 빈 목록)"""

    wallet_id: str
    current_balance: str
    expected_balance: str


# =========================================================================
# 카테고리
# =========================================================================


class CategoryResponse(BaseModel):
    """카테고리 응답"""

    category_id: str
    type: str
    name: str
    parent_id: str | None = None
    created_at: str | None = None


class CategoryPresetResponse(BaseModel):
    """카테고리 프리셋 응답"""

    preset_id: str
    type: str
    name: str
    sort_order: int


class SeedResponse(BaseModel):
    """프리셋 일괄 생성 응답"""

    success: bool = True
    created: int


# =========================================================================
# 거래
# =========================================================================


class EntryResponse(BaseModel):
    """분개 응답"""

    entry_id: str
    wallet_id: str
    direction: str
    amount: str
    line_order: int


class TransactionResponse(BaseModel):
    """거래 응답"""

    transaction_id: str
    type: str
    transaction_date: str
    amount: str
    category_id: str | None = None
    note: str | None = None
    entries: list[EntryResponse]
    deleted_at: str | None = None
    created_at: str | None = None


class PostTransactionResponse(BaseModel):
    """거래 기록 응답 (반영 후 지갑 잔액 포함)"""

    transaction: TransactionResponse
    affected_wallets: list[WalletResponse]


class TransactionListResponse(BaseModel):
    """거래 목록 응답"""

    transactions: list[TransactionResponse]
    pagination: PaginationResponse


# =========================================================================
# 템플릿
# =========================================================================


class TemplateResponse(BaseModel):
    """템플릿 응답"""

    template_id: str
    name: str
    type: str
    wallet_id: str | None = None
    category_id: str | None = None
    amount: str | None = None
    note: str | None = None


class TemplateListResponse(BaseModel):
    """템플릿 목록 응답"""

    templates: list[TemplateResponse]
    pagination: PaginationResponse


# =========================================================================
# 대출
# =========================================================================


class LoanResponse(BaseModel):
    """대출 응답"""

    loan_id: str
    kind: str
    counterparty_name: str
    principal: str
    outstanding: str
    paid: str
    wallet_id: str
    start_date: str
    due_date: str | None = None
    note: str | None = None
    status: str


class LoanListResponse(BaseModel):
    """대출 목록 응답"""

    loans: list[LoanResponse]
    pagination: PaginationResponse


class LoanPaymentResponse(BaseModel):
    """상환 기록 응답"""

    payment_id: str
    loan_id: str
    wallet_id: str
    payment_date: str
    amount: str
    note: str | None = None


class LoanPaymentResultResponse(BaseModel):
    """상환 결과 응답"""

    loan: LoanResponse
    payment: LoanPaymentResponse


# =========================================================================
# 목표
# =========================================================================


class MilestoneResponse(BaseModel):
    """마일스톤 응답"""

    milestone_id: str
    goal_id: str
    title: str
    description: str | None = None
    target_value: str | None = None
    current_value: str
    is_completed: bool
    order: int


class GoalResponse(BaseModel):
    """목표 응답"""

    goal_id: str
    title: str
    description: str | None = None
    period_type: str
    tracking_type: str
    target_value: str | None = None
    current_value: str
    unit: str | None = None
    parent_goal_id: str | None = None
    auto_calculate: bool
    status: str
    priority: str
    month: int | None = None
    year: int | None = None
    milestones: list[MilestoneResponse] = Field(default_factory=list)
    sub_goals: list["GoalResponse"] = Field(default_factory=list)


class GoalListResponse(BaseModel):
    """목표 목록 응답"""

    goals: list[GoalResponse]
    pagination: PaginationResponse


class StatsResponse(BaseModel):
    """통계 응답 (자유 형식)"""

    stats: dict[str, Any]


def pagination(total: int, limit: int, offset: int, returned: int) -> PaginationResponse:
    """페이지 정보 생성"""
    return PaginationResponse(
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + returned < total,
    )
