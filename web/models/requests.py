"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
금액 형식(양수, 소수점 2자리)은 core 검증에서 INVALID_AMOUNT(400)로 처리.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from core.types import (
    CategoryType,
    GoalPeriod,
    GoalPriority,
    GoalStatus,
    GoalTracking,
    LoanKind,
    TransactionType,
    WalletKind,
)


# =========================================================================
# 지갑
# =========================================================================


class WalletCreateRequest(BaseModel):
    """지갑 생성 요청"""

    name: str = Field(..., min_length=1, max_length=100, description="지갑 이름")
    kind: WalletKind = Field(..., description="지갑 유형")
    opening_balance: Decimal = Field(default=Decimal("0"), description="개설 잔액")


class WalletUpdateRequest(BaseModel):
    """지갑 수정 요청 (current_balance는 관리용 잔액 설정)"""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    kind: WalletKind | None = None
    current_balance: Decimal | None = Field(default=None, description="새 잔액")


# =========================================================================
# 카테고리
# =========================================================================


class CategoryCreateRequest(BaseModel):
    """카테고리 생성 요청"""

    name: str = Field(..., min_length=1, max_length=100)
    type: CategoryType
    parent_id: str | None = None


class CategoryUpdateRequest(BaseModel):
    """카테고리 수정 요청 (parent_id=null이면 부모 제거)"""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    parent_id: str | None = None


class CategoryFromPresetRequest(BaseModel):
    """프리셋으로 카테고리 생성 요청 (name이 없으면 프리셋 이름)"""

    preset_id: str = Field(..., min_length=1)
    name: str | None = Field(default=None, min_length=1, max_length=100)


# =========================================================================
# 거래
# =========================================================================


class TransactionCreateRequest(BaseModel):
    """거래 생성 요청

    template_id가 있으면 템플릿 값으로 채운 뒤 요청 값으로 덮어씀.
    """

    type: TransactionType | None = Field(default=None, description="거래 유형 (템플릿 사용 시 생략)")
    amount: Decimal | None = None
    transaction_date: datetime | None = Field(default=None, description="거래 일시 (생략 시 현재)")
    wallet_id: str | None = None
    category_id: str | None = None
    from_wallet_id: str | None = None
    to_wallet_id: str | None = None
    note: str | None = Field(default=None, max_length=1000)
    template_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "type": "expense",
                    "amount": "100.00",
                    "wallet_id": "00000000-0000-0000-0000-000000000001",
                    "category_id": "00000000-0000-0000-0000-000000000002",
                    "note": "점심",
                },
                {
                    "type": "transfer",
                    "amount": "200",
                    "from_wallet_id": "00000000-0000-0000-0000-000000000001",
                    "to_wallet_id": "00000000-0000-0000-0000-000000000003",
                },
            ]
        }
    }


# =========================================================================
# 템플릿
# =========================================================================


class TemplateCreateRequest(BaseModel):
    """템플릿 생성 요청"""

    name: str = Field(..., min_length=1, max_length=100)
    type: TransactionType
    wallet_id: str | None = None
    category_id: str | None = None
    amount: Decimal | None = None
    note: str | None = Field(default=None, max_length=1000)


class TemplateFromTransactionRequest(BaseModel):
    """거래에서 템플릿 생성 요청"""

    transaction_id: str
    name: str = Field(..., min_length=1, max_length=100)


class TemplateUpdateRequest(BaseModel):
    """템플릿 수정 요청 (지정한 필드만 변경)"""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    wallet_id: str | None = None
    category_id: str | None = None
    amount: Decimal | None = None
    note: str | None = Field(default=None, max_length=1000)


# =========================================================================
# 대출
# =========================================================================


class LoanCreateRequest(BaseModel):
    """대출 생성 요청"""

    kind: LoanKind
    counterparty_name: str = Field(..., min_length=1, max_length=255)
    principal: Decimal
    wallet_id: str
    start_date: date
    due_date: date | None = None
    note: str | None = Field(default=None, max_length=1000)


class LoanUpdateRequest(BaseModel):
    """대출 수정 요청"""

    counterparty_name: str | None = Field(default=None, min_length=1, max_length=255)
    due_date: date | None = None
    note: str | None = Field(default=None, max_length=1000)


class LoanPaymentRequest(BaseModel):
    """상환 기록 요청"""

    wallet_id: str
    amount: Decimal
    payment_date: date
    note: str | None = Field(default=None, max_length=1000)


# =========================================================================
# 목표
# =========================================================================


class MilestoneInput(BaseModel):
    """목표 생성 시 함께 만드는 마일스톤"""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    target_value: Decimal | None = None
    current_value: Decimal = Decimal("0")
    is_completed: bool = False
    order: int | None = None


class GoalCreateRequest(BaseModel):
    """목표 생성 요청"""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    period_type: GoalPeriod
    tracking_type: GoalTracking = GoalTracking.CHECKBOX
    target_value: Decimal | None = None
    current_value: Decimal = Decimal("0")
    unit: str | None = None
    parent_goal_id: str | None = None
    auto_calculate: bool = False
    status: GoalStatus = GoalStatus.PENDING
    priority: GoalPriority = GoalPriority.MEDIUM
    month: int | None = Field(default=None, ge=1, le=12)
    year: int | None = Field(default=None, ge=1900, le=9999)
    milestones: list[MilestoneInput] = Field(default_factory=list)
    create_monthly_sub_goals: bool = False
    monthly_target_value: Decimal | None = None


class GoalUpdateRequest(BaseModel):
    """목표 수정 요청 (지정한 필드만 변경)"""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    tracking_type: GoalTracking | None = None
    target_value: Decimal | None = None
    current_value: Decimal | None = None
    unit: str | None = None
    status: GoalStatus | None = None
    priority: GoalPriority | None = None
    month: int | None = Field(default=None, ge=1, le=12)
    year: int | None = Field(default=None, ge=1900, le=9999)
    auto_calculate: bool | None = None


class MilestoneCreateRequest(BaseModel):
    """마일스톤 생성 요청"""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    target_value: Decimal | None = None
    current_value: Decimal = Decimal("0")
    order: int = 0


class MilestoneUpdateRequest(BaseModel):
    """마일스톤 수정 요청"""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    target_value: Decimal | None = None
    current_value: Decimal | None = None
    is_completed: bool | None = None
    order: int | None = None
