"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    CategoryCreateRequest,
    CategoryFromPresetRequest,
    CategoryUpdateRequest,
    GoalCreateRequest,
    GoalUpdateRequest,
    LoanCreateRequest,
    LoanPaymentRequest,
    LoanUpdateRequest,
    MilestoneCreateRequest,
    MilestoneUpdateRequest,
    TemplateCreateRequest,
    TemplateFromTransactionRequest,
    TemplateUpdateRequest,
    TransactionCreateRequest,
    WalletCreateRequest,
    WalletUpdateRequest,
)
from web.models.responses import (
    CategoryPresetResponse,
    CategoryResponse,
    ErrorResponse,
    GoalResponse,
    HealthResponse,
    LoanResponse,
    PostTransactionResponse,
    SeedResponse,
    SuccessResponse,
    TemplateResponse,
    TransactionResponse,
    WalletResponse,
)

__all__ = [
    # Requests
    "WalletCreateRequest",
    "WalletUpdateRequest",
    "CategoryCreateRequest",
    "CategoryUpdateRequest",
    "CategoryFromPresetRequest",
    "TransactionCreateRequest",
    "TemplateCreateRequest",
    "TemplateFromTransactionRequest",
    "TemplateUpdateRequest",
    "LoanCreateRequest",
    "LoanUpdateRequest",
    "LoanPaymentRequest",
    "GoalCreateRequest",
    "GoalUpdateRequest",
    "MilestoneCreateRequest",
    "MilestoneUpdateRequest",
    # Responses
    "HealthResponse",
    "SuccessResponse",
    "ErrorResponse",
    "WalletResponse",
    "CategoryResponse",
    "CategoryPresetResponse",
    "SeedResponse",
    "TransactionResponse",
    "PostTransactionResponse",
    "TemplateResponse",
    "LoanResponse",
    "GoalResponse",
]
