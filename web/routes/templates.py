"""
거래 템플릿 API 라우터

템플릿은 거래 입력을 자동으로 채우는 용도.
거래 기록은 POST /api/transactions 에 template_id를 전달.
"""

from fastapi import APIRouter, Depends, Query

from core.storage import TemplateStore, TransactionTemplate
from core.types import TransactionType
from web.dependencies import get_owner_id, get_template_store
from web.models.requests import (
    TemplateCreateRequest,
    TemplateFromTransactionRequest,
    TemplateUpdateRequest,
)
from web.models.responses import (
    SuccessResponse,
    TemplateListResponse,
    TemplateResponse,
    pagination,
)

router = APIRouter(prefix="/api/templates", tags=["Templates"])


def to_template_response(template: TransactionTemplate) -> TemplateResponse:
    return TemplateResponse(**template.to_dict())


@router.post("", response_model=TemplateResponse, status_code=201)
async def create_template(
    request: TemplateCreateRequest,
    owner_id: str = Depends(get_owner_id),
    store: TemplateStore = Depends(get_template_store),
) -> TemplateResponse:
    """템플릿 생성"""
    template = await store.create_template(
        owner_id,
        request.name,
        request.type,
        wallet_id=request.wallet_id,
        category_id=request.category_id,
        amount=request.amount,
        note=request.note,
    )
    return to_template_response(template)


@router.post("/from-transaction", response_model=TemplateResponse, status_code=201)
async def create_template_from_transaction(
    request: TemplateFromTransactionRequest,
    owner_id: str = Depends(get_owner_id),
    store: TemplateStore = Depends(get_template_store),
) -> TemplateResponse:
    """기존 거래에서 템플릿 생성"""
    template = await store.create_from_transaction(owner_id, request.transaction_id, request.name)
    return to_template_response(template)


@router.get("", response_model=TemplateListResponse)
async def list_templates(
    type: TransactionType | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_owner_id),
    store: TemplateStore = Depends(get_template_store),
) -> TemplateListResponse:
    """템플릿 목록"""
    items, total = await store.list_templates(owner_id, type, limit, offset)
    return TemplateListResponse(
        templates=[to_template_response(t) for t in items],
        pagination=pagination(total, limit, offset, len(items)),
    )


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: str,
    owner_id: str = Depends(get_owner_id),
    store: TemplateStore = Depends(get_template_store),
) -> TemplateResponse:
    """템플릿 조회"""
    return to_template_response(await store.get_template(owner_id, template_id))


@router.patch("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    request: TemplateUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    store: TemplateStore = Depends(get_template_store),
) -> TemplateResponse:
    """템플릿 수정 (전달된 필드만 변경, null은 값 제거)"""
    changes = request.model_dump(exclude_unset=True)
    template = await store.update_template(owner_id, template_id, **changes)
    return to_template_response(template)


@router.delete("/{template_id}", response_model=SuccessResponse)
async def delete_template(
    template_id: str,
    owner_id: str = Depends(get_owner_id),
    store: TemplateStore = Depends(get_template_store),
) -> SuccessResponse:
    """템플릿 삭제"""
    await store.delete_template(owner_id, template_id)
    return SuccessResponse(id=template_id)
