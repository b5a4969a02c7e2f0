"""
카테고리 API 라우터
"""

from fastapi import APIRouter, Depends, Query

from core.errors import NotFoundError
from core.storage import CategoryStore
from core.types import CategoryType
from web.dependencies import get_category_store, get_owner_id
from web.models.requests import (
    CategoryCreateRequest,
    CategoryFromPresetRequest,
    CategoryUpdateRequest,
)
from web.models.responses import (
    CategoryPresetResponse,
    CategoryResponse,
    SeedResponse,
    SuccessResponse,
)

router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    request: CategoryCreateRequest,
    owner_id: str = Depends(get_owner_id),
    store: CategoryStore = Depends(get_category_store),
) -> CategoryResponse:
    """카테고리 생성"""
    category = await store.create_category(owner_id, request.type, request.name, request.parent_id)
    return CategoryResponse(**category.to_dict())


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    type: CategoryType | None = Query(default=None),
    owner_id: str = Depends(get_owner_id),
    store: CategoryStore = Depends(get_category_store),
) -> list[CategoryResponse]:
    """카테고리 목록"""
    categories = await store.list_categories(owner_id, type)
    return [CategoryResponse(**c.to_dict()) for c in categories]


@router.get("/templates", response_model=list[CategoryPresetResponse])
async def list_category_presets(
    type: CategoryType | None = Query(default=None),
    owner_id: str = Depends(get_owner_id),
    store: CategoryStore = Depends(get_category_store),
) -> list[CategoryPresetResponse]:
    """카테고리 프리셋 목록 (사용자 헤더 필수, 소유자와 무관한 고정 목록)"""
    return [CategoryPresetResponse(**p.to_dict()) for p in store.list_presets(type)]


@router.post("/from-template", response_model=CategoryResponse, status_code=201)
async def create_category_from_preset(
    request: CategoryFromPresetRequest,
    owner_id: str = Depends(get_owner_id),
    store: CategoryStore = Depends(get_category_store),
) -> CategoryResponse:
    """프리셋으로 카테고리 생성 (없는 프리셋이면 404)"""
    category = await store.create_from_preset(owner_id, request.preset_id, request.name)
    return CategoryResponse(**category.to_dict())


@router.post("/seed", response_model=SeedResponse)
async def seed_categories(
    owner_id: str = Depends(get_owner_id),
    store: CategoryStore = Depends(get_category_store),
) -> SeedResponse:
    """모든 프리셋을 내 카테고리로 생성 (이미 있는 이름은 건너뜀)"""
    created = await store.seed_from_presets(owner_id)
    return SeedResponse(created=created)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: str,
    owner_id: str = Depends(get_owner_id),
    store: CategoryStore = Depends(get_category_store),
) -> CategoryResponse:
    """카테고리 조회"""
    category = await store.get_category(owner_id, category_id)
    if category is None:
        raise NotFoundError("CATEGORY_NOT_FOUND", f"카테고리를 찾을 수 없습니다: {category_id}")
    return CategoryResponse(**category.to_dict())


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    store: CategoryStore = Depends(get_category_store),
) -> CategoryResponse:
    """카테고리 수정 (전달된 필드만 변경)"""
    changes = request.model_dump(exclude_unset=True)
    category = await store.update_category(owner_id, category_id, **changes)
    return CategoryResponse(**category.to_dict())


@router.delete("/{category_id}", response_model=SuccessResponse)
async def delete_category(
    category_id: str,
    owner_id: str = Depends(get_owner_id),
    store: CategoryStore = Depends(get_category_store),
) -> SuccessResponse:
    """카테고리 삭제 (거래/하위 카테고리가 있으면 400)"""
    await store.delete_category(owner_id, category_id)
    return SuccessResponse(id=category_id)
