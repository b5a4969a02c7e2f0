"""
지갑 API 라우터

지갑 CRUD, 통계, 지갑별 분개, 잔액 불일치 점검.
"""

from fastapi import APIRouter, Depends, Query

from core.ledger import LedgerStore
from core.ledger.types import Wallet
from core.storage import WalletStore
from core.types import WalletKind
from web.dependencies import get_ledger_store, get_owner_id, get_wallet_store
from web.models.requests import WalletCreateRequest, WalletUpdateRequest
from web.models.responses import (
    DriftResponse,
    WalletEntryResponse,
    WalletListResponse,
    WalletResponse,
    WalletStatsResponse,
    pagination,
)

router = APIRouter(prefix="/api/wallets", tags=["Wallets"])


def to_wallet_response(wallet: Wallet) -> WalletResponse:
    return WalletResponse(**wallet.to_dict())


@router.post("", response_model=WalletResponse, status_code=201)
async def create_wallet(
    request: WalletCreateRequest,
    owner_id: str = Depends(get_owner_id),
    store: WalletStore = Depends(get_wallet_store),
) -> WalletResponse:
    """지갑 생성"""
    wallet = await store.create_wallet(
        owner_id, request.name, request.kind, request.opening_balance
    )
    return to_wallet_response(wallet)


@router.get("", response_model=WalletListResponse)
async def list_wallets(
    kind: WalletKind | None = Query(default=None),
    include_archived: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_owner_id),
    store: WalletStore = Depends(get_wallet_store),
) -> WalletListResponse:
    """지갑 목록"""
    page = await store.list_wallets(owner_id, kind, include_archived, limit, offset)
    return WalletListResponse(
        wallets=[to_wallet_response(w) for w in page.items],
        pagination=pagination(page.total, page.limit, page.offset, len(page.items)),
    )


@router.get("/stats", response_model=WalletStatsResponse)
async def wallet_stats(
    owner_id: str = Depends(get_owner_id),
    store: WalletStore = Depends(get_wallet_store),
) -> WalletStatsResponse:
    """활성 지갑 통계"""
    stats = await store.get_stats(owner_id)
    return WalletStatsResponse(
        by_kind=stats["by_kind"],
        total_wallets=stats["total_wallets"],
        total_balance=str(stats["total_balance"]),
    )


@router.get("/drift", response_model=list[DriftResponse])
async def wallet_drift(
    owner_id: str = Depends(get_owner_id),
    store: WalletStore = Depends(get_wallet_store),
) -> list[DriftResponse]:
    """잔액 불변식 점검 (정상이면 빈 목록)"""
    drifts = await store.ledger.find_drift(owner_id)
    return [
        DriftResponse(
            wallet_id=d["wallet_id"],
            current_balance=str(d["current_balance"]),
            expected_balance=str(d["expected_balance"]),
        )
        for d in drifts
    ]


@router.get("/{wallet_id}", response_model=WalletResponse)
async def get_wallet(
    wallet_id: str,
    owner_id: str = Depends(get_owner_id),
    store: WalletStore = Depends(get_wallet_store),
) -> WalletResponse:
    """지갑 조회"""
    return to_wallet_response(await store.get_wallet(owner_id, wallet_id))


@router.patch("/{wallet_id}", response_model=WalletResponse)
async def update_wallet(
    wallet_id: str,
    request: WalletUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    store: WalletStore = Depends(get_wallet_store),
) -> WalletResponse:
    """지갑 수정 (이름, 유형, 관리용 잔액)"""
    wallet = await store.update_wallet(
        owner_id,
        wallet_id,
        name=request.name,
        kind=request.kind,
        current_balance=request.current_balance,
    )
    return to_wallet_response(wallet)


@router.delete("/{wallet_id}", response_model=WalletResponse)
async def archive_wallet(
    wallet_id: str,
    owner_id: str = Depends(get_owner_id),
    store: WalletStore = Depends(get_wallet_store),
) -> WalletResponse:
    """지갑 삭제 (보관 처리, 분개가 있으면 400)"""
    return to_wallet_response(await store.archive_wallet(owner_id, wallet_id))


@router.get("/{wallet_id}/entries", response_model=list[WalletEntryResponse])
async def wallet_entries(
    wallet_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_owner_id),
    store: WalletStore = Depends(get_wallet_store),
    ledger_store: LedgerStore = Depends(get_ledger_store),
) -> list[WalletEntryResponse]:
    """지갑별 분개 내역"""
    await store.get_wallet(owner_id, wallet_id)
    rows = await ledger_store.get_entries_by_wallet(owner_id, wallet_id, limit, offset)
    return [WalletEntryResponse(**row) for row in rows]
