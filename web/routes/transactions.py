"""
거래 API 라우터

POST /api/transactions 는 TransactionEngine으로 기록 (원자적).
삭제는 소프트 삭제이며 지갑 잔액은 변경되지 않음.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from core.errors import InvalidStateError
from core.ledger import LedgerStore, LedgerTransaction, TransactionEngine, build_intent
from core.storage import TemplateStore
from core.types import TransactionType
from web.dependencies import (
    get_engine,
    get_ledger_store,
    get_owner_id,
    get_template_store,
)
from web.models.requests import TransactionCreateRequest
from web.models.responses import (
    PostTransactionResponse,
    SuccessResponse,
    TransactionListResponse,
    TransactionResponse,
    pagination,
)
from web.routes.wallets import to_wallet_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


def to_transaction_response(tx: LedgerTransaction) -> TransactionResponse:
    return TransactionResponse(**tx.to_dict())


@router.post("", response_model=PostTransactionResponse, status_code=201)
async def create_transaction(
    request: TransactionCreateRequest,
    owner_id: str = Depends(get_owner_id),
    engine: TransactionEngine = Depends(get_engine),
    templates: TemplateStore = Depends(get_template_store),
) -> PostTransactionResponse:
    """거래 기록

    template_id가 있으면 템플릿으로 자동 채우기 후 요청 값으로 덮어씀.
    """
    fields = request.model_dump(
        include={"amount", "wallet_id", "category_id", "from_wallet_id", "to_wallet_id", "note"},
    )

    if request.template_id is not None:
        intent = await templates.build_intent(
            owner_id,
            request.template_id,
            transaction_date=request.transaction_date,
            **fields,
        )
    else:
        if request.type is None:
            raise InvalidStateError("MISSING_TYPE", "거래 유형이 필요합니다")
        if request.amount is None:
            raise InvalidStateError("INVALID_AMOUNT", "금액이 필요합니다")
        intent = build_intent(
            request.type,
            transaction_date=request.transaction_date,
            **fields,
        )

    result = await engine.post_transaction(owner_id, intent)
    return PostTransactionResponse(
        transaction=to_transaction_response(result.transaction),
        affected_wallets=[to_wallet_response(w) for w in result.affected_wallets],
    )


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    type: TransactionType | None = Query(default=None),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    category_id: str | None = Query(default=None),
    wallet_id: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_owner_id),
    store: LedgerStore = Depends(get_ledger_store),
) -> TransactionListResponse:
    """거래 목록 (소프트 삭제 제외)"""
    page = await store.list_transactions(
        owner_id,
        tx_type=type,
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        wallet_id=wallet_id,
        limit=limit,
        offset=offset,
    )
    return TransactionListResponse(
        transactions=[to_transaction_response(t) for t in page.items],
        pagination=pagination(page.total, page.limit, page.offset, len(page.items)),
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    owner_id: str = Depends(get_owner_id),
    store: LedgerStore = Depends(get_ledger_store),
) -> TransactionResponse:
    """거래 조회 (분개 포함)"""
    return to_transaction_response(await store.get_transaction(owner_id, transaction_id))


@router.delete("/{transaction_id}", response_model=SuccessResponse)
async def delete_transaction(
    transaction_id: str,
    owner_id: str = Depends(get_owner_id),
    store: LedgerStore = Depends(get_ledger_store),
) -> SuccessResponse:
    """거래 소프트 삭제 (잔액 유지)"""
    await store.soft_delete_transaction(owner_id, transaction_id)
    return SuccessResponse(id=transaction_id)
