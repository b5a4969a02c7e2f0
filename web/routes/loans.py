"""
대출/채권 API 라우터

잔여 금액(running total)만 관리하며 원장 분개는 생성하지 않음.
"""

from fastapi import APIRouter, Depends, Query

from core.storage import Loan, LoanStore
from core.types import LoanKind, LoanStatus
from web.dependencies import get_loan_store, get_owner_id
from web.models.requests import LoanCreateRequest, LoanPaymentRequest, LoanUpdateRequest
from web.models.responses import (
    LoanListResponse,
    LoanPaymentResponse,
    LoanPaymentResultResponse,
    LoanResponse,
    StatsResponse,
    SuccessResponse,
    pagination,
)

router = APIRouter(prefix="/api/loans", tags=["Loans"])


def to_loan_response(loan: Loan) -> LoanResponse:
    return LoanResponse(**loan.to_dict())


@router.post("", response_model=LoanResponse, status_code=201)
async def create_loan(
    request: LoanCreateRequest,
    owner_id: str = Depends(get_owner_id),
    store: LoanStore = Depends(get_loan_store),
) -> LoanResponse:
    """대출/채권 생성"""
    loan = await store.create_loan(
        owner_id,
        request.kind,
        request.counterparty_name,
        request.principal,
        request.wallet_id,
        request.start_date,
        due_date=request.due_date,
        note=request.note,
    )
    return to_loan_response(loan)


@router.get("", response_model=LoanListResponse)
async def list_loans(
    kind: LoanKind | None = Query(default=None),
    status: LoanStatus | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_owner_id),
    store: LoanStore = Depends(get_loan_store),
) -> LoanListResponse:
    """대출 목록"""
    loans, total = await store.list_loans(owner_id, kind, status, limit, offset)
    return LoanListResponse(
        loans=[to_loan_response(loan) for loan in loans],
        pagination=pagination(total, limit, offset, len(loans)),
    )


@router.get("/stats", response_model=StatsResponse)
async def loan_stats(
    owner_id: str = Depends(get_owner_id),
    store: LoanStore = Depends(get_loan_store),
) -> StatsResponse:
    """유형별 잔여 금액"""
    stats = await store.get_stats(owner_id)
    return StatsResponse(
        stats={
            kind: {"count": value["count"], "outstanding": str(value["outstanding"])}
            for kind, value in stats.items()
        }
    )


@router.get("/{loan_id}", response_model=LoanResponse)
async def get_loan(
    loan_id: str,
    owner_id: str = Depends(get_owner_id),
    store: LoanStore = Depends(get_loan_store),
) -> LoanResponse:
    """대출 조회"""
    return to_loan_response(await store.get_loan(owner_id, loan_id))


@router.patch("/{loan_id}", response_model=LoanResponse)
async def update_loan(
    loan_id: str,
    request: LoanUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    store: LoanStore = Depends(get_loan_store),
) -> LoanResponse:
    """대출 정보 수정"""
    loan = await store.update_loan(
        owner_id,
        loan_id,
        counterparty_name=request.counterparty_name,
        due_date=request.due_date,
        note=request.note,
    )
    return to_loan_response(loan)


@router.delete("/{loan_id}", response_model=SuccessResponse)
async def delete_loan(
    loan_id: str,
    owner_id: str = Depends(get_owner_id),
    store: LoanStore = Depends(get_loan_store),
) -> SuccessResponse:
    """대출 삭제 (소프트 삭제)"""
    await store.delete_loan(owner_id, loan_id)
    return SuccessResponse(id=loan_id)


@router.post("/{loan_id}/payments", response_model=LoanPaymentResultResponse, status_code=201)
async def record_payment(
    loan_id: str,
    request: LoanPaymentRequest,
    owner_id: str = Depends(get_owner_id),
    store: LoanStore = Depends(get_loan_store),
) -> LoanPaymentResultResponse:
    """상환 기록 (잔여 금액 0이면 종료)"""
    loan, payment = await store.record_payment(
        owner_id,
        loan_id,
        request.wallet_id,
        request.amount,
        request.payment_date,
        note=request.note,
    )
    return LoanPaymentResultResponse(
        loan=to_loan_response(loan),
        payment=LoanPaymentResponse(**payment.to_dict()),
    )


@router.get("/{loan_id}/payments", response_model=list[LoanPaymentResponse])
async def list_payments(
    loan_id: str,
    owner_id: str = Depends(get_owner_id),
    store: LoanStore = Depends(get_loan_store),
) -> list[LoanPaymentResponse]:
    """상환 기록 목록"""
    payments = await store.list_payments(owner_id, loan_id)
    return [LoanPaymentResponse(**p.to_dict()) for p in payments]
