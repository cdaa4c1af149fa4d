"""
부채 / 자산 처분 API 라우터

부채 상환과 자산 처분은 연결 거래(지출/수입)를 함께 기록/삭제함.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.ledger.service import LedgerService
from web.dependencies import get_ledger_service
from web.models.requests import (
    DisposalCreateRequest,
    LiabilityCreateRequest,
    LiabilityPaymentRequest,
    LiabilityUpdateRequest,
    LoanCreateRequest,
)
from web.models.responses import DisposalResponse, ExpenditureResponse, LiabilityResponse

router = APIRouter(prefix="/api", tags=["Liabilities & Disposals"])


# =========================================================================
# 부채
# =========================================================================


@router.get("/liabilities", response_model=list[LiabilityResponse])
async def list_liabilities(
    category: str | None = Query(default=None, description="카테고리 필터"),
    is_loan: bool | None = Query(default=None, description="대출만 / 대출 제외"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    liabilities = await service.list_liabilities(category, is_loan=is_loan)
    return [liability.to_dict() for liability in liabilities]


@router.post("/liabilities", response_model=LiabilityResponse, status_code=201)
async def create_liability(
    request: LiabilityCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """부채 생성

    initial_payment가 있으면 initial_payment_account_id에서 최초 상환까지 기록합니다.
    """
    liability = await service.create_liability(**request.model_dump())
    return liability.to_dict()


@router.post("/loans", response_model=LiabilityResponse, status_code=201)
async def create_loan(
    request: LoanCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """대출/당좌차월 기록

    받은 금액을 account_id에 수입으로 넣고, 상환 총액을 부채로 기록합니다.
    부채를 삭제하면 연결된 수입도 함께 삭제됩니다.
    """
    loan = await service.create_loan(**request.model_dump())
    return loan.to_dict()


@router.get("/liabilities/{liability_id}", response_model=LiabilityResponse)
async def get_liability(
    liability_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    return (await service.get_liability(liability_id)).to_dict()


@router.patch("/liabilities/{liability_id}", response_model=LiabilityResponse)
async def update_liability(
    liability_id: str,
    request: LiabilityUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    liability = await service.update_liability(liability_id, **request.changes())
    return liability.to_dict()


@router.delete("/liabilities/{liability_id}", response_model=LiabilityResponse)
async def delete_liability(
    liability_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """부채 삭제 (연결된 상환 지출과 대출 수입도 삭제되어 각 계좌 잔액 복원)"""
    return (await service.delete_liability(liability_id)).to_dict()


@router.get(
    "/liabilities/{liability_id}/payments",
    response_model=list[ExpenditureResponse],
)
async def list_liability_payments(
    liability_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    await service.get_liability(liability_id)
    payments = await service.list_expenditures(liability_id=liability_id)
    return [payment.to_dict() for payment in payments]


@router.post(
    "/liabilities/{liability_id}/payments",
    response_model=ExpenditureResponse,
    status_code=201,
)
async def record_liability_payment(
    liability_id: str,
    request: LiabilityPaymentRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """부채 상환 (잔여 부채를 넘으면 400)"""
    payment = await service.record_liability_payment(liability_id, **request.model_dump())
    return payment.to_dict()


@router.delete("/liability-payments/{expenditure_id}", response_model=ExpenditureResponse)
async def delete_liability_payment(
    expenditure_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    return (await service.delete_liability_payment(expenditure_id)).to_dict()


# =========================================================================
# 자산 처분
# =========================================================================


@router.get("/disposals", response_model=list[DisposalResponse])
async def list_disposals(
    asset_id: str | None = Query(default=None, description="자산 필터"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    return [disposal.to_dict() for disposal in await service.list_disposals(asset_id)]


@router.post("/disposals", response_model=DisposalResponse, status_code=201)
async def create_disposal(
    request: DisposalCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """자산 처분 (처분 대금 수입 기록 + 자산 상태 Disposed)"""
    disposal = await service.create_disposal(**request.model_dump())
    return disposal.to_dict()


@router.get("/disposals/{disposal_id}", response_model=DisposalResponse)
async def get_disposal(
    disposal_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    return (await service.get_disposal(disposal_id)).to_dict()


@router.delete("/disposals/{disposal_id}", response_model=DisposalResponse)
async def delete_disposal(
    disposal_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """자산 처분 취소 (수입 삭제 + 자산 이전 상태 복원)"""
    return (await service.delete_disposal(disposal_id)).to_dict()
