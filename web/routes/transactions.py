"""
거래 API 라우터 (수입 / 지출 / 이체)

수입, 지출, 이체는 각자의 경로로 생성/수정하고,
삭제와 단건 조회는 종류와 무관하게 /api/transactions/{id}로 처리.
처분 수입과 부채 상환 지출은 삭제 시 연결 레코드까지 함께 되돌림.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.ledger.service import LedgerService
from web.dependencies import get_ledger_service
from web.models.requests import (
    ExpenditureCreateRequest,
    ExpenditureUpdateRequest,
    IncomeCreateRequest,
    IncomeUpdateRequest,
    TransferCreateRequest,
    TransferUpdateRequest,
)
from web.models.responses import ExpenditureResponse, IncomeResponse, TransferResponse

router = APIRouter(prefix="/api", tags=["Transactions"])


# =========================================================================
# 수입
# =========================================================================


@router.get("/income", response_model=list[IncomeResponse])
async def list_income(
    account_id: str | None = Query(default=None, description="계좌 필터"),
    category: str | None = Query(default=None, description="카테고리 필터"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    incomes = await service.list_incomes(account_id=account_id, category=category)
    return [income.to_dict() for income in incomes]


@router.post("/income", response_model=IncomeResponse, status_code=201)
async def create_income(
    request: IncomeCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """수입 기록

    member_id가 있으면 기록 후 헌금 알림이 발송됩니다 (실패해도 기록은 유지).
    """
    income = await service.create_income(**request.model_dump())
    return income.to_dict()


@router.patch("/income/{income_id}", response_model=IncomeResponse)
async def update_income(
    income_id: str,
    request: IncomeUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    income = await service.update_income(income_id, **request.changes())
    return income.to_dict()


# =========================================================================
# 지출
# =========================================================================


@router.get("/expenditures", response_model=list[ExpenditureResponse])
async def list_expenditures(
    account_id: str | None = Query(default=None, description="계좌 필터"),
    category: str | None = Query(default=None, description="카테고리 필터"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    expenditures = await service.list_expenditures(account_id=account_id, category=category)
    return [expenditure.to_dict() for expenditure in expenditures]


@router.post("/expenditures", response_model=ExpenditureResponse, status_code=201)
async def create_expenditure(
    request: ExpenditureCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """지출 기록 (잔액이 음수가 될 수 있음, 해당 예산 spent 갱신)"""
    expenditure = await service.create_expenditure(**request.model_dump())
    return expenditure.to_dict()


@router.patch("/expenditures/{expenditure_id}", response_model=ExpenditureResponse)
async def update_expenditure(
    expenditure_id: str,
    request: ExpenditureUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    expenditure = await service.update_expenditure(expenditure_id, **request.changes())
    return expenditure.to_dict()


# =========================================================================
# 이체
# =========================================================================


@router.get("/transfers", response_model=list[TransferResponse])
async def list_transfers(
    account_id: str | None = Query(default=None, description="출금 또는 입금 계좌 필터"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    return [transfer.to_dict() for transfer in await service.list_transfers(account_id)]


@router.post("/transfers", response_model=TransferResponse, status_code=201)
async def create_transfer(
    request: TransferCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """계좌 간 이체

    동일 계좌(400) 또는 잔액 부족(409)이면 아무것도 기록되지 않습니다.
    """
    transfer = await service.create_transfer(**request.model_dump())
    return transfer.to_dict()


@router.patch("/transfers/{transfer_id}", response_model=TransferResponse)
async def update_transfer(
    transfer_id: str,
    request: TransferUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    transfer = await service.update_transfer(transfer_id, **request.changes())
    return transfer.to_dict()


# =========================================================================
# 공통 (종류 무관)
# =========================================================================


@router.get("/transactions/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    return (await service.get_transaction(transaction_id)).to_dict()


@router.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """거래 삭제 (잔액 복원, 대사 해제, 예산/부채 재계산)"""
    return (await service.delete_transaction(transaction_id)).to_dict()
