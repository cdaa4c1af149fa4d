"""
대사 API 라우터

Unbalanced 대사도 저장 가능 (status는 difference에서 파생).
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.ledger.service import LedgerService
from web.dependencies import get_ledger_service
from web.models.requests import ReconciliationCreateRequest, ReconciliationUpdateRequest
from web.models.responses import ReconciliationResponse

router = APIRouter(prefix="/api/reconciliations", tags=["Reconciliation"])


@router.get("", response_model=list[ReconciliationResponse])
async def list_reconciliations(
    account_id: str | None = Query(default=None, description="계좌 필터"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    return [record.to_dict() for record in await service.list_reconciliations(account_id)]


@router.post("", response_model=ReconciliationResponse, status_code=201)
async def create_reconciliation(
    request: ReconciliationCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """대사 저장

    reconciled_* 목록의 항목은 is_reconciled로 표시됩니다.
    다른 계좌의 항목이나 이미 다른 대사에 포함된 항목은 400.
    """
    record = await service.create_reconciliation(**request.model_dump())
    return record.to_dict()


@router.get("/{reconciliation_id}", response_model=ReconciliationResponse)
async def get_reconciliation(
    reconciliation_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    return (await service.get_reconciliation(reconciliation_id)).to_dict()


@router.patch("/{reconciliation_id}", response_model=ReconciliationResponse)
async def update_reconciliation(
    reconciliation_id: str,
    request: ReconciliationUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    record = await service.update_reconciliation(reconciliation_id, **request.changes())
    return record.to_dict()


@router.delete("/{reconciliation_id}", response_model=ReconciliationResponse)
async def delete_reconciliation(
    reconciliation_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """대사 삭제 (포함된 항목 전부 미대사로 복원)"""
    return (await service.delete_reconciliation(reconciliation_id)).to_dict()
