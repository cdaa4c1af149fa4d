"""
계좌 API 라우터

GET    /api/accounts                 - 계좌 목록
POST   /api/accounts                 - 계좌 생성
GET    /api/accounts/drift           - 잔액 drift 조회 (보정 없음)
POST   /api/accounts/recalculate     - 전체 잔액 재계산
GET    /api/accounts/{account_id}    - 계좌 조회
PATCH  /api/accounts/{account_id}    - 계좌 수정
DELETE /api/accounts/{account_id}    - 계좌 삭제
"""

from typing import Any

from fastapi import APIRouter, Depends

from core.ledger.service import LedgerService
from web.dependencies import get_ledger_service
from web.models.requests import AccountCreateRequest, AccountUpdateRequest
from web.models.responses import AccountResponse, DriftResponse

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.get("", response_model=list[AccountResponse])
async def list_accounts(
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    """계좌 목록 (이름순)"""
    return [account.to_dict() for account in await service.list_accounts()]


@router.post("", response_model=AccountResponse, status_code=201)
async def create_account(
    request: AccountCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """계좌 생성

    opening_balance > 0이면 Opening Balance 수입이 함께 기록됩니다.
    """
    account = await service.create_account(**request.model_dump())
    return account.to_dict()


@router.get("/drift", response_model=list[DriftResponse])
async def get_drift(
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    """저장 잔액과 거래 이력 기반 잔액이 다른 계좌"""
    return [drift.to_dict() for drift in await service.detect_drift()]


@router.post("/recalculate", response_model=list[DriftResponse])
async def recalculate_balances(
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    """전체 계좌 잔액 재계산

    Returns:
        보정된 계좌 목록 (보정 전 값 기준)
    """
    return [drift.to_dict() for drift in await service.recalculate_balances()]


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    return (await service.get_account(account_id)).to_dict()


@router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: str,
    request: AccountUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    account = await service.update_account(account_id, **request.changes())
    return account.to_dict()


@router.delete("/{account_id}", response_model=AccountResponse)
async def delete_account(
    account_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """계좌 삭제 (다른 레코드가 참조 중이면 409)"""
    return (await service.delete_account(account_id)).to_dict()
