"""
카테고리 / 예산 API 라우터

GET    /api/categories?type=income        - 카테고리 목록
POST   /api/categories                    - 카테고리 생성
PATCH  /api/categories/{id}               - 사용자 카테고리 수정 (시스템 카테고리 403)
DELETE /api/categories/{id}               - 삭제 (사용 중 409, 시스템 카테고리는 연쇄 삭제)

GET    /api/budgets                       - 예산 목록
POST   /api/budgets                       - 예산 생성 (spent 자동 계산)
POST   /api/budgets/recompute             - 카테고리 + 기간 spent 재계산
GET|PATCH|DELETE /api/budgets/{id}
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.ledger.service import LedgerService
from web.dependencies import get_ledger_service
from web.models.requests import (
    BudgetCreateRequest,
    BudgetRecomputeRequest,
    BudgetUpdateRequest,
    CategoryCreateRequest,
    CategoryUpdateRequest,
)
from web.models.responses import (
    BudgetRecomputeResponse,
    BudgetResponse,
    CategoryDeleteResponse,
    CategoryResponse,
)

router = APIRouter(prefix="/api", tags=["Categories & Budgets"])


# =========================================================================
# 카테고리
# =========================================================================


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(
    category_type: str | None = Query(default=None, alias="type", description="income / expense / liability"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    return [category.to_dict() for category in await service.list_categories(category_type)]


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    request: CategoryCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    category = await service.create_category(**request.model_dump())
    return category.to_dict()


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """사용자 카테고리 수정 (이름 변경 시 사용 중인 레코드에도 반영)"""
    category = await service.update_category(category_id, **request.changes())
    return category.to_dict()


@router.delete("/categories/{category_id}", response_model=CategoryDeleteResponse)
async def delete_category(
    category_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    """카테고리 삭제

    시스템 카테고리는 종속 레코드(처분, 수입, 부채 상환, 부채)를
    정해진 순서로 함께 삭제하고 단계별 삭제 수를 반환합니다.
    """
    removed = await service.delete_category(category_id)
    return {"id": category_id, "removed": removed}


# =========================================================================
# 예산
# =========================================================================


@router.get("/budgets", response_model=list[BudgetResponse])
async def list_budgets(
    category: str | None = Query(default=None, description="카테고리 필터"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    return [budget.to_dict() for budget in await service.list_budgets(category)]


@router.post("/budgets", response_model=BudgetResponse, status_code=201)
async def create_budget(
    request: BudgetCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    budget = await service.create_budget(**request.model_dump())
    return budget.to_dict()


@router.post("/budgets/recompute", response_model=BudgetRecomputeResponse)
async def recompute_budget_spent(
    request: BudgetRecomputeRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    spent = await service.recompute_budget_spent(request.category, request.period)
    return {"category": request.category, "period": request.period, "spent": str(spent)}


@router.get("/budgets/{budget_id}", response_model=BudgetResponse)
async def get_budget(
    budget_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    return (await service.get_budget(budget_id)).to_dict()


@router.patch("/budgets/{budget_id}", response_model=BudgetResponse)
async def update_budget(
    budget_id: str,
    request: BudgetUpdateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    budget = await service.update_budget(budget_id, **request.changes())
    return budget.to_dict()


@router.delete("/budgets/{budget_id}", response_model=BudgetResponse)
async def delete_budget(
    budget_id: str,
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, Any]:
    return (await service.delete_budget(budget_id)).to_dict()
