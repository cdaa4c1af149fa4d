"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    BudgetCreateRequest,
    BudgetRecomputeRequest,
    BudgetUpdateRequest,
    CategoryCreateRequest,
    CategoryUpdateRequest,
    CommandCreateRequest,
    DisposalCreateRequest,
    ExpenditureCreateRequest,
    ExpenditureUpdateRequest,
    IncomeCreateRequest,
    IncomeUpdateRequest,
    LiabilityCreateRequest,
    LiabilityPaymentRequest,
    LiabilityUpdateRequest,
    ReconciliationCreateRequest,
    ReconciliationUpdateRequest,
    TransferCreateRequest,
    TransferUpdateRequest,
)
from web.models.responses import (
    AccountResponse,
    BudgetRecomputeResponse,
    BudgetResponse,
    CategoryDeleteResponse,
    CategoryResponse,
    CommandResultResponse,
    DisposalResponse,
    DriftResponse,
    ErrorBody,
    EventResponse,
    ExpenditureResponse,
    HealthResponse,
    IncomeResponse,
    LiabilityResponse,
    ReconciliationResponse,
    TransferResponse,
)

__all__ = [
    # Requests
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "IncomeCreateRequest",
    "IncomeUpdateRequest",
    "ExpenditureCreateRequest",
    "ExpenditureUpdateRequest",
    "TransferCreateRequest",
    "TransferUpdateRequest",
    "DisposalCreateRequest",
    "LiabilityCreateRequest",
    "LiabilityUpdateRequest",
    "LiabilityPaymentRequest",
    "ReconciliationCreateRequest",
    "ReconciliationUpdateRequest",
    "CategoryCreateRequest",
    "CategoryUpdateRequest",
    "BudgetCreateRequest",
    "BudgetUpdateRequest",
    "BudgetRecomputeRequest",
    "CommandCreateRequest",
    # Responses
    "HealthResponse",
    "ErrorBody",
    "AccountResponse",
    "IncomeResponse",
    "ExpenditureResponse",
    "TransferResponse",
    "DisposalResponse",
    "LiabilityResponse",
    "ReconciliationResponse",
    "CategoryResponse",
    "CategoryDeleteResponse",
    "BudgetResponse",
    "BudgetRecomputeResponse",
    "DriftResponse",
    "EventResponse",
    "CommandResultResponse",
]
