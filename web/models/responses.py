"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액은 Decimal 문자열, 날짜는 ISO 문자열.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (development/production)")
    organization_id: str = Field(..., description="기본 조직 ID")
    ledger_ready: bool = Field(..., description="LedgerService 초기화 여부")
    version: str


class ErrorBody(BaseModel):
    """Ledger 오류 본문"""

    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class AccountResponse(BaseModel):
    """계좌 응답"""

    id: str
    name: str
    account_type: str
    opening_balance: str
    balance: str
    currency: str
    description: str | None = None


class IncomeResponse(BaseModel):
    """수입 응답"""

    id: str
    kind: str
    date: str
    source: str
    category: str
    amount: str
    account_id: str
    method: str | None = None
    reference: str | None = None
    member_id: str | None = None
    linked_asset_id: str | None = None
    linked_liability_id: str | None = None
    is_reconciled: bool = False
    reconciled_in: str | None = None


class ExpenditureResponse(BaseModel):
    """지출 응답"""

    id: str
    kind: str
    date: str
    description: str
    category: str
    amount: str
    account_id: str
    method: str | None = None
    reference: str | None = None
    linked_liability_id: str | None = None
    is_reconciled: bool = False
    reconciled_in: str | None = None


class TransferResponse(BaseModel):
    """이체 응답"""

    id: str
    kind: str
    date: str
    from_account_id: str
    to_account_id: str
    amount: str
    description: str | None = None


class DisposalResponse(BaseModel):
    """자산 처분 응답"""

    id: str
    asset_id: str
    asset_name: str
    date: str
    account_id: str
    amount: str
    linked_income_id: str
    description: str | None = None


class LiabilityResponse(BaseModel):
    """부채 응답 (balance, status는 파생값)"""

    id: str
    date: str
    category: str
    creditor: str
    original_amount: str
    amount_paid: str
    balance: str
    status: str
    description: str | None = None
    is_loan: bool = False
    linked_income_id: str | None = None
    amount_received: str | None = None
    interest_rate: str | None = None
    loan_start_date: str | None = None
    loan_end_date: str | None = None
    loan_duration_days: int | None = None


class ReconciliationResponse(BaseModel):
    """대사 응답"""

    id: str
    account_id: str
    date: str
    book_balance: str
    bank_balance: str
    difference: str
    status: str
    reconciled_income_ids: list[str]
    reconciled_expenditure_ids: list[str]
    added_income_ids: list[str]
    added_expenditure_ids: list[str]
    notes: str | None = None


class CategoryResponse(BaseModel):
    """카테고리 응답"""

    id: str
    name: str
    type: str
    description: str | None = None
    track_members: bool = False
    is_system: bool = False


class CategoryDeleteResponse(BaseModel):
    """카테고리 삭제 응답 (단계별 삭제 행 수)"""

    id: str
    removed: dict[str, int]


class BudgetResponse(BaseModel):
    """예산 응답 (remaining은 파생값)"""

    id: str
    category: str
    period: str
    budgeted: str
    spent: str
    remaining: str
    description: str | None = None


class BudgetRecomputeResponse(BaseModel):
    """예산 spent 재계산 응답"""

    category: str
    period: str
    spent: str


class DriftResponse(BaseModel):
    """잔액 drift 응답"""

    account_id: str
    account_name: str
    stored: str
    expected: str
    drift: str


class EventResponse(BaseModel):
    """이벤트 응답"""

    seq: int | None = None
    event_id: str
    event_type: str
    ts: str
    correlation_id: str
    command_id: str | None = None
    source: str
    entity_kind: str
    entity_id: str
    scope: dict[str, str]
    dedup_key: str
    payload: dict[str, Any]


class CommandResultResponse(BaseModel):
    """Command 실행 결과 응답"""

    ok: bool
    command_id: str
    data: dict[str, Any] = Field(default_factory=dict)
    error: ErrorBody | None = None
