"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
필드 이름은 LedgerService 메서드 인자와 같고, 날짜는 JSON에서 "date" 키로 받음.
금액은 Decimal로 받아 문자열/숫자 모두 허용 (float 오차 없음).
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class LedgerRequest(BaseModel):
    """공통 설정 ("date" 별칭과 필드 이름 모두 허용)"""

    model_config = {"populate_by_name": True}

    def changes(self) -> dict[str, Any]:
        """요청에 포함된 필드만 (PATCH용)"""
        return self.model_dump(exclude_unset=True)


# =========================================================================
# Accounts
# =========================================================================


class AccountCreateRequest(LedgerRequest):
    """계좌 생성 요청"""

    name: str = Field(..., description="계좌 이름 (조직 내 고유)")
    account_type: str = Field(default="Cash", description="Cash / Bank / Mobile Money")
    opening_balance: Decimal = Field(default=Decimal("0"), description="기초 잔액")
    description: str | None = Field(default=None, description="설명")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {"name": "Main Bank", "account_type": "Bank", "opening_balance": "100.00"}
            ]
        },
    }


class AccountUpdateRequest(LedgerRequest):
    """계좌 수정 요청"""

    name: str | None = None
    account_type: str | None = None
    opening_balance: Decimal | None = None
    description: str | None = None


# =========================================================================
# Income / Expenditure / Transfer
# =========================================================================


class IncomeCreateRequest(LedgerRequest):
    """수입 기록 요청"""

    account_id: str
    amount: Decimal = Field(..., description="금액 (> 0)")
    on_date: str = Field(..., alias="date", description="YYYY-MM-DD")
    source: str
    category: str
    method: str | None = None
    reference: str | None = None
    member_id: str | None = Field(default=None, description="회원 ID (헌금 알림 대상)")


class IncomeUpdateRequest(LedgerRequest):
    """수입 수정 요청 (선택 텍스트 필드는 빈 문자열이면 삭제)"""

    account_id: str | None = None
    amount: Decimal | None = None
    on_date: str | None = Field(default=None, alias="date")
    source: str | None = None
    category: str | None = None
    method: str | None = None
    reference: str | None = None
    member_id: str | None = None


class ExpenditureCreateRequest(LedgerRequest):
    """지출 기록 요청"""

    account_id: str
    amount: Decimal = Field(..., description="금액 (> 0)")
    on_date: str = Field(..., alias="date", description="YYYY-MM-DD")
    description: str
    category: str
    method: str | None = None
    reference: str | None = None


class ExpenditureUpdateRequest(LedgerRequest):
    """지출 수정 요청"""

    account_id: str | None = None
    amount: Decimal | None = None
    on_date: str | None = Field(default=None, alias="date")
    description: str | None = None
    category: str | None = None
    method: str | None = None
    reference: str | None = None


class TransferCreateRequest(LedgerRequest):
    """이체 요청"""

    from_account_id: str
    to_account_id: str
    amount: Decimal = Field(..., description="금액 (> 0)")
    on_date: str = Field(..., alias="date", description="YYYY-MM-DD")
    description: str | None = None


class TransferUpdateRequest(LedgerRequest):
    """이체 수정 요청"""

    from_account_id: str | None = None
    to_account_id: str | None = None
    amount: Decimal | None = None
    on_date: str | None = Field(default=None, alias="date")
    description: str | None = None


# =========================================================================
# Disposals / Liabilities
# =========================================================================


class DisposalCreateRequest(LedgerRequest):
    """자산 처분 요청"""

    asset_id: str
    account_id: str = Field(..., description="처분 대금 입금 계좌")
    amount: Decimal
    on_date: str = Field(..., alias="date", description="YYYY-MM-DD")
    description: str | None = None
    method: str | None = None


class LiabilityCreateRequest(LedgerRequest):
    """부채 생성 요청"""

    creditor: str
    original_amount: Decimal
    on_date: str = Field(..., alias="date", description="YYYY-MM-DD")
    category: str = Field(default="Liabilities")
    description: str | None = None
    initial_payment: Decimal | None = Field(default=None, description="최초 상환 금액")
    initial_payment_account_id: str | None = Field(default=None, description="최초 상환 계좌")


class LoanCreateRequest(LedgerRequest):
    """대출/당좌차월 요청 (받은 금액은 account_id로 수입 기록)"""

    creditor: str = Field(..., description="대출 기관")
    original_amount: Decimal = Field(..., description="상환 총액 (이자 포함)")
    amount_received: Decimal = Field(..., description="실제 받은 금액")
    account_id: str
    on_date: str = Field(..., alias="date", description="YYYY-MM-DD")
    category: str = Field(default="Loans/Overdrafts")
    description: str | None = None
    method: str | None = None
    interest_rate: Decimal | None = Field(default=None, description="연 이율 (%)")
    loan_start_date: str | None = None
    loan_end_date: str | None = None


class LiabilityUpdateRequest(LedgerRequest):
    """부채 수정 요청 (amount_paid는 상환으로만 변경)"""

    creditor: str | None = None
    original_amount: Decimal | None = None
    on_date: str | None = Field(default=None, alias="date")
    category: str | None = None
    description: str | None = None


class LiabilityPaymentRequest(LedgerRequest):
    """부채 상환 요청"""

    account_id: str
    amount: Decimal
    on_date: str = Field(..., alias="date", description="YYYY-MM-DD")
    description: str | None = None
    method: str | None = None


# =========================================================================
# Reconciliation
# =========================================================================


class ReconciliationCreateRequest(LedgerRequest):
    """대사 저장 요청"""

    account_id: str
    on_date: str = Field(..., alias="date", description="YYYY-MM-DD")
    bank_balance: Decimal
    book_balance: Decimal | None = Field(default=None, description="없으면 현재 계좌 잔액")
    reconciled_income_ids: list[str] = Field(default_factory=list)
    reconciled_expenditure_ids: list[str] = Field(default_factory=list)
    added_income_ids: list[str] = Field(default_factory=list)
    added_expenditure_ids: list[str] = Field(default_factory=list)
    notes: str | None = None


class ReconciliationUpdateRequest(LedgerRequest):
    """대사 수정 요청"""

    on_date: str | None = Field(default=None, alias="date")
    book_balance: Decimal | None = None
    bank_balance: Decimal | None = None
    reconciled_income_ids: list[str] | None = None
    reconciled_expenditure_ids: list[str] | None = None
    added_income_ids: list[str] | None = None
    added_expenditure_ids: list[str] | None = None
    notes: str | None = None


# =========================================================================
# Categories / Budgets
# =========================================================================


class CategoryCreateRequest(LedgerRequest):
    """카테고리 생성 요청"""

    name: str
    category_type: str = Field(..., alias="type", description="income / expense / liability")
    description: str | None = None
    track_members: bool = False


class CategoryUpdateRequest(LedgerRequest):
    """카테고리 수정 요청 (유형 변경 불가)"""

    name: str | None = None
    description: str | None = None
    track_members: bool | None = None


class BudgetCreateRequest(LedgerRequest):
    """예산 생성 요청 (spent는 입력 불가)"""

    category: str
    period: str = Field(..., description="YYYY / YYYY-Qn / YYYY-MM")
    budgeted: Decimal
    description: str | None = None


class BudgetUpdateRequest(LedgerRequest):
    """예산 수정 요청"""

    category: str | None = None
    period: str | None = None
    budgeted: Decimal | None = None
    description: str | None = None


class BudgetRecomputeRequest(LedgerRequest):
    """예산 spent 재계산 요청"""

    category: str
    period: str


# =========================================================================
# Commands
# =========================================================================


class CommandCreateRequest(BaseModel):
    """Command 실행 요청

    payload 키는 명령별 인자 이름 ("date" 허용).
    """

    command_type: str = Field(..., description="명령 타입 (CreateTransfer, DeleteCategory 등)")
    payload: dict[str, Any] = Field(default_factory=dict, description="명령 페이로드")
    correlation_id: str | None = Field(default=None, description="상관 ID")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "command_type": "CreateTransfer",
                    "payload": {
                        "from_account_id": "acc-main",
                        "to_account_id": "acc-petty",
                        "amount": "20.00",
                        "date": "2024-03-01",
                    },
                },
            ]
        }
    }
