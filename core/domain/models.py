"""
Ledger 레코드 모델

계좌, 부채, 카테고리, 처분, 대사, 예산, 자산.
파생 필드(balance, status, difference, remaining)는 프로퍼티로만 노출되며
명령으로 직접 설정할 수 없음.
"""

import json
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any

from core.constants import MONEY_TOLERANCE, SystemCategories
from core.types import (
    AccountKind,
    AssetStatus,
    LiabilityStatus,
    ReconciliationStatus,
)


@dataclass
class Account:
    """계좌

    balance는 Balance Engine만 변경하는 파생(저장) 필드.
    """

    id: str
    organization_id: str
    name: str
    account_type: AccountKind
    opening_balance: Decimal
    balance: Decimal
    currency: str
    description: str | None = None

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Account":
        """DB 행에서 생성"""
        return Account(
            id=row["id"],
            organization_id=row["organization_id"],
            name=row["name"],
            account_type=AccountKind(row["account_type"]),
            opening_balance=Decimal(row["opening_balance"]),
            balance=Decimal(row["balance"]),
            currency=row["currency"],
            description=row.get("description"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "account_type": self.account_type.value,
            "opening_balance": str(self.opening_balance),
            "balance": str(self.balance),
            "currency": self.currency,
            "description": self.description,
        }


@dataclass
class Liability:
    """부채

    amount_paid는 연결된 지출(상환) 합계. balance/status는 파생값.
    대출(is_loan)은 받은 금액을 수입(linked_income_id)으로 함께 기록하며,
    original_amount는 상환해야 할 총액(이자 포함)임.
    """

    id: str
    organization_id: str
    date: date
    category: str
    creditor: str
    original_amount: Decimal
    amount_paid: Decimal = Decimal("0")
    description: str | None = None
    is_loan: bool = False
    linked_income_id: str | None = None
    amount_received: Decimal | None = None
    interest_rate: Decimal | None = None
    loan_start_date: date | None = None
    loan_end_date: date | None = None

    @property
    def balance(self) -> Decimal:
        """잔여 부채 (original_amount - amount_paid)"""
        return self.original_amount - self.amount_paid

    @property
    def status(self) -> LiabilityStatus:
        """잔여 부채에서 파생된 상태"""
        if self.balance <= 0:
            return LiabilityStatus.PAID
        if self.amount_paid > 0:
            return LiabilityStatus.PARTIALLY_PAID
        return LiabilityStatus.NOT_PAID

    @property
    def loan_duration_days(self) -> int | None:
        if self.loan_start_date is None or self.loan_end_date is None:
            return None
        return (self.loan_end_date - self.loan_start_date).days

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Liability":
        """DB 행에서 생성"""
        return Liability(
            id=row["id"],
            organization_id=row["organization_id"],
            date=date.fromisoformat(row["date"]),
            category=row["category"],
            creditor=row["creditor"],
            original_amount=Decimal(row["original_amount"]),
            amount_paid=Decimal(row["amount_paid"]),
            description=row.get("description"),
            is_loan=bool(row.get("is_loan", 0)),
            linked_income_id=row.get("linked_income_id"),
            amount_received=_optional_decimal(row.get("amount_received")),
            interest_rate=_optional_decimal(row.get("interest_rate")),
            loan_start_date=_optional_date(row.get("loan_start_date")),
            loan_end_date=_optional_date(row.get("loan_end_date")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "category": self.category,
            "creditor": self.creditor,
            "original_amount": str(self.original_amount),
            "amount_paid": str(self.amount_paid),
            "balance": str(self.balance),
            "status": self.status.value,
            "description": self.description,
            "is_loan": self.is_loan,
            "linked_income_id": self.linked_income_id,
            "amount_received": (
                str(self.amount_received) if self.amount_received is not None else None
            ),
            "interest_rate": str(self.interest_rate) if self.interest_rate is not None else None,
            "loan_start_date": self.loan_start_date.isoformat() if self.loan_start_date else None,
            "loan_end_date": self.loan_end_date.isoformat() if self.loan_end_date else None,
            "loan_duration_days": self.loan_duration_days,
        }


@dataclass
class Category:
    """카테고리 (조직 + 유형 내에서 이름 유일)"""

    id: str
    organization_id: str
    name: str
    category_type: str
    description: str | None = None
    track_members: bool = False

    @property
    def is_system(self) -> bool:
        """시스템 카테고리 여부 (수정 불가, 삭제 시 연쇄 삭제)"""
        return SystemCategories.is_system(self.name, self.category_type)

    def with_changes(self, **changes: Any) -> "Category":
        return replace(self, **changes)

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Category":
        """DB 행에서 생성"""
        return Category(
            id=row["id"],
            organization_id=row["organization_id"],
            name=row["name"],
            category_type=row["category_type"],
            description=row.get("description"),
            track_members=bool(row.get("track_members", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.category_type,
            "description": self.description,
            "track_members": self.track_members,
            "is_system": self.is_system,
        }


@dataclass
class Disposal:
    """자산 처분 (생성된 Income 1건과 1:1 연결)"""

    id: str
    organization_id: str
    asset_id: str
    asset_name: str
    date: date
    account_id: str
    amount: Decimal
    linked_income_id: str
    description: str | None = None

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Disposal":
        """DB 행에서 생성"""
        return Disposal(
            id=row["id"],
            organization_id=row["organization_id"],
            asset_id=row["asset_id"],
            asset_name=row["asset_name"],
            date=date.fromisoformat(row["date"]),
            account_id=row["account_id"],
            amount=Decimal(row["amount"]),
            linked_income_id=row["linked_income_id"],
            description=row.get("description"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "asset_name": self.asset_name,
            "date": self.date.isoformat(),
            "account_id": self.account_id,
            "amount": str(self.amount),
            "linked_income_id": self.linked_income_id,
            "description": self.description,
        }


def _load_ids(value: str | None) -> list[str]:
    if not value:
        return []
    return list(json.loads(value))


def _optional_decimal(value: Any) -> Decimal | None:
    return Decimal(value) if value is not None else None


def _optional_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


@dataclass
class Reconciliation:
    """계좌 대사 기록

    status는 차액에서 파생된 라벨이며 저장을 막지 않음.
    added_* 목록은 대사 중 추가된 항목 기록용 (표시만 하고 마킹하지 않음).
    """

    id: str
    organization_id: str
    account_id: str
    date: date
    book_balance: Decimal
    bank_balance: Decimal
    reconciled_income_ids: list[str] = field(default_factory=list)
    reconciled_expenditure_ids: list[str] = field(default_factory=list)
    added_income_ids: list[str] = field(default_factory=list)
    added_expenditure_ids: list[str] = field(default_factory=list)
    notes: str | None = None

    @property
    def difference(self) -> Decimal:
        """장부 잔액 - 은행 잔액"""
        return self.book_balance - self.bank_balance

    @property
    def status(self) -> ReconciliationStatus:
        """차액이 표시 단위(0.01) 미만이면 Balanced"""
        if abs(self.difference) < Decimal(MONEY_TOLERANCE):
            return ReconciliationStatus.BALANCED
        return ReconciliationStatus.UNBALANCED

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Reconciliation":
        """DB 행에서 생성 (ID 목록은 JSON 배열)"""
        return Reconciliation(
            id=row["id"],
            organization_id=row["organization_id"],
            account_id=row["account_id"],
            date=date.fromisoformat(row["date"]),
            book_balance=Decimal(row["book_balance"]),
            bank_balance=Decimal(row["bank_balance"]),
            reconciled_income_ids=_load_ids(row.get("reconciled_income_ids")),
            reconciled_expenditure_ids=_load_ids(row.get("reconciled_expenditure_ids")),
            added_income_ids=_load_ids(row.get("added_income_ids")),
            added_expenditure_ids=_load_ids(row.get("added_expenditure_ids")),
            notes=row.get("notes"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "date": self.date.isoformat(),
            "book_balance": str(self.book_balance),
            "bank_balance": str(self.bank_balance),
            "difference": str(self.difference),
            "status": self.status.value,
            "reconciled_income_ids": list(self.reconciled_income_ids),
            "reconciled_expenditure_ids": list(self.reconciled_expenditure_ids),
            "added_income_ids": list(self.added_income_ids),
            "added_expenditure_ids": list(self.added_expenditure_ids),
            "notes": self.notes,
        }


@dataclass
class Budget:
    """예산 (spent는 Budget Roll-up만 기록)"""

    id: str
    organization_id: str
    category: str
    period: str
    budgeted: Decimal
    spent: Decimal = Decimal("0")
    description: str | None = None

    @property
    def remaining(self) -> Decimal:
        return self.budgeted - self.spent

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Budget":
        """DB 행에서 생성"""
        return Budget(
            id=row["id"],
            organization_id=row["organization_id"],
            category=row["category"],
            period=row["period"],
            budgeted=Decimal(row["budgeted"]),
            spent=Decimal(row["spent"]),
            description=row.get("description"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "period": self.period,
            "budgeted": str(self.budgeted),
            "spent": str(self.spent),
            "remaining": str(self.remaining),
            "description": self.description,
        }


@dataclass
class Asset:
    """자산 (비금융 엔티티 저장소 소유, 처분 시 status만 변경)"""

    id: str
    organization_id: str
    name: str
    status: str = AssetStatus.AVAILABLE.value
    previous_status: str | None = None

    @property
    def is_disposed(self) -> bool:
        return self.status == AssetStatus.DISPOSED.value

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Asset":
        """DB 행에서 생성"""
        return Asset(
            id=row["id"],
            organization_id=row["organization_id"],
            name=row["name"],
            status=row["status"],
            previous_status=row.get("previous_status"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "previous_status": self.previous_status,
        }
