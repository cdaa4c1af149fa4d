"""
거래 도메인 모델 (Sum Type)

Income / Expenditure / Transfer를 각각의 불변 데이터 클래스로 표현.
공통 불변식: amount는 항상 0보다 큼. 방향은 종류(kind)로만 표현됨.

- Income(category="Opening Balance")  → OpeningBalance (잔액 변화 없음)
- Expenditure(linked_liability_id 有) → LiabilityPayment
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from core.constants import SystemCategories
from core.errors import SameAccountTransfer, ValidationError
from core.types import TransactionKind


# =========================================================================
# 입력 검증 헬퍼
# =========================================================================


def parse_money(value: Any, field_name: str) -> Decimal:
    """금액 파싱 (부호 제한 없음)

    Args:
        value: Decimal / int / str (float는 문자열 경유)
        field_name: 오류 메시지용 필드 이름

    Returns:
        Decimal 금액

    Raises:
        ValidationError: 값이 없거나 숫자가 아닌 경우
    """
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required", {"field": field_name})
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", {"field": field_name})
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValidationError(
            f"{field_name} must be a number", {"field": field_name, "value": str(value)}
        ) from e
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be finite", {"field": field_name})
    return amount


def parse_amount(value: Any, field_name: str = "amount") -> Decimal:
    """거래 금액 파싱 (0보다 커야 함)

    Raises:
        ValidationError: 0 이하이거나 숫자가 아닌 경우
    """
    amount = parse_money(value, field_name)
    if amount <= 0:
        raise ValidationError(
            f"{field_name} must be greater than zero",
            {"field": field_name, "value": str(amount)},
        )
    return amount


def parse_date(value: Any, field_name: str = "date") -> date:
    """날짜 파싱 (date / datetime / ISO 문자열)

    Raises:
        ValidationError: 값이 없거나 형식이 잘못된 경우
    """
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required", {"field": field_name})
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise ValidationError(
            f"{field_name} must be an ISO date (YYYY-MM-DD)",
            {"field": field_name, "value": str(value)},
        ) from e


def require_text(value: Any, field_name: str) -> str:
    """필수 문자열 필드 검증

    Raises:
        ValidationError: 값이 없거나 공백뿐인 경우
    """
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required", {"field": field_name})
    return str(value).strip()


def optional_text(value: Any) -> str | None:
    """선택 문자열 필드 정규화 (빈 문자열은 None)"""
    if value is None or value == "":
        return None
    return str(value)


_FLAG_STRINGS: dict[str, bool] = {"true": True, "false": False}


def parse_flag(value: Any, field_name: str) -> bool:
    """불리언 필드 파싱

    bool 또는 "true"/"false" 문자열만 허용 (payload가 JSON 문자열로 올 수 있음).

    Raises:
        ValidationError: 그 외의 값
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _FLAG_STRINGS:
        return _FLAG_STRINGS[value.strip().lower()]
    raise ValidationError(
        f"{field_name} must be true or false",
        {"field": field_name, "value": str(value)},
    )


# =========================================================================
# 거래 타입
# =========================================================================


@dataclass(frozen=True)
class Income:
    """수입 거래

    category가 "Opening Balance"이면 OpeningBalance 종류로,
    계좌 잔액에 반영되지 않음 (opening_balance 필드에 이미 포함).
    """

    id: str
    organization_id: str
    date: date
    source: str
    category: str
    amount: Decimal
    account_id: str
    method: str | None = None
    reference: str | None = None
    member_id: str | None = None
    linked_asset_id: str | None = None
    linked_liability_id: str | None = None
    is_reconciled: bool = False
    reconciled_in: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValidationError(
                "amount must be greater than zero", {"value": str(self.amount)}
            )

    @property
    def kind(self) -> TransactionKind:
        """거래 종류"""
        if self.category == SystemCategories.OPENING_BALANCE:
            return TransactionKind.OPENING_BALANCE
        return TransactionKind.INCOME

    @property
    def is_opening_balance(self) -> bool:
        return self.kind == TransactionKind.OPENING_BALANCE

    def balance_deltas(self) -> list[tuple[str, Decimal]]:
        """계좌별 잔액 변화량"""
        if self.is_opening_balance:
            return []
        return [(self.account_id, self.amount)]

    def with_changes(self, **changes: Any) -> "Income":
        """필드 변경된 새 Income 반환"""
        return replace(self, **changes)

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Income":
        """DB 행에서 생성"""
        return Income(
            id=row["id"],
            organization_id=row["organization_id"],
            date=date.fromisoformat(row["date"]),
            source=row["source"],
            category=row["category"],
            amount=Decimal(row["amount"]),
            account_id=row["account_id"],
            method=row.get("method"),
            reference=row.get("reference"),
            member_id=row.get("member_id"),
            linked_asset_id=row.get("linked_asset_id"),
            linked_liability_id=row.get("linked_liability_id"),
            is_reconciled=bool(row.get("is_reconciled", 0)),
            reconciled_in=row.get("reconciled_in"),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (API 응답용)"""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "date": self.date.isoformat(),
            "source": self.source,
            "category": self.category,
            "amount": str(self.amount),
            "account_id": self.account_id,
            "method": self.method,
            "reference": self.reference,
            "member_id": self.member_id,
            "linked_asset_id": self.linked_asset_id,
            "linked_liability_id": self.linked_liability_id,
            "is_reconciled": self.is_reconciled,
            "reconciled_in": self.reconciled_in,
        }


@dataclass(frozen=True)
class Expenditure:
    """지출 거래

    linked_liability_id가 있으면 LiabilityPayment 종류.
    """

    id: str
    organization_id: str
    date: date
    description: str
    category: str
    amount: Decimal
    account_id: str
    method: str | None = None
    reference: str | None = None
    linked_liability_id: str | None = None
    is_reconciled: bool = False
    reconciled_in: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValidationError(
                "amount must be greater than zero", {"value": str(self.amount)}
            )

    @property
    def kind(self) -> TransactionKind:
        """거래 종류"""
        if self.linked_liability_id:
            return TransactionKind.LIABILITY_PAYMENT
        return TransactionKind.EXPENDITURE

    def balance_deltas(self) -> list[tuple[str, Decimal]]:
        """계좌별 잔액 변화량"""
        return [(self.account_id, -self.amount)]

    def with_changes(self, **changes: Any) -> "Expenditure":
        """필드 변경된 새 Expenditure 반환"""
        return replace(self, **changes)

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Expenditure":
        """DB 행에서 생성"""
        return Expenditure(
            id=row["id"],
            organization_id=row["organization_id"],
            date=date.fromisoformat(row["date"]),
            description=row["description"],
            category=row["category"],
            amount=Decimal(row["amount"]),
            account_id=row["account_id"],
            method=row.get("method"),
            reference=row.get("reference"),
            linked_liability_id=row.get("linked_liability_id"),
            is_reconciled=bool(row.get("is_reconciled", 0)),
            reconciled_in=row.get("reconciled_in"),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (API 응답용)"""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "date": self.date.isoformat(),
            "description": self.description,
            "category": self.category,
            "amount": str(self.amount),
            "account_id": self.account_id,
            "method": self.method,
            "reference": self.reference,
            "linked_liability_id": self.linked_liability_id,
            "is_reconciled": self.is_reconciled,
            "reconciled_in": self.reconciled_in,
        }


@dataclass(frozen=True)
class Transfer:
    """계좌 간 이체

    출금 계좌와 입금 계좌는 항상 달라야 함.
    """

    id: str
    organization_id: str
    date: date
    from_account_id: str
    to_account_id: str
    amount: Decimal
    description: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValidationError(
                "amount must be greater than zero", {"value": str(self.amount)}
            )
        if self.from_account_id == self.to_account_id:
            raise SameAccountTransfer(
                "Cannot transfer to the same account",
                {"account_id": self.from_account_id},
            )

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind.TRANSFER

    def balance_deltas(self) -> list[tuple[str, Decimal]]:
        """계좌별 잔액 변화량 (출금 -, 입금 +)"""
        return [
            (self.from_account_id, -self.amount),
            (self.to_account_id, self.amount),
        ]

    def with_changes(self, **changes: Any) -> "Transfer":
        """필드 변경된 새 Transfer 반환"""
        return replace(self, **changes)

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Transfer":
        """DB 행에서 생성"""
        return Transfer(
            id=row["id"],
            organization_id=row["organization_id"],
            date=date.fromisoformat(row["date"]),
            from_account_id=row["from_account_id"],
            to_account_id=row["to_account_id"],
            amount=Decimal(row["amount"]),
            description=row.get("description"),
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (API 응답용)"""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "date": self.date.isoformat(),
            "from_account_id": self.from_account_id,
            "to_account_id": self.to_account_id,
            "amount": str(self.amount),
            "description": self.description,
        }


Transaction = Union[Income, Expenditure, Transfer]


def account_ids_of(txn: Transaction) -> list[str]:
    """거래가 영향을 주는 계좌 ID 목록"""
    if isinstance(txn, Transfer):
        return [txn.from_account_id, txn.to_account_id]
    return [txn.account_id]


__all__ = [
    "Income",
    "Expenditure",
    "Transfer",
    "Transaction",
    "account_ids_of",
    "parse_money",
    "parse_amount",
    "parse_date",
    "require_text",
    "optional_text",
]
