"""
거래 도메인 모델 테스트

Income / Expenditure / Transfer 불변식과 입력 파싱 헬퍼.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from core.domain.transactions import (
    Expenditure,
    Income,
    Transfer,
    account_ids_of,
    optional_text,
    parse_amount,
    parse_date,
    parse_flag,
    parse_money,
    require_text,
)
from core.errors import SameAccountTransfer, ValidationError
from core.types import TransactionKind


def make_income(**overrides) -> Income:
    values = dict(
        id="inc-1",
        organization_id="org-test",
        date=date(2024, 3, 3),
        source="Sunday Service",
        category="Tithe",
        amount=Decimal("50"),
        account_id="acc-a",
    )
    values.update(overrides)
    return Income(**values)


class TestParseMoney:
    """parse_money / parse_amount 테스트"""

    def test_string_and_int(self) -> None:
        assert parse_money("12.50", "amount") == Decimal("12.50")
        assert parse_money(3, "amount") == Decimal("3")

    def test_float_via_string(self) -> None:
        """float는 문자열 경유 (이진 오차 없음)"""
        assert parse_money(0.1, "amount") == Decimal("0.1")

    def test_missing(self) -> None:
        with pytest.raises(ValidationError, match="required"):
            parse_money(None, "amount")
        with pytest.raises(ValidationError):
            parse_money("", "amount")

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValidationError, match="number"):
            parse_money(True, "amount")

    def test_not_a_number(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_money("abc", "opening_balance")

        assert exc_info.value.details["field"] == "opening_balance"

    def test_non_finite(self) -> None:
        with pytest.raises(ValidationError, match="finite"):
            parse_money("Infinity", "amount")

    def test_negative_allowed_for_money(self) -> None:
        assert parse_money("-5", "bank_balance") == Decimal("-5")

    @pytest.mark.parametrize("value", ["0", "-1", 0])
    def test_amount_must_be_positive(self, value) -> None:
        with pytest.raises(ValidationError, match="greater than zero"):
            parse_amount(value)


class TestParseText:
    """parse_date / require_text / optional_text 테스트"""

    def test_parse_date_variants(self) -> None:
        assert parse_date("2024-03-03") == date(2024, 3, 3)
        assert parse_date("2024-03-03T10:15:00") == date(2024, 3, 3)
        assert parse_date(datetime(2024, 3, 3, 9, 0)) == date(2024, 3, 3)
        assert parse_date(date(2024, 3, 3)) == date(2024, 3, 3)

    def test_parse_date_invalid(self) -> None:
        with pytest.raises(ValidationError, match="ISO date"):
            parse_date("03/03/2024")
        with pytest.raises(ValidationError, match="required"):
            parse_date(None)

    def test_require_text(self) -> None:
        assert require_text("  Tithe ", "category") == "Tithe"
        with pytest.raises(ValidationError):
            require_text("   ", "category")

    def test_optional_text(self) -> None:
        assert optional_text("") is None
        assert optional_text(None) is None
        assert optional_text("MoMo") == "MoMo"


class TestParseFlag:
    """parse_flag 테스트"""

    def test_bool_and_strings(self) -> None:
        assert parse_flag(True, "track_members") is True
        assert parse_flag("false", "track_members") is False
        assert parse_flag(" TRUE ", "track_members") is True

    @pytest.mark.parametrize("value", ["yes", "0", 1, None, ""])
    def test_rejects_other_values(self, value) -> None:
        with pytest.raises(ValidationError, match="true or false"):
            parse_flag(value, "track_members")


class TestIncome:
    """Income 테스트"""

    def test_balance_delta(self) -> None:
        income = make_income()

        assert income.kind == TransactionKind.INCOME
        assert income.balance_deltas() == [("acc-a", Decimal("50"))]

    def test_opening_balance_has_no_delta(self) -> None:
        """Opening Balance 수입은 잔액에 반영하지 않음"""
        income = make_income(category="Opening Balance", source="Opening Balance")

        assert income.kind == TransactionKind.OPENING_BALANCE
        assert income.is_opening_balance
        assert income.balance_deltas() == []

    def test_non_positive_amount(self) -> None:
        with pytest.raises(ValidationError):
            make_income(amount=Decimal("0"))

    def test_with_changes_is_copy(self) -> None:
        income = make_income()
        changed = income.with_changes(amount=Decimal("75"))

        assert changed.amount == Decimal("75")
        assert income.amount == Decimal("50")

    def test_frozen(self) -> None:
        income = make_income()

        with pytest.raises(AttributeError):
            income.amount = Decimal("1")  # type: ignore[misc]

    def test_row_roundtrip(self) -> None:
        row = {
            "id": "inc-1",
            "organization_id": "org-test",
            "date": "2024-03-03",
            "source": "Sunday Service",
            "category": "Tithe",
            "amount": "50.00",
            "account_id": "acc-a",
            "member_id": "mb-1",
            "is_reconciled": 1,
            "reconciled_in": "rec-1",
        }
        income = Income.from_row(row)

        assert income.amount == Decimal("50.00")
        assert income.is_reconciled is True
        assert income.to_dict()["kind"] == "Income"
        assert income.to_dict()["amount"] == "50.00"


class TestExpenditure:
    """Expenditure 테스트"""

    def test_kind_and_delta(self) -> None:
        expenditure = Expenditure(
            id="exp-1",
            organization_id="org-test",
            date=date(2024, 3, 4),
            description="Electricity",
            category="Utilities",
            amount=Decimal("30"),
            account_id="acc-a",
        )

        assert expenditure.kind == TransactionKind.EXPENDITURE
        assert expenditure.balance_deltas() == [("acc-a", Decimal("-30"))]

    def test_liability_payment_kind(self) -> None:
        payment = Expenditure(
            id="exp-2",
            organization_id="org-test",
            date=date(2024, 3, 4),
            description="Loan repayment",
            category="Liabilities",
            amount=Decimal("40"),
            account_id="acc-a",
            linked_liability_id="lia-1",
        )

        assert payment.kind == TransactionKind.LIABILITY_PAYMENT


class TestTransfer:
    """Transfer 테스트"""

    def test_two_legs(self) -> None:
        transfer = Transfer(
            id="trf-1",
            organization_id="org-test",
            date=date(2024, 3, 5),
            from_account_id="acc-a",
            to_account_id="acc-b",
            amount=Decimal("20"),
        )

        assert transfer.balance_deltas() == [
            ("acc-a", Decimal("-20")),
            ("acc-b", Decimal("20")),
        ]
        assert account_ids_of(transfer) == ["acc-a", "acc-b"]

    def test_same_account_rejected(self) -> None:
        with pytest.raises(SameAccountTransfer):
            Transfer(
                id="trf-1",
                organization_id="org-test",
                date=date(2024, 3, 5),
                from_account_id="acc-a",
                to_account_id="acc-a",
                amount=Decimal("20"),
            )

    def test_same_account_error_code(self) -> None:
        with pytest.raises(SameAccountTransfer) as exc_info:
            Transfer(
                id="trf-1",
                organization_id="org-test",
                date=date(2024, 3, 5),
                from_account_id="acc-a",
                to_account_id="acc-a",
                amount=Decimal("20"),
            )

        assert exc_info.value.to_dict()["code"] == "SAME_ACCOUNT_TRANSFER"
