"""
계좌 명령 통합 테스트

기초 잔액 수입, 계좌 수정/삭제, 잔액 drift 점검 및 재계산.
"""

from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import SystemCategories
from core.domain.events import EventTypes
from core.domain.models import Account
from core.errors import AccountInUse, EntityNotFound, ValidationError
from core.ledger.service import LedgerService, parse_account_kind
from core.types import AccountKind


class TestParseAccountKind:
    """계좌 유형 파싱"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Bank", AccountKind.BANK),
            ("cash", AccountKind.CASH),
            ("Mobile Money", AccountKind.MOBILE_MONEY),
            ("mobile_money", AccountKind.MOBILE_MONEY),
        ],
    )
    def test_valid(self, value: str, expected: AccountKind) -> None:
        assert parse_account_kind(value) == expected

    def test_invalid(self) -> None:
        with pytest.raises(ValidationError):
            parse_account_kind("Crypto")


@pytest.mark.integration
class TestCreateAccount:
    """계좌 생성"""

    @pytest.mark.asyncio
    async def test_opening_balance_income(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        """기초 잔액은 Opening Balance 수입으로 기록되지만 잔액을 두 번 올리지 않음"""
        assert account_a.balance == Decimal("100")
        assert account_a.opening_balance == Decimal("100")
        assert account_a.account_type == AccountKind.BANK
        assert account_a.currency == "GHS"

        incomes = await service.list_incomes(account_id=account_a.id)
        assert len(incomes) == 1
        assert incomes[0].category == SystemCategories.OPENING_BALANCE
        assert incomes[0].amount == Decimal("100")
        assert incomes[0].reference == "Opening balance for Main Bank"

        assert (await service.get_account(account_a.id)).balance == Decimal("100")
        assert await service.detect_drift() == []

    @pytest.mark.asyncio
    async def test_zero_opening_balance_has_no_income(
        self,
        service: LedgerService,
        account_b: Account,
    ) -> None:
        assert await service.list_incomes(account_id=account_b.id) == []

    @pytest.mark.asyncio
    async def test_negative_opening_balance(self, service: LedgerService) -> None:
        with pytest.raises(ValidationError):
            await service.create_account("Overdrawn", "Bank", opening_balance="-5")

        assert await service.list_accounts() == []

    @pytest.mark.asyncio
    async def test_duplicate_name(self, service: LedgerService, account_a: Account) -> None:
        with pytest.raises(ValidationError, match="already exists"):
            await service.create_account("Main Bank", "Cash")

    @pytest.mark.asyncio
    async def test_list_sorted_by_name(
        self,
        service: LedgerService,
        account_a: Account,
        account_b: Account,
    ) -> None:
        names = [a.name for a in await service.list_accounts()]

        assert names == ["Main Bank", "Petty Cash"]

    @pytest.mark.asyncio
    async def test_get_missing(self, service: LedgerService) -> None:
        with pytest.raises(EntityNotFound) as exc_info:
            await service.get_account("acc-missing")

        assert exc_info.value.details == {"entity_kind": "ACCOUNT", "entity_id": "acc-missing"}


@pytest.mark.integration
class TestUpdateAccount:
    """계좌 수정"""

    @pytest.mark.asyncio
    async def test_change_opening_balance(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        """기초 잔액 변경 시 Opening Balance 수입과 잔액이 함께 맞춰짐"""
        await service.create_income(account_a.id, "50", "2024-03-03", "Sunday Service", "Tithe")

        updated = await service.update_account(account_a.id, opening_balance="150")

        assert updated.opening_balance == Decimal("150")
        assert updated.balance == Decimal("200")
        opening = await service.list_incomes(
            account_id=account_a.id, category=SystemCategories.OPENING_BALANCE
        )
        assert [i.amount for i in opening] == [Decimal("150")]
        assert await service.detect_drift() == []

    @pytest.mark.asyncio
    async def test_opening_balance_to_zero(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        updated = await service.update_account(account_a.id, opening_balance="0")

        assert updated.balance == Decimal("0")
        assert await service.list_incomes(account_id=account_a.id) == []

    @pytest.mark.asyncio
    async def test_opening_balance_from_zero(
        self,
        service: LedgerService,
        account_b: Account,
    ) -> None:
        updated = await service.update_account(account_b.id, opening_balance="25")

        assert updated.balance == Decimal("25")
        incomes = await service.list_incomes(account_id=account_b.id)
        assert [i.category for i in incomes] == [SystemCategories.OPENING_BALANCE]

    @pytest.mark.asyncio
    async def test_rename_and_type(self, service: LedgerService, account_b: Account) -> None:
        updated = await service.update_account(
            account_b.id, name="Treasurer MoMo", account_type="Mobile Money"
        )

        assert updated.name == "Treasurer MoMo"
        assert updated.account_type == AccountKind.MOBILE_MONEY

    @pytest.mark.asyncio
    async def test_rename_to_existing(
        self,
        service: LedgerService,
        account_a: Account,
        account_b: Account,
    ) -> None:
        with pytest.raises(ValidationError):
            await service.update_account(account_b.id, name="Main Bank")

    @pytest.mark.asyncio
    async def test_opening_income_not_editable_directly(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        """Opening Balance 수입은 계좌를 통해서만 변경"""
        opening = (await service.list_incomes(account_id=account_a.id))[0]

        with pytest.raises(ValidationError):
            await service.update_income(opening.id, amount="500")
        with pytest.raises(ValidationError):
            await service.delete_transaction(opening.id)

        assert (await service.get_account(account_a.id)).balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_reserved_income_category(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        for category in (SystemCategories.OPENING_BALANCE, SystemCategories.ASSET_DISPOSAL):
            with pytest.raises(ValidationError):
                await service.create_income(account_a.id, "10", "2024-03-03", "Manual", category)


@pytest.mark.integration
class TestDeleteAccount:
    """계좌 삭제"""

    @pytest.mark.asyncio
    async def test_delete_with_opening_balance_only(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        deleted = await service.delete_account(account_a.id)

        assert deleted.id == account_a.id
        assert await service.list_accounts() == []
        assert await service.list_incomes() == []

    @pytest.mark.asyncio
    async def test_delete_in_use(self, service: LedgerService, account_a: Account) -> None:
        await service.create_expenditure(account_a.id, "10", "2024-03-04", "Water", "Utilities")

        with pytest.raises(AccountInUse) as exc_info:
            await service.delete_account(account_a.id)

        assert exc_info.value.details["references"] == {"expenditure": 1}
        assert len(await service.list_accounts()) == 1

    @pytest.mark.asyncio
    async def test_delete_missing(self, service: LedgerService) -> None:
        with pytest.raises(EntityNotFound):
            await service.delete_account("acc-missing")


@pytest.mark.integration
class TestRecalculateBalances:
    """drift 점검 및 재계산"""

    @pytest.mark.asyncio
    async def test_detect_and_fix_drift(
        self,
        service: LedgerService,
        db: SQLiteAdapter,
        account_a: Account,
        account_b: Account,
    ) -> None:
        await service.create_income(account_a.id, "50", "2024-03-03", "Sunday Service", "Tithe")
        await db.execute(
            "UPDATE finance_accounts SET balance = ? WHERE id = ?",
            ("999", account_a.id),
        )
        await db.commit()

        drifts = await service.detect_drift()
        assert len(drifts) == 1
        assert drifts[0].account_id == account_a.id
        assert drifts[0].stored == Decimal("999")
        assert drifts[0].expected == Decimal("150")
        assert drifts[0].drift == Decimal("849")

        corrected = await service.recalculate_balances()

        assert [d.account_id for d in corrected] == [account_a.id]
        assert (await service.get_account(account_a.id)).balance == Decimal("150")
        assert await service.detect_drift() == []

        events = await service.list_events(limit=500)
        assert events[-1].event_type == EventTypes.BALANCES_RECALCULATED
        assert events[-1].payload["corrected"][0]["drift"] == "849"

    @pytest.mark.asyncio
    async def test_no_drift_is_noop(self, service: LedgerService, account_a: Account) -> None:
        assert await service.recalculate_balances() == []
