"""
카테고리 무결성 + 예산 합계 통합 테스트
"""

from decimal import Decimal

import pytest

from adapters.db.entity_store import SQLiteEntityStore
from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import SystemCategories
from core.domain.models import Account, Asset, Category
from core.errors import CategoryInUse, EntityNotFound, ImmutableSystemCategory, ValidationError
from core.ledger.service import LedgerService


async def system_category(service: LedgerService, name: str, category_type: str) -> Category:
    for category in await service.list_categories(category_type):
        if category.name == name:
            return category
    raise AssertionError(f"system category missing: {name}")


@pytest.mark.integration
class TestCategories:
    """카테고리 생성/수정/삭제"""

    @pytest.mark.asyncio
    async def test_system_categories_seeded(self, service: LedgerService) -> None:
        """시드는 멱등"""
        assert await service.ensure_system_categories() == []

        names = {(c.category_type, c.name) for c in await service.list_categories() if c.is_system}
        assert names == {
            ("income", SystemCategories.OPENING_BALANCE),
            ("income", SystemCategories.ASSET_DISPOSAL),
            ("liability", SystemCategories.LIABILITIES),
        }

    @pytest.mark.asyncio
    async def test_create_and_duplicate(self, service: LedgerService) -> None:
        category = await service.create_category("Tithe", "Income", track_members=True)

        assert category.category_type == "income"
        assert category.track_members
        assert not category.is_system

        with pytest.raises(ValidationError):
            await service.create_category("Tithe", "income")

        # 다른 유형이면 같은 이름 허용
        await service.create_category("Tithe", "expense")

    @pytest.mark.asyncio
    async def test_invalid_type(self, service: LedgerService) -> None:
        with pytest.raises(ValidationError):
            await service.create_category("Misc", "asset")

    @pytest.mark.asyncio
    async def test_system_category_immutable(self, service: LedgerService) -> None:
        category = await system_category(service, SystemCategories.LIABILITIES, "liability")

        with pytest.raises(ImmutableSystemCategory):
            await service.update_category(category.id, name="Debts")

    @pytest.mark.asyncio
    async def test_rename_to_system_name(self, service: LedgerService) -> None:
        category = await service.create_category("Gifts", "income")

        with pytest.raises(ValidationError):
            await service.update_category(category.id, name=SystemCategories.OPENING_BALANCE)

    @pytest.mark.asyncio
    async def test_rename_propagates(self, service: LedgerService, account_a: Account) -> None:
        """이름 변경은 지출과 예산에 반영"""
        category = await service.create_category("Utilities", "expense")
        expenditure = await service.create_expenditure(
            account_a.id, "30", "2024-03-04", "Electricity bill", "Utilities"
        )
        budget = await service.create_budget("Utilities", "2024-03", "100")

        await service.update_category(category.id, name="Power & Water")

        assert (await service.get_transaction(expenditure.id)).category == "Power & Water"
        assert (await service.get_budget(budget.id)).category == "Power & Water"

    @pytest.mark.asyncio
    async def test_delete_user_category_in_use(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        category = await service.create_category("Tithe", "income")
        await service.create_income(account_a.id, "50", "2024-03-03", "Sunday Service", "Tithe")

        with pytest.raises(CategoryInUse) as exc_info:
            await service.delete_category(category.id)

        assert exc_info.value.details["usage"] == 1

    @pytest.mark.asyncio
    async def test_delete_checks_every_record_table(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        """유형과 다른 테이블에서 쓰여도 사용 중으로 판단"""
        category = await service.create_category("Misc", "income")
        await service.create_expenditure(account_a.id, "5", "2024-03-04", "Stationery", "Misc")
        await service.create_liability("Office Supplies Co", "20", "2024-03-01", category="Misc")

        with pytest.raises(CategoryInUse) as exc_info:
            await service.delete_category(category.id)

        assert exc_info.value.details["usage"] == 2
        assert any(c.id == category.id for c in await service.list_categories("income"))

    @pytest.mark.asyncio
    async def test_update_track_members_from_string(self, service: LedgerService) -> None:
        """문자열 플래그는 엄격히 해석 ("false"가 True로 바뀌지 않음)"""
        category = await service.create_category("Tithe", "income", track_members="TRUE")
        assert category.track_members is True

        updated = await service.update_category(category.id, track_members="false")
        assert updated.track_members is False

        with pytest.raises(ValidationError):
            await service.update_category(category.id, track_members="no")

    @pytest.mark.asyncio
    async def test_delete_unused_user_category(self, service: LedgerService) -> None:
        category = await service.create_category("Tithe", "income")

        assert await service.delete_category(category.id) == {"category": 1}
        with pytest.raises(EntityNotFound):
            await service.delete_category(category.id)

    @pytest.mark.asyncio
    async def test_delete_system_income_category_cascades(
        self,
        service: LedgerService,
        entities: SQLiteEntityStore,
        account_a: Account,
        asset: Asset,
    ) -> None:
        """Asset Disposal 삭제 시 처분 → 수입 → 카테고리 순서로 연쇄 삭제"""
        await service.create_disposal(asset.id, account_a.id, "500", "2024-04-01")
        category = await system_category(service, SystemCategories.ASSET_DISPOSAL, "income")

        removed = await service.delete_category(category.id)

        assert removed == {"disposals": 1, "income": 0, "category": 1}
        assert await service.list_disposals() == []
        assert (await service.get_account(account_a.id)).balance == Decimal("100")
        assert (await entities.get_asset(asset.organization_id, asset.id)).status == "In Use"
        assert await service.detect_drift() == []

    @pytest.mark.asyncio
    async def test_delete_system_liability_category_cascades(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")
        await service.record_liability_payment(liability.id, account_a.id, "40", "2024-02-01")
        category = await system_category(service, SystemCategories.LIABILITIES, "liability")

        removed = await service.delete_category(category.id)

        assert removed == {"payments": 1, "liabilities": 1, "category": 1}
        assert await service.list_liabilities() == []
        assert await service.list_expenditures() == []
        assert (await service.get_account(account_a.id)).balance == Decimal("100")


@pytest.mark.integration
class TestBudgets:
    """예산 spent 합계"""

    @pytest.mark.asyncio
    async def test_create_computes_spent(self, service: LedgerService, account_a: Account) -> None:
        await service.create_expenditure(account_a.id, "30", "2024-03-04", "Power", "Utilities")
        await service.create_expenditure(account_a.id, "20", "2024-04-01", "Water", "Utilities")

        budget = await service.create_budget("Utilities", "2024-q1", "100")

        assert budget.period == "2024-Q1"
        assert budget.spent == Decimal("30")
        assert budget.remaining == Decimal("70")

    @pytest.mark.asyncio
    async def test_expenditure_commands_update_spent(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        monthly = await service.create_budget("Utilities", "2024-03", "100")
        yearly = await service.create_budget("Utilities", "2024", "1000")

        expenditure = await service.create_expenditure(
            account_a.id, "30", "2024-03-04", "Power", "Utilities"
        )
        assert (await service.get_budget(monthly.id)).spent == Decimal("30")
        assert (await service.get_budget(yearly.id)).spent == Decimal("30")

        # 다른 달로 이동하면 월 예산에서 빠짐
        await service.update_expenditure(expenditure.id, on_date="2024-05-02", amount="45")
        assert (await service.get_budget(monthly.id)).spent == Decimal("0")
        assert (await service.get_budget(yearly.id)).spent == Decimal("45")

        await service.delete_transaction(expenditure.id)
        assert (await service.get_budget(yearly.id)).spent == Decimal("0")

    @pytest.mark.asyncio
    async def test_category_change_moves_spent(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        utilities = await service.create_budget("Utilities", "2024-03", "100")
        repairs = await service.create_budget("Repairs", "2024-03", "100")
        expenditure = await service.create_expenditure(
            account_a.id, "30", "2024-03-04", "Power", "Utilities"
        )

        await service.update_expenditure(expenditure.id, category="Repairs")

        assert (await service.get_budget(utilities.id)).spent == Decimal("0")
        assert (await service.get_budget(repairs.id)).spent == Decimal("30")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("period", ["2024-13", "24", "2024-Q5", "March"])
    async def test_invalid_period(self, service: LedgerService, period: str) -> None:
        with pytest.raises(ValidationError):
            await service.create_budget("Utilities", period, "100")

    @pytest.mark.asyncio
    async def test_negative_budget(self, service: LedgerService) -> None:
        with pytest.raises(ValidationError):
            await service.create_budget("Utilities", "2024-03", "-1")

    @pytest.mark.asyncio
    async def test_update_budget_recomputes(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        await service.create_expenditure(account_a.id, "30", "2024-03-04", "Power", "Utilities")
        budget = await service.create_budget("Utilities", "2024-02", "100")
        assert budget.spent == Decimal("0")

        updated = await service.update_budget(budget.id, period="2024-03", budgeted="80")

        assert updated.spent == Decimal("30")
        assert updated.budgeted == Decimal("80")

    @pytest.mark.asyncio
    async def test_recompute_budget_spent(
        self,
        service: LedgerService,
        db: SQLiteAdapter,
        account_a: Account,
    ) -> None:
        budget = await service.create_budget("Utilities", "2024-03", "100")
        await service.create_expenditure(account_a.id, "30", "2024-03-04", "Power", "Utilities")
        await db.execute("UPDATE finance_budgets SET spent = '0' WHERE id = ?", (budget.id,))
        await db.commit()

        assert await service.recompute_budget_spent("Utilities", "2024-03") == Decimal("30")
        assert (await service.get_budget(budget.id)).spent == Decimal("30")

    @pytest.mark.asyncio
    async def test_delete_budget(self, service: LedgerService) -> None:
        budget = await service.create_budget("Utilities", "2024-03", "100")

        await service.delete_budget(budget.id)

        assert await service.list_budgets() == []
        with pytest.raises(EntityNotFound):
            await service.delete_budget(budget.id)
