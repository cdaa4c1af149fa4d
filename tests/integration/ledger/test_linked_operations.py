"""
연결 거래 통합 테스트

자산 처분 (수입 + 처분 + 자산 상태), 부채와 상환 (지출 + amount_paid),
대출 (수령 수입 + 부채).
"""

from decimal import Decimal

import pytest
import pytest_asyncio

from adapters.db.entity_store import SQLiteEntityStore
from core.constants import SystemCategories
from core.domain.events import EventTypes
from core.domain.models import Account, Asset
from core.errors import AssetAlreadyDisposed, EntityNotFound, ValidationError
from core.ledger.service import LedgerService
from core.types import LiabilityStatus, TransactionKind
from tests.conftest import ORG_ID


@pytest_asyncio.fixture
async def reserve(service: LedgerService) -> Account:
    """상환용 계좌 (기초 잔액 1000)"""
    return await service.create_account("Reserve", "Bank", opening_balance="1000")


async def balance_of(service: LedgerService, account_id: str) -> Decimal:
    return (await service.get_account(account_id)).balance


@pytest.mark.integration
class TestDisposal:
    """자산 처분"""

    @pytest.mark.asyncio
    async def test_create_disposal(
        self,
        service: LedgerService,
        entities: SQLiteEntityStore,
        account_a: Account,
        asset: Asset,
    ) -> None:
        """수입 + 처분 + 자산 상태가 함께 기록됨"""
        disposal = await service.create_disposal(
            asset.id, account_a.id, "500", "2024-04-01", description="Sold to member"
        )

        assert disposal.asset_name == "Church Van"
        assert disposal.amount == Decimal("500")
        assert await balance_of(service, account_a.id) == Decimal("600")

        income = await service.get_transaction(disposal.linked_income_id)
        assert income.category == SystemCategories.ASSET_DISPOSAL
        assert income.linked_asset_id == asset.id
        assert income.source == "Asset Disposal: Church Van"

        stored_asset = await entities.get_asset(ORG_ID, asset.id)
        assert stored_asset.is_disposed
        assert stored_asset.previous_status == "In Use"

        assert [d.id for d in await service.list_disposals(asset_id=asset.id)] == [disposal.id]

    @pytest.mark.asyncio
    async def test_already_disposed(
        self,
        service: LedgerService,
        account_a: Account,
        asset: Asset,
    ) -> None:
        await service.create_disposal(asset.id, account_a.id, "500", "2024-04-01")

        with pytest.raises(AssetAlreadyDisposed):
            await service.create_disposal(asset.id, account_a.id, "300", "2024-04-02")

        assert await balance_of(service, account_a.id) == Decimal("600")
        assert len(await service.list_disposals()) == 1

    @pytest.mark.asyncio
    async def test_unknown_asset(self, service: LedgerService, account_a: Account) -> None:
        with pytest.raises(EntityNotFound) as exc_info:
            await service.create_disposal("as-missing", account_a.id, "500", "2024-04-01")

        assert exc_info.value.entity_kind == "ASSET"

    @pytest.mark.asyncio
    async def test_unknown_account_leaves_asset(
        self,
        service: LedgerService,
        entities: SQLiteEntityStore,
        asset: Asset,
    ) -> None:
        with pytest.raises(EntityNotFound):
            await service.create_disposal(asset.id, "acc-missing", "500", "2024-04-01")

        assert (await entities.get_asset(ORG_ID, asset.id)).status == "In Use"

    @pytest.mark.asyncio
    async def test_delete_disposal_restores_asset(
        self,
        service: LedgerService,
        entities: SQLiteEntityStore,
        account_a: Account,
        asset: Asset,
    ) -> None:
        disposal = await service.create_disposal(asset.id, account_a.id, "500", "2024-04-01")

        await service.delete_disposal(disposal.id)

        assert await balance_of(service, account_a.id) == Decimal("100")
        stored_asset = await entities.get_asset(ORG_ID, asset.id)
        assert stored_asset.status == "In Use"
        assert stored_asset.previous_status is None
        assert await service.list_disposals() == []
        with pytest.raises(EntityNotFound):
            await service.get_transaction(disposal.linked_income_id)

    @pytest.mark.asyncio
    async def test_delete_income_reverses_disposal(
        self,
        service: LedgerService,
        entities: SQLiteEntityStore,
        account_a: Account,
        asset: Asset,
    ) -> None:
        """처분 수입을 거래 삭제로 지워도 처분 전체가 취소됨"""
        disposal = await service.create_disposal(asset.id, account_a.id, "500", "2024-04-01")

        await service.delete_transaction(disposal.linked_income_id)

        assert await service.list_disposals() == []
        assert (await entities.get_asset(ORG_ID, asset.id)).status == "In Use"
        assert await balance_of(service, account_a.id) == Decimal("100")

        types = [e.event_type for e in await service.list_events(limit=500)]
        assert types[-2:] == [EventTypes.DISPOSAL_REVERSED, EventTypes.TRANSACTION_DELETED]

    @pytest.mark.asyncio
    async def test_dispose_again_after_reversal(
        self,
        service: LedgerService,
        account_a: Account,
        asset: Asset,
    ) -> None:
        disposal = await service.create_disposal(asset.id, account_a.id, "500", "2024-04-01")
        await service.delete_disposal(disposal.id)

        await service.create_disposal(asset.id, account_a.id, "450", "2024-04-03")

        assert await balance_of(service, account_a.id) == Decimal("550")

    @pytest.mark.asyncio
    async def test_disposal_income_not_editable(
        self,
        service: LedgerService,
        account_a: Account,
        asset: Asset,
    ) -> None:
        disposal = await service.create_disposal(asset.id, account_a.id, "500", "2024-04-01")

        with pytest.raises(ValidationError):
            await service.update_income(disposal.linked_income_id, amount="1")


@pytest.mark.integration
class TestLiability:
    """부채와 상환"""

    @pytest.mark.asyncio
    async def test_create_liability(self, service: LedgerService) -> None:
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")

        assert liability.category == SystemCategories.LIABILITIES
        assert liability.amount_paid == Decimal("0")
        assert liability.status == LiabilityStatus.NOT_PAID
        assert [l.id for l in await service.list_liabilities()] == [liability.id]

    @pytest.mark.asyncio
    async def test_payments_converge_to_paid(
        self,
        service: LedgerService,
        reserve: Account,
    ) -> None:
        """상환 합계 == amount_paid, 잔액 0이면 Paid"""
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")

        first = await service.record_liability_payment(
            liability.id, reserve.id, "100", "2024-02-01"
        )
        assert first.kind == TransactionKind.LIABILITY_PAYMENT
        assert first.category == SystemCategories.LIABILITIES
        assert first.description == "Payment for Bank of Ghana"

        fetched = await service.get_liability(liability.id)
        assert fetched.amount_paid == Decimal("100")
        assert fetched.status == LiabilityStatus.PARTIALLY_PAID

        await service.record_liability_payment(liability.id, reserve.id, "200", "2024-03-01")

        fetched = await service.get_liability(liability.id)
        assert fetched.status == LiabilityStatus.PAID
        assert fetched.balance == Decimal("0")
        assert await balance_of(service, reserve.id) == Decimal("700")

        payments = await service.list_expenditures(liability_id=liability.id)
        assert sum(p.amount for p in payments) == fetched.amount_paid

    @pytest.mark.asyncio
    async def test_overpayment_rejected(self, service: LedgerService, reserve: Account) -> None:
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")

        with pytest.raises(ValidationError, match="exceed"):
            await service.record_liability_payment(liability.id, reserve.id, "301", "2024-02-01")

        assert await balance_of(service, reserve.id) == Decimal("1000")
        assert (await service.get_liability(liability.id)).amount_paid == Decimal("0")

    @pytest.mark.asyncio
    async def test_initial_payment(self, service: LedgerService, reserve: Account) -> None:
        liability = await service.create_liability(
            "Roofing Co",
            "500",
            "2024-01-10",
            description="Roof repair",
            initial_payment="150",
            initial_payment_account_id=reserve.id,
        )

        assert liability.amount_paid == Decimal("150")
        payments = await service.list_expenditures(liability_id=liability.id)
        assert [p.description for p in payments] == ["Initial payment for Roof repair"]
        assert await balance_of(service, reserve.id) == Decimal("850")

        types = [e.event_type for e in await service.list_events(limit=500)]
        assert types[-2:] == [EventTypes.LIABILITY_CREATED, EventTypes.LIABILITY_PAYMENT_RECORDED]

    @pytest.mark.asyncio
    async def test_initial_payment_requires_account(self, service: LedgerService) -> None:
        with pytest.raises(ValidationError):
            await service.create_liability("Roofing Co", "500", "2024-01-10", initial_payment="150")

        assert await service.list_liabilities() == []

    @pytest.mark.asyncio
    async def test_update_payment_amount(self, service: LedgerService, reserve: Account) -> None:
        """상환 지출 금액 변경은 amount_paid에 차액만큼 반영"""
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")
        payment = await service.record_liability_payment(
            liability.id, reserve.id, "100", "2024-02-01"
        )

        await service.update_expenditure(payment.id, amount="160")
        assert (await service.get_liability(liability.id)).amount_paid == Decimal("160")
        assert await balance_of(service, reserve.id) == Decimal("840")

        await service.update_expenditure(payment.id, amount="40")
        assert (await service.get_liability(liability.id)).amount_paid == Decimal("40")
        assert await balance_of(service, reserve.id) == Decimal("960")

    @pytest.mark.asyncio
    async def test_update_payment_beyond_balance(
        self,
        service: LedgerService,
        reserve: Account,
    ) -> None:
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")
        payment = await service.record_liability_payment(
            liability.id, reserve.id, "100", "2024-02-01"
        )

        with pytest.raises(ValidationError):
            await service.update_expenditure(payment.id, amount="301")

        assert (await service.get_liability(liability.id)).amount_paid == Decimal("100")

    @pytest.mark.asyncio
    async def test_delete_payment(self, service: LedgerService, reserve: Account) -> None:
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")
        payment = await service.record_liability_payment(
            liability.id, reserve.id, "100", "2024-02-01"
        )

        await service.delete_liability_payment(payment.id)

        fetched = await service.get_liability(liability.id)
        assert fetched.amount_paid == Decimal("0")
        assert fetched.status == LiabilityStatus.NOT_PAID
        assert await balance_of(service, reserve.id) == Decimal("1000")

    @pytest.mark.asyncio
    async def test_delete_transaction_on_payment(
        self,
        service: LedgerService,
        reserve: Account,
    ) -> None:
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")
        payment = await service.record_liability_payment(
            liability.id, reserve.id, "100", "2024-02-01"
        )

        await service.delete_transaction(payment.id)

        assert (await service.get_liability(liability.id)).amount_paid == Decimal("0")
        types = [e.event_type for e in await service.list_events(limit=500)]
        assert types[-2:] == [
            EventTypes.LIABILITY_PAYMENT_REVERSED,
            EventTypes.TRANSACTION_DELETED,
        ]

    @pytest.mark.asyncio
    async def test_delete_plain_expenditure_as_payment(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        expenditure = await service.create_expenditure(
            account_a.id, "10", "2024-03-04", "Water", "Utilities"
        )

        with pytest.raises(ValidationError):
            await service.delete_liability_payment(expenditure.id)

    @pytest.mark.asyncio
    async def test_delete_liability_removes_payments(
        self,
        service: LedgerService,
        reserve: Account,
        account_a: Account,
    ) -> None:
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")
        await service.record_liability_payment(liability.id, reserve.id, "100", "2024-02-01")
        await service.record_liability_payment(liability.id, account_a.id, "50", "2024-02-15")

        await service.delete_liability(liability.id)

        with pytest.raises(EntityNotFound):
            await service.get_liability(liability.id)
        assert await service.list_expenditures() == []
        assert await balance_of(service, reserve.id) == Decimal("1000")
        assert await balance_of(service, account_a.id) == Decimal("100")

    @pytest.mark.asyncio
    async def test_update_liability(self, service: LedgerService, reserve: Account) -> None:
        liability = await service.create_liability("Bank of Ghana", "300", "2024-01-10")
        await service.record_liability_payment(liability.id, reserve.id, "100", "2024-02-01")

        updated = await service.update_liability(
            liability.id, creditor="GCB Bank", original_amount="250"
        )
        assert updated.creditor == "GCB Bank"
        assert updated.balance == Decimal("150")

        with pytest.raises(ValidationError):
            await service.update_liability(liability.id, original_amount="99")


@pytest.mark.integration
class TestLoan:
    """대출/당좌차월 (수령 수입 + 부채)"""

    @pytest.mark.asyncio
    async def test_create_loan(self, service: LedgerService, account_a: Account) -> None:
        """받은 금액은 수입, 상환 총액은 부채로 서로 연결됨"""
        loan = await service.create_loan(
            "GCB Bank",
            "1100",
            "1000",
            account_a.id,
            "2024-02-01",
            description="Roof repair loan",
            interest_rate="10",
            loan_start_date="2024-02-01",
            loan_end_date="2024-08-01",
        )

        assert loan.is_loan
        assert loan.category == "Loans/Overdrafts"
        assert loan.amount_received == Decimal("1000")
        assert loan.balance == Decimal("1100")
        assert loan.status == LiabilityStatus.NOT_PAID
        assert loan.loan_duration_days == 182
        assert await balance_of(service, account_a.id) == Decimal("1100")

        income = await service.get_transaction(loan.linked_income_id)
        assert income.kind == TransactionKind.INCOME
        assert income.amount == Decimal("1000")
        assert income.source == "GCB Bank"
        assert income.linked_liability_id == loan.id

        stored = await service.get_liability(loan.id)
        assert stored.is_loan
        assert stored.linked_income_id == income.id
        assert stored.interest_rate == Decimal("10")
        assert await service.detect_drift() == []

        events = await service.list_events()
        assert [e.event_type for e in events[-2:]] == [
            EventTypes.INCOME_RECORDED,
            EventTypes.LIABILITY_CREATED,
        ]

    @pytest.mark.asyncio
    async def test_payable_below_received_rejected(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        """상환 총액이 받은 금액보다 작으면 아무것도 기록되지 않음"""
        with pytest.raises(ValidationError):
            await service.create_loan("GCB Bank", "900", "1000", account_a.id, "2024-02-01")

        assert await service.list_liabilities() == []
        assert [i.category for i in await service.list_incomes(account_id=account_a.id)] == [
            "Opening Balance"
        ]
        assert await balance_of(service, account_a.id) == Decimal("100")

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        with pytest.raises(ValidationError):
            await service.create_loan(
                "GCB Bank",
                "1100",
                "1000",
                account_a.id,
                "2024-02-01",
                loan_start_date="2024-03-01",
                loan_end_date="2024-02-01",
            )

        assert await service.list_liabilities() == []

    @pytest.mark.asyncio
    async def test_unknown_account(self, service: LedgerService) -> None:
        with pytest.raises(EntityNotFound):
            await service.create_loan("GCB Bank", "1100", "1000", "acc-missing", "2024-02-01")

        assert await service.list_liabilities() == []

    @pytest.mark.asyncio
    async def test_delete_loan_removes_income_and_payments(
        self,
        service: LedgerService,
        account_a: Account,
        reserve: Account,
    ) -> None:
        """부채 삭제 시 상환 지출과 수령 수입이 함께 삭제되고 잔액 복원"""
        loan = await service.create_loan("GCB Bank", "1100", "1000", account_a.id, "2024-02-01")
        await service.record_liability_payment(loan.id, reserve.id, "200", "2024-03-01")
        assert (await service.get_liability(loan.id)).balance == Decimal("900")

        await service.delete_liability(loan.id)

        with pytest.raises(EntityNotFound):
            await service.get_liability(loan.id)
        with pytest.raises(EntityNotFound):
            await service.get_transaction(loan.linked_income_id)
        assert await service.list_expenditures() == []
        assert await balance_of(service, account_a.id) == Decimal("100")
        assert await balance_of(service, reserve.id) == Decimal("1000")
        assert await service.detect_drift() == []

        deleted = (await service.list_events())[-1]
        assert deleted.event_type == EventTypes.LIABILITY_DELETED
        assert deleted.payload["removed_loan_income_id"] == loan.linked_income_id
        assert len(deleted.payload["removed_payment_ids"]) == 1

    @pytest.mark.asyncio
    async def test_delete_income_unlinks_loan(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        """수령 수입만 지우면 부채는 남고 연결만 해제됨"""
        loan = await service.create_loan("GCB Bank", "1100", "1000", account_a.id, "2024-02-01")

        deleted = await service.delete_transaction(loan.linked_income_id)

        assert deleted.id == loan.linked_income_id
        assert await balance_of(service, account_a.id) == Decimal("100")
        remaining = await service.get_liability(loan.id)
        assert remaining.is_loan
        assert remaining.linked_income_id is None
        assert remaining.balance == Decimal("1100")

        await service.delete_liability(loan.id)
        assert await balance_of(service, account_a.id) == Decimal("100")
        assert await service.detect_drift() == []

    @pytest.mark.asyncio
    async def test_loan_income_not_editable(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        loan = await service.create_loan("GCB Bank", "1100", "1000", account_a.id, "2024-02-01")

        with pytest.raises(ValidationError):
            await service.update_income(loan.linked_income_id, amount="1")

        assert await balance_of(service, account_a.id) == Decimal("1100")

    @pytest.mark.asyncio
    async def test_list_filters_loans(self, service: LedgerService, account_a: Account) -> None:
        loan = await service.create_loan("GCB Bank", "1100", "1000", account_a.id, "2024-02-01")
        plain = await service.create_liability("Bank of Ghana", "300", "2024-01-10")

        assert [l.id for l in await service.list_liabilities(is_loan=True)] == [loan.id]
        assert [l.id for l in await service.list_liabilities(is_loan=False)] == [plain.id]
        assert len(await service.list_liabilities()) == 2
