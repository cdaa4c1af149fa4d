"""
Transaction Classifier & Linker

여러 행에 걸친 원자적 조합 연산.
모든 메서드는 명령 트랜잭션 안에서 호출되며 직접 커밋하지 않음.
한 단계라도 실패하면 예외가 전파되어 트랜잭션 전체가 롤백됨.

- 자산 처분:  Income(Asset Disposal) + Disposal + 자산 상태 변경
- 부채 상환:  Expenditure(linked_liability_id) + liability.amount_paid 증감
- 대출 수령:  Income(linked_liability_id) + Liability(is_loan, linked_income_id)
- 부채 삭제:  연결된 상환 지출과 대출 수입 삭제(잔액 복원) 후 부채 삭제
"""

import logging
from datetime import date
from decimal import Decimal
from uuid import uuid4

from adapters.interfaces import IEntityStore
from core.constants import SystemCategories
from core.domain.models import Disposal, Liability
from core.domain.transactions import Expenditure, Income, Transaction
from core.errors import AssetAlreadyDisposed, EntityNotFound, ValidationError
from core.ledger.balance import BalanceEngine
from core.ledger.budget import BudgetRollup
from core.ledger.reconciliation import ReconciliationWorkflow
from core.ledger.store import LedgerStore
from core.types import AssetStatus, EntityKind

logger = logging.getLogger(__name__)


def new_id(prefix: str) -> str:
    """접두사 + 12자리 hex ID"""
    return f"{prefix}-{uuid4().hex[:12]}"


class TransactionLinker:
    """거래 연결 처리기

    Args:
        store: 조직 범위 LedgerStore
        balance: 잔액 엔진
        entities: 비금융 엔티티 저장소 (같은 쓰기 연결 사용)
        reconciliation: 대사 워크플로 (삭제되는 항목 해제용)
        budgets: 예산 합계 (지출 삭제 후 재계산용)
    """

    def __init__(
        self,
        store: LedgerStore,
        balance: BalanceEngine,
        entities: IEntityStore,
        reconciliation: ReconciliationWorkflow,
        budgets: BudgetRollup,
    ):
        self.store = store
        self.balance = balance
        self.entities = entities
        self.reconciliation = reconciliation
        self.budgets = budgets

    @property
    def organization_id(self) -> str:
        return self.store.organization_id

    # =========================================================================
    # 공통 삭제 경로
    # =========================================================================

    async def remove_transaction(self, txn: Transaction) -> None:
        """거래 행 삭제 (대사 해제 → 잔액 역반영 → 행 삭제 → 예산 재계산)

        연결 레코드(처분, 부채)는 호출자가 먼저 처리해야 함.
        """
        await self.reconciliation.detach_entry(txn)
        await self.balance.apply(txn, reverse=True)
        await self.store.delete_transaction(txn)
        if isinstance(txn, Expenditure):
            await self.budgets.recompute_affected(txn)
        logger.debug(f"거래 삭제: {txn.kind.value} {txn.id}")

    # =========================================================================
    # 자산 처분
    # =========================================================================

    async def require_disposal(self, disposal_id: str) -> Disposal:
        disposal = await self.store.get_disposal(disposal_id)
        if disposal is None:
            raise EntityNotFound(EntityKind.DISPOSAL.value, disposal_id)
        return disposal

    async def create_disposal(
        self,
        asset_id: str,
        account_id: str,
        amount: Decimal,
        on_date: date,
        description: str | None = None,
        method: str | None = None,
        disposal_id: str | None = None,
        income_id: str | None = None,
    ) -> tuple[Disposal, Income]:
        """자산 처분 기록

        Raises:
            EntityNotFound: 자산 또는 계좌 없음
            AssetAlreadyDisposed: 이미 처분된 자산

        Returns:
            (Disposal, 생성된 Income)
        """
        asset = await self.entities.get_asset(self.organization_id, asset_id)
        if asset is None:
            raise EntityNotFound(EntityKind.ASSET.value, asset_id)
        if asset.is_disposed:
            raise AssetAlreadyDisposed(
                f"Asset '{asset.name}' is already disposed",
                {"asset_id": asset.id},
            )
        await self.balance.require_account(account_id)

        income = Income(
            id=income_id or new_id("inc"),
            organization_id=self.organization_id,
            date=on_date,
            source=f"Asset Disposal: {asset.name}",
            category=SystemCategories.ASSET_DISPOSAL,
            amount=amount,
            account_id=account_id,
            method=method,
            reference=description,
            linked_asset_id=asset.id,
        )
        await self.store.insert_income(income)
        await self.balance.apply(income)

        disposal = Disposal(
            id=disposal_id or new_id("dsp"),
            organization_id=self.organization_id,
            asset_id=asset.id,
            asset_name=asset.name,
            date=on_date,
            account_id=account_id,
            amount=amount,
            linked_income_id=income.id,
            description=description,
        )
        await self.store.insert_disposal(disposal)

        await self.entities.set_asset_status(
            self.organization_id,
            asset.id,
            AssetStatus.DISPOSED.value,
            previous_status=asset.status,
        )

        logger.info(
            f"자산 처분: {asset.name} {amount} -> {account_id}",
            extra={"disposal_id": disposal.id, "income_id": income.id},
        )
        return disposal, income

    async def delete_disposal(self, disposal_id: str) -> tuple[Disposal, Income | None]:
        """자산 처분 취소

        처분 행 → 연결 수입(잔액 역반영) 순서로 삭제하고,
        자산 상태를 이전 상태(없으면 Available)로 복원.
        """
        disposal = await self.require_disposal(disposal_id)
        income = await self.store.get_income(disposal.linked_income_id)

        await self.store.delete_disposal(disposal.id)
        if income is not None:
            await self.remove_transaction(income)

        asset = await self.entities.get_asset(self.organization_id, disposal.asset_id)
        if asset is not None:
            restored = asset.previous_status or AssetStatus.AVAILABLE.value
            await self.entities.set_asset_status(
                self.organization_id, asset.id, restored, previous_status=None
            )
            logger.info(f"자산 상태 복원: {asset.name} -> {restored}")

        logger.info(f"자산 처분 취소: {disposal.asset_name}", extra={"disposal_id": disposal.id})
        return disposal, income

    # =========================================================================
    # 부채
    # =========================================================================

    async def require_liability(self, liability_id: str) -> Liability:
        liability = await self.store.get_liability(liability_id)
        if liability is None:
            raise EntityNotFound(EntityKind.LIABILITY.value, liability_id)
        return liability

    async def create_liability(
        self,
        liability: Liability,
        initial_payment: Decimal | None = None,
        initial_payment_account_id: str | None = None,
    ) -> tuple[Liability, Expenditure | None]:
        """부채 생성 (선택적으로 최초 상환 포함)

        Raises:
            ValidationError: 원금 0 이하, 최초 상환 계좌 누락
        """
        if liability.original_amount <= 0:
            raise ValidationError(
                "original_amount must be greater than zero",
                {"value": str(liability.original_amount)},
            )
        if initial_payment and initial_payment_account_id is None:
            raise ValidationError(
                "initial_payment_account_id is required with initial_payment",
                {"field": "initial_payment_account_id"},
            )

        liability.amount_paid = Decimal("0")
        await self.store.insert_liability(liability)
        logger.info(
            f"부채 생성: {liability.creditor} {liability.original_amount}",
            extra={"liability_id": liability.id},
        )

        payment = None
        if initial_payment:
            payment, liability = await self.record_liability_payment(
                liability.id,
                initial_payment_account_id,
                initial_payment,
                liability.date,
                description=f"Initial payment for {liability.description or liability.creditor}",
            )
        return liability, payment

    async def create_loan(
        self,
        liability: Liability,
        account_id: str,
        amount_received: Decimal,
        method: str | None = None,
        income_id: str | None = None,
    ) -> tuple[Liability, Income]:
        """대출/당좌차월 수령 기록

        받은 금액은 계좌로 들어오는 수입, original_amount는 갚아야 할 총액.

        Raises:
            EntityNotFound: 계좌 없음
            ValidationError: 받은 금액이 상환 총액 초과, 종료일이 시작일 이전

        Returns:
            (대출 Liability, 연결된 Income)
        """
        if amount_received > liability.original_amount:
            raise ValidationError(
                "Amount payable must be greater than or equal to the amount received",
                {
                    "amount_received": str(amount_received),
                    "original_amount": str(liability.original_amount),
                },
            )
        if (
            liability.loan_start_date
            and liability.loan_end_date
            and liability.loan_end_date < liability.loan_start_date
        ):
            raise ValidationError(
                "loan_end_date must not be before loan_start_date",
                {
                    "loan_start_date": liability.loan_start_date.isoformat(),
                    "loan_end_date": liability.loan_end_date.isoformat(),
                },
            )
        await self.balance.require_account(account_id)

        income = Income(
            id=income_id or new_id("inc"),
            organization_id=self.organization_id,
            date=liability.date,
            source=liability.creditor,
            category=liability.category,
            amount=amount_received,
            account_id=account_id,
            method=method,
            reference=liability.description,
            linked_liability_id=liability.id,
        )
        await self.store.insert_income(income)
        await self.balance.apply(income)

        liability.is_loan = True
        liability.amount_paid = Decimal("0")
        liability.amount_received = amount_received
        liability.linked_income_id = income.id
        await self.store.insert_liability(liability)

        logger.info(
            f"대출 수령: {liability.creditor} {amount_received} -> {account_id} "
            f"(상환액 {liability.original_amount})",
            extra={"liability_id": liability.id, "income_id": income.id},
        )
        return liability, income

    async def delete_loan_income(self, income: Income) -> Liability | None:
        """대출 수입만 삭제 (부채는 남기고 연결만 해제)

        Returns:
            연결이 해제된 Liability (이미 없으면 None)
        """
        await self.remove_transaction(income)
        liability = await self.store.get_liability(income.linked_liability_id)
        if liability is None:
            return None
        if liability.linked_income_id == income.id:
            await self.store.unlink_loan_income(liability.id)
            liability.linked_income_id = None
        logger.info(
            f"대출 수입 삭제: {income.amount}",
            extra={"liability_id": liability.id, "income_id": income.id},
        )
        return liability

    async def record_liability_payment(
        self,
        liability_id: str,
        account_id: str,
        amount: Decimal,
        on_date: date,
        description: str | None = None,
        method: str | None = None,
        expenditure_id: str | None = None,
    ) -> tuple[Expenditure, Liability]:
        """부채 상환 기록

        Raises:
            EntityNotFound: 부채 또는 계좌 없음
            ValidationError: 잔여 부채 초과 상환

        Returns:
            (상환 Expenditure, 갱신된 Liability)
        """
        liability = await self.require_liability(liability_id)
        await self.balance.require_account(account_id)
        if amount > liability.balance:
            raise ValidationError(
                "Payment cannot exceed the liability balance",
                {
                    "liability_id": liability.id,
                    "balance": str(liability.balance),
                    "requested": str(amount),
                },
            )

        label = description or f"Payment for {liability.description or liability.creditor}"
        payment = Expenditure(
            id=expenditure_id or new_id("exp"),
            organization_id=self.organization_id,
            date=on_date,
            description=label,
            category=SystemCategories.LIABILITIES,
            amount=amount,
            account_id=account_id,
            method=method,
            reference=label,
            linked_liability_id=liability.id,
        )
        await self.store.insert_expenditure(payment)
        await self.balance.apply(payment)
        await self.budgets.recompute_affected(payment)

        liability.amount_paid += amount
        await self.store.set_liability_paid(liability.id, liability.amount_paid)

        logger.info(
            f"부채 상환: {liability.creditor} {amount} ({liability.status.value})",
            extra={"liability_id": liability.id, "expenditure_id": payment.id},
        )
        return payment, liability

    async def adjust_liability_paid(self, liability_id: str, delta: Decimal) -> Liability | None:
        """상환 합계 증감 (0 미만으로 내려가지 않음)

        Returns:
            갱신된 Liability (부채가 이미 없으면 None)
        """
        liability = await self.store.get_liability(liability_id)
        if liability is None:
            return None
        liability.amount_paid = max(Decimal("0"), liability.amount_paid + delta)
        await self.store.set_liability_paid(liability.id, liability.amount_paid)
        return liability

    async def delete_liability_payment(
        self,
        expenditure_id: str,
    ) -> tuple[Expenditure, Liability | None]:
        """부채 상환 삭제 (잔액 역반영 + amount_paid 차감)

        Raises:
            EntityNotFound: 지출 없음
            ValidationError: 부채에 연결되지 않은 지출
        """
        payment = await self.store.get_expenditure(expenditure_id)
        if payment is None:
            raise EntityNotFound(EntityKind.EXPENDITURE.value, expenditure_id)
        if not payment.linked_liability_id:
            raise ValidationError(
                "Expenditure is not a liability payment",
                {"expenditure_id": expenditure_id},
            )

        await self.remove_transaction(payment)
        liability = await self.adjust_liability_paid(payment.linked_liability_id, -payment.amount)

        logger.info(
            f"부채 상환 취소: {payment.amount}",
            extra={"liability_id": payment.linked_liability_id, "expenditure_id": payment.id},
        )
        return payment, liability

    async def delete_liability(
        self,
        liability_id: str,
    ) -> tuple[Liability, list[Expenditure], Income | None]:
        """부채 삭제 (연결된 상환 지출과 대출 수입 먼저 삭제)

        Returns:
            (삭제된 Liability, 삭제된 상환 목록, 삭제된 대출 수입)
        """
        liability = await self.require_liability(liability_id)
        payments = await self.store.list_expenditures(liability_id=liability.id)
        for payment in payments:
            await self.remove_transaction(payment)

        loan_income = None
        if liability.linked_income_id:
            loan_income = await self.store.get_income(liability.linked_income_id)
            if loan_income is not None:
                await self.remove_transaction(loan_income)

        await self.store.delete_liability(liability.id)

        logger.info(
            f"부채 삭제: {liability.creditor} (상환 {len(payments)}건 포함)",
            extra={
                "liability_id": liability.id,
                "loan_income_id": loan_income.id if loan_income else None,
            },
        )
        return liability, payments, loan_income
