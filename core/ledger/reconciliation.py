"""
Reconciliation Workflow

계좌의 장부 잔액과 은행 잔액을 맞춰보고, 확인된 수입/지출 항목을 대사 처리.

불변식:
    항목의 reconciled_in은 항상 그 항목을 포함하는 대사를 가리키거나 None.
    (is_reconciled == True) ⇔ 어떤 대사의 항목 집합이 그 항목을 포함.

상태(Balanced/Unbalanced)는 차액에서 파생된 라벨이며 저장을 막지 않음.
"""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable

from core.domain.models import Reconciliation
from core.domain.transactions import Expenditure, Income, Transaction
from core.errors import EntityNotFound, ValidationError
from core.ledger.store import LedgerStore
from core.types import EntityKind

logger = logging.getLogger(__name__)


def _unique(ids: Iterable[str] | None) -> list[str]:
    """중복 제거 (순서 유지)"""
    if not ids:
        return []
    return list(dict.fromkeys(str(i) for i in ids if i))


class ReconciliationWorkflow:
    """대사 워크플로

    Args:
        store: 조직 범위 LedgerStore
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def require(self, reconciliation_id: str) -> Reconciliation:
        record = await self.store.get_reconciliation(reconciliation_id)
        if record is None:
            raise EntityNotFound(EntityKind.RECONCILIATION.value, reconciliation_id)
        return record

    async def create(
        self,
        reconciliation_id: str,
        account_id: str,
        on_date: date,
        bank_balance: Decimal,
        book_balance: Decimal | None = None,
        reconciled_income_ids: Iterable[str] | None = None,
        reconciled_expenditure_ids: Iterable[str] | None = None,
        added_income_ids: Iterable[str] | None = None,
        added_expenditure_ids: Iterable[str] | None = None,
        notes: str | None = None,
    ) -> Reconciliation:
        """대사 생성 및 항목 마킹

        Args:
            book_balance: 장부 잔액 (None이면 현재 계좌 잔액)

        Raises:
            EntityNotFound: 계좌 없음
            ValidationError: 없는 항목, 다른 계좌 항목, 다른 대사에 이미 포함된 항목
        """
        account = await self.store.get_account(account_id)
        if account is None:
            raise EntityNotFound(EntityKind.ACCOUNT.value, account_id)

        record = Reconciliation(
            id=reconciliation_id,
            organization_id=self.store.organization_id,
            account_id=account_id,
            date=on_date,
            book_balance=account.balance if book_balance is None else book_balance,
            bank_balance=bank_balance,
            reconciled_income_ids=_unique(reconciled_income_ids),
            reconciled_expenditure_ids=_unique(reconciled_expenditure_ids),
            added_income_ids=_unique(added_income_ids),
            added_expenditure_ids=_unique(added_expenditure_ids),
            notes=notes,
        )

        await self._validate_entries(record, EntityKind.INCOME.value, record.reconciled_income_ids)
        await self._validate_entries(
            record, EntityKind.EXPENDITURE.value, record.reconciled_expenditure_ids
        )

        await self.store.insert_reconciliation(record)
        await self.store.set_reconciled(
            EntityKind.INCOME.value, record.reconciled_income_ids, record.id
        )
        await self.store.set_reconciled(
            EntityKind.EXPENDITURE.value, record.reconciled_expenditure_ids, record.id
        )

        logger.info(
            f"대사 생성: {record.id} ({record.status.value}, diff={record.difference})",
            extra={"account_id": account_id},
        )
        return record

    async def update(
        self,
        reconciliation_id: str,
        on_date: date | None = None,
        book_balance: Decimal | None = None,
        bank_balance: Decimal | None = None,
        reconciled_income_ids: Iterable[str] | None = None,
        reconciled_expenditure_ids: Iterable[str] | None = None,
        added_income_ids: Iterable[str] | None = None,
        added_expenditure_ids: Iterable[str] | None = None,
        notes: str | None = None,
    ) -> Reconciliation:
        """대사 수정

        항목 집합이 주어지면 이전 집합과 비교하여
        빠진 항목은 해제하고 새 항목은 마킹. None인 필드는 유지.
        """
        old = await self.require(reconciliation_id)

        new = replace(
            old,
            date=on_date or old.date,
            book_balance=old.book_balance if book_balance is None else book_balance,
            bank_balance=old.bank_balance if bank_balance is None else bank_balance,
            reconciled_income_ids=(
                old.reconciled_income_ids
                if reconciled_income_ids is None
                else _unique(reconciled_income_ids)
            ),
            reconciled_expenditure_ids=(
                old.reconciled_expenditure_ids
                if reconciled_expenditure_ids is None
                else _unique(reconciled_expenditure_ids)
            ),
            added_income_ids=(
                old.added_income_ids if added_income_ids is None else _unique(added_income_ids)
            ),
            added_expenditure_ids=(
                old.added_expenditure_ids
                if added_expenditure_ids is None
                else _unique(added_expenditure_ids)
            ),
            notes=old.notes if notes is None else notes,
        )

        for kind, old_ids, new_ids in (
            (EntityKind.INCOME.value, old.reconciled_income_ids, new.reconciled_income_ids),
            (
                EntityKind.EXPENDITURE.value,
                old.reconciled_expenditure_ids,
                new.reconciled_expenditure_ids,
            ),
        ):
            removed = [i for i in old_ids if i not in set(new_ids)]
            added = [i for i in new_ids if i not in set(old_ids)]
            await self._validate_entries(new, kind, added)
            await self.store.set_reconciled(kind, removed, None)
            await self.store.set_reconciled(kind, added, new.id)

        await self.store.update_reconciliation(new)
        logger.info(f"대사 수정: {new.id} ({new.status.value}, diff={new.difference})")
        return new

    async def delete(self, reconciliation_id: str) -> Reconciliation:
        """대사 삭제 (참조한 모든 항목 해제 후 삭제)"""
        record = await self.require(reconciliation_id)
        await self.store.set_reconciled(
            EntityKind.INCOME.value, record.reconciled_income_ids, None
        )
        await self.store.set_reconciled(
            EntityKind.EXPENDITURE.value, record.reconciled_expenditure_ids, None
        )
        await self.store.delete_reconciliation(record.id)
        logger.info(f"대사 삭제: {record.id}")
        return record

    async def detach_entry(self, txn: Transaction) -> str | None:
        """수정/삭제되는 항목을 포함한 대사에서 제거하고 항목 해제

        Args:
            txn: 대상 거래 (Transfer는 대사 대상이 아님)

        Returns:
            항목이 제거된 대사 ID (없으면 None)
        """
        if not isinstance(txn, (Income, Expenditure)) or not txn.reconciled_in:
            return None

        kind = EntityKind.INCOME.value if isinstance(txn, Income) else EntityKind.EXPENDITURE.value
        record = await self.store.get_reconciliation(txn.reconciled_in)
        if record is not None:
            if kind == EntityKind.INCOME.value:
                record.reconciled_income_ids = [
                    i for i in record.reconciled_income_ids if i != txn.id
                ]
            else:
                record.reconciled_expenditure_ids = [
                    i for i in record.reconciled_expenditure_ids if i != txn.id
                ]
            await self.store.update_reconciliation(record)

        await self.store.set_reconciled(kind, [txn.id], None)
        logger.info(
            f"대사 항목 해제: {txn.id} (reconciliation={txn.reconciled_in})",
        )
        return txn.reconciled_in

    async def _validate_entries(
        self,
        record: Reconciliation,
        kind: str,
        entry_ids: list[str],
    ) -> None:
        """마킹할 항목 검증

        Raises:
            ValidationError: 없는 항목, 다른 계좌 항목, 다른 대사에 포함된 항목
        """
        if not entry_ids:
            return

        existing = await self.store.existing_entry_ids(kind, entry_ids)
        missing = [i for i in entry_ids if i not in existing]
        if missing:
            raise ValidationError(
                f"Unknown {kind.lower()} entries for reconciliation",
                {"missing_ids": missing},
            )

        getter = self.store.get_income if kind == EntityKind.INCOME.value else self.store.get_expenditure
        for entry_id in entry_ids:
            entry = await getter(entry_id)
            assert entry is not None
            if entry.account_id != record.account_id:
                raise ValidationError(
                    "Reconciliation entries must belong to the reconciled account",
                    {"entry_id": entry_id, "account_id": entry.account_id},
                )
            if entry.reconciled_in and entry.reconciled_in != record.id:
                raise ValidationError(
                    "Entry is already reconciled in another reconciliation",
                    {"entry_id": entry_id, "reconciled_in": entry.reconciled_in},
                )
