"""
Ledger 저장소

재무 레코드(계좌, 거래, 부채, 카테고리, 예산, 대사, 처분)의 행 단위 저장/조회.
저장소는 커밋하지 않음. 커밋/롤백은 명령 트랜잭션이 담당.
모든 쿼리는 생성 시 주어진 organization_id로 필터링됨.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import SystemCategories
from core.domain.models import (
    Account,
    Budget,
    Category,
    Disposal,
    Liability,
    Reconciliation,
)
from core.domain.transactions import Expenditure, Income, Transaction, Transfer
from core.types import EntityKind

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


# 거래 종류별 테이블
TRANSACTION_TABLES: dict[str, str] = {
    EntityKind.INCOME.value: "finance_income_records",
    EntityKind.EXPENDITURE.value: "finance_expenditure_records",
    EntityKind.TRANSFER.value: "finance_transfers",
}


def _sum(rows: list[tuple[Any, ...]]) -> Decimal:
    """TEXT 금액 합계 (SQL SUM은 float 변환되므로 Python에서 합산)"""
    total = Decimal("0")
    for row in rows:
        total += Decimal(row[0])
    return total


def _loan_columns(liability: Liability) -> tuple[Any, ...]:
    """is_loan ~ loan_end_date 컬럼 값"""
    return (
        int(liability.is_loan),
        liability.linked_income_id,
        str(liability.amount_received) if liability.amount_received is not None else None,
        str(liability.interest_rate) if liability.interest_rate is not None else None,
        liability.loan_start_date.isoformat() if liability.loan_start_date else None,
        liability.loan_end_date.isoformat() if liability.loan_end_date else None,
    )


class LedgerStore:
    """Ledger 저장소

    Args:
        db: SQLite 어댑터
        organization_id: 조직 ID (모든 쿼리 필터)
    """

    def __init__(self, db: SQLiteAdapter, organization_id: str):
        self.db = db
        self.organization_id = organization_id

    # =========================================================================
    # Accounts
    # =========================================================================

    async def get_account(self, account_id: str) -> Account | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_accounts WHERE id = ? AND organization_id = ?",
            (account_id, self.organization_id),
        )
        return Account.from_row(row) if row else None

    async def get_account_by_name(self, name: str) -> Account | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_accounts WHERE name = ? AND organization_id = ?",
            (name, self.organization_id),
        )
        return Account.from_row(row) if row else None

    async def list_accounts(self) -> list[Account]:
        rows = await self.db.fetchall_dict(
            "SELECT * FROM finance_accounts WHERE organization_id = ? ORDER BY name",
            (self.organization_id,),
        )
        return [Account.from_row(row) for row in rows]

    async def insert_account(self, account: Account) -> None:
        await self.db.execute(
            """
            INSERT INTO finance_accounts (
                id, organization_id, name, account_type,
                opening_balance, balance, currency, description
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                account.id,
                self.organization_id,
                account.name,
                account.account_type.value,
                str(account.opening_balance),
                str(account.balance),
                account.currency,
                account.description,
            ),
        )

    async def update_account_details(
        self,
        account_id: str,
        name: str,
        account_type: str,
        opening_balance: Decimal,
        description: str | None,
    ) -> None:
        """계좌 속성 수정 (balance 제외)"""
        await self.db.execute(
            """
            UPDATE finance_accounts
            SET name = ?, account_type = ?, opening_balance = ?, description = ?,
                updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (name, account_type, str(opening_balance), description,
             account_id, self.organization_id),
        )

    async def set_account_balance(self, account_id: str, balance: Decimal) -> None:
        """잔액 기록 (Balance Engine 전용)"""
        await self.db.execute(
            """
            UPDATE finance_accounts
            SET balance = ?, updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (str(balance), account_id, self.organization_id),
        )

    async def delete_account(self, account_id: str) -> None:
        await self.db.execute(
            "DELETE FROM finance_accounts WHERE id = ? AND organization_id = ?",
            (account_id, self.organization_id),
        )

    async def count_account_references(self, account_id: str) -> dict[str, int]:
        """계좌를 참조하는 행 수 (기초잔액 수입 제외)

        Returns:
            테이블별 참조 수
        """
        queries = {
            "income": (
                "SELECT COUNT(*) FROM finance_income_records "
                "WHERE organization_id = ? AND account_id = ? AND category <> ?",
                (self.organization_id, account_id, SystemCategories.OPENING_BALANCE),
            ),
            "expenditure": (
                "SELECT COUNT(*) FROM finance_expenditure_records "
                "WHERE organization_id = ? AND account_id = ?",
                (self.organization_id, account_id),
            ),
            "transfer": (
                "SELECT COUNT(*) FROM finance_transfers "
                "WHERE organization_id = ? AND (from_account_id = ? OR to_account_id = ?)",
                (self.organization_id, account_id, account_id),
            ),
            "disposal": (
                "SELECT COUNT(*) FROM asset_disposals "
                "WHERE organization_id = ? AND account_id = ?",
                (self.organization_id, account_id),
            ),
            "reconciliation": (
                "SELECT COUNT(*) FROM finance_reconciliation_records "
                "WHERE organization_id = ? AND account_id = ?",
                (self.organization_id, account_id),
            ),
        }
        counts: dict[str, int] = {}
        for key, (sql, params) in queries.items():
            row = await self.db.fetchone(sql, params)
            counts[key] = row[0] if row else 0
        return counts

    # =========================================================================
    # Transactions (Income / Expenditure / Transfer)
    # =========================================================================

    async def get_income(self, income_id: str) -> Income | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_income_records WHERE id = ? AND organization_id = ?",
            (income_id, self.organization_id),
        )
        return Income.from_row(row) if row else None

    async def get_expenditure(self, expenditure_id: str) -> Expenditure | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_expenditure_records WHERE id = ? AND organization_id = ?",
            (expenditure_id, self.organization_id),
        )
        return Expenditure.from_row(row) if row else None

    async def get_transfer(self, transfer_id: str) -> Transfer | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_transfers WHERE id = ? AND organization_id = ?",
            (transfer_id, self.organization_id),
        )
        return Transfer.from_row(row) if row else None

    async def find_transaction(self, txn_id: str) -> Transaction | None:
        """ID로 거래 조회 (종류 무관)"""
        for getter in (self.get_income, self.get_expenditure, self.get_transfer):
            txn = await getter(txn_id)
            if txn is not None:
                return txn
        return None

    async def list_incomes(
        self,
        account_id: str | None = None,
        category: str | None = None,
    ) -> list[Income]:
        sql = "SELECT * FROM finance_income_records WHERE organization_id = ?"
        params: list[Any] = [self.organization_id]
        if account_id is not None:
            sql += " AND account_id = ?"
            params.append(account_id)
        if category is not None:
            sql += " AND category = ?"
            params.append(category)
        sql += " ORDER BY date, created_at"
        rows = await self.db.fetchall_dict(sql, tuple(params))
        return [Income.from_row(row) for row in rows]

    async def list_expenditures(
        self,
        account_id: str | None = None,
        category: str | None = None,
        liability_id: str | None = None,
    ) -> list[Expenditure]:
        sql = "SELECT * FROM finance_expenditure_records WHERE organization_id = ?"
        params: list[Any] = [self.organization_id]
        if account_id is not None:
            sql += " AND account_id = ?"
            params.append(account_id)
        if category is not None:
            sql += " AND category = ?"
            params.append(category)
        if liability_id is not None:
            sql += " AND linked_liability_id = ?"
            params.append(liability_id)
        sql += " ORDER BY date, created_at"
        rows = await self.db.fetchall_dict(sql, tuple(params))
        return [Expenditure.from_row(row) for row in rows]

    async def list_transfers(self, account_id: str | None = None) -> list[Transfer]:
        if account_id is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM finance_transfers WHERE organization_id = ? "
                "ORDER BY date, created_at",
                (self.organization_id,),
            )
        else:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM finance_transfers WHERE organization_id = ? "
                "AND (from_account_id = ? OR to_account_id = ?) ORDER BY date, created_at",
                (self.organization_id, account_id, account_id),
            )
        return [Transfer.from_row(row) for row in rows]

    async def insert_income(self, income: Income) -> None:
        await self.db.execute(
            """
            INSERT INTO finance_income_records (
                id, organization_id, date, source, category, amount, account_id,
                method, reference, member_id, linked_asset_id, linked_liability_id,
                is_reconciled, reconciled_in
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                income.id,
                self.organization_id,
                income.date.isoformat(),
                income.source,
                income.category,
                str(income.amount),
                income.account_id,
                income.method,
                income.reference,
                income.member_id,
                income.linked_asset_id,
                income.linked_liability_id,
                int(income.is_reconciled),
                income.reconciled_in,
            ),
        )

    async def update_income(self, income: Income) -> None:
        await self.db.execute(
            """
            UPDATE finance_income_records
            SET date = ?, source = ?, category = ?, amount = ?, account_id = ?,
                method = ?, reference = ?, member_id = ?, linked_liability_id = ?,
                is_reconciled = ?, reconciled_in = ?, updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (
                income.date.isoformat(),
                income.source,
                income.category,
                str(income.amount),
                income.account_id,
                income.method,
                income.reference,
                income.member_id,
                income.linked_liability_id,
                int(income.is_reconciled),
                income.reconciled_in,
                income.id,
                self.organization_id,
            ),
        )

    async def insert_expenditure(self, expenditure: Expenditure) -> None:
        await self.db.execute(
            """
            INSERT INTO finance_expenditure_records (
                id, organization_id, date, description, category, amount, account_id,
                method, reference, linked_liability_id, is_reconciled, reconciled_in
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                expenditure.id,
                self.organization_id,
                expenditure.date.isoformat(),
                expenditure.description,
                expenditure.category,
                str(expenditure.amount),
                expenditure.account_id,
                expenditure.method,
                expenditure.reference,
                expenditure.linked_liability_id,
                int(expenditure.is_reconciled),
                expenditure.reconciled_in,
            ),
        )

    async def update_expenditure(self, expenditure: Expenditure) -> None:
        await self.db.execute(
            """
            UPDATE finance_expenditure_records
            SET date = ?, description = ?, category = ?, amount = ?, account_id = ?,
                method = ?, reference = ?, is_reconciled = ?, reconciled_in = ?,
                updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (
                expenditure.date.isoformat(),
                expenditure.description,
                expenditure.category,
                str(expenditure.amount),
                expenditure.account_id,
                expenditure.method,
                expenditure.reference,
                int(expenditure.is_reconciled),
                expenditure.reconciled_in,
                expenditure.id,
                self.organization_id,
            ),
        )

    async def insert_transfer(self, transfer: Transfer) -> None:
        await self.db.execute(
            """
            INSERT INTO finance_transfers (
                id, organization_id, date, from_account_id, to_account_id,
                amount, description
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                transfer.id,
                self.organization_id,
                transfer.date.isoformat(),
                transfer.from_account_id,
                transfer.to_account_id,
                str(transfer.amount),
                transfer.description,
            ),
        )

    async def update_transfer(self, transfer: Transfer) -> None:
        await self.db.execute(
            """
            UPDATE finance_transfers
            SET date = ?, from_account_id = ?, to_account_id = ?, amount = ?,
                description = ?, updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (
                transfer.date.isoformat(),
                transfer.from_account_id,
                transfer.to_account_id,
                str(transfer.amount),
                transfer.description,
                transfer.id,
                self.organization_id,
            ),
        )

    async def delete_transaction(self, txn: Transaction) -> None:
        """거래 행 삭제 (잔액 역반영은 호출자 책임)"""
        if isinstance(txn, Income):
            table = TRANSACTION_TABLES[EntityKind.INCOME.value]
        elif isinstance(txn, Expenditure):
            table = TRANSACTION_TABLES[EntityKind.EXPENDITURE.value]
        else:
            table = TRANSACTION_TABLES[EntityKind.TRANSFER.value]
        await self.db.execute(
            f"DELETE FROM {table} WHERE id = ? AND organization_id = ?",
            (txn.id, self.organization_id),
        )

    async def set_reconciled(
        self,
        entity_kind: str,
        entry_ids: list[str],
        reconciliation_id: str | None,
    ) -> None:
        """대사 마킹/해제

        Args:
            entity_kind: INCOME 또는 EXPENDITURE
            entry_ids: 대상 항목 ID
            reconciliation_id: 마킹할 대사 ID (None이면 해제)
        """
        if not entry_ids:
            return
        table = TRANSACTION_TABLES[entity_kind]
        is_reconciled = 1 if reconciliation_id is not None else 0
        await self.db.executemany(
            f"""
            UPDATE {table}
            SET is_reconciled = ?, reconciled_in = ?, updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            [
                (is_reconciled, reconciliation_id, entry_id, self.organization_id)
                for entry_id in entry_ids
            ],
        )

    async def existing_entry_ids(self, entity_kind: str, entry_ids: list[str]) -> set[str]:
        """존재하는 항목 ID만 반환"""
        if not entry_ids:
            return set()
        table = TRANSACTION_TABLES[entity_kind]
        placeholders = ",".join("?" for _ in entry_ids)
        rows = await self.db.fetchall(
            f"SELECT id FROM {table} WHERE organization_id = ? AND id IN ({placeholders})",
            (self.organization_id, *entry_ids),
        )
        return {row[0] for row in rows}

    # -------------------------------------------------------------------------
    # 잔액 계산용 합계
    # -------------------------------------------------------------------------

    async def sum_income(self, account_id: str, exclude_category: str) -> Decimal:
        rows = await self.db.fetchall(
            "SELECT amount FROM finance_income_records "
            "WHERE organization_id = ? AND account_id = ? AND category <> ?",
            (self.organization_id, account_id, exclude_category),
        )
        return _sum(rows)

    async def sum_expenditure(self, account_id: str) -> Decimal:
        rows = await self.db.fetchall(
            "SELECT amount FROM finance_expenditure_records "
            "WHERE organization_id = ? AND account_id = ?",
            (self.organization_id, account_id),
        )
        return _sum(rows)

    async def sum_transfers_in(self, account_id: str) -> Decimal:
        rows = await self.db.fetchall(
            "SELECT amount FROM finance_transfers "
            "WHERE organization_id = ? AND to_account_id = ?",
            (self.organization_id, account_id),
        )
        return _sum(rows)

    async def sum_transfers_out(self, account_id: str) -> Decimal:
        rows = await self.db.fetchall(
            "SELECT amount FROM finance_transfers "
            "WHERE organization_id = ? AND from_account_id = ?",
            (self.organization_id, account_id),
        )
        return _sum(rows)

    async def sum_expenditure_in_window(
        self,
        category: str,
        start: date,
        end: date,
    ) -> Decimal:
        """카테고리 + 기간 지출 합계 (양 끝 포함)"""
        rows = await self.db.fetchall(
            "SELECT amount FROM finance_expenditure_records "
            "WHERE organization_id = ? AND category = ? AND date >= ? AND date <= ?",
            (self.organization_id, category, start.isoformat(), end.isoformat()),
        )
        return _sum(rows)

    # =========================================================================
    # Liabilities
    # =========================================================================

    async def get_liability(self, liability_id: str) -> Liability | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_liabilities WHERE id = ? AND organization_id = ?",
            (liability_id, self.organization_id),
        )
        return Liability.from_row(row) if row else None

    async def list_liabilities(
        self,
        category: str | None = None,
        is_loan: bool | None = None,
    ) -> list[Liability]:
        sql = "SELECT * FROM finance_liabilities WHERE organization_id = ?"
        params: list[Any] = [self.organization_id]
        if category is not None:
            sql += " AND category = ?"
            params.append(category)
        if is_loan is not None:
            sql += " AND is_loan = ?"
            params.append(int(is_loan))
        sql += " ORDER BY date"
        rows = await self.db.fetchall_dict(sql, tuple(params))
        return [Liability.from_row(row) for row in rows]

    async def insert_liability(self, liability: Liability) -> None:
        await self.db.execute(
            """
            INSERT INTO finance_liabilities (
                id, organization_id, date, category, creditor,
                original_amount, amount_paid, description,
                is_loan, linked_income_id, amount_received, interest_rate,
                loan_start_date, loan_end_date
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                liability.id,
                self.organization_id,
                liability.date.isoformat(),
                liability.category,
                liability.creditor,
                str(liability.original_amount),
                str(liability.amount_paid),
                liability.description,
                *_loan_columns(liability),
            ),
        )

    async def update_liability(self, liability: Liability) -> None:
        """부채 속성 수정 (amount_paid 제외)"""
        await self.db.execute(
            """
            UPDATE finance_liabilities
            SET date = ?, category = ?, creditor = ?, original_amount = ?,
                description = ?, is_loan = ?, linked_income_id = ?,
                amount_received = ?, interest_rate = ?,
                loan_start_date = ?, loan_end_date = ?,
                updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (
                liability.date.isoformat(),
                liability.category,
                liability.creditor,
                str(liability.original_amount),
                liability.description,
                *_loan_columns(liability),
                liability.id,
                self.organization_id,
            ),
        )

    async def unlink_loan_income(self, liability_id: str) -> None:
        """대출 수입이 삭제될 때 부채 쪽 연결만 해제"""
        await self.db.execute(
            """
            UPDATE finance_liabilities
            SET linked_income_id = NULL, updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (liability_id, self.organization_id),
        )

    async def set_liability_paid(self, liability_id: str, amount_paid: Decimal) -> None:
        """상환 합계 기록 (Linker 전용)"""
        await self.db.execute(
            """
            UPDATE finance_liabilities
            SET amount_paid = ?, updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (str(amount_paid), liability_id, self.organization_id),
        )

    async def delete_liability(self, liability_id: str) -> None:
        await self.db.execute(
            "DELETE FROM finance_liabilities WHERE id = ? AND organization_id = ?",
            (liability_id, self.organization_id),
        )

    # =========================================================================
    # Categories
    # =========================================================================

    async def get_category(self, category_id: str) -> Category | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_categories WHERE id = ? AND organization_id = ?",
            (category_id, self.organization_id),
        )
        return Category.from_row(row) if row else None

    async def get_category_by_name(self, name: str, category_type: str) -> Category | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_categories "
            "WHERE organization_id = ? AND category_type = ? AND name = ?",
            (self.organization_id, category_type, name),
        )
        return Category.from_row(row) if row else None

    async def list_categories(self, category_type: str | None = None) -> list[Category]:
        if category_type is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM finance_categories WHERE organization_id = ? "
                "ORDER BY category_type, name",
                (self.organization_id,),
            )
        else:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM finance_categories WHERE organization_id = ? "
                "AND category_type = ? ORDER BY name",
                (self.organization_id, category_type),
            )
        return [Category.from_row(row) for row in rows]

    async def insert_category(self, category: Category) -> None:
        await self.db.execute(
            """
            INSERT INTO finance_categories (
                id, organization_id, name, category_type, description, track_members
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                category.id,
                self.organization_id,
                category.name,
                category.category_type,
                category.description,
                int(category.track_members),
            ),
        )

    async def update_category(self, category: Category) -> None:
        await self.db.execute(
            """
            UPDATE finance_categories
            SET name = ?, description = ?, track_members = ?, updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (
                category.name,
                category.description,
                int(category.track_members),
                category.id,
                self.organization_id,
            ),
        )

    async def delete_category(self, category_id: str) -> None:
        await self.db.execute(
            "DELETE FROM finance_categories WHERE id = ? AND organization_id = ?",
            (category_id, self.organization_id),
        )

    async def rename_category_usage(
        self,
        category_type: str,
        old_name: str,
        new_name: str,
    ) -> None:
        """카테고리 이름 변경을 종속 행에 반영"""
        if category_type == "income":
            tables = ["finance_income_records"]
        elif category_type == "expense":
            tables = ["finance_expenditure_records", "finance_budgets"]
        else:
            tables = ["finance_liabilities"]
        for table in tables:
            await self.db.execute(
                f"UPDATE {table} SET category = ? WHERE organization_id = ? AND category = ?",
                (new_name, self.organization_id, old_name),
            )

    async def count_category_usage(self, name: str) -> int:
        """카테고리 이름을 사용하는 수입/지출/부채 행 수

        거래의 카테고리는 자유 문자열이므로 카테고리 유형과 무관하게 세 테이블 모두 확인.
        """
        row = await self.db.fetchone(
            """
            SELECT
                (SELECT COUNT(*) FROM finance_income_records
                 WHERE organization_id = ? AND category = ?)
              + (SELECT COUNT(*) FROM finance_expenditure_records
                 WHERE organization_id = ? AND category = ?)
              + (SELECT COUNT(*) FROM finance_liabilities
                 WHERE organization_id = ? AND category = ?)
            """,
            (self.organization_id, name) * 3,
        )
        return row[0] if row else 0

    # =========================================================================
    # Budgets
    # =========================================================================

    async def get_budget(self, budget_id: str) -> Budget | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_budgets WHERE id = ? AND organization_id = ?",
            (budget_id, self.organization_id),
        )
        return Budget.from_row(row) if row else None

    async def list_budgets(self, category: str | None = None) -> list[Budget]:
        if category is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM finance_budgets WHERE organization_id = ? "
                "ORDER BY period, category",
                (self.organization_id,),
            )
        else:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM finance_budgets WHERE organization_id = ? "
                "AND category = ? ORDER BY period",
                (self.organization_id, category),
            )
        return [Budget.from_row(row) for row in rows]

    async def insert_budget(self, budget: Budget) -> None:
        await self.db.execute(
            """
            INSERT INTO finance_budgets (
                id, organization_id, category, period, budgeted, spent, description
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                budget.id,
                self.organization_id,
                budget.category,
                budget.period,
                str(budget.budgeted),
                str(budget.spent),
                budget.description,
            ),
        )

    async def update_budget(self, budget: Budget) -> None:
        """예산 속성 수정 (spent 제외)"""
        await self.db.execute(
            """
            UPDATE finance_budgets
            SET category = ?, period = ?, budgeted = ?, description = ?,
                updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (
                budget.category,
                budget.period,
                str(budget.budgeted),
                budget.description,
                budget.id,
                self.organization_id,
            ),
        )

    async def set_budget_spent(self, budget_id: str, spent: Decimal) -> None:
        """지출 합계 기록 (Budget Roll-up 전용)"""
        await self.db.execute(
            """
            UPDATE finance_budgets
            SET spent = ?, updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (str(spent), budget_id, self.organization_id),
        )

    async def delete_budget(self, budget_id: str) -> None:
        await self.db.execute(
            "DELETE FROM finance_budgets WHERE id = ? AND organization_id = ?",
            (budget_id, self.organization_id),
        )

    # =========================================================================
    # Reconciliations
    # =========================================================================

    async def get_reconciliation(self, reconciliation_id: str) -> Reconciliation | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM finance_reconciliation_records WHERE id = ? AND organization_id = ?",
            (reconciliation_id, self.organization_id),
        )
        return Reconciliation.from_row(row) if row else None

    async def list_reconciliations(self, account_id: str | None = None) -> list[Reconciliation]:
        if account_id is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM finance_reconciliation_records WHERE organization_id = ? "
                "ORDER BY date DESC, created_at DESC",
                (self.organization_id,),
            )
        else:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM finance_reconciliation_records WHERE organization_id = ? "
                "AND account_id = ? ORDER BY date DESC, created_at DESC",
                (self.organization_id, account_id),
            )
        return [Reconciliation.from_row(row) for row in rows]

    async def insert_reconciliation(self, record: Reconciliation) -> None:
        await self.db.execute(
            """
            INSERT INTO finance_reconciliation_records (
                id, organization_id, account_id, date, book_balance, bank_balance,
                reconciled_income_ids, reconciled_expenditure_ids,
                added_income_ids, added_expenditure_ids, notes
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                self.organization_id,
                record.account_id,
                record.date.isoformat(),
                str(record.book_balance),
                str(record.bank_balance),
                json.dumps(record.reconciled_income_ids),
                json.dumps(record.reconciled_expenditure_ids),
                json.dumps(record.added_income_ids),
                json.dumps(record.added_expenditure_ids),
                record.notes,
            ),
        )

    async def update_reconciliation(self, record: Reconciliation) -> None:
        await self.db.execute(
            """
            UPDATE finance_reconciliation_records
            SET date = ?, book_balance = ?, bank_balance = ?,
                reconciled_income_ids = ?, reconciled_expenditure_ids = ?,
                added_income_ids = ?, added_expenditure_ids = ?, notes = ?,
                updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (
                record.date.isoformat(),
                str(record.book_balance),
                str(record.bank_balance),
                json.dumps(record.reconciled_income_ids),
                json.dumps(record.reconciled_expenditure_ids),
                json.dumps(record.added_income_ids),
                json.dumps(record.added_expenditure_ids),
                record.notes,
                record.id,
                self.organization_id,
            ),
        )

    async def delete_reconciliation(self, reconciliation_id: str) -> None:
        await self.db.execute(
            "DELETE FROM finance_reconciliation_records WHERE id = ? AND organization_id = ?",
            (reconciliation_id, self.organization_id),
        )

    # =========================================================================
    # Disposals
    # =========================================================================

    async def get_disposal(self, disposal_id: str) -> Disposal | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM asset_disposals WHERE id = ? AND organization_id = ?",
            (disposal_id, self.organization_id),
        )
        return Disposal.from_row(row) if row else None

    async def get_disposal_by_income(self, income_id: str) -> Disposal | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM asset_disposals WHERE linked_income_id = ? AND organization_id = ?",
            (income_id, self.organization_id),
        )
        return Disposal.from_row(row) if row else None

    async def list_disposals(self, asset_id: str | None = None) -> list[Disposal]:
        if asset_id is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM asset_disposals WHERE organization_id = ? ORDER BY date",
                (self.organization_id,),
            )
        else:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM asset_disposals WHERE organization_id = ? "
                "AND asset_id = ? ORDER BY date",
                (self.organization_id, asset_id),
            )
        return [Disposal.from_row(row) for row in rows]

    async def insert_disposal(self, disposal: Disposal) -> None:
        await self.db.execute(
            """
            INSERT INTO asset_disposals (
                id, organization_id, asset_id, asset_name, date, account_id,
                amount, linked_income_id, description
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                disposal.id,
                self.organization_id,
                disposal.asset_id,
                disposal.asset_name,
                disposal.date.isoformat(),
                disposal.account_id,
                str(disposal.amount),
                disposal.linked_income_id,
                disposal.description,
            ),
        )

    async def delete_disposal(self, disposal_id: str) -> None:
        await self.db.execute(
            "DELETE FROM asset_disposals WHERE id = ? AND organization_id = ?",
            (disposal_id, self.organization_id),
        )
