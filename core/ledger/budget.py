"""
Budget Roll-up

예산 기간 문자열을 날짜 구간으로 변환하고, 카테고리 + 구간의 지출 합계를
Budget.spent에 기록. spent는 이 모듈만 기록하며 명령 입력으로 받지 않음.

기간 형식:
    "YYYY"     연간   (1/1 ~ 12/31)
    "YYYY-Q#"  분기   (Q1 = 1~3월, ... Q4 = 10~12월)
    "YYYY-MM"  월간   (1일 ~ 말일)
"""

import calendar
import logging
import re
from datetime import date
from decimal import Decimal

from core.domain.models import Budget
from core.domain.transactions import Expenditure
from core.errors import EntityNotFound, ValidationError
from core.ledger.store import LedgerStore
from core.types import EntityKind

logger = logging.getLogger(__name__)


_YEAR = re.compile(r"^(\d{4})$")
_QUARTER = re.compile(r"^(\d{4})-Q([1-4])$", re.IGNORECASE)
_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def parse_period(period: str) -> tuple[date, date]:
    """기간 문자열 → (시작일, 종료일), 양 끝 포함

    Args:
        period: "2024", "2024-Q2", "2024-02"

    Returns:
        (start, end)

    Raises:
        ValidationError: 형식 오류
    """
    text = (period or "").strip()

    match = _MONTH.match(text)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid budget period: {period}", {"period": period})
        return date(year, month, 1), _month_end(year, month)

    match = _QUARTER.match(text)
    if match:
        year, quarter = int(match.group(1)), int(match.group(2))
        first_month = (quarter - 1) * 3 + 1
        return date(year, first_month, 1), _month_end(year, first_month + 2)

    match = _YEAR.match(text)
    if match:
        year = int(match.group(1))
        return date(year, 1, 1), date(year, 12, 31)

    raise ValidationError(
        f"Invalid budget period: {period} (expected YYYY, YYYY-Q#, or YYYY-MM)",
        {"period": period},
    )


def normalize_period(period: str) -> str:
    """기간 문자열 정규화 ("2024-q1" → "2024-Q1")"""
    parse_period(period)
    return period.strip().upper()


class BudgetRollup:
    """예산 지출 합계 계산기

    Args:
        store: 조직 범위 LedgerStore
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def require(self, budget_id: str) -> Budget:
        budget = await self.store.get_budget(budget_id)
        if budget is None:
            raise EntityNotFound(EntityKind.BUDGET.value, budget_id)
        return budget

    async def spent_for(self, category: str, period: str) -> Decimal:
        """카테고리 + 기간 지출 합계 (기록하지 않음)"""
        start, end = parse_period(period)
        return await self.store.sum_expenditure_in_window(category, start, end)

    async def recompute_spent(self, category: str, period: str) -> Decimal:
        """카테고리 + 기간의 모든 예산 spent 재계산

        Returns:
            계산된 지출 합계
        """
        spent = await self.spent_for(category, period)
        for budget in await self.store.list_budgets(category):
            if budget.period.upper() != period.upper():
                continue
            if budget.spent != spent:
                await self.store.set_budget_spent(budget.id, spent)
                logger.debug(
                    f"예산 spent 갱신: {budget.category} {budget.period} "
                    f"{budget.spent} -> {spent}",
                    extra={"budget_id": budget.id},
                )
        return spent

    async def recompute_affected(self, *expenditures: Expenditure | None) -> list[str]:
        """지출 생성/수정/삭제 후 영향받는 예산 재계산

        Args:
            expenditures: 이전/새 지출 행 (None 무시)

        Returns:
            재계산된 예산 ID 목록
        """
        rows = [e for e in expenditures if e is not None]
        if not rows:
            return []

        touched: list[str] = []
        seen: set[tuple[str, str]] = set()
        for category in dict.fromkeys(e.category for e in rows):
            for budget in await self.store.list_budgets(category):
                start, end = parse_period(budget.period)
                if not any(e.category == category and start <= e.date <= end for e in rows):
                    continue
                key = (budget.category, budget.period.upper())
                if key not in seen:
                    seen.add(key)
                    await self.recompute_spent(budget.category, budget.period)
                touched.append(budget.id)
        return touched

    # -------------------------------------------------------------------------
    # 예산 CRUD
    # -------------------------------------------------------------------------

    async def create(
        self,
        budget_id: str,
        category: str,
        period: str,
        budgeted: Decimal,
        description: str | None = None,
    ) -> Budget:
        """예산 생성 (spent는 현재 지출로 계산)

        Raises:
            ValidationError: 기간 형식 오류, 음수 예산
        """
        period = normalize_period(period)
        if budgeted < 0:
            raise ValidationError("budgeted must not be negative", {"value": str(budgeted)})

        budget = Budget(
            id=budget_id,
            organization_id=self.store.organization_id,
            category=category,
            period=period,
            budgeted=budgeted,
            spent=await self.spent_for(category, period),
            description=description,
        )
        await self.store.insert_budget(budget)
        logger.info(f"예산 생성: {category} {period} ({budgeted})", extra={"budget_id": budget_id})
        return budget

    async def update(
        self,
        budget_id: str,
        category: str | None = None,
        period: str | None = None,
        budgeted: Decimal | None = None,
        description: str | None = None,
    ) -> Budget:
        budget = await self.require(budget_id)
        if budgeted is not None and budgeted < 0:
            raise ValidationError("budgeted must not be negative", {"value": str(budgeted)})

        if category is not None:
            budget.category = category
        if period is not None:
            budget.period = normalize_period(period)
        if budgeted is not None:
            budget.budgeted = budgeted
        if description is not None:
            budget.description = description

        await self.store.update_budget(budget)
        budget.spent = await self.spent_for(budget.category, budget.period)
        await self.store.set_budget_spent(budget.id, budget.spent)
        logger.info(f"예산 수정: {budget.category} {budget.period}", extra={"budget_id": budget_id})
        return budget

    async def delete(self, budget_id: str) -> Budget:
        budget = await self.require(budget_id)
        await self.store.delete_budget(budget_id)
        logger.info(f"예산 삭제: {budget.category} {budget.period}", extra={"budget_id": budget_id})
        return budget
