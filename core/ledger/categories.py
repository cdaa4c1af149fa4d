"""
Category Integrity Enforcer

카테고리 생성/수정/삭제 시 참조 무결성 보장.

- 시스템 카테고리: 수정 불가 (ImmutableSystemCategory).
  삭제 시 같은 이름의 수입/지출/부채 행을 연쇄 삭제 (DAG 순서).
- 사용자 카테고리: 사용 중이면 삭제 불가 (CategoryInUse).
  이름 변경은 종속 행(수입/지출/부채/예산)에 반영.
"""

import logging
from uuid import uuid4

from core.constants import SystemCategories
from core.domain.models import Category
from core.errors import CategoryInUse, EntityNotFound, ImmutableSystemCategory, ValidationError
from core.ledger.cascade import CascadePlan
from core.ledger.linker import TransactionLinker
from core.ledger.store import LedgerStore
from core.types import CategoryType, EntityKind

logger = logging.getLogger(__name__)


def parse_category_type(value: str) -> str:
    """카테고리 유형 검증

    Raises:
        ValidationError: income / expense / liability 외의 값
    """
    try:
        return CategoryType(str(value).lower()).value
    except ValueError as e:
        raise ValidationError(
            f"Invalid category type: {value}",
            {"field": "type", "allowed": [t.value for t in CategoryType]},
        ) from e


class CategoryEnforcer:
    """카테고리 무결성 관리자

    Args:
        store: 조직 범위 LedgerStore
        linker: 연쇄 삭제 시 처분/부채 연결 해제용
    """

    def __init__(self, store: LedgerStore, linker: TransactionLinker):
        self.store = store
        self.linker = linker

    async def require(self, category_id: str) -> Category:
        category = await self.store.get_category(category_id)
        if category is None:
            raise EntityNotFound(EntityKind.CATEGORY.value, category_id)
        return category

    async def create(
        self,
        name: str,
        category_type: str,
        description: str | None = None,
        track_members: bool = False,
        category_id: str | None = None,
    ) -> Category:
        """카테고리 생성

        Raises:
            ValidationError: 유형 오류, 같은 유형 내 이름 중복
        """
        category_type = parse_category_type(category_type)
        if await self.store.get_category_by_name(name, category_type) is not None:
            raise ValidationError(
                f"Category '{name}' already exists for type {category_type}",
                {"name": name, "type": category_type},
            )

        category = Category(
            id=category_id or f"cat-{uuid4().hex[:12]}",
            organization_id=self.store.organization_id,
            name=name,
            category_type=category_type,
            description=description,
            track_members=track_members,
        )
        await self.store.insert_category(category)
        logger.info(f"카테고리 생성: {category_type}/{name}", extra={"category_id": category.id})
        return category

    async def ensure_system_categories(self) -> list[Category]:
        """시스템 카테고리 시드 (없는 것만 생성)

        Returns:
            새로 생성된 카테고리 목록
        """
        created: list[Category] = []
        for category_type, names in SystemCategories.BY_TYPE.items():
            for name in names:
                if await self.store.get_category_by_name(name, category_type) is None:
                    created.append(
                        await self.create(name, category_type, description="System category")
                    )
        return created

    async def update(
        self,
        category_id: str,
        name: str | None = None,
        description: str | None = None,
        track_members: bool | None = None,
    ) -> Category:
        """사용자 카테고리 수정

        Raises:
            ImmutableSystemCategory: 시스템 카테고리
            ValidationError: 새 이름 중복 또는 시스템 카테고리 이름 사용
        """
        category = await self.require(category_id)
        if category.is_system:
            raise ImmutableSystemCategory(
                f"System category '{category.name}' cannot be modified",
                {"category_id": category.id, "name": category.name},
            )

        new_name = category.name if name is None else name
        if new_name != category.name:
            if SystemCategories.is_system(new_name, category.category_type):
                raise ValidationError(
                    f"'{new_name}' is reserved for a system category",
                    {"name": new_name},
                )
            if await self.store.get_category_by_name(new_name, category.category_type):
                raise ValidationError(
                    f"Category '{new_name}' already exists for type {category.category_type}",
                    {"name": new_name, "type": category.category_type},
                )

        updated = category.with_changes(
            name=new_name,
            description=category.description if description is None else description,
            track_members=category.track_members if track_members is None else track_members,
        )
        await self.store.update_category(updated)

        if new_name != category.name:
            await self.store.rename_category_usage(
                category.category_type, category.name, new_name
            )
            logger.info(f"카테고리 이름 변경: {category.name} -> {new_name}")

        return updated

    async def delete(self, category_id: str) -> tuple[Category, dict[str, int]]:
        """카테고리 삭제

        Returns:
            (삭제된 Category, 단계별 삭제 행 수)

        Raises:
            CategoryInUse: 사용 중인 사용자 카테고리
        """
        category = await self.require(category_id)

        if not category.is_system:
            usage = await self.store.count_category_usage(category.name)
            if usage > 0:
                raise CategoryInUse(
                    f"Category '{category.name}' is used by {usage} record(s)",
                    {"category_id": category.id, "name": category.name, "usage": usage},
                )
            await self.store.delete_category(category.id)
            logger.info(f"카테고리 삭제: {category.category_type}/{category.name}")
            return category, {"category": 1}

        plan = self.cascade_plan(category)
        removed = await plan.run()
        logger.warning(
            f"시스템 카테고리 연쇄 삭제: {category.name} {removed}",
            extra={"category_id": category.id},
        )
        return category, removed

    def cascade_plan(self, category: Category) -> CascadePlan:
        """시스템 카테고리 연쇄 삭제 계획

        income:    disposals → income → category
        liability: payments → liabilities → category
        """
        plan = CascadePlan()
        name = category.name

        async def delete_disposals() -> int:
            count = 0
            for income in await self.store.list_incomes(category=name):
                disposal = await self.store.get_disposal_by_income(income.id)
                if disposal is not None:
                    await self.linker.delete_disposal(disposal.id)
                    count += 1
            return count

        async def delete_income() -> int:
            incomes = await self.store.list_incomes(category=name)
            for income in incomes:
                await self.linker.remove_transaction(income)
            return len(incomes)

        async def delete_payments() -> int:
            payments = await self.store.list_expenditures(category=name)
            for liability in await self.store.list_liabilities(category=name):
                payments.extend(
                    p
                    for p in await self.store.list_expenditures(liability_id=liability.id)
                    if p.category != name
                )
            for payment in payments:
                if payment.linked_liability_id:
                    await self.linker.delete_liability_payment(payment.id)
                else:
                    await self.linker.remove_transaction(payment)
            return len(payments)

        async def delete_liabilities() -> int:
            liabilities = await self.store.list_liabilities(category=name)
            for liability in liabilities:
                await self.linker.delete_liability(liability.id)
            return len(liabilities)

        async def delete_category() -> int:
            await self.store.delete_category(category.id)
            return 1

        if category.category_type == CategoryType.INCOME.value:
            plan.add("disposals", delete_disposals)
            plan.add("income", delete_income, after=("disposals",))
            plan.add("category", delete_category, after=("income",))
        elif category.category_type == CategoryType.LIABILITY.value:
            plan.add("payments", delete_payments)
            plan.add("liabilities", delete_liabilities, after=("payments",))
            plan.add("category", delete_category, after=("liabilities",))
        else:
            plan.add("expenditure", delete_payments)
            plan.add("category", delete_category, after=("expenditure",))
        return plan
