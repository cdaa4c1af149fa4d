"""
연쇄 삭제 실행기 (DAG)

연쇄 삭제 단계를 의존 그래프로 선언하고 위상 정렬 순서로 실행.
예: 처분 → 처분 수입 → 일반 수입 → 카테고리
    상환 지출 → 부채 → 카테고리

같은 단계들을 선언하면 항상 같은 순서로 실행됨 (동률은 선언 순서).
"""

import logging
from dataclasses import dataclass, field
from graphlib import TopologicalSorter
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


CascadeAction = Callable[[], Awaitable[int]]


@dataclass
class CascadeStep:
    """연쇄 삭제 단계

    Attributes:
        name: 단계 이름 (그래프 노드)
        action: 실행 코루틴 팩토리 (삭제한 행 수 반환)
        after: 먼저 실행되어야 하는 단계 이름
    """

    name: str
    action: CascadeAction
    after: tuple[str, ...] = field(default_factory=tuple)


class CascadePlan:
    """연쇄 삭제 계획

    사용 예시:
    ```python
    plan = CascadePlan()
    plan.add("disposals", delete_disposals)
    plan.add("income", delete_income, after=("disposals",))
    plan.add("category", delete_category, after=("income",))
    removed = await plan.run()   # {"disposals": 2, "income": 5, "category": 1}
    ```
    """

    def __init__(self) -> None:
        self._steps: dict[str, CascadeStep] = {}

    def add(
        self,
        name: str,
        action: CascadeAction,
        after: tuple[str, ...] | list[str] = (),
    ) -> "CascadePlan":
        """단계 추가

        Raises:
            ValueError: 이름 중복
        """
        if name in self._steps:
            raise ValueError(f"Duplicate cascade step: {name}")
        self._steps[name] = CascadeStep(name=name, action=action, after=tuple(after))
        return self

    @property
    def steps(self) -> list[str]:
        return list(self._steps)

    def order(self) -> list[str]:
        """실행 순서 계산

        Returns:
            위상 정렬된 단계 이름 (동률은 선언 순서)

        Raises:
            ValueError: 선언되지 않은 단계를 의존하는 경우
            graphlib.CycleError: 순환 의존
        """
        position = {name: i for i, name in enumerate(self._steps)}
        sorter = TopologicalSorter()
        for step in self._steps.values():
            for dependency in step.after:
                if dependency not in self._steps:
                    raise ValueError(
                        f"Cascade step '{step.name}' depends on unknown step '{dependency}'"
                    )
            sorter.add(step.name, *step.after)

        sorter.prepare()
        ordered: list[str] = []
        while sorter.is_active():
            ready = sorted(sorter.get_ready(), key=position.__getitem__)
            for name in ready:
                ordered.append(name)
                sorter.done(name)
        return ordered

    async def run(self) -> dict[str, int]:
        """순서대로 단계 실행

        한 단계라도 실패하면 예외가 전파되고, 호출자의 트랜잭션이 롤백함.

        Returns:
            단계별 삭제 행 수
        """
        removed: dict[str, int] = {}
        for name in self.order():
            count = await self._steps[name].action()
            removed[name] = count
            logger.debug(f"연쇄 삭제 단계 완료: {name} ({count})")
        return removed
