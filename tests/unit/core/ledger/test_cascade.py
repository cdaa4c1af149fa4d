"""
연쇄 삭제 실행기 테스트
"""

from graphlib import CycleError

import pytest

from core.ledger.cascade import CascadePlan


def counter(log: list[str], name: str, count: int = 1):
    async def action() -> int:
        log.append(name)
        return count

    return action


class TestCascadePlan:
    """CascadePlan 테스트"""

    def test_order_follows_dependencies(self) -> None:
        log: list[str] = []
        plan = CascadePlan()
        plan.add("category", counter(log, "category"), after=("income",))
        plan.add("income", counter(log, "income"), after=("disposals",))
        plan.add("disposals", counter(log, "disposals"))

        assert plan.order() == ["disposals", "income", "category"]

    def test_ties_keep_declaration_order(self) -> None:
        """동률은 선언 순서"""
        plan = CascadePlan()
        plan.add("b", counter([], "b"))
        plan.add("a", counter([], "a"))
        plan.add("c", counter([], "c"), after=("a", "b"))

        assert plan.order() == ["b", "a", "c"]

    def test_duplicate_step(self) -> None:
        plan = CascadePlan()
        plan.add("income", counter([], "income"))

        with pytest.raises(ValueError, match="Duplicate"):
            plan.add("income", counter([], "income"))

    def test_unknown_dependency(self) -> None:
        plan = CascadePlan()
        plan.add("category", counter([], "category"), after=("missing",))

        with pytest.raises(ValueError, match="unknown step"):
            plan.order()

    def test_cycle(self) -> None:
        plan = CascadePlan()
        plan.add("a", counter([], "a"), after=("b",))
        plan.add("b", counter([], "b"), after=("a",))

        with pytest.raises(CycleError):
            plan.order()

    @pytest.mark.asyncio
    async def test_run(self) -> None:
        """순서대로 실행하고 단계별 행 수 반환"""
        log: list[str] = []
        plan = (
            CascadePlan()
            .add("payments", counter(log, "payments", 3))
            .add("liabilities", counter(log, "liabilities", 2), after=("payments",))
            .add("category", counter(log, "category"), after=("liabilities",))
        )

        removed = await plan.run()

        assert log == ["payments", "liabilities", "category"]
        assert removed == {"payments": 3, "liabilities": 2, "category": 1}

    @pytest.mark.asyncio
    async def test_run_stops_on_error(self) -> None:
        """실패한 단계 이후는 실행하지 않음"""
        log: list[str] = []

        async def failing() -> int:
            raise RuntimeError("step failed")

        plan = CascadePlan()
        plan.add("first", failing)
        plan.add("second", counter(log, "second"), after=("first",))

        with pytest.raises(RuntimeError):
            await plan.run()

        assert log == []
