"""
LedgerService.execute / 실패 처리 통합 테스트

Command → CommandResult 변환, 시간 초과·부분 실패 롤백,
커밋 후 best-effort 알림 발행.
"""

import asyncio
from decimal import Decimal

import pytest
import pytest_asyncio

from adapters.db.entity_store import SQLiteEntityStore
from adapters.mock.notifier import MockNotifier
from core.domain.commands import Command, CommandTypes
from core.domain.events import Event, EventTypes
from core.domain.models import Account, Asset, Category
from core.errors import CommandTimeout, EntityNotFound, PartialFailure
from core.ledger.service import LedgerService
from core.ledger.store import LedgerStore
from core.types import Actor, Scope
from tests.conftest import ORG_ID


def make_command(command_type: str, payload: dict, scope: Scope | None = None) -> Command:
    return Command.create(
        command_type=command_type,
        actor=Actor.user("treasurer"),
        scope=scope or Scope.create(ORG_ID, "GHS"),
        payload=payload,
    )


@pytest.mark.integration
class TestExecute:
    """Command 실행"""

    @pytest.mark.asyncio
    async def test_success(self, service: LedgerService, account_a: Account) -> None:
        command = make_command(
            CommandTypes.CREATE_INCOME,
            {
                "account_id": account_a.id,
                "amount": "50",
                "date": "2024-03-03",
                "source": "Sunday Service",
                "category": "Tithe",
            },
        )

        result = await service.execute(command)

        assert result.ok
        assert result.command_id == command.command_id
        assert result.data["result"]["amount"] == "50"
        assert result.data["result"]["date"] == "2024-03-03"
        assert (await service.get_account(account_a.id)).balance == Decimal("150")

    @pytest.mark.asyncio
    async def test_events_carry_command_id(
        self,
        service: LedgerService,
        account_a: Account,
        account_b: Account,
    ) -> None:
        command = make_command(
            CommandTypes.CREATE_TRANSFER,
            {
                "from_account_id": account_a.id,
                "to_account_id": account_b.id,
                "amount": "20",
                "date": "2024-03-05",
            },
        )

        await service.execute(command)

        events = await service.event_store.get_by_command(command.command_id)
        assert [e.event_type for e in events] == [EventTypes.TRANSFER_COMPLETED]
        assert events[0].correlation_id == command.correlation_id

    @pytest.mark.asyncio
    async def test_unknown_command_type(self, service: LedgerService) -> None:
        result = await service.execute(make_command("MintMoney", {}))

        assert not result.ok
        assert result.error_code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_bad_payload(self, service: LedgerService) -> None:
        """알 수 없는 필드나 누락 필드는 쓰기 전에 거부"""
        result = await service.execute(
            make_command(CommandTypes.CREATE_ACCOUNT, {"name": "Main", "colour": "blue"})
        )

        assert result.error_code == "VALIDATION_ERROR"
        assert await service.list_accounts() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "command_type,payload,code",
        [
            (
                CommandTypes.CREATE_TRANSFER,
                {"from_account_id": "A", "to_account_id": "A", "amount": "1", "date": "2024-03-05"},
                "SAME_ACCOUNT_TRANSFER",
            ),
            (CommandTypes.DELETE_TRANSACTION, {"transaction_id": "inc-missing"}, "ENTITY_NOT_FOUND"),
            (
                CommandTypes.CREATE_EXPENDITURE,
                {
                    "account_id": "acc-x",
                    "amount": "0",
                    "date": "2024-03-05",
                    "description": "Nothing",
                    "category": "Misc",
                },
                "VALIDATION_ERROR",
            ),
        ],
    )
    async def test_error_codes(
        self,
        service: LedgerService,
        command_type: str,
        payload: dict,
        code: str,
    ) -> None:
        result = await service.execute(make_command(command_type, payload))

        assert result.error_code == code
        assert result.error["message"]

    @pytest.mark.asyncio
    async def test_insufficient_balance_result(
        self,
        service: LedgerService,
        account_a: Account,
        account_b: Account,
    ) -> None:
        result = await service.execute(
            make_command(
                CommandTypes.CREATE_TRANSFER,
                {
                    "from_account_id": account_b.id,
                    "to_account_id": account_a.id,
                    "amount": "10",
                    "date": "2024-03-05",
                },
            )
        )

        assert result.error_code == "INSUFFICIENT_BALANCE"
        assert result.error["details"]["available"] == "0"

    @pytest.mark.asyncio
    async def test_create_loan_command(self, service: LedgerService, account_a: Account) -> None:
        """CreateLoan payload의 date 별칭과 문자열 금액 처리"""
        result = await service.execute(
            make_command(
                CommandTypes.CREATE_LOAN,
                {
                    "creditor": "GCB Bank",
                    "original_amount": "550",
                    "amount_received": "500",
                    "account_id": account_a.id,
                    "date": "2024-02-01",
                },
            )
        )

        assert result.ok
        loan = result.data["result"]
        assert loan["is_loan"] is True
        assert loan["amount_received"] == "500"
        assert loan["balance"] == "550"
        assert (await service.get_account(account_a.id)).balance == Decimal("600")

    @pytest.mark.asyncio
    async def test_track_members_string_flag(self, service: LedgerService) -> None:
        """payload의 "false" 문자열은 False로 해석, 그 외 문자열은 거부"""
        result = await service.execute(
            make_command(
                CommandTypes.CREATE_CATEGORY,
                {"name": "Building Fund", "category_type": "income", "track_members": "false"},
            )
        )
        assert result.ok
        assert result.data["result"]["track_members"] is False

        rejected = await service.execute(
            make_command(
                CommandTypes.CREATE_CATEGORY,
                {"name": "Welfare", "category_type": "income", "track_members": "sometimes"},
            )
        )
        assert rejected.error_code == "VALIDATION_ERROR"
        assert [c.name for c in await service.list_categories("income") if not c.is_system] == [
            "Building Fund"
        ]

    @pytest.mark.asyncio
    async def test_command_scope_is_used(self, service: LedgerService) -> None:
        """Command의 조직 범위로 기록되고 기본 범위에서는 보이지 않음"""
        other = Scope.create("org-other", "USD")
        result = await service.execute(
            make_command(CommandTypes.CREATE_ACCOUNT, {"name": "Other Bank", "account_type": "Bank"}, other)
        )

        assert result.ok
        assert await service.list_accounts() == []
        events = await service.event_store.get_by_command(result.command_id)
        assert events[0].scope.organization_id == "org-other"

    @pytest.mark.asyncio
    async def test_get_stats(self, service: LedgerService) -> None:
        await service.execute(make_command(CommandTypes.CREATE_ACCOUNT, {"name": "Main", "account_type": "Bank"}))
        await service.execute(make_command("MintMoney", {}))

        stats = service.get_stats()

        assert stats["command_count"] == 2
        assert stats["success_count"] == 1
        assert stats["failed_count"] == 1
        assert stats["active_locks"] == []
        assert len(service.supported_commands) == 29


@pytest_asyncio.fixture
async def tithe(service: LedgerService) -> Category:
    """회원 추적 수입 카테고리"""
    return await service.create_category("Tithe", "income", track_members=True)


@pytest.mark.integration
class TestContributionNotification:
    """회원 헌금 알림 (커밋 후 best-effort)"""

    @pytest.mark.asyncio
    async def test_notified_after_commit(
        self,
        service: LedgerService,
        notifier: MockNotifier,
        account_a: Account,
        member_id: str,
        tithe: Category,
    ) -> None:
        income = await service.create_income(
            account_a.id, "50", "2024-03-03", "Sunday Service", "Tithe", member_id=member_id
        )

        assert len(notifier.contributions) == 1
        contribution = notifier.contributions[0]
        assert contribution["member_id"] == member_id
        assert contribution["income_id"] == income.id
        assert contribution["amount"] == "50"
        assert contribution["currency"] == "GHS"

    @pytest.mark.asyncio
    async def test_no_member_no_notification(
        self,
        service: LedgerService,
        notifier: MockNotifier,
        account_a: Account,
    ) -> None:
        await service.create_income(account_a.id, "50", "2024-03-03", "Sunday Service", "Tithe")

        assert notifier.contributions == []

    @pytest.mark.asyncio
    async def test_untracked_category_not_notified(
        self,
        service: LedgerService,
        notifier: MockNotifier,
        account_a: Account,
        member_id: str,
    ) -> None:
        """이벤트는 기록되지만 회원 추적 없는 카테고리는 알림 생략"""
        await service.create_category("Harvest", "income", track_members=False)

        await service.create_income(
            account_a.id, "80", "2024-03-10", "Harvest Sale", "Harvest", member_id=member_id
        )

        assert notifier.contributions == []
        events = await service.list_events(limit=500)
        contribution = [e for e in events if e.event_type == EventTypes.CONTRIBUTION_RECORDED]
        assert len(contribution) == 1
        assert contribution[0].payload["track_members"] is False

    @pytest.mark.asyncio
    async def test_member_assigned_on_update(
        self,
        service: LedgerService,
        notifier: MockNotifier,
        account_a: Account,
        member_id: str,
        tithe: Category,
    ) -> None:
        income = await service.create_income(
            account_a.id, "50", "2024-03-03", "Sunday Service", "Tithe"
        )

        await service.update_income(income.id, member_id=member_id)
        await service.update_income(income.id, amount="60")

        assert len(notifier.contributions) == 1

    @pytest.mark.asyncio
    async def test_unknown_member(
        self,
        service: LedgerService,
        notifier: MockNotifier,
        account_a: Account,
    ) -> None:
        with pytest.raises(EntityNotFound) as exc_info:
            await service.create_income(
                account_a.id, "50", "2024-03-03", "Sunday Service", "Tithe", member_id="mb-missing"
            )

        assert exc_info.value.entity_kind == "MEMBER"
        assert notifier.contributions == []
        assert (await service.get_account(account_a.id)).balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_notifier_failure_keeps_income(
        self,
        service: LedgerService,
        notifier: MockNotifier,
        account_a: Account,
        member_id: str,
    ) -> None:
        """알림 실패는 커밋된 수입에 영향 없음"""
        notifier.should_raise = True

        income = await service.create_income(
            account_a.id, "50", "2024-03-03", "Sunday Service", "Tithe", member_id=member_id
        )

        assert (await service.get_transaction(income.id)).member_id == member_id
        assert (await service.get_account(account_a.id)).balance == Decimal("150")

    @pytest.mark.asyncio
    async def test_raising_subscriber_ignored(
        self,
        service: LedgerService,
        account_a: Account,
    ) -> None:
        seen: list[str] = []

        async def broken(event: Event) -> None:
            raise RuntimeError("subscriber down")

        async def recorder(event: Event) -> None:
            seen.append(event.event_type)

        service.subscribe(broken)
        service.subscribe(recorder)

        await service.create_expenditure(account_a.id, "10", "2024-03-04", "Water", "Utilities")

        assert seen == [EventTypes.EXPENDITURE_RECORDED]


@pytest.mark.integration
class TestFailureRollback:
    """시간 초과 / 부분 실패 롤백"""

    @pytest.mark.asyncio
    async def test_timeout_rolls_back(
        self,
        service: LedgerService,
        account_a: Account,
        account_b: Account,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def slow_insert(self, transfer) -> None:
            await asyncio.sleep(1.0)

        monkeypatch.setattr(LedgerStore, "insert_transfer", slow_insert)
        service.timeout = 0.05
        before = await service.list_events(limit=500)

        with pytest.raises(CommandTimeout) as exc_info:
            await service.create_transfer(account_a.id, account_b.id, "20", "2024-03-05")

        assert exc_info.value.details["command_type"] == CommandTypes.CREATE_TRANSFER
        assert (await service.get_account(account_a.id)).balance == Decimal("100")
        assert len(await service.list_events(limit=500)) == len(before)

        # 잠금과 트랜잭션이 해제되어 다음 명령 진행 가능
        monkeypatch.undo()
        service.timeout = 5.0
        await service.create_transfer(account_a.id, account_b.id, "20", "2024-03-05")
        assert (await service.get_account(account_b.id)).balance == Decimal("20")

    @pytest.mark.asyncio
    async def test_timeout_result(
        self,
        service: LedgerService,
        account_a: Account,
        account_b: Account,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def slow_insert(self, transfer) -> None:
            await asyncio.sleep(1.0)

        monkeypatch.setattr(LedgerStore, "insert_transfer", slow_insert)
        service.timeout = 0.05

        result = await service.execute(
            make_command(
                CommandTypes.CREATE_TRANSFER,
                {
                    "from_account_id": account_a.id,
                    "to_account_id": account_b.id,
                    "amount": "20",
                    "date": "2024-03-05",
                },
            )
        )

        assert result.error_code == "COMMAND_TIMEOUT"

    @pytest.mark.asyncio
    async def test_partial_failure_rolls_back_disposal(
        self,
        service: LedgerService,
        entities: SQLiteEntityStore,
        account_a: Account,
        asset: Asset,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """수입 기록 후 처분 기록이 실패하면 수입과 잔액 변경도 취소"""

        async def broken_insert(self, disposal) -> None:
            raise RuntimeError("disk I/O error")

        monkeypatch.setattr(LedgerStore, "insert_disposal", broken_insert)

        with pytest.raises(PartialFailure) as exc_info:
            await service.create_disposal(asset.id, account_a.id, "500", "2024-04-01")

        assert exc_info.value.details["error"] == "RuntimeError"
        assert (await service.get_account(account_a.id)).balance == Decimal("100")
        assert [i.category for i in await service.list_incomes()] == ["Opening Balance"]
        assert (await entities.get_asset(ORG_ID, asset.id)).status == "In Use"
        assert await service.detect_drift() == []
