"""
Ledger Service (명령 표면)

명령 하나 = 논리 트랜잭션 하나.

처리 흐름:
    1. 입력 검증 (쓰기 전 ValidationError)
    2. 계좌별 키 잠금 획득 (정렬 순서, 교착 없음)
    3. 쓰기 트랜잭션 (timeout 제한) 안에서 도메인 처리 + event_store 기록
    4. 커밋
    5. 구독자에게 이벤트 발행 (best-effort)

타입 있는 코루틴(create_income 등)은 LedgerError를 raise하고,
execute(command)는 항상 CommandResult를 반환함.
예상하지 못한 예외는 롤백 후 PartialFailure로,
시간 초과는 롤백 후 CommandTimeout으로 변환됨.
"""

import asyncio
import contextvars
import inspect
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable, Iterable, TypeVar
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IEntityStore
from core.constants import Defaults, SystemCategories
from core.domain.commands import Command, CommandResult, CommandTypes
from core.domain.events import Event, EventTypes
from core.domain.models import (
    Account,
    Budget,
    Category,
    Disposal,
    Liability,
    Reconciliation,
)
from core.domain.transactions import (
    Expenditure,
    Income,
    Transaction,
    Transfer,
    account_ids_of,
    optional_text,
    parse_amount,
    parse_date,
    parse_flag,
    parse_money,
    require_text,
)
from core.errors import (
    AccountInUse,
    CommandTimeout,
    EntityNotFound,
    LedgerError,
    PartialFailure,
    ValidationError,
)
from core.ledger.balance import BalanceEngine, DriftInfo
from core.ledger.budget import BudgetRollup, parse_period
from core.ledger.categories import CategoryEnforcer, parse_category_type
from core.ledger.linker import TransactionLinker, new_id
from core.ledger.locks import KeyedLock
from core.ledger.reconciliation import ReconciliationWorkflow
from core.ledger.store import LedgerStore
from core.storage.event_store import EventStore
from core.types import AccountKind, EntityKind, EventSource, Scope

logger = logging.getLogger(__name__)


T = TypeVar("T")
EventSubscriber = Callable[[Event], Awaitable[None]]

# execute() 중인 Command (이벤트 command_id/correlation_id/scope 전달용)
_current_command: contextvars.ContextVar[Command | None] = contextvars.ContextVar(
    "ledger_current_command", default=None
)

# Command payload 키 → 코루틴 인자 이름
_PAYLOAD_ALIASES: dict[str, str] = {"date": "on_date"}

# 거래 생성 시 사용자가 지정할 수 없는 수입 카테고리
_RESERVED_INCOME_CATEGORIES = (
    SystemCategories.OPENING_BALANCE,
    SystemCategories.ASSET_DISPOSAL,
)


def _serialize(value: Any) -> Any:
    """결과 객체 → JSON 호환 값"""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def parse_account_kind(value: Any) -> AccountKind:
    """계좌 유형 파싱 (값 또는 이름, 대소문자 무시)

    Raises:
        ValidationError: Cash / Bank / Mobile Money 외의 값
    """
    if isinstance(value, AccountKind):
        return value
    text = str(value or "").strip().lower()
    for kind in AccountKind:
        if text in (kind.value.lower(), kind.name.lower()):
            return kind
    raise ValidationError(
        f"Invalid account type: {value}",
        {"field": "account_type", "allowed": [k.value for k in AccountKind]},
    )


def _entity_kind(txn: Transaction) -> str:
    if isinstance(txn, Income):
        return EntityKind.INCOME.value
    if isinstance(txn, Expenditure):
        return EntityKind.EXPENDITURE.value
    return EntityKind.TRANSFER.value


def _changes(**fields: Any) -> dict[str, Any]:
    """None이 아닌 필드만 추림"""
    return {key: value for key, value in fields.items() if value is not None}


def _clearable(**fields: Any) -> dict[str, Any]:
    """선택 문자열 변경분 (None은 유지, 빈 문자열은 값 삭제)"""
    return {key: optional_text(value) for key, value in fields.items() if value is not None}


@dataclass
class LedgerUnit:
    """명령 하나의 작업 단위

    쓰기 연결 위에 구성된 엔진들과 커밋 시 기록할 이벤트 버퍼.
    """

    scope: Scope
    store: LedgerStore
    balance: BalanceEngine
    reconciliation: ReconciliationWorkflow
    budgets: BudgetRollup
    linker: TransactionLinker
    categories: CategoryEnforcer
    entities: IEntityStore
    source: str
    correlation_id: str
    command_id: str | None = None
    events: list[Event] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        db: SQLiteAdapter,
        entities: IEntityStore,
        scope: Scope,
        source: str,
        command: Command | None = None,
    ) -> "LedgerUnit":
        store = LedgerStore(db, scope.organization_id)
        balance = BalanceEngine(store)
        reconciliation = ReconciliationWorkflow(store)
        budgets = BudgetRollup(store)
        linker = TransactionLinker(store, balance, entities, reconciliation, budgets)
        return cls(
            scope=scope,
            store=store,
            balance=balance,
            reconciliation=reconciliation,
            budgets=budgets,
            linker=linker,
            categories=CategoryEnforcer(store, linker),
            entities=entities,
            source=source,
            correlation_id=command.correlation_id if command else str(uuid4()),
            command_id=command.command_id if command else None,
        )

    def emit(
        self,
        event_type: str,
        entity_kind: str,
        entity_id: str,
        payload: dict[str, Any],
    ) -> Event:
        """커밋 시 기록할 이벤트 추가"""
        event = Event.create(
            event_type=event_type,
            source=self.source,
            entity_kind=entity_kind,
            entity_id=entity_id,
            scope=self.scope,
            payload=payload,
            correlation_id=self.correlation_id,
            command_id=self.command_id,
        )
        self.events.append(event)
        return event


class LedgerService:
    """Ledger 명령 서비스

    Args:
        db: 쓰기용 SQLiteAdapter (명령 트랜잭션)
        entities: 비금융 엔티티 저장소 (db와 같은 연결)
        reader: 조회용 읽기 전용 어댑터 (None이면 db 사용)
        scope: 기본 조직 범위 (Command 실행 시 Command.scope 우선)
        timeout: 명령 트랜잭션 제한 시간 (초)
        locks: 계좌별 키 잠금 (여러 서비스 인스턴스가 공유 가능)
        source: 이벤트 출처 (LEDGER, WEB, SCRIPT)

    사용 예시:
    ```python
    service = LedgerService(writer, SQLiteEntityStore(writer), reader=reader)
    service.subscribe(ContributionNotifier(notifier))

    account = await service.create_account("Main", "Bank", opening_balance="100")
    await service.create_income(account.id, "50", "2024-03-01", "Sunday", "Tithe")

    result = await service.execute(command)   # CommandResult
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        entities: IEntityStore,
        reader: SQLiteAdapter | None = None,
        scope: Scope | None = None,
        timeout: float = Defaults.COMMAND_TIMEOUT_SEC,
        locks: KeyedLock | None = None,
        source: str = EventSource.LEDGER.value,
    ):
        self.db = db
        self.reader = reader or db
        self.entities = entities
        self.scope = scope or Scope.create()
        self.timeout = timeout
        self.locks = locks or KeyedLock()
        self.source = source
        self.event_store = EventStore(db)

        self._subscribers: list[EventSubscriber] = []
        self._dispatch: dict[str, Callable[..., Awaitable[Any]]] = {
            CommandTypes.CREATE_ACCOUNT: self.create_account,
            CommandTypes.UPDATE_ACCOUNT: self.update_account,
            CommandTypes.DELETE_ACCOUNT: self.delete_account,
            CommandTypes.RECALCULATE_BALANCES: self.recalculate_balances,
            CommandTypes.CREATE_INCOME: self.create_income,
            CommandTypes.UPDATE_INCOME: self.update_income,
            CommandTypes.CREATE_EXPENDITURE: self.create_expenditure,
            CommandTypes.UPDATE_EXPENDITURE: self.update_expenditure,
            CommandTypes.CREATE_TRANSFER: self.create_transfer,
            CommandTypes.UPDATE_TRANSFER: self.update_transfer,
            CommandTypes.DELETE_TRANSACTION: self.delete_transaction,
            CommandTypes.CREATE_DISPOSAL: self.create_disposal,
            CommandTypes.DELETE_DISPOSAL: self.delete_disposal,
            CommandTypes.CREATE_LIABILITY: self.create_liability,
            CommandTypes.UPDATE_LIABILITY: self.update_liability,
            CommandTypes.DELETE_LIABILITY: self.delete_liability,
            CommandTypes.RECORD_LIABILITY_PAYMENT: self.record_liability_payment,
            CommandTypes.DELETE_LIABILITY_PAYMENT: self.delete_liability_payment,
            CommandTypes.CREATE_LOAN: self.create_loan,
            CommandTypes.CREATE_RECONCILIATION: self.create_reconciliation,
            CommandTypes.UPDATE_RECONCILIATION: self.update_reconciliation,
            CommandTypes.DELETE_RECONCILIATION: self.delete_reconciliation,
            CommandTypes.CREATE_CATEGORY: self.create_category,
            CommandTypes.UPDATE_CATEGORY: self.update_category,
            CommandTypes.DELETE_CATEGORY: self.delete_category,
            CommandTypes.CREATE_BUDGET: self.create_budget,
            CommandTypes.UPDATE_BUDGET: self.update_budget,
            CommandTypes.DELETE_BUDGET: self.delete_budget,
            CommandTypes.RECOMPUTE_BUDGET_SPENT: self.recompute_budget_spent,
        }

        # 통계
        self._command_count = 0
        self._success_count = 0
        self._failed_count = 0

    # =========================================================================
    # 실행 기반
    # =========================================================================

    def subscribe(self, subscriber: EventSubscriber) -> None:
        """커밋된 이벤트 구독자 등록"""
        self._subscribers.append(subscriber)

    @property
    def supported_commands(self) -> list[str]:
        """지원하는 Command 타입 목록"""
        return list(self._dispatch)

    def current_scope(self) -> Scope:
        """실행 중인 Command의 scope (없으면 기본 scope)"""
        command = _current_command.get()
        return command.scope if command is not None else self.scope

    def _reader_store(self) -> LedgerStore:
        return LedgerStore(self.reader, self.current_scope().organization_id)

    async def execute(self, command: Command) -> CommandResult:
        """Command 실행 (예외 대신 CommandResult 반환)

        Args:
            command: 실행할 Command (payload 키는 코루틴 인자 이름, "date" 허용)

        Returns:
            CommandResult (성공 시 data["result"]에 결과)
        """
        handler = self._dispatch.get(command.command_type)
        if handler is None:
            return self._fail(
                command,
                ValidationError(
                    f"Unknown command type: {command.command_type}",
                    {"command_type": command.command_type},
                ),
            )

        payload = {
            _PAYLOAD_ALIASES.get(key, key): value for key, value in command.payload.items()
        }
        try:
            bound = inspect.signature(handler).bind(**payload)
        except TypeError as e:
            return self._fail(
                command,
                ValidationError(
                    f"Invalid payload for {command.command_type}: {e}",
                    {"command_type": command.command_type},
                ),
            )

        token = _current_command.set(command)
        try:
            result = await handler(*bound.args, **bound.kwargs)
        except LedgerError as e:
            return self._fail(command, e)
        finally:
            _current_command.reset(token)

        self._command_count += 1
        self._success_count += 1
        return CommandResult.success(command.command_id, {"result": _serialize(result)})

    def _fail(self, command: Command, error: LedgerError) -> CommandResult:
        self._command_count += 1
        self._failed_count += 1
        logger.warning(
            f"Command failed: {command.command_type} ({error.code})",
            extra={"command_id": command.command_id, "error": error.message},
        )
        return CommandResult.failure(command.command_id, error)

    async def _run(
        self,
        command_type: str,
        lock_keys: Iterable[str | None],
        work: Callable[[LedgerUnit], Awaitable[T]],
    ) -> T:
        """명령 하나를 잠금 + 트랜잭션 + 이벤트 기록 안에서 실행

        Raises:
            LedgerError: 도메인 오류 (롤백됨)
            CommandTimeout: 제한 시간 초과 (롤백됨)
            PartialFailure: 예상하지 못한 저장소 오류 (롤백됨)
        """
        scope = self.current_scope()
        command = _current_command.get()

        async with self.locks.acquire(key for key in lock_keys if key) as keys:
            try:
                result, events = await asyncio.wait_for(
                    self._transact(scope, command, work),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError as e:
                logger.error(
                    f"명령 시간 초과 (롤백됨): {command_type}",
                    extra={"timeout_sec": self.timeout, "accounts": keys},
                )
                raise CommandTimeout(
                    f"{command_type} timed out after {self.timeout}s",
                    {"command_type": command_type, "timeout_sec": self.timeout},
                ) from e
            except LedgerError as e:
                logger.info(
                    f"명령 거부: {command_type} ({e.code}) {e.message}",
                    extra={"details": e.details},
                )
                raise
            except Exception as e:
                logger.exception(f"명령 실패 (롤백됨): {command_type}")
                raise PartialFailure(
                    f"{command_type} failed and was rolled back: {e}",
                    {"command_type": command_type, "error": type(e).__name__},
                ) from e

        logger.info(
            f"명령 완료: {command_type}",
            extra={"accounts": keys, "events": [e.event_type for e in events]},
        )
        await self._publish(events)
        return result

    async def _transact(
        self,
        scope: Scope,
        command: Command | None,
        work: Callable[[LedgerUnit], Awaitable[T]],
    ) -> tuple[T, list[Event]]:
        async with self.db.transaction() as db:
            unit = LedgerUnit.build(db, self.entities, scope, self.source, command)
            result = await work(unit)
            for event in unit.events:
                await self.event_store.append(event)
        return result, unit.events

    async def _publish(self, events: list[Event]) -> None:
        """커밋된 이벤트 발행 (구독자 실패는 명령에 영향 없음)"""
        for event in events:
            for subscriber in self._subscribers:
                try:
                    await subscriber(event)
                except Exception as e:
                    logger.warning(
                        f"이벤트 구독자 실패: {event.event_type} ({e})",
                        extra={"event_id": event.event_id},
                    )

    def get_stats(self) -> dict[str, Any]:
        """통계 반환"""
        return {
            "command_count": self._command_count,
            "success_count": self._success_count,
            "failed_count": self._failed_count,
            "active_locks": self.locks.active_keys,
        }

    # =========================================================================
    # 공통 헬퍼
    # =========================================================================

    @staticmethod
    async def _require_member(unit: LedgerUnit, member_id: str) -> None:
        if not await unit.entities.member_exists(unit.scope.organization_id, member_id):
            raise EntityNotFound(EntityKind.MEMBER.value, member_id)

    @staticmethod
    def _check_income_category(category: str) -> None:
        if category in _RESERVED_INCOME_CATEGORIES:
            raise ValidationError(
                f"'{category}' entries are created by the ledger and cannot be recorded directly",
                {"category": category},
            )

    @staticmethod
    async def _detach_if_moved(unit: LedgerUnit, old: Any, new: Any) -> Any:
        """금액/계좌/날짜가 바뀐 대사 항목을 대사에서 제거"""
        if not old.reconciled_in:
            return new
        if (old.amount, old.account_id, old.date) == (new.amount, new.account_id, new.date):
            return new
        await unit.reconciliation.detach_entry(old)
        return new.with_changes(is_reconciled=False, reconciled_in=None)

    @staticmethod
    async def _emit_contribution(unit: LedgerUnit, income: Income) -> None:
        """회원 헌금 이벤트 (카테고리의 track_members를 함께 기록)"""
        category = await unit.store.get_category_by_name(income.category, "income")
        unit.emit(
            EventTypes.CONTRIBUTION_RECORDED,
            EntityKind.MEMBER.value,
            income.member_id or "",
            {
                "member_id": income.member_id,
                "income_id": income.id,
                "amount": str(income.amount),
                "category": income.category,
                "track_members": category.track_members if category else False,
                "date": income.date.isoformat(),
                "currency": unit.scope.currency,
            },
        )

    def _opening_income(self, account: Account, on_date: date | None = None) -> Income:
        return Income(
            id=new_id("inc"),
            organization_id=account.organization_id,
            date=on_date or date.today(),
            source=SystemCategories.OPENING_BALANCE,
            category=SystemCategories.OPENING_BALANCE,
            amount=account.opening_balance,
            account_id=account.id,
            reference=f"Opening balance for {account.name}",
        )

    # =========================================================================
    # Accounts
    # =========================================================================

    async def create_account(
        self,
        name: str,
        account_type: str = AccountKind.CASH.value,
        opening_balance: Any = "0",
        description: str | None = None,
        account_id: str | None = None,
    ) -> Account:
        """계좌 생성

        opening_balance > 0이면 잔액 변화 없는 Opening Balance 수입을 함께 기록.
        """
        name = require_text(name, "name")
        kind = parse_account_kind(account_type)
        opening = parse_money(opening_balance, "opening_balance")
        if opening < 0:
            raise ValidationError(
                "opening_balance must not be negative", {"value": str(opening)}
            )
        account_id = account_id or new_id("acc")

        async def work(unit: LedgerUnit) -> Account:
            if await unit.store.get_account_by_name(name) is not None:
                raise ValidationError(f"Account '{name}' already exists", {"name": name})

            account = Account(
                id=account_id,
                organization_id=unit.scope.organization_id,
                name=name,
                account_type=kind,
                opening_balance=opening,
                balance=opening,
                currency=unit.scope.currency,
                description=optional_text(description),
            )
            await unit.store.insert_account(account)
            if opening > 0:
                await unit.store.insert_income(self._opening_income(account))

            unit.emit(EventTypes.ACCOUNT_CREATED, EntityKind.ACCOUNT.value, account.id, account.to_dict())
            return account

        return await self._run(CommandTypes.CREATE_ACCOUNT, [account_id], work)

    async def update_account(
        self,
        account_id: str,
        name: str | None = None,
        account_type: str | None = None,
        opening_balance: Any = None,
        description: str | None = None,
    ) -> Account:
        """계좌 수정

        opening_balance 변경 시 Opening Balance 수입을 맞추고 잔액을 재계산.
        """
        kind = parse_account_kind(account_type) if account_type is not None else None
        new_name = require_text(name, "name") if name is not None else None
        opening = None
        if opening_balance is not None:
            opening = parse_money(opening_balance, "opening_balance")
            if opening < 0:
                raise ValidationError(
                    "opening_balance must not be negative", {"value": str(opening)}
                )

        async def work(unit: LedgerUnit) -> Account:
            account = await unit.balance.require_account(account_id)
            if new_name and new_name != account.name:
                if await unit.store.get_account_by_name(new_name) is not None:
                    raise ValidationError(
                        f"Account '{new_name}' already exists", {"name": new_name}
                    )

            target_opening = account.opening_balance if opening is None else opening
            await unit.store.update_account_details(
                account.id,
                new_name or account.name,
                (kind or account.account_type).value,
                target_opening,
                account.description if description is None else optional_text(description),
            )

            if target_opening != account.opening_balance:
                await self._sync_opening_income(unit, account, target_opening)
                await unit.balance.recompute(account.id)

            updated = await unit.balance.require_account(account.id)
            unit.emit(EventTypes.ACCOUNT_UPDATED, EntityKind.ACCOUNT.value, updated.id, updated.to_dict())
            return updated

        return await self._run(CommandTypes.UPDATE_ACCOUNT, [account_id], work)

    async def _sync_opening_income(
        self,
        unit: LedgerUnit,
        account: Account,
        opening: Decimal,
    ) -> None:
        """Opening Balance 수입 행을 새 기초 잔액에 맞춤"""
        rows = await unit.store.list_incomes(
            account_id=account.id, category=SystemCategories.OPENING_BALANCE
        )
        keep = rows[0] if rows and opening > 0 else None

        for row in rows:
            if row is not keep:
                await unit.linker.remove_transaction(row)

        if keep is not None:
            updated = await self._detach_if_moved(unit, keep, keep.with_changes(amount=opening))
            await unit.store.update_income(updated)
        elif opening > 0:
            account.opening_balance = opening
            await unit.store.insert_income(self._opening_income(account))

    async def delete_account(self, account_id: str) -> Account:
        """계좌 삭제

        Raises:
            AccountInUse: Opening Balance 외의 거래/처분/대사가 참조 중
        """

        async def work(unit: LedgerUnit) -> Account:
            account = await unit.balance.require_account(account_id)
            references = {
                key: count
                for key, count in (await unit.store.count_account_references(account.id)).items()
                if count
            }
            if references:
                raise AccountInUse(
                    f"Account '{account.name}' is referenced by existing records",
                    {"account_id": account.id, "references": references},
                )

            for income in await unit.store.list_incomes(
                account_id=account.id, category=SystemCategories.OPENING_BALANCE
            ):
                await unit.linker.remove_transaction(income)
            await unit.store.delete_account(account.id)

            unit.emit(EventTypes.ACCOUNT_DELETED, EntityKind.ACCOUNT.value, account.id, account.to_dict())
            return account

        return await self._run(CommandTypes.DELETE_ACCOUNT, [account_id], work)

    async def recalculate_balances(self) -> list[DriftInfo]:
        """전체 계좌 잔액을 거래 이력으로 재계산

        Returns:
            보정된 계좌의 drift 목록
        """
        accounts = await self._reader_store().list_accounts()

        async def work(unit: LedgerUnit) -> list[DriftInfo]:
            drifts = await unit.balance.recompute_all()
            unit.emit(
                EventTypes.BALANCES_RECALCULATED,
                EntityKind.ACCOUNT.value,
                unit.scope.organization_id,
                {"corrected": [d.to_dict() for d in drifts]},
            )
            return drifts

        return await self._run(
            CommandTypes.RECALCULATE_BALANCES, [a.id for a in accounts], work
        )

    # =========================================================================
    # Income / Expenditure / Transfer
    # =========================================================================

    async def create_income(
        self,
        account_id: str,
        amount: Any,
        on_date: Any,
        source: str,
        category: str,
        method: str | None = None,
        reference: str | None = None,
        member_id: str | None = None,
        income_id: str | None = None,
    ) -> Income:
        """수입 기록

        member_id가 있으면 커밋 후 ContributionRecorded 발행.
        """
        account_id = require_text(account_id, "account_id")
        income = Income(
            id=income_id or new_id("inc"),
            organization_id=self.current_scope().organization_id,
            date=parse_date(on_date),
            source=require_text(source, "source"),
            category=require_text(category, "category"),
            amount=parse_amount(amount),
            account_id=account_id,
            method=optional_text(method),
            reference=optional_text(reference),
            member_id=optional_text(member_id),
        )
        self._check_income_category(income.category)

        async def work(unit: LedgerUnit) -> Income:
            await unit.balance.require_account(income.account_id)
            if income.member_id:
                await self._require_member(unit, income.member_id)

            await unit.store.insert_income(income)
            await unit.balance.apply(income)

            unit.emit(EventTypes.INCOME_RECORDED, EntityKind.INCOME.value, income.id, income.to_dict())
            if income.member_id:
                await self._emit_contribution(unit, income)
            return income

        return await self._run(CommandTypes.CREATE_INCOME, [account_id], work)

    async def update_income(
        self,
        income_id: str,
        account_id: str | None = None,
        amount: Any = None,
        on_date: Any = None,
        source: str | None = None,
        category: str | None = None,
        method: str | None = None,
        reference: str | None = None,
        member_id: str | None = None,
    ) -> Income:
        """수입 수정 (이전 반영 역반영 후 새 값 반영)"""
        changes = _changes(
            account_id=account_id,
            amount=parse_amount(amount) if amount is not None else None,
            date=parse_date(on_date) if on_date is not None else None,
            source=require_text(source, "source") if source is not None else None,
            category=require_text(category, "category") if category is not None else None,
        )
        changes.update(_clearable(method=method, reference=reference, member_id=member_id))
        if "category" in changes:
            self._check_income_category(changes["category"])

        current = await self._reader_store().get_income(income_id)
        keys = [current.account_id if current else None, account_id]

        async def work(unit: LedgerUnit) -> Income:
            old = await unit.store.get_income(income_id)
            if old is None:
                raise EntityNotFound(EntityKind.INCOME.value, income_id)
            if old.is_opening_balance or old.linked_asset_id or old.linked_liability_id:
                raise ValidationError(
                    "This income is managed by its account, disposal or loan and cannot be edited",
                    {"income_id": old.id, "category": old.category},
                )
            if account_id is not None:
                await unit.balance.require_account(account_id)
            if changes.get("member_id") and changes["member_id"] != old.member_id:
                await self._require_member(unit, changes["member_id"])

            new = await self._detach_if_moved(unit, old, old.with_changes(**changes))
            await unit.balance.apply(old, reverse=True)
            await unit.balance.apply(new)
            await unit.store.update_income(new)

            unit.emit(
                EventTypes.INCOME_UPDATED,
                EntityKind.INCOME.value,
                new.id,
                {"before": old.to_dict(), "after": new.to_dict()},
            )
            if new.member_id and new.member_id != old.member_id:
                await self._emit_contribution(unit, new)
            return new

        return await self._run(CommandTypes.UPDATE_INCOME, keys, work)

    async def create_expenditure(
        self,
        account_id: str,
        amount: Any,
        on_date: Any,
        description: str,
        category: str,
        method: str | None = None,
        reference: str | None = None,
        expenditure_id: str | None = None,
    ) -> Expenditure:
        """지출 기록 (잔액 부족 검사 없음, 예산 spent 재계산)"""
        account_id = require_text(account_id, "account_id")
        expenditure = Expenditure(
            id=expenditure_id or new_id("exp"),
            organization_id=self.current_scope().organization_id,
            date=parse_date(on_date),
            description=require_text(description, "description"),
            category=require_text(category, "category"),
            amount=parse_amount(amount),
            account_id=account_id,
            method=optional_text(method),
            reference=optional_text(reference),
        )

        async def work(unit: LedgerUnit) -> Expenditure:
            await unit.balance.require_account(expenditure.account_id)
            await unit.store.insert_expenditure(expenditure)
            await unit.balance.apply(expenditure)
            await unit.budgets.recompute_affected(expenditure)

            unit.emit(
                EventTypes.EXPENDITURE_RECORDED,
                EntityKind.EXPENDITURE.value,
                expenditure.id,
                expenditure.to_dict(),
            )
            return expenditure

        return await self._run(CommandTypes.CREATE_EXPENDITURE, [account_id], work)

    async def update_expenditure(
        self,
        expenditure_id: str,
        account_id: str | None = None,
        amount: Any = None,
        on_date: Any = None,
        description: str | None = None,
        category: str | None = None,
        method: str | None = None,
        reference: str | None = None,
    ) -> Expenditure:
        """지출 수정

        부채 상환 지출의 금액이 바뀌면 부채 amount_paid도 차액만큼 조정.
        """
        changes = _changes(
            account_id=account_id,
            amount=parse_amount(amount) if amount is not None else None,
            date=parse_date(on_date) if on_date is not None else None,
            description=require_text(description, "description") if description is not None else None,
            category=require_text(category, "category") if category is not None else None,
        )
        changes.update(_clearable(method=method, reference=reference))

        current = await self._reader_store().get_expenditure(expenditure_id)
        keys = [current.account_id if current else None, account_id]

        async def work(unit: LedgerUnit) -> Expenditure:
            old = await unit.store.get_expenditure(expenditure_id)
            if old is None:
                raise EntityNotFound(EntityKind.EXPENDITURE.value, expenditure_id)
            if account_id is not None:
                await unit.balance.require_account(account_id)

            new = old.with_changes(**changes)
            paid_delta = new.amount - old.amount
            if old.linked_liability_id and paid_delta > 0:
                liability = await unit.linker.require_liability(old.linked_liability_id)
                if paid_delta > liability.balance:
                    raise ValidationError(
                        "Payment cannot exceed the liability balance",
                        {
                            "liability_id": liability.id,
                            "balance": str(liability.balance),
                            "requested": str(paid_delta),
                        },
                    )

            new = await self._detach_if_moved(unit, old, new)
            await unit.balance.apply(old, reverse=True)
            await unit.balance.apply(new)
            await unit.store.update_expenditure(new)
            if old.linked_liability_id and paid_delta:
                await unit.linker.adjust_liability_paid(old.linked_liability_id, paid_delta)
            await unit.budgets.recompute_affected(old, new)

            unit.emit(
                EventTypes.EXPENDITURE_UPDATED,
                EntityKind.EXPENDITURE.value,
                new.id,
                {"before": old.to_dict(), "after": new.to_dict()},
            )
            return new

        return await self._run(CommandTypes.UPDATE_EXPENDITURE, keys, work)

    async def create_transfer(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: Any,
        on_date: Any,
        description: str | None = None,
        transfer_id: str | None = None,
    ) -> Transfer:
        """계좌 간 이체

        Raises:
            SameAccountTransfer: 출금/입금 계좌 동일 (쓰기 전)
            InsufficientBalance: 출금 계좌 잔액 부족 (쓰기 전)
        """
        transfer = Transfer(
            id=transfer_id or new_id("trf"),
            organization_id=self.current_scope().organization_id,
            date=parse_date(on_date),
            from_account_id=require_text(from_account_id, "from_account_id"),
            to_account_id=require_text(to_account_id, "to_account_id"),
            amount=parse_amount(amount),
            description=optional_text(description),
        )

        async def work(unit: LedgerUnit) -> Transfer:
            await unit.balance.check_transfer(transfer)
            await unit.store.insert_transfer(transfer)
            await unit.balance.apply(transfer)

            unit.emit(
                EventTypes.TRANSFER_COMPLETED,
                EntityKind.TRANSFER.value,
                transfer.id,
                transfer.to_dict(),
            )
            return transfer

        return await self._run(CommandTypes.CREATE_TRANSFER, account_ids_of(transfer), work)

    async def update_transfer(
        self,
        transfer_id: str,
        from_account_id: str | None = None,
        to_account_id: str | None = None,
        amount: Any = None,
        on_date: Any = None,
        description: str | None = None,
    ) -> Transfer:
        """이체 수정 (기존 이체 역반영 후 잔액 기준으로 사전 검증)"""
        changes = _changes(
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=parse_amount(amount) if amount is not None else None,
            date=parse_date(on_date) if on_date is not None else None,
        )
        changes.update(_clearable(description=description))

        current = await self._reader_store().get_transfer(transfer_id)
        keys = [from_account_id, to_account_id]
        if current is not None:
            keys.extend(account_ids_of(current))

        async def work(unit: LedgerUnit) -> Transfer:
            old = await unit.store.get_transfer(transfer_id)
            if old is None:
                raise EntityNotFound(EntityKind.TRANSFER.value, transfer_id)

            new = old.with_changes(**changes)
            await unit.balance.check_transfer(new, replacing=old)
            await unit.balance.apply(old, reverse=True)
            await unit.balance.apply(new)
            await unit.store.update_transfer(new)

            unit.emit(
                EventTypes.TRANSFER_UPDATED,
                EntityKind.TRANSFER.value,
                new.id,
                {"before": old.to_dict(), "after": new.to_dict()},
            )
            return new

        return await self._run(CommandTypes.UPDATE_TRANSFER, keys, work)

    async def delete_transaction(self, transaction_id: str) -> Transaction:
        """거래 삭제 (종류 무관)

        처분 수입은 처분 취소로, 부채 상환 지출은 상환 취소로 처리.
        대출 수령 수입을 지우면 부채는 남고 연결만 끊김.
        Opening Balance 수입은 계좌 수정으로만 변경 가능.
        """
        current = await self._reader_store().find_transaction(transaction_id)
        keys = account_ids_of(current) if current is not None else []

        async def work(unit: LedgerUnit) -> Transaction:
            txn = await unit.store.find_transaction(transaction_id)
            if txn is None:
                raise EntityNotFound(EntityKind.TRANSACTION.value, transaction_id)

            if isinstance(txn, Income) and txn.is_opening_balance:
                raise ValidationError(
                    "Opening balance entries are managed through the account",
                    {"income_id": txn.id, "account_id": txn.account_id},
                )

            disposal = None
            if isinstance(txn, Income) and txn.linked_asset_id:
                disposal = await unit.store.get_disposal_by_income(txn.id)

            if disposal is not None:
                await unit.linker.delete_disposal(disposal.id)
                unit.emit(
                    EventTypes.DISPOSAL_REVERSED,
                    EntityKind.DISPOSAL.value,
                    disposal.id,
                    disposal.to_dict(),
                )
            elif isinstance(txn, Expenditure) and txn.linked_liability_id:
                _, liability = await unit.linker.delete_liability_payment(txn.id)
                unit.emit(
                    EventTypes.LIABILITY_PAYMENT_REVERSED,
                    EntityKind.LIABILITY.value,
                    txn.linked_liability_id,
                    {
                        "payment": txn.to_dict(),
                        "liability": liability.to_dict() if liability else None,
                    },
                )
            elif isinstance(txn, Income) and txn.linked_liability_id:
                loan = await unit.linker.delete_loan_income(txn)
                if loan is not None:
                    unit.emit(
                        EventTypes.LIABILITY_UPDATED,
                        EntityKind.LIABILITY.value,
                        loan.id,
                        loan.to_dict(),
                    )
            else:
                await unit.linker.remove_transaction(txn)

            unit.emit(EventTypes.TRANSACTION_DELETED, _entity_kind(txn), txn.id, txn.to_dict())
            return txn

        return await self._run(CommandTypes.DELETE_TRANSACTION, keys, work)

    # =========================================================================
    # Disposals
    # =========================================================================

    async def create_disposal(
        self,
        asset_id: str,
        account_id: str,
        amount: Any,
        on_date: Any,
        description: str | None = None,
        method: str | None = None,
        disposal_id: str | None = None,
    ) -> Disposal:
        """자산 처분 (수입 + 처분 + 자산 상태를 한 트랜잭션으로)"""
        asset_id = require_text(asset_id, "asset_id")
        account_id = require_text(account_id, "account_id")
        value = parse_amount(amount)
        when = parse_date(on_date)

        async def work(unit: LedgerUnit) -> Disposal:
            disposal, income = await unit.linker.create_disposal(
                asset_id,
                account_id,
                value,
                when,
                description=optional_text(description),
                method=optional_text(method),
                disposal_id=disposal_id,
            )
            unit.emit(
                EventTypes.DISPOSAL_RECORDED,
                EntityKind.DISPOSAL.value,
                disposal.id,
                {"disposal": disposal.to_dict(), "income": income.to_dict()},
            )
            return disposal

        return await self._run(CommandTypes.CREATE_DISPOSAL, [account_id], work)

    async def delete_disposal(self, disposal_id: str) -> Disposal:
        """자산 처분 취소 (수입 삭제 + 자산 상태 복원)"""
        current = await self._reader_store().get_disposal(disposal_id)

        async def work(unit: LedgerUnit) -> Disposal:
            disposal, income = await unit.linker.delete_disposal(disposal_id)
            unit.emit(
                EventTypes.DISPOSAL_REVERSED,
                EntityKind.DISPOSAL.value,
                disposal.id,
                {
                    "disposal": disposal.to_dict(),
                    "income": income.to_dict() if income else None,
                },
            )
            return disposal

        keys = [current.account_id] if current else []
        return await self._run(CommandTypes.DELETE_DISPOSAL, keys, work)

    # =========================================================================
    # Liabilities
    # =========================================================================

    async def create_liability(
        self,
        creditor: str,
        original_amount: Any,
        on_date: Any,
        category: str = SystemCategories.LIABILITIES,
        description: str | None = None,
        initial_payment: Any = None,
        initial_payment_account_id: str | None = None,
        liability_id: str | None = None,
    ) -> Liability:
        """부채 생성 (initial_payment가 있으면 최초 상환까지 한 트랜잭션으로)"""
        liability = Liability(
            id=liability_id or new_id("lia"),
            organization_id=self.current_scope().organization_id,
            date=parse_date(on_date),
            category=require_text(category, "category"),
            creditor=require_text(creditor, "creditor"),
            original_amount=parse_amount(original_amount, "original_amount"),
            description=optional_text(description),
        )
        first_payment = None
        if initial_payment not in (None, "", 0):
            first_payment = parse_amount(initial_payment, "initial_payment")

        async def work(unit: LedgerUnit) -> Liability:
            created, payment = await unit.linker.create_liability(
                liability,
                initial_payment=first_payment,
                initial_payment_account_id=initial_payment_account_id,
            )
            unit.emit(
                EventTypes.LIABILITY_CREATED,
                EntityKind.LIABILITY.value,
                created.id,
                created.to_dict(),
            )
            if payment is not None:
                unit.emit(
                    EventTypes.LIABILITY_PAYMENT_RECORDED,
                    EntityKind.LIABILITY.value,
                    created.id,
                    {"payment": payment.to_dict(), "liability": created.to_dict()},
                )
            return created

        return await self._run(
            CommandTypes.CREATE_LIABILITY, [initial_payment_account_id], work
        )

    async def create_loan(
        self,
        creditor: str,
        original_amount: Any,
        amount_received: Any,
        account_id: str,
        on_date: Any,
        category: str = Defaults.LOAN_CATEGORY,
        description: str | None = None,
        method: str | None = None,
        interest_rate: Any = None,
        loan_start_date: Any = None,
        loan_end_date: Any = None,
        liability_id: str | None = None,
        income_id: str | None = None,
    ) -> Liability:
        """대출/당좌차월 기록

        받은 금액(amount_received)은 account_id로 들어오는 수입,
        original_amount는 갚아야 할 총액(이자 포함). 두 행은 서로 연결됨.
        """
        account_id = require_text(account_id, "account_id")
        received = parse_amount(amount_received, "amount_received")
        rate = None
        if interest_rate not in (None, ""):
            rate = parse_money(interest_rate, "interest_rate")
            if rate < 0:
                raise ValidationError(
                    "interest_rate cannot be negative",
                    {"field": "interest_rate", "value": str(rate)},
                )
        liability = Liability(
            id=liability_id or new_id("lia"),
            organization_id=self.current_scope().organization_id,
            date=parse_date(on_date),
            category=require_text(category, "category"),
            creditor=require_text(creditor, "creditor"),
            original_amount=parse_amount(original_amount, "original_amount"),
            description=optional_text(description),
            interest_rate=rate,
            loan_start_date=(
                parse_date(loan_start_date, "loan_start_date")
                if loan_start_date not in (None, "")
                else None
            ),
            loan_end_date=(
                parse_date(loan_end_date, "loan_end_date")
                if loan_end_date not in (None, "")
                else None
            ),
        )

        async def work(unit: LedgerUnit) -> Liability:
            loan, income = await unit.linker.create_loan(
                liability,
                account_id,
                received,
                method=optional_text(method),
                income_id=income_id,
            )
            unit.emit(EventTypes.INCOME_RECORDED, EntityKind.INCOME.value, income.id, income.to_dict())
            unit.emit(
                EventTypes.LIABILITY_CREATED,
                EntityKind.LIABILITY.value,
                loan.id,
                loan.to_dict(),
            )
            return loan

        return await self._run(CommandTypes.CREATE_LOAN, [account_id], work)

    async def update_liability(
        self,
        liability_id: str,
        creditor: str | None = None,
        original_amount: Any = None,
        on_date: Any = None,
        category: str | None = None,
        description: str | None = None,
    ) -> Liability:
        """부채 속성 수정 (amount_paid는 상환으로만 변경)"""
        original = (
            parse_amount(original_amount, "original_amount")
            if original_amount is not None
            else None
        )
        when = parse_date(on_date) if on_date is not None else None

        async def work(unit: LedgerUnit) -> Liability:
            liability = await unit.linker.require_liability(liability_id)
            if original is not None and original < liability.amount_paid:
                raise ValidationError(
                    "original_amount cannot be less than the amount already paid",
                    {"amount_paid": str(liability.amount_paid), "requested": str(original)},
                )

            liability.creditor = require_text(creditor, "creditor") if creditor else liability.creditor
            liability.original_amount = original if original is not None else liability.original_amount
            liability.date = when or liability.date
            liability.category = category or liability.category
            if description is not None:
                liability.description = optional_text(description)
            await unit.store.update_liability(liability)

            unit.emit(
                EventTypes.LIABILITY_UPDATED,
                EntityKind.LIABILITY.value,
                liability.id,
                liability.to_dict(),
            )
            return liability

        return await self._run(CommandTypes.UPDATE_LIABILITY, [], work)

    async def delete_liability(self, liability_id: str) -> Liability:
        """부채 삭제 (상환 지출과 대출 수령 수입 먼저 삭제, 각 계좌 잔액 복원)"""
        reader = self._reader_store()
        payments = await reader.list_expenditures(liability_id=liability_id)
        keys = [p.account_id for p in payments]
        current = await reader.get_liability(liability_id)
        if current is not None and current.linked_income_id:
            loan_income = await reader.get_income(current.linked_income_id)
            if loan_income is not None:
                keys.append(loan_income.account_id)

        async def work(unit: LedgerUnit) -> Liability:
            liability, removed, loan_income = await unit.linker.delete_liability(liability_id)
            unit.emit(
                EventTypes.LIABILITY_DELETED,
                EntityKind.LIABILITY.value,
                liability.id,
                {
                    "liability": liability.to_dict(),
                    "removed_payment_ids": [p.id for p in removed],
                    "removed_loan_income_id": loan_income.id if loan_income else None,
                },
            )
            return liability

        return await self._run(CommandTypes.DELETE_LIABILITY, keys, work)

    async def record_liability_payment(
        self,
        liability_id: str,
        account_id: str,
        amount: Any,
        on_date: Any,
        description: str | None = None,
        method: str | None = None,
        expenditure_id: str | None = None,
    ) -> Expenditure:
        """부채 상환 (지출 기록 + amount_paid 증가)"""
        account_id = require_text(account_id, "account_id")
        value = parse_amount(amount)
        when = parse_date(on_date)

        async def work(unit: LedgerUnit) -> Expenditure:
            payment, liability = await unit.linker.record_liability_payment(
                liability_id,
                account_id,
                value,
                when,
                description=optional_text(description),
                method=optional_text(method),
                expenditure_id=expenditure_id,
            )
            unit.emit(
                EventTypes.LIABILITY_PAYMENT_RECORDED,
                EntityKind.LIABILITY.value,
                liability.id,
                {"payment": payment.to_dict(), "liability": liability.to_dict()},
            )
            return payment

        return await self._run(CommandTypes.RECORD_LIABILITY_PAYMENT, [account_id], work)

    async def delete_liability_payment(self, expenditure_id: str) -> Expenditure:
        """부채 상환 취소 (지출 삭제 + amount_paid 차감, 0 하한)"""
        current = await self._reader_store().get_expenditure(expenditure_id)

        async def work(unit: LedgerUnit) -> Expenditure:
            payment, liability = await unit.linker.delete_liability_payment(expenditure_id)
            unit.emit(
                EventTypes.LIABILITY_PAYMENT_REVERSED,
                EntityKind.LIABILITY.value,
                payment.linked_liability_id or "",
                {
                    "payment": payment.to_dict(),
                    "liability": liability.to_dict() if liability else None,
                },
            )
            return payment

        keys = [current.account_id] if current else []
        return await self._run(CommandTypes.DELETE_LIABILITY_PAYMENT, keys, work)

    # =========================================================================
    # Reconciliation
    # =========================================================================

    async def create_reconciliation(
        self,
        account_id: str,
        on_date: Any,
        bank_balance: Any,
        book_balance: Any = None,
        reconciled_income_ids: list[str] | None = None,
        reconciled_expenditure_ids: list[str] | None = None,
        added_income_ids: list[str] | None = None,
        added_expenditure_ids: list[str] | None = None,
        notes: str | None = None,
        reconciliation_id: str | None = None,
    ) -> Reconciliation:
        """대사 저장 (Balanced/Unbalanced 모두 저장 가능)"""
        account_id = require_text(account_id, "account_id")
        when = parse_date(on_date)
        bank = parse_money(bank_balance, "bank_balance")
        book = parse_money(book_balance, "book_balance") if book_balance is not None else None

        async def work(unit: LedgerUnit) -> Reconciliation:
            record = await unit.reconciliation.create(
                reconciliation_id or new_id("rec"),
                account_id,
                when,
                bank,
                book_balance=book,
                reconciled_income_ids=reconciled_income_ids,
                reconciled_expenditure_ids=reconciled_expenditure_ids,
                added_income_ids=added_income_ids,
                added_expenditure_ids=added_expenditure_ids,
                notes=optional_text(notes),
            )
            unit.emit(
                EventTypes.RECONCILIATION_SAVED,
                EntityKind.RECONCILIATION.value,
                record.id,
                record.to_dict(),
            )
            return record

        return await self._run(CommandTypes.CREATE_RECONCILIATION, [account_id], work)

    async def update_reconciliation(
        self,
        reconciliation_id: str,
        on_date: Any = None,
        book_balance: Any = None,
        bank_balance: Any = None,
        reconciled_income_ids: list[str] | None = None,
        reconciled_expenditure_ids: list[str] | None = None,
        added_income_ids: list[str] | None = None,
        added_expenditure_ids: list[str] | None = None,
        notes: str | None = None,
    ) -> Reconciliation:
        """대사 수정 (항목 집합 차이만큼 마킹/해제)"""
        when = parse_date(on_date) if on_date is not None else None
        book = parse_money(book_balance, "book_balance") if book_balance is not None else None
        bank = parse_money(bank_balance, "bank_balance") if bank_balance is not None else None
        current = await self._reader_store().get_reconciliation(reconciliation_id)

        async def work(unit: LedgerUnit) -> Reconciliation:
            record = await unit.reconciliation.update(
                reconciliation_id,
                on_date=when,
                book_balance=book,
                bank_balance=bank,
                reconciled_income_ids=reconciled_income_ids,
                reconciled_expenditure_ids=reconciled_expenditure_ids,
                added_income_ids=added_income_ids,
                added_expenditure_ids=added_expenditure_ids,
                notes=notes,
            )
            unit.emit(
                EventTypes.RECONCILIATION_SAVED,
                EntityKind.RECONCILIATION.value,
                record.id,
                record.to_dict(),
            )
            return record

        keys = [current.account_id] if current else []
        return await self._run(CommandTypes.UPDATE_RECONCILIATION, keys, work)

    async def delete_reconciliation(self, reconciliation_id: str) -> Reconciliation:
        """대사 삭제 (참조 항목 전부 해제)"""
        current = await self._reader_store().get_reconciliation(reconciliation_id)

        async def work(unit: LedgerUnit) -> Reconciliation:
            record = await unit.reconciliation.delete(reconciliation_id)
            unit.emit(
                EventTypes.RECONCILIATION_DELETED,
                EntityKind.RECONCILIATION.value,
                record.id,
                record.to_dict(),
            )
            return record

        keys = [current.account_id] if current else []
        return await self._run(CommandTypes.DELETE_RECONCILIATION, keys, work)

    # =========================================================================
    # Categories
    # =========================================================================

    async def create_category(
        self,
        name: str,
        category_type: str,
        description: str | None = None,
        track_members: bool = False,
        category_id: str | None = None,
    ) -> Category:
        name = require_text(name, "name")
        category_type = parse_category_type(category_type)
        tracked = parse_flag(track_members, "track_members")

        async def work(unit: LedgerUnit) -> Category:
            category = await unit.categories.create(
                name,
                category_type,
                description=optional_text(description),
                track_members=tracked,
                category_id=category_id,
            )
            unit.emit(
                EventTypes.CATEGORY_CREATED,
                EntityKind.CATEGORY.value,
                category.id,
                category.to_dict(),
            )
            return category

        return await self._run(CommandTypes.CREATE_CATEGORY, [], work)

    async def ensure_system_categories(self) -> list[Category]:
        """시스템 카테고리 시드 (앱 시작 시 호출)"""

        async def work(unit: LedgerUnit) -> list[Category]:
            created = await unit.categories.ensure_system_categories()
            for category in created:
                unit.emit(
                    EventTypes.CATEGORY_CREATED,
                    EntityKind.CATEGORY.value,
                    category.id,
                    category.to_dict(),
                )
            return created

        return await self._run(CommandTypes.CREATE_CATEGORY, [], work)

    async def update_category(
        self,
        category_id: str,
        name: str | None = None,
        description: str | None = None,
        track_members: bool | None = None,
    ) -> Category:
        """사용자 카테고리 수정

        Raises:
            ImmutableSystemCategory: 시스템 카테고리
        """
        new_name = require_text(name, "name") if name is not None else None
        tracked = (
            parse_flag(track_members, "track_members") if track_members is not None else None
        )

        async def work(unit: LedgerUnit) -> Category:
            category = await unit.categories.update(
                category_id,
                name=new_name,
                description=description,
                track_members=tracked,
            )
            unit.emit(
                EventTypes.CATEGORY_UPDATED,
                EntityKind.CATEGORY.value,
                category.id,
                category.to_dict(),
            )
            return category

        return await self._run(CommandTypes.UPDATE_CATEGORY, [], work)

    async def delete_category(self, category_id: str) -> dict[str, int]:
        """카테고리 삭제

        시스템 카테고리는 연쇄 삭제하므로 조직의 모든 계좌를 잠금.

        Returns:
            단계별 삭제 행 수

        Raises:
            CategoryInUse: 사용 중인 사용자 카테고리
        """
        reader = self._reader_store()
        current = await reader.get_category(category_id)
        keys: list[str] = []
        if current is not None and current.is_system:
            keys = [a.id for a in await reader.list_accounts()]

        async def work(unit: LedgerUnit) -> dict[str, int]:
            category, removed = await unit.categories.delete(category_id)
            unit.emit(
                EventTypes.CATEGORY_DELETED,
                EntityKind.CATEGORY.value,
                category.id,
                {"category": category.to_dict(), "removed": removed},
            )
            return removed

        return await self._run(CommandTypes.DELETE_CATEGORY, keys, work)

    # =========================================================================
    # Budgets
    # =========================================================================

    async def create_budget(
        self,
        category: str,
        period: str,
        budgeted: Any,
        description: str | None = None,
        budget_id: str | None = None,
    ) -> Budget:
        category = require_text(category, "category")
        parse_period(period)
        amount = parse_money(budgeted, "budgeted")

        async def work(unit: LedgerUnit) -> Budget:
            budget = await unit.budgets.create(
                budget_id or new_id("bud"),
                category,
                period,
                amount,
                description=optional_text(description),
            )
            unit.emit(EventTypes.BUDGET_CREATED, EntityKind.BUDGET.value, budget.id, budget.to_dict())
            return budget

        return await self._run(CommandTypes.CREATE_BUDGET, [], work)

    async def update_budget(
        self,
        budget_id: str,
        category: str | None = None,
        period: str | None = None,
        budgeted: Any = None,
        description: str | None = None,
    ) -> Budget:
        if period is not None:
            parse_period(period)
        amount = parse_money(budgeted, "budgeted") if budgeted is not None else None

        async def work(unit: LedgerUnit) -> Budget:
            budget = await unit.budgets.update(
                budget_id,
                category=category,
                period=period,
                budgeted=amount,
                description=description,
            )
            unit.emit(EventTypes.BUDGET_UPDATED, EntityKind.BUDGET.value, budget.id, budget.to_dict())
            return budget

        return await self._run(CommandTypes.UPDATE_BUDGET, [], work)

    async def delete_budget(self, budget_id: str) -> Budget:
        async def work(unit: LedgerUnit) -> Budget:
            budget = await unit.budgets.delete(budget_id)
            unit.emit(EventTypes.BUDGET_DELETED, EntityKind.BUDGET.value, budget.id, budget.to_dict())
            return budget

        return await self._run(CommandTypes.DELETE_BUDGET, [], work)

    async def recompute_budget_spent(self, category: str, period: str) -> Decimal:
        """카테고리 + 기간 예산의 spent 재계산

        Returns:
            지출 합계
        """
        category = require_text(category, "category")
        parse_period(period)

        async def work(unit: LedgerUnit) -> Decimal:
            spent = await unit.budgets.recompute_spent(category, period)
            unit.emit(
                EventTypes.BUDGET_RECOMPUTED,
                EntityKind.BUDGET.value,
                f"{category}:{period}",
                {"category": category, "period": period, "spent": str(spent)},
            )
            return spent

        return await self._run(CommandTypes.RECOMPUTE_BUDGET_SPENT, [], work)

    # =========================================================================
    # 조회 (읽기 전용 연결, 잠금 없음)
    # =========================================================================

    async def get_account(self, account_id: str) -> Account:
        account = await self._reader_store().get_account(account_id)
        if account is None:
            raise EntityNotFound(EntityKind.ACCOUNT.value, account_id)
        return account

    async def list_accounts(self) -> list[Account]:
        return await self._reader_store().list_accounts()

    async def get_transaction(self, transaction_id: str) -> Transaction:
        txn = await self._reader_store().find_transaction(transaction_id)
        if txn is None:
            raise EntityNotFound(EntityKind.TRANSACTION.value, transaction_id)
        return txn

    async def list_incomes(
        self,
        account_id: str | None = None,
        category: str | None = None,
    ) -> list[Income]:
        return await self._reader_store().list_incomes(account_id=account_id, category=category)

    async def list_expenditures(
        self,
        account_id: str | None = None,
        category: str | None = None,
        liability_id: str | None = None,
    ) -> list[Expenditure]:
        return await self._reader_store().list_expenditures(
            account_id=account_id, category=category, liability_id=liability_id
        )

    async def list_transfers(self, account_id: str | None = None) -> list[Transfer]:
        return await self._reader_store().list_transfers(account_id=account_id)

    async def get_liability(self, liability_id: str) -> Liability:
        liability = await self._reader_store().get_liability(liability_id)
        if liability is None:
            raise EntityNotFound(EntityKind.LIABILITY.value, liability_id)
        return liability

    async def list_liabilities(
        self, category: str | None = None, is_loan: bool | None = None
    ) -> list[Liability]:
        return await self._reader_store().list_liabilities(category=category, is_loan=is_loan)

    async def list_categories(self, category_type: str | None = None) -> list[Category]:
        if category_type is not None:
            category_type = parse_category_type(category_type)
        return await self._reader_store().list_categories(category_type)

    async def get_budget(self, budget_id: str) -> Budget:
        budget = await self._reader_store().get_budget(budget_id)
        if budget is None:
            raise EntityNotFound(EntityKind.BUDGET.value, budget_id)
        return budget

    async def list_budgets(self, category: str | None = None) -> list[Budget]:
        return await self._reader_store().list_budgets(category=category)

    async def get_reconciliation(self, reconciliation_id: str) -> Reconciliation:
        record = await self._reader_store().get_reconciliation(reconciliation_id)
        if record is None:
            raise EntityNotFound(EntityKind.RECONCILIATION.value, reconciliation_id)
        return record

    async def list_reconciliations(self, account_id: str | None = None) -> list[Reconciliation]:
        return await self._reader_store().list_reconciliations(account_id=account_id)

    async def get_disposal(self, disposal_id: str) -> Disposal:
        disposal = await self._reader_store().get_disposal(disposal_id)
        if disposal is None:
            raise EntityNotFound(EntityKind.DISPOSAL.value, disposal_id)
        return disposal

    async def list_disposals(self, asset_id: str | None = None) -> list[Disposal]:
        return await self._reader_store().list_disposals(asset_id=asset_id)

    async def detect_drift(self) -> list[DriftInfo]:
        """저장 잔액과 이력 기반 잔액이 다른 계좌 (보정하지 않음)"""
        return await BalanceEngine(self._reader_store()).detect_drift()

    async def list_events(self, since_seq: int = 0, limit: int = 100) -> list[Event]:
        """조직 이벤트 이력 (seq 오름차순)"""
        return await EventStore(self.reader).get_since(
            since_seq, organization_id=self.current_scope().organization_id, limit=limit
        )
