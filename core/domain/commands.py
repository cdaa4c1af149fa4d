"""
Command 도메인 모델

모든 Ledger 행위 요청은 Command로 표현됨.
Command 하나는 하나의 논리 트랜잭션으로 실행되고, 결과는 CommandResult로 반환됨.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from core.errors import LedgerError
from core.types import Actor, Scope


@dataclass
class Command:
    """명령

    행위 요청을 나타내는 데이터 구조.
    """

    command_id: str
    command_type: str
    ts: datetime
    correlation_id: str
    actor: Actor
    scope: Scope
    payload: dict[str, Any]

    @staticmethod
    def create(
        command_type: str,
        actor: Actor,
        scope: Scope,
        payload: dict[str, Any],
        correlation_id: str | None = None,
    ) -> "Command":
        """새 Command 생성

        Args:
            command_type: 명령 타입 (예: CreateTransfer)
            actor: 행위자 (사용자, 시스템)
            scope: 조직 범위
            payload: 명령 상세 데이터
            correlation_id: 상관 ID (없으면 자동 생성)

        Returns:
            새 Command 인스턴스
        """
        return Command(
            command_id=str(uuid4()),
            command_type=command_type,
            ts=datetime.now(timezone.utc),
            correlation_id=correlation_id or str(uuid4()),
            actor=actor,
            scope=scope,
            payload=payload,
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (직렬화용)"""
        return {
            "command_id": self.command_id,
            "command_type": self.command_type,
            "ts": self.ts.isoformat(),
            "correlation_id": self.correlation_id,
            "actor": {
                "kind": self.actor.kind,
                "id": self.actor.id,
            },
            "scope": {
                "organization_id": self.scope.organization_id,
                "currency": self.scope.currency,
            },
            "payload": self.payload,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Command":
        """딕셔너리에서 생성 (역직렬화용)"""
        ts = data["ts"]
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts)

        actor_data = data["actor"]
        scope_data = data["scope"]

        return Command(
            command_id=data["command_id"],
            command_type=data["command_type"],
            ts=ts,
            correlation_id=data["correlation_id"],
            actor=Actor(kind=actor_data["kind"], id=actor_data["id"]),
            scope=Scope(
                organization_id=scope_data["organization_id"],
                currency=scope_data["currency"],
            ),
            payload=data.get("payload", {}),
        )


@dataclass
class CommandResult:
    """명령 실행 결과

    Ledger 오류는 예외가 아닌 구조화된 결과로 반환됨.
    """

    ok: bool
    command_id: str
    data: dict[str, Any] = field(default_factory=dict)
    error: dict[str, Any] | None = None

    @staticmethod
    def success(command_id: str, data: dict[str, Any] | None = None) -> "CommandResult":
        """성공 결과 생성"""
        return CommandResult(ok=True, command_id=command_id, data=data or {})

    @staticmethod
    def failure(command_id: str, error: LedgerError) -> "CommandResult":
        """실패 결과 생성"""
        return CommandResult(ok=False, command_id=command_id, error=error.to_dict())

    @property
    def error_code(self) -> str | None:
        """오류 코드 (성공 시 None)"""
        return self.error["code"] if self.error else None

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환"""
        return {
            "ok": self.ok,
            "command_id": self.command_id,
            "data": self.data,
            "error": self.error,
        }


class CommandTypes:
    """Command Type 상수"""

    # Accounts
    CREATE_ACCOUNT: str = "CreateAccount"
    UPDATE_ACCOUNT: str = "UpdateAccount"
    DELETE_ACCOUNT: str = "DeleteAccount"
    RECALCULATE_BALANCES: str = "RecalculateBalances"

    # Transactions
    CREATE_INCOME: str = "CreateIncome"
    UPDATE_INCOME: str = "UpdateIncome"
    CREATE_EXPENDITURE: str = "CreateExpenditure"
    UPDATE_EXPENDITURE: str = "UpdateExpenditure"
    CREATE_TRANSFER: str = "CreateTransfer"
    UPDATE_TRANSFER: str = "UpdateTransfer"
    DELETE_TRANSACTION: str = "DeleteTransaction"

    # Linked operations
    CREATE_DISPOSAL: str = "CreateDisposal"
    DELETE_DISPOSAL: str = "DeleteDisposal"
    CREATE_LIABILITY: str = "CreateLiability"
    UPDATE_LIABILITY: str = "UpdateLiability"
    DELETE_LIABILITY: str = "DeleteLiability"
    RECORD_LIABILITY_PAYMENT: str = "RecordLiabilityPayment"
    DELETE_LIABILITY_PAYMENT: str = "DeleteLiabilityPayment"
    CREATE_LOAN: str = "CreateLoan"

    # Reconciliation
    CREATE_RECONCILIATION: str = "CreateReconciliation"
    UPDATE_RECONCILIATION: str = "UpdateReconciliation"
    DELETE_RECONCILIATION: str = "DeleteReconciliation"

    # Categories / Budgets
    CREATE_CATEGORY: str = "CreateCategory"
    UPDATE_CATEGORY: str = "UpdateCategory"
    DELETE_CATEGORY: str = "DeleteCategory"
    CREATE_BUDGET: str = "CreateBudget"
    UPDATE_BUDGET: str = "UpdateBudget"
    DELETE_BUDGET: str = "DeleteBudget"
    RECOMPUTE_BUDGET_SPENT: str = "RecomputeBudgetSpent"

    @classmethod
    def all_types(cls) -> list[str]:
        """모든 명령 타입 목록 반환"""
        return [
            value
            for name, value in vars(cls).items()
            if not name.startswith("_") and isinstance(value, str) and name.isupper()
        ]

    @classmethod
    def is_valid_type(cls, command_type: str) -> bool:
        """유효한 명령 타입인지 확인"""
        return command_type in cls.all_types()

    @classmethod
    def transaction_types(cls) -> list[str]:
        """잔액에 영향을 주는 거래 명령 타입"""
        return [
            cls.CREATE_INCOME,
            cls.UPDATE_INCOME,
            cls.CREATE_EXPENDITURE,
            cls.UPDATE_EXPENDITURE,
            cls.CREATE_TRANSFER,
            cls.UPDATE_TRANSFER,
            cls.DELETE_TRANSACTION,
        ]
