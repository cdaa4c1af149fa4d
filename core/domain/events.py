"""
Event 도메인 모델

모든 Ledger 상태 변경은 Event로 기록됨.
Event는 명령 트랜잭션 안에서 event_store에 추가되고, 커밋 후 구독자에게 발행됨.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from core.types import Scope


@dataclass
class Event:
    """이벤트

    상태 변경을 기록하는 데이터 구조.
    dedup_key로 중복 이벤트를 방지함.
    """

    event_id: str
    event_type: str
    ts: datetime
    correlation_id: str
    command_id: str | None
    source: str
    entity_kind: str
    entity_id: str
    scope: Scope
    dedup_key: str
    payload: dict[str, Any]
    seq: int | None = None  # DB에서 조회 시 자동 할당되는 시퀀스 번호

    @staticmethod
    def create(
        event_type: str,
        source: str,
        entity_kind: str,
        entity_id: str,
        scope: Scope,
        payload: dict[str, Any],
        dedup_key: str | None = None,
        correlation_id: str | None = None,
        command_id: str | None = None,
    ) -> "Event":
        """새 이벤트 생성

        Args:
            event_type: 이벤트 타입 (예: TransferCompleted)
            source: 이벤트 출처 (LEDGER, WEB, SCRIPT)
            entity_kind: 엔티티 종류 (ACCOUNT, INCOME, TRANSFER 등)
            entity_id: 엔티티 ID
            scope: 조직 범위
            payload: 이벤트 상세 데이터
            dedup_key: 중복 제거 키 (없으면 event_type:entity_id:event_id)
            correlation_id: 상관 ID (없으면 자동 생성)
            command_id: 관련 Command ID

        Returns:
            새 Event 인스턴스
        """
        event_id = str(uuid4())
        return Event(
            event_id=event_id,
            event_type=event_type,
            ts=datetime.now(timezone.utc),
            correlation_id=correlation_id or str(uuid4()),
            command_id=command_id,
            source=source,
            entity_kind=entity_kind,
            entity_id=entity_id,
            scope=scope,
            dedup_key=dedup_key or f"{event_type}:{entity_id}:{event_id}",
            payload=payload,
        )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (직렬화용)"""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "ts": self.ts.isoformat(),
            "correlation_id": self.correlation_id,
            "command_id": self.command_id,
            "source": self.source,
            "entity_kind": self.entity_kind,
            "entity_id": self.entity_id,
            "scope": {
                "organization_id": self.scope.organization_id,
                "currency": self.scope.currency,
            },
            "dedup_key": self.dedup_key,
            "payload": self.payload,
            "seq": self.seq,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Event":
        """딕셔너리에서 생성 (역직렬화용)"""
        ts = data["ts"]
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts)

        scope_data = data["scope"]
        scope = Scope(
            organization_id=scope_data["organization_id"],
            currency=scope_data["currency"],
        )

        return Event(
            event_id=data["event_id"],
            event_type=data["event_type"],
            ts=ts,
            correlation_id=data["correlation_id"],
            command_id=data.get("command_id"),
            source=data["source"],
            entity_kind=data["entity_kind"],
            entity_id=data["entity_id"],
            scope=scope,
            dedup_key=data["dedup_key"],
            payload=data.get("payload", {}),
            seq=data.get("seq"),
        )


class EventTypes:
    """Event Type 상수"""

    # Accounts
    ACCOUNT_CREATED: str = "AccountCreated"
    ACCOUNT_UPDATED: str = "AccountUpdated"
    ACCOUNT_DELETED: str = "AccountDeleted"
    BALANCES_RECALCULATED: str = "BalancesRecalculated"

    # Transactions
    INCOME_RECORDED: str = "IncomeRecorded"
    INCOME_UPDATED: str = "IncomeUpdated"
    EXPENDITURE_RECORDED: str = "ExpenditureRecorded"
    EXPENDITURE_UPDATED: str = "ExpenditureUpdated"
    TRANSFER_COMPLETED: str = "TransferCompleted"
    TRANSFER_UPDATED: str = "TransferUpdated"
    TRANSACTION_DELETED: str = "TransactionDeleted"

    # Disposal / Liability 연결 거래
    DISPOSAL_RECORDED: str = "DisposalRecorded"
    DISPOSAL_REVERSED: str = "DisposalReversed"
    LIABILITY_CREATED: str = "LiabilityCreated"
    LIABILITY_UPDATED: str = "LiabilityUpdated"
    LIABILITY_DELETED: str = "LiabilityDeleted"
    LIABILITY_PAYMENT_RECORDED: str = "LiabilityPaymentRecorded"
    LIABILITY_PAYMENT_REVERSED: str = "LiabilityPaymentReversed"

    # Reconciliation
    RECONCILIATION_SAVED: str = "ReconciliationSaved"
    RECONCILIATION_DELETED: str = "ReconciliationDeleted"

    # Categories / Budgets
    CATEGORY_CREATED: str = "CategoryCreated"
    CATEGORY_UPDATED: str = "CategoryUpdated"
    CATEGORY_DELETED: str = "CategoryDeleted"
    BUDGET_CREATED: str = "BudgetCreated"
    BUDGET_UPDATED: str = "BudgetUpdated"
    BUDGET_DELETED: str = "BudgetDeleted"
    BUDGET_RECOMPUTED: str = "BudgetRecomputed"

    # 알림 협력자용 (회원 헌금 기록)
    CONTRIBUTION_RECORDED: str = "ContributionRecorded"

    @classmethod
    def all_types(cls) -> list[str]:
        """모든 이벤트 타입 목록 반환"""
        return [
            value
            for name, value in vars(cls).items()
            if not name.startswith("_") and isinstance(value, str) and name.isupper()
        ]

    @classmethod
    def is_valid_type(cls, event_type: str) -> bool:
        """유효한 이벤트 타입인지 확인"""
        return event_type in cls.all_types()
