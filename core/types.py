"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from enum import Enum

from core.constants import Defaults


class RunMode(str, Enum):
    """실행 모드 (운영 / 개발)"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class AccountKind(str, Enum):
    """계좌 유형"""

    CASH = "Cash"
    BANK = "Bank"
    MOBILE_MONEY = "Mobile Money"


class CategoryType(str, Enum):
    """카테고리 유형"""

    INCOME = "income"
    EXPENSE = "expense"
    LIABILITY = "liability"


class TransactionKind(str, Enum):
    """거래 종류 (태그)

    OPENING_BALANCE, LIABILITY_PAYMENT는 각각 Income, Expenditure의
    특수 형태로, 잔액 반영 규칙이 다름.
    """

    INCOME = "Income"
    EXPENDITURE = "Expenditure"
    TRANSFER = "Transfer"
    LIABILITY_PAYMENT = "LiabilityPayment"
    OPENING_BALANCE = "OpeningBalance"


class LiabilityStatus(str, Enum):
    """부채 상태 (잔액에서 파생)"""

    NOT_PAID = "Not Paid"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"


class ReconciliationStatus(str, Enum):
    """대사 상태 (차액에서 파생, 저장 차단 조건 아님)"""

    BALANCED = "Balanced"
    UNBALANCED = "Unbalanced"


class AssetStatus(str, Enum):
    """자산 상태 (비금융 엔티티 저장소 소유)"""

    AVAILABLE = "Available"
    IN_USE = "In Use"
    UNDER_MAINTENANCE = "Under Maintenance"
    DISPOSED = "Disposed"


class EventSource(str, Enum):
    """Event 출처"""

    LEDGER = "LEDGER"
    WEB = "WEB"
    SCRIPT = "SCRIPT"


class EntityKind(str, Enum):
    """Entity 종류"""

    ACCOUNT = "ACCOUNT"
    INCOME = "INCOME"
    EXPENDITURE = "EXPENDITURE"
    TRANSFER = "TRANSFER"
    TRANSACTION = "TRANSACTION"
    DISPOSAL = "DISPOSAL"
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    RECONCILIATION = "RECONCILIATION"
    CATEGORY = "CATEGORY"
    BUDGET = "BUDGET"
    MEMBER = "MEMBER"


class ActorKind(str, Enum):
    """행위자 종류"""

    USER = "USER"
    SYSTEM = "SYSTEM"


@dataclass(frozen=True)
class Scope:
    """조직 범위 (불변)

    모든 Event와 Command에 포함되어 테넌트 컨텍스트를 정의.
    저장소는 organization_id로 모든 행을 필터링함.
    """

    organization_id: str
    currency: str

    @classmethod
    def create(
        cls,
        organization_id: str = Defaults.ORGANIZATION_ID,
        currency: str = Defaults.CURRENCY,
    ) -> "Scope":
        """Scope 생성 헬퍼"""
        return cls(organization_id=organization_id, currency=currency)


@dataclass(frozen=True)
class Actor:
    """행위자 (불변)

    Command 발행자를 식별
    """

    kind: str
    id: str

    @classmethod
    def user(cls, user_id: str) -> "Actor":
        """사용자 Actor 생성"""
        return cls(kind=ActorKind.USER.value, id=f"user:{user_id}")

    @classmethod
    def system(cls, system_name: str) -> "Actor":
        """시스템 Actor 생성"""
        return cls(kind=ActorKind.SYSTEM.value, id=f"system:{system_name}")

    @classmethod
    def web(cls, component: str) -> "Actor":
        """Web Actor 생성"""
        return cls(kind=ActorKind.USER.value, id=f"web:{component}")
