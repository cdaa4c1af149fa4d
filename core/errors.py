"""
Ledger 오류 분류

모든 Ledger 오류는 LedgerError를 상속하며, 구조화된 결과(code, message,
details)로 호출자에게 반환됨. 금융 오류는 로그 후 삼키지 않음.
"""

from typing import Any


class LedgerError(Exception):
    """Ledger 오류 기본 클래스

    Args:
        message: 사람이 읽을 수 있는 오류 메시지
        details: 추가 컨텍스트 (계좌 ID, 금액 등)
    """

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (구조화된 결과용)"""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(LedgerError):
    """입력 검증 실패 (0 이하 금액, 필수 필드 누락 등) - 쓰기 전에 거부"""

    code = "VALIDATION_ERROR"


class AssetAlreadyDisposed(ValidationError):
    """이미 처분된 자산에 대한 처분 요청"""

    code = "ASSET_ALREADY_DISPOSED"


class InsufficientBalance(LedgerError):
    """이체 출금 계좌 잔액 부족 - 쓰기 전에 거부"""

    code = "INSUFFICIENT_BALANCE"


class SameAccountTransfer(LedgerError):
    """동일 계좌 간 이체 - 쓰기 전에 거부"""

    code = "SAME_ACCOUNT_TRANSFER"


class CategoryInUse(LedgerError):
    """사용 중인 사용자 정의 카테고리 삭제 시도"""

    code = "CATEGORY_IN_USE"


class AccountInUse(LedgerError):
    """거래가 참조 중인 계좌 삭제 시도"""

    code = "ACCOUNT_IN_USE"


class ImmutableSystemCategory(LedgerError):
    """시스템 카테고리 수정 시도"""

    code = "IMMUTABLE_SYSTEM_CATEGORY"


class EntityNotFound(LedgerError):
    """계좌/부채/자산/처분 등 대상 엔티티 없음"""

    code = "ENTITY_NOT_FOUND"

    def __init__(self, entity_kind: str, entity_id: str):
        super().__init__(
            f"{entity_kind} not found: {entity_id}",
            {"entity_kind": entity_kind, "entity_id": entity_id},
        )
        self.entity_kind = entity_kind
        self.entity_id = entity_id


class PartialFailure(LedgerError):
    """다중 행 명령 도중 실패 - 이미 적용된 단계는 모두 롤백됨"""

    code = "PARTIAL_FAILURE"


class CommandTimeout(LedgerError):
    """명령 실행 시간 초과 - 모든 효과 롤백됨"""

    code = "COMMAND_TIMEOUT"
