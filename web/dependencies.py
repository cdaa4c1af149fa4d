"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
LedgerService는 앱 lifespan에서 한 번 생성되어 모든 요청이 공유함
(계좌별 키 잠금과 쓰기 연결을 공유해야 하므로).
"""

from fastapi import HTTPException

from core.config.loader import Settings, get_settings
from core.ledger.service import LedgerService


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


# =========================================================================
# LedgerService (lifespan에서 설정)
# =========================================================================

_ledger_service: LedgerService | None = None


def set_ledger_service(service: LedgerService | None) -> None:
    """LedgerService 설정

    앱 시작 시 설정, 종료 시 None으로 해제.

    Args:
        service: LedgerService 인스턴스
    """
    global _ledger_service
    _ledger_service = service


def get_ledger_service() -> LedgerService:
    """LedgerService 반환

    Raises:
        HTTPException: 서비스가 아직 초기화되지 않은 경우 503
    """
    if _ledger_service is None:
        raise HTTPException(
            status_code=503,
            detail={"code": "SERVICE_UNAVAILABLE", "message": "Ledger service is not ready"},
        )
    return _ledger_service


def is_ledger_ready() -> bool:
    """LedgerService 초기화 여부"""
    return _ledger_service is not None
