"""
헬스 체크 엔드포인트

GET /health - 서버 상태 확인
"""

from fastapi import APIRouter, Depends

from core.config.loader import Settings
from web.dependencies import get_app_settings, is_ledger_ready
from web.models.responses import HealthResponse

router = APIRouter(tags=["health"])

VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """서버 상태 확인

    Returns:
        HealthResponse: status, mode, organization_id, ledger_ready, version 정보
    """
    ready = is_ledger_ready()
    return HealthResponse(
        status="ok" if ready else "starting",
        mode=settings.mode.value,
        organization_id=settings.scope.organization_id,
        ledger_ready=ready,
        version=VERSION,
    )
