"""
Events / Commands 라우트

GET  /api/events    - 조직 이벤트 이력 (seq 이후, 오름차순)
POST /api/commands  - Command 실행 (CommandResult 반환)
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from core.domain.commands import Command
from core.ledger.service import LedgerService
from core.types import Actor
from web.dependencies import get_ledger_service
from web.errors import status_for
from web.models.requests import CommandCreateRequest
from web.models.responses import CommandResultResponse, EventResponse

router = APIRouter(prefix="/api", tags=["Events"])


@router.get("/events", response_model=list[EventResponse])
async def list_events(
    since_seq: int = Query(default=0, ge=0, description="이 seq 이후 이벤트만"),
    limit: int = Query(default=100, ge=1, le=500, description="조회 제한"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[dict[str, Any]]:
    """이벤트 이력 조회

    커밋된 명령의 이벤트만 기록되므로, 거부/롤백된 명령은 나타나지 않습니다.
    """
    return [event.to_dict() for event in await service.list_events(since_seq, limit)]


@router.post("/commands", response_model=CommandResultResponse)
async def execute_command(
    request: CommandCreateRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> JSONResponse:
    """Command 실행

    **지원 명령 타입**: service.supported_commands 참고
    (CreateAccount, CreateTransfer, DeleteCategory, RecalculateBalances 등)

    실패 시에도 CommandResult 본문을 반환하며, HTTP 상태 코드는 오류 코드에 따름.
    """
    command = Command.create(
        command_type=request.command_type,
        actor=Actor.web("api"),
        scope=service.scope,
        payload=request.payload,
        correlation_id=request.correlation_id,
    )
    result = await service.execute(command)
    return JSONResponse(status_code=status_for(result.error_code), content=result.to_dict())
