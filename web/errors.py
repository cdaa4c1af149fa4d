"""
Ledger 오류 → HTTP 응답 변환

라우트는 LedgerError를 그대로 전파하고, 여기 등록된 핸들러가
오류 코드에 맞는 상태 코드와 구조화된 본문으로 변환함.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.errors import LedgerError

logger = logging.getLogger(__name__)


# 오류 코드 → HTTP 상태 코드
STATUS_BY_CODE: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "ASSET_ALREADY_DISPOSED": 400,
    "SAME_ACCOUNT_TRANSFER": 400,
    "ENTITY_NOT_FOUND": 404,
    "IMMUTABLE_SYSTEM_CATEGORY": 403,
    "INSUFFICIENT_BALANCE": 409,
    "CATEGORY_IN_USE": 409,
    "ACCOUNT_IN_USE": 409,
    "COMMAND_TIMEOUT": 504,
    "PARTIAL_FAILURE": 500,
}


def status_for(code: str | None) -> int:
    """오류 코드의 HTTP 상태 코드 (알 수 없는 코드는 500)"""
    if code is None:
        return 200
    return STATUS_BY_CODE.get(code, 500)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """LedgerError 예외 핸들러"""
    status_code = status_for(exc.code)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} 실패: {exc.code} {exc.message}")
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


def register_error_handlers(app: FastAPI) -> None:
    """앱에 Ledger 오류 핸들러 등록"""
    app.add_exception_handler(LedgerError, ledger_error_handler)
