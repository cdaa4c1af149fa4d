"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
시작 시 스키마 초기화, 시스템 카테고리 시드, LedgerService 생성.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.db.entity_store import SQLiteEntityStore
from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.webhook.notifier import WebhookNotifier
from core.config.loader import get_settings
from core.ledger.notifications import ContributionNotifier
from core.ledger.schema import init_ledger_schema
from core.ledger.service import LedgerService
from core.types import EventSource
from web.dependencies import set_ledger_service
from web.errors import register_error_handlers
from web.routes import (
    accounts,
    categories,
    events,
    health,
    liabilities,
    reconciliations,
    transactions,
)
from web.routes.health import VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """앱 생명주기 관리

    쓰기 연결 하나(명령 트랜잭션)와 읽기 전용 연결 하나(조회)를 사용.
    """
    settings = get_settings()

    writer = SQLiteAdapter(settings.db_path)
    await writer.connect()
    await init_schema(writer)
    await init_ledger_schema(writer)

    reader = SQLiteAdapter(settings.db_path, readonly=True)
    await reader.connect()

    service = LedgerService(
        writer,
        SQLiteEntityStore(writer),
        reader=reader,
        scope=settings.scope,
        timeout=settings.command_timeout_sec,
        source=EventSource.WEB.value,
    )
    seeded = await service.ensure_system_categories()
    if seeded:
        logger.info(f"시스템 카테고리 생성: {[c.name for c in seeded]}")

    notifier = None
    if settings.webhook_url:
        notifier = WebhookNotifier(settings.webhook_url)
        service.subscribe(ContributionNotifier(notifier))
        logger.info("Web: 헌금 알림 Webhook 활성화")
    else:
        logger.info("Web: webhook_url 없음, 헌금 알림 비활성화")

    set_ledger_service(service)
    logger.info(
        f"Web: LedgerService 초기화 완료 ({settings.scope.organization_id})",
        extra={"db_path": str(settings.db_path)},
    )

    try:
        yield
    finally:
        set_ledger_service(None)
        if notifier is not None:
            await notifier.close()
        await reader.close()
        await writer.close()
        logger.info("Web: DB 연결 종료 완료")


app = FastAPI(
    title="Ministry Ledger API",
    description="조직 재무 원장 API (계좌, 거래, 부채, 자산 처분, 대사, 예산)",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (대시보드 프런트엔드용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(accounts.router)
app.include_router(transactions.router)
app.include_router(liabilities.router)
app.include_router(reconciliations.router)
app.include_router(categories.router)
app.include_router(events.router)
