"""
pytest 공통 fixture 정의

설정 파일, 임시 DB, LedgerService 및 기본 계좌/자산/회원 fixture
"""

import tempfile
from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio

from adapters.db.entity_store import SQLiteEntityStore
from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.mock.notifier import MockNotifier
from core.config.loader import Settings
from core.domain.models import Account, Asset
from core.ledger.notifications import ContributionNotifier
from core.ledger.schema import init_ledger_schema
from core.ledger.service import LedgerService
from core.types import Scope


ORG_ID = "org-test"


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """Settings 싱글턴 초기화 (테스트 간 격리)"""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    settings_content = """# 테스트용 settings.yaml
mode: development

organization:
  id: "org-test"
  currency: "GHS"

ledger:
  command_timeout_sec: 5

notifications:
  webhook_url: ""

web:
  host: "127.0.0.1"
  port: 8100
"""
    settings_path = temp_dir / "settings.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_production(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성 (production 모드)"""
    settings_content = """mode: production

organization:
  id: "org-prod"
  currency: "USD"

notifications:
  webhook_url: "https://hooks.example.com/ledger"
"""
    settings_path = temp_dir / "settings_prod.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_invalid_mode(temp_dir: Path) -> Path:
    """잘못된 모드의 settings.yaml 파일 생성"""
    settings_content = """mode: invalid_mode

organization:
  id: "org-test"
"""
    settings_path = temp_dir / "settings_invalid.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


@pytest.fixture
def temp_settings_file_missing_org(temp_dir: Path) -> Path:
    """organization.id가 없는 settings.yaml 파일 생성"""
    settings_content = """mode: development

organization:
  currency: "GHS"
"""
    settings_path = temp_dir / "settings_no_org.yaml"
    settings_path.write_text(settings_content, encoding="utf-8")
    return settings_path


# -------------------------------------------------------------------------
# DB / Ledger 픽스처
# -------------------------------------------------------------------------


@pytest.fixture
def scope() -> Scope:
    """테스트 조직 범위"""
    return Scope.create(ORG_ID, "GHS")


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncIterator[SQLiteAdapter]:
    """스키마가 초기화된 임시 DB (쓰기 연결)"""
    adapter = SQLiteAdapter(tmp_path / "test_ledger.db")
    await adapter.connect()
    await init_schema(adapter)
    await init_ledger_schema(adapter)
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def reader(db: SQLiteAdapter) -> AsyncIterator[SQLiteAdapter]:
    """읽기 전용 연결 (스키마 생성 후 연결)"""
    adapter = SQLiteAdapter(db.db_path, readonly=True)
    await adapter.connect()
    yield adapter
    await adapter.close()


@pytest.fixture
def entities(db: SQLiteAdapter) -> SQLiteEntityStore:
    """비금융 엔티티 저장소"""
    return SQLiteEntityStore(db)


@pytest.fixture
def notifier() -> MockNotifier:
    """Mock 알림 서비스"""
    return MockNotifier()


@pytest_asyncio.fixture
async def service(
    db: SQLiteAdapter,
    reader: SQLiteAdapter,
    entities: SQLiteEntityStore,
    notifier: MockNotifier,
    scope: Scope,
) -> LedgerService:
    """시스템 카테고리가 시드된 LedgerService (헌금 알림 구독 포함)"""
    ledger = LedgerService(db, entities, reader=reader, scope=scope, timeout=5.0)
    ledger.subscribe(ContributionNotifier(notifier))
    await ledger.ensure_system_categories()
    return ledger


@pytest_asyncio.fixture
async def account_a(service: LedgerService) -> Account:
    """기초 잔액 100인 은행 계좌"""
    return await service.create_account("Main Bank", "Bank", opening_balance="100")


@pytest_asyncio.fixture
async def account_b(service: LedgerService) -> Account:
    """기초 잔액 0인 현금 계좌"""
    return await service.create_account("Petty Cash", "Cash")


@pytest_asyncio.fixture
async def asset(entities: SQLiteEntityStore) -> Asset:
    """사용 중인 자산"""
    return await entities.add_asset(ORG_ID, "Church Van", status="In Use")


@pytest_asyncio.fixture
async def member_id(entities: SQLiteEntityStore) -> str:
    """등록된 회원 ID"""
    return await entities.add_member(ORG_ID, "Ama Mensah", phone="+233200000000")
