"""
원장 점검 스크립트

저장된 계좌 잔액을 거래 이력으로 다시 계산해 drift를 보고하고,
--fix를 주면 잔액을 재계산(RecalculateBalances)하여 보정.

사용법:
    python -m scripts.check_ledger --mode development
    python -m scripts.check_ledger --mode production --fix
    python -m scripts.check_ledger --db data/ledger_dev.db --org org-main
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.entity_store import SQLiteEntityStore
from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path, init_schema
from core.constants import Defaults
from core.ledger.schema import LEDGER_TABLES, init_ledger_schema
from core.ledger.service import LedgerService
from core.storage.event_store import EventStore
from core.types import EventSource, Scope

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def report_tables(db: SQLiteAdapter, organization_id: str) -> None:
    """테이블별 행 수 출력"""
    for table in LEDGER_TABLES:
        row = await db.fetchone(
            f"SELECT COUNT(*) FROM {table} WHERE organization_id = ?",
            (organization_id,),
        )
        logger.info(f"  {table:34} {row[0] if row else 0:>8}")

    events = await EventStore(db).get_since(0, organization_id=organization_id, limit=1_000_000)
    logger.info(f"  {'event_store':34} {len(events):>8}")


async def check_ledger(db_path: Path, organization_id: str, fix: bool) -> int:
    """잔액 drift 점검

    Args:
        db_path: DB 파일 경로
        organization_id: 점검할 조직
        fix: True면 drift 보정

    Returns:
        보정 전 drift 계좌 수
    """
    logger.info(f"원장 점검 시작: {db_path} ({organization_id})")

    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        await init_ledger_schema(db)

        service = LedgerService(
            db,
            SQLiteEntityStore(db),
            scope=Scope.create(organization_id),
            source=EventSource.SCRIPT.value,
        )

        logger.info("테이블 현황:")
        await report_tables(db, organization_id)

        drifts = await service.detect_drift()
        if not drifts:
            logger.info("잔액 drift 없음 ✓")
            return 0

        for drift in drifts:
            logger.warning(
                f"drift: {drift.account_name} ({drift.account_id}) "
                f"stored={drift.stored} expected={drift.expected} drift={drift.drift}"
            )

        if fix:
            corrected = await service.recalculate_balances()
            logger.info(f"잔액 재계산 완료: {len(corrected)}개 계좌 보정 ✓")
        else:
            logger.info("보정하려면 --fix 옵션을 사용하세요")

        return len(drifts)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="원장 잔액 drift 점검 및 재계산"
    )
    parser.add_argument(
        "--mode",
        choices=["development", "production"],
        default="development",
        help="실행 모드 (기본: development)"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="DB 파일 경로 (지정 시 --mode 무시)"
    )
    parser.add_argument(
        "--org",
        default=Defaults.ORGANIZATION_ID,
        help=f"조직 ID (기본: {Defaults.ORGANIZATION_ID})"
    )
    parser.add_argument(
        "--fix",
        action="store_true",
        help="drift가 있으면 잔액 재계산"
    )
    args = parser.parse_args()

    path = args.db or get_db_path(args.mode)
    drift_count = asyncio.run(check_ledger(path, args.org, args.fix))
    sys.exit(1 if drift_count and not args.fix else 0)
