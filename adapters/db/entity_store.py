"""
비금융 엔티티 저장소 (SQLite)

assets / members 테이블 접근. IEntityStore Protocol 준수.
Ledger 명령 트랜잭션과 같은 SQLiteAdapter를 공유하므로 처분 명령의
자산 상태 변경도 같은 트랜잭션으로 커밋/롤백됨.
"""

import logging
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Asset
from core.types import AssetStatus

logger = logging.getLogger(__name__)


class SQLiteEntityStore:
    """SQLite 기반 엔티티 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get_asset(self, organization_id: str, asset_id: str) -> Asset | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM assets WHERE id = ? AND organization_id = ?",
            (asset_id, organization_id),
        )
        return Asset.from_row(row) if row else None

    async def set_asset_status(
        self,
        organization_id: str,
        asset_id: str,
        status: str,
        previous_status: str | None,
    ) -> None:
        await self.db.execute(
            """
            UPDATE assets
            SET status = ?, previous_status = ?, updated_at = datetime('now')
            WHERE id = ? AND organization_id = ?
            """,
            (status, previous_status, asset_id, organization_id),
        )

    async def member_exists(self, organization_id: str, member_id: str) -> bool:
        row = await self.db.fetchone(
            "SELECT 1 FROM members WHERE id = ? AND organization_id = ?",
            (member_id, organization_id),
        )
        return row is not None

    # -------------------------------------------------------------------------
    # 등록 (외부 CRUD 모듈 대역 - 스크립트/테스트용)
    # -------------------------------------------------------------------------

    async def add_asset(
        self,
        organization_id: str,
        name: str,
        status: str = AssetStatus.AVAILABLE.value,
        asset_id: str | None = None,
    ) -> Asset:
        """자산 등록 (커밋 포함)"""
        asset = Asset(
            id=asset_id or f"as-{uuid4().hex[:12]}",
            organization_id=organization_id,
            name=name,
            status=status,
        )
        await self.db.execute(
            "INSERT INTO assets (id, organization_id, name, status) VALUES (?, ?, ?, ?)",
            (asset.id, organization_id, asset.name, asset.status),
        )
        await self.db.commit()
        logger.debug(f"자산 등록: {asset.id} ({asset.name})")
        return asset

    async def add_member(
        self,
        organization_id: str,
        name: str,
        phone: str | None = None,
        member_id: str | None = None,
    ) -> str:
        """회원 등록 (커밋 포함)

        Returns:
            회원 ID
        """
        member_id = member_id or f"mb-{uuid4().hex[:12]}"
        await self.db.execute(
            "INSERT INTO members (id, organization_id, name, phone) VALUES (?, ?, ?, ?)",
            (member_id, organization_id, name, phone),
        )
        await self.db.commit()
        logger.debug(f"회원 등록: {member_id}")
        return member_id
