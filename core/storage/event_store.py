"""
EventStore - 이벤트 저장소

모든 Ledger 상태 변경은 Event로 기록됨.
dedup_key로 중복 이벤트를 방지하고, append-only 방식으로 저장.
append는 커밋하지 않음 (명령 트랜잭션과 함께 커밋/롤백).
"""

import json
import logging
from datetime import datetime
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.events import Event
from core.types import Scope

logger = logging.getLogger(__name__)


_SELECT_COLUMNS = """
    seq, event_id, event_type, ts,
    correlation_id, command_id, source,
    entity_kind, entity_id,
    organization_id, currency,
    dedup_key, payload_json
"""


class EventStore:
    """이벤트 저장소

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    async with db.transaction():
        ...
        await event_store.append(event)

    events = await event_store.get_since(0)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def append(self, event: Event) -> bool:
        """이벤트 저장 (dedup_key로 중복 제거)

        Args:
            event: 저장할 Event 인스턴스

        Returns:
            True: 저장 성공 (신규 이벤트)
            False: 중복으로 무시됨
        """
        payload_json = json.dumps(event.payload, ensure_ascii=False, default=str)

        cursor = await self.db.execute(
            """
            INSERT OR IGNORE INTO event_store (
                event_id, event_type, ts,
                correlation_id, command_id, source,
                entity_kind, entity_id,
                organization_id, currency,
                dedup_key, payload_json
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.event_id,
                event.event_type,
                event.ts.isoformat(),
                event.correlation_id,
                event.command_id,
                event.source,
                event.entity_kind,
                event.entity_id,
                event.scope.organization_id,
                event.scope.currency,
                event.dedup_key,
                payload_json,
            ),
        )

        # INSERT OR IGNORE는 중복 시 rowcount=0
        if cursor.rowcount == 0:
            logger.debug(
                "이벤트 중복 (무시됨)",
                extra={"dedup_key": event.dedup_key},
            )
            return False

        logger.debug(
            "이벤트 저장 완료",
            extra={"event_id": event.event_id, "event_type": event.event_type},
        )
        return True

    async def get_by_id(self, event_id: str) -> Event | None:
        """ID로 이벤트 조회"""
        row = await self.db.fetchone(
            f"SELECT {_SELECT_COLUMNS} FROM event_store WHERE event_id = ?",
            (event_id,),
        )

        if row is None:
            return None

        return self._row_to_event(row)

    async def get_since(
        self,
        last_seq: int,
        organization_id: str | None = None,
        limit: int = 1000,
    ) -> list[Event]:
        """특정 seq 이후 이벤트 조회

        Args:
            last_seq: 마지막으로 처리한 seq (이 값보다 큰 seq의 이벤트 조회)
            organization_id: 조직 필터 (None이면 전체)
            limit: 최대 조회 개수 (기본 1000)

        Returns:
            Event 리스트 (seq 순서로 정렬)
        """
        if organization_id is None:
            rows = await self.db.fetchall(
                f"""
                SELECT {_SELECT_COLUMNS} FROM event_store
                WHERE seq > ?
                ORDER BY seq ASC
                LIMIT ?
                """,
                (last_seq, limit),
            )
        else:
            rows = await self.db.fetchall(
                f"""
                SELECT {_SELECT_COLUMNS} FROM event_store
                WHERE seq > ? AND organization_id = ?
                ORDER BY seq ASC
                LIMIT ?
                """,
                (last_seq, organization_id, limit),
            )

        return [self._row_to_event(row) for row in rows]

    async def get_by_entity(
        self,
        entity_kind: str,
        entity_id: str,
        limit: int = 100,
    ) -> list[Event]:
        """엔티티별 이벤트 이력 조회 (seq 오름차순)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {_SELECT_COLUMNS} FROM event_store
            WHERE entity_kind = ? AND entity_id = ?
            ORDER BY seq ASC
            LIMIT ?
            """,
            (entity_kind, entity_id, limit),
        )

        return [self._row_to_event(row) for row in rows]

    async def get_by_command(self, command_id: str) -> list[Event]:
        """명령이 생성한 이벤트 조회"""
        rows = await self.db.fetchall(
            f"""
            SELECT {_SELECT_COLUMNS} FROM event_store
            WHERE command_id = ?
            ORDER BY seq ASC
            """,
            (command_id,),
        )

        return [self._row_to_event(row) for row in rows]

    async def get_by_type(
        self,
        event_type: str,
        limit: int = 100,
    ) -> list[Event]:
        """이벤트 타입별 조회 (최신순)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {_SELECT_COLUMNS} FROM event_store
            WHERE event_type = ?
            ORDER BY seq DESC
            LIMIT ?
            """,
            (event_type, limit),
        )

        return [self._row_to_event(row) for row in rows]

    async def count_all(self) -> int:
        """전체 이벤트 개수 조회"""
        row = await self.db.fetchone(
            "SELECT COUNT(*) as event_count FROM event_store"
        )
        return row[0] if row else 0

    async def get_last_seq(self) -> int:
        """마지막 seq 조회"""
        row = await self.db.fetchone(
            "SELECT MAX(seq) as max_seq FROM event_store"
        )
        return row[0] if row and row[0] else 0

    def _row_to_event(self, row: tuple[Any, ...]) -> Event:
        """DB 행을 Event 객체로 변환

        컬럼 순서:
        0: seq, 1: event_id, 2: event_type, 3: ts,
        4: correlation_id, 5: command_id, 6: source,
        7: entity_kind, 8: entity_id,
        9: organization_id, 10: currency,
        11: dedup_key, 12: payload_json
        """
        ts = row[3]
        if isinstance(ts, str):
            ts = datetime.fromisoformat(ts)

        payload = row[12]
        if isinstance(payload, str):
            payload = json.loads(payload)

        return Event(
            event_id=row[1],
            event_type=row[2],
            ts=ts,
            correlation_id=row[4],
            command_id=row[5],
            source=row[6],
            entity_kind=row[7],
            entity_id=row[8],
            scope=Scope(organization_id=row[9], currency=row[10]),
            dedup_key=row[11],
            payload=payload,
            seq=row[0],
        )
