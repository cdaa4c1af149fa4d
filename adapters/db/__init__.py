"""
데이터베이스 어댑터

SQLite WAL 모드 연결 관리 및 비금융 엔티티 저장소.
"""

from adapters.db.entity_store import SQLiteEntityStore
from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    create_connection,
    get_db_path,
    init_schema,
)

__all__ = [
    "SQLiteAdapter",
    "SQLiteEntityStore",
    "get_db_path",
    "create_connection",
    "init_schema",
]
