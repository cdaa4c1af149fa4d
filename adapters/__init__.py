"""
어댑터 레이어

외부 서비스(DB, 비금융 엔티티 저장소, 알림)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import (
    IEntityStore,
    INotifier,
)

__all__ = [
    "IEntityStore",
    "INotifier",
]
