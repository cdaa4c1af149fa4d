"""
계좌별 키 잠금 (Keyed Lock)

같은 계좌를 건드리는 명령은 잔액 조정을 직렬화하고,
서로 다른 계좌의 명령은 병렬로 진행할 수 있도록 계좌 ID마다 asyncio.Lock을 둠.
여러 키는 항상 정렬된 순서로 획득하여 교착을 방지.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

logger = logging.getLogger(__name__)


class KeyedLock:
    """키별 asyncio.Lock 관리자

    사용 중인 키의 Lock만 유지하고, 참조가 0이 되면 정리함.

    사용 예시:
    ```python
    locks = KeyedLock()
    async with locks.acquire(["acc-a", "acc-b"]):
        ...  # 두 계좌의 잔액 조정
    ```
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @asynccontextmanager
    async def acquire(self, keys: Iterable[str]) -> AsyncIterator[list[str]]:
        """여러 키를 정렬 순서로 획득

        Args:
            keys: 잠글 키 목록 (중복/None 무시)

        Yields:
            실제로 잠근 키 목록 (정렬됨)
        """
        ordered = sorted({key for key in keys if key})
        registered: list[str] = []
        acquired: list[asyncio.Lock] = []
        try:
            for key in ordered:
                lock = self._locks.setdefault(key, asyncio.Lock())
                self._refs[key] = self._refs.get(key, 0) + 1
                registered.append(key)
                await lock.acquire()
                acquired.append(lock)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in registered:
                self._refs[key] -= 1
                if self._refs[key] == 0:
                    del self._refs[key]
                    del self._locks[key]

    def is_locked(self, key: str) -> bool:
        """키가 현재 잠겨 있는지 확인"""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @property
    def active_keys(self) -> list[str]:
        """현재 참조 중인 키 목록"""
        return sorted(self._locks)
