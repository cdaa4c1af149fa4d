"""
Ledger 알림 구독자

커밋된 이벤트 중 ContributionRecorded를 알림 협력자(INotifier)로 전달.
회원 추적(track_members)이 켜진 수입 카테고리의 헌금만 전달함.
알림은 best-effort: 실패해도 이미 커밋된 재무 명령에는 영향 없음.
"""

import logging

from adapters.interfaces import INotifier
from core.domain.events import Event, EventTypes

logger = logging.getLogger(__name__)


class ContributionNotifier:
    """회원 헌금 알림 구독자

    LedgerService.subscribe()로 등록.

    Args:
        notifier: 알림 전송 어댑터 (Webhook, Mock 등)
    """

    def __init__(self, notifier: INotifier):
        self.notifier = notifier
        self._sent_count = 0
        self._failed_count = 0
        self._skipped_count = 0

    async def __call__(self, event: Event) -> None:
        if event.event_type != EventTypes.CONTRIBUTION_RECORDED:
            return

        if not event.payload.get("track_members", False):
            self._skipped_count += 1
            logger.debug(
                f"회원 추적하지 않는 카테고리, 알림 생략: {event.payload.get('category')}",
                extra={"event_id": event.event_id},
            )
            return

        try:
            sent = await self.notifier.send_contribution(dict(event.payload))
        except Exception as e:
            self._failed_count += 1
            logger.warning(
                f"헌금 알림 전송 실패: {e}",
                extra={"event_id": event.event_id, "entity_id": event.entity_id},
            )
            return

        if sent:
            self._sent_count += 1
        else:
            self._failed_count += 1
            logger.warning(
                "헌금 알림 전송 거부됨",
                extra={"event_id": event.event_id, "entity_id": event.entity_id},
            )

    def get_stats(self) -> dict[str, int]:
        """통계 반환"""
        return {
            "sent_count": self._sent_count,
            "failed_count": self._failed_count,
            "skipped_count": self._skipped_count,
        }
