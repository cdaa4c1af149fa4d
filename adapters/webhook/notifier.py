"""
Webhook 알림 서비스

Incoming Webhook(JSON POST)으로 Ledger 알림을 전송.
INotifier Protocol 준수. 메시지 렌더링/SMS 발송은 수신 측 책임.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

logger = logging.getLogger(__name__)


# 레벨별 색상 매핑 (attachment color)
LEVEL_COLOR = {
    "INFO": "#36A64F",
    "WARNING": "#FFA500",
    "ERROR": "#FF0000",
    "CRITICAL": "#8B0000",
}


class WebhookNotifier:
    """Webhook 알림 서비스

    INotifier Protocol 구현.

    사용 예시:
    ```python
    async with WebhookNotifier(webhook_url="https://hooks.example.com/...") as notifier:
        await notifier.send_contribution({
            "member_id": "mb-1", "amount": "50.00",
            "category": "Tithe", "date": "2026-03-01", "currency": "GHS",
        })
    ```
    """

    def __init__(
        self,
        webhook_url: str,
        username: str = "Ledger",
        timeout: float = 10.0,
    ):
        """
        Args:
            webhook_url: Incoming Webhook URL
            username: 메시지 발송자 이름
            timeout: HTTP 요청 타임아웃 (초)
        """
        if not webhook_url:
            raise ValueError("webhook_url은 필수입니다")

        self.webhook_url = webhook_url
        self.username = username
        self.timeout = timeout

        # httpx 비동기 클라이언트 (재사용)
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송

        Args:
            message: 알림 메시지
            level: 알림 레벨 (INFO, WARNING, ERROR, CRITICAL)
            extra: 추가 데이터 (attachment fields로 표시)

        Returns:
            전송 성공 여부
        """
        payload: dict[str, Any] = {
            "username": self.username,
            "attachments": [
                {
                    "color": LEVEL_COLOR.get(level, "#808080"),
                    "text": f"[{level}] {message}",
                    "footer": f"Ledger | {self._format_timestamp()}",
                }
            ],
        }

        if extra:
            payload["attachments"][0]["fields"] = [
                {"title": key, "value": str(value), "short": True}
                for key, value in extra.items()
            ]

        return await self._send_payload(payload)

    async def send_contribution(self, contribution: dict[str, Any]) -> bool:
        """회원 헌금 기록 알림 전송

        수신 측이 템플릿을 적용할 수 있도록 원본 필드를 event 키로 함께 전달.
        """
        payload: dict[str, Any] = {
            "username": self.username,
            "event": "ContributionRecorded",
            "data": dict(contribution),
            "attachments": [
                {
                    "color": LEVEL_COLOR["INFO"],
                    "text": (
                        f"Contribution recorded: {contribution.get('amount')} "
                        f"{contribution.get('currency')} ({contribution.get('category')})"
                    ),
                    "footer": f"Ledger | {self._format_timestamp()}",
                }
            ],
        }
        return await self._send_payload(payload)

    async def _send_payload(self, payload: dict[str, Any]) -> bool:
        """Webhook으로 페이로드 전송

        Returns:
            전송 성공 여부 (2xx)
        """
        try:
            client = await self._get_client()
            response = await client.post(self.webhook_url, json=payload)

            if response.is_success:
                logger.debug("Webhook 알림 전송 성공")
                return True

            logger.warning(
                "Webhook 알림 전송 실패: status=%s, body=%s",
                response.status_code,
                response.text,
            )
            return False

        except httpx.TimeoutException:
            logger.error("Webhook 알림 전송 타임아웃")
            return False
        except httpx.HTTPError as e:
            logger.error("Webhook 알림 전송 HTTP 에러: %s", e)
            return False

    def _format_timestamp(self) -> str:
        """현재 시간 (UTC)"""
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    # -------------------------------------------------------------------------
    # Context Manager 지원
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "WebhookNotifier":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
