"""
Webhook 알림 서비스 테스트

httpx.MockTransport로 HTTP 요청을 가로채 검증.
"""

import json

import httpx
import pytest

from adapters.interfaces import INotifier
from adapters.webhook.notifier import WebhookNotifier

WEBHOOK_URL = "https://hooks.example.com/ledger"


def notifier_with(handler) -> WebhookNotifier:
    notifier = WebhookNotifier(WEBHOOK_URL, username="Treasury")
    notifier._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return notifier


class TestWebhookNotifier:
    """WebhookNotifier 테스트"""

    def test_requires_url(self) -> None:
        with pytest.raises(ValueError):
            WebhookNotifier("")

    def test_protocol(self) -> None:
        assert isinstance(WebhookNotifier(WEBHOOK_URL), INotifier)

    @pytest.mark.asyncio
    async def test_send_contribution(self) -> None:
        """헌금 알림 페이로드"""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text="ok")

        notifier = notifier_with(handler)
        sent = await notifier.send_contribution({
            "member_id": "mb-1",
            "amount": "50",
            "category": "Tithe",
            "date": "2024-03-03",
            "currency": "GHS",
        })
        await notifier.close()

        assert sent is True
        assert str(requests[0].url) == WEBHOOK_URL
        body = json.loads(requests[0].content)
        assert body["event"] == "ContributionRecorded"
        assert body["username"] == "Treasury"
        assert body["data"]["member_id"] == "mb-1"
        assert "50 GHS" in body["attachments"][0]["text"]

    @pytest.mark.asyncio
    async def test_send_with_fields(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(204)

        notifier = notifier_with(handler)
        assert await notifier.send("drift", level="WARNING", extra={"account": "acc-a"})
        await notifier.close()

        attachment = bodies[0]["attachments"][0]
        assert attachment["text"] == "[WARNING] drift"
        assert attachment["fields"][0] == {"title": "account", "value": "acc-a", "short": True}

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        notifier = notifier_with(lambda request: httpx.Response(500, text="down"))

        assert await notifier.send("x") is False
        await notifier.close()

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        notifier = notifier_with(handler)

        assert await notifier.send("x") is False
        await notifier.close()

    @pytest.mark.asyncio
    async def test_close_resets_client(self) -> None:
        notifier = notifier_with(lambda request: httpx.Response(200))

        await notifier.close()

        assert notifier._client is None
