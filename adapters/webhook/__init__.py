"""
Webhook 어댑터

Incoming Webhook을 통한 알림 전송.
INotifier Protocol 준수.
"""

from adapters.webhook.notifier import WebhookNotifier

__all__ = [
    "WebhookNotifier",
]
