"""
Push notification gateway.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import firebase_admin
from firebase_admin import messaging

from nwu_connect.constants import PUSH_ANDROID_CHANNEL


class PushGateway(Protocol):
    def send(self, token: str, title: str, body: str, data: dict[str, str]) -> str:
        """Deliver one push and return the gateway's message id."""
        ...


@dataclass
class SentPush:
    token: str
    title: str
    body: str
    data: dict[str, str]


@dataclass
class InMemoryPushGateway:
    """Records pushes instead of sending them; set ``fail`` to simulate outages."""

    sent: list[SentPush] = field(default_factory=list)
    fail: bool = False

    def send(self, token: str, title: str, body: str, data: dict[str, str]) -> str:
        if self.fail:
            raise RuntimeError("push gateway unavailable")
        self.sent.append(SentPush(token=token, title=title, body=body, data=dict(data)))
        return f"in-memory-{len(self.sent)}"


class FirebasePushGateway:
    def __init__(self, app: firebase_admin.App):
        self.app = app

    def send(self, token: str, title: str, body: str, data: dict[str, str]) -> str:
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data=data,
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    channel_id=PUSH_ANDROID_CHANNEL
                ),
            ),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(aps=messaging.Aps(sound="default"))
            ),
        )
        return messaging.send(message, app=self.app)
