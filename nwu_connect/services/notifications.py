"""
Notification persistence and push delivery.
"""

from __future__ import annotations

import logging
from typing import Optional

from nwu_connect.constants import NOTIFICATION_PAGE_SIZE
from nwu_connect.db import DbClient
from nwu_connect.errors import NotFoundError
from nwu_connect.push import PushGateway
from nwu_connect.records import NotificationRecord

logger = logging.getLogger(__name__)


def send_notification(
    user_id: str,
    title: str,
    body: str,
    data: Optional[dict] = None,
    *,
    db: DbClient,
    push: PushGateway,
) -> Optional[NotificationRecord]:
    """
    Store a notification for ``user_id`` (a firebase uid) and push it to the
    user's device. Neither step raises: failures are logged and the caller's
    request carries on.
    """
    payload = {key: str(value) for key, value in (data or {}).items()}
    notification: Optional[NotificationRecord] = NotificationRecord(
        user_id=user_id, title=title, body=body, data=payload
    )
    try:
        db.save_notification(notification)
    except Exception:
        logger.exception("Failed to persist notification for %s", user_id)
        notification = None

    user = db.get_user_by_uid(user_id)
    token = user.notification_token if user else None
    if not token:
        logger.warning("No push token for user %s; skipping push", user_id)
        return notification

    try:
        message_id = push.send(token, title, body, payload)
        logger.info("Push sent to %s (%s)", user_id, message_id)
    except Exception:
        logger.exception("Push delivery failed for %s", user_id)
    return notification


def list_notifications(user_id: str, *, db: DbClient) -> list[dict]:
    return [
        n.as_dict()
        for n in db.list_notifications(user_id, limit=NOTIFICATION_PAGE_SIZE)
    ]


def unread_count(user_id: str, *, db: DbClient) -> int:
    return db.count_unread_notifications(user_id)


def mark_read(user_id: str, notification_id: str, *, db: DbClient) -> dict:
    notification = db.get_notification(notification_id)
    if not notification or notification.user_id != user_id:
        raise NotFoundError("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        db.save_notification(notification)
    return notification.as_dict()


def mark_all_read(user_id: str, *, db: DbClient) -> dict:
    return {"modifiedCount": db.mark_all_notifications_read(user_id)}
