"""
One-to-one conversations. Messages are persisted in the database and mirrored
to the realtime store so open chat screens update live.
"""

from __future__ import annotations

import logging
from typing import Optional

from nwu_connect.constants import PHOTO_MESSAGE_PREVIEW
from nwu_connect.db import DbClient
from nwu_connect.errors import ForbiddenError, InvalidRequestError, NotFoundError
from nwu_connect.push import PushGateway
from nwu_connect.realtime import SERVER_TIMESTAMP, RealtimeClient
from nwu_connect.records import ConversationRecord, MessageRecord
from nwu_connect.services.notifications import send_notification

logger = logging.getLogger(__name__)


def _participant_conversation(
    db: DbClient, conversation_id: str, uid: str
) -> ConversationRecord:
    conversation = db.get_conversation(conversation_id)
    if not conversation:
        raise NotFoundError("Conversation not found")
    if uid not in conversation.participants:
        raise ForbiddenError("Not a participant in this conversation")
    return conversation


def start_conversation(uid: str, target_id: str, *, db: DbClient) -> dict:
    if target_id == uid:
        raise InvalidRequestError("You cannot start a chat with yourself")
    conversation, created = db.get_or_create_conversation(uid, target_id)
    if created:
        logger.info("Conversation %s started by %s", conversation.id, uid)
    return conversation.as_dict()


def send_message(
    uid: str,
    target_id: str,
    *,
    content: str,
    type: str = "text",
    image_url: Optional[str] = None,
    db: DbClient,
    realtime: RealtimeClient,
    push: PushGateway,
) -> dict:
    if target_id == uid:
        raise InvalidRequestError("You cannot message yourself")
    if type == "image" and not image_url:
        raise InvalidRequestError("imageUrl is required for image messages")
    if type == "text" and not content.strip():
        raise InvalidRequestError("Message content is required")

    conversation, _ = db.get_or_create_conversation(uid, target_id)
    preview = PHOTO_MESSAGE_PREVIEW if type == "image" else content
    message = MessageRecord(
        conversation_id=conversation.id,
        sender_id=uid,
        content=content,
        type=type,
        image_url=image_url,
    )
    conversation.last_message = preview
    conversation.last_message_at = message.created_at
    db.save_conversation(conversation)
    db.save_message(message)

    try:
        realtime.set(
            f"chats/{conversation.id}/messages/{message.id}",
            {
                "id": message.id,
                "senderId": uid,
                "content": content,
                "type": type,
                "imageUrl": image_url,
                "status": message.status,
                "createdAt": SERVER_TIMESTAMP,
            },
        )
    except Exception:
        logger.exception("Realtime mirror failed for message %s", message.id)

    sender = db.get_profile(uid)
    send_notification(
        target_id,
        sender.name if sender and sender.name else "Someone",
        preview,
        {"type": "chat", "conversationId": conversation.id},
        db=db,
        push=push,
    )
    return message.as_dict()


def mark_read(
    uid: str, conversation_id: str, *, db: DbClient, realtime: RealtimeClient
) -> dict:
    _participant_conversation(db, conversation_id, uid)
    updated = db.mark_messages_read(conversation_id, uid)

    path = f"chats/{conversation_id}/messages"
    try:
        mirrored = realtime.get(path) or {}
        changes = {
            f"{key}/status": "seen"
            for key, value in mirrored.items()
            if isinstance(value, dict)
            and value.get("senderId") != uid
            and value.get("status") != "seen"
        }
        if changes:
            realtime.update(path, changes)
    except Exception:
        logger.exception("Realtime read receipts failed for %s", conversation_id)

    return {"success": True, "updated": updated}


def list_conversations(uid: str, *, db: DbClient) -> list[dict]:
    conversations = db.list_conversations(uid)
    others = [c.other_participant(uid) for c in conversations]
    profiles = db.get_profiles(o for o in others if o)
    results = []
    for conversation, other_id in zip(conversations, others):
        other = profiles.get(other_id) if other_id else None
        results.append(
            {
                "id": conversation.id,
                "lastMessage": conversation.last_message,
                "lastMessageAt": conversation.as_dict()["lastMessageAt"],
                "otherUser": {
                    "id": other_id,
                    "name": other.name if other else "Unknown User",
                    "photo": other.photo if other else "",
                },
            }
        )
    return results


def list_messages(
    uid: str, conversation_id: str, limit: int, *, db: DbClient
) -> list[dict]:
    _participant_conversation(db, conversation_id, uid)
    return [m.as_dict() for m in db.list_messages(conversation_id, limit=limit)]
