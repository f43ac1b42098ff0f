"""
Chat routes under /chat.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from nwu_connect.auth import AuthUser
from nwu_connect.constants import MESSAGE_PAGE_SIZE
from nwu_connect.db import DbClient
from nwu_connect.dependencies import (
    get_active_user,
    get_db_client,
    get_push_gateway,
    get_realtime_client,
)
from nwu_connect.push import PushGateway
from nwu_connect.realtime import RealtimeClient
from nwu_connect.schemas import SendMessageRequest, StartChatRequest
from nwu_connect.services import chat

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/start")
def start_conversation(
    payload: StartChatRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return chat.start_conversation(auth_user.uid, payload.target_id, db=db)


@router.post("/send")
def send_message(
    payload: SendMessageRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
    realtime: RealtimeClient = Depends(get_realtime_client),
    push: PushGateway = Depends(get_push_gateway),
):
    return chat.send_message(
        auth_user.uid,
        payload.target_id,
        content=payload.content,
        type=payload.type,
        image_url=payload.image_url,
        db=db,
        realtime=realtime,
        push=push,
    )


@router.post("/read/{conversation_id}")
def mark_read(
    conversation_id: str,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
    realtime: RealtimeClient = Depends(get_realtime_client),
):
    return chat.mark_read(auth_user.uid, conversation_id, db=db, realtime=realtime)


@router.get("/conversations")
def list_conversations(
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return chat.list_conversations(auth_user.uid, db=db)


@router.get("/messages/{conversation_id}")
def list_messages(
    conversation_id: str,
    limit: int = Query(MESSAGE_PAGE_SIZE, ge=1, le=200),
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return chat.list_messages(auth_user.uid, conversation_id, limit, db=db)
