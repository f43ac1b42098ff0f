from __future__ import annotations

from fastapi import APIRouter, Depends

from nwu_connect.auth import AuthUser
from nwu_connect.db import DbClient
from nwu_connect.dependencies import get_active_user, get_db_client
from nwu_connect.schemas import CountResponse
from nwu_connect.services import notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return notifications.list_notifications(auth_user.uid, db=db)


@router.get("/unread-count", response_model=CountResponse)
def unread_count(
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return CountResponse(count=notifications.unread_count(auth_user.uid, db=db))


@router.put("/read-all")
def mark_all_read(
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return notifications.mark_all_read(auth_user.uid, db=db)


@router.put("/{notification_id}/read")
def mark_read(
    notification_id: str,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return notifications.mark_read(auth_user.uid, notification_id, db=db)
