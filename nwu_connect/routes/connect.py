from __future__ import annotations

from fastapi import APIRouter, Depends

from nwu_connect.auth import AuthUser
from nwu_connect.config import Settings, get_settings
from nwu_connect.db import DbClient
from nwu_connect.dependencies import (
    get_active_user,
    get_db_client,
    get_push_gateway,
    get_realtime_client,
)
from nwu_connect.push import PushGateway
from nwu_connect.realtime import RealtimeClient
from nwu_connect.schemas import SwipeRequest
from nwu_connect.services import connect

router = APIRouter(prefix="/connect", tags=["connect"])


@router.get("/candidates")
def get_candidates(
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    return connect.get_candidates(
        auth_user.uid, db=db, pool_size=settings.candidate_pool_size
    )


@router.post("/swipe")
def swipe(
    payload: SwipeRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
    realtime: RealtimeClient = Depends(get_realtime_client),
    push: PushGateway = Depends(get_push_gateway),
):
    return connect.swipe(
        auth_user.uid,
        payload.target_id,
        payload.action,
        db=db,
        realtime=realtime,
        push=push,
    )


@router.get("/matches")
def list_matches(
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return connect.list_matches(auth_user.uid, db=db)
