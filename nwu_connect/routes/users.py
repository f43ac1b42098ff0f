"""
Account routes under /user.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from nwu_connect.auth import AuthUser
from nwu_connect.db import DbClient
from nwu_connect.dependencies import get_active_user, get_auth_user, get_db_client
from nwu_connect.schemas import (
    DeviceTokenRequest,
    PresenceRequest,
    SyncUserRequest,
    UpdateUserProfileRequest,
    VerificationRequest,
)
from nwu_connect.services import profiles, users

router = APIRouter(prefix="/user", tags=["user"])


# Banned users may still load themselves and sync, so the app can show the ban.
@router.get("/me")
def get_me(
    auth_user: AuthUser = Depends(get_auth_user),
    db: DbClient = Depends(get_db_client),
):
    return users.get_me(auth_user.uid, db=db)


@router.post("/sync")
def sync_user(
    payload: SyncUserRequest,
    auth_user: AuthUser = Depends(get_auth_user),
    db: DbClient = Depends(get_db_client),
):
    return users.sync_user(auth_user.uid, payload.email or auth_user.email, db=db)


@router.patch("/welcome")
def mark_welcome_seen(
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return users.mark_welcome_seen(auth_user.uid, db=db)


@router.patch("/profile")
def update_profile(
    payload: UpdateUserProfileRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return users.update_profile(auth_user.uid, payload, db=db)


@router.patch("/verification")
def submit_verification(
    payload: VerificationRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return users.submit_verification(
        auth_user.uid, payload.id_card_url, payload.selfie_url, db=db
    )


@router.put("/device-token")
def set_device_token(
    payload: DeviceTokenRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return users.set_device_token(auth_user.uid, payload.fcm_token, db=db)


@router.post("/presence")
def set_presence(
    payload: PresenceRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return profiles.set_presence(auth_user.uid, payload.is_online, db=db)


@router.get("/{user_id}")
def get_public_profile(
    user_id: str,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return users.get_public_profile(auth_user.uid, user_id, db=db)
