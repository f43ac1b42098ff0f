from __future__ import annotations

from fastapi import APIRouter, Depends

from nwu_connect.auth import AuthUser
from nwu_connect.db import DbClient
from nwu_connect.dependencies import get_active_user, get_db_client
from nwu_connect.schemas import UpsertProfileRequest
from nwu_connect.services import profiles

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
def get_profile(
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return profiles.get_profile(auth_user.uid, db=db)


@router.put("")
def upsert_profile(
    payload: UpsertProfileRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return profiles.upsert_profile(
        auth_user.uid,
        name=payload.name,
        bio=payload.bio,
        department=payload.department,
        interests=payload.interests,
        db=db,
    )
