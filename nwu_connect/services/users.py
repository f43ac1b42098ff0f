"""
User account operations: sync from the identity provider, onboarding, verification.
"""

from __future__ import annotations

import logging
from typing import Optional

from nwu_connect.constants import MAX_PROFILE_PHOTOS, PRIVACY_FIELDS
from nwu_connect.db import DbClient
from nwu_connect.errors import InvalidRequestError, NotFoundError
from nwu_connect.records import ProfileRecord, UserRecord, iso
from nwu_connect.schemas import UpdateUserProfileRequest
from nwu_connect.services.profiles import (
    can_view,
    field_value,
    validate_department,
    validate_privacy,
)

logger = logging.getLogger(__name__)


def _require_user(db: DbClient, uid: str) -> UserRecord:
    user = db.get_user_by_uid(uid)
    if not user:
        raise NotFoundError("User not found")
    return user


def get_me(uid: str, *, db: DbClient) -> dict:
    user = _require_user(db, uid)
    profile = db.get_profile(uid)
    data = user.as_dict()
    if profile is None:
        data.update(
            photoUrl="",
            studentId="",
            year="",
            section="",
            coverPhoto="",
            friendIds=[],
        )
        return data
    data.update(
        name=profile.name or user.name,
        photoUrl=profile.photo,
        department=profile.department or user.department,
        bio=profile.bio,
        studentId=profile.student_id,
        year=profile.year,
        section=profile.section,
        coverPhoto=profile.cover_photo,
        friendIds=list(profile.friend_ids),
    )
    return data


def get_public_profile(viewer_uid: str, target_uid: str, *, db: DbClient) -> dict:
    """Another user's profile with private fields removed for this viewer."""
    target = db.get_user_by_uid(target_uid)
    if not target:
        raise NotFoundError("User not found")
    profile = db.get_profile(target_uid) or ProfileRecord(
        user_id=target_uid, name="", department=""
    )

    is_self = viewer_uid == target_uid
    is_friend = viewer_uid in profile.friend_ids
    if is_friend:
        connection_status = "friend"
    else:
        swipe = db.get_swipe(viewer_uid, target_uid)
        connection_status = "pending" if swipe and swipe.action == "like" else "none"

    data = {
        "userId": target_uid,
        "name": profile.name or "User",
        "photo": profile.photo,
        "coverPhoto": profile.cover_photo,
        "postsCount": db.count_user_posts(target_uid),
        "friendsCount": len(profile.friend_ids),
        "isVerified": target.status in ("approved", "admin"),
        "status": target.status,
        "isFriend": is_friend,
        "isSelf": is_self,
        "connectionStatus": connection_status,
        "linkedinUrl": profile.linkedin_url or target.linkedin_url,
        "facebookUrl": profile.facebook_url or target.facebook_url,
        "joinedAt": iso(target.created_at),
    }
    for field_name in PRIVACY_FIELDS:
        if can_view(profile, field_name, viewer_uid, is_friend):
            data[field_name] = field_value(profile, field_name, target)
    return data


def sync_user(uid: str, email: Optional[str], *, db: DbClient) -> dict:
    """Create the account on first sign-in; keep the email current afterwards."""
    if not email:
        raise InvalidRequestError("Email is required")
    user = db.get_user_by_uid(uid)
    if user is None:
        user = db.save_user(UserRecord(firebase_uid=uid, email=email))
        logger.info("Created user %s for %s", user.id, uid)
    elif user.email != email:
        user.email = email
        db.save_user(user)
    return user.as_dict()


def mark_welcome_seen(uid: str, *, db: DbClient) -> dict:
    user = _require_user(db, uid)
    user.welcome_seen = True
    db.save_user(user)
    return user.as_dict()


def update_profile(uid: str, payload: UpdateUserProfileRequest, *, db: DbClient) -> dict:
    """Onboarding/profile edit: writes the account and the profile together."""
    validate_department(payload.department)
    if payload.privacy:
        validate_privacy(payload.privacy)
    user = _require_user(db, uid)

    profile = db.get_profile(uid) or ProfileRecord(
        user_id=uid, name=payload.name, department=payload.department
    )
    profile.name = payload.name
    profile.department = payload.department
    profile.bio = payload.bio or ""
    profile.student_id = payload.student_id or ""
    profile.year = payload.year or ""
    profile.section = payload.section or ""
    profile.linkedin_url = payload.linkedin_url or ""
    profile.facebook_url = payload.facebook_url or ""
    if payload.photo and payload.photo not in profile.photos:
        profile.photos = [payload.photo, *profile.photos][:MAX_PROFILE_PHOTOS]
    if payload.cover_photo is not None:
        profile.cover_photo = payload.cover_photo
    if payload.privacy:
        profile.privacy = {**profile.privacy, **payload.privacy}
    db.save_profile(profile)

    user.name = payload.name
    user.department = payload.department
    user.bio = profile.bio
    user.linkedin_url = profile.linkedin_url
    user.facebook_url = profile.facebook_url
    user.onboarding_completed = True
    if payload.photo:
        user.profile_image = payload.photo
    db.save_user(user)
    return {"user": user.as_dict(), "profile": profile.as_dict()}


def submit_verification(
    uid: str, id_card_url: str, selfie_url: str, *, db: DbClient
) -> dict:
    user = _require_user(db, uid)
    user.verification.id_card_url = id_card_url
    user.verification.selfie_url = selfie_url
    user.verification.submitted = True
    user.verification.rejection_reason = None
    db.save_user(user)
    logger.info("Verification submitted by %s", user.id)
    return user.as_dict()


def set_device_token(uid: str, token: str, *, db: DbClient) -> dict:
    user = _require_user(db, uid)
    user.notification_token = token
    db.save_user(user)
    return {"success": True}
