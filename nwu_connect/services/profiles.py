"""
Profile reads/writes and the privacy rules applied when one user views another.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from nwu_connect.constants import DEPARTMENTS, PRIVACY_FIELDS, PRIVACY_LEVELS
from nwu_connect.db import DbClient
from nwu_connect.errors import InvalidRequestError
from nwu_connect.records import ProfileRecord, UserRecord, now

logger = logging.getLogger(__name__)


def validate_department(department: str) -> None:
    if department not in DEPARTMENTS:
        raise InvalidRequestError(f"Unknown department: {department}")


def validate_privacy(privacy: dict[str, str]) -> None:
    for field_name, level in privacy.items():
        if field_name not in PRIVACY_FIELDS:
            raise InvalidRequestError(f"Unknown privacy field: {field_name}")
        if level not in PRIVACY_LEVELS:
            raise InvalidRequestError(f"Invalid privacy level for {field_name}: {level}")


def can_view(
    profile: ProfileRecord, field_name: str, viewer_id: str, is_friend: bool
) -> bool:
    if viewer_id == profile.user_id:
        return True
    level = profile.privacy_level(field_name)
    if level == "public":
        return True
    return level == "friends" and is_friend


def field_value(
    profile: ProfileRecord, field_name: str, user: Optional[UserRecord] = None
) -> Any:
    if field_name == "email":
        return user.email if user else None
    if field_name == "location":
        return profile.address
    if field_name == "interests":
        return list(profile.interests)
    return {
        "studentId": profile.student_id,
        "year": profile.year,
        "section": profile.section,
        "department": profile.department,
        "bio": profile.bio,
    }[field_name]


def public_card(profile: ProfileRecord) -> dict:
    """Discovery card: identity fields plus whatever the owner made public."""
    card = {
        "userId": profile.user_id,
        "name": profile.name,
        "photos": list(profile.photos),
        "photo": profile.photo,
        "coverPhoto": profile.cover_photo,
        "isOnline": profile.is_online,
    }
    for field_name in PRIVACY_FIELDS:
        if field_name == "email":
            continue
        if profile.privacy_level(field_name) == "public":
            card[field_name] = field_value(profile, field_name)
    return card


def get_profile(user_id: str, *, db: DbClient) -> Optional[dict]:
    profile = db.get_profile(user_id)
    return profile.as_dict() if profile else None


def upsert_profile(
    user_id: str,
    *,
    name: str,
    bio: str,
    department: str,
    interests: Optional[list[str]] = None,
    db: DbClient,
) -> dict:
    validate_department(department)
    profile = db.get_profile(user_id)
    if profile is None:
        profile = ProfileRecord(user_id=user_id, name=name, department=department)
        logger.info("Creating profile for %s", user_id)
    profile.name = name
    profile.bio = bio
    profile.department = department
    if interests is not None:
        profile.interests = list(interests)
    db.save_profile(profile)
    return profile.as_dict()


def set_presence(user_id: str, is_online: bool, *, db: DbClient) -> dict:
    profile = db.get_profile(user_id)
    if profile is None:
        user = db.get_user_by_uid(user_id)
        profile = ProfileRecord(
            user_id=user_id,
            name=user.name if user else "",
            department=user.department if user else "",
        )
    profile.is_online = is_online
    profile.last_seen = now()
    db.save_profile(profile)
    return {"isOnline": profile.is_online, "lastSeen": profile.as_dict()["lastSeen"]}
