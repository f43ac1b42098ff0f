"""
Shared constants for the NWU Connect backend.
"""

from __future__ import annotations

DEPARTMENTS = (
    "CSE",
    "EEE",
    "ECE",
    "Civil Engineering",
    "Business Administration",
    "Law",
    "English",
    "Economics",
    "Sociology",
    "Development Studies",
    "Public Health",
)

# Used for department-scoped visibility when a user has no profile yet.
DEFAULT_DEPARTMENT = "General"

PRIVACY_LEVELS = ("public", "friends", "private")

PRIVACY_FIELDS = (
    "email",
    "studentId",
    "year",
    "section",
    "location",
    "interests",
    "department",
    "bio",
)

MAX_PROFILE_PHOTOS = 5

CANDIDATE_POOL_SIZE = 20
CANDIDATE_FALLBACK_THRESHOLD = 5

MESSAGE_PAGE_SIZE = 50
NOTIFICATION_PAGE_SIZE = 50
PHOTO_MESSAGE_PREVIEW = "Sent a photo"

PRESIGNED_URL_EXPIRY_SECONDS = 900
UPLOAD_FOLDERS = ("profiles", "chat")

PUSH_ANDROID_CHANNEL = "high_importance_channel"

MATCH_TITLE = "It's a Match! \U0001F389"
REQUEST_TITLE = "New Connection Request"


def default_privacy() -> dict[str, str]:
    return {field: "public" for field in PRIVACY_FIELDS}
