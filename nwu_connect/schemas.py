"""
Pydantic request/response schemas. Field names are snake_case in Python and
camelCase on the wire, matching the mobile client.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Users / profiles


class SyncUserRequest(CamelModel):
    email: Optional[str] = None


class UpdateUserProfileRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    department: str
    bio: Optional[str] = None
    student_id: Optional[str] = None
    year: Optional[str] = None
    section: Optional[str] = None
    linkedin_url: Optional[str] = None
    facebook_url: Optional[str] = None
    photo: Optional[str] = None
    cover_photo: Optional[str] = None
    privacy: Optional[dict[str, str]] = None


class VerificationRequest(CamelModel):
    id_card_url: str = Field(..., min_length=1)
    selfie_url: str = Field(..., min_length=1)


class DeviceTokenRequest(CamelModel):
    fcm_token: str = Field(..., min_length=1)


class PresenceRequest(CamelModel):
    is_online: bool


class UpsertProfileRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    bio: str = ""
    department: str
    interests: Optional[list[str]] = None


# Feed


class CreatePostRequest(CamelModel):
    content: str = Field(default="", max_length=5000)
    image_urls: list[str] = Field(default_factory=list)
    visibility: Literal["public", "friends", "department"] = "public"


class CommentRequest(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(..., min_length=1, max_length=2000)


class EditPostRequest(CamelModel):
    content: str = Field(..., max_length=5000)


# Connect / chat


class SwipeRequest(CamelModel):
    target_id: str = Field(..., min_length=1)
    action: Literal["like", "pass"]


class StartChatRequest(CamelModel):
    target_id: str = Field(..., min_length=1)


class SendMessageRequest(CamelModel):
    target_id: str = Field(..., min_length=1)
    content: str = Field(default="", max_length=5000)
    type: Literal["text", "image"] = "text"
    image_url: Optional[str] = None


# Reports / admin


class ReportRequest(CamelModel):
    reported_user_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)


class RejectVerificationRequest(CamelModel):
    reason: str = Field(..., min_length=1, max_length=500)


class BroadcastRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=120)
    message: str = Field(..., min_length=1, max_length=2000)


class BroadcastResponse(CamelModel):
    success: bool
    sent_to: str
    broadcast_id: str
    status: str


# Upload


class PresignedUrlRequest(CamelModel):
    mime_type: str = Field(..., min_length=1)
    folder: Literal["profiles", "chat"] = "profiles"


class PresignedUrlResponse(CamelModel):
    upload_url: str
    public_url: str
    key: str


class CountResponse(BaseModel):
    count: int
