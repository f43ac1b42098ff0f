"""
Record types shared by the database clients and the service layer.

Timestamps are epoch seconds. ``as_dict`` renders the camelCase JSON shape the
mobile client and admin console consume; ``to_document``/``from_document`` on
the nested types give the raw form stored in JSON columns.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from nwu_connect.constants import default_privacy


def now() -> float:
    return time.time()


def new_id() -> str:
    return uuid.uuid4().hex


def iso(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of user ids."""
    return ":".join(sorted((user_a, user_b)))


@dataclass
class VerificationInfo:
    id_card_url: Optional[str] = None
    selfie_url: Optional[str] = None
    submitted: bool = False
    rejection_reason: Optional[str] = None

    def to_document(self) -> dict:
        return {
            "idCardUrl": self.id_card_url,
            "selfieUrl": self.selfie_url,
            "submitted": self.submitted,
            "rejectionReason": self.rejection_reason,
        }

    as_dict = to_document

    @classmethod
    def from_document(cls, data: Optional[dict]) -> "VerificationInfo":
        data = data or {}
        return cls(
            id_card_url=data.get("idCardUrl"),
            selfie_url=data.get("selfieUrl"),
            submitted=bool(data.get("submitted", False)),
            rejection_reason=data.get("rejectionReason"),
        )


@dataclass
class UserRecord:
    firebase_uid: str
    email: str
    id: str = field(default_factory=new_id)
    status: str = "pending"
    role: str = "user"
    onboarding_completed: bool = False
    welcome_seen: bool = False
    name: str = ""
    department: str = ""
    bio: str = ""
    verification: VerificationInfo = field(default_factory=VerificationInfo)
    linkedin_url: str = ""
    facebook_url: str = ""
    notification_token: Optional[str] = None
    profile_image: str = ""
    created_at: float = field(default_factory=now)
    updated_at: float = field(default_factory=now)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin" or self.status == "admin"

    @property
    def is_banned(self) -> bool:
        return self.status == "banned"

    def summary(self) -> dict:
        """Compact form used when a user is embedded in another record."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "profileImage": self.profile_image,
        }

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "firebaseUid": self.firebase_uid,
            "email": self.email,
            "status": self.status,
            "role": self.role,
            "onboardingCompleted": self.onboarding_completed,
            "welcomeSeen": self.welcome_seen,
            "name": self.name,
            "department": self.department,
            "bio": self.bio,
            "verification": self.verification.as_dict(),
            "linkedinUrl": self.linkedin_url,
            "facebookUrl": self.facebook_url,
            "profileImage": self.profile_image,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass
class ProfileRecord:
    user_id: str
    name: str
    department: str
    bio: str = ""
    interests: list[str] = field(default_factory=list)
    photos: list[str] = field(default_factory=list)
    cover_photo: str = ""
    location: Optional[dict] = None
    friend_ids: list[str] = field(default_factory=list)
    student_id: str = ""
    year: str = ""
    section: str = ""
    linkedin_url: str = ""
    facebook_url: str = ""
    is_online: bool = False
    last_seen: float = field(default_factory=now)
    privacy: dict = field(default_factory=default_privacy)
    created_at: float = field(default_factory=now)
    updated_at: float = field(default_factory=now)

    @property
    def photo(self) -> str:
        return self.photos[0] if self.photos else ""

    @property
    def address(self) -> str:
        return (self.location or {}).get("address") or ""

    def privacy_level(self, field_name: str) -> str:
        return (self.privacy or {}).get(field_name) or "public"

    def as_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "name": self.name,
            "bio": self.bio,
            "interests": list(self.interests),
            "photos": list(self.photos),
            "coverPhoto": self.cover_photo,
            "location": self.location,
            "department": self.department,
            "friendIds": list(self.friend_ids),
            "studentId": self.student_id,
            "year": self.year,
            "section": self.section,
            "linkedinUrl": self.linkedin_url,
            "facebookUrl": self.facebook_url,
            "isOnline": self.is_online,
            "lastSeen": iso(self.last_seen),
            "privacy": dict(self.privacy or {}),
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass
class ReplyRecord:
    user_id: str
    text: str
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)

    def to_document(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "text": self.text,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, data: dict) -> "ReplyRecord":
        return cls(
            id=data["id"],
            user_id=data["userId"],
            text=data["text"],
            created_at=data["createdAt"],
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "text": self.text,
            "createdAt": iso(self.created_at),
        }


@dataclass
class CommentRecord:
    user_id: str
    text: str
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)
    replies: list[ReplyRecord] = field(default_factory=list)

    def to_document(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "text": self.text,
            "createdAt": self.created_at,
            "replies": [reply.to_document() for reply in self.replies],
        }

    @classmethod
    def from_document(cls, data: dict) -> "CommentRecord":
        return cls(
            id=data["id"],
            user_id=data["userId"],
            text=data["text"],
            created_at=data["createdAt"],
            replies=[ReplyRecord.from_document(r) for r in data.get("replies") or []],
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "text": self.text,
            "createdAt": iso(self.created_at),
            "replies": [reply.as_dict() for reply in self.replies],
        }


@dataclass
class EditRecord:
    content: str
    edited_at: float = field(default_factory=now)

    def to_document(self) -> dict:
        return {"content": self.content, "editedAt": self.edited_at}

    @classmethod
    def from_document(cls, data: dict) -> "EditRecord":
        return cls(content=data["content"], edited_at=data["editedAt"])

    def as_dict(self) -> dict:
        return {"content": self.content, "editedAt": iso(self.edited_at)}


@dataclass
class PostRecord:
    user_id: str
    visibility: str
    author_department: str
    content: str = ""
    image_urls: list[str] = field(default_factory=list)
    likes: list[str] = field(default_factory=list)
    comments: list[CommentRecord] = field(default_factory=list)
    is_archived: bool = False
    edit_history: list[EditRecord] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)
    updated_at: float = field(default_factory=now)

    def find_comment(self, comment_id: str) -> Optional[CommentRecord]:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        return None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "content": self.content,
            "imageUrls": list(self.image_urls),
            "visibility": self.visibility,
            "authorDepartment": self.author_department,
            "likes": list(self.likes),
            "likesCount": len(self.likes),
            "comments": [comment.as_dict() for comment in self.comments],
            "commentsCount": len(self.comments),
            "isArchived": self.is_archived,
            "editHistory": [edit.as_dict() for edit in self.edit_history],
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass
class SwipeRecord:
    swiper_id: str
    target_id: str
    action: str
    created_at: float = field(default_factory=now)
    updated_at: float = field(default_factory=now)

    def as_dict(self) -> dict:
        return {
            "swiperId": self.swiper_id,
            "targetId": self.target_id,
            "action": self.action,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass
class MatchRecord:
    users: list[str]
    conversation_id: Optional[str] = None
    last_message: Optional[str] = None
    last_message_time: Optional[float] = None
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)

    @property
    def pair_key(self) -> str:
        return pair_key(self.users[0], self.users[1])

    def other_user(self, user_id: str) -> Optional[str]:
        return next((u for u in self.users if u != user_id), None)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "users": list(self.users),
            "conversationId": self.conversation_id,
            "lastMessage": self.last_message,
            "lastMessageTime": iso(self.last_message_time),
            "createdAt": iso(self.created_at),
        }


@dataclass
class ConversationRecord:
    participants: list[str]
    last_message: str = ""
    last_message_at: float = field(default_factory=now)
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)

    @property
    def pair_key(self) -> str:
        return pair_key(self.participants[0], self.participants[1])

    def other_participant(self, user_id: str) -> Optional[str]:
        return next((p for p in self.participants if p != user_id), None)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "participants": list(self.participants),
            "lastMessage": self.last_message,
            "lastMessageAt": iso(self.last_message_at),
            "createdAt": iso(self.created_at),
        }


@dataclass
class MessageRecord:
    conversation_id: str
    sender_id: str
    content: str
    type: str = "text"
    image_url: Optional[str] = None
    status: str = "sent"
    read: bool = False
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "conversationId": self.conversation_id,
            "senderId": self.sender_id,
            "content": self.content,
            "type": self.type,
            "imageUrl": self.image_url,
            "status": self.status,
            "read": self.read,
            "createdAt": iso(self.created_at),
        }


@dataclass
class NotificationRecord:
    user_id: str
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)
    is_read: bool = False
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "body": self.body,
            "data": dict(self.data),
            "isRead": self.is_read,
            "createdAt": iso(self.created_at),
        }


@dataclass
class ReportRecord:
    reporter_id: str
    reported_user_id: str
    reason: str
    description: str = ""
    status: str = "open"
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)
    updated_at: float = field(default_factory=now)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "reporterId": self.reporter_id,
            "reportedUserId": self.reported_user_id,
            "reason": self.reason,
            "description": self.description,
            "status": self.status,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass
class AuditLogRecord:
    action: str
    details: str
    performed_by: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "details": self.details,
            "performedBy": self.performed_by,
            "metadata": dict(self.metadata),
            "createdAt": iso(self.created_at),
        }


@dataclass
class BroadcastRecord:
    title: str
    message: str
    performed_by: Optional[str] = None
    status: str = "queued"
    sent_count: int = 0
    id: str = field(default_factory=new_id)
    created_at: float = field(default_factory=now)
    completed_at: Optional[float] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "performedBy": self.performed_by,
            "status": self.status,
            "sentCount": self.sent_count,
            "createdAt": iso(self.created_at),
            "completedAt": iso(self.completed_at),
        }


@dataclass
class Viewer:
    """The requesting user's context for post visibility checks."""

    user_id: str
    department: str
    friend_ids: list[str] = field(default_factory=list)

    def can_see(self, post: PostRecord) -> bool:
        if post.is_archived:
            return False
        if post.user_id == self.user_id:
            return True
        if post.visibility == "public":
            return True
        if post.visibility == "department":
            return post.author_department == self.department
        if post.visibility == "friends":
            return post.user_id in self.friend_ids
        return False
