"""
Database abstraction and an in-memory implementation for development and tests.

The SQLAlchemy-backed client lives in ``nwu_connect.db_sql``.
"""

from __future__ import annotations

import copy
import random
from typing import Dict, Iterable, Optional, Protocol

from nwu_connect.errors import ConflictError
from nwu_connect.records import (
    AuditLogRecord,
    BroadcastRecord,
    CommentRecord,
    ConversationRecord,
    EditRecord,
    MatchRecord,
    MessageRecord,
    NotificationRecord,
    PostRecord,
    ProfileRecord,
    ReplyRecord,
    ReportRecord,
    SwipeRecord,
    UserRecord,
    Viewer,
    now,
    pair_key,
)


class DbClient(Protocol):
    """Interface for database access."""

    # Users
    def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    def get_user_by_uid(self, firebase_uid: str) -> Optional[UserRecord]:
        ...

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    def save_user(self, user: UserRecord) -> UserRecord:
        ...

    def list_users(
        self, limit: Optional[int] = None, skip: int = 0
    ) -> list[UserRecord]:
        ...

    def count_users(
        self,
        *,
        status: Optional[str] = None,
        verification_submitted: Optional[bool] = None,
    ) -> int:
        ...

    def list_pending_verifications(self) -> list[UserRecord]:
        ...

    def list_uids_with_status(self, status: str) -> list[str]:
        ...

    # Profiles
    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        ...

    def get_profiles(self, user_ids: Iterable[str]) -> dict[str, ProfileRecord]:
        ...

    def save_profile(self, profile: ProfileRecord) -> ProfileRecord:
        ...

    def add_friend(self, user_id: str, friend_id: str) -> bool:
        ...

    def sample_profiles(
        self, exclude_ids: Iterable[str], size: int
    ) -> list[ProfileRecord]:
        ...

    def count_online_profiles(self) -> int:
        ...

    # Posts
    def save_post(self, post: PostRecord) -> PostRecord:
        ...

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        ...

    def delete_post(self, post_id: str) -> bool:
        ...

    def sample_visible_posts(self, viewer: Viewer, size: int) -> list[PostRecord]:
        ...

    def list_user_posts(
        self, author_id: str, viewer: Viewer, limit: int = 20, offset: int = 0
    ) -> list[PostRecord]:
        ...

    def count_user_posts(self, author_id: str) -> int:
        ...

    def append_comment(
        self, post_id: str, comment: CommentRecord
    ) -> Optional[PostRecord]:
        ...

    def append_reply(
        self, post_id: str, comment_id: str, reply: ReplyRecord
    ) -> Optional[PostRecord]:
        ...

    def toggle_like(self, post_id: str, user_id: str) -> Optional[PostRecord]:
        ...

    def toggle_archived(self, post_id: str, owner_id: str) -> Optional[PostRecord]:
        ...

    def append_edit(
        self, post_id: str, owner_id: str, content: str
    ) -> Optional[PostRecord]:
        ...

    # Swipes and matches
    def upsert_swipe(self, swiper_id: str, target_id: str, action: str) -> SwipeRecord:
        ...

    def get_swipe(self, swiper_id: str, target_id: str) -> Optional[SwipeRecord]:
        ...

    def list_swiped_ids(
        self, swiper_id: str, action: Optional[str] = None
    ) -> list[str]:
        ...

    def get_or_create_match(
        self, user_a: str, user_b: str, conversation_id: Optional[str] = None
    ) -> tuple[MatchRecord, bool]:
        ...

    def list_matches(self, user_id: str) -> list[MatchRecord]:
        ...

    # Conversations and messages
    def get_or_create_conversation(
        self, user_a: str, user_b: str
    ) -> tuple[ConversationRecord, bool]:
        ...

    def get_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        ...

    def save_conversation(self, conversation: ConversationRecord) -> ConversationRecord:
        ...

    def list_conversations(self, user_id: str) -> list[ConversationRecord]:
        ...

    def save_message(self, message: MessageRecord) -> MessageRecord:
        ...

    def list_messages(self, conversation_id: str, limit: int = 50) -> list[MessageRecord]:
        ...

    def mark_messages_read(self, conversation_id: str, reader_id: str) -> int:
        ...

    # Notifications
    def save_notification(self, notification: NotificationRecord) -> NotificationRecord:
        ...

    def get_notification(self, notification_id: str) -> Optional[NotificationRecord]:
        ...

    def list_notifications(self, user_id: str, limit: int = 50) -> list[NotificationRecord]:
        ...

    def count_unread_notifications(self, user_id: str) -> int:
        ...

    def mark_all_notifications_read(self, user_id: str) -> int:
        ...

    # Moderation
    def save_report(self, report: ReportRecord) -> ReportRecord:
        ...

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        ...

    def list_reports(self) -> list[ReportRecord]:
        ...

    def count_reports(self, status: Optional[str] = None) -> int:
        ...

    def save_audit_log(self, entry: AuditLogRecord) -> AuditLogRecord:
        ...

    def list_audit_logs(self, limit: int = 100) -> list[AuditLogRecord]:
        ...

    def save_broadcast(self, broadcast: BroadcastRecord) -> BroadcastRecord:
        ...

    def get_broadcast(self, broadcast_id: str) -> Optional[BroadcastRecord]:
        ...


def _newest_first(records, key="created_at"):
    return sorted(records, key=lambda r: getattr(r, key), reverse=True)


class InMemoryDbClient:
    """Simple in-memory database for development and tests.

    Reads and writes go through deep copies so callers never mutate stored
    state without saving it, the same as with a real database.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.users: Dict[str, UserRecord] = {}
        self.profiles: Dict[str, ProfileRecord] = {}
        self.posts: Dict[str, PostRecord] = {}
        self.swipes: Dict[tuple[str, str], SwipeRecord] = {}
        self.matches: Dict[str, MatchRecord] = {}
        self.conversations: Dict[str, ConversationRecord] = {}
        self.messages: Dict[str, MessageRecord] = {}
        self.notifications: Dict[str, NotificationRecord] = {}
        self.reports: Dict[str, ReportRecord] = {}
        self.audit_logs: Dict[str, AuditLogRecord] = {}
        self.broadcasts: Dict[str, BroadcastRecord] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        for table in (
            self.users,
            self.profiles,
            self.posts,
            self.swipes,
            self.matches,
            self.conversations,
            self.messages,
            self.notifications,
            self.reports,
            self.audit_logs,
            self.broadcasts,
        ):
            table.clear()

    @staticmethod
    def _copy(record):
        return copy.deepcopy(record) if record is not None else None

    # Users

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self._copy(self.users.get(user_id))

    def get_user_by_uid(self, firebase_uid: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.firebase_uid == firebase_uid:
                return self._copy(user)
        return None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.email == email:
                return self._copy(user)
        return None

    def save_user(self, user: UserRecord) -> UserRecord:
        for existing in self.users.values():
            if existing.id == user.id:
                continue
            if existing.firebase_uid == user.firebase_uid:
                raise ConflictError("User already exists")
            if existing.email == user.email:
                raise ConflictError("Email already in use")
        user.updated_at = now()
        self.users[user.id] = self._copy(user)
        return user

    def list_users(
        self, limit: Optional[int] = None, skip: int = 0
    ) -> list[UserRecord]:
        users = _newest_first(self.users.values())[skip:]
        if limit is not None:
            users = users[:limit]
        return [self._copy(u) for u in users]

    def count_users(
        self,
        *,
        status: Optional[str] = None,
        verification_submitted: Optional[bool] = None,
    ) -> int:
        count = 0
        for user in self.users.values():
            if status is not None and user.status != status:
                continue
            if (
                verification_submitted is not None
                and user.verification.submitted != verification_submitted
            ):
                continue
            count += 1
        return count

    def list_pending_verifications(self) -> list[UserRecord]:
        pending = [
            u
            for u in self.users.values()
            if u.status == "pending" and u.verification.submitted
        ]
        return [self._copy(u) for u in _newest_first(pending)]

    def list_uids_with_status(self, status: str) -> list[str]:
        return [u.firebase_uid for u in self.users.values() if u.status == status]

    # Profiles

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        return self._copy(self.profiles.get(user_id))

    def get_profiles(self, user_ids: Iterable[str]) -> dict[str, ProfileRecord]:
        return {
            uid: self._copy(self.profiles[uid])
            for uid in set(user_ids)
            if uid in self.profiles
        }

    def save_profile(self, profile: ProfileRecord) -> ProfileRecord:
        profile.updated_at = now()
        self.profiles[profile.user_id] = self._copy(profile)
        return profile

    def add_friend(self, user_id: str, friend_id: str) -> bool:
        profile = self.profiles.get(user_id)
        if not profile:
            return False
        if friend_id not in profile.friend_ids:
            profile.friend_ids.append(friend_id)
            profile.updated_at = now()
        return True

    def sample_profiles(
        self, exclude_ids: Iterable[str], size: int
    ) -> list[ProfileRecord]:
        excluded = set(exclude_ids)
        pool = [p for uid, p in self.profiles.items() if uid not in excluded]
        picked = self.rng.sample(pool, min(size, len(pool)))
        return [self._copy(p) for p in picked]

    def count_online_profiles(self) -> int:
        return sum(1 for p in self.profiles.values() if p.is_online)

    # Posts

    def save_post(self, post: PostRecord) -> PostRecord:
        post.updated_at = now()
        self.posts[post.id] = self._copy(post)
        return post

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        return self._copy(self.posts.get(post_id))

    def delete_post(self, post_id: str) -> bool:
        return self.posts.pop(post_id, None) is not None

    def sample_visible_posts(self, viewer: Viewer, size: int) -> list[PostRecord]:
        pool = [p for p in self.posts.values() if viewer.can_see(p)]
        picked = self.rng.sample(pool, min(size, len(pool)))
        return [self._copy(p) for p in picked]

    def list_user_posts(
        self, author_id: str, viewer: Viewer, limit: int = 20, offset: int = 0
    ) -> list[PostRecord]:
        posts = [
            p
            for p in self.posts.values()
            if p.user_id == author_id and viewer.can_see(p)
        ]
        return [self._copy(p) for p in _newest_first(posts)[offset : offset + limit]]

    def count_user_posts(self, author_id: str) -> int:
        return sum(1 for p in self.posts.values() if p.user_id == author_id)

    def append_comment(
        self, post_id: str, comment: CommentRecord
    ) -> Optional[PostRecord]:
        post = self.posts.get(post_id)
        if not post:
            return None
        post.comments.append(self._copy(comment))
        post.updated_at = now()
        return self._copy(post)

    def append_reply(
        self, post_id: str, comment_id: str, reply: ReplyRecord
    ) -> Optional[PostRecord]:
        post = self.posts.get(post_id)
        if not post:
            return None
        comment = post.find_comment(comment_id)
        if not comment:
            return None
        comment.replies.append(self._copy(reply))
        post.updated_at = now()
        return self._copy(post)

    def toggle_like(self, post_id: str, user_id: str) -> Optional[PostRecord]:
        post = self.posts.get(post_id)
        if not post:
            return None
        if user_id in post.likes:
            post.likes.remove(user_id)
        else:
            post.likes.append(user_id)
        post.updated_at = now()
        return self._copy(post)

    def toggle_archived(self, post_id: str, owner_id: str) -> Optional[PostRecord]:
        post = self.posts.get(post_id)
        if not post or post.user_id != owner_id:
            return None
        post.is_archived = not post.is_archived
        post.updated_at = now()
        return self._copy(post)

    def append_edit(
        self, post_id: str, owner_id: str, content: str
    ) -> Optional[PostRecord]:
        post = self.posts.get(post_id)
        if not post or post.user_id != owner_id:
            return None
        post.edit_history.append(EditRecord(content=post.content, edited_at=now()))
        post.content = content
        post.updated_at = now()
        return self._copy(post)

    # Swipes and matches

    def upsert_swipe(self, swiper_id: str, target_id: str, action: str) -> SwipeRecord:
        key = (swiper_id, target_id)
        swipe = self.swipes.get(key)
        if swipe:
            swipe.action = action
            swipe.updated_at = now()
        else:
            swipe = SwipeRecord(swiper_id=swiper_id, target_id=target_id, action=action)
            self.swipes[key] = swipe
        return self._copy(swipe)

    def get_swipe(self, swiper_id: str, target_id: str) -> Optional[SwipeRecord]:
        return self._copy(self.swipes.get((swiper_id, target_id)))

    def list_swiped_ids(
        self, swiper_id: str, action: Optional[str] = None
    ) -> list[str]:
        return [
            s.target_id
            for s in self.swipes.values()
            if s.swiper_id == swiper_id and (action is None or s.action == action)
        ]

    def get_or_create_match(
        self, user_a: str, user_b: str, conversation_id: Optional[str] = None
    ) -> tuple[MatchRecord, bool]:
        key = pair_key(user_a, user_b)
        for match in self.matches.values():
            if match.pair_key == key:
                return self._copy(match), False
        match = MatchRecord(users=[user_a, user_b], conversation_id=conversation_id)
        self.matches[match.id] = match
        return self._copy(match), True

    def list_matches(self, user_id: str) -> list[MatchRecord]:
        matches = [m for m in self.matches.values() if user_id in m.users]
        return [self._copy(m) for m in _newest_first(matches)]

    # Conversations and messages

    def get_or_create_conversation(
        self, user_a: str, user_b: str
    ) -> tuple[ConversationRecord, bool]:
        key = pair_key(user_a, user_b)
        for conversation in self.conversations.values():
            if conversation.pair_key == key:
                return self._copy(conversation), False
        conversation = ConversationRecord(participants=[user_a, user_b])
        self.conversations[conversation.id] = conversation
        return self._copy(conversation), True

    def get_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        return self._copy(self.conversations.get(conversation_id))

    def save_conversation(self, conversation: ConversationRecord) -> ConversationRecord:
        self.conversations[conversation.id] = self._copy(conversation)
        return conversation

    def list_conversations(self, user_id: str) -> list[ConversationRecord]:
        conversations = [
            c for c in self.conversations.values() if user_id in c.participants
        ]
        return [
            self._copy(c) for c in _newest_first(conversations, key="last_message_at")
        ]

    def save_message(self, message: MessageRecord) -> MessageRecord:
        self.messages[message.id] = self._copy(message)
        return message

    def list_messages(self, conversation_id: str, limit: int = 50) -> list[MessageRecord]:
        messages = sorted(
            (m for m in self.messages.values() if m.conversation_id == conversation_id),
            key=lambda m: m.created_at,
        )
        return [self._copy(m) for m in messages[:limit]]

    def mark_messages_read(self, conversation_id: str, reader_id: str) -> int:
        updated = 0
        for message in self.messages.values():
            if (
                message.conversation_id == conversation_id
                and message.sender_id != reader_id
                and not message.read
            ):
                message.read = True
                message.status = "seen"
                updated += 1
        return updated

    # Notifications

    def save_notification(self, notification: NotificationRecord) -> NotificationRecord:
        self.notifications[notification.id] = self._copy(notification)
        return notification

    def get_notification(self, notification_id: str) -> Optional[NotificationRecord]:
        return self._copy(self.notifications.get(notification_id))

    def list_notifications(self, user_id: str, limit: int = 50) -> list[NotificationRecord]:
        items = [n for n in self.notifications.values() if n.user_id == user_id]
        return [self._copy(n) for n in _newest_first(items)[:limit]]

    def count_unread_notifications(self, user_id: str) -> int:
        return sum(
            1
            for n in self.notifications.values()
            if n.user_id == user_id and not n.is_read
        )

    def mark_all_notifications_read(self, user_id: str) -> int:
        updated = 0
        for notification in self.notifications.values():
            if notification.user_id == user_id and not notification.is_read:
                notification.is_read = True
                updated += 1
        return updated

    # Moderation

    def save_report(self, report: ReportRecord) -> ReportRecord:
        report.updated_at = now()
        self.reports[report.id] = self._copy(report)
        return report

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        return self._copy(self.reports.get(report_id))

    def list_reports(self) -> list[ReportRecord]:
        return [self._copy(r) for r in _newest_first(self.reports.values())]

    def count_reports(self, status: Optional[str] = None) -> int:
        return sum(
            1 for r in self.reports.values() if status is None or r.status == status
        )

    def save_audit_log(self, entry: AuditLogRecord) -> AuditLogRecord:
        self.audit_logs[entry.id] = self._copy(entry)
        return entry

    def list_audit_logs(self, limit: int = 100) -> list[AuditLogRecord]:
        return [self._copy(e) for e in _newest_first(self.audit_logs.values())[:limit]]

    def save_broadcast(self, broadcast: BroadcastRecord) -> BroadcastRecord:
        self.broadcasts[broadcast.id] = self._copy(broadcast)
        return broadcast

    def get_broadcast(self, broadcast_id: str) -> Optional[BroadcastRecord]:
        return self._copy(self.broadcasts.get(broadcast_id))
