"""
SQLAlchemy-backed database client.

Nested documents (comments, edit history, privacy maps, friend lists) are
stored in JSON columns so each record still maps to one row, the way it maps
to one document in a document store.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
    and_,
    create_engine,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from nwu_connect.constants import default_privacy
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
    VerificationInfo,
    Viewer,
    new_id,
    now,
    pair_key,
)

Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    firebase_uid = Column(String, nullable=False, unique=True)
    email = Column(String, nullable=False, unique=True)
    status = Column(String, nullable=False, default="pending", index=True)
    role = Column(String, nullable=False, default="user")
    onboarding_completed = Column(Boolean, nullable=False, default=False)
    welcome_seen = Column(Boolean, nullable=False, default=False)
    name = Column(String, nullable=False, default="")
    department = Column(String, nullable=False, default="")
    bio = Column(Text, nullable=False, default="")
    verification = Column(JSON, nullable=False)
    verification_submitted = Column(Boolean, nullable=False, default=False)
    linkedin_url = Column(String, nullable=False, default="")
    facebook_url = Column(String, nullable=False, default="")
    notification_token = Column(String, nullable=True)
    profile_image = Column(String, nullable=False, default="")
    created_at = Column(Float, nullable=False, index=True)
    updated_at = Column(Float, nullable=False)


class ProfileRow(Base):
    __tablename__ = "profiles"

    user_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    department = Column(String, nullable=False)
    bio = Column(Text, nullable=False, default="")
    interests = Column(JSON, nullable=False)
    photos = Column(JSON, nullable=False)
    cover_photo = Column(String, nullable=False, default="")
    location = Column(JSON, nullable=True)
    friend_ids = Column(JSON, nullable=False)
    student_id = Column(String, nullable=False, default="")
    year = Column(String, nullable=False, default="")
    section = Column(String, nullable=False, default="")
    linkedin_url = Column(String, nullable=False, default="")
    facebook_url = Column(String, nullable=False, default="")
    is_online = Column(Boolean, nullable=False, default=False)
    last_seen = Column(Float, nullable=False)
    privacy = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class PostRow(Base):
    __tablename__ = "posts"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    content = Column(Text, nullable=False, default="")
    image_urls = Column(JSON, nullable=False)
    visibility = Column(String, nullable=False)
    author_department = Column(String, nullable=False)
    likes = Column(JSON, nullable=False)
    comments = Column(JSON, nullable=False)
    is_archived = Column(Boolean, nullable=False, default=False)
    edit_history = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False, index=True)
    updated_at = Column(Float, nullable=False)


class SwipeRow(Base):
    __tablename__ = "swipes"
    __table_args__ = (
        UniqueConstraint("swiper_id", "target_id", name="uq_swipes_pair"),
    )

    id = Column(String, primary_key=True, default=new_id)
    swiper_id = Column(String, nullable=False, index=True)
    target_id = Column(String, nullable=False)
    action = Column(String, nullable=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class MatchRow(Base):
    __tablename__ = "matches"

    id = Column(String, primary_key=True)
    user_a = Column(String, nullable=False, index=True)
    user_b = Column(String, nullable=False, index=True)
    pair_key = Column(String, nullable=False, unique=True)
    conversation_id = Column(String, nullable=True)
    last_message = Column(Text, nullable=True)
    last_message_time = Column(Float, nullable=True)
    created_at = Column(Float, nullable=False)


class ConversationRow(Base):
    __tablename__ = "conversations"

    id = Column(String, primary_key=True)
    participant_a = Column(String, nullable=False, index=True)
    participant_b = Column(String, nullable=False, index=True)
    pair_key = Column(String, nullable=False, unique=True)
    last_message = Column(Text, nullable=False, default="")
    last_message_at = Column(Float, nullable=False, index=True)
    created_at = Column(Float, nullable=False)


class MessageRow(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True)
    conversation_id = Column(String, nullable=False, index=True)
    sender_id = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    type = Column(String, nullable=False, default="text")
    image_url = Column(String, nullable=True)
    status = Column(String, nullable=False, default="sent")
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(Float, nullable=False)


class NotificationRow(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    data = Column(JSON, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(Float, nullable=False)


class ReportRow(Base):
    __tablename__ = "reports"

    id = Column(String, primary_key=True)
    reporter_id = Column(String, nullable=False)
    reported_user_id = Column(String, nullable=False, index=True)
    reason = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, default="open", index=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class AuditLogRow(Base):
    __tablename__ = "audit_logs"

    id = Column(String, primary_key=True)
    action = Column(String, nullable=False)
    details = Column(Text, nullable=False)
    performed_by = Column(String, nullable=True)
    extra = Column("metadata", JSON, nullable=False)
    created_at = Column(Float, nullable=False, index=True)


class BroadcastRow(Base):
    __tablename__ = "broadcasts"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    performed_by = Column(String, nullable=True)
    status = Column(String, nullable=False, default="queued")
    sent_count = Column(Integer, nullable=False, default=0)
    created_at = Column(Float, nullable=False)
    completed_at = Column(Float, nullable=True)


def _to_user(row: UserRow) -> UserRecord:
    return UserRecord(
        id=row.id,
        firebase_uid=row.firebase_uid,
        email=row.email,
        status=row.status,
        role=row.role,
        onboarding_completed=row.onboarding_completed,
        welcome_seen=row.welcome_seen,
        name=row.name,
        department=row.department,
        bio=row.bio,
        verification=VerificationInfo.from_document(row.verification),
        linkedin_url=row.linkedin_url,
        facebook_url=row.facebook_url,
        notification_token=row.notification_token,
        profile_image=row.profile_image,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply_user(row: UserRow, user: UserRecord) -> None:
    row.firebase_uid = user.firebase_uid
    row.email = user.email
    row.status = user.status
    row.role = user.role
    row.onboarding_completed = user.onboarding_completed
    row.welcome_seen = user.welcome_seen
    row.name = user.name
    row.department = user.department
    row.bio = user.bio
    row.verification = user.verification.to_document()
    row.verification_submitted = user.verification.submitted
    row.linkedin_url = user.linkedin_url
    row.facebook_url = user.facebook_url
    row.notification_token = user.notification_token
    row.profile_image = user.profile_image
    row.created_at = user.created_at
    row.updated_at = user.updated_at


def _to_profile(row: ProfileRow) -> ProfileRecord:
    return ProfileRecord(
        user_id=row.user_id,
        name=row.name,
        department=row.department,
        bio=row.bio,
        interests=list(row.interests or []),
        photos=list(row.photos or []),
        cover_photo=row.cover_photo,
        location=row.location,
        friend_ids=list(row.friend_ids or []),
        student_id=row.student_id,
        year=row.year,
        section=row.section,
        linkedin_url=row.linkedin_url,
        facebook_url=row.facebook_url,
        is_online=row.is_online,
        last_seen=row.last_seen,
        privacy=dict(row.privacy or default_privacy()),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply_profile(row: ProfileRow, profile: ProfileRecord) -> None:
    row.name = profile.name
    row.department = profile.department
    row.bio = profile.bio
    row.interests = list(profile.interests)
    row.photos = list(profile.photos)
    row.cover_photo = profile.cover_photo
    row.location = dict(profile.location) if profile.location else None
    row.friend_ids = list(profile.friend_ids)
    row.student_id = profile.student_id
    row.year = profile.year
    row.section = profile.section
    row.linkedin_url = profile.linkedin_url
    row.facebook_url = profile.facebook_url
    row.is_online = profile.is_online
    row.last_seen = profile.last_seen
    row.privacy = dict(profile.privacy)
    row.created_at = profile.created_at
    row.updated_at = profile.updated_at


def _to_post(row: PostRow) -> PostRecord:
    return PostRecord(
        id=row.id,
        user_id=row.user_id,
        content=row.content,
        image_urls=list(row.image_urls or []),
        visibility=row.visibility,
        author_department=row.author_department,
        likes=list(row.likes or []),
        comments=[CommentRecord.from_document(c) for c in row.comments or []],
        is_archived=row.is_archived,
        edit_history=[EditRecord.from_document(e) for e in row.edit_history or []],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply_post(row: PostRow, post: PostRecord) -> None:
    row.user_id = post.user_id
    row.content = post.content
    row.image_urls = list(post.image_urls)
    row.visibility = post.visibility
    row.author_department = post.author_department
    row.likes = list(post.likes)
    row.comments = [c.to_document() for c in post.comments]
    row.is_archived = post.is_archived
    row.edit_history = [e.to_document() for e in post.edit_history]
    row.created_at = post.created_at
    row.updated_at = post.updated_at


def _to_swipe(row: SwipeRow) -> SwipeRecord:
    return SwipeRecord(
        swiper_id=row.swiper_id,
        target_id=row.target_id,
        action=row.action,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_match(row: MatchRow) -> MatchRecord:
    return MatchRecord(
        id=row.id,
        users=[row.user_a, row.user_b],
        conversation_id=row.conversation_id,
        last_message=row.last_message,
        last_message_time=row.last_message_time,
        created_at=row.created_at,
    )


def _to_conversation(row: ConversationRow) -> ConversationRecord:
    return ConversationRecord(
        id=row.id,
        participants=[row.participant_a, row.participant_b],
        last_message=row.last_message,
        last_message_at=row.last_message_at,
        created_at=row.created_at,
    )


def _to_message(row: MessageRow) -> MessageRecord:
    return MessageRecord(
        id=row.id,
        conversation_id=row.conversation_id,
        sender_id=row.sender_id,
        content=row.content,
        type=row.type,
        image_url=row.image_url,
        status=row.status,
        read=row.read,
        created_at=row.created_at,
    )


def _to_notification(row: NotificationRow) -> NotificationRecord:
    return NotificationRecord(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        body=row.body,
        data=dict(row.data or {}),
        is_read=row.is_read,
        created_at=row.created_at,
    )


def _to_report(row: ReportRow) -> ReportRecord:
    return ReportRecord(
        id=row.id,
        reporter_id=row.reporter_id,
        reported_user_id=row.reported_user_id,
        reason=row.reason,
        description=row.description,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_audit_log(row: AuditLogRow) -> AuditLogRecord:
    return AuditLogRecord(
        id=row.id,
        action=row.action,
        details=row.details,
        performed_by=row.performed_by,
        metadata=dict(row.extra or {}),
        created_at=row.created_at,
    )


def _to_broadcast(row: BroadcastRow) -> BroadcastRecord:
    return BroadcastRecord(
        id=row.id,
        title=row.title,
        message=row.message,
        performed_by=row.performed_by,
        status=row.status,
        sent_count=row.sent_count,
        created_at=row.created_at,
        completed_at=row.completed_at,
    )


def _visible_to(viewer: Viewer):
    """SQL counterpart of ``Viewer.can_see``."""
    clauses = [
        PostRow.visibility == "public",
        and_(
            PostRow.visibility == "department",
            PostRow.author_department == viewer.department,
        ),
        PostRow.user_id == viewer.user_id,
    ]
    if viewer.friend_ids:
        clauses.append(
            and_(
                PostRow.visibility == "friends",
                PostRow.user_id.in_(viewer.friend_ids),
            )
        )
    return and_(PostRow.is_archived.is_(False), or_(*clauses))


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    # Users

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            return _to_user(row) if row else None

    def get_user_by_uid(self, firebase_uid: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.execute(
                select(UserRow).where(UserRow.firebase_uid == firebase_uid)
            ).scalar_one_or_none()
            return _to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.execute(
                select(UserRow).where(UserRow.email == email)
            ).scalar_one_or_none()
            return _to_user(row) if row else None

    def save_user(self, user: UserRecord) -> UserRecord:
        user.updated_at = now()
        with self.Session() as session:
            row = session.get(UserRow, user.id)
            if not row:
                row = UserRow(id=user.id)
                session.add(row)
            _apply_user(row, user)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("User or email already exists") from exc
        return user

    def list_users(
        self, limit: Optional[int] = None, skip: int = 0
    ) -> list[UserRecord]:
        with self.Session() as session:
            stmt = select(UserRow).order_by(UserRow.created_at.desc()).offset(skip)
            if limit is not None:
                stmt = stmt.limit(limit)
            return [_to_user(row) for row in session.execute(stmt).scalars()]

    def count_users(
        self,
        *,
        status: Optional[str] = None,
        verification_submitted: Optional[bool] = None,
    ) -> int:
        with self.Session() as session:
            stmt = select(func.count()).select_from(UserRow)
            if status is not None:
                stmt = stmt.where(UserRow.status == status)
            if verification_submitted is not None:
                stmt = stmt.where(
                    UserRow.verification_submitted.is_(verification_submitted)
                )
            return session.scalar(stmt) or 0

    def list_pending_verifications(self) -> list[UserRecord]:
        with self.Session() as session:
            stmt = (
                select(UserRow)
                .where(
                    UserRow.status == "pending",
                    UserRow.verification_submitted.is_(True),
                )
                .order_by(UserRow.created_at.desc())
            )
            return [_to_user(row) for row in session.execute(stmt).scalars()]

    def list_uids_with_status(self, status: str) -> list[str]:
        with self.Session() as session:
            stmt = select(UserRow.firebase_uid).where(UserRow.status == status)
            return list(session.execute(stmt).scalars())

    # Profiles

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        with self.Session() as session:
            row = session.get(ProfileRow, user_id)
            return _to_profile(row) if row else None

    def get_profiles(self, user_ids: Iterable[str]) -> dict[str, ProfileRecord]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        with self.Session() as session:
            rows = session.execute(
                select(ProfileRow).where(ProfileRow.user_id.in_(ids))
            ).scalars()
            return {row.user_id: _to_profile(row) for row in rows}

    def save_profile(self, profile: ProfileRecord) -> ProfileRecord:
        profile.updated_at = now()
        with self.Session() as session:
            row = session.get(ProfileRow, profile.user_id)
            if not row:
                row = ProfileRow(user_id=profile.user_id)
                session.add(row)
            _apply_profile(row, profile)
            session.commit()
        return profile

    def add_friend(self, user_id: str, friend_id: str) -> bool:
        with self.Session() as session:
            row = session.execute(
                select(ProfileRow)
                .where(ProfileRow.user_id == user_id)
                .with_for_update()
            ).scalar_one_or_none()
            if not row:
                return False
            friends = list(row.friend_ids or [])
            if friend_id not in friends:
                row.friend_ids = friends + [friend_id]
                row.updated_at = now()
            session.commit()
            return True

    def sample_profiles(
        self, exclude_ids: Iterable[str], size: int
    ) -> list[ProfileRecord]:
        excluded = list(set(exclude_ids))
        with self.Session() as session:
            stmt = select(ProfileRow)
            if excluded:
                stmt = stmt.where(ProfileRow.user_id.not_in(excluded))
            stmt = stmt.order_by(func.random()).limit(size)
            return [_to_profile(row) for row in session.execute(stmt).scalars()]

    def count_online_profiles(self) -> int:
        with self.Session() as session:
            return (
                session.scalar(
                    select(func.count())
                    .select_from(ProfileRow)
                    .where(ProfileRow.is_online.is_(True))
                )
                or 0
            )

    # Posts

    def save_post(self, post: PostRecord) -> PostRecord:
        post.updated_at = now()
        with self.Session() as session:
            row = session.get(PostRow, post.id)
            if not row:
                row = PostRow(id=post.id)
                session.add(row)
            _apply_post(row, post)
            session.commit()
        return post

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        with self.Session() as session:
            row = session.get(PostRow, post_id)
            return _to_post(row) if row else None

    def delete_post(self, post_id: str) -> bool:
        with self.Session() as session:
            row = session.get(PostRow, post_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def sample_visible_posts(self, viewer: Viewer, size: int) -> list[PostRecord]:
        with self.Session() as session:
            stmt = (
                select(PostRow)
                .where(_visible_to(viewer))
                .order_by(func.random())
                .limit(size)
            )
            return [_to_post(row) for row in session.execute(stmt).scalars()]

    def list_user_posts(
        self, author_id: str, viewer: Viewer, limit: int = 20, offset: int = 0
    ) -> list[PostRecord]:
        with self.Session() as session:
            stmt = (
                select(PostRow)
                .where(PostRow.user_id == author_id, _visible_to(viewer))
                .order_by(PostRow.created_at.desc())
                .offset(offset)
                .limit(limit)
            )
            return [_to_post(row) for row in session.execute(stmt).scalars()]

    def count_user_posts(self, author_id: str) -> int:
        with self.Session() as session:
            return (
                session.scalar(
                    select(func.count())
                    .select_from(PostRow)
                    .where(PostRow.user_id == author_id)
                )
                or 0
            )

    def _locked_post(self, session: Session, post_id: str) -> Optional[PostRow]:
        return session.execute(
            select(PostRow).where(PostRow.id == post_id).with_for_update()
        ).scalar_one_or_none()

    def append_comment(
        self, post_id: str, comment: CommentRecord
    ) -> Optional[PostRecord]:
        with self.Session() as session:
            row = self._locked_post(session, post_id)
            if not row:
                return None
            row.comments = list(row.comments or []) + [comment.to_document()]
            row.updated_at = now()
            session.commit()
            return _to_post(row)

    def append_reply(
        self, post_id: str, comment_id: str, reply: ReplyRecord
    ) -> Optional[PostRecord]:
        with self.Session() as session:
            row = self._locked_post(session, post_id)
            if not row:
                return None
            comments = [dict(c) for c in row.comments or []]
            target = next((c for c in comments if c.get("id") == comment_id), None)
            if target is None:
                return None
            target["replies"] = list(target.get("replies") or []) + [
                reply.to_document()
            ]
            row.comments = comments
            row.updated_at = now()
            session.commit()
            return _to_post(row)

    def toggle_like(self, post_id: str, user_id: str) -> Optional[PostRecord]:
        with self.Session() as session:
            row = self._locked_post(session, post_id)
            if not row:
                return None
            likes = list(row.likes or [])
            if user_id in likes:
                likes.remove(user_id)
            else:
                likes.append(user_id)
            row.likes = likes
            row.updated_at = now()
            session.commit()
            return _to_post(row)

    def toggle_archived(self, post_id: str, owner_id: str) -> Optional[PostRecord]:
        with self.Session() as session:
            row = self._locked_post(session, post_id)
            if not row or row.user_id != owner_id:
                return None
            row.is_archived = not row.is_archived
            row.updated_at = now()
            session.commit()
            return _to_post(row)

    def append_edit(
        self, post_id: str, owner_id: str, content: str
    ) -> Optional[PostRecord]:
        with self.Session() as session:
            row = self._locked_post(session, post_id)
            if not row or row.user_id != owner_id:
                return None
            edit = EditRecord(content=row.content, edited_at=now())
            row.edit_history = list(row.edit_history or []) + [edit.to_document()]
            row.content = content
            row.updated_at = now()
            session.commit()
            return _to_post(row)

    # Swipes and matches

    def _find_swipe_row(
        self, session: Session, swiper_id: str, target_id: str
    ) -> Optional[SwipeRow]:
        return session.execute(
            select(SwipeRow)
            .where(SwipeRow.swiper_id == swiper_id, SwipeRow.target_id == target_id)
            .with_for_update()
        ).scalar_one_or_none()

    def upsert_swipe(self, swiper_id: str, target_id: str, action: str) -> SwipeRecord:
        ts = now()
        with self.Session() as session:
            row = self._find_swipe_row(session, swiper_id, target_id)
            if row:
                row.action = action
                row.updated_at = ts
            else:
                row = SwipeRow(
                    swiper_id=swiper_id,
                    target_id=target_id,
                    action=action,
                    created_at=ts,
                    updated_at=ts,
                )
                session.add(row)
            try:
                session.commit()
            except IntegrityError:
                # A concurrent insert won the unique key; update that row instead.
                session.rollback()
                row = self._find_swipe_row(session, swiper_id, target_id)
                row.action = action
                row.updated_at = ts
                session.commit()
            return _to_swipe(row)

    def get_swipe(self, swiper_id: str, target_id: str) -> Optional[SwipeRecord]:
        with self.Session() as session:
            row = session.execute(
                select(SwipeRow).where(
                    SwipeRow.swiper_id == swiper_id, SwipeRow.target_id == target_id
                )
            ).scalar_one_or_none()
            return _to_swipe(row) if row else None

    def list_swiped_ids(
        self, swiper_id: str, action: Optional[str] = None
    ) -> list[str]:
        with self.Session() as session:
            stmt = select(SwipeRow.target_id).where(SwipeRow.swiper_id == swiper_id)
            if action is not None:
                stmt = stmt.where(SwipeRow.action == action)
            return list(session.execute(stmt).scalars())

    def get_or_create_match(
        self, user_a: str, user_b: str, conversation_id: Optional[str] = None
    ) -> tuple[MatchRecord, bool]:
        key = pair_key(user_a, user_b)
        with self.Session() as session:
            stmt = select(MatchRow).where(MatchRow.pair_key == key)
            row = session.execute(stmt).scalar_one_or_none()
            if row:
                return _to_match(row), False
            row = MatchRow(
                id=new_id(),
                user_a=user_a,
                user_b=user_b,
                pair_key=key,
                conversation_id=conversation_id,
                created_at=now(),
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return _to_match(session.execute(stmt).scalar_one()), False
            return _to_match(row), True

    def list_matches(self, user_id: str) -> list[MatchRecord]:
        with self.Session() as session:
            stmt = (
                select(MatchRow)
                .where(or_(MatchRow.user_a == user_id, MatchRow.user_b == user_id))
                .order_by(MatchRow.created_at.desc())
            )
            return [_to_match(row) for row in session.execute(stmt).scalars()]

    # Conversations and messages

    def get_or_create_conversation(
        self, user_a: str, user_b: str
    ) -> tuple[ConversationRecord, bool]:
        key = pair_key(user_a, user_b)
        with self.Session() as session:
            stmt = select(ConversationRow).where(ConversationRow.pair_key == key)
            row = session.execute(stmt).scalar_one_or_none()
            if row:
                return _to_conversation(row), False
            ts = now()
            row = ConversationRow(
                id=new_id(),
                participant_a=user_a,
                participant_b=user_b,
                pair_key=key,
                last_message="",
                last_message_at=ts,
                created_at=ts,
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return _to_conversation(session.execute(stmt).scalar_one()), False
            return _to_conversation(row), True

    def get_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
        with self.Session() as session:
            row = session.get(ConversationRow, conversation_id)
            return _to_conversation(row) if row else None

    def save_conversation(self, conversation: ConversationRecord) -> ConversationRecord:
        with self.Session() as session:
            row = session.get(ConversationRow, conversation.id)
            if not row:
                row = ConversationRow(
                    id=conversation.id,
                    participant_a=conversation.participants[0],
                    participant_b=conversation.participants[1],
                    pair_key=conversation.pair_key,
                    created_at=conversation.created_at,
                )
                session.add(row)
            row.last_message = conversation.last_message
            row.last_message_at = conversation.last_message_at
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("Conversation already exists") from exc
        return conversation

    def list_conversations(self, user_id: str) -> list[ConversationRecord]:
        with self.Session() as session:
            stmt = (
                select(ConversationRow)
                .where(
                    or_(
                        ConversationRow.participant_a == user_id,
                        ConversationRow.participant_b == user_id,
                    )
                )
                .order_by(ConversationRow.last_message_at.desc())
            )
            return [_to_conversation(row) for row in session.execute(stmt).scalars()]

    def save_message(self, message: MessageRecord) -> MessageRecord:
        with self.Session() as session:
            row = session.get(MessageRow, message.id)
            if not row:
                row = MessageRow(id=message.id)
                session.add(row)
            row.conversation_id = message.conversation_id
            row.sender_id = message.sender_id
            row.content = message.content
            row.type = message.type
            row.image_url = message.image_url
            row.status = message.status
            row.read = message.read
            row.created_at = message.created_at
            session.commit()
        return message

    def list_messages(self, conversation_id: str, limit: int = 50) -> list[MessageRecord]:
        with self.Session() as session:
            stmt = (
                select(MessageRow)
                .where(MessageRow.conversation_id == conversation_id)
                .order_by(MessageRow.created_at.asc())
                .limit(limit)
            )
            return [_to_message(row) for row in session.execute(stmt).scalars()]

    def mark_messages_read(self, conversation_id: str, reader_id: str) -> int:
        with self.Session() as session:
            result = session.execute(
                update(MessageRow)
                .where(
                    MessageRow.conversation_id == conversation_id,
                    MessageRow.sender_id != reader_id,
                    MessageRow.read.is_(False),
                )
                .values(read=True, status="seen")
            )
            session.commit()
            return result.rowcount or 0

    # Notifications

    def save_notification(self, notification: NotificationRecord) -> NotificationRecord:
        with self.Session() as session:
            row = session.get(NotificationRow, notification.id)
            if not row:
                row = NotificationRow(id=notification.id)
                session.add(row)
            row.user_id = notification.user_id
            row.title = notification.title
            row.body = notification.body
            row.data = dict(notification.data)
            row.is_read = notification.is_read
            row.created_at = notification.created_at
            session.commit()
        return notification

    def get_notification(self, notification_id: str) -> Optional[NotificationRecord]:
        with self.Session() as session:
            row = session.get(NotificationRow, notification_id)
            return _to_notification(row) if row else None

    def list_notifications(self, user_id: str, limit: int = 50) -> list[NotificationRecord]:
        with self.Session() as session:
            stmt = (
                select(NotificationRow)
                .where(NotificationRow.user_id == user_id)
                .order_by(NotificationRow.created_at.desc())
                .limit(limit)
            )
            return [_to_notification(row) for row in session.execute(stmt).scalars()]

    def count_unread_notifications(self, user_id: str) -> int:
        with self.Session() as session:
            return (
                session.scalar(
                    select(func.count())
                    .select_from(NotificationRow)
                    .where(
                        NotificationRow.user_id == user_id,
                        NotificationRow.is_read.is_(False),
                    )
                )
                or 0
            )

    def mark_all_notifications_read(self, user_id: str) -> int:
        with self.Session() as session:
            result = session.execute(
                update(NotificationRow)
                .where(
                    NotificationRow.user_id == user_id,
                    NotificationRow.is_read.is_(False),
                )
                .values(is_read=True)
            )
            session.commit()
            return result.rowcount or 0

    # Moderation

    def save_report(self, report: ReportRecord) -> ReportRecord:
        report.updated_at = now()
        with self.Session() as session:
            row = session.get(ReportRow, report.id)
            if not row:
                row = ReportRow(id=report.id)
                session.add(row)
            row.reporter_id = report.reporter_id
            row.reported_user_id = report.reported_user_id
            row.reason = report.reason
            row.description = report.description
            row.status = report.status
            row.created_at = report.created_at
            row.updated_at = report.updated_at
            session.commit()
        return report

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        with self.Session() as session:
            row = session.get(ReportRow, report_id)
            return _to_report(row) if row else None

    def list_reports(self) -> list[ReportRecord]:
        with self.Session() as session:
            stmt = select(ReportRow).order_by(ReportRow.created_at.desc())
            return [_to_report(row) for row in session.execute(stmt).scalars()]

    def count_reports(self, status: Optional[str] = None) -> int:
        with self.Session() as session:
            stmt = select(func.count()).select_from(ReportRow)
            if status is not None:
                stmt = stmt.where(ReportRow.status == status)
            return session.scalar(stmt) or 0

    def save_audit_log(self, entry: AuditLogRecord) -> AuditLogRecord:
        with self.Session() as session:
            session.add(
                AuditLogRow(
                    id=entry.id,
                    action=entry.action,
                    details=entry.details,
                    performed_by=entry.performed_by,
                    extra=dict(entry.metadata),
                    created_at=entry.created_at,
                )
            )
            session.commit()
        return entry

    def list_audit_logs(self, limit: int = 100) -> list[AuditLogRecord]:
        with self.Session() as session:
            stmt = (
                select(AuditLogRow).order_by(AuditLogRow.created_at.desc()).limit(limit)
            )
            return [_to_audit_log(row) for row in session.execute(stmt).scalars()]

    def save_broadcast(self, broadcast: BroadcastRecord) -> BroadcastRecord:
        with self.Session() as session:
            row = session.get(BroadcastRow, broadcast.id)
            if not row:
                row = BroadcastRow(id=broadcast.id)
                session.add(row)
            row.title = broadcast.title
            row.message = broadcast.message
            row.performed_by = broadcast.performed_by
            row.status = broadcast.status
            row.sent_count = broadcast.sent_count
            row.created_at = broadcast.created_at
            row.completed_at = broadcast.completed_at
            session.commit()
        return broadcast

    def get_broadcast(self, broadcast_id: str) -> Optional[BroadcastRecord]:
        with self.Session() as session:
            row = session.get(BroadcastRow, broadcast_id)
            return _to_broadcast(row) if row else None
