"""
Posts, the randomized feed, likes, comments and replies.
"""

from __future__ import annotations

import logging
from typing import Iterable

from nwu_connect.constants import DEFAULT_DEPARTMENT
from nwu_connect.db import DbClient
from nwu_connect.errors import InvalidRequestError, NotFoundError
from nwu_connect.records import (
    CommentRecord,
    PostRecord,
    ReplyRecord,
    Viewer,
)

logger = logging.getLogger(__name__)


def _viewer(uid: str, db: DbClient) -> Viewer:
    profile = db.get_profile(uid)
    if profile is None:
        return Viewer(user_id=uid, department=DEFAULT_DEPARTMENT)
    return Viewer(
        user_id=uid,
        department=profile.department or DEFAULT_DEPARTMENT,
        friend_ids=list(profile.friend_ids),
    )


def _get_post(db: DbClient, post_id: str) -> PostRecord:
    post = db.get_post(post_id)
    if not post:
        raise NotFoundError("Post not found")
    return post


def _get_owned_post(db: DbClient, post_id: str, uid: str) -> PostRecord:
    post = db.get_post(post_id)
    if not post or post.user_id != uid:
        raise NotFoundError("Post not found or unauthorized")
    return post


def _with_authors(posts: Iterable[PostRecord], db: DbClient) -> list[dict]:
    posts = list(posts)
    profiles = db.get_profiles(p.user_id for p in posts)
    results = []
    for post in posts:
        author = profiles.get(post.user_id)
        data = post.as_dict()
        data["authorName"] = author.name if author else "Unknown User"
        data["authorPhoto"] = author.photo if author else ""
        results.append(data)
    return results


def create_post(
    uid: str,
    *,
    content: str,
    image_urls: list[str],
    visibility: str,
    db: DbClient,
) -> dict:
    content = (content or "").strip()
    image_urls = [url for url in image_urls if url]
    if not content and not image_urls:
        raise InvalidRequestError("Post must have content or images")
    profile = db.get_profile(uid)
    post = PostRecord(
        user_id=uid,
        content=content,
        image_urls=image_urls,
        visibility=visibility,
        author_department=(profile.department if profile else "") or DEFAULT_DEPARTMENT,
    )
    db.save_post(post)
    logger.info("Post %s created by %s", post.id, uid)
    return post.as_dict()


def get_feed(uid: str, limit: int, *, db: DbClient) -> list[dict]:
    """A random sample of posts the caller may see."""
    posts = db.sample_visible_posts(_viewer(uid, db), limit)
    return _with_authors(posts, db)


def get_user_posts(
    uid: str, author_id: str, limit: int, offset: int, *, db: DbClient
) -> list[dict]:
    posts = db.list_user_posts(author_id, _viewer(uid, db), limit=limit, offset=offset)
    return _with_authors(posts, db)


def toggle_like(uid: str, post_id: str, *, db: DbClient) -> dict:
    post = db.toggle_like(post_id, uid)
    if post is None:
        raise NotFoundError("Post not found")
    return post.as_dict()


def add_comment(uid: str, post_id: str, text: str, *, db: DbClient) -> dict:
    post = db.append_comment(post_id, CommentRecord(user_id=uid, text=text))
    if post is None:
        raise NotFoundError("Post not found")
    return post.as_dict()


def add_reply(
    uid: str, post_id: str, comment_id: str, text: str, *, db: DbClient
) -> dict:
    post = _get_post(db, post_id)
    if post.find_comment(comment_id) is None:
        raise NotFoundError("Comment not found")
    updated = db.append_reply(post_id, comment_id, ReplyRecord(user_id=uid, text=text))
    if updated is None:
        raise NotFoundError("Comment not found")
    return updated.as_dict()


def get_comments(post_id: str, *, db: DbClient) -> list[dict]:
    post = _get_post(db, post_id)
    author_ids = set()
    for comment in post.comments:
        author_ids.add(comment.user_id)
        author_ids.update(reply.user_id for reply in comment.replies)
    profiles = db.get_profiles(author_ids)

    def _author(user_id: str) -> dict:
        profile = profiles.get(user_id)
        return {
            "authorName": profile.name if profile else "Unknown",
            "authorPhoto": profile.photo if profile else "",
        }

    results = []
    for comment in sorted(post.comments, key=lambda c: c.created_at, reverse=True):
        data = comment.as_dict()
        data.update(_author(comment.user_id))
        data["replies"] = [
            {**reply.as_dict(), **_author(reply.user_id)}
            for reply in sorted(comment.replies, key=lambda r: r.created_at)
        ]
        results.append(data)
    return results


def delete_post(uid: str, post_id: str, *, db: DbClient) -> dict:
    _get_owned_post(db, post_id, uid)
    db.delete_post(post_id)
    logger.info("Post %s deleted by %s", post_id, uid)
    return {"success": True}


def toggle_archive(uid: str, post_id: str, *, db: DbClient) -> dict:
    post = db.toggle_archived(post_id, uid)
    if post is None:
        raise NotFoundError("Post not found or unauthorized")
    return post.as_dict()


def edit_post(uid: str, post_id: str, content: str, *, db: DbClient) -> dict:
    """Replace the content, keeping the previous text in the edit history."""
    post = db.append_edit(post_id, uid, content)
    if post is None:
        raise NotFoundError("Post not found or unauthorized")
    return post.as_dict()


def get_history(post_id: str, *, db: DbClient) -> list[dict]:
    post = _get_post(db, post_id)
    return [
        edit.as_dict() for edit in sorted(post.edit_history, key=lambda e: e.edited_at)
    ]
