"""
Feed routes under /feed.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from nwu_connect.auth import AuthUser
from nwu_connect.config import Settings, get_settings
from nwu_connect.db import DbClient
from nwu_connect.dependencies import get_active_user, get_db_client
from nwu_connect.schemas import CommentRequest, CreatePostRequest, EditPostRequest
from nwu_connect.services import feed

router = APIRouter(prefix="/feed", tags=["feed"])


@router.post("/create")
def create_post(
    payload: CreatePostRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.create_post(
        auth_user.uid,
        content=payload.content,
        image_urls=payload.image_urls,
        visibility=payload.visibility,
        db=db,
    )


@router.get("/ping")
def ping(_: AuthUser = Depends(get_active_user)):
    return {"status": "ok"}


@router.get("")
def get_feed(
    limit: Optional[int] = Query(None, ge=1, le=100),
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    return feed.get_feed(auth_user.uid, limit or settings.feed_page_size, db=db)


@router.get("/user/{user_id}")
def get_user_posts(
    user_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.get_user_posts(auth_user.uid, user_id, limit, offset, db=db)


@router.post("/{post_id}/like")
def toggle_like(
    post_id: str,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.toggle_like(auth_user.uid, post_id, db=db)


@router.post("/{post_id}/comment")
def add_comment(
    post_id: str,
    payload: CommentRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.add_comment(auth_user.uid, post_id, payload.text, db=db)


@router.post("/{post_id}/comment/{comment_id}/reply")
def add_reply(
    post_id: str,
    comment_id: str,
    payload: CommentRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.add_reply(auth_user.uid, post_id, comment_id, payload.text, db=db)


@router.get("/{post_id}/comments")
def get_comments(
    post_id: str,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.get_comments(post_id, db=db)


@router.post("/{post_id}/delete")
def delete_post(
    post_id: str,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.delete_post(auth_user.uid, post_id, db=db)


@router.post("/{post_id}/archive")
def archive_post(
    post_id: str,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.toggle_archive(auth_user.uid, post_id, db=db)


@router.post("/{post_id}/edit")
def edit_post(
    post_id: str,
    payload: EditPostRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.edit_post(auth_user.uid, post_id, payload.content, db=db)


@router.get("/{post_id}/history")
def get_history(
    post_id: str,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return feed.get_history(post_id, db=db)
