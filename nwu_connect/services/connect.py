"""
Discovery (candidate pool) and swipe matching.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from nwu_connect.constants import (
    CANDIDATE_FALLBACK_THRESHOLD,
    DEFAULT_DEPARTMENT,
    MATCH_TITLE,
    REQUEST_TITLE,
)
from nwu_connect.db import DbClient
from nwu_connect.errors import InvalidRequestError, NotFoundError
from nwu_connect.push import PushGateway
from nwu_connect.realtime import SERVER_TIMESTAMP, RealtimeClient
from nwu_connect.records import ProfileRecord
from nwu_connect.services.notifications import send_notification
from nwu_connect.services.profiles import public_card

logger = logging.getLogger(__name__)


def get_candidates(
    uid: str,
    *,
    db: DbClient,
    pool_size: int,
    rng: Optional[random.Random] = None,
) -> list[dict]:
    """
    Build the swipe deck.

    Never-swiped profiles come first; when fewer than
    CANDIDATE_FALLBACK_THRESHOLD remain, passed profiles are mixed back in.
    Liked profiles, friends, banned users and the caller never appear.
    """
    rng = rng or random.Random()
    me = db.get_profile(uid)
    department = (me.department if me else "") or DEFAULT_DEPARTMENT
    excluded = {uid}
    if me:
        excluded.update(me.friend_ids)
    excluded.update(db.list_uids_with_status("banned"))

    swiped = set(db.list_swiped_ids(uid))
    pool = db.sample_profiles(excluded | swiped, pool_size)

    if len(pool) < CANDIDATE_FALLBACK_THRESHOLD:
        liked = set(db.list_swiped_ids(uid, action="like"))
        seen = {p.user_id for p in pool}
        for profile in db.sample_profiles(excluded | liked, pool_size):
            if profile.user_id not in seen:
                seen.add(profile.user_id)
                pool.append(profile)

    rng.shuffle(pool)
    # Stable sort keeps the shuffled order inside each group.
    pool.sort(key=lambda p: p.department != department)
    return [public_card(p) for p in pool[:pool_size]]


def swipe(
    uid: str,
    target_id: str,
    action: str,
    *,
    db: DbClient,
    realtime: RealtimeClient,
    push: PushGateway,
) -> dict:
    if target_id == uid:
        raise InvalidRequestError("You cannot swipe on yourself")
    target = db.get_profile(target_id)
    if not target:
        raise NotFoundError("Target user not found")

    db.upsert_swipe(uid, target_id, action)
    if action == "pass":
        return {"match": False}

    me = db.get_profile(uid)
    reciprocal = db.get_swipe(target_id, uid)
    if not reciprocal or reciprocal.action != "like":
        name = me.name if me and me.name else "Someone"
        send_notification(
            target_id,
            REQUEST_TITLE,
            f"{name} wants to connect with you.",
            {"type": "request", "targetId": uid},
            db=db,
            push=push,
        )
        return {"match": False}

    return _match(uid, me, target, db=db, realtime=realtime, push=push)


def _match(
    uid: str,
    me: Optional[ProfileRecord],
    target: ProfileRecord,
    *,
    db: DbClient,
    realtime: RealtimeClient,
    push: PushGateway,
) -> dict:
    conversation, _ = db.get_or_create_conversation(uid, target.user_id)
    match, created = db.get_or_create_match(uid, target.user_id, conversation.id)
    conversation_id = match.conversation_id or conversation.id
    target_card = public_card(target)
    my_card = public_card(me) if me else {"userId": uid}

    if created and me:
        _open_room(match.id, conversation_id, my_card, target_card, realtime=realtime)
        db.add_friend(uid, target.user_id)
        db.add_friend(target.user_id, uid)
        for recipient, other in ((uid, target), (target.user_id, me)):
            send_notification(
                recipient,
                MATCH_TITLE,
                f"You and {other.name or 'someone'} liked each other!",
                {"type": "match", "targetId": other.user_id},
                db=db,
                push=push,
            )
        logger.info("Match %s between %s and %s", match.id, uid, target.user_id)

    return {
        "match": True,
        "matchId": match.id,
        "conversationId": conversation_id,
        "users": [my_card, target_card],
    }


def _open_room(
    match_id: str,
    conversation_id: str,
    card_a: dict,
    card_b: dict,
    *,
    realtime: RealtimeClient,
) -> None:
    # update() merges, so an existing chat room keeps its messages.
    try:
        realtime.update(
            f"chats/{conversation_id}",
            {
                "matchId": match_id,
                "conversationId": conversation_id,
                "createdAt": SERVER_TIMESTAMP,
                "users": {card_a["userId"]: card_a, card_b["userId"]: card_b},
                "info": {"active": True},
            },
        )
    except Exception:
        logger.exception("Failed to open realtime room for match %s", match_id)


def list_matches(uid: str, *, db: DbClient) -> list[dict]:
    matches = db.list_matches(uid)
    profiles = db.get_profiles(m.other_user(uid) for m in matches if m.other_user(uid))
    results = []
    for match in matches:
        other_id = match.other_user(uid)
        other = profiles.get(other_id) if other_id else None
        data = match.as_dict()
        data["otherUser"] = {
            "id": other_id,
            "name": other.name if other else "Unknown User",
            "photo": other.photo if other else "",
        }
        results.append(data)
    return results
