"""
Broadcast fan-out worker.

Drains broadcast ids from the queue and notifies every account that is not
banned. Run with ``nwu-worker`` or ``python -m nwu_connect.worker``.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Optional

from nwu_connect.config import get_settings
from nwu_connect.db import DbClient
from nwu_connect.dependencies import get_db_client, get_push_gateway, get_queue_client
from nwu_connect.push import PushGateway
from nwu_connect.queue import JobQueue
from nwu_connect.records import now
from nwu_connect.services.notifications import send_notification

logger = logging.getLogger(__name__)


def deliver_broadcast(broadcast_id: str, *, db: DbClient, push: PushGateway) -> int:
    """
    Send one broadcast to all non-banned users. Returns the number of recipients,
    or 0 when the broadcast is unknown or already sent.
    """
    broadcast = db.get_broadcast(broadcast_id)
    if not broadcast:
        logger.warning("Received broadcast %s from queue but no DB record found", broadcast_id)
        return 0
    if broadcast.status == "sent":
        logger.info("Broadcast %s already sent; skipping", broadcast_id)
        return 0

    recipients = [u for u in db.list_users() if not u.is_banned]
    for user in recipients:
        send_notification(
            user.firebase_uid,
            broadcast.title,
            broadcast.message,
            {"type": "broadcast", "broadcastId": broadcast.id},
            db=db,
            push=push,
        )

    broadcast.status = "sent"
    broadcast.sent_count = len(recipients)
    broadcast.completed_at = now()
    db.save_broadcast(broadcast)
    logger.info("Broadcast %s delivered to %d users", broadcast.id, len(recipients))
    return len(recipients)


def process_next(
    *,
    db: Optional[DbClient] = None,
    queue: Optional[JobQueue] = None,
    push: Optional[PushGateway] = None,
    block: bool = True,
    timeout: Optional[int] = None,
) -> bool:
    """
    Fetch and deliver one broadcast from the queue. Returns False when the queue is empty.
    """
    db = db or get_db_client()
    queue = queue or get_queue_client()
    push = push or get_push_gateway()

    broadcast_id = queue.dequeue(block=block, timeout=timeout)
    if not broadcast_id:
        return False
    deliver_broadcast(broadcast_id, db=db, push=push)
    return True


def drain(*, db: DbClient, queue: JobQueue, push: PushGateway) -> int:
    """Process queued broadcasts until the queue is empty; used in-process."""
    processed = 0
    while process_next(db=db, queue=queue, push=push, block=False):
        processed += 1
    return processed


def run_loop(poll_interval_seconds: float = 2.0) -> None:
    """
    Blocking loop over the queue. Intended to be run under systemd/supervisor.
    """
    db = get_db_client()
    queue = get_queue_client()
    push = get_push_gateway()
    logger.info("Broadcast worker started")
    # blpop treats a zero timeout as wait forever.
    timeout = max(1, int(poll_interval_seconds))
    while True:
        try:
            processed = process_next(
                db=db,
                queue=queue,
                push=push,
                block=True,
                timeout=timeout,
            )
        except Exception:
            logger.exception("Broadcast delivery failed")
            processed = False
        if not processed:
            time.sleep(poll_interval_seconds)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="NWU Connect broadcast worker.")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Drain the queue once and exit instead of looping.",
    )
    parser.add_argument("--poll-interval", type=float, default=2.0)
    args = parser.parse_args(argv)

    logging.basicConfig(level=get_settings().log_level)
    if args.once:
        count = drain(db=get_db_client(), queue=get_queue_client(), push=get_push_gateway())
        logger.info("Processed %d broadcasts", count)
        return 0
    run_loop(poll_interval_seconds=args.poll_interval)
    return 0


if __name__ == "__main__":
    sys.exit(main())
