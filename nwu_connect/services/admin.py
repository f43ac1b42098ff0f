"""
Moderation operations for the admin surface. Every mutation writes an audit entry.
"""

from __future__ import annotations

import logging
from typing import Optional

from nwu_connect.db import DbClient
from nwu_connect.errors import NotFoundError
from nwu_connect.push import PushGateway
from nwu_connect.queue import JobQueue
from nwu_connect.records import (
    AuditLogRecord,
    BroadcastRecord,
    ReportRecord,
    UserRecord,
)
from nwu_connect.services.notifications import send_notification

logger = logging.getLogger(__name__)


def _audit(
    db: DbClient,
    admin: UserRecord,
    action: str,
    details: str,
    metadata: Optional[dict] = None,
) -> None:
    db.save_audit_log(
        AuditLogRecord(
            action=action,
            details=details,
            performed_by=admin.id,
            metadata=metadata or {},
        )
    )
    logger.info("[audit] %s by %s: %s", action, admin.id, details)


def _require_user(db: DbClient, user_id: str) -> UserRecord:
    user = db.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _require_report(db: DbClient, report_id: str) -> ReportRecord:
    report = db.get_report(report_id)
    if not report:
        raise NotFoundError("Report not found")
    return report


def _summaries(db: DbClient, user_ids) -> dict[str, Optional[dict]]:
    found = {}
    for user_id in set(i for i in user_ids if i):
        user = db.get_user(user_id)
        found[user_id] = user.summary() if user else None
    return found


def get_stats(*, db: DbClient) -> dict:
    return {
        "totalUsers": db.count_users(),
        "pendingVerifications": db.count_users(
            status="pending", verification_submitted=True
        ),
        "activeReports": db.count_reports(status="open"),
        "onlineNow": db.count_online_profiles(),
    }


def list_verifications(*, db: DbClient) -> list[dict]:
    return [user.as_dict() for user in db.list_pending_verifications()]


def list_users(limit: int, skip: int, *, db: DbClient) -> dict:
    users = db.list_users(limit=limit, skip=skip)
    return {"users": [u.as_dict() for u in users], "total": db.count_users()}


def approve_user(
    admin: UserRecord, user_id: str, *, db: DbClient, push: PushGateway
) -> dict:
    user = _require_user(db, user_id)
    user.status = "approved"
    db.save_user(user)
    _audit(
        db,
        admin,
        "user.approve",
        f"Approved verification for {user.email}",
        {"userId": user.id},
    )
    send_notification(
        user.firebase_uid,
        "Verification Approved",
        "Your account has been verified. Welcome to NWU Connect!",
        {"type": "verification", "status": "approved"},
        db=db,
        push=push,
    )
    return user.as_dict()


def reject_user(
    admin: UserRecord,
    user_id: str,
    reason: str,
    *,
    db: DbClient,
    push: PushGateway,
) -> dict:
    user = _require_user(db, user_id)
    user.verification.submitted = False
    user.verification.rejection_reason = reason
    db.save_user(user)
    _audit(
        db,
        admin,
        "user.reject",
        f"Rejected verification for {user.email}",
        {"userId": user.id, "reason": reason},
    )
    send_notification(
        user.firebase_uid,
        "Verification Rejected",
        f"Your verification was rejected: {reason}",
        {"type": "verification", "status": "rejected"},
        db=db,
        push=push,
    )
    return user.as_dict()


def set_banned(admin: UserRecord, user_id: str, banned: bool, *, db: DbClient) -> dict:
    user = _require_user(db, user_id)
    user.status = "banned" if banned else "approved"
    db.save_user(user)
    action = "user.ban" if banned else "user.unban"
    verb = "Banned" if banned else "Unbanned"
    _audit(db, admin, action, f"{verb} {user.email}", {"userId": user.id})
    return user.as_dict()


def list_reports(*, db: DbClient) -> list[dict]:
    reports = db.list_reports()
    users = _summaries(
        db, [r.reporter_id for r in reports] + [r.reported_user_id for r in reports]
    )
    results = []
    for report in reports:
        data = report.as_dict()
        data["reporter"] = users.get(report.reporter_id)
        data["reportedUser"] = users.get(report.reported_user_id)
        results.append(data)
    return results


def set_report_status(
    admin: UserRecord, report_id: str, status: str, *, db: DbClient
) -> dict:
    report = _require_report(db, report_id)
    report.status = status
    db.save_report(report)
    action = "report.resolve" if status == "resolved" else "report.dismiss"
    _audit(
        db,
        admin,
        action,
        f"Report {report.id} marked {status}",
        {"reportId": report.id},
    )
    return report.as_dict()


def create_broadcast(
    admin: UserRecord,
    title: str,
    message: str,
    *,
    db: DbClient,
    queue: JobQueue,
) -> BroadcastRecord:
    """Persist a broadcast and hand it to the fan-out worker."""
    broadcast = db.save_broadcast(
        BroadcastRecord(title=title, message=message, performed_by=admin.id)
    )
    _audit(
        db,
        admin,
        "broadcast.send",
        f"Broadcast: {title}",
        {"broadcastId": broadcast.id},
    )
    queue.enqueue(broadcast.id)
    return broadcast


def list_audit_logs(limit: int, *, db: DbClient) -> list[dict]:
    entries = db.list_audit_logs(limit=limit)
    users = _summaries(db, [e.performed_by for e in entries])
    results = []
    for entry in entries:
        data = entry.as_dict()
        data["performedBy"] = users.get(entry.performed_by) if entry.performed_by else None
        results.append(data)
    return results
