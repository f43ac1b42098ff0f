"""
Admin routes under /admin. Every route requires an admin account.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from nwu_connect.db import DbClient
from nwu_connect.dependencies import (
    get_db_client,
    get_push_gateway,
    get_queue_client,
    require_admin,
)
from nwu_connect.push import PushGateway
from nwu_connect.queue import InMemoryJobQueue, JobQueue
from nwu_connect.records import UserRecord
from nwu_connect.schemas import (
    BroadcastRequest,
    BroadcastResponse,
    RejectVerificationRequest,
)
from nwu_connect.services import admin
from nwu_connect.worker import drain

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats")
def get_stats(
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return admin.get_stats(db=db)


@router.get("/verifications")
def list_verifications(
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return admin.list_verifications(db=db)


@router.get("/users")
def list_users(
    limit: int = Query(20, ge=1, le=200),
    skip: int = Query(0, ge=0),
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return admin.list_users(limit, skip, db=db)


@router.patch("/users/{user_id}/approve")
def approve_user(
    user_id: str,
    acting_admin: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    push: PushGateway = Depends(get_push_gateway),
):
    return admin.approve_user(acting_admin, user_id, db=db, push=push)


@router.patch("/users/{user_id}/reject")
def reject_user(
    user_id: str,
    payload: RejectVerificationRequest,
    acting_admin: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    push: PushGateway = Depends(get_push_gateway),
):
    return admin.reject_user(acting_admin, user_id, payload.reason, db=db, push=push)


@router.patch("/users/{user_id}/ban")
def ban_user(
    user_id: str,
    acting_admin: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return admin.set_banned(acting_admin, user_id, True, db=db)


@router.patch("/users/{user_id}/unban")
def unban_user(
    user_id: str,
    acting_admin: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return admin.set_banned(acting_admin, user_id, False, db=db)


@router.get("/reports")
def list_reports(
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return admin.list_reports(db=db)


@router.patch("/reports/{report_id}/resolve")
def resolve_report(
    report_id: str,
    acting_admin: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return admin.set_report_status(acting_admin, report_id, "resolved", db=db)


@router.patch("/reports/{report_id}/dismiss")
def dismiss_report(
    report_id: str,
    acting_admin: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return admin.set_report_status(acting_admin, report_id, "dismissed", db=db)


@router.patch("/broadcast", response_model=BroadcastResponse)
def broadcast(
    payload: BroadcastRequest,
    background_tasks: BackgroundTasks,
    acting_admin: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
    queue: JobQueue = Depends(get_queue_client),
    push: PushGateway = Depends(get_push_gateway),
):
    """
    Queue a broadcast to every non-banned user. Without an external queue the
    fan-out runs in this process after the response is sent.
    """
    record = admin.create_broadcast(
        acting_admin, payload.title, payload.message, db=db, queue=queue
    )
    if isinstance(queue, InMemoryJobQueue):
        background_tasks.add_task(drain, db=db, queue=queue, push=push)
    return BroadcastResponse(
        success=True,
        sent_to="all",
        broadcast_id=record.id,
        status=record.status,
    )


@router.get("/audit-logs")
def list_audit_logs(
    limit: int = Query(100, ge=1, le=500),
    _: UserRecord = Depends(require_admin),
    db: DbClient = Depends(get_db_client),
):
    return admin.list_audit_logs(limit, db=db)
