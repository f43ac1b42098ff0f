from __future__ import annotations

from fastapi import APIRouter, Depends

from nwu_connect.auth import AuthUser
from nwu_connect.db import DbClient
from nwu_connect.dependencies import get_active_user, get_db_client
from nwu_connect.schemas import ReportRequest
from nwu_connect.services import reports

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", status_code=201)
def file_report(
    payload: ReportRequest,
    auth_user: AuthUser = Depends(get_active_user),
    db: DbClient = Depends(get_db_client),
):
    return reports.file_report(
        auth_user.uid,
        payload.reported_user_id,
        payload.reason,
        payload.description,
        db=db,
    )
