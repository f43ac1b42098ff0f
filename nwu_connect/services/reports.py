"""
User-filed reports against other accounts.
"""

from __future__ import annotations

import logging

from nwu_connect.db import DbClient
from nwu_connect.errors import InvalidRequestError, NotFoundError
from nwu_connect.records import ReportRecord

logger = logging.getLogger(__name__)


def file_report(
    uid: str,
    reported_uid: str,
    reason: str,
    description: str = "",
    *,
    db: DbClient,
) -> dict:
    if reported_uid == uid:
        raise InvalidRequestError("You cannot report yourself")
    reporter = db.get_user_by_uid(uid)
    if not reporter:
        raise NotFoundError("User not found")
    reported = db.get_user_by_uid(reported_uid)
    if not reported:
        raise NotFoundError("Reported user not found")

    report = db.save_report(
        ReportRecord(
            reporter_id=reporter.id,
            reported_user_id=reported.id,
            reason=reason,
            description=description,
        )
    )
    logger.info("Report %s filed against %s", report.id, reported.id)
    return report.as_dict()
