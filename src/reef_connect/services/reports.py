"""User reports queued for moderator review."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from reef_connect.core.constants import REPORT_REASONS
from reef_connect.core.errors import Conflict, InvalidOperation, NotFound, ValidationError
from reef_connect.models import Profile, UserReport
from reef_connect.models.report import REPORT_STATUS_PENDING

logger = logging.getLogger(__name__)


def report_user(
    db: Session,
    reporter_id: str,
    reported_id: str,
    reason: str,
    details: str | None = None,
) -> UserReport:
    """File a pending report; one pending report per reporter and target."""
    if reporter_id == reported_id:
        raise InvalidOperation("Cannot report yourself")

    if db.get(Profile, reported_id) is None:
        raise NotFound("User not found")

    if reason not in REPORT_REASONS:
        raise ValidationError("Invalid reason. Must be one of: " + ", ".join(REPORT_REASONS))

    pending = (
        db.query(UserReport.id)
        .filter(
            UserReport.reporter_id == reporter_id,
            UserReport.reported_id == reported_id,
            UserReport.status == REPORT_STATUS_PENDING,
        )
        .first()
    )
    if pending is not None:
        raise Conflict("You have already reported this user")

    report = UserReport(
        reporter_id=reporter_id,
        reported_id=reported_id,
        reason=reason,
        details=(details or "").strip() or None,
        status=REPORT_STATUS_PENDING,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info("Report %s filed against %s (%s)", report.id, reported_id, reason)
    return report
