"""User report endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status

from reef_connect.schemas.report import ReportCreate
from reef_connect.services.reports import report_user

from ..dependencies import CurrentProfileDep, SessionDep

router = APIRouter(prefix="/users", tags=["reports"])


@router.post("/{user_id}/report", status_code=status.HTTP_201_CREATED)
async def create_report(
    user_id: str,
    payload: ReportCreate,
    current_user: CurrentProfileDep,
    db: SessionDep,
) -> dict[str, Any]:
    """Report another user for moderator review."""
    report = report_user(db, current_user.id, user_id, payload.reason, payload.details)
    return {
        "success": True,
        "message": "Report submitted. Our team will review it.",
        "reportId": report.id,
    }
