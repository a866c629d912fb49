"""User report schemas."""

from pydantic import Field

from .common import CamelModel


class ReportCreate(CamelModel):
    """Schema for reporting another user."""

    reason: str = Field(..., description="harassment, spam, inappropriate, safety or other")
    details: str | None = Field(default=None, max_length=2000)
