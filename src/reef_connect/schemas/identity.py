"""Resolved caller identity passed explicitly into every handler."""

from typing import Any

from pydantic import BaseModel, Field


class CallerIdentity(BaseModel):
    """Claims taken from a validated identity-provider token."""

    user_id: str
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)
