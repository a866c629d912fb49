"""Block list Pydantic schemas."""

from pydantic import Field

from .common import CamelModel


class BlockCreate(CamelModel):
    """Schema for blocking a user."""

    user_id: str = Field(..., min_length=1)
