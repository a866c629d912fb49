"""Check-ins at BVI anchorages."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from reef_connect.db.session import Base
from reef_connect.db.time import utcnow


class Checkin(Base):
    """A user's presence at an anchorage.

    Only rows with ``is_active`` set and ``expires_at`` in the future count as
    checked in; expiry is evaluated when rows are read, never swept.
    """

    __tablename__ = "checkins"
    __table_args__ = (Index("ix_checkins_user_active", "user_id", "is_active"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    anchorage_id: Mapped[str] = mapped_column(String(64), nullable=False)
    location_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Anchorage position
    gps_lat: Mapped[float] = mapped_column(Float, nullable=False)
    gps_lng: Mapped[float] = mapped_column(Float, nullable=False)
    # Last reported device position
    actual_gps_lat: Mapped[float] = mapped_column(Float, nullable=False)
    actual_gps_lng: Mapped[float] = mapped_column(Float, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    checked_in_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_verified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
