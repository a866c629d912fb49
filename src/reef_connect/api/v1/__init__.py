"""Version 1 API endpoints."""

from .endpoints import (
    blocked_router,
    checkins_router,
    conversations_router,
    presence_router,
    profile_router,
    push_router,
    reports_router,
)

__all__ = [
    "blocked_router",
    "checkins_router",
    "conversations_router",
    "presence_router",
    "profile_router",
    "push_router",
    "reports_router",
]
