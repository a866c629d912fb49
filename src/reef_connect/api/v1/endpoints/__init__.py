"""API endpoint modules for version 1."""

from .blocked import router as blocked_router
from .checkins import router as checkins_router
from .conversations import router as conversations_router
from .presence import router as presence_router
from .profile import router as profile_router
from .push import router as push_router
from .reports import router as reports_router

__all__ = [
    "blocked_router",
    "checkins_router",
    "conversations_router",
    "presence_router",
    "profile_router",
    "push_router",
    "reports_router",
]
