"""SQLAlchemy models for the Reef Connect application."""

from .blocked_user import BlockedUser
from .checkin import Checkin
from .conversation import ChatMessage, Conversation
from .profile import Profile
from .push_subscription import PushSubscription
from .report import UserReport

__all__ = [
    "BlockedUser",
    "Checkin",
    "ChatMessage", "Conversation",
    "Profile",
    "PushSubscription",
    "UserReport",
]
