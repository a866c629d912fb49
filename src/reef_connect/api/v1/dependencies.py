"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from reef_connect.core.errors import Unauthenticated
from reef_connect.core.settings import settings
from reef_connect.db.session import get_db
from reef_connect.models import Profile
from reef_connect.schemas.identity import CallerIdentity
from reef_connect.services.notifications import NotificationDispatcher, get_notification_dispatcher
from reef_connect.services.profiles import get_or_create_profile

# HTTP Bearer scheme for identity-provider tokens; missing headers become 401 below
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def decode_identity_token(token: str) -> CallerIdentity:
    """Validate an identity-provider JWT and return the caller's claims.

    Raises:
        Unauthenticated: If the token is invalid, expired or has no subject
    """
    options = {} if settings.auth_jwt_audience else {"verify_aud": False}
    try:
        payload = jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_jwt_audience,
            options=options,
        )
    except JWTError as err:
        raise Unauthenticated("Could not validate credentials") from err

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise Unauthenticated("Could not validate credentials")

    metadata = payload.get("user_metadata")
    return CallerIdentity(
        user_id=subject,
        email=payload.get("email"),
        user_metadata=metadata if isinstance(metadata, dict) else {},
    )


def get_caller_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> CallerIdentity:
    """Resolve the caller from the ``Authorization: Bearer`` header."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return decode_identity_token(credentials.credentials)


CallerDep = Annotated[CallerIdentity, Depends(get_caller_identity)]


def get_current_profile(identity: CallerDep, db: SessionDep) -> Profile:
    """Return the caller's profile, creating it on first request."""
    return get_or_create_profile(db, identity)


def get_dispatcher() -> NotificationDispatcher:
    """Return the notification dispatcher used by handlers."""
    return get_notification_dispatcher()


# Type aliases for common dependencies
CurrentProfileDep = Annotated[Profile, Depends(get_current_profile)]
DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]
