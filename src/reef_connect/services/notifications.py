"""Push notification fan-out.

The dispatcher delivers a payload to every endpoint a user registered. An
endpoint the push service reports as gone is deleted; any other failure is
counted and the endpoint kept. Nothing here raises to the caller: a message
send must succeed whatever happens to its notification.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from typing import Any

from pywebpush import WebPushException, webpush
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reef_connect.core.errors import ValidationError
from reef_connect.core.settings import settings
from reef_connect.db.session import SessionLocal
from reef_connect.db.time import utcnow
from reef_connect.models import PushSubscription
from reef_connect.schemas.push import DeliveryReport

# Configure logger for this module
logger = logging.getLogger(__name__)

# Push service responses meaning the endpoint will never accept messages again
GONE_STATUS_CODES = frozenset({404, 410})

DEFAULT_TITLE = "New Message"
DEFAULT_BODY = "You have a new message on Report The Reef"
DEFAULT_URL = "/connect"

SessionFactory = Callable[[], AbstractContextManager[Session]]


class PushDeliveryError(RuntimeError):
    """Raised by a transport when a single delivery fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def gone(self) -> bool:
        return self.status_code in GONE_STATUS_CODES


class PushNotConfiguredError(PushDeliveryError):
    """Raised when VAPID keys are missing."""


class WebPushTransport:
    """Deliver payloads through ``pywebpush`` with VAPID authentication."""

    def __init__(
        self,
        vapid_private_key: str | None = None,
        vapid_public_key: str | None = None,
        vapid_subject: str | None = None,
        ttl: int | None = None,
    ) -> None:
        self._private_key = vapid_private_key if vapid_private_key is not None else settings.vapid_private_key
        self._public_key = vapid_public_key if vapid_public_key is not None else settings.vapid_public_key
        self._subject = vapid_subject or settings.vapid_subject
        self._ttl = settings.push_ttl_seconds if ttl is None else ttl

    @property
    def configured(self) -> bool:
        """Both halves of the VAPID key pair are set."""
        return bool(self._private_key and self._public_key)

    def send(self, subscription: dict[str, Any], payload: str) -> None:
        if not self.configured:
            raise PushNotConfiguredError("Push notifications not configured")
        try:
            webpush(
                subscription_info=subscription,
                data=payload,
                vapid_private_key=self._private_key,
                # webpush adds aud/exp to the claims dict, so pass a fresh one
                vapid_claims={"sub": self._subject},
                ttl=self._ttl,
            )
        except WebPushException as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            raise PushDeliveryError(str(exc), status_code=status_code) from exc


def build_payload(
    title: str | None = None,
    body: str | None = None,
    url: str | None = None,
    tag: str | None = None,
) -> str:
    """Return the JSON document the service worker displays."""
    return json.dumps(
        {
            "title": title or DEFAULT_TITLE,
            "body": body or DEFAULT_BODY,
            "url": url or DEFAULT_URL,
            "tag": tag or f"message-{int(time.time() * 1000)}",
        }
    )


def message_preview(content: str, limit: int = 50) -> str:
    """Shorten message text for a notification body."""
    text = content.strip()
    return text[:limit] + ("..." if len(text) > limit else "")


class NotificationDispatcher:
    """Fan out notifications to a recipient's push endpoints."""

    def __init__(self, transport: Any | None = None, session_factory: SessionFactory | None = None) -> None:
        self.transport = transport or WebPushTransport()
        self._session_factory: SessionFactory = session_factory or SessionLocal

    def notify(
        self,
        db: Session,
        recipient_user_id: str,
        title: str | None = None,
        body: str | None = None,
        url: str | None = None,
        tag: str | None = None,
    ) -> DeliveryReport:
        """Deliver to every endpoint of ``recipient_user_id`` and report counts."""
        try:
            subscriptions = (
                db.query(PushSubscription)
                .filter(PushSubscription.user_id == recipient_user_id)
                .order_by(PushSubscription.id)
                .all()
            )
        except SQLAlchemyError:
            logger.exception("Failed to load push subscriptions for %s", recipient_user_id)
            return DeliveryReport(sent=0, failed=0)

        if not subscriptions:
            logger.debug("No push subscriptions for user %s", recipient_user_id)
            return DeliveryReport(sent=0, failed=0)

        payload = build_payload(title, body, url, tag)
        sent = 0
        failed = 0
        gone: list[PushSubscription] = []

        for subscription in subscriptions:
            try:
                self.transport.send(subscription.subscription, payload)
                sent += 1
            except PushDeliveryError as exc:
                failed += 1
                if exc.gone:
                    gone.append(subscription)
                else:
                    logger.warning(
                        "Push delivery to %s failed (status %s): %s",
                        subscription.endpoint,
                        exc.status_code,
                        exc,
                    )
            except Exception:
                failed += 1
                logger.exception("Unexpected push delivery error for %s", subscription.endpoint)

        if gone:
            self._prune(db, gone)

        logger.info("Push for %s: sent=%d failed=%d", recipient_user_id, sent, failed)
        return DeliveryReport(sent=sent, failed=failed)

    def notify_detached(
        self,
        recipient_user_id: str,
        title: str | None = None,
        body: str | None = None,
        url: str | None = None,
        tag: str | None = None,
    ) -> DeliveryReport:
        """Run :meth:`notify` on a session of its own, outside any request."""
        try:
            with self._session_factory() as db:
                return self.notify(db, recipient_user_id, title, body, url, tag)
        except Exception:
            logger.exception("Background notification for %s failed", recipient_user_id)
            return DeliveryReport(sent=0, failed=0)

    @staticmethod
    def _prune(db: Session, subscriptions: Sequence[PushSubscription]) -> None:
        try:
            for subscription in subscriptions:
                logger.info("Removing expired push subscription %s", subscription.endpoint)
                db.delete(subscription)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to prune expired push subscriptions")


def _endpoint_of(subscription: dict[str, Any]) -> str:
    endpoint = subscription.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint.startswith("https://"):
        raise ValidationError("Subscription endpoint must be an https URL")
    keys = subscription.get("keys")
    if not isinstance(keys, dict) or not keys.get("p256dh") or not keys.get("auth"):
        raise ValidationError("Subscription keys are required")
    return endpoint


def save_subscription(db: Session, user_id: str, subscription: dict[str, Any]) -> PushSubscription:
    """Register or refresh a device endpoint for the user."""
    endpoint = _endpoint_of(subscription)
    existing = (
        db.query(PushSubscription)
        .filter(PushSubscription.user_id == user_id, PushSubscription.endpoint == endpoint)
        .first()
    )
    if existing is None:
        existing = PushSubscription(user_id=user_id, endpoint=endpoint, subscription=subscription)
        db.add(existing)
    else:
        existing.subscription = subscription
        existing.updated_at = utcnow()
    db.commit()
    db.refresh(existing)
    return existing


def remove_subscription(db: Session, user_id: str, endpoint: str | None = None) -> int:
    """Remove one endpoint, or all of the user's endpoints when none is given."""
    query = db.query(PushSubscription).filter(PushSubscription.user_id == user_id)
    if endpoint is not None:
        query = query.filter(PushSubscription.endpoint == endpoint)
    removed = query.delete(synchronize_session=False)
    db.commit()
    return removed


_dispatcher: NotificationDispatcher | None = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Return the shared dispatcher instance."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher
