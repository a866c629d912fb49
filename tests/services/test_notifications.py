# tests/services/test_notifications.py
"""Tests for the push notification dispatcher."""

import json

import pytest
from pywebpush import WebPushException

from reef_connect.core.errors import ValidationError
from reef_connect.models import PushSubscription
from reef_connect.services import notifications
from reef_connect.services.notifications import (
    NotificationDispatcher,
    PushDeliveryError,
    PushNotConfiguredError,
    WebPushTransport,
    build_payload,
    message_preview,
)

from tests.helpers import FakePushTransport, make_subscription

PHONE = "https://push.example.com/phone"
LAPTOP = "https://push.example.com/laptop"


def _endpoints(db, user_id):
    return {
        row.endpoint
        for row in db.query(PushSubscription).filter(PushSubscription.user_id == user_id)
    }


def test_notify_without_subscriptions_reports_nothing(db_session, alice, dispatcher, push_transport) -> None:
    report = dispatcher.notify(db_session, alice.id, title="Hi")

    assert (report.sent, report.failed) == (0, 0)
    assert push_transport.sent == []


def test_notify_delivers_to_every_endpoint(db_session, alice, dispatcher, push_transport) -> None:
    make_subscription(db_session, alice.id, PHONE)
    make_subscription(db_session, alice.id, LAPTOP)

    report = dispatcher.notify(db_session, alice.id, title="Message from Bob", body="ahoy", tag="conversation-1")

    assert (report.sent, report.failed) == (2, 0)
    payload = json.loads(push_transport.sent[0][1])
    assert payload == {"title": "Message from Bob", "body": "ahoy", "url": "/connect", "tag": "conversation-1"}


def test_gone_endpoint_is_pruned(db_session, alice, dispatcher, push_transport) -> None:
    make_subscription(db_session, alice.id, PHONE)
    make_subscription(db_session, alice.id, LAPTOP)
    push_transport.failures[LAPTOP] = 410

    report = dispatcher.notify(db_session, alice.id, title="Hi")

    assert (report.sent, report.failed) == (1, 1)
    assert _endpoints(db_session, alice.id) == {PHONE}


def test_not_found_endpoint_is_pruned(db_session, alice, dispatcher, push_transport) -> None:
    make_subscription(db_session, alice.id, PHONE)
    push_transport.failures[PHONE] = 404

    report = dispatcher.notify(db_session, alice.id)

    assert (report.sent, report.failed) == (0, 1)
    assert _endpoints(db_session, alice.id) == set()


@pytest.mark.parametrize("status_code", [500, 429, None])
def test_transient_failure_keeps_endpoint(db_session, alice, dispatcher, push_transport, status_code) -> None:
    make_subscription(db_session, alice.id, PHONE)
    push_transport.failures[PHONE] = status_code

    report = dispatcher.notify(db_session, alice.id)

    assert (report.sent, report.failed) == (0, 1)
    assert _endpoints(db_session, alice.id) == {PHONE}


def test_unexpected_transport_error_is_counted(db_session, alice) -> None:
    class ExplodingTransport:
        def send(self, subscription, payload):
            raise RuntimeError("socket closed")

    make_subscription(db_session, alice.id, PHONE)
    dispatcher = NotificationDispatcher(transport=ExplodingTransport())

    report = dispatcher.notify(db_session, alice.id)

    assert (report.sent, report.failed) == (0, 1)
    assert _endpoints(db_session, alice.id) == {PHONE}


def test_unconfigured_transport_fails_without_raising(db_session, alice) -> None:
    make_subscription(db_session, alice.id, PHONE)
    dispatcher = NotificationDispatcher(transport=WebPushTransport(vapid_private_key=""))

    report = dispatcher.notify(db_session, alice.id)

    assert (report.sent, report.failed) == (0, 1)
    assert _endpoints(db_session, alice.id) == {PHONE}


def test_notify_detached_uses_own_session(db_session, alice, dispatcher, push_transport) -> None:
    make_subscription(db_session, alice.id, PHONE)

    report = dispatcher.notify_detached(alice.id, title="Hi")

    assert report.sent == 1
    assert len(push_transport.sent) == 1


def test_notify_detached_swallows_session_errors(alice) -> None:
    def _broken_factory():
        raise RuntimeError("database unavailable")

    dispatcher = NotificationDispatcher(transport=FakePushTransport(), session_factory=_broken_factory)

    report = dispatcher.notify_detached(alice.id)

    assert (report.sent, report.failed) == (0, 0)


def test_webpush_transport_maps_gone_response(mocker) -> None:
    response = mocker.MagicMock(status_code=410)
    mocker.patch.object(
        notifications,
        "webpush",
        side_effect=WebPushException("Push failed: 410 Gone", response=response),
    )
    transport = WebPushTransport(vapid_private_key="private-key", vapid_public_key="public-key", vapid_subject="mailto:ops@example.com")

    with pytest.raises(PushDeliveryError) as excinfo:
        transport.send({"endpoint": PHONE, "keys": {}}, "{}")

    assert excinfo.value.status_code == 410
    assert excinfo.value.gone


def test_webpush_transport_passes_vapid_claims(mocker) -> None:
    webpush = mocker.patch.object(notifications, "webpush")
    transport = WebPushTransport(vapid_private_key="private-key", vapid_public_key="public-key", vapid_subject="mailto:ops@example.com", ttl=60)
    subscription = {"endpoint": PHONE, "keys": {"p256dh": "k", "auth": "a"}}

    transport.send(subscription, '{"title": "Hi"}')

    webpush.assert_called_once_with(
        subscription_info=subscription,
        data='{"title": "Hi"}',
        vapid_private_key="private-key",
        vapid_claims={"sub": "mailto:ops@example.com"},
        ttl=60,
    )


def test_unconfigured_transport_raises_not_configured() -> None:
    with pytest.raises(PushNotConfiguredError):
        WebPushTransport(vapid_private_key="").send({"endpoint": PHONE}, "{}")


def test_transport_needs_both_vapid_keys() -> None:
    assert not WebPushTransport(vapid_private_key="private-key", vapid_public_key="").configured
    assert not WebPushTransport(vapid_private_key="", vapid_public_key="public-key").configured
    assert WebPushTransport(vapid_private_key="private-key", vapid_public_key="public-key").configured


def test_build_payload_defaults() -> None:
    payload = json.loads(build_payload())
    assert payload["title"] == "New Message"
    assert payload["url"] == "/connect"
    assert payload["tag"].startswith("message-")


def test_message_preview_truncates() -> None:
    assert message_preview("short") == "short"
    assert message_preview("x" * 60) == "x" * 50 + "..."


def test_save_subscription_upserts_per_endpoint(db_session, alice) -> None:
    keys = {"p256dh": "key-1", "auth": "auth-1"}
    notifications.save_subscription(db_session, alice.id, {"endpoint": PHONE, "keys": keys})
    notifications.save_subscription(db_session, alice.id, {"endpoint": LAPTOP, "keys": keys})
    refreshed = notifications.save_subscription(
        db_session, alice.id, {"endpoint": PHONE, "keys": {"p256dh": "key-2", "auth": "auth-2"}}
    )

    assert _endpoints(db_session, alice.id) == {PHONE, LAPTOP}
    assert refreshed.subscription["keys"]["p256dh"] == "key-2"


@pytest.mark.parametrize(
    "subscription",
    [
        {"endpoint": "http://push.example.com/x", "keys": {"p256dh": "k", "auth": "a"}},
        {"endpoint": PHONE},
        {"endpoint": PHONE, "keys": {"p256dh": "k"}},
        {},
    ],
)
def test_save_subscription_validates(db_session, alice, subscription) -> None:
    with pytest.raises(ValidationError):
        notifications.save_subscription(db_session, alice.id, subscription)


def test_remove_subscription(db_session, alice) -> None:
    make_subscription(db_session, alice.id, PHONE)
    make_subscription(db_session, alice.id, LAPTOP)

    assert notifications.remove_subscription(db_session, alice.id, PHONE) == 1
    assert _endpoints(db_session, alice.id) == {LAPTOP}
    assert notifications.remove_subscription(db_session, alice.id) == 1
    assert _endpoints(db_session, alice.id) == set()
