# tests/v1/test_checkins.py
"""Tests for check-in endpoints."""

from fastapi import status

from reef_connect.models import Checkin
from reef_connect.services import blocklist

from tests.helpers import TEST_ANCHORAGE, make_checkin

CHECKINS = "/api/v1/connect/checkins"


def test_check_in(client, alice, alice_headers) -> None:
    response = client.post(
        CHECKINS,
        json={"anchorageId": "cane-garden-bay", "gpsLat": 18.43, "gpsLng": -64.65},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_201_CREATED
    checkin = response.json()["checkin"]
    assert checkin["userId"] == alice.id
    assert checkin["anchorageId"] == "cane-garden-bay"
    assert checkin["locationName"] == "Cane Garden Bay, Tortola"
    assert checkin["isActive"] is True
    assert checkin["expiresAt"].endswith("Z") or checkin["expiresAt"].endswith("+00:00")


def test_check_in_outside_fence_is_forbidden(client, alice_headers, db_session) -> None:
    response = client.post(
        CHECKINS,
        json={"anchorageId": "cane-garden-bay", "gpsLat": 25.77, "gpsLng": -80.19},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"error": "Check-in is only available within BVI waters"}
    assert db_session.query(Checkin).count() == 0


def test_check_in_unknown_anchorage(client, alice_headers) -> None:
    response = client.post(
        CHECKINS,
        json={"anchorageId": "atlantis", "gpsLat": 18.43, "gpsLng": -64.65},
        headers=alice_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Invalid anchorage selected"}


def test_check_in_requires_coordinates(client, alice_headers) -> None:
    response = client.post(CHECKINS, json={"anchorageId": "cane-garden-bay"}, headers=alice_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_check_in_rejects_string_coordinates(client, alice_headers, db_session) -> None:
    response = client.post(
        CHECKINS,
        json={"anchorageId": "cane-garden-bay", "gpsLat": "18.43", "gpsLng": "-64.65"},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert db_session.query(Checkin).count() == 0


def test_check_in_accepts_integer_coordinates(client, alice_headers, location_restriction) -> None:
    location_restriction(False)
    response = client.post(
        CHECKINS,
        json={"anchorageId": "cane-garden-bay", "gpsLat": 18, "gpsLng": -64},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_201_CREATED


def test_list_checkins_for_map(client, db_session, alice, bob, alice_headers) -> None:
    alice.show_on_map = True
    bob.show_on_map = True
    mine = make_checkin(db_session, alice.id)
    make_checkin(db_session, bob.id)

    response = client.get(CHECKINS, headers=alice_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["myCheckin"]["id"] == mine.id
    assert {row["profile"]["id"] for row in data["checkins"]} == {alice.id, bob.id}
    bob_row = next(row for row in data["checkins"] if row["userId"] == bob.id)
    assert bob_row["profile"]["vesselName"] == "Blue Heron"


def test_list_checkins_hides_blocked_users(client, db_session, alice, bob, alice_headers) -> None:
    bob.show_on_map = True
    make_checkin(db_session, bob.id)
    blocklist.block(db_session, bob.id, alice.id)

    response = client.get(CHECKINS, headers=alice_headers)

    assert response.json()["checkins"] == []
    assert response.json()["myCheckin"] is None


def test_suggestions_near_position(client, alice_headers) -> None:
    response = client.get(
        CHECKINS,
        params={"suggestions": "true", "lat": TEST_ANCHORAGE.lat, "lng": TEST_ANCHORAGE.lng},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["suggestions"][0]["id"] == TEST_ANCHORAGE.id
    assert data["suggestions"][0]["distanceKm"] == 0
    assert data["withinFence"] is True
    assert data["locationRestricted"] is True


def test_suggestions_require_position(client, alice_headers) -> None:
    response = client.get(CHECKINS, params={"suggestions": "true"}, headers=alice_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_check_out(client, db_session, alice, alice_headers) -> None:
    checkin = make_checkin(db_session, alice.id)

    response = client.delete(CHECKINS, headers=alice_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}
    db_session.refresh(checkin)
    assert not checkin.is_active


def test_verify_inside_fence(client, db_session, alice, alice_headers) -> None:
    make_checkin(db_session, alice.id)

    response = client.post(
        f"{CHECKINS}/verify",
        json={"gpsLat": TEST_ANCHORAGE.lat, "gpsLng": TEST_ANCHORAGE.lng},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["checkin"]["isActive"] is True
    assert "movedAway" not in data


def test_verify_moved_away(client, db_session, alice, alice_headers) -> None:
    make_checkin(db_session, alice.id)

    response = client.post(
        f"{CHECKINS}/verify",
        json={"gpsLat": 18.7267, "gpsLng": -64.3333},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["movedAway"] is True
    assert data["distanceKm"] > 9.3


def test_verify_outside_fence_checks_out(client, db_session, alice, alice_headers) -> None:
    checkin = make_checkin(db_session, alice.id)

    response = client.post(
        f"{CHECKINS}/verify",
        json={"gpsLat": 17.9, "gpsLng": TEST_ANCHORAGE.lng},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    data = response.json()
    assert data["checkedOut"] is True
    assert data["error"]
    db_session.refresh(checkin)
    assert not checkin.is_active


def test_verify_without_checkin(client, alice_headers) -> None:
    response = client.post(
        f"{CHECKINS}/verify",
        json={"gpsLat": TEST_ANCHORAGE.lat, "gpsLng": TEST_ANCHORAGE.lng},
        headers=alice_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "No active check-in"}


def test_verify_rejects_string_coordinates(client, db_session, alice, alice_headers) -> None:
    checkin = make_checkin(db_session, alice.id)

    response = client.post(
        f"{CHECKINS}/verify",
        json={"gpsLat": str(TEST_ANCHORAGE.lat), "gpsLng": str(TEST_ANCHORAGE.lng)},
        headers=alice_headers,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    db_session.refresh(checkin)
    assert checkin.is_active
