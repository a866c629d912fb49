# tests/services/test_blocklist.py
"""Tests for the block-list guard."""

import pytest

from reef_connect.core.errors import AlreadyBlocked, InvalidOperation, NotFound
from reef_connect.models import BlockedUser
from reef_connect.services import blocklist

from tests.helpers import make_profile


def test_block_is_symmetric(db_session, alice, bob) -> None:
    blocklist.block(db_session, alice.id, bob.id)

    assert blocklist.is_blocked(db_session, alice.id, bob.id)
    assert blocklist.is_blocked(db_session, bob.id, alice.id)


def test_unrelated_users_are_not_blocked(db_session, alice, bob) -> None:
    carol = make_profile(db_session, "Carol")
    blocklist.block(db_session, alice.id, bob.id)

    assert not blocklist.is_blocked(db_session, alice.id, carol.id)
    assert not blocklist.is_blocked(db_session, carol.id, bob.id)


def test_blocked_counterparts_covers_both_directions(db_session, alice, bob) -> None:
    carol = make_profile(db_session, "Carol")
    blocklist.block(db_session, alice.id, bob.id)
    blocklist.block(db_session, carol.id, alice.id)

    assert blocklist.blocked_counterparts(db_session, alice.id) == {bob.id, carol.id}
    assert blocklist.blocked_counterparts(db_session, bob.id) == {alice.id}


def test_cannot_block_yourself(db_session, alice) -> None:
    with pytest.raises(InvalidOperation):
        blocklist.block(db_session, alice.id, alice.id)


def test_cannot_block_unknown_user(db_session, alice) -> None:
    with pytest.raises(NotFound):
        blocklist.block(db_session, alice.id, "no-such-user")


def test_duplicate_block_is_rejected(db_session, alice, bob) -> None:
    blocklist.block(db_session, alice.id, bob.id)

    with pytest.raises(AlreadyBlocked):
        blocklist.block(db_session, alice.id, bob.id)
    assert db_session.query(BlockedUser).count() == 1


def test_concurrent_duplicate_block_is_rejected(db_session, alice, bob, monkeypatch) -> None:
    """An edge inserted between the lookup and the insert still reports AlreadyBlocked."""
    blocklist.block(db_session, alice.id, bob.id)
    monkeypatch.setattr(blocklist, "_find_edge", lambda db, blocker_id, blocked_id: None)

    with pytest.raises(AlreadyBlocked):
        blocklist.block(db_session, alice.id, bob.id)

    assert db_session.query(BlockedUser).count() == 1
    assert blocklist.is_blocked(db_session, alice.id, bob.id)


def test_reverse_block_is_a_separate_edge(db_session, alice, bob) -> None:
    blocklist.block(db_session, alice.id, bob.id)
    blocklist.block(db_session, bob.id, alice.id)

    assert db_session.query(BlockedUser).count() == 2


def test_unblock_removes_only_own_edge(db_session, alice, bob) -> None:
    blocklist.block(db_session, alice.id, bob.id)
    blocklist.block(db_session, bob.id, alice.id)

    blocklist.unblock(db_session, alice.id, bob.id)

    # Bob's block still hides the pair from each other
    assert blocklist.is_blocked(db_session, alice.id, bob.id)
    assert [edge.blocked_id for edge in blocklist.list_blocked(db_session, bob.id)] == [alice.id]
    assert blocklist.list_blocked(db_session, alice.id) == []


def test_unblock_missing_edge_succeeds(db_session, alice, bob) -> None:
    blocklist.unblock(db_session, alice.id, bob.id)
    assert not blocklist.is_blocked(db_session, alice.id, bob.id)


def test_list_blocked_returns_own_edges(db_session, alice, bob) -> None:
    carol = make_profile(db_session, "Carol")
    blocklist.block(db_session, alice.id, bob.id)
    blocklist.block(db_session, alice.id, carol.id)
    blocklist.block(db_session, carol.id, alice.id)

    edges = blocklist.list_blocked(db_session, alice.id)
    assert {edge.blocked_id for edge in edges} == {bob.id, carol.id}
    assert all(edge.blocker_id == alice.id for edge in edges)
