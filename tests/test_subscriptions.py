"""Tests for the subscription registry."""
from __future__ import annotations

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy.exc import IntegrityError

from moneyflow.db.models import PushSubscription
from moneyflow.services.subscriptions import SubscriptionRegistry

ENDPOINT = "https://fcm.googleapis.com/fcm/send/device-1"
KEYS = {"p256dh": "client-key", "auth": "secret"}


def test_upsert_is_idempotent(db_session, user_id):
    registry = SubscriptionRegistry(db_session)

    first = registry.upsert(user_id, ENDPOINT, KEYS, user_agent="Firefox")
    second = registry.upsert(user_id, ENDPOINT, KEYS)

    assert first.id == second.id
    assert second.user_agent == "Firefox"
    assert len(registry.list_by_user(user_id)) == 1


def test_upsert_rotates_secrets(db_session, user_id):
    registry = SubscriptionRegistry(db_session)
    registry.upsert(user_id, ENDPOINT, KEYS)

    rotated = registry.upsert(user_id, ENDPOINT, {"p256dh": "new-key", "auth": "new-secret"})

    assert rotated.p256dh == "new-key"
    assert rotated.auth == "new-secret"
    assert db_session.query(PushSubscription).count() == 1


def test_upsert_from_separate_sessions_keeps_one_row(session_factory, user_id):
    for _ in range(2):
        db = session_factory()
        try:
            SubscriptionRegistry(db).upsert(user_id, ENDPOINT, KEYS)
        finally:
            db.close()

    db = session_factory()
    try:
        assert db.query(PushSubscription).filter_by(user_id=user_id).count() == 1
    finally:
        db.close()


def test_same_endpoint_for_different_users(db_session):
    registry = SubscriptionRegistry(db_session)
    alice, bob = uuid.uuid4(), uuid.uuid4()

    registry.upsert(alice, ENDPOINT, KEYS)
    registry.upsert(bob, ENDPOINT, KEYS)

    assert len(registry.list_by_user(alice)) == 1
    assert len(registry.list_by_user(bob)) == 1


@pytest.mark.parametrize(
    ("endpoint", "keys"),
    [("", KEYS), (ENDPOINT, {"p256dh": "only"}), (ENDPOINT, None)],
)
def test_upsert_rejects_incomplete_subscriptions(db_session, user_id, endpoint, keys):
    with pytest.raises(ValueError):
        SubscriptionRegistry(db_session).upsert(user_id, endpoint, keys)


def test_duplicate_rows_are_rejected_by_the_store(db_session, user_id, add_subscription):
    add_subscription(user_id, ENDPOINT)

    db_session.add(PushSubscription(user_id=user_id, endpoint=ENDPOINT, p256dh="k", auth="a"))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_list_by_user_without_subscriptions(db_session, user_id):
    assert SubscriptionRegistry(db_session).list_by_user(user_id) == []


def test_remove_is_idempotent(db_session, user_id, add_subscription):
    add_subscription(user_id, ENDPOINT)
    registry = SubscriptionRegistry(db_session)

    assert registry.remove(user_id, ENDPOINT) == 1
    assert registry.remove(user_id, ENDPOINT) == 0
    assert registry.list_by_user(user_id) == []


def test_remove_only_touches_the_owner(db_session, user_id, add_subscription):
    add_subscription(user_id, ENDPOINT)

    assert SubscriptionRegistry(db_session).remove(uuid.uuid4(), ENDPOINT) == 0
    assert len(SubscriptionRegistry(db_session).list_by_user(user_id)) == 1


def test_remove_by_id_and_remove_all(db_session, user_id, add_subscription):
    first = add_subscription(user_id, ENDPOINT)
    add_subscription(user_id, "https://updates.push.services.mozilla.com/wpush/v2/2")
    add_subscription(user_id, "https://web.push.apple.com/3")
    registry = SubscriptionRegistry(db_session)

    assert registry.remove_by_id(first.id) is True
    assert registry.remove_by_id(first.id) is False
    assert registry.remove_all(user_id) == 2
    assert registry.remove_all(user_id) == 0


def test_concurrent_upserts_keep_one_row(file_session_factory, user_id):
    workers = 8
    barrier = threading.Barrier(workers)

    def register(index: int) -> int:
        db = file_session_factory()
        try:
            barrier.wait()
            keys = {"p256dh": f"client-key-{index}", "auth": f"secret-{index}"}
            return SubscriptionRegistry(db).upsert(user_id, ENDPOINT, keys).id
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=workers) as executor:
        ids = list(executor.map(register, range(workers)))

    assert len(set(ids)) == 1
    db = file_session_factory()
    try:
        rows = db.query(PushSubscription).filter_by(user_id=user_id).all()
        assert len(rows) == 1
        assert rows[0].id == ids[0]
    finally:
        db.close()
