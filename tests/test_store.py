import dataclasses
import threading
from datetime import timedelta

import pytest

from app.core.security import FRIEND_CODE_ALPHABET, FRIEND_CODE_LENGTH
from app.db import store as store_module
from app.db.store import DirectoryStore, FriendCodeExhaustedError


def test_create_user_assigns_unique_indexed_friend_codes(store):
    users = [store.create_user(f"sub-{i}") for i in range(200)]

    codes = [u.friend_code for u in users]
    assert len(set(codes)) == len(codes)
    for user in users:
        assert len(user.friend_code) == FRIEND_CODE_LENGTH
        assert set(user.friend_code) <= set(FRIEND_CODE_ALPHABET)
        assert store.get_user_by_friend_code(user.friend_code) == user


def test_create_user_defaults(store, clock):
    user = store.create_user("sub-1")

    assert user.subject == "sub-1"
    assert user.display_name.startswith("User")
    assert user.profile_image is None
    assert user.created_at == clock.now
    assert user.updated_at == clock.now


def test_lookup_by_id_and_subject(store):
    a = store.create_user("sub-a")
    store.create_user("sub-b")

    assert store.get_user_by_id(a.id) == a
    assert store.get_user_by_subject("sub-a") == a
    assert store.get_user_by_subject("missing") is None
    assert store.get_user_by_id("missing") is None
    assert store.get_user_by_friend_code("ZZZZZZZ") is None


def test_get_or_create_user_keeps_one_user_per_subject(store):
    first, created = store.get_or_create_user("sub-1")
    again, created_again = store.get_or_create_user("sub-1")

    assert created is True
    assert created_again is False
    assert again.id == first.id
    assert store.stats()["users"] == 1


def test_update_user_merges_mutable_fields_and_bumps_updated_at(store, clock):
    user = store.create_user("sub-1")
    clock.advance(minutes=5)

    updated = store.update_user(user.id, display_name="Alice")
    assert updated.display_name == "Alice"
    assert updated.profile_image is None
    assert updated.friend_code == user.friend_code
    assert updated.updated_at == clock.now
    assert updated.created_at == user.created_at

    updated = store.update_user(user.id, profile_image="https://img.example/a.png")
    assert updated.display_name == "Alice"
    assert updated.profile_image == "https://img.example/a.png"
    assert store.get_user_by_id(user.id) == updated
    assert store.get_user_by_friend_code(user.friend_code) == updated


def test_update_unknown_user_returns_none(store):
    assert store.update_user("nope", display_name="X") is None


def test_session_roundtrip_and_lazy_expiry(store, clock):
    user = store.create_user("sub-1")
    token = store.create_session(user.id)

    session = store.get_session(token)
    assert session is not None
    assert session.user_id == user.id
    assert session.expires_at == clock.now + timedelta(hours=24)

    clock.advance(hours=23, minutes=59)
    assert store.get_session(token) is not None

    clock.advance(minutes=1)
    assert store.get_session(token) is None
    assert store.stats()["sessions"] == 0

    # Still gone after the clock is wound back.
    clock.advance(hours=-1)
    assert store.get_session(token) is None


def test_multiple_sessions_per_user(store):
    user = store.create_user("sub-1")
    t1 = store.create_session(user.id)
    t2 = store.create_session(user.id)

    assert t1 != t2
    assert store.get_session(t1).user_id == user.id
    assert store.get_session(t2).user_id == user.id


def test_delete_session_is_idempotent(store):
    user = store.create_user("sub-1")
    token = store.create_session(user.id)

    store.delete_session(token)
    store.delete_session(token)
    store.delete_session("never-existed")

    assert store.get_session(token) is None


def test_friend_request_scenario(store):
    user_1 = store.create_user("sub-1")
    user_2 = store.create_user("sub-2")
    assert user_1.friend_code != user_2.friend_code

    request = store.create_friend_request(user_2.id, user_1.friend_code)
    assert request is not None
    assert request.status == "pending"
    assert request.from_user_id == user_2.id
    assert request.to_user_id == user_1.id
    assert request.friend_code == user_1.friend_code
    assert store.get_friend_requests(user_1.id) == [request]
    assert store.get_friend_requests(user_2.id) == []

    assert store.update_friend_request(request.id, "accepted") is True

    assert store.get_friends(user_1.id) == [user_2]
    assert store.get_friends(user_2.id) == [user_1]
    assert store.get_friend_requests(user_1.id) == []


def test_reverse_direction_request_returns_same_record(store):
    a = store.create_user("sub-a")
    b = store.create_user("sub-b")

    first = store.create_friend_request(a.id, b.friend_code)
    second = store.create_friend_request(b.id, a.friend_code)
    repeat = store.create_friend_request(a.id, b.friend_code)

    assert first is second
    assert first is repeat
    assert store.stats()["friend_requests"] == 1


def test_self_request_returns_none(store):
    a = store.create_user("sub-a")

    assert store.create_friend_request(a.id, a.friend_code) is None
    assert store.stats()["friend_requests"] == 0


def test_unknown_code_returns_none(store):
    a = store.create_user("sub-a")

    assert store.create_friend_request(a.id, "NOPE00") is None


def test_request_after_acceptance_returns_none(store):
    a = store.create_user("sub-a")
    b = store.create_user("sub-b")
    request = store.create_friend_request(a.id, b.friend_code)
    store.update_friend_request(request.id, "accepted")

    assert store.create_friend_request(a.id, b.friend_code) is None
    assert store.create_friend_request(b.id, a.friend_code) is None


def test_rejected_request_blocks_new_requests(store):
    a = store.create_user("sub-a")
    b = store.create_user("sub-b")
    request = store.create_friend_request(a.id, b.friend_code)

    assert store.update_friend_request(request.id, "rejected") is True
    assert store.get_friend_requests(b.id) == []
    assert store.get_friends(a.id) == []

    again = store.create_friend_request(a.id, b.friend_code)
    assert again.id == request.id
    assert again.status == "rejected"
    assert request.status == "pending"


def test_update_unknown_request_has_no_side_effects(store):
    store.create_user("sub-a")
    before = store.stats()

    assert store.update_friend_request("missing", "accepted") is False
    assert store.stats() == before


def test_resolved_request_cannot_transition_again(store):
    a = store.create_user("sub-a")
    b = store.create_user("sub-b")
    request = store.create_friend_request(a.id, b.friend_code)

    assert store.update_friend_request(request.id, "accepted") is True
    assert store.update_friend_request(request.id, "accepted") is False
    assert store.update_friend_request(request.id, "rejected") is False

    assert store.get_friend_request(request.id).status == "accepted"
    assert store.stats()["friendships"] == 2
    assert store.get_friends(a.id) == [b]


def test_returned_requests_cannot_be_mutated_behind_the_store(store):
    a = store.create_user("sub-a")
    b = store.create_user("sub-b")
    request = store.create_friend_request(a.id, b.friend_code)

    with pytest.raises(dataclasses.FrozenInstanceError):
        request.status = "accepted"
    for listed in store.get_friend_requests(b.id):
        with pytest.raises(dataclasses.FrozenInstanceError):
            listed.status = "rejected"

    assert store.get_friend_request(request.id).status == "pending"
    assert store.get_friends(b.id) == []


def test_update_friend_request_rejects_unknown_status(store):
    a = store.create_user("sub-a")
    b = store.create_user("sub-b")
    request = store.create_friend_request(a.id, b.friend_code)

    with pytest.raises(ValueError):
        store.update_friend_request(request.id, "pending")


def test_get_friends_drops_dangling_users(store):
    a = store.create_user("sub-a")
    b = store.create_user("sub-b")
    request = store.create_friend_request(a.id, b.friend_code)
    store.update_friend_request(request.id, "accepted")

    del store._users[b.id]

    assert store.get_friends(a.id) == []


def test_friend_code_generation_is_bounded(clock, monkeypatch):
    store = DirectoryStore(friend_code_max_attempts=3, clock=clock)
    monkeypatch.setattr(store_module, "make_friend_code", lambda: "AAAAAA")

    store.create_user("sub-1")
    with pytest.raises(FriendCodeExhaustedError):
        store.create_user("sub-2")
    assert store.stats()["users"] == 1


def test_friend_code_generation_retries_collisions(clock, monkeypatch):
    store = DirectoryStore(clock=clock)
    codes = iter(["AAAAAA", "AAAAAA", "AAAAAA", "BBBBBB"])
    monkeypatch.setattr(store_module, "make_friend_code", lambda: next(codes))

    first = store.create_user("sub-1")
    second = store.create_user("sub-2")

    assert first.friend_code == "AAAAAA"
    assert second.friend_code == "BBBBBB"


def test_concurrent_requests_create_one_record(store):
    a = store.create_user("sub-a")
    b = store.create_user("sub-b")
    results = []

    def send(from_id, code):
        results.append(store.create_friend_request(from_id, code))

    threads = [
        threading.Thread(target=send, args=(a.id, b.friend_code) if i % 2 else (b.id, a.friend_code))
        for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len({id(r) for r in results}) == 1
    assert store.stats()["friend_requests"] == 1
