# tests/test_request_lifecycle.py

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from commlink.core.errors import AlreadyAccepted, Forbidden, InvalidArgument, NotFound
from commlink.helprequests.request_models import Caller, Role


def test_create_request_starts_unaccepted(state, people, clock) -> None:
    req = state.lifecycle.create_request(people.r1.id)

    assert req.requester_id == "r1"
    assert req.created_at == clock.now()
    assert req.accepted_by is None
    assert req.accepted_at is None
    assert req.responded is False


def test_create_request_requires_requester_id(state) -> None:
    with pytest.raises(InvalidArgument):
        state.lifecycle.create_request("")


def test_accept_sets_acceptor_and_timestamp(state, people, clock) -> None:
    req = state.lifecycle.create_request(people.r1.id)
    clock.advance(minutes=1)

    accepted = state.lifecycle.accept_request(req.id, people.b1.id)

    assert accepted.accepted_by == "b1"
    assert accepted.accepted_at == clock.now()
    assert accepted.responded is False


def test_accept_missing_request_is_not_found(state, people) -> None:
    with pytest.raises(NotFound) as exc:
        state.lifecycle.accept_request(12345, people.b1.id)
    assert exc.value.status_code == 404


def test_second_accept_fails_and_acceptor_never_changes(state, people) -> None:
    req = state.lifecycle.create_request(people.r1.id)
    state.lifecycle.accept_request(req.id, people.b1.id)

    with pytest.raises(AlreadyAccepted):
        state.lifecycle.accept_request(req.id, people.b2.id)
    with pytest.raises(AlreadyAccepted):
        state.lifecycle.accept_request(req.id, people.b1.id)

    stored = state.store.find_request_by_id(req.id)
    assert stored.accepted_by == "b1"


def test_concurrent_accepts_have_exactly_one_winner(state, people) -> None:
    req = state.lifecycle.create_request(people.r1.id)
    responders = [f"resp-{i}" for i in range(10)]

    def attempt(responder_id: str) -> str:
        try:
            state.lifecycle.accept_request(req.id, responder_id)
            return "ok"
        except AlreadyAccepted:
            return "lost"

    with ThreadPoolExecutor(max_workers=10) as pool:
        outcomes = list(pool.map(attempt, responders))

    assert outcomes.count("ok") == 1
    assert outcomes.count("lost") == 9
    winner = responders[outcomes.index("ok")]
    assert state.store.find_request_by_id(req.id).accepted_by == winner


def test_requester_cannot_message_before_acceptance(state, people) -> None:
    req = state.lifecycle.create_request(people.r1.id)

    with pytest.raises(Forbidden):
        state.lifecycle.send_message(req.id, people.r1, "anyone there?")


def test_other_requester_cannot_message(state, people) -> None:
    req = state.lifecycle.create_request(people.r1.id)
    state.lifecycle.accept_request(req.id, people.b1.id)

    with pytest.raises(Forbidden):
        state.lifecycle.send_message(req.id, Caller("r2", Role.REQUESTER), "hi")


def test_non_acceptor_responder_cannot_message(state, people) -> None:
    req = state.lifecycle.create_request(people.r1.id)

    with pytest.raises(Forbidden):
        state.lifecycle.send_message(req.id, people.b1, "not accepted yet")

    state.lifecycle.accept_request(req.id, people.b1.id)
    with pytest.raises(Forbidden) as exc:
        state.lifecycle.send_message(req.id, people.b2, "me too")
    assert exc.value.status_code == 403


def test_requester_id_used_with_responder_role_is_rejected(state, people) -> None:
    req = state.lifecycle.create_request(people.r1.id)
    state.lifecycle.accept_request(req.id, people.b1.id)

    with pytest.raises(Forbidden):
        state.lifecycle.send_message(req.id, Caller(people.r1.id, Role.RESPONDER), "spoof")


def test_send_message_validation(state, people) -> None:
    req = state.lifecycle.create_request(people.r1.id)
    state.lifecycle.accept_request(req.id, people.b1.id)

    with pytest.raises(InvalidArgument):
        state.lifecycle.send_message(req.id, people.b1, "   ")
    with pytest.raises(NotFound):
        state.lifecycle.send_message(999, people.b1, "hello")


def test_responded_flip_is_idempotent(state, people) -> None:
    req = state.lifecycle.create_request(people.r1.id)
    state.lifecycle.accept_request(req.id, people.b1.id)

    state.lifecycle.send_message(req.id, people.r1, "please help")
    assert state.store.find_request_by_id(req.id).responded is False

    state.lifecycle.send_message(req.id, people.b1, "on it")
    assert state.store.find_request_by_id(req.id).responded is True

    msg = state.lifecycle.send_message(req.id, people.b1, "still here")
    assert msg.sender_role is Role.RESPONDER
    assert state.store.find_request_by_id(req.id).responded is True


def test_list_messages_ordering_and_access(state, people, clock) -> None:
    req = state.lifecycle.create_request(people.r1.id)
    state.lifecycle.accept_request(req.id, people.b1.id)

    state.lifecycle.send_message(req.id, people.r1, "one")
    state.lifecycle.send_message(req.id, people.b1, "two")
    clock.advance(seconds=5)
    state.lifecycle.send_message(req.id, people.r1, "three")

    for caller in (people.r1, people.b1):
        msgs = state.lifecycle.list_messages(req.id, caller)
        assert [m.content for m in msgs] == ["one", "two", "three"]

    with pytest.raises(Forbidden):
        state.lifecycle.list_messages(req.id, people.b2)
    with pytest.raises(Forbidden):
        state.lifecycle.list_messages(req.id, Caller("r2", Role.REQUESTER))
    with pytest.raises(NotFound):
        state.lifecycle.list_messages(999, people.r1)


def test_dashboard_listings(state, people) -> None:
    first = state.lifecycle.create_request(people.r1.id)
    second = state.lifecycle.create_request(people.r1.id)
    state.lifecycle.accept_request(first.id, people.b1.id)

    assert [r.id for r in state.lifecycle.list_pending(people.b2)] == [second.id]
    assert [r.id for r in state.lifecycle.list_sent(people.r1)] == [first.id]
    assert [r.id for r in state.lifecycle.list_accepted(people.b1)] == [first.id]
    assert state.lifecycle.list_accepted(people.b2) == []

    with pytest.raises(Forbidden):
        state.lifecycle.list_pending(people.r1)
    with pytest.raises(Forbidden):
        state.lifecycle.list_sent(people.b1)


def test_role_parse_is_closed() -> None:
    assert Role.parse("A") is Role.REQUESTER
    assert Role.parse("responder") is Role.RESPONDER
    assert Role.parse(Role.RESPONDER) is Role.RESPONDER
    with pytest.raises(InvalidArgument):
        Role.parse("C")
    with pytest.raises(InvalidArgument):
        Role.parse(None)
