# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from commlink.cli.bootstrap import create_initial_state
from commlink.core.clock import FrozenClock
from commlink.core.state import AppState
from commlink.helprequests.request_models import Caller, Role, User

from .fakes import FakeNotifier

T0 = 1_700_000_000.0


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with create_initial_state().

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="commlink-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        db_path=tmp_path / "commlink.sqlite3",
        scheduler_enabled=True,
        reminder_interval_seconds=0.05,
        response_window_minutes=60,
        notify_webhook_url="",
        notify_sender="",
        notify_timeout_seconds=0.2,
    )


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(T0)


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FrozenClock, notifier: FakeNotifier) -> AppState:
    """
    AppState wired with a frozen clock and a recording notifier.

    NOTE: We keep the real SQLite stores here because the atomic accept and
    the scoped cleanup are part of what we want to test.
    """
    return create_initial_state(settings=settings, clock=clock, notifier=notifier)


@pytest.fixture()
def people(state: AppState) -> SimpleNamespace:
    """One requester and two responders registered in the user directory."""
    users = state.users
    r1: User = users.add_user(username="alice", email="alice@example.com", role=Role.REQUESTER, user_id="r1")
    b1: User = users.add_user(username="bob", email="bob@example.com", role=Role.RESPONDER, user_id="b1")
    b2: User = users.add_user(username="carol", email="carol@example.com", role=Role.RESPONDER, user_id="b2")
    return SimpleNamespace(
        r1=Caller(r1.id, Role.REQUESTER),
        b1=Caller(b1.id, Role.RESPONDER),
        b2=Caller(b2.id, Role.RESPONDER),
    )
