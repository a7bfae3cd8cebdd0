# src/commlink/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (stores/notifier/clock),
- builds the lifecycle engine and the reminder scheduler on top of them.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.clock import SystemClock
from ..core.ports import Clock, Notifier
from ..core.state import AppState
from ..helprequests.reminder_scheduler import ReminderScheduler
from ..helprequests.request_lifecycle import RequestLifecycle
from ..helprequests.request_store import RequestStore
from ..helprequests.user_store import UserStore
from ..notify.notifier import build_notifier

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    clock: Clock | None = None,
    notifier: Notifier | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and clock/notifier) injectable makes the app easier to test
    and avoids hidden global config reads. If settings is None, falls back to
    get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    clock = clock or SystemClock()
    notifier = notifier or build_notifier(settings)

    store = RequestStore(settings.db_path)
    users = UserStore(settings.db_path)

    lifecycle = RequestLifecycle(store, clock)
    scheduler = ReminderScheduler(
        store,
        users,
        notifier,
        clock,
        interval_seconds=settings.reminder_interval_seconds,
        response_window_minutes=settings.response_window_minutes,
        notify_timeout_seconds=settings.notify_timeout_seconds,
    )

    logger.debug("AppState wired db=%s notifier=%s", settings.db_path, type(notifier).__name__)

    return AppState(
        settings=settings,
        clock=clock,
        store=store,
        users=users,
        notifier=notifier,
        lifecycle=lifecycle,
        scheduler=scheduler,
    )
