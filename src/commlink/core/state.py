# src/commlink/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..helprequests.reminder_scheduler import ReminderScheduler
from ..helprequests.request_lifecycle import RequestLifecycle
from .ports import Clock, Notifier, RequestRepo, UserDirectory


@dataclass
class AppState:
    """
    Runtime dependencies shared by the host process.

    Concrete implementations are wired by the bootstrap layer (composition root).
    The lifecycle engine and the scheduler never reference each other; they
    share the same store.
    """

    settings: Any

    clock: Clock
    store: RequestRepo
    users: UserDirectory
    notifier: Notifier

    lifecycle: RequestLifecycle
    scheduler: ReminderScheduler
