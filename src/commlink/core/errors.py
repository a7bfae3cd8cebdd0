# src/commlink/core/errors.py

"""
Error kinds surfaced by the core.

Lifecycle errors are deterministic rejections: they propagate to the caller
(the host HTTP layer maps `status_code`) and are never retried.

Scheduler errors are operational: NotifierFailure is per-recipient and never
leaves the reminder pass, StoreFailure aborts the current run.
"""

from __future__ import annotations


class CommlinkError(Exception):
    """Base class for all commlink errors."""


class LifecycleError(CommlinkError):
    status_code: int = 400


class NotFound(LifecycleError):
    status_code = 404


class Forbidden(LifecycleError):
    status_code = 403


class AlreadyAccepted(LifecycleError):
    status_code = 409


class InvalidArgument(LifecycleError):
    status_code = 400


class SchedulerError(CommlinkError):
    pass


class NotifierFailure(SchedulerError):
    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(f"notify failed recipient={recipient}: {reason}")
        self.recipient = recipient
        self.reason = reason


class StoreFailure(SchedulerError):
    pass
