# src/commlink/helprequests/reminder_scheduler.py

from __future__ import annotations

"""
Reminder & expiry scheduler.

A small polling loop. Every run takes one snapshot of "now" and does two
independent passes over the request store:

1. Reminders: accepted, not yet responded, still inside the response window
   -> notify the responder. Notifier failures are per recipient.
2. Expiry cleanup: accepted at least one window ago -> delete the requester's
   messages for that request. Responder messages and the request stay.

Expiry is derived from accepted_at on every run; nothing is persisted about it,
so a rerun (or a retried run after a StoreFailure) is naturally idempotent.

Runs never overlap: the loop awaits each run before sleeping, and run_once()
refuses to start while another run is in flight.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from ..core.clock import iso_utc
from ..core.errors import NotifierFailure, StoreFailure
from ..core.ports import Clock, Notifier, RequestRepo, UserDirectory
from .request_models import Request, Role

logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "Reminder: please respond to the accepted request"


@dataclass(slots=True)
class SchedulerRunReport:
    now_ts: float

    reminders_considered: int = 0
    reminders_sent: int = 0
    reminders_failed: int = 0
    reminders_skipped: int = 0

    requests_expired: int = 0
    messages_deleted: int = 0

    failures: list[NotifierFailure] = field(default_factory=list)


def build_reminder_body(
    *,
    responder_name: str,
    requester_name: str,
    accepted_at: float,
    window_minutes: int,
) -> str:
    return (
        f"Hello {responder_name},\n\n"
        f"You accepted a request from {requester_name} at {iso_utc(accepted_at)}. "
        f"Please respond within {window_minutes} minutes.\n\n"
        "Thanks."
    )


class ReminderScheduler:
    def __init__(
        self,
        store: RequestRepo,
        users: UserDirectory,
        notifier: Notifier,
        clock: Clock,
        *,
        interval_seconds: float = 300.0,
        response_window_minutes: int = 60,
        notify_timeout_seconds: float = 10.0,
    ) -> None:
        self._store = store
        self._users = users
        self._notifier = notifier
        self._clock = clock

        self.interval_seconds = max(0.05, float(interval_seconds))
        self.response_window_minutes = max(1, int(response_window_minutes))
        self.notify_timeout_seconds = max(0.01, float(notify_timeout_seconds))

        self.runs_completed = 0
        self.last_report: SchedulerRunReport | None = None

        self._in_run = False
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

    # ---- single run ----

    @property
    def run_in_progress(self) -> bool:
        return self._in_run

    async def run_once(self) -> SchedulerRunReport | None:
        """
        One full run (reminders, then expiry cleanup).

        Returns None if another run is still in flight.
        Raises StoreFailure if the store cannot be read or written; the run is
        abandoned and the next tick starts from a fresh scan.
        """
        if self._in_run:
            logger.warning("Scheduler run skipped: previous run still in progress")
            return None

        self._in_run = True
        try:
            now_ts = self._clock.now()
            report = SchedulerRunReport(now_ts=now_ts)

            await self._reminder_pass(now_ts, report)
            self._expiry_pass(now_ts, report)

            self.runs_completed += 1
            self.last_report = report
            logger.info(
                "Scheduler run done: considered=%s sent=%s failed=%s skipped=%s expired=%s deleted=%s",
                report.reminders_considered,
                report.reminders_sent,
                report.reminders_failed,
                report.reminders_skipped,
                report.requests_expired,
                report.messages_deleted,
            )
            return report
        finally:
            self._in_run = False

    async def _reminder_pass(self, now_ts: float, report: SchedulerRunReport) -> None:
        try:
            candidates = self._store.find_requests(accepted=True, responded=False)
        except Exception as e:
            raise StoreFailure("reminder scan failed") from e

        report.reminders_considered = len(candidates)

        for req in candidates:
            elapsed = req.minutes_since_accepted(now_ts)
            if elapsed is None or not (0 <= elapsed < self.response_window_minutes):
                continue
            await self._send_reminder(req, report)

    async def _send_reminder(self, req: Request, report: SchedulerRunReport) -> None:
        assert req.accepted_by is not None and req.accepted_at is not None

        try:
            responder = self._users.find_user_by_id(req.accepted_by)
            requester = self._users.find_user_by_id(req.requester_id)
        except Exception as e:
            raise StoreFailure(f"user lookup failed for request {req.id}") from e

        if responder is None or not responder.email:
            report.reminders_skipped += 1
            logger.debug("Request %s: responder %s has no contact address", req.id, req.accepted_by)
            return

        body = build_reminder_body(
            responder_name=responder.display_name,
            requester_name=requester.display_name if requester else req.requester_id,
            accepted_at=req.accepted_at,
            window_minutes=self.response_window_minutes,
        )

        failure: NotifierFailure | None = None
        try:
            ok = await asyncio.wait_for(
                self._notifier.notify(responder.email, REMINDER_SUBJECT, body),
                timeout=self.notify_timeout_seconds,
            )
            if not ok:
                failure = NotifierFailure(responder.email, "notifier reported failure")
        except asyncio.TimeoutError:
            failure = NotifierFailure(responder.email, f"timed out after {self.notify_timeout_seconds}s")
        except Exception as e:
            logger.exception("Notifier raised for request %s", req.id)
            failure = NotifierFailure(responder.email, repr(e))

        if failure is not None:
            report.reminders_failed += 1
            report.failures.append(failure)
            logger.warning("Reminder for request %s not delivered: %s", req.id, failure)
            return

        report.reminders_sent += 1
        logger.info("Reminder sent for request %s to %s", req.id, responder.email)

    def _expiry_pass(self, now_ts: float, report: SchedulerRunReport) -> None:
        cutoff = now_ts - self.response_window_minutes * 60.0

        try:
            expired = self._store.find_requests(accepted=True, accepted_before=cutoff)
        except Exception as e:
            raise StoreFailure("expiry scan failed") from e

        report.requests_expired = len(expired)

        for req in expired:
            try:
                deleted = self._store.delete_messages_where(req.id, Role.REQUESTER)
            except Exception as e:
                raise StoreFailure(f"expiry cleanup failed for request {req.id}") from e

            report.messages_deleted += deleted
            if deleted > 0:
                logger.info("Deleted %s expired requester messages for request %s", deleted, req.id)

    # ---- loop lifecycle ----

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Start the periodic loop on the running event loop (idempotent)."""
        if self._task is not None and not self._task.done():
            return self._task
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop(self._stop_event), name="commlink-reminders")
        return self._task

    async def stop(self) -> None:
        """Ask the loop to exit after the current run (if any) and wait for it."""
        task = self._task
        if task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        await task
        self._task = None

    async def _run_loop(self, stop_event: asyncio.Event) -> None:
        logger.info(
            "Reminder scheduler started interval=%ss window=%smin",
            self.interval_seconds,
            self.response_window_minutes,
        )

        while not stop_event.is_set():
            started = time.monotonic()

            try:
                await self.run_once()
            except StoreFailure:
                logger.exception("Scheduler run aborted; next tick rescans")
            except Exception:
                logger.exception("Scheduler run crashed; next tick rescans")

            # An overrunning run defers the next tick instead of overlapping it.
            delay = max(0.0, self.interval_seconds - (time.monotonic() - started))
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        logger.info("Reminder scheduler stopped after %s runs", self.runs_completed)
