# src/commlink/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either:
- runs a single reminder/expiry pass and prints the counters (--once), or
- runs the periodic scheduler until SIGINT/SIGTERM.

The lifecycle engine is a library; HTTP hosts import create_initial_state()
and call state.lifecycle directly.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..core.errors import StoreFailure
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="commlink", description="Request reminder & expiry scheduler")
    parser.add_argument(
        "--once",
        action="store_true",
        help="run a single reminder/expiry pass, print the counters and exit",
    )
    return parser


async def _run_once(state: AppState) -> int:
    try:
        report = await state.scheduler.run_once()
    except StoreFailure:
        logger.exception("Scheduler run failed.")
        return 1

    if report is None:
        return 1

    print(
        f"considered={report.reminders_considered} sent={report.reminders_sent} "
        f"failed={report.reminders_failed} expired={report.requests_expired} "
        f"deleted={report.messages_deleted}"
    )
    return 0


async def _serve(state: AppState) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms (Windows) do not support loop signal handlers.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    state.scheduler.start()
    logger.info("Scheduler running. Press Ctrl+C to stop.")

    try:
        await stop.wait()
    finally:
        logger.info("Shutting down scheduler...")
        await state.scheduler.stop()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    if args.once:
        return asyncio.run(_run_once(state))

    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled (COMMLINK_SCHEDULER_ENABLED=false); nothing to run.")
        return 0

    try:
        asyncio.run(_serve(state))
    except KeyboardInterrupt:
        pass

    logger.info("Bye.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
