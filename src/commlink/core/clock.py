# src/commlink/core/clock.py

from __future__ import annotations

import time
from datetime import datetime, timezone


class SystemClock:
    """Wall-clock time as epoch seconds."""

    def now(self) -> float:
        return time.time()


class FrozenClock:
    """
    Manually driven clock for deterministic runs (tests, replays).

    Time only moves when set() or advance() is called.
    """

    def __init__(self, now_ts: float | None = None) -> None:
        self._now = float(time.time() if now_ts is None else now_ts)

    def now(self) -> float:
        return self._now

    def set(self, now_ts: float) -> None:
        self._now = float(now_ts)

    def advance(self, *, seconds: float = 0.0, minutes: float = 0.0) -> float:
        self._now += float(seconds) + float(minutes) * 60.0
        return self._now


def iso_utc(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(timespec="seconds")
