# src/commlink/helprequests/request_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ..core.errors import InvalidArgument


class Role(StrEnum):
    """
    Actor kind.

    Stored as the legacy one-letter codes so existing rows stay readable:
    - "A": Requester, originates a request
    - "B": Responder, accepts a pending request and answers it
    """

    REQUESTER = "A"
    RESPONDER = "B"

    @classmethod
    def parse(cls, raw: str | Role | None) -> Role:
        if isinstance(raw, Role):
            return raw
        s = (raw or "").strip()
        aliases = {
            "a": cls.REQUESTER,
            "requester": cls.REQUESTER,
            "b": cls.RESPONDER,
            "responder": cls.RESPONDER,
        }
        role = aliases.get(s.lower())
        if role is None:
            raise InvalidArgument(f"unknown role: {raw!r}")
        return role


@dataclass(slots=True, frozen=True)
class Caller:
    """Pre-authenticated identity of whoever invokes a lifecycle operation."""

    id: str
    role: Role


@dataclass(slots=True)
class Request:
    id: int
    requester_id: str
    created_at: float

    accepted_by: str | None = None
    accepted_at: float | None = None
    responded: bool = False

    @property
    def is_accepted(self) -> bool:
        return self.accepted_by is not None and self.accepted_at is not None

    def minutes_since_accepted(self, now_ts: float) -> float | None:
        if self.accepted_at is None:
            return None
        return (now_ts - self.accepted_at) / 60.0

    def is_expired(self, now_ts: float, window_minutes: float) -> bool:
        """Expiry is derived, never stored: accepted and the response window has elapsed."""
        elapsed = self.minutes_since_accepted(now_ts)
        return self.is_accepted and elapsed is not None and elapsed >= window_minutes


@dataclass(slots=True)
class Message:
    id: int
    request_id: int
    sender_id: str
    sender_role: Role
    content: str
    created_at: float


@dataclass(slots=True)
class User:
    id: str
    username: str
    email: str
    role: Role
    created_at: float

    @property
    def display_name(self) -> str:
        return self.username or self.email or self.id
