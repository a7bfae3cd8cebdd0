# src/commlink/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The lifecycle engine and the reminder scheduler depend on Protocols instead of
concrete implementations. This keeps storage/notification swappable and makes
testing easier (frozen clock, recording notifier).
"""

from typing import Awaitable, Protocol

from ..helprequests.request_models import Message, Request, Role, User


class Clock(Protocol):
    """Current time as epoch seconds."""
    def now(self) -> float: ...


class Notifier(Protocol):
    """
    Delivers one reminder to one recipient.

    Returns True on delivery, False on a handled failure or an explicit skip
    (empty recipient_address). The scheduler bounds every call with a timeout.
    """

    def notify(self, recipient_address: str, subject: str, body: str) -> Awaitable[bool]: ...


class UserDirectory(Protocol):
    def find_user_by_id(self, user_id: str) -> User | None: ...


class RequestRepo(Protocol):
    # Lifecycle API
    def create_request(self, *, requester_id: str, created_at: float) -> Request: ...
    def find_request_by_id(self, request_id: int) -> Request | None: ...
    def conditionally_set_accepted(
            self,
            request_id: int,
            *,
            responder_id: str,
            accepted_at: float,
    ) -> bool: ...
    def mark_responded(self, request_id: int) -> bool: ...

    # Scheduler / listing API
    def find_requests(
            self,
            *,
            accepted: bool | None = None,
            responded: bool | None = None,
            accepted_before: float | None = None,
            requester_id: str | None = None,
            accepted_by: str | None = None,
            limit: int | None = None,
    ) -> list[Request]: ...

    # Messages
    def create_message(
            self,
            *,
            request_id: int,
            sender_id: str,
            sender_role: Role,
            content: str,
            created_at: float,
    ) -> Message: ...
    def find_messages_by_request(self, request_id: int) -> list[Message]: ...
    def delete_messages_where(self, request_id: int, sender_role: Role) -> int: ...
