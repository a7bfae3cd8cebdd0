# src/commlink/helprequests/request_lifecycle.py

from __future__ import annotations

"""
Request lifecycle engine.

Owns the state machine of a help request:

    created -> accepted (exactly once) -> responded (first reply by the acceptor)

and the ownership rules that gate message exchange. Callers arrive
pre-authenticated as a Caller(id, role); credential checks belong to the host.

Expiry is not handled here. The reminder scheduler derives it from accepted_at
on every run, and the two only meet through store state.
"""

import logging
from typing import assert_never

from ..core.errors import AlreadyAccepted, Forbidden, InvalidArgument, NotFound
from ..core.ports import Clock, RequestRepo
from .request_models import Caller, Message, Request, Role

logger = logging.getLogger(__name__)


class RequestLifecycle:
    def __init__(self, store: RequestRepo, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    def _get_request(self, request_id: int) -> Request:
        req = self._store.find_request_by_id(request_id)
        if req is None:
            raise NotFound(f"request {request_id} not found")
        return req

    # ---- state transitions ----

    def create_request(self, requester_id: str) -> Request:
        if not requester_id or not str(requester_id).strip():
            raise InvalidArgument("requester_id is required")

        req = self._store.create_request(requester_id=requester_id, created_at=self._clock.now())
        logger.info("Request %s created by %s", req.id, requester_id)
        return req

    def accept_request(self, request_id: int, responder_id: str) -> Request:
        """
        First acceptance wins.

        The store's conditional write is the only mutual-exclusion point; a
        lost race surfaces as AlreadyAccepted.
        """
        if not responder_id or not str(responder_id).strip():
            raise InvalidArgument("responder_id is required")

        self._get_request(request_id)

        now_ts = self._clock.now()
        won = self._store.conditionally_set_accepted(
            request_id,
            responder_id=responder_id,
            accepted_at=now_ts,
        )
        if not won:
            logger.info("Request %s accept rejected for %s: already accepted", request_id, responder_id)
            raise AlreadyAccepted(f"request {request_id} already accepted")

        logger.info("Request %s accepted by %s", request_id, responder_id)
        return self._get_request(request_id)

    def send_message(self, request_id: int, caller: Caller, content: str) -> Message:
        text = (content or "").strip()
        if not text:
            raise InvalidArgument("message content is required")

        req = self._get_request(request_id)

        if caller.role is Role.REQUESTER:
            if req.requester_id != caller.id:
                raise Forbidden("not your request")
            if not req.is_accepted:
                raise Forbidden("request not accepted yet")
        elif caller.role is Role.RESPONDER:
            if req.accepted_by is None or req.accepted_by != caller.id:
                raise Forbidden("not your accepted request")
            # Stops further reminders; only the first reply flips it.
            if not req.responded and self._store.mark_responded(request_id):
                logger.info("Request %s responded by %s", request_id, caller.id)
        else:
            assert_never(caller.role)

        return self._store.create_message(
            request_id=request_id,
            sender_id=caller.id,
            sender_role=caller.role,
            content=text,
            created_at=self._clock.now(),
        )

    # ---- reads ----

    def list_messages(self, request_id: int, caller: Caller) -> list[Message]:
        req = self._get_request(request_id)

        if caller.role is Role.REQUESTER:
            allowed = req.requester_id == caller.id
        elif caller.role is Role.RESPONDER:
            allowed = req.accepted_by is not None and req.accepted_by == caller.id
        else:
            assert_never(caller.role)

        if not allowed:
            raise Forbidden("not a participant of this request")

        return self._store.find_messages_by_request(request_id)

    def list_pending(self, caller: Caller) -> list[Request]:
        """Open requests a Responder could accept."""
        self._require_role(caller, Role.RESPONDER, "only responders can view pending requests")
        return self._store.find_requests(accepted=False)

    def list_sent(self, caller: Caller) -> list[Request]:
        """The Requester's own requests that someone has accepted."""
        self._require_role(caller, Role.REQUESTER, "only requesters can view sent requests")
        return self._store.find_requests(accepted=True, requester_id=caller.id)

    def list_accepted(self, caller: Caller) -> list[Request]:
        """Requests the Responder has accepted."""
        self._require_role(caller, Role.RESPONDER, "only responders can view accepted requests")
        return self._store.find_requests(accepted_by=caller.id)

    @staticmethod
    def _require_role(caller: Caller, role: Role, reason: str) -> None:
        if caller.role is not role:
            raise Forbidden(reason)
