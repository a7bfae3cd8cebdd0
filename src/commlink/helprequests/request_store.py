# src/commlink/helprequests/request_store.py

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any

from .request_models import Message, Request, Role
from .sqlite_base import SQLiteStoreBase

logger = logging.getLogger(__name__)


class RequestStore(SQLiteStoreBase):
    """
    SQLite store for help requests and their messages.

    Write rules:
    - acceptance is a compare-and-swap on accepted_by (only when currently NULL)
    - responded only ever flips 0 -> 1
    - messages are append-only; the only delete is the scoped expiry cleanup
    """

    def __init__(self, db_path: str | Path = "commlink.sqlite3") -> None:
        super().__init__(db_path)
        try:
            total = self.count_requests()
        except Exception:
            total = -1
        logger.info("RequestStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS requests (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    requester_id TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    accepted_by TEXT,
                    accepted_at REAL,
                    responded INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    request_id INTEGER NOT NULL,
                    sender_id TEXT NOT NULL,
                    sender_role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    FOREIGN KEY (request_id) REFERENCES requests(id)
                )
                """
            )

            self._add_missing_columns(
                cur,
                "requests",
                {
                    "accepted_by": "TEXT",
                    "accepted_at": "REAL",
                    "responded": "INTEGER NOT NULL DEFAULT 0",
                },
            )

            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_requests_accepted "
                "ON requests(accepted_by, responded, accepted_at)"
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_requests_requester ON requests(requester_id)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_messages_request "
                "ON messages(request_id, sender_role, created_at)"
            )

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_request(row: sqlite3.Row) -> Request:
        return Request(
            id=int(row["id"]),
            requester_id=str(row["requester_id"]),
            created_at=float(row["created_at"] or 0.0),
            accepted_by=row["accepted_by"],
            accepted_at=float(row["accepted_at"]) if row["accepted_at"] is not None else None,
            responded=bool(row["responded"]),
        )

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> Message:
        return Message(
            id=int(row["id"]),
            request_id=int(row["request_id"]),
            sender_id=str(row["sender_id"]),
            sender_role=Role(row["sender_role"]),
            content=str(row["content"] or ""),
            created_at=float(row["created_at"] or 0.0),
        )

    # ---- requests ----

    def count_requests(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM requests")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def create_request(self, *, requester_id: str, created_at: float) -> Request:
        if not requester_id or not requester_id.strip():
            raise ValueError("requester_id is required")

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "INSERT INTO requests(requester_id, created_at, responded) VALUES (?, ?, 0)",
                (requester_id, float(created_at)),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for requests insert")
            request_id = int(rowid)
            logger.debug("Request added id=%s requester=%s", request_id, requester_id)
            return Request(id=request_id, requester_id=requester_id, created_at=float(created_at))
        finally:
            conn.close()

    def find_request_by_id(self, request_id: int) -> Request | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM requests WHERE id = ?", (int(request_id),))
            row = cur.fetchone()
            return self._row_to_request(row) if row else None
        finally:
            conn.close()

    def conditionally_set_accepted(
        self,
        request_id: int,
        *,
        responder_id: str,
        accepted_at: float,
    ) -> bool:
        """
        Atomically transitions:
          accepted_by IS NULL -> accepted_by = responder_id, accepted_at = accepted_at

        Returns True iff this call performed the transition.
        """
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE requests
                SET accepted_by = ?, accepted_at = ?
                WHERE id = ?
                  AND accepted_by IS NULL
                """,
                (responder_id, float(accepted_at), int(request_id)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def mark_responded(self, request_id: int) -> bool:
        """One-way flip responded 0 -> 1. Returns True only for the call that flipped it."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE requests
                SET responded = 1
                WHERE id = ?
                  AND accepted_by IS NOT NULL
                  AND responded = 0
                """,
                (int(request_id),),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def find_requests(
        self,
        *,
        accepted: bool | None = None,
        responded: bool | None = None,
        accepted_before: float | None = None,
        requester_id: str | None = None,
        accepted_by: str | None = None,
        limit: int | None = None,
    ) -> list[Request]:
        """
        Keyword predicate query; every given filter is AND-ed.

        accepted_before is inclusive (accepted_at <= value) and implies accepted.
        """
        clauses: list[str] = []
        params: list[Any] = []

        if accepted is True:
            clauses.append("accepted_by IS NOT NULL")
        elif accepted is False:
            clauses.append("accepted_by IS NULL")

        if responded is not None:
            clauses.append("responded = ?")
            params.append(1 if responded else 0)

        if accepted_before is not None:
            clauses.append("accepted_at IS NOT NULL AND accepted_at <= ?")
            params.append(float(accepted_before))

        if requester_id is not None:
            clauses.append("requester_id = ?")
            params.append(requester_id)

        if accepted_by is not None:
            clauses.append("accepted_by = ?")
            params.append(accepted_by)

        sql = "SELECT * FROM requests"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at ASC, id ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(sql, params)
            return [self._row_to_request(r) for r in cur.fetchall()]
        finally:
            conn.close()

    # ---- messages ----

    def create_message(
        self,
        *,
        request_id: int,
        sender_id: str,
        sender_role: Role,
        content: str,
        created_at: float,
    ) -> Message:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO messages(request_id, sender_id, sender_role, content, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (int(request_id), sender_id, sender_role.value, content, float(created_at)),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for messages insert")
            msg_id = int(rowid)
            logger.debug(
                "Message added id=%s request=%s role=%s",
                msg_id,
                request_id,
                sender_role.value,
            )
            return Message(
                id=msg_id,
                request_id=int(request_id),
                sender_id=sender_id,
                sender_role=sender_role,
                content=content,
                created_at=float(created_at),
            )
        finally:
            conn.close()

    def find_messages_by_request(self, request_id: int) -> list[Message]:
        """Oldest first; ties keep insertion order."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT *
                FROM messages
                WHERE request_id = ?
                ORDER BY created_at ASC, id ASC
                """,
                (int(request_id),),
            )
            return [self._row_to_message(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def delete_messages_where(self, request_id: int, sender_role: Role) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "DELETE FROM messages WHERE request_id = ? AND sender_role = ?",
                (int(request_id), sender_role.value),
            )
            conn.commit()
            return int(cur.rowcount or 0)
        finally:
            conn.close()
