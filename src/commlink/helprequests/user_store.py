# src/commlink/helprequests/user_store.py

from __future__ import annotations

import logging
import sqlite3
import time
import uuid
from pathlib import Path

from .request_models import Role, User
from .sqlite_base import SQLiteStoreBase

logger = logging.getLogger(__name__)


class UserStore(SQLiteStoreBase):
    """
    Minimal user directory: id -> (username, email, role).

    Registration and credentials live in the host; this table only exists so the
    reminder scheduler can resolve a recipient address and a display name.
    """

    def __init__(self, db_path: str | Path = "commlink.sqlite3") -> None:
        super().__init__(db_path)
        logger.info("UserStore ready db=%s", self._db_path)

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT NOT NULL,
                    email TEXT NOT NULL DEFAULT '',
                    role TEXT NOT NULL,
                    created_at REAL NOT NULL
                )
                """
            )
            self._add_missing_columns(cur, "users", {"email": "TEXT NOT NULL DEFAULT ''"})
            cur.execute("CREATE UNIQUE INDEX IF NOT EXISTS idx_users_username ON users(username)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=str(row["id"]),
            username=str(row["username"] or ""),
            email=str(row["email"] or ""),
            role=Role(row["role"]),
            created_at=float(row["created_at"] or 0.0),
        )

    def add_user(
        self,
        *,
        username: str,
        role: Role,
        email: str = "",
        user_id: str | None = None,
    ) -> User:
        if not username or not username.strip():
            raise ValueError("username is required")

        user = User(
            id=user_id or uuid.uuid4().hex,
            username=username.strip(),
            email=(email or "").strip(),
            role=role,
            created_at=time.time(),
        )

        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO users(id, username, email, role, created_at) VALUES (?, ?, ?, ?, ?)",
                (user.id, user.username, user.email, user.role.value, user.created_at),
            )
            conn.commit()
        finally:
            conn.close()

        logger.debug("User added id=%s role=%s", user.id, user.role.value)
        return user

    def find_user_by_id(self, user_id: str) -> User | None:
        if not user_id:
            return None

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
            return self._row_to_user(row) if row else None
        finally:
            conn.close()
