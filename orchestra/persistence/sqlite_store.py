"""SQLite chat store, used when no hosted database is configured."""

import json
import os
import sqlite3
import uuid
from pathlib import Path
from typing import Any

from orchestra.models.execution import DatabaseOperationType as Op
from orchestra.models.execution import OperationResult
from orchestra.persistence.base import ChatStore, failure, require, success
from orchestra.persistence.snapshots import merge_snapshots, snapshot_from_request
from orchestra.utils.identifiers import utc_timestamp

DEFAULT_DB_PATH = Path(os.getenv("ORCHESTRA_DB_PATH", "data/orchestra.db"))


class SqliteChatStore(ChatStore):
    """Stores chat sessions and messages in a local sqlite file."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path or DEFAULT_DB_PATH)
        self.init_db()

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                create table if not exists chat_sessions (
                    id text primary key,
                    system_id text,
                    user_id text,
                    title text,
                    status text not null,
                    snapshot_json text not null,
                    snapshot_updated_at text,
                    created_at text not null,
                    updated_at text not null
                )
                """
            )
            conn.execute(
                """
                create table if not exists chat_messages (
                    id text primary key,
                    session_id text not null,
                    user_id text,
                    agent_id text,
                    role text not null,
                    content text,
                    content_json text,
                    client_msg_id text,
                    created_at text not null
                )
                """
            )
            conn.execute(
                "create index if not exists idx_chat_sessions_system_id on chat_sessions(system_id)"
            )
            conn.execute(
                "create index if not exists idx_chat_messages_session_id on chat_messages(session_id)"
            )
            conn.commit()

    def _session_row(self, conn: sqlite3.Connection, session_id: str) -> dict[str, Any] | None:
        row = conn.execute("select * from chat_sessions where id = ?", (session_id,)).fetchone()
        if not row:
            return None
        session = dict(row)
        session["snapshot"] = json.loads(session.pop("snapshot_json"))
        return session

    def _insert_session(
        self, conn: sqlite3.Connection, session_id: str, data: dict[str, Any], snapshot: dict
    ) -> None:
        now = utc_timestamp()
        conn.execute(
            """
            insert into chat_sessions (id, system_id, user_id, title, status, snapshot_json,
                snapshot_updated_at, created_at, updated_at)
            values (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session_id,
                data.get("system_id"),
                data.get("user_id"),
                data.get("title") or "Chat session",
                "active",
                json.dumps(snapshot),
                now,
                now,
                now,
            ),
        )

    def create_tables(self, data: dict[str, Any]) -> OperationResult:
        self.init_db()
        return success(Op.create_tables, {"message": "Database tables exist and are accessible"})

    def create_session(self, data: dict[str, Any]) -> OperationResult:
        session_id = data.get("session_id") or str(uuid.uuid4())
        with self._connect() as conn:
            existing = self._session_row(conn, session_id)
            if existing:
                return success(
                    Op.create_session, existing, "existing session returned (no data overwritten)"
                )
            self._insert_session(conn, session_id, data, data.get("initial_snapshot") or {})
            conn.commit()
            created = self._session_row(conn, session_id)
        return success(Op.create_session, created, "new session created successfully")

    def save_message(self, data: dict[str, Any]) -> OperationResult:
        role = require(data, "role")
        session_id = require(data, "session_id")
        content_json = data.get("content_json")
        message = {
            "id": str(uuid.uuid4()),
            "session_id": session_id,
            "user_id": data.get("user_id"),
            "agent_id": data.get("agent_id"),
            "role": role,
            "content": data.get("content"),
            "content_json": json.dumps(content_json) if content_json is not None else None,
            "client_msg_id": data.get("client_msg_id"),
            "created_at": utc_timestamp(),
        }
        with self._connect() as conn:
            conn.execute(
                """
                insert into chat_messages (id, session_id, user_id, agent_id, role, content,
                    content_json, client_msg_id, created_at)
                values (:id, :session_id, :user_id, :agent_id, :role, :content,
                    :content_json, :client_msg_id, :created_at)
                """,
                message,
            )
            conn.execute(
                "update chat_sessions set updated_at = ? where id = ?",
                (message["created_at"], session_id),
            )
            conn.commit()
        return success(Op.save_message, message)

    def update_snapshot(self, data: dict[str, Any]) -> OperationResult:
        session_id = require(data, "session_id")
        incoming = snapshot_from_request(data)
        with self._connect() as conn:
            existing = self._session_row(conn, session_id)
            if existing is None:
                if not incoming:
                    return failure(Op.update_snapshot, f"session not found: {session_id}")
                self._insert_session(conn, session_id, data, incoming)
                conn.commit()
                return success(Op.update_snapshot, self._session_row(conn, session_id))

            merged = merge_snapshots(existing["snapshot"], incoming)
            now = utc_timestamp()
            conn.execute(
                """
                update chat_sessions
                set snapshot_json = ?, snapshot_updated_at = ?, updated_at = ?
                where id = ?
                """,
                (json.dumps(merged), now, now, session_id),
            )
            conn.commit()
            updated = self._session_row(conn, session_id)
        return success(Op.update_snapshot, updated)

    def get_session(self, data: dict[str, Any]) -> OperationResult:
        session_id = require(data, "session_id")
        with self._connect() as conn:
            session = self._session_row(conn, session_id)
            if session is None:
                return failure(Op.get_session, f"session not found: {session_id}")
            rows = conn.execute(
                "select * from chat_messages where session_id = ? order by created_at, rowid",
                (session_id,),
            ).fetchall()
        messages = []
        for row in rows:
            message = dict(row)
            if message["content_json"] is not None:
                message["content_json"] = json.loads(message["content_json"])
            messages.append(message)
        return success(Op.get_session, {"session": session, "messages": messages})

    def get_sessions(self, data: dict[str, Any]) -> OperationResult:
        query = "select id from chat_sessions"
        clauses, params = [], []
        for key in ("system_id", "user_id"):
            if data.get(key):
                clauses.append(f"{key} = ?")
                params.append(data[key])
        if clauses:
            query += " where " + " and ".join(clauses)
        query += " order by updated_at desc limit ?"
        params.append(int(data.get("limit") or 50))
        with self._connect() as conn:
            ids = [row["id"] for row in conn.execute(query, params).fetchall()]
            sessions = [self._session_row(conn, session_id) for session_id in ids]
        return success(Op.get_sessions, sessions)

    def delete_session(self, data: dict[str, Any]) -> OperationResult:
        session_id = require(data, "session_id")
        with self._connect() as conn:
            conn.execute("delete from chat_messages where session_id = ?", (session_id,))
            cursor = conn.execute("delete from chat_sessions where id = ?", (session_id,))
            conn.commit()
        return success(Op.delete_session, {"deleted": session_id, "existed": cursor.rowcount > 0})
