"""Supabase-backed chat store.

Expects `chat_sessions` and `chat_messages` tables to exist; the schema has
to be created from the Supabase dashboard.
"""

import logging
import os
from typing import Any

from orchestra.models.execution import DatabaseOperationType as Op
from orchestra.models.execution import OperationResult
from orchestra.persistence.base import ChatStore, failure, require, success
from orchestra.persistence.snapshots import merge_snapshots, snapshot_from_request
from orchestra.utils.identifiers import utc_timestamp

logger = logging.getLogger(__name__)

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")


class SupabaseChatStore(ChatStore):
    """Stores chat sessions and messages in Supabase tables."""

    def __init__(self, url: str | None = None, service_role_key: str | None = None, client=None) -> None:
        """
        Args:
            url: Supabase project URL (defaults to SUPABASE_URL)
            service_role_key: service role key (defaults to SUPABASE_SERVICE_ROLE_KEY)
            client: a preconfigured supabase client, mainly for tests
        """
        if client is None:
            from supabase import create_client

            client = create_client(url or SUPABASE_URL, service_role_key or SUPABASE_SERVICE_ROLE_KEY)
            logger.info("Supabase chat store initialized")
        self.client = client

    def _get_session(self, session_id: str) -> dict[str, Any] | None:
        response = (
            self.client.table("chat_sessions").select("*").eq("id", session_id).limit(1).execute()
        )
        return response.data[0] if response.data else None

    def _insert_session(self, session_id: str, data: dict[str, Any], snapshot: dict) -> dict:
        now = utc_timestamp()
        row = {
            "id": session_id,
            "user_id": data.get("user_id"),
            "system_id": data.get("system_id"),
            "title": data.get("title") or "Chat session",
            "status": "active",
            "snapshot": snapshot,
            "snapshot_updated_at": now,
            "updated_at": now,
        }
        response = self.client.table("chat_sessions").insert(row).execute()
        return response.data[0] if response.data else row

    def create_tables(self, data: dict[str, Any]) -> OperationResult:
        try:
            self.client.table("chat_sessions").select("id").limit(1).execute()
        except Exception as e:
            logger.warning("chat_sessions table is not accessible: %s", e)
            return failure(
                Op.create_tables,
                "Database tables need to be created manually in the Supabase dashboard.",
            )
        return success(Op.create_tables, {"message": "Database tables already exist and are accessible"})

    def create_session(self, data: dict[str, Any]) -> OperationResult:
        session_id = require(data, "session_id")
        existing = self._get_session(session_id)
        if existing:
            return success(Op.create_session, existing, "existing session returned (no data overwritten)")
        created = self._insert_session(session_id, data, data.get("initial_snapshot") or {})
        return success(Op.create_session, created, "new session created successfully")

    def save_message(self, data: dict[str, Any]) -> OperationResult:
        row = {
            "session_id": require(data, "session_id"),
            "user_id": data.get("user_id"),
            "agent_id": data.get("agent_id"),
            "role": require(data, "role"),
            "content": data.get("content"),
            "content_json": data.get("content_json"),
            "client_msg_id": data.get("client_msg_id"),
        }
        response = self.client.table("chat_messages").insert(row).execute()
        if not response.data:
            return failure(Op.save_message, "Message saving failed")
        return success(Op.save_message, response.data[0])

    def update_snapshot(self, data: dict[str, Any]) -> OperationResult:
        session_id = require(data, "session_id")
        incoming = snapshot_from_request(data)
        existing = self._get_session(session_id)
        if existing is None:
            if not incoming:
                return failure(Op.update_snapshot, f"session not found: {session_id}")
            return success(Op.update_snapshot, self._insert_session(session_id, data, incoming))

        merged = merge_snapshots(existing.get("snapshot"), incoming)
        now = utc_timestamp()
        response = (
            self.client.table("chat_sessions")
            .update({"snapshot": merged, "snapshot_updated_at": now, "updated_at": now})
            .eq("id", session_id)
            .execute()
        )
        return success(Op.update_snapshot, response.data[0] if response.data else {**existing, "snapshot": merged})

    def get_session(self, data: dict[str, Any]) -> OperationResult:
        session_id = require(data, "session_id")
        session = self._get_session(session_id)
        if session is None:
            return failure(Op.get_session, f"session not found: {session_id}")
        messages = (
            self.client.table("chat_messages")
            .select("*")
            .eq("session_id", session_id)
            .order("created_at")
            .execute()
        )
        return success(Op.get_session, {"session": session, "messages": messages.data or []})

    def get_sessions(self, data: dict[str, Any]) -> OperationResult:
        query = self.client.table("chat_sessions").select("*")
        for key in ("system_id", "user_id"):
            if data.get(key):
                query = query.eq(key, data[key])
        response = query.order("updated_at", desc=True).limit(int(data.get("limit") or 50)).execute()
        return success(Op.get_sessions, response.data or [])

    def delete_session(self, data: dict[str, Any]) -> OperationResult:
        session_id = require(data, "session_id")
        self.client.table("chat_messages").delete().eq("session_id", session_id).execute()
        response = self.client.table("chat_sessions").delete().eq("id", session_id).execute()
        return success(Op.delete_session, {"deleted": session_id, "existed": bool(response.data)})
