"""Chat history persistence backends."""

import os

from orchestra.persistence.base import ChatStore, ChatStoreError
from orchestra.persistence.snapshots import merge_snapshots
from orchestra.persistence.sqlite_store import SqliteChatStore


def create_chat_store() -> ChatStore:
    """Supabase when SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are set, else sqlite."""
    if os.getenv("SUPABASE_URL") and os.getenv("SUPABASE_SERVICE_ROLE_KEY"):
        from orchestra.persistence.supabase_store import SupabaseChatStore

        return SupabaseChatStore(os.getenv("SUPABASE_URL"), os.getenv("SUPABASE_SERVICE_ROLE_KEY"))
    return SqliteChatStore()


__all__ = [
    "ChatStore",
    "ChatStoreError",
    "SqliteChatStore",
    "create_chat_store",
    "merge_snapshots",
]
