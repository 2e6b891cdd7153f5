"""In-memory session state store.

Sessions live in process memory, bounded by count (LRU) and by idle time.
Each session has an asyncio.Lock; callers hold it for the whole of a run so
that two requests for the same session never interleave.
"""

import asyncio
import logging
import os
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable

from orchestra.models.message import Message, MessageInput, PersistedState, UIToolInfo
from orchestra.models.session import SessionState
from orchestra.utils.identifiers import generate_message_id, utc_timestamp

logger = logging.getLogger(__name__)

MAX_SESSIONS = int(os.getenv("ORCHESTRA_MAX_SESSIONS", "1000"))
SESSION_TTL_SECONDS = float(os.getenv("ORCHESTRA_SESSION_TTL_SECONDS", "3600"))


class SessionStore:
    """LRU + TTL bounded map of session id to SessionState."""

    def __init__(
        self,
        max_sessions: int = MAX_SESSIONS,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_sessions = max_sessions
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: OrderedDict[str, SessionState] = OrderedDict()
        self._touched: dict[str, float] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._delete_listeners: list[Callable[[str], None]] = []

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def lock(self, session_id: str) -> asyncio.Lock:
        """the lock serializing work on one session."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def _touch(self, session_id: str) -> None:
        self._sessions.move_to_end(session_id)
        self._touched[session_id] = self._clock()
        self._sessions[session_id].last_accessed = utc_timestamp()

    def _is_busy(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    def _evict(self) -> None:
        now = self._clock()
        for session_id in list(self._sessions):
            idle = now - self._touched.get(session_id, now)
            if idle > self.ttl_seconds and not self._is_busy(session_id):
                logger.info("Evicting idle session %s", session_id)
                self.delete(session_id)

        for session_id in list(self._sessions):
            if len(self._sessions) <= self.max_sessions:
                break
            if not self._is_busy(session_id):
                logger.info("Evicting least recently used session %s", session_id)
                self.delete(session_id)

    def get(self, session_id: str) -> SessionState | None:
        self._evict()
        state = self._sessions.get(session_id)
        if state is not None:
            self._touch(session_id)
        return state

    def get_or_create(
        self,
        session_id: str,
        system_id: str,
        initial_messages: Iterable[Message] = (),
        available_ui_tools: list[UIToolInfo] | None = None,
    ) -> tuple[SessionState, bool]:
        """fetch a session, or create it seeded with `initial_messages`.

        Returns:
            The session state and whether it was created by this call.
        """
        state = self.get(session_id)
        if state is not None:
            return state, False

        now = utc_timestamp()
        state = SessionState(
            session_id=session_id,
            system_id=system_id,
            available_ui_tools=available_ui_tools or [],
            created_at=now,
            last_accessed=now,
        )
        self._sessions[session_id] = state
        self._touch(session_id)
        self.append_messages(session_id, initial_messages)
        self._evict()
        return state, True

    def append_messages(self, session_id: str, messages: Iterable[Message]) -> None:
        """append messages in order; the log is never reordered or truncated."""
        state = self._sessions[session_id]
        state.messages.extend(messages)
        self._touch(session_id)

    def on_delete(self, listener: Callable[[str], None]) -> None:
        """call `listener(session_id)` whenever a session is deleted or evicted."""
        self._delete_listeners.append(listener)

    def delete(self, session_id: str) -> bool:
        self._touched.pop(session_id, None)
        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._locks[session_id]
        existed = self._sessions.pop(session_id, None) is not None
        if existed:
            for listener in self._delete_listeners:
                listener(session_id)
        return existed

    def list_sessions(self) -> list[SessionState]:
        return list(self._sessions.values())


def new_messages(inputs: Iterable[MessageInput], agent_id: str | None = None) -> list[Message]:
    """stamp inbound role/content pairs as unpersisted messages."""
    stamped = []
    for item in inputs:
        stamped.append(
            Message(
                id=generate_message_id(),
                role=item.role,
                content=item.content,
                timestamp=utc_timestamp(),
                agent_id=agent_id,
                persisted=PersistedState.unpersisted,
            )
        )
    return stamped
