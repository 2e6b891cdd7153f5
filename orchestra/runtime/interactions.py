"""UI interaction recording.

The recorder only records: it appends events to the owning session and
notifies a per-session callback. Resuming the conversation is the runner's
job and happens on a separate call.
"""

import logging
from collections.abc import Callable
from datetime import timedelta

from orchestra.models.interaction import InteractionRecord, UIInteractionEvent
from orchestra.runtime.sessions import SessionStore
from orchestra.utils.identifiers import parse_timestamp, utc_now, utc_timestamp

logger = logging.getLogger(__name__)

InteractionHandler = Callable[[UIInteractionEvent], None]

# events held per session while no handler is registered
MAX_QUEUED_EVENTS = 100


class InteractionRecorder:
    """Records UI events into session state and dispatches them to handlers."""

    def __init__(self, sessions: SessionStore) -> None:
        self.sessions = sessions
        self._handlers: dict[str, InteractionHandler] = {}
        self._queued: dict[str, list[UIInteractionEvent]] = {}
        sessions.on_delete(self.unregister)

    def register_handler(self, session_id: str, handler: InteractionHandler) -> None:
        """set the handler for a session and replay any queued events to it."""
        self._handlers[session_id] = handler
        for event in self._queued.pop(session_id, []):
            self._dispatch(handler, event)

    def unregister(self, session_id: str) -> None:
        self._handlers.pop(session_id, None)
        self._queued.pop(session_id, None)

    def handle(self, event: UIInteractionEvent) -> InteractionRecord | None:
        """record an event against its session.

        Returns:
            The history record, or None when the session is unknown.
        """
        state = self.sessions.get(event.session_id)
        if state is None:
            logger.info("Ignoring UI event for unknown session %s", event.session_id)
            return None

        now = utc_timestamp()
        if event.timestamp is None:
            event = event.model_copy(update={"timestamp": now})
        record = InteractionRecord(
            tool_id=event.tool_id,
            agent_id=event.agent_id or "unknown",
            event=event,
            timestamp=now,
        )
        state.ui_interactions.append(event)
        state.interaction_history.append(record)
        logger.debug("Recorded %s event from %s", event.event_type.value, event.tool_id)

        handler = self._handlers.get(event.session_id)
        if handler is None:
            queue = self._queued.setdefault(event.session_id, [])
            queue.append(event)
            del queue[:-MAX_QUEUED_EVENTS]
        else:
            self._dispatch(handler, event)
        return record

    def _dispatch(self, handler: InteractionHandler, event: UIInteractionEvent) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception("UI interaction handler failed for session %s", event.session_id)


def recent_interactions(
    history: list[InteractionRecord], window_seconds: float
) -> list[InteractionRecord]:
    """records whose server timestamp is within the last `window_seconds`."""
    cutoff = utc_now() - timedelta(seconds=window_seconds)
    return [record for record in history if parse_timestamp(record.timestamp) >= cutoff]
