"""Data model for per-session conversation state."""

from typing import Any

from pydantic import BaseModel, Field

from orchestra.models.interaction import InteractionRecord, UIInteractionEvent
from orchestra.models.message import Message, UIToolInfo


class SessionState(BaseModel):
    """everything the runtime remembers about one conversation.

    `messages` only ever grows; nothing is reordered or removed.
    """

    session_id: str
    system_id: str
    messages: list[Message] = Field(default_factory=list)
    available_ui_tools: list[UIToolInfo] = Field(default_factory=list)
    ui_interactions: list[UIInteractionEvent] = Field(default_factory=list)
    interaction_history: list[InteractionRecord] = Field(default_factory=list)
    pending_ui_responses: dict[str, Any] = Field(default_factory=dict)
    created_at: str
    last_accessed: str
