"""Conversation messages and per-session runtime state."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class PersistedState(str, Enum):
    """whether a message has been written to the chat store."""

    unpersisted = "unpersisted"
    persisted = "persisted"


class Message(BaseModel):
    """a single conversation message."""

    id: str
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: str
    agent_id: str | None = None  # origin agent for assistant messages
    metadata: dict[str, Any] = Field(default_factory=dict)
    persisted: PersistedState = PersistedState.unpersisted

    @property
    def is_persisted(self) -> bool:
        return self.persisted == PersistedState.persisted


class MessageInput(BaseModel):
    """an inbound message before it is stamped with an id and timestamp."""

    role: Literal["user", "assistant", "system"]
    content: str


class UIToolInfo(BaseModel):
    """a UI tool as advertised to agents."""

    id: str
    name: str
    description: str = ""
