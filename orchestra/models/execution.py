"""Data model for a single agent turn and for a whole routing run."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from orchestra.models.message import Message

INTERACTION_TIMEOUT_MS = 300_000


class DatabaseOperationType(str, Enum):
    create_session = "create_session"
    save_message = "save_message"
    update_snapshot = "update_snapshot"
    get_session = "get_session"
    create_tables = "create_tables"
    get_sessions = "get_sessions"
    delete_session = "delete_session"


class UIToolCall(BaseModel):
    """a request from an agent to render a UI tool."""

    tool_id: str
    tool_name: str
    props: str | None = None  # JSON-encoded component props
    requires_interaction: bool = False


class DatabaseOperation(BaseModel):
    type: DatabaseOperationType
    data: dict[str, Any] = Field(default_factory=dict)


class OperationResult(BaseModel):
    """the outcome of a chat store operation."""

    success: bool
    operation_type: DatabaseOperationType
    data: Any = None
    error: str | None = None
    message: str | None = None


class DatabaseCall(BaseModel):
    operation: DatabaseOperation
    result: OperationResult


class AgentCall(BaseModel):
    """an inter-agent call; recorded, never executed."""

    target_agent: str
    operation: str
    data: Any = None


class InteractionContext(BaseModel):
    expected_events: list[str]
    timeout_ms: int = INTERACTION_TIMEOUT_MS


class AgentExecutionResult(BaseModel):
    """the result of invoking one agent, or of a whole run."""

    messages: list[Message] = Field(default_factory=list)
    current_agent: str
    routing_decision: str | None = None
    completed: bool = False
    tools_used: list[str] = Field(default_factory=list)
    ui_tool_calls: list[UIToolCall] | None = None
    database_calls: list[DatabaseCall] | None = None
    agent_calls: list[AgentCall] | None = None
    awaiting_ui_interaction: bool = False
    interaction_context: InteractionContext | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
