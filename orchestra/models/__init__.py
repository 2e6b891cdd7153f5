"""Core data models for agent systems, sessions and turns."""

from orchestra.models.agent_system import (
    END,
    AgentConnection,
    AgentDefinition,
    AgentRole,
    AgentSystemSpec,
    ConnectionType,
    Deployment,
    PendingUIRequirement,
    SystemMetadata,
    SystemStatus,
    UIRequirement,
)
from orchestra.models.execution import (
    AgentCall,
    AgentExecutionResult,
    DatabaseCall,
    DatabaseOperation,
    DatabaseOperationType,
    InteractionContext,
    OperationResult,
    UIToolCall,
)
from orchestra.models.interaction import (
    InteractionRecord,
    UIEventType,
    UIInteractionEvent,
)
from orchestra.models.message import Message, MessageInput, PersistedState, UIToolInfo
from orchestra.models.session import SessionState
from orchestra.models.ui_tool import UITool

__all__ = [
    "END",
    "AgentCall",
    "AgentConnection",
    "AgentDefinition",
    "AgentExecutionResult",
    "AgentRole",
    "AgentSystemSpec",
    "ConnectionType",
    "DatabaseCall",
    "DatabaseOperation",
    "DatabaseOperationType",
    "Deployment",
    "InteractionContext",
    "InteractionRecord",
    "Message",
    "MessageInput",
    "OperationResult",
    "PendingUIRequirement",
    "PersistedState",
    "SessionState",
    "SystemMetadata",
    "SystemStatus",
    "UIEventType",
    "UIInteractionEvent",
    "UIRequirement",
    "UITool",
    "UIToolCall",
    "UIToolInfo",
]
