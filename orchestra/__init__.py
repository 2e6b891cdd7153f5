"""Orchestra - runtime for LLM-designed multi-agent systems with generated UI tools."""

from orchestra.models.agent_system import (
    AgentConnection,
    AgentDefinition,
    AgentRole,
    AgentSystemSpec,
)
from orchestra.models.execution import AgentExecutionResult
from orchestra.models.interaction import UIInteractionEvent
from orchestra.models.message import Message, MessageInput
from orchestra.lifecycle.deployer import SystemDeployer
from orchestra.lifecycle.designer import SystemDesigner
from orchestra.runtime.errors import ConfigurationError
from orchestra.runtime.llm import LangChainStructuredLLM
from orchestra.runtime.runner import SystemRunner
from orchestra.uitools.registry import UIToolRegistry

__all__ = [
    # Systems
    "AgentConnection",
    "AgentDefinition",
    "AgentRole",
    "AgentSystemSpec",
    # Conversation
    "AgentExecutionResult",
    "Message",
    "MessageInput",
    "UIInteractionEvent",
    # High-level APIs
    "ConfigurationError",
    "LangChainStructuredLLM",
    "SystemDeployer",
    "SystemDesigner",
    "SystemRunner",
    "UIToolRegistry",
]
