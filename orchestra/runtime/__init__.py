"""Agent execution runtime: invoker, sessions, UI events and routing."""

from orchestra.runtime.capabilities import DATABASE_TOOL_ID, AgentCapabilities, AgentTurnOutput
from orchestra.runtime.errors import ConfigurationError, EntryAgentError, SystemNotLoadedError
from orchestra.runtime.interactions import InteractionRecorder
from orchestra.runtime.invoker import AgentInvoker
from orchestra.runtime.llm import LangChainStructuredLLM, StructuredLLM
from orchestra.runtime.runner import MAX_ITERATIONS, RESUME_WINDOW_SECONDS, SystemRunner
from orchestra.runtime.sessions import SessionStore

__all__ = [
    # Capabilities
    "DATABASE_TOOL_ID",
    "AgentCapabilities",
    "AgentTurnOutput",
    # Errors
    "ConfigurationError",
    "EntryAgentError",
    "SystemNotLoadedError",
    # Execution
    "AgentInvoker",
    "InteractionRecorder",
    "SessionStore",
    "SystemRunner",
    "MAX_ITERATIONS",
    "RESUME_WINDOW_SECONDS",
    # LLM
    "LangChainStructuredLLM",
    "StructuredLLM",
]
