"""Shared fixtures: a scripted LLM and small agent systems."""

from typing import Any

import pytest

from orchestra.models.agent_system import (
    END,
    AgentConnection,
    AgentDefinition,
    AgentRole,
    AgentSystemSpec,
    ConnectionType,
    SystemMetadata,
    SystemStatus,
)
from orchestra.models.execution import OperationResult
from orchestra.utils.identifiers import utc_timestamp


class ScriptedLLM:
    """StructuredLLM returning canned outputs in order.

    An entry that is an exception instance is raised instead of returned.
    Every call is recorded as (system, prompt, schema).
    """

    def __init__(self, outputs: list[Any] | None = None) -> None:
        self.outputs = list(outputs or [])
        self.calls: list[tuple[str, str, dict]] = []

    async def generate_structured(self, system: str, prompt: str, schema: dict) -> dict:
        self.calls.append((system, prompt, schema))
        if not self.outputs:
            raise RuntimeError("ScriptedLLM ran out of outputs")
        output = self.outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return output


class RecordingChatStore:
    """ChatStore double that records operations and returns canned successes."""

    def __init__(self, fail: bool = False) -> None:
        self.operations = []
        self.fail = fail

    async def execute(self, operation):
        self.operations.append(operation)
        if self.fail:
            return OperationResult(success=False, operation_type=operation.type, error="boom")
        return OperationResult(success=True, operation_type=operation.type, data={"ok": True})


def make_agent(agent_id: str, role: AgentRole = AgentRole.tool, **kwargs) -> AgentDefinition:
    return AgentDefinition(
        id=agent_id,
        name=kwargs.pop("name", agent_id.replace("-", " ").title()),
        type=role,
        description=kwargs.pop("description", f"{agent_id} agent"),
        system_prompt=kwargs.pop("system_prompt", f"You are {agent_id}."),
        **kwargs,
    )


def make_system(
    agents: list[AgentDefinition],
    connections: list[tuple[str, str]] | None = None,
    system_id: str = "support",
    **kwargs,
) -> AgentSystemSpec:
    return AgentSystemSpec(
        id=system_id,
        name=kwargs.pop("name", "Support Desk"),
        description=kwargs.pop("description", "Answers product questions."),
        agents=agents,
        connections=[
            AgentConnection(source=source, target=target, type=ConnectionType.conditional)
            for source, target in (connections or [])
        ],
        status=kwargs.pop("status", SystemStatus.active),
        metadata=SystemMetadata(created_at=utc_timestamp()),
        **kwargs,
    )


@pytest.fixture
def support_system() -> AgentSystemSpec:
    """coordinator routing to faq and ticket agents."""
    return make_system(
        [
            make_agent("coordinator", AgentRole.orchestrator),
            make_agent("faq"),
            make_agent("ticket"),
        ],
        [("coordinator", "faq"), ("coordinator", "ticket"), ("coordinator", END)],
        apology_message="Sorry, the support desk is unavailable right now.",
    )
