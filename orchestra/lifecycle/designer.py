"""System designer: turns a natural-language request into an AgentSystemSpec."""

import logging
from typing import Literal

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from orchestra.models.agent_system import (
    DEFAULT_APOLOGY,
    AgentConnection,
    AgentDefinition,
    AgentRole,
    AgentSystemSpec,
    PendingUIRequirement,
    SystemMetadata,
    SystemStatus,
    UIRequirement,
)
from orchestra.models.message import UIToolInfo
from orchestra.runtime.capabilities import inline_refs
from orchestra.runtime.llm import StructuredLLM
from orchestra.utils.identifiers import generate_system_id, utc_timestamp

logger = logging.getLogger(__name__)

DESIGNER_PROMPT = """You are a multi-agent system architect.

Available UI tool components:
{tools}

Design principles:
1. The system has exactly one orchestrator that coordinates the other agents.
2. Every agent has one clear responsibility.
3. Use conditional routing for dispatch.
4. Tool agents may use specific UI components.
5. Keep the system simple.
6. Define concrete uiRequirements for agents that need UI.

Agent types:
- orchestrator: understands the user's intent and routes to other agents
- tool: performs a concrete task, possibly with UI components
- decision: chooses between options based on conditions
- interface: handles interaction with external systems

System prompts:
- agents that collect data through UI should phrase their prompts as friendly,
  user-facing questions rather than technical descriptions
- agent replies are shown to the user as-is

UI requirements:
- define a new requirement when no existing UI component fits
- toolName is kebab-case (e.g. user-dashboard)
- description says what the component does, purpose says how the agent uses it
- priority is high, medium or low

apologyMessage is a short apology shown to the user when something fails,
written in the user's language and in the system's tone."""


class _DesignModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class DesignedUIRequirement(_DesignModel):
    tool_name: str = Field(description="UI tool name in kebab-case")
    description: str = Field(description="what the UI component does")
    purpose: str = Field(description="how the agent uses it")
    priority: Literal["high", "medium", "low"] = Field(default="medium", description="creation priority")


class DesignedAgent(_DesignModel):
    id: str = Field(description="unique agent id")
    name: str = Field(description="display name")
    type: AgentRole = Field(description="agent type")
    description: str = Field(description="what the agent does")
    capabilities: list[str] = Field(default_factory=list, description="agent capabilities")
    system_prompt: str = Field(description="the agent's system prompt")
    tool_access: list[str] = Field(default_factory=list, description="UI tool ids the agent may use")
    ui_requirements: list[DesignedUIRequirement] = Field(default_factory=list, description="UI components this agent needs")


class DesignedConnection(_DesignModel):
    source: str = Field(alias="from", description="source agent id")
    target: str = Field(alias="to", description="target agent id or END")
    type: Literal["sequential", "conditional", "parallel", "tool_call"] = Field(description="connection type")
    condition: str | None = Field(default=None, description="routing condition")
    description: str | None = Field(default=None, description="when this connection is taken")


class SystemDesign(_DesignModel):
    """a multi-agent system design."""

    name: str = Field(description="system name")
    description: str = Field(description="detailed system description")
    agents: list[DesignedAgent] = Field(description="all agents in the system")
    connections: list[DesignedConnection] = Field(description="connections between agents")
    apology_message: str | None = Field(default=None, description="apology shown to users on failure")


def design_schema() -> dict:
    return inline_refs(SystemDesign.model_json_schema())


def spec_from_design(
    design: SystemDesign,
    existing_tools: list[UIToolInfo],
    name: str | None = None,
    description: str | None = None,
) -> AgentSystemSpec:
    """convert an LLM design into a pending system spec."""
    agents: list[AgentDefinition] = []
    pending: list[PendingUIRequirement] = []
    for index, designed in enumerate(design.agents, start=1):
        agent_id = designed.id or f"{designed.type.value}_agent_{index}"
        requirements = [
            UIRequirement(
                tool_name=req.tool_name,
                description=req.description,
                purpose=req.purpose,
                priority=req.priority,
            )
            for req in designed.ui_requirements
        ]
        pending.extend(
            PendingUIRequirement(agent_id=agent_id, **req.model_dump()) for req in requirements
        )
        agents.append(
            AgentDefinition(
                id=agent_id,
                name=designed.name,
                type=designed.type,
                description=designed.description,
                system_prompt=designed.system_prompt,
                capabilities=designed.capabilities,
                tool_access=designed.tool_access,
                ui_requirements=requirements,
            )
        )

    return AgentSystemSpec(
        id=generate_system_id(),
        name=name or design.name,
        description=description or design.description,
        agents=agents,
        connections=[
            AgentConnection(
                source=conn.source,
                target=conn.target,
                type=conn.type,
                condition=conn.condition,
                description=conn.description,
            )
            for conn in design.connections
        ],
        ui_tools=[tool.id for tool in existing_tools],
        pending_ui_requirements=pending,
        status=SystemStatus.pending,
        metadata=SystemMetadata(created_at=utc_timestamp(), created_by="system-designer"),
        apology_message=design.apology_message or DEFAULT_APOLOGY,
    )


class SystemDesigner:
    """Designs agent systems with a structured-output LLM."""

    def __init__(self, llm: StructuredLLM) -> None:
        self.llm = llm

    async def design(
        self,
        user_prompt: str,
        existing_tools: list[UIToolInfo],
        name: str | None = None,
        description: str | None = None,
    ) -> AgentSystemSpec:
        """Design a system for `user_prompt`.

        Args:
            user_prompt: the user's description of the system they want
            existing_tools: registered UI tools the design may reuse
            name: overrides the designed name
            description: overrides the designed description
        """
        tools = "\n".join(
            f"- {t.name} ({t.id}): {t.description or 'no description'}" for t in existing_tools
        ) or "(none)"
        prompt = (
            f"User request: {user_prompt}\n\n"
            "Design a multi-agent system for this request with a clear architecture, "
            "sensible division of responsibilities, and good use of the existing UI components."
        )
        raw = await self.llm.generate_structured(
            DESIGNER_PROMPT.format(tools=tools), prompt, design_schema()
        )
        design = SystemDesign.model_validate(raw)
        spec = spec_from_design(design, existing_tools, name, description)
        logger.info(
            "Designed system %s with %d agents and %d pending UI requirements",
            spec.id,
            len(spec.agents),
            len(spec.pending_ui_requirements),
        )
        return spec
