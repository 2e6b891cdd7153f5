"""UI tool access control.

Agents may only see and render the UI tools listed in their `tool_access`.
"""

from pydantic import BaseModel, Field

from orchestra.models.agent_system import AgentDefinition, AgentSystemSpec
from orchestra.models.message import UIToolInfo
from orchestra.runtime.capabilities import DATABASE_TOOL_ID

# orchestrators holding more UI tools than this get a recommendation
MAX_ORCHESTRATOR_TOOLS = 3

# tool ids that grant non-UI capabilities
NON_UI_TOOL_IDS = {DATABASE_TOOL_ID}


class AgentPermissions(BaseModel):
    agent_id: str
    agent_name: str
    agent_type: str
    authorized_tools: list[str]
    unauthorized_tools: list[str]


class ToolConfigurationReport(BaseModel):
    is_valid: bool
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


def filter_tools_for_agent(tools: list[UIToolInfo], agent: AgentDefinition) -> list[UIToolInfo]:
    return [tool for tool in tools if tool.id in agent.tool_access]


def has_tool_access(agent: AgentDefinition, tool_id: str) -> bool:
    return tool_id in agent.tool_access


def agents_with_tool_access(system: AgentSystemSpec) -> list[AgentDefinition]:
    return [agent for agent in system.agents if agent.tool_access]


def tools_for_agent_id(
    system: AgentSystemSpec, tools: list[UIToolInfo], agent_id: str | None
) -> list[UIToolInfo]:
    """tools visible to `agent_id`; nothing when the agent is unknown."""
    agent = system.get_agent(agent_id) if agent_id else None
    if agent is None:
        return []
    return filter_tools_for_agent(tools, agent)


def permission_report(system: AgentSystemSpec, tools: list[UIToolInfo]) -> list[AgentPermissions]:
    return [
        AgentPermissions(
            agent_id=agent.id,
            agent_name=agent.name,
            agent_type=agent.type.value,
            authorized_tools=[t.id for t in tools if t.id in agent.tool_access],
            unauthorized_tools=[t.id for t in tools if t.id not in agent.tool_access],
        )
        for agent in system.agents
    ]


def validate_tool_configuration(
    system: AgentSystemSpec, tools: list[UIToolInfo]
) -> ToolConfigurationReport:
    """check a system's UI tool grants against the registered tools."""
    issues: list[str] = []
    recommendations: list[str] = []

    granted = {tool_id for agent in system.agents for tool_id in agent.tool_access}
    orphaned = [tool_id for tool_id in system.ui_tools if tool_id not in granted]
    if orphaned:
        issues.append(f"System includes UI tools no agent can access: {', '.join(orphaned)}")
        recommendations.append("Remove the unused UI tools or grant access to a suitable agent")

    registered = {tool.id for tool in tools}
    for agent in system.agents:
        invalid = [
            tool_id
            for tool_id in agent.tool_access
            if tool_id not in registered and tool_id not in NON_UI_TOOL_IDS
        ]
        if invalid:
            issues.append(f"Agent {agent.name} has access to unknown tools: {', '.join(invalid)}")
            recommendations.append(
                f"Update {agent.name}'s tool access or make sure those UI tools are registered"
            )

    for agent in system.entry_agents():
        ui_tools = [t for t in agent.tool_access if t not in NON_UI_TOOL_IDS]
        if len(ui_tools) > MAX_ORCHESTRATOR_TOOLS:
            recommendations.append(
                f"Orchestrator {agent.name} holds many UI tools directly; "
                "consider delegating UI interaction to tool agents"
            )

    return ToolConfigurationReport(
        is_valid=not issues, issues=issues, recommendations=recommendations
    )
