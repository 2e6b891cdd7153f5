"""Data model for agent system specifications.

A system is a set of named agents plus the directed connections between them.
Exactly one agent carries the orchestrator role and acts as the entry point
for every conversational turn.
"""

from enum import Enum

from pydantic import AliasChoices, BaseModel, Field

# terminal routing marker
END = "END"

DEFAULT_APOLOGY = "I'm sorry, something went wrong while handling your request. Please try again."


class AgentRole(str, Enum):
    """the role an agent plays inside a system."""

    orchestrator = "orchestrator"  # entry coordinator
    tool = "tool"
    decision = "decision"
    interface = "interface"


class ConnectionType(str, Enum):
    sequential = "sequential"
    conditional = "conditional"
    parallel = "parallel"
    tool_call = "tool_call"


class SystemStatus(str, Enum):
    pending = "pending"
    deploying = "deploying"
    active = "active"
    error = "error"


class UIRequirement(BaseModel):
    """a UI tool an agent needs but which may not exist yet."""

    tool_name: str
    description: str = ""
    purpose: str = ""
    component_type: str = "interactive"  # "interactive", "display", "hybrid"
    priority: str = "medium"  # "high", "medium", "low"


class PendingUIRequirement(UIRequirement):
    """a UI requirement waiting to be fulfilled at deploy time."""

    agent_id: str


class AgentDefinition(BaseModel):
    """a single agent within a system.

    `can_route` and `can_complete` override the defaults implied by the role:
    orchestrators may route, tool agents may report completion.
    """

    id: str
    name: str
    type: AgentRole
    description: str = ""
    system_prompt: str = ""
    capabilities: list[str] = Field(default_factory=list)  # descriptive only
    tool_access: list[str] = Field(default_factory=list)
    ui_requirements: list[UIRequirement] = Field(default_factory=list)
    routing_rules: list[str] = Field(default_factory=list)
    can_route: bool | None = None
    can_complete: bool | None = None

    @property
    def is_entry(self) -> bool:
        return self.type == AgentRole.orchestrator


class AgentConnection(BaseModel):
    """a directed edge from one agent to another agent or to END."""

    source: str = Field(validation_alias=AliasChoices("source", "from"))
    target: str = Field(validation_alias=AliasChoices("target", "to"))
    type: ConnectionType = ConnectionType.sequential
    condition: str | None = None
    description: str | None = None


class SystemMetadata(BaseModel):
    created_at: str
    created_by: str = "system"
    version: str = "1.0.0"
    deployed_at: str | None = None
    last_active: str | None = None


class AgentSystemSpec(BaseModel):
    """a complete agent system as designed and deployed."""

    id: str
    name: str
    description: str = ""
    agents: list[AgentDefinition]
    connections: list[AgentConnection] = Field(default_factory=list)
    ui_tools: list[str] = Field(default_factory=list)
    pending_ui_requirements: list[PendingUIRequirement] = Field(default_factory=list)
    status: SystemStatus = SystemStatus.pending
    metadata: SystemMetadata
    error: str | None = None
    apology_message: str = DEFAULT_APOLOGY

    def get_agent(self, agent_id: str) -> AgentDefinition | None:
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        return None

    def entry_agents(self) -> list[AgentDefinition]:
        return [agent for agent in self.agents if agent.is_entry]

    def outgoing(self, agent_id: str) -> list[AgentConnection]:
        return [conn for conn in self.connections if conn.source == agent_id]

    def routing_targets(self, agent_id: str) -> list[str]:
        """agent ids reachable from `agent_id`, in declaration order, without END."""
        targets: list[str] = []
        for conn in self.outgoing(agent_id):
            if conn.target in (END, "__end__") or conn.target in targets:
                continue
            targets.append(conn.target)
        return targets

    def call_targets(self, agent_id: str) -> list[str]:
        """agent ids `agent_id` may address through tool_call connections."""
        return [
            conn.target
            for conn in self.outgoing(agent_id)
            if conn.type == ConnectionType.tool_call
        ]

    def validate_connections(self) -> list[str]:
        """report connections that reference agents outside this system.

        Returns:
            A list of human-readable problems, empty when the graph is consistent.
        """
        known = {agent.id for agent in self.agents}
        problems: list[str] = []
        for conn in self.connections:
            if conn.source not in known:
                problems.append(f"connection source '{conn.source}' is not an agent")
            if conn.target not in known and conn.target not in (END, "__end__"):
                problems.append(f"connection target '{conn.target}' is not an agent or {END}")
        return problems


class Deployment(BaseModel):
    """outcome of deploying a system into the runner."""

    system_id: str
    status: SystemStatus
    deployed_at: str
    logs: list[str] = Field(default_factory=list)
    endpoint: str
    agents_configured: int = 0
    ui_tools_created: list[str] = Field(default_factory=list)
    connection_warnings: list[str] = Field(default_factory=list)
    error: str | None = None
