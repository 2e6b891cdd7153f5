"""Per-agent output capabilities and the structured output schema.

Every agent answers with the same closed output model. What varies between
agents is which of its fields they are allowed to fill: the schema sent to
the LLM is pruned to those fields, and anything else the LLM returns is
discarded.
"""

import copy
import json
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from orchestra.models.agent_system import END, AgentDefinition, AgentRole, AgentSystemSpec
from orchestra.models.execution import DatabaseOperationType
from orchestra.models.message import UIToolInfo

# tool id that grants an agent access to the chat store
DATABASE_TOOL_ID = "chat-store-operations"


class _TurnModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class TurnUIToolCall(_TurnModel):
    tool_id: str = Field(description="ID of the UI tool to render")
    tool_name: str = Field(description="name of the UI tool")
    props: str | None = Field(default=None, description="component props as a JSON string")
    requires_interaction: bool = Field(default=False, description="whether the user must interact with the tool")

    @field_validator("props", mode="before")
    @classmethod
    def _encode_props(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value)


class TurnDatabaseOperation(_TurnModel):
    type: DatabaseOperationType = Field(description="chat store operation to run")
    data: dict[str, Any] = Field(default_factory=dict, description="operation payload")


class TurnAgentCall(_TurnModel):
    target_agent: str = Field(description="ID of the agent to call")
    operation: str = Field(description="operation name")
    data: Any = Field(default=None, description="data passed to the target agent")


class AgentTurnOutput(_TurnModel):
    """structured output of one agent turn."""

    response: str = Field(description="reply shown to the user")
    ui_tool_calls: list[TurnUIToolCall] = Field(default_factory=list, description="UI tools to render")
    awaiting_ui_interaction: bool = Field(
        default=False,
        alias="awaitingUIInteraction",
        description="whether to wait for the user to interact with a UI tool",
    )
    database_operations: list[TurnDatabaseOperation] = Field(default_factory=list, description="chat store operations to run")
    agent_calls: list[TurnAgentCall] = Field(default_factory=list, description="calls to other agents")
    routing_decision: str | None = Field(default=None, description="next agent to run, or END to finish the turn")
    is_completed: bool = Field(default=False, description="whether the task is complete")
    needs_followup: bool = Field(default=False, description="whether follow-up work is needed")


class AgentCapabilities(BaseModel):
    """what an agent may emit in a turn."""

    ui_tools: list[UIToolInfo] = Field(default_factory=list)
    routing_targets: list[str] | None = None  # None when the agent cannot route
    can_complete: bool = False
    database_operations: bool = False
    call_targets: list[str] = Field(default_factory=list)

    @property
    def can_route(self) -> bool:
        return self.routing_targets is not None

    @property
    def can_call_ui_tools(self) -> bool:
        return bool(self.ui_tools)

    def enabled_fields(self) -> set[str]:
        fields = {"response"}
        if self.can_call_ui_tools:
            fields |= {"ui_tool_calls", "awaiting_ui_interaction"}
        if self.database_operations:
            fields.add("database_operations")
        if self.call_targets:
            fields.add("agent_calls")
        if self.can_route:
            fields.add("routing_decision")
        if self.can_complete:
            fields |= {"is_completed", "needs_followup"}
        return fields

    def json_schema(self) -> dict[str, Any]:
        """JSON schema for this agent's output, with legal targets as enums."""
        schema = inline_refs(AgentTurnOutput.model_json_schema())
        fields = AgentTurnOutput.model_fields
        enabled = {fields[name].alias or name for name in self.enabled_fields()}
        schema["properties"] = {
            key: value for key, value in schema["properties"].items() if key in enabled
        }

        properties = schema["properties"]
        if "routingDecision" in properties:
            properties["routingDecision"] = {
                "type": "string",
                "enum": [END, *(self.routing_targets or [])],
                "description": "next agent to run, or END to finish the turn",
            }
        if "agentCalls" in properties:
            item = properties["agentCalls"]["items"]
            item["properties"]["targetAgent"]["enum"] = list(self.call_targets)
        if "uiToolCalls" in properties:
            item = properties["uiToolCalls"]["items"]
            item["properties"]["toolId"]["enum"] = [tool.id for tool in self.ui_tools]

        required = ["response"]
        if self.can_complete:
            required += ["isCompleted", "needsFollowup"]
        schema["required"] = required
        return schema

    def restrict(self, output: AgentTurnOutput) -> AgentTurnOutput:
        """drop every field the agent is not entitled to."""
        enabled = self.enabled_fields()
        defaults = {
            name: copy.deepcopy(field.get_default(call_default_factory=True))
            for name, field in AgentTurnOutput.model_fields.items()
            if name not in enabled
        }
        return output.model_copy(update=defaults)


def capabilities_for(
    agent: AgentDefinition,
    system: AgentSystemSpec,
    available_ui_tools: list[UIToolInfo],
) -> AgentCapabilities:
    """derive an agent's capabilities from its definition and the system graph."""
    can_route = agent.can_route if agent.can_route is not None else agent.is_entry
    can_complete = (
        agent.can_complete if agent.can_complete is not None else agent.type == AgentRole.tool
    )
    return AgentCapabilities(
        ui_tools=[tool for tool in available_ui_tools if tool.id in agent.tool_access],
        routing_targets=system.routing_targets(agent.id) if can_route else None,
        can_complete=can_complete,
        database_operations=DATABASE_TOOL_ID in agent.tool_access,
        call_targets=system.call_targets(agent.id),
    )


def inline_refs(schema: dict[str, Any]) -> dict[str, Any]:
    """replace local `$ref`s with the referenced definitions."""
    defs = schema.get("$defs", {})

    def resolve(node: Any) -> Any:
        if isinstance(node, dict):
            ref = node.get("$ref")
            if isinstance(ref, str) and ref.startswith("#/$defs/"):
                return resolve(copy.deepcopy(defs[ref.split("/")[-1]]))
            return {key: resolve(value) for key, value in node.items() if key != "$defs"}
        if isinstance(node, list):
            return [resolve(item) for item in node]
        return node

    return resolve(schema)
