"""Prompt rendering for agent turns."""

import json

from orchestra.models.agent_system import END, AgentDefinition, AgentSystemSpec
from orchestra.models.interaction import InteractionRecord
from orchestra.models.message import Message
from orchestra.runtime.capabilities import AgentCapabilities


def welcome_message(system: AgentSystemSpec) -> str:
    return f"Welcome to {system.name}! {system.description}".strip()


def _routing_section(agent: AgentDefinition, system: AgentSystemSpec) -> str:
    lines = [
        "=== COORDINATION ===",
        f'You are the coordinator of "{system.name}".',
        f"System goal: {system.description}",
        "",
        "Downstream agents:",
    ]
    for target_id in system.routing_targets(agent.id):
        target = system.get_agent(target_id)
        if target:
            lines.append(f"- {target.name} ({target.id}): {target.description}")

    lines += ["", "Routing rules:"]
    for conn in system.outgoing(agent.id):
        if conn.target == END:
            lines.append(f"- choose {END}: {conn.description or 'the task is complete'}")
            continue
        target = system.get_agent(conn.target)
        if not target:
            continue
        rule = f"- route to {target.name}: {conn.description or 'handles related tasks'}"
        if conn.condition:
            rule += f" (condition: {conn.condition})"
        lines.append(rule)
    for rule in agent.routing_rules:
        lines.append(f"- {rule}")

    lines += [
        "",
        "Principles:",
        "1. Read the whole conversation history to understand the current progress.",
        "2. Do not repeat steps that are already done.",
        "3. Pick the next step that fits the user's request and the system flow.",
        f"4. Choose {END} once the task is complete.",
    ]
    return "\n".join(lines)


def _ui_tool_section(capabilities: AgentCapabilities) -> str:
    tools = capabilities.ui_tools
    example = json.dumps(
        [
            {
                "toolId": tools[0].id,
                "toolName": tools[0].name,
                "props": json.dumps({"title": "Please enter your details"}),
                "requiresInteraction": True,
            }
        ],
        indent=2,
    )
    lines = ["=== UI TOOLS ===", "You can render these UI tools:"]
    lines += [f"- {tool.name} ({tool.id}): {tool.description}" for tool in tools]
    lines += [
        "",
        "Usage:",
        "1. List the tools to render in uiToolCalls.",
        "2. Set requiresInteraction to true when the user has to interact with the tool.",
        "3. Set awaitingUIInteraction to true to wait for the user's response.",
        "4. props is a JSON string configuring the component.",
        "",
        f"Example for {tools[0].name}:",
        example,
    ]
    return "\n".join(lines)


def build_system_prompt(
    agent: AgentDefinition,
    system: AgentSystemSpec,
    capabilities: AgentCapabilities,
    recent_interactions: list[InteractionRecord],
) -> str:
    """assemble the system instructions for one agent turn."""
    sections = [
        agent.system_prompt,
        "\n".join(
            [
                f"Your role: {agent.name}",
                f"Responsibilities: {agent.description}",
                f"Capabilities: {', '.join(agent.capabilities)}",
            ]
        ),
    ]
    if capabilities.ui_tools:
        sections.append(
            "Available UI tools:\n"
            + "\n".join(f"- {t.name} ({t.id}): {t.description}" for t in capabilities.ui_tools)
        )
    if recent_interactions:
        sections.append(
            "Recent UI interactions:\n"
            + "\n".join(
                f"- {r.tool_id}: {r.event.event_type.value} - {json.dumps(r.event.data, default=str)}"
                for r in recent_interactions
            )
        )
    if capabilities.can_route and agent.is_entry:
        sections.append(_routing_section(agent, system))
    if capabilities.ui_tools:
        sections.append(_ui_tool_section(capabilities))
    return "\n\n".join(section for section in sections if section)


def build_conversation_prompt(messages: list[Message]) -> str:
    """render the full history with a persisted marker per message."""
    rendered = []
    for index, message in enumerate(messages, start=1):
        status = "[saved]" if message.is_persisted else "[unsaved]"
        rendered.append(f"[Message {index}] {status} {message.role}: {message.content}")
    return "\n\n".join(rendered)


def interaction_context_message(
    triggering: InteractionRecord | None,
    recent: list[InteractionRecord],
) -> str:
    """describe UI interactions for the coordinator after a widget event."""
    lines = ["The user just interacted with a UI component.", ""]
    if triggering:
        event = triggering.event
        lines += [
            "Latest interaction:",
            f"- tool: {event.tool_id}",
            f"- type: {event.event_type.value}",
            f"- data: {json.dumps(event.data, indent=2, default=str)}",
            "",
        ]
    if recent:
        lines.append("All recent interactions:")
        for index, record in enumerate(recent, start=1):
            event = record.event
            lines.append(
                f"{index}. {event.tool_id} ({event.event_type.value}): {json.dumps(event.data, default=str)}"
            )
    lines += ["", "Respond based on this interaction data."]
    return "\n".join(lines)
