"""Embedding UI tool calls into assistant message content.

Chat clients receive plain text; UI tool calls ride along as an HTML
comment marker that the client strips and renders.
"""

import json
import re
from typing import Any

from orchestra.models.execution import UIToolCall

_MARKER = re.compile(r"<!-- UI_TOOL_CALLS: ([\s\S]*?) -->")


def parse_props(props: str | None) -> Any:
    """decode serialized props; undecodable text is wrapped as `rawProps`."""
    if not props:
        return {}
    try:
        return json.loads(props)
    except json.JSONDecodeError:
        return {"rawProps": props}


def tool_call_payload(
    calls: list[UIToolCall], session_id: str, awaiting_interaction: bool
) -> dict[str, Any]:
    return {
        "type": "ui-tool-calls",
        "calls": [
            {
                "toolId": call.tool_id,
                "toolName": call.tool_name,
                "props": parse_props(call.props),
                "requiresInteraction": call.requires_interaction,
            }
            for call in calls
        ],
        "sessionId": session_id,
        "awaitingInteraction": awaiting_interaction,
    }


def describe_tool_calls(calls: list[UIToolCall]) -> str:
    """human-readable summary appended under an agent reply."""
    lines = ["", "", "UI tools:"]
    for call in calls:
        suffix = " (awaiting your input)" if call.requires_interaction else ""
        lines.append(f"- {call.tool_name}{suffix}")
    return "\n".join(lines)


def embed_tool_calls(
    content: str, calls: list[UIToolCall], session_id: str, awaiting_interaction: bool
) -> str:
    if not calls:
        return content
    payload = json.dumps(tool_call_payload(calls, session_id, awaiting_interaction))
    return f"{content}{describe_tool_calls(calls)}\n\n<!-- UI_TOOL_CALLS: {payload} -->"


def extract_tool_calls(content: str) -> tuple[str, dict[str, Any] | None]:
    """split message content into clean text and the embedded payload.

    Returns:
        The content without the marker, and the decoded payload or None
        when there is no marker or it does not decode.
    """
    match = _MARKER.search(content)
    if not match:
        return content, None
    cleaned = (content[: match.start()] + content[match.end():]).strip()
    try:
        return cleaned, json.loads(match.group(1))
    except json.JSONDecodeError:
        return cleaned, None
