"""API route for chatting with a deployed agent system."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from orchestra.models.agent_system import AgentSystemSpec, SystemStatus
from orchestra.models.execution import AgentExecutionResult, UIToolCall
from orchestra.models.message import Message, MessageInput
from orchestra.runtime.capabilities import DATABASE_TOOL_ID
from orchestra.runtime.errors import ConfigurationError
from orchestra.runtime.runner import SystemRunner
from orchestra.uitools.messages import embed_tool_calls
from orchestra.uitools.registry import UIToolRegistry
from orchestra.utils.identifiers import utc_timestamp
from server.deps import get_registry, get_runner
from server.system_db import get_system as db_get_system
from server.system_db import upsert_system as db_upsert_system

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatRequest(BaseModel):
    messages: list[MessageInput]
    session_id: str | None = Field(default=None, alias="sessionId")

    model_config = {"populate_by_name": True}


class ChatResponse(BaseModel):
    """reply for the chat client, with UI tool calls embedded in `content`."""

    session_id: str
    content: str
    agent_id: str | None = None
    completed: bool
    awaiting_ui_interaction: bool
    ui_tool_calls: list[UIToolCall] | None = None
    messages: list[Message]
    metadata: dict = Field(default_factory=dict)


def user_facing_message(system: AgentSystemSpec, messages: list[Message]) -> Message | None:
    """first non-empty reply from an agent that does not only talk to the database."""
    if not messages:
        return None
    storage_agents = {
        agent.id for agent in system.agents if agent.tool_access == [DATABASE_TOOL_ID]
    }
    for message in messages:
        if message.agent_id not in storage_agents and message.content.strip():
            return message
    return messages[-1]


def render_reply(message: Message | None, result: AgentExecutionResult, session_id: str) -> str:
    content = message.content if message else ""
    if result.agent_calls:
        calls = "\n".join(f"Agent: {c.target_agent} ({c.operation})" for c in result.agent_calls)
        content += f"\n\n{calls}"
    if result.ui_tool_calls:
        content = embed_tool_calls(
            content, result.ui_tool_calls, session_id, result.awaiting_ui_interaction
        )
    return content


@router.post("/agent-chat/{system_id}")
async def chat(
    system_id: str,
    request: ChatRequest,
    response: Response,
    runner: SystemRunner = Depends(get_runner),
    registry: UIToolRegistry = Depends(get_registry),
) -> ChatResponse:
    """run the latest user message through the system's routing loop."""
    system = await run_in_threadpool(db_get_system, system_id)
    if not system:
        raise HTTPException(status_code=404, detail="Agent system not found")
    if system.status != SystemStatus.active:
        raise HTTPException(
            status_code=400,
            detail="Agent system is not active. Please deploy the system first.",
        )
    if not request.messages or request.messages[-1].role != "user":
        raise HTTPException(status_code=400, detail="The last message must be a user message")

    registered = await run_in_threadpool(registry.tool_infos)
    tools = [tool for tool in registered if tool.id in system.ui_tools]
    runner.load_system(system)
    try:
        result = await runner.run(
            system_id,
            [request.messages[-1]],
            available_ui_tools=tools,
            session_id=request.session_id,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session_id = result.metadata["session_id"]

    system.metadata.last_active = utc_timestamp()
    await run_in_threadpool(db_upsert_system, system)

    reply = user_facing_message(system, result.messages)
    response.headers["x-session-id"] = session_id
    return ChatResponse(
        session_id=session_id,
        content=render_reply(reply, result, session_id),
        agent_id=reply.agent_id if reply else None,
        completed=result.completed,
        awaiting_ui_interaction=result.awaiting_ui_interaction,
        ui_tool_calls=result.ui_tool_calls,
        messages=result.messages,
        metadata=result.metadata,
    )
