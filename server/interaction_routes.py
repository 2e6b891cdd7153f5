"""API routes for UI interaction events."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from orchestra.models.interaction import UIInteractionEvent
from orchestra.runtime.runner import SystemRunner
from orchestra.uitools.messages import embed_tool_calls
from server.deps import get_runner

router = APIRouter()


class InteractionRequest(BaseModel):
    """a UI event as posted by the browser; required fields are checked by hand."""

    tool_id: str | None = Field(default=None, alias="toolId")
    event_type: str | None = Field(default=None, alias="eventType")
    session_id: str | None = Field(default=None, alias="sessionId")
    agent_id: str | None = Field(default=None, alias="agentId")
    data: Any = None
    timestamp: str | None = None

    model_config = {"populate_by_name": True}


@router.post("/ui-interaction")
async def post_interaction(
    request: InteractionRequest, runner: SystemRunner = Depends(get_runner)
) -> dict:
    """record a UI event and resume the session it belongs to."""
    missing = [
        alias
        for alias, value in (
            ("toolId", request.tool_id),
            ("eventType", request.event_type),
            ("sessionId", request.session_id),
        )
        if not value
    ]
    if missing:
        raise HTTPException(
            status_code=400, detail=f"Missing required fields: {', '.join(missing)}"
        )

    event = UIInteractionEvent.model_validate(request.model_dump())
    runner.handle_ui_interaction(event)
    result = await runner.resume(event.session_id, event)

    agent_response = None
    if result and result.messages:
        agent_response = result.messages[-1].content
        if result.ui_tool_calls:
            agent_response = embed_tool_calls(
                agent_response, result.ui_tool_calls, event.session_id, result.awaiting_ui_interaction
            )
    messages = result.messages if result else []
    return {
        "success": True,
        "message": "UI interaction processed successfully",
        "session_continued": result is not None,
        "agent_response": agent_response,
        "awaiting_ui_interaction": bool(result and result.awaiting_ui_interaction),
        "messages": [m.model_dump() for m in messages],
        "total_messages": len(messages),
    }


@router.get("/ui-interaction")
async def get_interactions(
    session_id: str | None = Query(default=None, alias="sessionId"),
    runner: SystemRunner = Depends(get_runner),
) -> dict:
    """interaction history of a session."""
    if not session_id:
        raise HTTPException(status_code=400, detail="sessionId parameter is required")
    state = runner.get_session_state(session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return {
        "session_id": session_id,
        "interactions": [e.model_dump() for e in state.ui_interactions],
        "interaction_history": [r.model_dump() for r in state.interaction_history],
        "total_interactions": len(state.ui_interactions),
    }
