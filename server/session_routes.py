"""API routes for chat sessions: live runtime state and stored history."""

from fastapi import APIRouter, Depends, HTTPException

from orchestra.models.execution import DatabaseOperation, DatabaseOperationType
from orchestra.models.session import SessionState
from orchestra.persistence.base import ChatStore
from orchestra.runtime.runner import SystemRunner
from server.deps import get_chat_store, get_runner

router = APIRouter()


@router.get("/sessions/{session_id}")
async def get_session_state(
    session_id: str, runner: SystemRunner = Depends(get_runner)
) -> SessionState:
    """the in-memory state of a live session."""
    state = runner.get_session_state(session_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return state


@router.delete("/sessions/{session_id}")
async def clear_session(session_id: str, runner: SystemRunner = Depends(get_runner)) -> dict:
    """drop a live session and its UI handler."""
    if runner.get_session_state(session_id) is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    runner.clear_session(session_id)
    return {"cleared": session_id}


@router.get("/chat-sessions")
async def list_chat_sessions(
    system_id: str | None = None,
    limit: int = 50,
    store: ChatStore = Depends(get_chat_store),
) -> list[dict]:
    """stored chat sessions, most recently updated first."""
    result = await store.execute(
        DatabaseOperation(
            type=DatabaseOperationType.get_sessions,
            data={"system_id": system_id, "limit": limit},
        )
    )
    if not result.success:
        raise HTTPException(status_code=500, detail=result.error)
    return result.data


@router.get("/chat-sessions/{session_id}")
async def get_chat_session(session_id: str, store: ChatStore = Depends(get_chat_store)) -> dict:
    """a stored chat session with its messages."""
    result = await store.execute(
        DatabaseOperation(type=DatabaseOperationType.get_session, data={"session_id": session_id})
    )
    if not result.success:
        raise HTTPException(status_code=404, detail=result.error)
    return result.data


@router.delete("/chat-sessions/{session_id}")
async def delete_chat_session(session_id: str, store: ChatStore = Depends(get_chat_store)) -> dict:
    result = await store.execute(
        DatabaseOperation(type=DatabaseOperationType.delete_session, data={"session_id": session_id})
    )
    if not result.success:
        raise HTTPException(status_code=500, detail=result.error)
    return result.data
