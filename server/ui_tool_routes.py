"""API routes for the UI tool registry."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from orchestra.lifecycle.deployer import remove_tool_from_system
from orchestra.models.ui_tool import UITool
from orchestra.runtime.runner import SystemRunner
from orchestra.uitools.registry import UIToolError, UIToolRegistry
from server.deps import get_registry, get_runner
from server.system_db import list_systems as db_list_systems
from server.system_db import upsert_system as db_upsert_system

logger = logging.getLogger(__name__)

router = APIRouter()


class RegisterToolRequest(BaseModel):
    """request body for registering a UI tool component."""

    name: str | None = None
    description: str | None = None
    code: str | None = None


@router.post("/ui-tools")
def register_tool(
    request: RegisterToolRequest, registry: UIToolRegistry = Depends(get_registry)
) -> UITool:
    """write a component file for a tool, replacing any previous version."""
    try:
        return registry.register(request.name or "", request.description or "", request.code or "")
    except UIToolError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/ui-tools")
def list_tools(registry: UIToolRegistry = Depends(get_registry)) -> list[UITool]:
    return registry.list_tools()


@router.get("/ui-tools/{tool_id}")
def get_tool(tool_id: str, registry: UIToolRegistry = Depends(get_registry)) -> UITool:
    tool = registry.get(tool_id)
    if not tool:
        raise HTTPException(status_code=404, detail=f"UI tool not found: {tool_id}")
    return tool


@router.delete("/ui-tools/{tool_id}")
async def delete_tool(
    tool_id: str,
    registry: UIToolRegistry = Depends(get_registry),
    runner: SystemRunner = Depends(get_runner),
) -> dict:
    """delete a tool and revoke it from every stored system."""
    if not await run_in_threadpool(registry.delete, tool_id):
        raise HTTPException(status_code=404, detail=f"UI tool not found: {tool_id}")

    updated = []
    for system in await run_in_threadpool(db_list_systems):
        if remove_tool_from_system(system, tool_id):
            await run_in_threadpool(db_upsert_system, system)
            if runner.is_loaded(system.id):
                runner.load_system(system)
            updated.append(system.id)
    logger.info("Removed UI tool %s from %d systems", tool_id, len(updated))
    return {"deleted": tool_id, "updated_systems": updated}
