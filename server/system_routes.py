"""API routes for agent systems: design, CRUD, deployment and permissions."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from orchestra.lifecycle.deployer import SystemDeployer
from orchestra.lifecycle.designer import SystemDesigner
from orchestra.models.agent_system import (
    AgentConnection,
    AgentDefinition,
    AgentSystemSpec,
    Deployment,
    SystemStatus,
)
from orchestra.runtime.runner import SystemRunner
from orchestra.uitools.access import (
    agents_with_tool_access,
    permission_report,
    validate_tool_configuration,
)
from orchestra.uitools.registry import UIToolRegistry
from orchestra.utils.identifiers import utc_timestamp
from server.deps import get_deployer, get_designer, get_registry, get_runner
from server.system_db import (
    delete_system as db_delete_system,
    get_system as db_get_system,
    list_systems as db_list_systems,
    upsert_system as db_upsert_system,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateSystemRequest(BaseModel):
    """request body for designing a new system."""

    name: str | None = None
    description: str | None = None
    user_prompt: str | None = Field(default=None, alias="userPrompt")

    model_config = {"populate_by_name": True}


class UpdateSystemRequest(BaseModel):
    """partial update of a stored system."""

    name: str | None = None
    description: str | None = None
    agents: list[AgentDefinition] | None = None
    connections: list[AgentConnection] | None = None
    ui_tools: list[str] | None = None
    apology_message: str | None = None


class DeployRequest(BaseModel):
    auto_create_ui: bool = Field(default=True, alias="autoCreateUI")

    model_config = {"populate_by_name": True}


def _require_system(system_id: str) -> AgentSystemSpec:
    system = db_get_system(system_id)
    if not system:
        raise HTTPException(status_code=404, detail=f"Agent system not found: {system_id}")
    return system


@router.post("/agent-systems")
async def create_system(
    request: CreateSystemRequest,
    designer: SystemDesigner = Depends(get_designer),
    registry: UIToolRegistry = Depends(get_registry),
) -> AgentSystemSpec:
    """design a system from a natural-language request and store it as pending."""
    if not request.user_prompt or not request.name or not request.description:
        raise HTTPException(
            status_code=400, detail="Missing required fields: name, description, userPrompt"
        )
    tools = await run_in_threadpool(registry.tool_infos)
    try:
        system = await designer.design(request.user_prompt, tools, request.name, request.description)
    except Exception as e:
        logger.exception("System design failed")
        raise HTTPException(status_code=500, detail=f"Failed to create agent system: {e}")
    await run_in_threadpool(db_upsert_system, system)
    return system


@router.get("/agent-systems")
def list_systems(status: SystemStatus | None = None) -> list[AgentSystemSpec]:
    """list stored systems, newest first."""
    return db_list_systems(status.value if status else None)


@router.get("/agent-systems/{system_id}")
def get_system(system_id: str) -> AgentSystemSpec:
    return _require_system(system_id)


@router.put("/agent-systems/{system_id}")
async def update_system(
    system_id: str,
    request: UpdateSystemRequest,
    runner: SystemRunner = Depends(get_runner),
) -> AgentSystemSpec:
    """update a system; an active system is reloaded into the runner."""
    system = await run_in_threadpool(_require_system, system_id)
    changes = request.model_dump(exclude_none=True)
    updated = AgentSystemSpec.model_validate(
        {**system.model_dump(), **changes, "id": system.id}
    )
    updated.metadata.last_active = utc_timestamp()
    await run_in_threadpool(db_upsert_system, updated)
    if updated.status == SystemStatus.active and runner.is_loaded(system_id):
        runner.load_system(updated)
    return updated


@router.delete("/agent-systems/{system_id}")
async def delete_system(system_id: str, runner: SystemRunner = Depends(get_runner)) -> dict:
    await run_in_threadpool(_require_system, system_id)
    runner.unload_system(system_id)
    await run_in_threadpool(db_delete_system, system_id)
    return {"deleted": system_id}


@router.post("/agent-systems/{system_id}/deploy")
async def deploy_system(
    system_id: str,
    request: DeployRequest | None = None,
    deployer: SystemDeployer = Depends(get_deployer),
) -> Deployment:
    """create pending UI tools, load the system into the runner and mark it active."""
    system = await run_in_threadpool(_require_system, system_id)
    auto_create_ui = request.auto_create_ui if request else True
    return deployer.deploy(system, auto_create_ui=auto_create_ui)


@router.get("/agent-systems/{system_id}/permissions")
def get_permissions(
    system_id: str, registry: UIToolRegistry = Depends(get_registry)
) -> dict:
    """UI tool permission report and configuration check for a system."""
    system = _require_system(system_id)
    system_tools = [tool for tool in registry.tool_infos() if tool.id in system.ui_tools]
    with_access = agents_with_tool_access(system)
    granted = {tool_id for agent in with_access for tool_id in agent.tool_access}
    return {
        "system_id": system.id,
        "system_name": system.name,
        "permission_report": [r.model_dump() for r in permission_report(system, system_tools)],
        "config_validation": validate_tool_configuration(system, system_tools).model_dump(),
        "stats": {
            "total_agents": len(system.agents),
            "agents_with_ui_access": len(with_access),
            "total_system_ui_tools": len(system.ui_tools),
            "available_ui_tools": len(system_tools),
            "orphaned_tools": [t for t in system.ui_tools if t not in granted],
        },
    }
