"""Deploys designed systems into a runner."""

import logging
from collections.abc import Callable

from orchestra.models.agent_system import AgentSystemSpec, Deployment, SystemStatus
from orchestra.runtime.runner import SystemRunner
from orchestra.uitools.registry import UIToolError, UIToolRegistry
from orchestra.uitools.templates import placeholder_component
from orchestra.utils.identifiers import utc_timestamp

logger = logging.getLogger(__name__)

SaveSystem = Callable[[AgentSystemSpec], None]


class SystemDeployer:
    """Moves a system from pending to active.

    Pending UI requirements are turned into placeholder components, granted
    to the requesting agent and added to the system's tools, then the
    system is loaded into the runner. `save` is called at every status
    change so that the stored spec reflects progress.
    """

    def __init__(self, runner: SystemRunner, registry: UIToolRegistry, save: SaveSystem) -> None:
        self.runner = runner
        self.registry = registry
        self.save = save

    def deploy(self, system: AgentSystemSpec, auto_create_ui: bool = True) -> Deployment:
        logs = [
            f"Starting deployment of {system.name}",
            f"Found {len(system.agents)} agents",
            f"Found {len(system.pending_ui_requirements)} UI requirements",
        ]
        created: list[str] = []
        warnings = system.validate_connections()
        for warning in warnings:
            logs.append(f"Warning: {warning}")

        system.status = SystemStatus.deploying
        system.error = None
        self.save(system)

        try:
            if auto_create_ui and system.pending_ui_requirements:
                logs.append("Creating UI components...")
                created = self._create_pending_tools(system, logs)
                system.pending_ui_requirements = []

            logs.append("Loading system into the runner...")
            self.runner.load_system(system)
            logs.append("System loaded")
        except Exception as e:
            logger.exception("Deployment of %s failed", system.id)
            logs.append(f"Deployment failed: {e}")
            system.status = SystemStatus.error
            system.error = str(e)
            self.save(system)
            return Deployment(
                system_id=system.id,
                status=SystemStatus.error,
                deployed_at=utc_timestamp(),
                endpoint=f"/api/agent-chat/{system.id}",
                logs=logs,
                ui_tools_created=created,
                connection_warnings=warnings,
                error=str(e),
            )

        now = utc_timestamp()
        system.status = SystemStatus.active
        system.metadata.deployed_at = now
        system.metadata.last_active = now
        self.save(system)
        logs.append("Deployment completed successfully")
        logger.info("Deployed system %s", system.id)

        return Deployment(
            system_id=system.id,
            status=SystemStatus.active,
            deployed_at=now,
            endpoint=f"/api/agent-chat/{system.id}",
            agents_configured=len(system.agents),
            logs=logs,
            ui_tools_created=created,
            connection_warnings=warnings,
        )

    def _create_pending_tools(self, system: AgentSystemSpec, logs: list[str]) -> list[str]:
        created = []
        for requirement in system.pending_ui_requirements:
            agent = system.get_agent(requirement.agent_id)
            agent_name = agent.name if agent else requirement.agent_id
            logs.append(f"Creating UI: {requirement.tool_name}")
            try:
                tool = self.registry.register(
                    requirement.tool_name,
                    requirement.description or requirement.tool_name,
                    placeholder_component(requirement, agent_name),
                )
            except (UIToolError, OSError) as e:
                logger.warning("Could not create UI tool %s: %s", requirement.tool_name, e)
                logs.append(f"Failed to create: {requirement.tool_name} ({e})")
                continue

            created.append(tool.id)
            logs.append(f"Created: {tool.id}")
            if agent and tool.id not in agent.tool_access:
                agent.tool_access.append(tool.id)
            if tool.id not in system.ui_tools:
                system.ui_tools.append(tool.id)
        return created


def remove_tool_from_system(system: AgentSystemSpec, tool_id: str) -> bool:
    """strip a tool from the system and every agent; True when anything changed."""
    changed = False
    if tool_id in system.ui_tools:
        system.ui_tools = [t for t in system.ui_tools if t != tool_id]
        changed = True
    for agent in system.agents:
        if tool_id in agent.tool_access:
            agent.tool_access = [t for t in agent.tool_access if t != tool_id]
            changed = True
    if changed:
        system.metadata.last_active = utc_timestamp()
    return changed
