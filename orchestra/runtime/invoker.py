"""Structured agent invocation.

One call of `AgentInvoker.invoke` is one agent turn: render the prompt,
make a single structured LLM call, then turn the structured output into an
AgentExecutionResult. The invoker never raises; LLM failures become an
apology message.
"""

import logging
from typing import Any

from orchestra.models.agent_system import AgentDefinition, AgentSystemSpec
from orchestra.models.execution import (
    AgentCall,
    AgentExecutionResult,
    DatabaseCall,
    DatabaseOperation,
    DatabaseOperationType,
    InteractionContext,
    OperationResult,
    UIToolCall,
)
from orchestra.models.message import Message, PersistedState, UIToolInfo
from orchestra.models.session import SessionState
from orchestra.persistence.base import ChatStore
from orchestra.runtime.capabilities import (
    AgentTurnOutput,
    TurnDatabaseOperation,
    capabilities_for,
)
from orchestra.runtime.interactions import recent_interactions
from orchestra.runtime.llm import StructuredLLM
from orchestra.runtime.prompts import (
    build_conversation_prompt,
    build_system_prompt,
    welcome_message,
)
from orchestra.utils.identifiers import generate_message_id, utc_timestamp

logger = logging.getLogger(__name__)

# UI interactions younger than this are shown to the agent
PROMPT_INTERACTION_WINDOW_SECONDS = 30


def assistant_message(content: str, agent_id: str) -> Message:
    return Message(
        id=generate_message_id(),
        role="assistant",
        content=content,
        timestamp=utc_timestamp(),
        agent_id=agent_id,
    )


class AgentInvoker:
    """Runs single agent turns against a structured-output LLM."""

    def __init__(self, llm: StructuredLLM, chat_store: ChatStore | None = None) -> None:
        self.llm = llm
        self.chat_store = chat_store

    async def invoke(
        self,
        agent: AgentDefinition,
        system: AgentSystemSpec,
        state: SessionState,
        available_ui_tools: list[UIToolInfo],
    ) -> AgentExecutionResult:
        """Run one turn of `agent` over the session history.

        Args:
            agent: the agent to run
            system: the system the agent belongs to
            state: the session; `state.messages` is the full history and is
                only mutated to mark messages as persisted
            available_ui_tools: UI tools registered for this session

        Returns:
            The turn result. Never raises.
        """
        if not state.messages:
            if agent.is_entry:
                return AgentExecutionResult(
                    messages=[assistant_message(welcome_message(system), agent.id)],
                    current_agent=agent.id,
                )
            logger.warning("Agent %s invoked with an empty history", agent.id)
            return AgentExecutionResult(current_agent=agent.id)

        capabilities = capabilities_for(agent, system, available_ui_tools)
        recent = recent_interactions(state.interaction_history, PROMPT_INTERACTION_WINDOW_SECONDS)
        system_prompt = build_system_prompt(agent, system, capabilities, recent)
        prompt = build_conversation_prompt(state.messages)

        try:
            raw = await self.llm.generate_structured(system_prompt, prompt, capabilities.json_schema())
            output = capabilities.restrict(AgentTurnOutput.model_validate(raw))
        except Exception as e:
            logger.error("Agent %s failed: %s", agent.id, e)
            return AgentExecutionResult(
                messages=[assistant_message(system.apology_message, agent.id)],
                current_agent=agent.id,
                completed=False,
            )

        logger.info("Agent %s responded (routing=%s)", agent.id, output.routing_decision)
        result = AgentExecutionResult(
            messages=[assistant_message(output.response, agent.id)],
            current_agent=agent.id,
            routing_decision=output.routing_decision,
            completed=output.is_completed,
            tools_used=list(agent.tool_access),
            awaiting_ui_interaction=output.awaiting_ui_interaction,
        )

        if output.ui_tool_calls:
            result.ui_tool_calls = [
                UIToolCall(
                    tool_id=call.tool_id,
                    tool_name=call.tool_name,
                    props=call.props,
                    requires_interaction=call.requires_interaction,
                )
                for call in output.ui_tool_calls
            ]
            if any(call.requires_interaction for call in output.ui_tool_calls):
                result.interaction_context = InteractionContext(
                    expected_events=[call.tool_id for call in output.ui_tool_calls]
                )

        if output.database_operations:
            result.database_calls = await self._run_operations(
                output.database_operations, system, state
            )

        if output.agent_calls:
            result.agent_calls = [
                AgentCall(target_agent=call.target_agent, operation=call.operation, data=call.data)
                for call in output.agent_calls
            ]
        return result

    async def _run_operations(
        self,
        operations: list[TurnDatabaseOperation],
        system: AgentSystemSpec,
        state: SessionState,
    ) -> list[DatabaseCall]:
        calls: list[DatabaseCall] = []
        for requested in operations:
            operation = DatabaseOperation(type=requested.type, data=dict(requested.data))
            if operation.type == DatabaseOperationType.save_message and not self._should_save(
                operation.data, state.messages
            ):
                continue

            data = _with_defaults(operation.data, operation.type, system.id, state.session_id)
            result = await self._execute(DatabaseOperation(type=operation.type, data=data))
            if not result.success:
                logger.warning("Database operation %s failed: %s", operation.type.value, result.error)
            calls.append(DatabaseCall(operation=operation, result=result))

            if result.success and operation.type == DatabaseOperationType.save_message:
                _mark_persisted(state.messages, operation.data["role"], operation.data["content"])
        return calls

    async def _execute(self, operation: DatabaseOperation) -> OperationResult:
        if self.chat_store is None:
            return OperationResult(
                success=False,
                operation_type=operation.type,
                error="No chat store configured",
            )
        try:
            return await self.chat_store.execute(operation)
        except Exception as e:
            logger.error("Chat store raised on %s: %s", operation.type.value, e)
            return OperationResult(success=False, operation_type=operation.type, error=str(e))

    @staticmethod
    def _should_save(data: dict[str, Any], messages: list[Message]) -> bool:
        role, content = data.get("role"), data.get("content")
        if not role or not content:
            logger.debug("Skipping save_message without role or content")
            return False
        for message in messages:
            if message.is_persisted and message.role == role and message.content == content:
                logger.debug("Skipping duplicate save_message for %s message", role)
                return False
        return True


def _with_defaults(
    data: dict[str, Any], operation_type: DatabaseOperationType, system_id: str, session_id: str
) -> dict[str, Any]:
    """fill system and session ids and expand `{system_id}` placeholders."""
    filled = {
        key: value.replace("{system_id}", system_id) if isinstance(value, str) else value
        for key, value in data.items()
    }
    filled.setdefault("system_id", system_id)
    if operation_type in (
        DatabaseOperationType.save_message,
        DatabaseOperationType.update_snapshot,
        DatabaseOperationType.create_session,
    ) and not filled.get("session_id"):
        filled["session_id"] = session_id
    return filled


def _mark_persisted(messages: list[Message], role: str, content: str) -> None:
    for message in messages:
        if message.role == role and message.content == content and not message.is_persisted:
            message.persisted = PersistedState.persisted
