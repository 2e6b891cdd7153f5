"""Agent system runner.

Holds the loaded systems and drives conversations through them:

* `run` handles a new chat message. It starts at the orchestrator and follows
  routing decisions until an agent ends the turn, waits for UI input, or the
  iteration cap is reached.
* `resume` handles a UI interaction on a suspended conversation. It always
  re-enters at the orchestrator and runs exactly one agent turn.
"""

import logging
from collections.abc import Iterable

from orchestra.models.agent_system import END, AgentDefinition, AgentSystemSpec
from orchestra.models.execution import AgentExecutionResult
from orchestra.models.interaction import InteractionRecord, UIInteractionEvent
from orchestra.models.message import Message, MessageInput, UIToolInfo
from orchestra.models.session import SessionState
from orchestra.persistence.base import ChatStore
from orchestra.runtime.errors import ConfigurationError, EntryAgentError, SystemNotLoadedError
from orchestra.runtime.interactions import InteractionHandler, InteractionRecorder, recent_interactions
from orchestra.runtime.invoker import AgentInvoker, assistant_message
from orchestra.runtime.llm import StructuredLLM
from orchestra.runtime.prompts import interaction_context_message
from orchestra.runtime.sessions import SessionStore, new_messages
from orchestra.utils.identifiers import generate_session_id, utc_timestamp

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 10
# a session is resumable this long after its last UI interaction
RESUME_WINDOW_SECONDS = 60

RESUME_APOLOGY = (
    "Sorry, something went wrong while handling your interaction. "
    "Please try again or start a new conversation."
)


class SystemRunner:
    """Runs loaded agent systems over in-memory sessions."""

    def __init__(
        self,
        llm: StructuredLLM,
        chat_store: ChatStore | None = None,
        sessions: SessionStore | None = None,
        max_iterations: int = MAX_ITERATIONS,
    ) -> None:
        self.invoker = AgentInvoker(llm, chat_store)
        self.sessions = sessions if sessions is not None else SessionStore()
        self.recorder = InteractionRecorder(self.sessions)
        self.max_iterations = max_iterations
        self._systems: dict[str, AgentSystemSpec] = {}

    # systems

    def load_system(self, system: AgentSystemSpec) -> None:
        self._systems[system.id] = system
        logger.info("Loaded system %s (%d agents)", system.id, len(system.agents))

    def unload_system(self, system_id: str) -> None:
        self._systems.pop(system_id, None)

    def get_system(self, system_id: str) -> AgentSystemSpec | None:
        return self._systems.get(system_id)

    def is_loaded(self, system_id: str) -> bool:
        return system_id in self._systems

    def _entry_agent(self, system: AgentSystemSpec) -> AgentDefinition:
        entries = system.entry_agents()
        if len(entries) != 1:
            raise EntryAgentError(system.id, len(entries))
        return entries[0]

    # sessions and UI events

    def get_session_state(self, session_id: str) -> SessionState | None:
        return self.sessions.get(session_id)

    def clear_session(self, session_id: str) -> None:
        self.sessions.delete(session_id)
        self.recorder.unregister(session_id)

    def register_ui_interaction_handler(self, session_id: str, handler: InteractionHandler) -> None:
        self.recorder.register_handler(session_id, handler)

    def handle_ui_interaction(self, event: UIInteractionEvent) -> InteractionRecord | None:
        """record a UI event; does not resume the conversation."""
        return self.recorder.handle(event)

    # execution

    async def run(
        self,
        system_id: str,
        messages: Iterable[MessageInput],
        available_ui_tools: list[UIToolInfo] | None = None,
        session_id: str | None = None,
    ) -> AgentExecutionResult:
        """Run one conversational turn through the routing loop.

        Args:
            system_id: a loaded system
            messages: inbound messages, appended to the session in order
            available_ui_tools: UI tools to advertise; defaults to the
                tools remembered on the session
            session_id: existing session to continue; a new one is created
                when omitted or unknown

        Returns:
            The last agent's result with `messages` replaced by every message
            produced during the turn.

        Raises:
            SystemNotLoadedError: the system was never loaded
            EntryAgentError: the system lacks a unique orchestrator
        """
        system = self._systems.get(system_id)
        if system is None:
            raise SystemNotLoadedError(system_id)
        entry = self._entry_agent(system)
        session_id = session_id or generate_session_id(system_id)
        inbound = new_messages(messages)

        async with self.sessions.lock(session_id):
            state, created = self.sessions.get_or_create(
                session_id, system_id, available_ui_tools=available_ui_tools
            )
            if not created and state.system_id != system_id:
                raise ConfigurationError(
                    f"Session {session_id} belongs to system {state.system_id}, not {system_id}"
                )
            if available_ui_tools is not None:
                state.available_ui_tools = list(available_ui_tools)
            self.sessions.append_messages(session_id, inbound)
            return await self._route(system, entry, state)

    async def _route(
        self, system: AgentSystemSpec, entry: AgentDefinition, state: SessionState
    ) -> AgentExecutionResult:
        produced: list[Message] = []
        ui_tool_calls, database_calls, agent_calls = [], [], []
        tools_used: list[str] = []
        current = entry
        result: AgentExecutionResult | None = None
        termination = "max_iterations"
        iteration = 0

        while iteration < self.max_iterations:
            iteration += 1
            logger.info("Iteration %d: running agent %s", iteration, current.id)
            result = await self.invoker.invoke(current, system, state, state.available_ui_tools)
            self.sessions.append_messages(state.session_id, result.messages)
            produced.extend(result.messages)
            ui_tool_calls.extend(result.ui_tool_calls or [])
            database_calls.extend(result.database_calls or [])
            agent_calls.extend(result.agent_calls or [])
            tools_used.extend(t for t in result.tools_used if t not in tools_used)

            if result.awaiting_ui_interaction:
                termination = "awaiting_ui_interaction"
                break
            if result.completed:
                termination = "completed"
                break
            if not result.routing_decision or result.routing_decision == END:
                termination = "end"
                break

            next_agent = system.get_agent(result.routing_decision)
            if next_agent is None:
                logger.warning(
                    "Agent %s routed to unknown agent %s, ending turn",
                    current.id,
                    result.routing_decision,
                )
                termination = "unknown_target"
                break
            current = next_agent
        else:
            logger.warning(
                "System %s reached %d iterations in session %s, ending turn",
                system.id,
                self.max_iterations,
                state.session_id,
            )

        final = result.model_copy(
            update={
                "messages": produced,
                "ui_tool_calls": ui_tool_calls or None,
                "database_calls": database_calls or None,
                "agent_calls": agent_calls or None,
                "tools_used": tools_used,
                "completed": result.completed or termination in ("unknown_target", "max_iterations"),
                "metadata": {
                    **result.metadata,
                    "session_id": state.session_id,
                    "iterations": iteration,
                    "termination": termination,
                },
            }
        )
        return final

    async def resume(
        self, session_id: str, triggering_event: UIInteractionEvent | None = None
    ) -> AgentExecutionResult | None:
        """Continue a conversation after a UI interaction.

        Returns:
            The orchestrator's single-turn result containing only its new
            messages, or None when there is nothing to resume.
        """
        state = self.sessions.get(session_id)
        if state is None:
            logger.info("No session %s to resume", session_id)
            return None

        recent = recent_interactions(state.interaction_history, RESUME_WINDOW_SECONDS)
        if triggering_event is None and not recent:
            logger.info("Session %s has no recent interactions to resume from", session_id)
            return None

        system = self._systems.get(state.system_id)
        if system is None:
            logger.warning("Session %s belongs to unloaded system %s", session_id, state.system_id)
            return None

        async with self.sessions.lock(session_id):
            triggering = None
            if triggering_event is not None:
                triggering = InteractionRecord(
                    tool_id=triggering_event.tool_id,
                    agent_id=triggering_event.agent_id or "unknown",
                    event=triggering_event,
                    timestamp=triggering_event.timestamp or utc_timestamp(),
                )
                recent = _without_event(recent, triggering_event)
            context = new_messages(
                [MessageInput(role="system", content=interaction_context_message(triggering, recent))]
            )
            self.sessions.append_messages(session_id, context)

            try:
                entry = self._entry_agent(system)
            except ConfigurationError as e:
                logger.error("Cannot resume session %s: %s", session_id, e)
                apology = assistant_message(RESUME_APOLOGY, "system")
                self.sessions.append_messages(session_id, [apology])
                return AgentExecutionResult(messages=[apology], current_agent="system")

            result = await self.invoker.invoke(entry, system, state, state.available_ui_tools)
            self.sessions.append_messages(session_id, result.messages)
            result.metadata = {**result.metadata, "session_id": session_id, "resumed": True}
            return result


def _without_event(records: list[InteractionRecord], event: UIInteractionEvent) -> list[InteractionRecord]:
    """drop the newest record of `event`, which is already shown as the latest interaction."""
    for index in range(len(records) - 1, -1, -1):
        recorded = records[index].event
        if (recorded.tool_id, recorded.event_type, recorded.data) == (event.tool_id, event.event_type, event.data):
            return records[:index] + records[index + 1 :]
    return records
