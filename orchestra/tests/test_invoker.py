"""Tests for single agent turns."""

import pytest

from orchestra.models.agent_system import AgentConnection, AgentRole, ConnectionType
from orchestra.models.execution import DatabaseOperationType
from orchestra.models.message import MessageInput, PersistedState, UIToolInfo
from orchestra.runtime.capabilities import DATABASE_TOOL_ID
from orchestra.runtime.invoker import AgentInvoker
from orchestra.runtime.sessions import SessionStore, new_messages

from conftest import RecordingChatStore, ScriptedLLM, make_agent, make_system

FORM = UIToolInfo(id="contact-form", name="Contact Form", description="Collects contact details")


def _session(*contents: str):
    store = SessionStore()
    state, _ = store.get_or_create(
        "s1", "support", initial_messages=new_messages(MessageInput(role="user", content=c) for c in contents)
    )
    return state


@pytest.fixture
def db_system():
    return make_system(
        [
            make_agent("coordinator", AgentRole.orchestrator),
            make_agent("archivist", tool_access=[DATABASE_TOOL_ID]),
        ],
        [("coordinator", "archivist")],
    )


class TestEmptyHistory:
    """Test turns over an empty conversation."""

    @pytest.mark.asyncio
    async def test_entry_agent_welcomes_without_llm(self, support_system):
        llm = ScriptedLLM()
        result = await AgentInvoker(llm).invoke(
            support_system.get_agent("coordinator"), support_system, _session(), []
        )
        assert llm.calls == []
        assert result.messages[0].content == "Welcome to Support Desk! Answers product questions."
        assert result.messages[0].agent_id == "coordinator"

    @pytest.mark.asyncio
    async def test_other_agents_return_nothing(self, support_system):
        result = await AgentInvoker(ScriptedLLM()).invoke(
            support_system.get_agent("faq"), support_system, _session(), []
        )
        assert result.messages == []
        assert result.current_agent == "faq"


class TestStructuredTurn:
    """Test turning structured output into a result."""

    @pytest.mark.asyncio
    async def test_prompt_contains_history_and_routing(self, support_system):
        llm = ScriptedLLM([{"response": "Routing you.", "routingDecision": "faq"}])
        result = await AgentInvoker(llm).invoke(
            support_system.get_agent("coordinator"), support_system, _session("How do refunds work?"), []
        )
        system_prompt, prompt, schema = llm.calls[0]
        assert "[Message 1] [unsaved] user: How do refunds work?" in prompt
        assert "=== COORDINATION ===" in system_prompt
        assert schema["properties"]["routingDecision"]["enum"] == ["END", "faq", "ticket"]
        assert result.routing_decision == "faq"
        assert result.messages[0].content == "Routing you."

    @pytest.mark.asyncio
    async def test_llm_failure_becomes_apology(self, support_system):
        llm = ScriptedLLM([RuntimeError("rate limited")])
        result = await AgentInvoker(llm).invoke(
            support_system.get_agent("faq"), support_system, _session("hi"), []
        )
        assert result.messages[0].content == support_system.apology_message
        assert not result.completed
        assert result.routing_decision is None

    @pytest.mark.asyncio
    async def test_malformed_output_becomes_apology(self, support_system):
        llm = ScriptedLLM([{"routingDecision": "faq"}])
        result = await AgentInvoker(llm).invoke(
            support_system.get_agent("coordinator"), support_system, _session("hi"), []
        )
        assert result.messages[0].content == support_system.apology_message

    @pytest.mark.asyncio
    async def test_disallowed_fields_are_ignored(self, support_system):
        """A tool agent cannot route even if the LLM says so."""
        llm = ScriptedLLM([{"response": "Done.", "routingDecision": "ticket", "isCompleted": True}])
        result = await AgentInvoker(llm).invoke(
            support_system.get_agent("faq"), support_system, _session("hi"), []
        )
        assert result.routing_decision is None
        assert result.completed

    @pytest.mark.asyncio
    async def test_ui_tool_calls_and_interaction_context(self):
        agent = make_agent("form-agent", AgentRole.orchestrator, tool_access=["contact-form"])
        system = make_system([agent])
        llm = ScriptedLLM(
            [
                {
                    "response": "Please fill in the form.",
                    "uiToolCalls": [
                        {"toolId": "contact-form", "toolName": "Contact Form", "props": {"title": "Hi"}, "requiresInteraction": True}
                    ],
                    "awaitingUIInteraction": True,
                }
            ]
        )
        result = await AgentInvoker(llm).invoke(agent, system, _session("contact me"), [FORM])
        assert result.awaiting_ui_interaction
        assert result.ui_tool_calls[0].tool_id == "contact-form"
        assert result.ui_tool_calls[0].props == '{"title": "Hi"}'
        assert result.interaction_context.expected_events == ["contact-form"]
        assert result.interaction_context.timeout_ms == 300_000

    @pytest.mark.asyncio
    async def test_agent_calls_are_recorded(self):
        caller = make_agent("coordinator", AgentRole.orchestrator)
        system = make_system([caller, make_agent("ticket")])

        system.connections.append(
            AgentConnection(source="coordinator", target="ticket", type=ConnectionType.tool_call)
        )
        llm = ScriptedLLM(
            [{"response": "Filing.", "agentCalls": [{"targetAgent": "ticket", "operation": "open", "data": {"p": 1}}]}]
        )
        result = await AgentInvoker(llm).invoke(caller, system, _session("file a ticket"), [])
        assert result.agent_calls[0].target_agent == "ticket"
        assert result.agent_calls[0].data == {"p": 1}


class TestDatabaseOperations:
    """Test chat store operations requested by agents."""

    @pytest.mark.asyncio
    async def test_save_message_fills_ids_and_marks_persisted(self, db_system):
        store = RecordingChatStore()
        state = _session("remember this")
        llm = ScriptedLLM(
            [
                {
                    "response": "Saved.",
                    "databaseOperations": [
                        {"type": "save_message", "data": {"role": "user", "content": "remember this", "title": "{system_id} chat"}}
                    ],
                }
            ]
        )
        result = await AgentInvoker(llm, store).invoke(db_system.get_agent("archivist"), db_system, state, [])

        operation = store.operations[0]
        assert operation.type == DatabaseOperationType.save_message
        assert operation.data["system_id"] == "support"
        assert operation.data["session_id"] == "s1"
        assert operation.data["title"] == "support chat"
        assert result.database_calls[0].result.success
        assert state.messages[0].persisted == PersistedState.persisted

    @pytest.mark.asyncio
    async def test_duplicate_and_empty_saves_are_skipped(self, db_system):
        store = RecordingChatStore()
        state = _session("already saved")
        state.messages[0].persisted = PersistedState.persisted
        llm = ScriptedLLM(
            [
                {
                    "response": "ok",
                    "databaseOperations": [
                        {"type": "save_message", "data": {"role": "user", "content": "already saved"}},
                        {"type": "save_message", "data": {"role": "user"}},
                    ],
                }
            ]
        )
        result = await AgentInvoker(llm, store).invoke(db_system.get_agent("archivist"), db_system, state, [])
        assert store.operations == []
        assert not result.database_calls

    @pytest.mark.asyncio
    async def test_failures_are_reported_not_raised(self, db_system):
        llm = ScriptedLLM(
            [{"response": "ok", "databaseOperations": [{"type": "get_sessions", "data": {}}]}]
        )
        result = await AgentInvoker(llm, RecordingChatStore(fail=True)).invoke(
            db_system.get_agent("archivist"), db_system, _session("list"), []
        )
        assert not result.database_calls[0].result.success
        assert result.database_calls[0].result.error == "boom"

    @pytest.mark.asyncio
    async def test_missing_store_is_a_failure(self, db_system):
        llm = ScriptedLLM(
            [{"response": "ok", "databaseOperations": [{"type": "get_sessions", "data": {}}]}]
        )
        result = await AgentInvoker(llm).invoke(db_system.get_agent("archivist"), db_system, _session("list"), [])
        assert result.database_calls[0].result.error == "No chat store configured"

    @pytest.mark.asyncio
    async def test_agents_without_access_cannot_touch_the_store(self, db_system):
        store = RecordingChatStore()
        llm = ScriptedLLM(
            [{"response": "ok", "databaseOperations": [{"type": "get_sessions", "data": {}}]}]
        )
        await AgentInvoker(llm, store).invoke(db_system.get_agent("coordinator"), db_system, _session("x"), [])
        assert store.operations == []
