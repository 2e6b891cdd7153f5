"""Tests for the agent system, message and interaction models."""

import pytest
from pydantic import ValidationError

from orchestra.models.agent_system import (
    END,
    AgentConnection,
    AgentRole,
    AgentSystemSpec,
    ConnectionType,
)
from orchestra.models.interaction import (
    SubmitPayload,
    UIEventType,
    UIInteractionEvent,
    VoicePayload,
)
from orchestra.models.message import Message, MessageInput, PersistedState
from orchestra.utils.identifiers import (
    generate_session_id,
    generate_system_id,
    parse_timestamp,
    utc_timestamp,
)

from conftest import make_agent, make_system


class TestAgentSystemGraph:
    """Test graph helpers on AgentSystemSpec."""

    def test_connection_accepts_from_and_to_keys(self):
        """Connections written with from/to should validate."""
        conn = AgentConnection.model_validate({"from": "a", "to": "b", "type": "conditional"})
        assert conn.source == "a"
        assert conn.target == "b"
        assert conn.type == ConnectionType.conditional

    def test_routing_targets_skip_end_and_duplicates(self, support_system):
        """routing_targets lists each agent once and never END."""
        support_system.connections.append(
            AgentConnection(source="coordinator", target="faq", type=ConnectionType.sequential)
        )
        assert support_system.routing_targets("coordinator") == ["faq", "ticket"]
        assert END not in support_system.routing_targets("coordinator")

    def test_call_targets_only_tool_call_edges(self, support_system):
        support_system.connections.append(
            AgentConnection(source="faq", target="ticket", type=ConnectionType.tool_call)
        )
        assert support_system.call_targets("faq") == ["ticket"]
        assert support_system.call_targets("coordinator") == []

    def test_entry_agents(self, support_system):
        entries = support_system.entry_agents()
        assert [agent.id for agent in entries] == ["coordinator"]
        assert entries[0].type == AgentRole.orchestrator

    def test_validate_connections_reports_unknown_agents(self):
        """Dangling sources and targets are reported, END is not."""
        system = make_system(
            [make_agent("coordinator", AgentRole.orchestrator)],
            [("coordinator", "ghost"), ("nobody", "coordinator"), ("coordinator", END)],
        )
        problems = system.validate_connections()
        assert len(problems) == 2
        assert any("ghost" in problem for problem in problems)
        assert any("nobody" in problem for problem in problems)

    def test_spec_round_trip(self, support_system):
        restored = AgentSystemSpec.model_validate_json(support_system.model_dump_json())
        assert restored == support_system


class TestMessages:
    """Test Message and MessageInput."""

    def test_message_defaults_to_unpersisted(self):
        message = Message(id="m1", role="user", content="hi", timestamp=utc_timestamp())
        assert message.persisted == PersistedState.unpersisted
        assert not message.is_persisted

    def test_rejects_unknown_role(self):
        """Only user, assistant and system roles are valid."""
        with pytest.raises(ValidationError):
            MessageInput(role="tool", content="x")


class TestUIInteractionEvent:
    """Test UI event parsing."""

    def test_accepts_camel_case_keys(self):
        event = UIInteractionEvent.model_validate(
            {"toolId": "contact-form", "eventType": "submit", "sessionId": "s1", "data": {}}
        )
        assert event.tool_id == "contact-form"
        assert event.session_id == "s1"
        assert event.event_type == UIEventType.submit

    def test_unknown_event_type_becomes_custom(self):
        event = UIInteractionEvent(tool_id="t", event_type="drag", session_id="s1")
        assert event.event_type == UIEventType.custom

    def test_typed_data_for_submit(self):
        event = UIInteractionEvent(
            tool_id="t", event_type="form_submit", session_id="s1", data={"values": {"email": "a@b.c"}}
        )
        payload = event.typed_data()
        assert isinstance(payload, SubmitPayload)
        assert payload.values == {"email": "a@b.c"}

    def test_typed_data_for_voice(self):
        event = UIInteractionEvent(
            tool_id="mic", event_type="voice", session_id="s1", data={"transcript": "hello"}
        )
        payload = event.typed_data()
        assert isinstance(payload, VoicePayload)
        assert payload.transcript == "hello"

    def test_typed_data_falls_back_to_raw(self):
        """Non-dict payloads and custom events are returned untouched."""
        event = UIInteractionEvent(tool_id="t", event_type="click", session_id="s1", data="ok")
        assert event.typed_data() == "ok"
        custom = UIInteractionEvent(tool_id="t", event_type="custom", session_id="s1", data={"x": 1})
        assert custom.typed_data() == {"x": 1}


class TestIdentifiers:
    """Test ID and timestamp helpers."""

    def test_system_id_format(self):
        system_id = generate_system_id()
        assert system_id.startswith("system_")
        assert len(system_id) == len("system_") + 12

    def test_session_id_is_scoped_to_system(self):
        first = generate_session_id("support")
        second = generate_session_id("support")
        assert first.startswith("support:")
        assert first != second

    def test_parse_timestamp_accepts_z_suffix_and_naive(self):
        assert parse_timestamp("2024-01-01T00:00:00Z").tzinfo is not None
        assert parse_timestamp("2024-01-01T00:00:00").tzinfo is not None
