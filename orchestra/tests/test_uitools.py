"""Tests for the UI tool registry, access control and message embedding."""

import pytest

from orchestra.models.agent_system import AgentRole, UIRequirement
from orchestra.models.execution import UIToolCall
from orchestra.models.message import UIToolInfo
from orchestra.runtime.capabilities import DATABASE_TOOL_ID
from orchestra.uitools.access import (
    agents_with_tool_access,
    filter_tools_for_agent,
    permission_report,
    tools_for_agent_id,
    validate_tool_configuration,
)
from orchestra.uitools.messages import embed_tool_calls, extract_tool_calls, parse_props
from orchestra.uitools.registry import UIToolError, UIToolRegistry, tool_id_for
from orchestra.uitools.templates import component_name, placeholder_component

from conftest import make_agent, make_system

FORM = UIToolInfo(id="contact-form", name="Contact Form", description="Collects contact details")
CHART = UIToolInfo(id="chart", name="Chart", description="Draws a chart")


@pytest.fixture
def registry(tmp_path):
    return UIToolRegistry(tmp_path / "pages", base_url="http://localhost:4000/")


class TestUIToolRegistry:
    """Test file-backed tool registration."""

    def test_register_and_get(self, registry):
        tool = registry.register("Contact Form", "Collects contact details", "export default () => null;")
        assert tool.id == "contact-form"
        assert tool.file_name == "contact-form.tsx"
        assert tool.url == "http://localhost:4000/contact-form"

        loaded = registry.get("contact-form")
        assert loaded.name == "Contact Form"
        assert loaded.description == "Collects contact details"

    def test_description_cannot_break_header(self, registry):
        description = "Collects details */ alert(1) /*\n * Name: Evil\nsecond line"
        registry.register("Contact Form", description, "export default () => null;")

        content = (registry.directory / "contact-form.tsx").read_text()
        assert content.index("*/") > content.index("Generated UI Tool Component")
        loaded = registry.get("contact-form")
        assert loaded.name == "Contact Form"
        assert loaded.description.startswith("Collects details")
        assert "\n" not in loaded.description

    def test_register_requires_fields(self, registry):
        with pytest.raises(UIToolError):
            registry.register("Form", "", "code")

    def test_list_skips_private_and_index(self, registry):
        registry.register("Chart", "Draws a chart", "x")
        (registry.directory / "_app.tsx").write_text("x")
        (registry.directory / "index.tsx").write_text("x")
        assert [tool.id for tool in registry.list_tools()] == ["chart"]

    def test_list_without_directory(self, tmp_path):
        assert UIToolRegistry(tmp_path / "missing").list_tools() == []

    def test_delete(self, registry):
        registry.register("Chart", "Draws a chart", "x")
        assert registry.delete("chart")
        assert not registry.delete("chart")
        assert not registry.exists("chart")

    def test_rejects_path_like_ids(self, registry):
        assert registry.get("../secrets") is None
        assert not registry.delete("../secrets")

    def test_tool_infos(self, registry):
        registry.register("Chart", "Draws a chart", "x")
        assert registry.tool_infos() == [CHART]

    def test_tool_id_for(self):
        assert tool_id_for("Symptom Form v2!") == "symptom-form-v2"
        with pytest.raises(UIToolError):
            tool_id_for("!!!")


class TestToolAccess:
    """Test per-agent UI tool permissions."""

    def test_filter_and_lookup(self):
        agent = make_agent("form-agent", tool_access=["contact-form"])
        system = make_system([make_agent("coordinator", AgentRole.orchestrator), agent])
        assert filter_tools_for_agent([FORM, CHART], agent) == [FORM]
        assert tools_for_agent_id(system, [FORM, CHART], "form-agent") == [FORM]
        assert tools_for_agent_id(system, [FORM, CHART], "ghost") == []
        assert tools_for_agent_id(system, [FORM, CHART], None) == []
        assert agents_with_tool_access(system) == [agent]

    def test_permission_report(self):
        system = make_system(
            [make_agent("coordinator", AgentRole.orchestrator), make_agent("charts", tool_access=["chart"])]
        )
        report = {p.agent_id: p for p in permission_report(system, [FORM, CHART])}
        assert report["charts"].authorized_tools == ["chart"]
        assert report["coordinator"].unauthorized_tools == ["contact-form", "chart"]

    def test_validate_reports_orphaned_and_unknown_tools(self):
        system = make_system(
            [
                make_agent("coordinator", AgentRole.orchestrator),
                make_agent("archivist", tool_access=["missing-tool", DATABASE_TOOL_ID]),
            ],
            ui_tools=["chart"],
        )
        report = validate_tool_configuration(system, [FORM, CHART])
        assert not report.is_valid
        assert any("chart" in issue for issue in report.issues)
        assert any("missing-tool" in issue for issue in report.issues)
        assert not any(DATABASE_TOOL_ID in issue for issue in report.issues)

    def test_overloaded_orchestrator_gets_recommendation(self):
        tools = [UIToolInfo(id=f"t{n}", name=f"T{n}") for n in range(4)]
        system = make_system(
            [make_agent("coordinator", AgentRole.orchestrator, tool_access=[t.id for t in tools])],
            ui_tools=[t.id for t in tools],
        )
        report = validate_tool_configuration(system, tools)
        assert report.is_valid
        assert len(report.recommendations) == 1


class TestToolCallEmbedding:
    """Test the UI_TOOL_CALLS marker in message content."""

    def test_embed_and_extract(self):
        calls = [UIToolCall(tool_id="contact-form", tool_name="Contact Form", props='{"title": "Hi"}', requires_interaction=True)]
        content = embed_tool_calls("Fill this in.", calls, "s1", True)

        assert "Contact Form (awaiting your input)" in content
        text, payload = extract_tool_calls(content)
        assert text.startswith("Fill this in.")
        assert "UI_TOOL_CALLS" not in text
        assert payload["type"] == "ui-tool-calls"
        assert payload["sessionId"] == "s1"
        assert payload["awaitingInteraction"] is True
        assert payload["calls"][0]["props"] == {"title": "Hi"}

    def test_no_calls_leaves_content_untouched(self):
        assert embed_tool_calls("plain", [], "s1", False) == "plain"
        assert extract_tool_calls("plain") == ("plain", None)

    def test_parse_props(self):
        assert parse_props(None) == {}
        assert parse_props("not json") == {"rawProps": "not json"}


class TestPlaceholderTemplate:
    def test_component_name(self):
        assert component_name("symptom-form") == "SymptomForm"
        assert component_name("date picker") == "DatePicker"
        assert component_name("3d-view") == "Tool3dView"

    def test_placeholder_mentions_requirement(self):
        requirement = UIRequirement(
            tool_name="symptom-form", description="Symptom intake", purpose="Collect symptoms"
        )
        code = placeholder_component(requirement, "Triage Agent")
        assert "export default function SymptomForm" in code
        assert "Symptom intake" in code
        assert "generated for Triage Agent" in code
