"""UI tool registry, access control and message embedding."""

from orchestra.uitools.access import (
    filter_tools_for_agent,
    has_tool_access,
    permission_report,
    validate_tool_configuration,
)
from orchestra.uitools.messages import embed_tool_calls, extract_tool_calls, parse_props
from orchestra.uitools.registry import UIToolError, UIToolRegistry, tool_id_for

__all__ = [
    "UIToolError",
    "UIToolRegistry",
    "embed_tool_calls",
    "extract_tool_calls",
    "filter_tools_for_agent",
    "has_tool_access",
    "parse_props",
    "permission_report",
    "tool_id_for",
    "validate_tool_configuration",
]
