"""Placeholder React component for UI requirements without an implementation."""

from orchestra.models.agent_system import UIRequirement


def component_name(tool_name: str) -> str:
    """PascalCase component name, e.g. `symptom-form` -> `SymptomForm`."""
    parts = [part for part in tool_name.replace("_", "-").replace(" ", "-").split("-") if part]
    name = "".join(part[:1].upper() + part[1:] for part in parts)
    if not name or not name[0].isalpha():
        name = f"Tool{name}"
    return name


def placeholder_component(requirement: UIRequirement, agent_name: str) -> str:
    name = component_name(requirement.tool_name)
    return f"""import React from 'react';
import {{ Card, CardContent, CardHeader, CardTitle }} from '@/components/ui/card';

interface {name}Props {{
  sessionId?: string;
  agentId?: string;
  onInteraction?: (event: any) => void;
  [key: string]: any;
}}

export default function {name}({{ sessionId, agentId, onInteraction, ...props }}: {name}Props) {{
  return (
    <Card className="w-full max-w-md mx-auto">
      <CardHeader>
        <CardTitle>{requirement.description}</CardTitle>
      </CardHeader>
      <CardContent>
        <p className="text-gray-600">
          {requirement.purpose}
        </p>
        <div className="mt-4 p-4 bg-gray-50 rounded-lg">
          <p className="text-sm text-gray-500">
            This UI component was automatically generated for {agent_name}.
          </p>
        </div>
      </CardContent>
    </Card>
  );
}}"""
