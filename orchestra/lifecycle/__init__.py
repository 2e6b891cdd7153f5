"""System design and deployment."""

from orchestra.lifecycle.deployer import SystemDeployer, remove_tool_from_system
from orchestra.lifecycle.designer import SystemDesign, SystemDesigner, spec_from_design

__all__ = [
    "SystemDeployer",
    "SystemDesign",
    "SystemDesigner",
    "remove_tool_from_system",
    "spec_from_design",
]
