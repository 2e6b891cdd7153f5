"""UI tool registry backed by a directory of component files.

Each tool is one `<tool-id>.tsx` file. The file opens with a comment block
holding the tool description, which is how `list_tools` recovers it.
"""

import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path

from orchestra.models.message import UIToolInfo
from orchestra.models.ui_tool import UITool

logger = logging.getLogger(__name__)

UI_TOOLS_DIR = Path(os.getenv("UI_TOOLS_DIR", "pages"))
UI_TOOLS_BASE_URL = os.getenv("UI_TOOLS_BASE_URL", "http://localhost:4000")

_HEADER_DESCRIPTION = re.compile(r"/\*\s*\n?\s*\*?\s*(.*?)\s*\n")
_HEADER_NAME = re.compile(r"^\s*\*\s*Name:\s*(.+?)\s*$", re.MULTILINE)
_VALID_ID = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class UIToolError(Exception):
    """Exception raised for invalid UI tool registrations."""
    pass


def tool_id_for(name: str) -> str:
    """kebab-case file-safe id for a tool name."""
    safe = re.sub(r"[^a-z0-9-]", "-", name.lower())
    safe = re.sub(r"-+", "-", safe).strip("-")
    if not safe:
        raise UIToolError(f"Tool name {name!r} has no usable characters")
    return safe


def _header_line(text: str) -> str:
    # one line, and never closes the comment early
    return " ".join(text.split()).replace("*/", "*\\/")


def render_component_file(name: str, description: str, code: str) -> str:
    return (
        f"/*\n * {_header_line(description)}\n * Name: {_header_line(name)}\n"
        f" * Generated UI Tool Component\n */\n\n{code}\n"
    )


class UIToolRegistry:
    """Registers, lists and deletes UI tool component files."""

    def __init__(self, directory: Path | str = UI_TOOLS_DIR, base_url: str = UI_TOOLS_BASE_URL) -> None:
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    def _path(self, tool_id: str) -> Path | None:
        if not _VALID_ID.match(tool_id):
            return None
        return self.directory / f"{tool_id}.tsx"

    def _load(self, path: Path) -> UITool:
        content = path.read_text(encoding="utf-8")
        tool_id = path.stem
        description = _HEADER_DESCRIPTION.search(content)
        name = _HEADER_NAME.search(content)
        modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        return UITool(
            id=tool_id,
            name=name.group(1) if name else tool_id.replace("-", " "),
            description=description.group(1).strip() if description else "No description found.",
            file_name=path.name,
            url=f"{self.base_url}/{tool_id}",
            updated_at=modified.isoformat(),
        )

    def register(self, name: str, description: str, code: str) -> UITool:
        """write (or overwrite) the component file for a tool."""
        if not name or not description or not code:
            raise UIToolError("Missing required fields: name, description, code")
        tool_id = tool_id_for(name)
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(tool_id)
        path.write_text(render_component_file(name, description, code), encoding="utf-8")
        logger.info("Registered UI tool %s at %s", tool_id, path)
        return self._load(path)

    def exists(self, tool_id: str) -> bool:
        path = self._path(tool_id)
        return path is not None and path.is_file()

    def get(self, tool_id: str) -> UITool | None:
        path = self._path(tool_id)
        if path is None or not path.is_file():
            return None
        return self._load(path)

    def list_tools(self) -> list[UITool]:
        if not self.directory.is_dir():
            return []
        tools = []
        for path in sorted(self.directory.glob("*.tsx")):
            if path.name.startswith("_") or path.name == "index.tsx":
                continue
            tools.append(self._load(path))
        return tools

    def delete(self, tool_id: str) -> bool:
        path = self._path(tool_id)
        if path is None or not path.is_file():
            return False
        path.unlink()
        logger.info("Deleted UI tool %s", tool_id)
        return True

    def tool_infos(self) -> list[UIToolInfo]:
        """registered tools in the shape advertised to agents."""
        return [UIToolInfo(id=t.id, name=t.name, description=t.description) for t in self.list_tools()]
