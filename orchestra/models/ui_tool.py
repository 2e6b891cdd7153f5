"""Data model for registered UI tools."""

from pydantic import BaseModel


class UITool(BaseModel):
    """a generated UI component available to agents."""

    id: str
    name: str
    description: str = ""
    file_name: str
    url: str | None = None
    updated_at: str | None = None
