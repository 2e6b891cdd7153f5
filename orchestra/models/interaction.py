"""Data model for UI interaction events.

Widgets rendered in the chat emit events (a submitted form, a selected option,
a voice transcript) which are recorded against the owning session.
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator


class UIEventType(str, Enum):
    click = "click"
    input = "input"
    select = "select"
    submit = "submit"
    form_submit = "form_submit"
    voice = "voice"
    custom = "custom"


class SubmitPayload(BaseModel):
    """form submission; field values keyed by field name."""

    model_config = {"extra": "allow"}

    values: dict[str, Any] = Field(default_factory=dict)


class InputPayload(BaseModel):
    model_config = {"extra": "allow"}

    value: str | None = None
    field: str | None = None


class ClickPayload(BaseModel):
    model_config = {"extra": "allow"}

    target: str | None = None
    action: str | None = None


class SelectPayload(BaseModel):
    model_config = {"extra": "allow"}

    selected: Any = None
    options: list[Any] | None = None


class VoicePayload(BaseModel):
    model_config = {"extra": "allow"}

    transcript: str = ""
    language: str | None = None


_PAYLOAD_TYPES: dict[UIEventType, type[BaseModel]] = {
    UIEventType.submit: SubmitPayload,
    UIEventType.form_submit: SubmitPayload,
    UIEventType.input: InputPayload,
    UIEventType.click: ClickPayload,
    UIEventType.select: SelectPayload,
    UIEventType.voice: VoicePayload,
}


class UIInteractionEvent(BaseModel):
    """an event emitted by a rendered UI tool.

    Accepts both snake_case and the camelCase keys used by browser clients.
    """

    tool_id: str = Field(validation_alias=AliasChoices("tool_id", "toolId"))
    event_type: UIEventType = Field(validation_alias=AliasChoices("event_type", "eventType"))
    data: Any = None
    timestamp: str | None = None
    session_id: str = Field(validation_alias=AliasChoices("session_id", "sessionId"))
    agent_id: str | None = Field(default=None, validation_alias=AliasChoices("agent_id", "agentId"))

    @field_validator("event_type", mode="before")
    @classmethod
    def _unknown_as_custom(cls, value: Any) -> Any:
        if isinstance(value, str) and value not in {member.value for member in UIEventType}:
            return UIEventType.custom
        return value

    def typed_data(self) -> BaseModel | Any:
        """parse `data` into the payload model for this event type.

        Returns:
            The typed payload, or the raw data when the type has no model
            or the payload does not fit it.
        """
        payload_type = _PAYLOAD_TYPES.get(self.event_type)
        if payload_type is None or not isinstance(self.data, dict):
            return self.data
        try:
            return payload_type.model_validate(self.data)
        except ValidationError:
            return self.data


class InteractionRecord(BaseModel):
    """an entry in a session's interaction history."""

    tool_id: str
    agent_id: str = "unknown"
    event: UIInteractionEvent
    timestamp: str
