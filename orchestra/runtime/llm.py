"""Structured-output LLM collaborator.

The runtime only needs one operation: given system instructions, a prompt
and a JSON schema, return an object conforming to the schema.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Protocol

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_MODEL = os.getenv("ORCHESTRA_MODEL", "gpt-4o-mini")
DEFAULT_TEMPERATURE = float(os.getenv("ORCHESTRA_TEMPERATURE", "0.2"))


class StructuredLLM(Protocol):
    async def generate_structured(
        self, system: str, prompt: str, schema: dict[str, Any]
    ) -> dict[str, Any]:
        ...


class LangChainStructuredLLM:
    """StructuredLLM backed by a LangChain chat model."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        api_key: str | None = None,
    ) -> None:
        """
        Args:
            model: OpenAI model name
            temperature: sampling temperature
            api_key: overrides OPENAI_API_KEY when given
        """
        self.model = model
        self.temperature = temperature
        self.api_key = api_key

    def _chat_model(self) -> ChatOpenAI:
        kwargs: dict[str, Any] = {"model": self.model, "temperature": self.temperature}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        return ChatOpenAI(**kwargs)

    async def generate_structured(
        self, system: str, prompt: str, schema: dict[str, Any]
    ) -> dict[str, Any]:
        structured_llm = self._chat_model().with_structured_output(schema)
        logger.debug("structured call to %s with schema %s", self.model, schema.get("title"))
        result = await structured_llm.ainvoke(
            [SystemMessage(content=system), HumanMessage(content=prompt)]
        )
        # dict schemas come back as dicts; keep models working too
        if isinstance(result, BaseModel):
            return result.model_dump(by_alias=True)
        if not isinstance(result, dict):
            raise ValueError(f"LLM returned {type(result).__name__}, expected an object")
        return result
