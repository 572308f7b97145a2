"""OpenAI helper for the Scout research pipeline."""

from __future__ import annotations

from typing import List, Optional, Protocol

import structlog
from openai import AsyncOpenAI, OpenAIError

from scout.core.config import Settings
from scout.core.exceptions import LLMServiceError

logger = structlog.get_logger(__name__)


class ChatCompleter(Protocol):
    """Anything that can turn a prompt into reply text."""

    async def complete(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str: ...


class LLMClient:
    """Wraps OpenAI chat completions with sane defaults."""

    def __init__(self, settings: Settings) -> None:
        self._client = AsyncOpenAI(
            api_key=settings.require_llm_credential(),
            timeout=120.0,
            max_retries=0,
        )
        self.model = settings.llm_model
        self.temperature = settings.llm_temperature

    async def complete(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Execute a single chat completion and return the text content."""
        messages: List[dict] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        params = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }
        if max_tokens:
            params["max_completion_tokens"] = max_tokens

        try:
            completion = await self._client.chat.completions.create(**params)
        except OpenAIError as exc:
            logger.error("llm_call_failed", model=self.model, error=str(exc))
            raise LLMServiceError(f"LLM request failed: {exc}") from exc

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""

    async def aclose(self) -> None:
        await self._client.close()
