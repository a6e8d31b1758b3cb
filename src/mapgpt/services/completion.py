"""Completion backends for MapGPT."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

import httpx

from mapgpt.errors import FormatError, UpstreamError
from mapgpt.metrics.observability import get_logger
from mapgpt.models import ChatMessage, message_payload

NO_RESPONSE = "No response generated."


@dataclass(frozen=True)
class CompletionConfig:
    """Configuration for the chat-completion collaborator."""

    url: str = "https://api.x.ai/v1/chat/completions"
    model: str = "grok-3"
    max_tokens: int = 600
    temperature: float = 0.7
    timeout_seconds: float = 60.0


class CompletionBackend(Protocol):
    """Protocol describing completion behaviour."""

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        """Return generated text for the supplied messages."""


def extract_text(data: object) -> str:
    """Pull ``choices[0].message.content``, falling back to ``NO_RESPONSE``."""

    if not isinstance(data, dict):
        return NO_RESPONSE
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return NO_RESPONSE
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return NO_RESPONSE
    content = message.get("content")
    return content if isinstance(content, str) and content else NO_RESPONSE


class GrokCompletionClient:
    """Calls an OpenAI-compatible chat completions endpoint (xAI Grok by default)."""

    def __init__(
        self,
        config: CompletionConfig | None = None,
        *,
        api_key_provider: Callable[[], str],
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or CompletionConfig()
        self._api_key_provider = api_key_provider
        self._transport = transport
        self._logger = get_logger("completion")

    async def complete(self, messages: Sequence[ChatMessage]) -> str:
        api_key = self._api_key_provider()
        body = {
            "model": self._config.model,
            "messages": message_payload(messages),
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
        }
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self._config.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self._config.url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            self._logger.error("completion.transport_error", model=self._config.model, detail=str(exc))
            raise UpstreamError(f"Completion request failed: {exc}") from exc

        content_type = response.headers.get("content-type", "")
        if not response.is_success:
            self._logger.error("completion.failed", model=self._config.model, status=response.status_code)
            raise UpstreamError(
                f"API request failed with status {response.status_code}: {response.text}",
                upstream_status=response.status_code,
                body=response.text,
            )
        if "application/json" not in content_type:
            raise UpstreamError(
                f"Unexpected response type: {content_type or 'unknown'}. Body: {response.text}",
                upstream_status=response.status_code,
                body=response.text,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise FormatError(f"Completion response was not valid JSON: {response.text[:200]}") from exc

        text = extract_text(data)
        if text == NO_RESPONSE:
            self._logger.warning("completion.empty", model=self._config.model)
        return text
