"""Chat orchestration: validate, retrieve, compose, complete."""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from mapgpt.errors import ValidationError
from mapgpt.metrics.observability import PipelineMetrics, TimedSection, get_correlation_id, get_logger
from mapgpt.models import ChatAnswer, Intent
from mapgpt.retrieval.dispatcher import RetrievalDispatcher
from mapgpt.services.completion import CompletionBackend
from mapgpt.services.composer import PromptComposer


def validate_prompt(payload: Any) -> str:
    """Return the prompt from a decoded request body or raise ``ValidationError``."""

    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    prompt = payload.get("prompt")
    if prompt is None:
        raise ValidationError("No prompt provided")
    if not isinstance(prompt, str):
        raise ValidationError("Prompt must be a string")
    if not prompt.strip():
        raise ValidationError("No prompt provided")
    return prompt


class ChatService:
    """Runs one prompt through the pipeline; holds no per-request state."""

    def __init__(
        self,
        *,
        composer: PromptComposer,
        dispatcher: RetrievalDispatcher,
        completer: CompletionBackend,
        news_passthrough: bool = False,
    ) -> None:
        self._composer = composer
        self._dispatcher = dispatcher
        self._completer = completer
        self._news_passthrough = news_passthrough
        self._logger = get_logger("chat")

    def route(self, prompt: str) -> Intent:
        """Intent the prompt would take, computed without network calls."""

        canned = self._composer.short_circuit(prompt)
        if canned is not None:
            return canned.intent
        return self._dispatcher.classify(prompt)

    async def answer(self, prompt: str) -> ChatAnswer:
        start = time.perf_counter()
        request_id = get_correlation_id()
        if request_id == "-":
            request_id = uuid4().hex

        canned = self._composer.short_circuit(prompt)
        if canned is not None and canned.canned is not None:
            self._logger.info("chat.short_circuit", intent=canned.intent.value)
            PipelineMetrics.observe_request(canned.intent.value)
            return self._finish(canned.canned, canned.intent, start, request_id)

        retrieval = await self._dispatcher.retrieve(prompt)
        PipelineMetrics.observe_request(retrieval.intent.value)
        if self._news_passthrough and retrieval.intent is Intent.INSTITUTION_NEWS:
            return self._finish(retrieval.text, retrieval.intent, start, request_id)

        composed = self._composer.compose(prompt, retrieval)
        with TimedSection(PipelineMetrics.observe_completion) as timer:
            text = await self._completer.complete(composed.messages)
        self._logger.info(
            "completion.complete",
            intent=retrieval.intent.value,
            duration_seconds=timer.duration,
            message_count=len(composed.messages),
        )
        return self._finish(text, retrieval.intent, start, request_id)

    @staticmethod
    def _finish(text: str, intent: Intent, start: float, request_id: str) -> ChatAnswer:
        latency_ms = (time.perf_counter() - start) * 1000
        return ChatAnswer(text=text, intent=intent, latency_ms=latency_ms, request_id=request_id)
