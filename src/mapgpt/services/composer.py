"""Assembly of the outbound prompt, including canned short-circuit replies."""

from __future__ import annotations

from dataclasses import dataclass

from mapgpt.knowledge import KnowledgeBase
from mapgpt.models import ChatMessage, ComposedPrompt, Intent, Retrieval


@dataclass(frozen=True)
class ComposerConfig:
    """Configuration for prompt construction."""

    system_role_enabled: bool = True
    domain_guard_enabled: bool = True
    digest_heading: str = "Relevant results:"
    context_label: str = "Additional context:"


class PromptComposer:
    """Builds the message list sent to the completion backend."""

    def __init__(self, knowledge: KnowledgeBase, config: ComposerConfig | None = None) -> None:
        self._knowledge = knowledge
        self._config = config or ComposerConfig()

    def is_help_command(self, prompt: str) -> bool:
        return prompt.strip().lower() in self._knowledge.help_commands

    def is_in_domain(self, prompt: str) -> bool:
        lowered = prompt.lower()
        return any(keyword in lowered for keyword in self._knowledge.domain_keywords)

    def short_circuit(self, prompt: str) -> ComposedPrompt | None:
        """Return a canned reply when the prompt never needs the model."""

        if self.is_help_command(prompt):
            return ComposedPrompt(intent=Intent.HELP, canned=self._knowledge.help_text)
        if self._config.domain_guard_enabled and not self.is_in_domain(prompt):
            return ComposedPrompt(intent=Intent.OUT_OF_DOMAIN, canned=self._knowledge.refusal_text)
        return None

    def system_instruction(self, topic_context: str = "") -> str:
        instruction = self._knowledge.render_system_instruction()
        if topic_context:
            instruction = f"{instruction}\n\n{topic_context}"
        return instruction

    def compose(self, prompt: str, retrieval: Retrieval) -> ComposedPrompt:
        topic_context = retrieval.text if retrieval.intent is Intent.TOPIC else ""
        digest = retrieval.text if retrieval.is_digest else ""

        if not self._config.system_role_enabled:
            context = digest or topic_context
            content = f"{prompt}. {self._config.context_label} {context}" if context else prompt
            return ComposedPrompt(intent=retrieval.intent, messages=(ChatMessage("user", content),))

        user_content = f"{prompt}\n\n{self._config.digest_heading}\n{digest}" if digest else prompt
        return ComposedPrompt(
            intent=retrieval.intent,
            messages=(
                ChatMessage("system", self.system_instruction(topic_context)),
                ChatMessage("user", user_content),
            ),
        )
