from __future__ import annotations

import pytest

from mapgpt.knowledge import KnowledgeBase, match
from mapgpt.models import ComposedPrompt, Intent, Retrieval
from mapgpt.services.composer import ComposerConfig, PromptComposer


@pytest.mark.parametrize("prompt", ["help", "  Help ", "COMMANDS", "what can you do"])
def test_help_commands_short_circuit(knowledge: KnowledgeBase, prompt: str) -> None:
    composed = PromptComposer(knowledge).short_circuit(prompt)
    assert composed is not None
    assert composed.intent is Intent.HELP
    assert composed.canned == knowledge.help_text


def test_help_requires_exact_phrase(knowledge: KnowledgeBase) -> None:
    composed = PromptComposer(knowledge).short_circuit("please help me")
    assert composed is not None
    assert composed.intent is Intent.OUT_OF_DOMAIN


def test_out_of_domain_prompt_gets_refusal(knowledge: KnowledgeBase) -> None:
    composed = PromptComposer(knowledge).short_circuit("Tell me a joke about pirates")
    assert composed is not None
    assert composed.intent is Intent.OUT_OF_DOMAIN
    assert composed.canned == knowledge.refusal_text


def test_domain_guard_can_be_disabled(knowledge: KnowledgeBase) -> None:
    composer = PromptComposer(knowledge, ComposerConfig(domain_guard_enabled=False))
    assert composer.short_circuit("Tell me a joke about pirates") is None


def test_in_domain_prompt_is_not_short_circuited(knowledge: KnowledgeBase) -> None:
    assert PromptComposer(knowledge).short_circuit("Where is the MAPOLY ICT center?") is None


def test_topic_context_goes_into_system_message(knowledge: KnowledgeBase) -> None:
    prompt = "Who is the HOD of Computer Science?"
    retrieval = Retrieval(intent=Intent.TOPIC, text=match(prompt.lower(), knowledge.topics))
    composed = PromptComposer(knowledge).compose(prompt, retrieval)
    system, user = composed.messages
    assert system.role == "system"
    assert knowledge.school_name in system.content
    assert "Current HOD: Dr. Orunsholu" in system.content
    assert user.role == "user"
    assert user.content == prompt


def test_digest_is_appended_to_user_message(knowledge: KnowledgeBase) -> None:
    digest = "1. **Exams start**\n[Read more](https://example.com/exams)"
    composed = PromptComposer(knowledge).compose("Latest MAPOLY news", Retrieval(Intent.INSTITUTION_NEWS, digest))
    system, user = composed.messages
    assert "Department:" not in system.content
    assert user.content == f"Latest MAPOLY news\n\nRelevant results:\n{digest}"


def test_single_message_mode_appends_context(knowledge: KnowledgeBase) -> None:
    composer = PromptComposer(knowledge, ComposerConfig(system_role_enabled=False))
    composed = composer.compose("Who heads computer science", Retrieval(Intent.TOPIC, "Department: CS"))
    assert len(composed.messages) == 1
    assert composed.messages[0].role == "user"
    assert composed.messages[0].content == "Who heads computer science. Additional context: Department: CS"


def test_single_message_mode_without_context_passes_prompt_through(knowledge: KnowledgeBase) -> None:
    composer = PromptComposer(knowledge, ComposerConfig(system_role_enabled=False))
    composed = composer.compose("Tell me about MAPOLY", Retrieval(Intent.PASS_THROUGH))
    assert composed.messages[0].content == "Tell me about MAPOLY"


def test_composed_prompt_requires_exactly_one_payload() -> None:
    with pytest.raises(ValueError):
        ComposedPrompt(intent=Intent.TOPIC)
