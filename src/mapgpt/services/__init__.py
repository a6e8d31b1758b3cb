"""Service layer orchestrations for MapGPT."""

from .chat import ChatService, validate_prompt
from .completion import NO_RESPONSE, CompletionBackend, CompletionConfig, GrokCompletionClient
from .composer import ComposerConfig, PromptComposer

__all__ = [
    "NO_RESPONSE",
    "ChatService",
    "CompletionBackend",
    "CompletionConfig",
    "ComposerConfig",
    "GrokCompletionClient",
    "PromptComposer",
    "validate_prompt",
]
