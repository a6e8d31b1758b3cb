"""Error taxonomy shared by the MapGPT pipeline."""

from __future__ import annotations


class ChatbotError(RuntimeError):
    """Base class for failures surfaced to API callers."""

    status_code: int = 500


class ValidationError(ChatbotError):
    """Raised when the request body does not carry a usable prompt."""

    status_code = 400


class ConfigError(ChatbotError):
    """Raised when a required setting or secret is missing."""


class UpstreamError(ChatbotError):
    """Raised when a search, scrape or completion collaborator fails."""

    def __init__(self, message: str, *, upstream_status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class FormatError(ChatbotError):
    """Raised when a collaborator answers with a payload we cannot read."""


__all__ = ["ChatbotError", "ConfigError", "FormatError", "UpstreamError", "ValidationError"]
