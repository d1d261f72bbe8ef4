"""Domain exceptions. The HTTP layer maps these to status codes."""

from __future__ import annotations


class FinQuestError(Exception):
    """Base class for every domain error."""


class NotFoundError(FinQuestError):
    """Requested row does not exist or belongs to another user."""


class ValidationError(FinQuestError):
    """Input rejected by a domain rule (e.g. non-positive amount)."""


class GenerationError(FinQuestError):
    """Base class for content-generation failures."""


class ProviderNotConfiguredError(GenerationError):
    """No AI provider credentials are configured."""

    def __init__(self, message: str = "AI provider is not configured") -> None:
        super().__init__(message)


class ProviderError(GenerationError):
    """The AI provider answered with a non-2xx status or an empty body."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class MalformedGenerationError(GenerationError):
    """Generated text could not be parsed into the expected JSON shape."""

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw
