"""Exceptions raised by the AI provider layer."""


class AIError(Exception):
    """Base exception for AI provider errors."""


class UnknownProviderError(AIError):
    """Raised when a provider name is not registered."""


class UnconfiguredProviderError(AIError):
    """Raised when the resolved provider has no API key."""


class ProviderHttpError(AIError):
    """Raised when the provider call fails, times out, or returns a non-2xx status."""

    def __init__(
        self, message: str, provider: str | None = None, status_code: int | None = None
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class RateLimitError(ProviderHttpError):
    """Raised when rate limited by provider."""


class ResponseParseError(AIError):
    """Raised when provider output is not the JSON we asked for."""


# Generic name for any failure talking to a vendor
ProviderError = ProviderHttpError
