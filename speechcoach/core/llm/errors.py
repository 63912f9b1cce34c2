from __future__ import annotations


class LLMError(Exception):
    """Base error for model client failures."""


class LLMUnavailableError(LLMError):
    """Raised when the provider is not configured (e.g., missing API key)."""


class LLMUpstreamError(LLMError):
    """Raised when the provider request fails.

    `status_code` is the upstream HTTP status when the provider answered, or None
    when the request never completed (timeout, connection error).
    """

    def __init__(self, message: str, *, status_code: int | None = None, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class LLMOutputError(LLMError):
    """Raised when the provider answered 2xx but the output is empty or not a JSON object."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
