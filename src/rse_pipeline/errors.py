"""Exception hierarchy for the segment extraction pipeline."""
from __future__ import annotations


class RSEError(Exception):
    """Base exception for all pipeline errors."""


class UnknownStrategyError(RSEError):
    """Raised when a registry is asked for a name it does not hold."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = sorted(available)
        super().__init__(f"Unknown subclass: {name} (available: {', '.join(self.available)})")


class ProviderError(RSEError):
    """Failure reported by an LLM or rerank provider."""

    kind = "provider_error"

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class ProviderAuthenticationError(ProviderError):
    kind = "unauthenticated"


class ProviderRateLimitError(ProviderError):
    kind = "rate_limited"


class ProviderInvalidRequestError(ProviderError):
    kind = "invalid_request"


class ProviderUnavailableError(ProviderError):
    kind = "unavailable"


_STATUS_ERRORS: dict[int, type[ProviderError]] = {
    400: ProviderInvalidRequestError,
    401: ProviderAuthenticationError,
    403: ProviderAuthenticationError,
    404: ProviderInvalidRequestError,
    409: ProviderInvalidRequestError,
    422: ProviderInvalidRequestError,
    429: ProviderRateLimitError,
}


def provider_error_from_status(provider: str, status_code: int | None, message: str) -> ProviderError:
    """Build the `ProviderError` subclass matching an HTTP status code.

    Args:
        provider: Short provider label, e.g. ``"openai"``.
        status_code: HTTP status returned by the provider, if any.
        message: Human-readable error detail.

    Returns:
        A `ProviderError` instance; unmapped or missing statuses become
        `ProviderUnavailableError`.
    """
    error_cls = _STATUS_ERRORS.get(status_code, ProviderUnavailableError)
    return error_cls(provider, message, status_code=status_code)
