"""Classification of completion-provider failures.

Maps whatever the Anthropic SDK (or the transport below it) raised onto the
fixed provider error taxonomy, using exception types, HTTP status codes and
the structured ``error.type`` in the response body.
"""

import asyncio
from typing import Any

import anthropic
import httpx

from portfolio_agent.shared.exceptions import (
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ProviderOverloadedError,
    ProviderQuotaExceededError,
    ProviderRateLimitedError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderUnknownError,
)

_ERROR_TYPES: dict[str, type[ProviderError]] = {
    "authentication_error": ProviderAuthError,
    "permission_error": ProviderAuthError,
    "rate_limit_error": ProviderRateLimitedError,
    "overloaded_error": ProviderOverloadedError,
    "not_found_error": ProviderUnavailableError,
    "api_error": ProviderUnavailableError,
    "billing_error": ProviderQuotaExceededError,
}

_STATUS_CODES: dict[int, type[ProviderError]] = {
    401: ProviderAuthError,
    402: ProviderQuotaExceededError,
    403: ProviderAuthError,
    404: ProviderUnavailableError,
    408: ProviderTimeoutError,
    429: ProviderRateLimitedError,
    529: ProviderOverloadedError,
}


def _body_error_type(exc: Exception) -> str | None:
    body: Any = getattr(exc, "body", None)
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and isinstance(error.get("type"), str):
        return error["type"]
    return None


def classify_provider_error(exc: BaseException) -> ProviderError:
    """Return the classified, user-safe error for a provider failure."""
    if isinstance(exc, ProviderError):
        return exc

    # Timeouts first: APITimeoutError subclasses APIConnectionError
    if isinstance(exc, (anthropic.APITimeoutError, httpx.TimeoutException, asyncio.TimeoutError)):
        return ProviderTimeoutError()

    if isinstance(exc, (anthropic.APIConnectionError, httpx.TransportError, ConnectionError)):
        return ProviderNetworkError()

    if isinstance(exc, anthropic.APIStatusError):
        details = {"status_code": exc.status_code}
        error_type = _body_error_type(exc)
        if error_type in _ERROR_TYPES:
            return _ERROR_TYPES[error_type](details={**details, "error_type": error_type})
        if exc.status_code in _STATUS_CODES:
            return _STATUS_CODES[exc.status_code](details=details)
        if exc.status_code >= 500:
            return ProviderUnavailableError(details=details)
        return ProviderUnknownError(details=details)

    if isinstance(exc, anthropic.APIError):
        error_type = _body_error_type(exc)
        if error_type in _ERROR_TYPES:
            return _ERROR_TYPES[error_type](details={"error_type": error_type})

    return ProviderUnknownError()
