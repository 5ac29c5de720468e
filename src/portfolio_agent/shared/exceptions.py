"""Custom exception hierarchy for the portfolio agent."""

from enum import Enum
from typing import Any


class PortfolioAgentError(Exception):
    """Base exception for all portfolio agent errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ----- Authentication Errors -----


class AuthenticationError(PortfolioAgentError):
    """Authentication failed."""

    pass


class AuthMissingError(AuthenticationError):
    """No Authorization header was sent."""

    def __init__(self) -> None:
        super().__init__("Missing Authorization header")


class AuthInvalidError(AuthenticationError):
    """Authorization header was present but did not verify."""

    pass


class TokenExpiredError(AuthInvalidError):
    """JWT token has expired."""

    pass


class TokenMalformedError(AuthInvalidError):
    """Authorization header is not of the form ``Bearer <token>``."""

    pass


class TokenSignatureError(AuthInvalidError):
    """JWT signature or structure is invalid."""

    pass


# ----- Request Errors -----


class BadRequestError(PortfolioAgentError):
    """Request body is missing or malformed."""

    pass


class CaptchaError(BadRequestError):
    """CAPTCHA token was missing or did not validate."""

    pass


# ----- Configuration Errors -----


class ConfigurationError(PortfolioAgentError):
    """A required secret or key is missing or could not be loaded."""

    pass


# ----- Provider Errors -----


class ProviderErrorKind(str, Enum):
    """Classified failure of the completion provider."""

    AUTH_ERROR = "auth_error"
    RATE_LIMITED = "rate_limited"
    MODEL_UNAVAILABLE = "model_unavailable"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    SERVICE_OVERLOADED = "service_overloaded"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNKNOWN = "unknown"


class ProviderError(PortfolioAgentError):
    """Error from the completion provider, with a user-safe message."""

    kind = ProviderErrorKind.UNKNOWN
    default_message = "The assistant ran into an unexpected error. Please try again."

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message or self.default_message, details)


class ProviderAuthError(ProviderError):
    kind = ProviderErrorKind.AUTH_ERROR
    default_message = "The assistant is not configured correctly. Please try again later."


class ProviderRateLimitedError(ProviderError):
    kind = ProviderErrorKind.RATE_LIMITED
    default_message = "Too many requests right now. Please wait a moment and try again."


class ProviderUnavailableError(ProviderError):
    kind = ProviderErrorKind.MODEL_UNAVAILABLE
    default_message = "The language model is currently unavailable. Please try again later."


class ProviderTimeoutError(ProviderError):
    kind = ProviderErrorKind.TIMEOUT
    default_message = "The assistant took too long to respond. Please try again."


class ProviderNetworkError(ProviderError):
    kind = ProviderErrorKind.NETWORK_ERROR
    default_message = "Could not reach the language model. Please check back shortly."


class ProviderOverloadedError(ProviderError):
    kind = ProviderErrorKind.SERVICE_OVERLOADED
    default_message = "The language model is overloaded. Please try again in a minute."


class ProviderQuotaExceededError(ProviderError):
    kind = ProviderErrorKind.QUOTA_EXCEEDED
    default_message = "The assistant has reached its usage limit. Please try again later."


class ProviderUnknownError(ProviderError):
    pass


# ----- Tool Errors -----


class ToolExecutionError(PortfolioAgentError):
    """A server tool failed; recovered into the tool result."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(message, details={"tool": tool_name})
        self.tool_name = tool_name


class ClientToolInvocationError(PortfolioAgentError):
    """A client-only tool was executed on the server (programming error)."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(
            f"Tool '{tool_name}' runs in the browser and cannot be executed on the server",
            details={"tool": tool_name},
        )
        self.tool_name = tool_name


# ----- Streaming Errors -----


class StreamTransportError(PortfolioAgentError):
    """Write after close, or the client went away mid-stream."""

    pass
