"""Bearer token verification for inbound agent requests."""

from dataclasses import dataclass, field
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from portfolio_agent.auth.issuer import JWT_ALGORITHM
from portfolio_agent.shared.exceptions import (
    AuthInvalidError,
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureError,
)

MALFORMED_HEADER = "malformed header"
TOKEN_EXPIRED = "Token has expired"
VERIFICATION_FAILED = "Token verification failed"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking an Authorization header."""

    valid: bool
    claims: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None

    def raise_for_invalid(self) -> None:
        """Raise the matching AuthInvalidError subclass if verification failed."""
        if self.valid:
            return
        reason = self.reason or VERIFICATION_FAILED
        if reason == MALFORMED_HEADER:
            raise TokenMalformedError(reason)
        if reason == TOKEN_EXPIRED:
            raise TokenExpiredError(reason)
        if reason.startswith("Invalid token"):
            raise TokenSignatureError(reason)
        raise AuthInvalidError(reason)


def extract_bearer_token(header_value: str) -> str | None:
    """Return the token from ``Bearer <token>``, or None for any other shape."""
    parts = header_value.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]


def verify_token(token: str, secret: str) -> VerificationResult:
    """Verify JWT signature and expiry."""
    try:
        claims = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        return VerificationResult(valid=False, reason=TOKEN_EXPIRED)
    except JWTError as e:
        return VerificationResult(valid=False, reason=f"Invalid token: {e}")
    except Exception:
        return VerificationResult(valid=False, reason=VERIFICATION_FAILED)

    return VerificationResult(valid=True, claims=claims)


def verify_auth_header(header_value: str, secret: str) -> VerificationResult:
    """Verify an Authorization header value against the signing secret.

    A missing header is the caller's concern; this only sees headers that
    were actually sent.
    """
    token = extract_bearer_token(header_value)
    if token is None:
        return VerificationResult(valid=False, reason=MALFORMED_HEADER)
    return verify_token(token, secret)
