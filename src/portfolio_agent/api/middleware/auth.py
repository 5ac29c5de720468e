"""Bearer token authentication for FastAPI routes."""

from typing import Annotated, Any

from fastapi import Depends, Request

from portfolio_agent.api.deps import get_token_issuer
from portfolio_agent.auth.issuer import TokenIssuer
from portfolio_agent.auth.verifier import verify_auth_header
from portfolio_agent.shared.exceptions import AuthInvalidError, AuthMissingError
from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)


async def require_bearer_token(
    request: Request,
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> dict[str, Any]:
    """Dependency that verifies ``Authorization: Bearer <token>``.

    Returns the token claims. Raises AuthMissingError when the header is
    absent and an AuthInvalidError subclass when it does not verify; both are
    turned into 401 responses before any stream is opened.
    """
    header = request.headers.get("authorization")
    if not header:
        raise AuthMissingError()

    # ConfigurationError here (secret unavailable) surfaces as a 500
    secret = await issuer.get_secret()
    result = verify_auth_header(header, secret)

    if not result.valid:
        logger.info("auth_rejected", reason=result.reason)
        result.raise_for_invalid()
        raise AuthInvalidError(result.reason or "Unauthorized")

    return result.claims


TokenClaims = Annotated[dict[str, Any], Depends(require_bearer_token)]
