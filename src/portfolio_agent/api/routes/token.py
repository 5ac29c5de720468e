"""JWT token endpoint for the site frontend."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from portfolio_agent.api.deps import TokenIssuerDep
from portfolio_agent.api.ratelimit import RATE_LIMIT_TOKEN, limiter
from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Auth"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/jwt-token", response_model=None)
@limiter.limit(RATE_LIMIT_TOKEN)
async def jwt_token(request: Request, issuer: TokenIssuerDep) -> JSONResponse:
    """Hand out the current short-lived bearer token.

    Returns ``{token, expiresIn, expiresAt}``; ``expiresAt`` is in epoch
    seconds. Any failure is reported with a fixed message so secret store
    details never reach the browser.
    """
    try:
        token = await issuer.get_token()
        expiry = issuer.get_expiry()
    except Exception as e:
        logger.exception("jwt_token_generation_failed", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate JWT token"},
        )

    return JSONResponse(
        content={
            "token": token,
            "expiresIn": expiry.expires_in,
            "expiresAt": expiry.expires_at,
        },
        headers=NO_CACHE_HEADERS,
    )
