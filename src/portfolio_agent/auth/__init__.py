"""Token issuing and verification."""

from portfolio_agent.auth.issuer import TokenExpiry, TokenIssuer
from portfolio_agent.auth.verifier import VerificationResult, verify_auth_header, verify_token

__all__ = [
    "TokenExpiry",
    "TokenIssuer",
    "VerificationResult",
    "verify_auth_header",
    "verify_token",
]
