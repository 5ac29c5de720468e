"""Short-lived JWT issuer for the site frontend.

One issuer is constructed per process and kept on ``app.state``. It fetches
the signing secret once, then mints HS256 tokens and hands out the cached one
until it is close to expiry.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass

from jose import JWTError, jwt

from portfolio_agent.infrastructure.secrets import SecretStore
from portfolio_agent.shared.exceptions import ConfigurationError, PortfolioAgentError
from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"
# Refresh if less than 5 minutes remaining
REFRESH_THRESHOLD_SECONDS = 300


@dataclass(frozen=True)
class TokenExpiry:
    """Remaining lifetime of the current token."""

    expires_in: int
    expires_at: int


class TokenIssuer:
    """Mints and caches the application's bearer token.

    Concurrent readers may both decide to refresh; minting is cheap and every
    minted token stays valid until its own ``exp``, so the race is harmless.
    The secret fetch itself is guarded so it happens once.
    """

    def __init__(
        self,
        secret_store: SecretStore,
        secret_id: str,
        *,
        issuer: str = "archil-io-v2",
        subject: str = "app",
        expiry_hours: int = 1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.secret_store = secret_store
        self.secret_id = secret_id
        self.issuer = issuer
        self.subject = subject
        self.lifetime_seconds = expiry_hours * 3600
        self._clock = clock

        self._secret: str | None = None
        self._secret_lock = asyncio.Lock()
        self._current_token: str | None = None
        self._token_expires_at = 0

    def _now(self) -> int:
        return int(self._clock())

    async def get_secret(self) -> str:
        """Return the signing secret, fetching it on first use."""
        if self._secret is not None:
            return self._secret

        async with self._secret_lock:
            if self._secret is None:
                try:
                    self._secret = await self.secret_store.fetch_secret(self.secret_id)
                except PortfolioAgentError:
                    raise
                except Exception as e:
                    logger.exception("jwt_service_init_failed", error=str(e))
                    raise ConfigurationError("Failed to initialize JWT service") from e
        return self._secret

    async def get_token(self) -> str:
        """Get a valid JWT token, refreshing if necessary."""
        secret = await self.get_secret()
        if self._needs_refresh():
            self._generate_token(secret)

        if not self._current_token:
            raise ConfigurationError("Failed to generate JWT token")
        return self._current_token

    def get_expiry(self) -> TokenExpiry:
        """Get token expiry information."""
        return TokenExpiry(
            expires_in=self._token_expires_at - self._now(),
            expires_at=self._token_expires_at,
        )

    def _needs_refresh(self) -> bool:
        return self._token_expires_at - self._now() < REFRESH_THRESHOLD_SECONDS

    def _generate_token(self, secret: str) -> None:
        now = self._now()
        claims = {
            "iss": self.issuer,
            "sub": self.subject,
            "iat": now,
            "exp": now + self.lifetime_seconds,
        }
        try:
            token = jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)
        except JWTError as e:
            logger.error("jwt_sign_failed", error=str(e))
            raise ConfigurationError("Failed to generate JWT token") from e

        self._current_token = token
        self._token_expires_at = claims["exp"]
        logger.info("jwt_token_minted", expires_at=self._token_expires_at)
