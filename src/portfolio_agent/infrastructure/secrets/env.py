"""Environment-backed secret store for local development.

NEVER use in production!
"""

from portfolio_agent.infrastructure.secrets.provider import SecretStore
from portfolio_agent.shared.exceptions import ConfigurationError
from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)


class EnvSecretStore(SecretStore):
    """Returns a fixed secret taken from settings (JWT_SECRET)."""

    def __init__(self, secret: str) -> None:
        self._secret = secret

    async def fetch_secret(self, secret_id: str) -> str:
        if not self._secret:
            raise ConfigurationError("JWT_SECRET is not set")
        logger.warning(
            "env_secret_store_used",
            message="Using JWT_SECRET from the environment - DO NOT USE IN PRODUCTION",
        )
        return self._secret
