"""Abstract secret store interface.

The token issuer only needs "give me the signing secret for this id". Keeping
that behind an interface lets local development run without AWS credentials.
"""

import json
from abc import ABC, abstractmethod

from portfolio_agent.shared.exceptions import ConfigurationError


class SecretStore(ABC):
    """Source of the JWT signing secret.

    Implementations:
    - AwsSecretsManagerStore: production, reads a JSON secret from AWS
    - EnvSecretStore: local development, reads JWT_SECRET
    """

    @abstractmethod
    async def fetch_secret(self, secret_id: str) -> str:
        """Return the ``secret`` field of the record stored under ``secret_id``.

        Raises:
            ConfigurationError: If the record cannot be read or has no secret.
        """
        pass

    async def close(self) -> None:
        """Release any client resources."""
        return None


def parse_secret_record(raw: str | None, secret_id: str) -> str:
    """Extract the ``secret`` string from a JSON-encoded secret record."""
    if not raw:
        raise ConfigurationError(
            "Secret does not have a SecretString", details={"secret_id": secret_id}
        )
    try:
        record = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            "Secret record is not valid JSON", details={"secret_id": secret_id}
        ) from exc

    secret = record.get("secret") if isinstance(record, dict) else None
    if not isinstance(secret, str) or not secret:
        raise ConfigurationError(
            "Secret record has no 'secret' field", details={"secret_id": secret_id}
        )
    return secret
