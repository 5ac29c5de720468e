"""Signing-secret storage backends."""

from portfolio_agent.config import Settings
from portfolio_agent.infrastructure.secrets.provider import SecretStore, parse_secret_record


def build_secret_store(settings: Settings) -> SecretStore:
    """Build the configured secret store.

    Set SECRET_STORE=env (plus JWT_SECRET) for local testing without AWS.
    """
    if settings.secret_store == "env":
        from portfolio_agent.infrastructure.secrets.env import EnvSecretStore

        return EnvSecretStore(settings.jwt_secret)

    from portfolio_agent.infrastructure.secrets.aws import AwsSecretsManagerStore

    return AwsSecretsManagerStore(region_name=settings.aws_region)


__all__ = [
    "SecretStore",
    "build_secret_store",
    "parse_secret_record",
]
