"""AWS Secrets Manager secret store."""

import asyncio
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from portfolio_agent.infrastructure.secrets.provider import SecretStore, parse_secret_record
from portfolio_agent.shared.exceptions import ConfigurationError
from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)


class AwsSecretsManagerStore(SecretStore):
    """Reads ``{"secret": "..."}`` records from AWS Secrets Manager.

    Note: boto3 is synchronous, so lookups run in worker threads, at most
    ``max_concurrent_calls`` at a time.
    """

    def __init__(
        self, region_name: str, client: Any | None = None, max_concurrent_calls: int = 4
    ) -> None:
        self.region_name = region_name
        self._calls = asyncio.Semaphore(max_concurrent_calls)
        self.client = client or boto3.client("secretsmanager", region_name=region_name)

    async def fetch_secret(self, secret_id: str) -> str:
        if not secret_id:
            raise ConfigurationError("JWT_SECRET_ARN environment variable is not set")

        try:
            async with self._calls:
                response = await asyncio.to_thread(
                    self.client.get_secret_value, SecretId=secret_id
                )
        except (ClientError, BotoCoreError) as e:
            logger.error("secret_fetch_failed", secret_id=secret_id, error=str(e))
            raise ConfigurationError(
                "Failed to fetch JWT secret", details={"secret_id": secret_id}
            ) from e

        secret = parse_secret_record(response.get("SecretString"), secret_id)
        logger.info("secret_fetched", secret_id=secret_id)
        return secret
