"""Unit tests for signing-secret stores."""

import asyncio
import json
import threading
import time
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from portfolio_agent.config import Settings
from portfolio_agent.infrastructure.secrets import build_secret_store, parse_secret_record
from portfolio_agent.infrastructure.secrets.aws import AwsSecretsManagerStore
from portfolio_agent.infrastructure.secrets.env import EnvSecretStore
from portfolio_agent.shared.exceptions import ConfigurationError

SECRET_ARN = "arn:aws:secretsmanager:us-east-1:123456789012:secret:jwt"


class TestParseSecretRecord:
    def test_secret_field(self):
        assert parse_secret_record(json.dumps({"secret": "s3cr3t"}), SECRET_ARN) == "s3cr3t"

    @pytest.mark.parametrize(
        ("raw", "message"),
        [
            (None, "Secret does not have a SecretString"),
            ("", "Secret does not have a SecretString"),
            ("not json", "Secret record is not valid JSON"),
            (json.dumps({"other": "x"}), "Secret record has no 'secret' field"),
            (json.dumps(["secret"]), "Secret record has no 'secret' field"),
        ],
    )
    def test_bad_records(self, raw, message):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_secret_record(raw, SECRET_ARN)

        assert exc_info.value.message == message


class TestAwsSecretsManagerStore:
    """Test the Secrets Manager store with a stubbed boto3 client."""

    @pytest.mark.asyncio
    async def test_fetch_secret(self):
        client = MagicMock()
        client.get_secret_value.return_value = {"SecretString": json.dumps({"secret": "abc"})}
        store = AwsSecretsManagerStore(region_name="us-east-1", client=client)

        assert await store.fetch_secret(SECRET_ARN) == "abc"
        client.get_secret_value.assert_called_once_with(SecretId=SECRET_ARN)

    @pytest.mark.asyncio
    async def test_missing_arn(self):
        store = AwsSecretsManagerStore(region_name="us-east-1", client=MagicMock())

        with pytest.raises(ConfigurationError) as exc_info:
            await store.fetch_secret("")

        assert exc_info.value.message == "JWT_SECRET_ARN environment variable is not set"

    @pytest.mark.asyncio
    async def test_client_error_wrapped(self):
        client = MagicMock()
        client.get_secret_value.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "denied"}},
            "GetSecretValue",
        )
        store = AwsSecretsManagerStore(region_name="us-east-1", client=client)

        with pytest.raises(ConfigurationError) as exc_info:
            await store.fetch_secret(SECRET_ARN)

        assert exc_info.value.message == "Failed to fetch JWT secret"

    @pytest.mark.asyncio
    async def test_missing_secret_string(self):
        client = MagicMock()
        client.get_secret_value.return_value = {"SecretBinary": b"..."}
        store = AwsSecretsManagerStore(region_name="us-east-1", client=client)

        with pytest.raises(ConfigurationError):
            await store.fetch_secret(SECRET_ARN)


class TestEnvSecretStore:
    @pytest.mark.asyncio
    async def test_returns_configured_secret(self):
        assert await EnvSecretStore("local-secret").fetch_secret("ignored") == "local-secret"

    @pytest.mark.asyncio
    async def test_empty_secret(self):
        with pytest.raises(ConfigurationError):
            await EnvSecretStore("").fetch_secret("ignored")


class TestBuildSecretStore:
    def test_env_store(self):
        settings = Settings(_env_file=None, secret_store="env", jwt_secret="x")

        assert isinstance(build_secret_store(settings), EnvSecretStore)

    def test_aws_store(self, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr(
            "portfolio_agent.infrastructure.secrets.aws.boto3.client",
            MagicMock(return_value=client),
        )
        settings = Settings(_env_file=None, secret_store="aws", aws_region="eu-west-1")

        store = build_secret_store(settings)

        assert isinstance(store, AwsSecretsManagerStore)
        assert store.client is client
        assert store.region_name == "eu-west-1"


class TestAwsConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_lookups_are_bounded(self):
        active = 0
        peak = 0
        lock = threading.Lock()

        def get_secret_value(SecretId):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.05)
            with lock:
                active -= 1
            return {"SecretString": json.dumps({"secret": "abc"})}

        client = MagicMock()
        client.get_secret_value.side_effect = get_secret_value
        store = AwsSecretsManagerStore(region_name="us-east-1", client=client, max_concurrent_calls=2)

        results = await asyncio.gather(*(store.fetch_secret(SECRET_ARN) for _ in range(6)))

        assert results == ["abc"] * 6
        assert peak <= 2
