"""Unit tests for the JWT token issuer.

Tests secret loading, token caching and refresh near expiry.
"""

from unittest.mock import AsyncMock

import pytest
from jose import jwt

from portfolio_agent.auth.issuer import REFRESH_THRESHOLD_SECONDS, TokenIssuer
from portfolio_agent.infrastructure.secrets.env import EnvSecretStore
from portfolio_agent.shared.exceptions import ConfigurationError


class TestTokenIssuance:
    """Test minting and caching of tokens."""

    @pytest.mark.asyncio
    async def test_token_has_expected_claims(self, token_issuer, clock, jwt_secret):
        """Test that issued tokens carry iss, sub, iat and exp."""
        token = await token_issuer.get_token()

        claims = jwt.decode(
            token, jwt_secret, algorithms=["HS256"], options={"verify_exp": False}
        )
        assert claims["iss"] == "archil-io-v2"
        assert claims["sub"] == "app"
        assert claims["iat"] == int(clock.now)
        assert claims["exp"] == int(clock.now) + 3600

    @pytest.mark.asyncio
    async def test_token_is_cached(self, token_issuer, clock):
        """Test that a fresh token is handed out again instead of re-minted."""
        first = await token_issuer.get_token()
        clock.advance(60)
        second = await token_issuer.get_token()

        assert first == second

    @pytest.mark.asyncio
    async def test_token_refreshed_near_expiry(self, token_issuer, clock):
        """Test that a token with under five minutes left is replaced."""
        first = await token_issuer.get_token()
        clock.advance(3600 - REFRESH_THRESHOLD_SECONDS + 1)
        second = await token_issuer.get_token()

        assert first != second
        assert token_issuer.get_expiry().expires_in == 3600

    @pytest.mark.asyncio
    async def test_token_kept_at_refresh_boundary(self, token_issuer, clock):
        """Test that exactly five minutes left does not trigger a refresh."""
        first = await token_issuer.get_token()
        clock.advance(3600 - REFRESH_THRESHOLD_SECONDS)

        assert await token_issuer.get_token() == first

    @pytest.mark.asyncio
    async def test_expiry_reports_remaining_lifetime(self, token_issuer, clock):
        """Test expires_in counts down while expires_at stays fixed."""
        await token_issuer.get_token()
        expires_at = token_issuer.get_expiry().expires_at
        clock.advance(100)

        expiry = token_issuer.get_expiry()
        assert expiry.expires_at == expires_at
        assert expiry.expires_in == 3500

    @pytest.mark.asyncio
    async def test_custom_lifetime(self, clock, jwt_secret):
        """Test expiry_hours controls the exp claim."""
        issuer = TokenIssuer(EnvSecretStore(jwt_secret), "", expiry_hours=2, clock=clock)

        await issuer.get_token()

        assert issuer.get_expiry().expires_in == 7200


class TestSecretLoading:
    """Test one-time secret fetch and failure reporting."""

    @pytest.mark.asyncio
    async def test_secret_fetched_once(self, clock):
        """Test the secret store is only hit on first use."""
        store = AsyncMock()
        store.fetch_secret = AsyncMock(return_value="stored-secret")
        issuer = TokenIssuer(store, "arn:secret", clock=clock)

        assert await issuer.get_secret() == "stored-secret"
        await issuer.get_token()
        clock.advance(3600)
        await issuer.get_token()

        store.fetch_secret.assert_awaited_once_with("arn:secret")

    @pytest.mark.asyncio
    async def test_configuration_error_propagates(self, clock):
        """Test that store ConfigurationErrors keep their message."""
        issuer = TokenIssuer(EnvSecretStore(""), "", clock=clock)

        with pytest.raises(ConfigurationError) as exc_info:
            await issuer.get_token()

        assert exc_info.value.message == "JWT_SECRET is not set"

    @pytest.mark.asyncio
    async def test_unexpected_store_error_wrapped(self, clock):
        """Test that other store failures become a generic ConfigurationError."""
        store = AsyncMock()
        store.fetch_secret = AsyncMock(side_effect=RuntimeError("boom"))
        issuer = TokenIssuer(store, "arn:secret", clock=clock)

        with pytest.raises(ConfigurationError) as exc_info:
            await issuer.get_secret()

        assert exc_info.value.message == "Failed to initialize JWT service"

    @pytest.mark.asyncio
    async def test_failed_fetch_is_retried_on_next_call(self, clock):
        """Test that a failed fetch is not cached."""
        store = AsyncMock()
        store.fetch_secret = AsyncMock(side_effect=[RuntimeError("boom"), "stored-secret"])
        issuer = TokenIssuer(store, "arn:secret", clock=clock)

        with pytest.raises(ConfigurationError):
            await issuer.get_secret()

        assert await issuer.get_secret() == "stored-secret"
