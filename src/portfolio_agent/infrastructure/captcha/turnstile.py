"""Cloudflare Turnstile server-side token validation."""

from collections.abc import Mapping
from dataclasses import dataclass

import httpx

from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


@dataclass(frozen=True)
class CaptchaResult:
    """Result of a siteverify call."""

    valid: bool
    error: str | None = None


class TurnstileVerifier:
    """Validates Turnstile widget tokens against Cloudflare's siteverify API."""

    def __init__(self, secret_key: str, timeout: float = 10.0) -> None:
        self.secret_key = secret_key
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def verify(self, token: str | None, remote_ip: str | None = None) -> CaptchaResult:
        if not self.secret_key:
            logger.error("turnstile_not_configured")
            return CaptchaResult(valid=False, error="CAPTCHA validation not configured")

        if not token:
            return CaptchaResult(valid=False, error="No CAPTCHA token provided")

        body = {"secret": self.secret_key, "response": token}
        if remote_ip:
            body["remoteip"] = remote_ip

        try:
            response = await self.client.post(TURNSTILE_VERIFY_URL, json=body)
        except httpx.HTTPError as e:
            logger.error("turnstile_request_failed", error=str(e))
            return CaptchaResult(valid=False, error=str(e) or "Unknown error")

        if response.is_error:
            return CaptchaResult(
                valid=False, error=f"Cloudflare API error: {response.reason_phrase}"
            )

        data = response.json()
        if data.get("success"):
            return CaptchaResult(valid=True)

        codes = data.get("error-codes") or []
        return CaptchaResult(
            valid=False,
            error=f"Validation failed: {', '.join(codes) if codes else 'unknown error'}",
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


def extract_client_ip(headers: Mapping[str, str]) -> str | None:
    """Best-effort client IP: Cloudflare header first, then the first proxy hop."""
    cf_ip = headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip.strip()

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    return None
