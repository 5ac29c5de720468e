"""CAPTCHA verification."""

from portfolio_agent.infrastructure.captcha.turnstile import (
    CaptchaResult,
    TurnstileVerifier,
    extract_client_ip,
)

__all__ = ["CaptchaResult", "TurnstileVerifier", "extract_client_ip"]
