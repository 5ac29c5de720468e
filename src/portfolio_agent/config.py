"""Application configuration using Pydantic Settings."""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_KNOWLEDGE_DIR = Path(__file__).parent / "knowledge"
SECRET_FILE_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "JWT_SECRET",
    "TURNSTILE_SECRET_KEY",
)


def _load_secret_file_env_vars() -> None:
    """Allow secrets to be sourced from *_FILE env vars (Docker secrets)."""
    for env_var in SECRET_FILE_ENV_VARS:
        file_var = f"{env_var}_FILE"
        file_path = os.getenv(file_var)
        if not file_path:
            continue
        try:
            value = Path(file_path).read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise RuntimeError(f"Failed to read {file_var} at {file_path}") from exc
        if not value:
            raise ValueError(f"{file_var} is empty")
        os.environ[env_var] = value


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ----- Application -----
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    owner_name: str = "Archil Lelashvili"
    knowledge_dir: Path = DEFAULT_KNOWLEDGE_DIR

    # ----- Anthropic AI -----
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-haiku-latest"
    anthropic_max_tokens: int = 4096
    # Upper bound on provider rounds per request (tool-call loop guard)
    max_tool_rounds: int = Field(default=5, ge=1, le=20)

    # ----- Token auth -----
    # "aws" reads the signing secret from Secrets Manager, "env" from JWT_SECRET
    secret_store: Literal["aws", "env"] = "aws"
    jwt_secret_arn: str = ""
    jwt_secret: str = ""
    jwt_expiry_hours: int = Field(default=1, ge=1, le=24)
    jwt_issuer: str = "archil-io-v2"
    jwt_subject: str = "app"
    aws_region: str = "us-east-1"

    # ----- Cloudflare Turnstile -----
    turnstile_enabled: bool = False
    turnstile_secret_key: str = ""

    # ----- CORS -----
    # Can be set as JSON list or comma-separated string
    cors_origins_str: str = Field(default="http://localhost:5173", alias="cors_origins")

    @property
    def cors_origins(self) -> list[str]:
        """Parse cors_origins from comma-separated string or JSON list."""
        v = self.cors_origins_str
        if not v:
            return ["http://localhost:5173"]
        if v.startswith("["):
            raw = json.loads(v)
            if not isinstance(raw, list) or not all(isinstance(origin, str) for origin in raw):
                raise ValueError("CORS_ORIGINS must be a JSON list of strings")
            return raw
        return [origin.strip() for origin in v.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Ensure secure settings in production environment."""
        if self.is_production:
            if self.turnstile_enabled and not self.turnstile_secret_key:
                raise ValueError("TURNSTILE_SECRET_KEY must be set when Turnstile is enabled!")
            if self.app_debug:
                raise ValueError("APP_DEBUG must be false in production!")
            if self.secret_store != "aws":
                raise ValueError(
                    "SECRET_STORE=env is not allowed in production! "
                    "Use SECRET_STORE=aws with JWT_SECRET_ARN."
                )
            if not self.jwt_secret_arn:
                raise ValueError("JWT_SECRET_ARN must be set in production!")
            if "*" in self.cors_origins:
                raise ValueError("CORS_ORIGINS must be restricted in production!")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    _load_secret_file_env_vars()
    return Settings()
