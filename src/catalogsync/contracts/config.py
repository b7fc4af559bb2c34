"""Configuration contracts."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator


class RetryPolicy(BaseModel):
    max_attempts: int = Field(default=3, ge=1, le=10)
    backoff_seconds: float = Field(default=0.5, ge=0)
    max_backoff_seconds: float = Field(default=8.0, ge=0)
    jitter_seconds: float = Field(default=0.25, ge=0)

    model_config = {"frozen": True}


class CatalogSyncConfig(BaseModel):
    provider: str = "stripe"
    auth: str = "env"
    token_env: str = "STRIPE_API_KEY"
    token: str | None = None
    api_base: str = "https://api.stripe.com"
    timeout_seconds: float = Field(default=30.0, gt=0)
    catalog_paths: list[Path] = Field(min_length=1)
    mapping_path: Path = Path("catalog-mappings.json")
    default_currency: str = "usd"
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_auth_token(self) -> CatalogSyncConfig:
        token = (self.token or "").strip()
        if self.auth == "token":
            if not token:
                raise ValueError("token auth requires a non-empty token")
            return self
        if token:
            raise ValueError("token must be unset when auth is not 'token'")
        if self.auth != "env":
            raise ValueError("auth must be one of: env, token")
        return self
