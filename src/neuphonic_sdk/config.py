"""Client configuration using environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping, Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "eu-west-1.api.neuphonic.com"


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Host (and optional port) of the API, without scheme
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        validation_alias=AliasChoices("NEUPHONIC_BASE_URL", "BASE_URL", "base_url"),
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("NEUPHONIC_API_KEY", "API_KEY", "api_key"),
    )
    # Public/browser style auth used instead of an API key
    jwt_token: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices(
            "NEUPHONIC_JWT_TOKEN", "JWT_TOKEN", "jwt_token"
        ),
    )
    base_http: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "NEUPHONIC_BASE_HTTP", "BASE_HTTP", "base_http"
        ),
    )
    request_timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "NEUPHONIC_TIMEOUT", "request_timeout", "timeout"
        ),
        ge=1,
    )

    @field_validator("base_url", mode="before")
    @classmethod
    def _strip_scheme(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        for prefix in ("https://", "http://", "wss://", "ws://"):
            if value.startswith(prefix):
                value = value[len(prefix) :]
                break
        return value.strip().rstrip("/")

    @property
    def api_key_value(self) -> str | None:
        return self.api_key.get_secret_value() if self.api_key else None

    @property
    def jwt_token_value(self) -> str | None:
        return self.jwt_token.get_secret_value() if self.jwt_token else None


def merge_config(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay the explicitly provided (non-``None``) values onto ``base``."""

    merged = dict(base)
    merged.update({key: value for key, value in overrides.items() if value is not None})
    return merged


def build_settings(**overrides: Any) -> Settings:
    """Return settings where explicit keyword values beat environment/defaults."""

    explicit = merge_config({}, overrides)
    return Settings(**explicit)  # pyright: ignore[reportCallIssue]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["DEFAULT_BASE_URL", "Settings", "build_settings", "get_settings", "merge_config"]
