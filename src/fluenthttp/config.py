"""Configuration models for pooled transports."""

from typing import Annotated

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fluenthttp.constants import (
    DEFAULT_MAX_CONNECTIONS,
    DEFAULT_MAX_KEEPALIVE_CONNECTIONS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    USER_AGENT_HEADER,
)


class TransportConfig(BaseModel):
    """Defaults applied to every client created by a transport pool.

    Builders may later change the timeout and user agent of a pool entry;
    these values are only the starting point.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(max_length=500)] = DEFAULT_USER_AGENT
    timeout_seconds: Annotated[float, Field(gt=0.0, le=3600.0)] | None = (
        DEFAULT_TIMEOUT_SECONDS
    )
    follow_redirects: bool = True
    max_connections: Annotated[int, Field(ge=1, le=10_000)] = DEFAULT_MAX_CONNECTIONS
    max_keepalive_connections: Annotated[int, Field(ge=0, le=10_000)] = (
        DEFAULT_MAX_KEEPALIVE_CONNECTIONS
    )

    def build_timeout(self) -> httpx.Timeout:
        """Get the per-phase httpx timeout for a new client."""
        return httpx.Timeout(self.timeout_seconds)

    def build_limits(self) -> httpx.Limits:
        """Get the connection limits for a new client."""
        return httpx.Limits(
            max_connections=self.max_connections,
            max_keepalive_connections=self.max_keepalive_connections,
        )

    def build_headers(self) -> dict[str, str]:
        """Get default headers for a new client."""
        if not self.user_agent:
            return {}
        return {USER_AGENT_HEADER: self.user_agent}


class ClientSettings(BaseSettings):
    """Environment overrides for transport defaults.

    Reads ``FLUENTHTTP_*`` variables, optionally from a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLUENTHTTP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS
    follow_redirects: bool = True
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    max_keepalive_connections: int = DEFAULT_MAX_KEEPALIVE_CONNECTIONS

    def to_transport_config(self) -> TransportConfig:
        """Validate the settings into a transport config."""
        return TransportConfig(
            user_agent=self.user_agent,
            timeout_seconds=self.timeout_seconds,
            follow_redirects=self.follow_redirects,
            max_connections=self.max_connections,
            max_keepalive_connections=self.max_keepalive_connections,
        )


def get_settings() -> ClientSettings:
    """Get a settings instance."""
    return ClientSettings()
