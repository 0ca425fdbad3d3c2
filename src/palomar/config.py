from __future__ import annotations

from typing import Literal, Optional

from opensearchpy import AsyncOpenSearch
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseModel):
    """Application-specific configuration values."""

    log_level: str = "INFO"
    # Transport settings for FastMCP: "stdio" (default), "http", or "sse"
    transport: Literal["stdio", "http", "sse"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000


class OpenSearchConfig(BaseModel):
    """Search backend connection and index names."""

    url: str = "http://localhost:9200"
    username: Optional[str] = None
    password: Optional[str] = None
    verify_ssl: bool = True
    timeout: float = 30.0
    post_index: str = "palomar_post"
    profile_index: str = "palomar_profile"


class IdentityConfig(BaseModel):
    """Handle resolution service used by the query parser."""

    # Any XRPC host implementing com.atproto.identity.resolveHandle
    service_url: str = "https://public.api.bsky.app"
    timeout: float = 5.0


class SearchConfig(BaseModel):
    """Query execution policy."""

    # Per-request deadline in seconds; None means rely on the client timeout
    request_timeout: Optional[float] = None
    # Unrestricted query_string search is for trusted/internal diagnostics only
    allow_unrestricted: bool = False


class Settings(BaseSettings):
    """Top-level settings loaded from environment variables and .env only."""

    model_config = SettingsConfigDict(
        env_prefix="PALOMAR_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = AppConfig()
    opensearch: OpenSearchConfig = OpenSearchConfig()
    identity: IdentityConfig = IdentityConfig()
    search: SearchConfig = SearchConfig()


def load_settings() -> Settings:
    """Load settings from environment variables and .env only."""
    return Settings()  # type: ignore[call-arg]


def make_backend_client(cfg: OpenSearchConfig) -> AsyncOpenSearch:
    """Build the shared backend client. The caller owns it and must close it.

    Client-side retries are disabled; each search is a single attempt.
    """
    auth = None
    if cfg.username and cfg.password:
        auth = (cfg.username, cfg.password)
    return AsyncOpenSearch(
        hosts=[cfg.url.rstrip("/")],
        http_auth=auth,
        timeout=cfg.timeout,
        verify_certs=cfg.verify_ssl,
        max_retries=0,
        retry_on_timeout=False,
    )
