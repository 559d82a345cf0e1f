"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from urllib.parse import urlparse

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.constants import (
    ACCOUNT_TX_LIST_LIMIT,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MAX_RANKED_ACCOUNTS,
    RANKING_REFRESH_INTERVAL_SECONDS,
    SHARD_COUNT,
    SYNC_INTERVAL_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Chain nodes, one JSON-RPC endpoint per shard:
    # "1=http://127.0.0.1:8027,2=http://127.0.0.1:8028"
    node_rpc_urls: str = ""
    rpc_timeout: float = Field(
        default=30.0, gt=0, description="Node RPC HTTP timeout in seconds"
    )
    shard_count: int = Field(
        default=SHARD_COUNT, ge=1, description="Number of shards in the network"
    )

    # Chain walker
    sync_interval: int = Field(
        default=SYNC_INTERVAL_SECONDS,
        ge=1,
        description="Chain sync interval in seconds",
    )
    sync_legacy_tick_skip: bool = Field(
        default=False,
        description=(
            "Let every finished sync cycle consume the next timer tick "
            "(legacy cadence)"
        ),
    )

    # Ranked accounts
    ranking_refresh_interval: int = Field(
        default=RANKING_REFRESH_INTERVAL_SECONDS,
        ge=1,
        description="Ranked account snapshot rebuild interval in seconds",
    )
    max_ranked_accounts: int = Field(
        default=MAX_RANKED_ACCOUNTS,
        gt=0,
        description="Maximum accounts kept in a ranked snapshot",
    )
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0)
    max_page_size: int = Field(default=MAX_PAGE_SIZE, gt=0)
    account_tx_limit: int = Field(
        default=ACCOUNT_TX_LIST_LIMIT,
        gt=0,
        description="Persisted transactions returned with an account detail",
    )

    # Serving
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1, le=65535)
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/shardscan.log"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        allowed = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "Settings":
        """Default page size may not exceed the maximum page size."""
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                "DEFAULT_PAGE_SIZE must not be greater than MAX_PAGE_SIZE"
            )
        return self

    @model_validator(mode="after")
    def validate_node_urls(self) -> "Settings":
        """Parse node URLs eagerly so a bad value fails at startup."""
        self.get_node_urls()
        if self.environment == "production" and not self.node_rpc_urls:
            logger.warning(
                "NODE_RPC_URLS is empty: no shard will be synchronized"
            )
        return self

    def get_node_urls(self) -> dict[int, str]:
        """
        Get node RPC endpoints keyed by shard number.

        Returns:
            Mapping of shard number to RPC URL

        Raises:
            ValueError: If an entry is malformed or the shard is out of range
        """
        urls: dict[int, str] = {}
        for item in self.node_rpc_urls.split(","):
            item = item.strip()
            if not item:
                continue
            shard_part, sep, url = item.partition("=")
            if not sep:
                raise ValueError(
                    f"Invalid NODE_RPC_URLS entry '{item}', expected <shard>=<url>"
                )
            try:
                shard_number = int(shard_part.strip())
            except ValueError as e:
                raise ValueError(f"Invalid shard number in '{item}'") from e
            if not 1 <= shard_number <= self.shard_count:
                raise ValueError(
                    f"Shard {shard_number} is outside 1..{self.shard_count}"
                )
            url = url.strip()
            parsed = urlparse(url)
            if not parsed.scheme or not parsed.netloc:
                raise ValueError(
                    f"Node URL for shard {shard_number} must include scheme "
                    "and host, e.g. http://localhost:8027"
                )
            urls[shard_number] = url
        return urls

    def get_shard_numbers(self) -> list[int]:
        """Get all shard numbers served by the ranking cache."""
        return list(range(1, self.shard_count + 1))


settings = Settings()
