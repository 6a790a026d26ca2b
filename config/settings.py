from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from blockchain.constants import CACHE_RESULT_TTL


class Settings(BaseSettings):
    """Configuration for the transaction resolver."""

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Cache Configuration
    CACHE_BACKEND: str = Field(
        default="memory",
        description="Cache backend (memory, redis or none)"
    )
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis URL"
    )
    CACHE_TTL_SECONDS: int = Field(
        default=CACHE_RESULT_TTL,
        description="Lifetime of cached blocks and transactions"
    )
    CACHE_MAX_SIZE: int = Field(
        default=10000,
        description="Maximum entries held by the in-memory cache"
    )

    # Chain RPC Configuration
    CHAIN_RPC_URLS: Dict[str, str] = Field(
        default={
            "bitcoin": "http://localhost:8332",
            "testnet": "http://localhost:18332",
        },
        description="JSON-RPC endpoint per network name"
    )
    CHAIN_RPC_USER: Optional[str] = Field(
        default=None,
        description="JSON-RPC basic auth user"
    )
    CHAIN_RPC_PASSWORD: Optional[str] = Field(
        default=None,
        description="JSON-RPC basic auth password"
    )
    REQUEST_TIMEOUT: float = Field(
        default=10.0,
        description="Total timeout in seconds for a single RPC call"
    )

    # Circuit breaker guarding the Redis cache
    CIRCUIT_FAILURE_THRESHOLD: int = Field(
        default=5,
        description="Consecutive cache failures before the circuit opens"
    )
    CIRCUIT_RECOVERY_TIMEOUT: int = Field(
        default=30,
        description="Seconds before an open circuit admits a trial call"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
