"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.constants import (
    DEFAULT_CLAIM_LOCK_HOURS,
    DEFAULT_IN_RANGE_WINDOW_DAYS,
    DEFAULT_RECALCULATION_CONCURRENCY,
    DEFAULT_RECALCULATION_INTERVAL_HOURS,
    DEFAULT_VOUCHER_TTL_MINUTES,
    RPC_MAX_RETRIES,
    RPC_RETRY_BASE_DELAY,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Blockchain RPC
    rpc_url: str
    chain_id: int = Field(default=8453, gt=0, description="Chain ID (Base mainnet)")
    rpc_max_retries: int = Field(
        default=RPC_MAX_RETRIES, ge=1, le=5,
        description="Attempts per upstream RPC call before failing closed"
    )
    rpc_retry_base_delay: float = Field(
        default=RPC_RETRY_BASE_DELAY, ge=0,
        description="Base delay in seconds for RPC retry backoff"
    )

    # Contracts
    claim_contract_address: str
    pool_address: str
    position_manager_address: str = Field(
        default="0x03a520b32c04bf3beef7beb72e919cf822ed34f1",
        description="Uniswap V3 NonfungiblePositionManager on Base"
    )
    token_decimals: int = Field(default=18, ge=0, le=36)

    # Calculator (voucher signing) key. Optional: without it the claim
    # path is degraded and every voucher request is rejected.
    calculator_private_key: str | None = None

    # Claim policy
    claim_lock_hours: float = Field(
        default=DEFAULT_CLAIM_LOCK_HOURS, ge=0,
        description="Minimum hours between successful on-chain claims"
    )
    voucher_ttl_minutes: float = Field(
        default=DEFAULT_VOUCHER_TTL_MINUTES, gt=0,
        description="How long an issued voucher blocks re-issuance at the same nonce"
    )
    absolute_max_claim: Decimal | None = Field(
        default=None, gt=0,
        description="Optional local cap (tokens) tightening the contract's absoluteMaxClaim"
    )

    # Recalculation pass
    recalculation_interval_hours: float = Field(
        default=DEFAULT_RECALCULATION_INTERVAL_HOURS, gt=0
    )
    recalculation_concurrency: int = Field(
        default=DEFAULT_RECALCULATION_CONCURRENCY, ge=1, le=10,
        description="Worker pool size for upstream position refreshes"
    )
    in_range_window_days: float = Field(
        default=DEFAULT_IN_RANGE_WINDOW_DAYS, gt=0,
        description="Window over which in-range time is averaged"
    )

    # Claim event indexing
    claim_event_start_block: int = Field(default=0, ge=0)
    claim_event_scan_chunk: int = Field(default=2000, ge=1)
    claim_event_sync_interval_minutes: float = Field(default=5, gt=0)

    # Redis (Dramatiq broker and cross-process voucher lock)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0
    use_redis_claim_lock: bool = False

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1, le=65535)
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )

            if not self.calculator_private_key:
                logger.warning(
                    'CALCULATOR_PRIVATE_KEY is not set. Claim vouchers cannot be '
                    'signed until it is configured.'
                )

        if self.calculator_private_key and 'your_' in self.calculator_private_key.lower():
            logger.warning(
                'CALCULATOR_PRIVATE_KEY appears to be a placeholder. '
                'Claim signing will be rejected by the contract.'
            )
        return self

    @field_validator(
        'claim_contract_address',
        'pool_address',
        'position_manager_address',
    )
    @classmethod
    def validate_eth_address(cls, v: str) -> str:
        """Validate Ethereum address format."""
        if not v.startswith('0x') or len(v) != 42:
            raise ValueError(
                f'Invalid Ethereum address: {v}. '
                'Must start with 0x and be 42 characters long.'
            )
        try:
            int(v[2:], 16)
        except ValueError as exc:
            raise ValueError(f'Invalid Ethereum address format: {v}') from exc
        return v.lower()

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(('postgresql://', 'postgresql+asyncpg://')):
            raise ValueError(
                'DATABASE_URL must start with postgresql:// or postgresql+asyncpg://'
            )
        return v

    @property
    def async_database_url(self) -> str:
        """Database URL with the asyncpg driver."""
        if self.database_url.startswith('postgresql://'):
            return self.database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return self.database_url


# Global settings instance
settings = Settings()
