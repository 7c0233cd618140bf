"""Pydantic settings for the portfolio rebalancer."""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Dict, List, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from web3 import Web3

from rebalancer.core.constants import (
    BPS_DENOMINATOR,
    DEFAULT_CONFIRMATION_ATTEMPTS,
    DEFAULT_CONFIRMATION_INTERVAL_SECONDS,
    POLYGON_CHAIN_ID,
    POLYGON_QUOTER_ADDRESS,
    POLYGON_SWAP_ROUTER_ADDRESS,
    POLYGON_USDC_ADDRESS,
    POLYGON_WMATIC_ADDRESS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Constructed once per run. Required fields have no default so a missing
    value fails at startup instead of reaching the trade calculations.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # Network and signer
    rpc_url: str = Field(description="JSON-RPC endpoint of the target chain")
    wallet_private_key: SecretStr = Field(description="Private key of the single rebalancing wallet")
    chain_id: int = Field(default=POLYGON_CHAIN_ID, description="Chain ID used for pricing and vault calls")

    # Portfolio
    tokens: Annotated[List[str], NoDecode] = Field(description="Tokens managed by the rebalancer")
    weights_up: Dict[str, int] = Field(description="Target weights (bps) used in an up-trend")
    weights_down: Dict[str, int] = Field(description="Target weights (bps) used in a down-trend")
    reference_token: str = Field(default=POLYGON_USDC_ADDRESS, description="Stable reference currency token")
    limit_bps: int = Field(default=100, ge=0, lt=BPS_DENOMINATOR, description="Drift threshold in basis points")

    # Swaps
    wrapped_native: str = Field(default=POLYGON_WMATIC_ADDRESS, description="Wrapped native gas token")
    bridge_token: Optional[str] = Field(default=None, description="Bridge asset for two-hop routes")
    swap_router: str = Field(default=POLYGON_SWAP_ROUTER_ADDRESS, description="Uniswap V3 SwapRouter")
    quoter: str = Field(default=POLYGON_QUOTER_ADDRESS, description="Uniswap V3 Quoter")
    slippage_bps: int = Field(default=50, ge=0, lt=BPS_DENOMINATOR, description="Slippage tolerance in bps")
    gas_price_multiplier: Decimal = Field(default=Decimal("1.2"), ge=1, description="Multiplier over provider gas price")

    # Vaults
    vault_enabled: bool = Field(default=False, description="Account vault shares and yield in valuation")
    vaults: Dict[str, str] = Field(default_factory=dict, description="Token address -> ERC-4626 vault address")
    batch_router: Optional[str] = Field(default=None, description="Execute-batch router for vault bundles")
    batch_gas_limit: int = Field(default=30_000_000, gt=0, description="Gas limit for batch simulation")
    deposit_idle_reference: bool = Field(default=True, description="Deposit idle reference balance when no buys ran")

    # Fee recharge (native units, e.g. MATIC)
    native_floor: Decimal = Field(default=Decimal("2"), ge=0, description="Top up gas below this native balance")
    native_ceiling: Decimal = Field(default=Decimal("3"), gt=0, description="Wrap native balance above this")
    native_recharge_amount: Decimal = Field(default=Decimal("2"), gt=0, description="Amount unwrapped per top up")
    fee_swap_reference_amount: Decimal = Field(
        default=Decimal("2"),
        ge=0,
        description="Reference units swapped into the wrapped reserve when it runs low",
    )

    # Scheduling and confirmation
    interval_seconds: int = Field(default=3600, ge=10, description="Seconds between cycle starts")
    cooldown_seconds: float = Field(default=10.0, ge=0, description="Pause between trade instructions")
    confirmation_attempts: int = Field(default=DEFAULT_CONFIRMATION_ATTEMPTS, ge=1)
    confirmation_interval_seconds: float = Field(default=DEFAULT_CONFIRMATION_INTERVAL_SECONDS, ge=0)

    # Signals
    technical_analysis: bool = Field(default=False, description="Gate trades on the momentum oscillator")
    trend_following: bool = Field(default=False, description="Select weights from the trend signal")
    prediction: bool = Field(default=False, description="Combine the price predictor with the trend signal")

    # Price oracle
    price_api_url: str = Field(default="https://api.1inch.dev/price/v1.1", description="Spot price API base URL")
    price_api_key: Optional[SecretStr] = Field(default=None, description="Spot price API key")
    price_api_rate_limit: int = Field(default=1, ge=1, description="Price API requests per second")
    price_cache_ttl_seconds: int = Field(default=30, ge=0, le=3600, description="Price cache TTL, 0 disables")

    # Storage and logging
    cache_dir: Path = Field(default=Path(".cache/rebalancer"), description="Cache directory path")
    artifacts_dir: Path = Field(default=Path("runs"), description="Per-cycle run record directory")
    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator("tokens", mode="before")
    @classmethod
    def parse_tokens(cls, v):
        """Parse comma-separated token addresses."""
        if isinstance(v, str):
            if not v.strip():
                return []
            return [addr.strip() for addr in v.split(",") if addr.strip()]
        return v or []

    @field_validator("tokens")
    @classmethod
    def checksum_tokens(cls, v: List[str]) -> List[str]:
        """Normalise token addresses and reject duplicates."""
        addresses = [Web3.to_checksum_address(addr) for addr in v]
        if not addresses:
            raise ValueError("At least one token must be configured")
        if len(set(addresses)) != len(addresses):
            raise ValueError("Duplicate token in tokens")
        return addresses

    @field_validator(
        "reference_token", "wrapped_native", "bridge_token", "swap_router", "quoter", "batch_router"
    )
    @classmethod
    def checksum_address(cls, v: Optional[str]) -> Optional[str]:
        """Normalise single addresses to checksum form."""
        if v is None:
            return None
        return Web3.to_checksum_address(v)

    @field_validator("weights_up", "weights_down")
    @classmethod
    def checksum_weight_keys(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Normalise weight keys to checksum form."""
        return {Web3.to_checksum_address(addr): int(bps) for addr, bps in v.items()}

    @field_validator("vaults")
    @classmethod
    def checksum_vaults(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Normalise vault bindings to checksum form."""
        return {Web3.to_checksum_address(token): Web3.to_checksum_address(vault) for token, vault in v.items()}

    @field_validator("cache_dir", "artifacts_dir", mode="before")
    @classmethod
    def parse_path(cls, v):
        """Convert string to Path."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def validate_portfolio(self) -> "Settings":
        """Cross-field checks on weights, thresholds and vault wiring."""
        tokens = set(self.tokens)
        for name in ("weights_up", "weights_down"):
            weights: Dict[str, int] = getattr(self, name)
            if set(weights) != tokens:
                missing = sorted(tokens - set(weights))
                extra = sorted(set(weights) - tokens)
                raise ValueError(f"{name} must cover exactly the configured tokens (missing={missing}, extra={extra})")
            if any(bps < 0 for bps in weights.values()):
                raise ValueError(f"{name} contains a negative weight")
            total = sum(weights.values())
            if total != BPS_DENOMINATOR:
                raise ValueError(f"{name} sum to {total} bps, expected {BPS_DENOMINATOR}")

        if self.native_floor >= self.native_ceiling:
            raise ValueError("native_floor must be below native_ceiling")

        unknown_vault_tokens = set(self.vaults) - tokens - {self.reference_token}
        if unknown_vault_tokens:
            raise ValueError(f"Vault bound to unmanaged token(s): {sorted(unknown_vault_tokens)}")

        if self.vault_enabled and self.vaults and self.batch_router is None:
            raise ValueError("batch_router is required when vault_enabled is set")
        return self

    @property
    def route_bridge(self) -> str:
        """Bridge asset for fallback routes, the wrapped native token by default."""
        return self.bridge_token or self.wrapped_native

    @property
    def active_vaults(self) -> Dict[str, str]:
        """Vault bindings in effect for this run."""
        return dict(self.vaults) if self.vault_enabled else {}

    def ensure_cache_dir(self) -> Path:
        """Ensure cache directory exists and return it."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        return self.cache_dir


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
