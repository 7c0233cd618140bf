"""Core constants module.

Re-exports all constants for convenience.
"""

from rebalancer.core.constants.generic import (
    WAD_DECIMALS,
    WAD,
    BPS_DENOMINATOR,
    REDEEM_FALLBACK_BPS,
    FEE_TIER_LOW,
    FEE_TIER_MEDIUM,
    FEE_TIER_HIGH,
    DIRECT_ROUTE_FEE_TIERS,
    FALLBACK_FEE_TIERS,
    SWAP_DEADLINE_SECONDS,
    DEFAULT_CONFIRMATION_ATTEMPTS,
    DEFAULT_CONFIRMATION_INTERVAL_SECONDS,
)

from rebalancer.core.constants.chains import (
    POLYGON_CHAIN_ID,
    POLYGON_USDC_ADDRESS,
    POLYGON_WMATIC_ADDRESS,
    POLYGON_WETH_ADDRESS,
    POLYGON_WBTC_ADDRESS,
    POLYGON_SWAP_ROUTER_ADDRESS,
    POLYGON_QUOTER_ADDRESS,
)

__all__ = [
    # Generic
    "WAD_DECIMALS",
    "WAD",
    "BPS_DENOMINATOR",
    "REDEEM_FALLBACK_BPS",
    "FEE_TIER_LOW",
    "FEE_TIER_MEDIUM",
    "FEE_TIER_HIGH",
    "DIRECT_ROUTE_FEE_TIERS",
    "FALLBACK_FEE_TIERS",
    "SWAP_DEADLINE_SECONDS",
    "DEFAULT_CONFIRMATION_ATTEMPTS",
    "DEFAULT_CONFIRMATION_INTERVAL_SECONDS",
    # Chains
    "POLYGON_CHAIN_ID",
    "POLYGON_USDC_ADDRESS",
    "POLYGON_WMATIC_ADDRESS",
    "POLYGON_WETH_ADDRESS",
    "POLYGON_WBTC_ADDRESS",
    "POLYGON_SWAP_ROUTER_ADDRESS",
    "POLYGON_QUOTER_ADDRESS",
]
