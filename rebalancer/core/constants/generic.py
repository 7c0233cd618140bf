"""Generic constants for fixed-point portfolio arithmetic.

These constants are chain-agnostic and shared by valuation, planning and routing.
"""

# Precision constants
WAD_DECIMALS = 18
WAD = 10**WAD_DECIMALS  # Common fixed-point scale for every value entering a total

# Allocation arithmetic
BPS_DENOMINATOR = 10_000  # 100% in basis points
REDEEM_FALLBACK_BPS = 6_000  # Partial-fill size when the full amount is unavailable

# Uniswap V3 fee tiers (hundredths of a bip)
FEE_TIER_LOW = 500
FEE_TIER_MEDIUM = 3_000
FEE_TIER_HIGH = 10_000
DIRECT_ROUTE_FEE_TIERS = (FEE_TIER_MEDIUM,)
FALLBACK_FEE_TIERS = (FEE_TIER_LOW, FEE_TIER_MEDIUM, FEE_TIER_HIGH)

# Execution
SWAP_DEADLINE_SECONDS = 60 * 60  # 1 hour
DEFAULT_CONFIRMATION_ATTEMPTS = 20
DEFAULT_CONFIRMATION_INTERVAL_SECONDS = 5.0
