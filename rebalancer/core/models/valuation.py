"""Portfolio valuation models."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

from rebalancer.core.constants import BPS_DENOMINATOR, WAD

from .token import Balance, Token
from .vault import VaultPosition


@dataclass(frozen=True)
class Holding:
    """Wallet balance of a token plus its vault position, if any."""

    wallet: Balance
    position: Optional[VaultPosition] = None

    @property
    def token(self) -> Token:
        return self.wallet.token

    @property
    def effective_raw(self) -> int:
        """Raw amount that counts toward the token's value."""
        if self.position is None:
            return self.wallet.raw
        return self.position.effective_balance(self.wallet.raw)


@dataclass
class Valuation:
    """Per-token values in the reference currency for one cycle.

    All values are 18-decimal fixed-point integers, so the total is an exact sum.
    """

    tokens: Dict[str, Token] = field(default_factory=dict)
    values: Dict[str, int] = field(default_factory=dict)
    prices: Dict[str, Decimal] = field(default_factory=dict)  # Reference units per whole token

    @property
    def total(self) -> int:
        return sum(self.values.values())

    @property
    def total_display(self) -> Decimal:
        return Decimal(self.total) / Decimal(WAD)

    def allocation_bps(self, token_address: str) -> int:
        """Current allocation of a token in basis points (floored)."""
        total = self.total
        if total == 0:
            return 0
        return self.values.get(token_address, 0) * BPS_DENOMINATOR // total

    def to_dict(self) -> dict:
        return {
            "total": str(self.total_display),
            "tokens": {
                address: {
                    "symbol": self.tokens[address].symbol,
                    "value": str(Decimal(value) / Decimal(WAD)),
                    "price": str(self.prices[address]) if address in self.prices else None,
                    "allocation_bps": self.allocation_bps(address),
                }
                for address, value in self.values.items()
            },
        }
