"""Token and balance models."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class VaultBinding:
    """Yield vault a token's idle balance is parked in."""

    vault: str  # ERC-4626 vault address


@dataclass(frozen=True)
class Token:
    """ERC-20 token as loaded for one cycle."""

    address: str
    symbol: str
    decimals: int
    vault: Optional[VaultBinding] = None

    @property
    def is_vault_bound(self) -> bool:
        return self.vault is not None

    def to_units(self, raw: int) -> Decimal:
        """Convert a raw integer amount to display units."""
        return Decimal(raw) / (Decimal(10) ** self.decimals)

    def to_raw(self, units: Decimal) -> int:
        """Convert display units to a raw integer amount (truncating)."""
        return int(Decimal(units) * (Decimal(10) ** self.decimals))


@dataclass(frozen=True)
class Balance:
    """Wallet balance of a token for the current cycle."""

    token: Token
    raw: int

    @property
    def display(self) -> Decimal:
        """Decimal-adjusted amount."""
        return self.token.to_units(self.raw)

    def __str__(self) -> str:
        return f"{self.display} {self.token.symbol}"
