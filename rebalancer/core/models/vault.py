"""Vault accounting models."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from .token import Token


@dataclass(frozen=True)
class VaultPosition:
    """Vault shares held for a token, read at cycle start.

    Accrued interest is the spread between the shares held and what they
    redeem for right now.
    """

    vault: str
    token: Token
    shares: int
    redeemable: int  # previewWithdraw(shares)
    last_interest: int = 0  # Interest observed in the previous cycle

    @property
    def accrued_interest(self) -> int:
        return self.shares - self.redeemable

    @property
    def interest_delta(self) -> int:
        """Interest accrued since the previous cycle."""
        return self.accrued_interest - self.last_interest

    def effective_balance(self, wallet_raw: int) -> int:
        """Underlying balance counting shares, accrued interest and wallet."""
        return self.shares + self.accrued_interest + wallet_raw


@dataclass(frozen=True)
class InterestSnapshot:
    """Last observed accrued interest per vault-bound token.

    The only state carried from one cycle to the next.
    """

    interest: Dict[str, int] = field(default_factory=dict)

    def last(self, token_address: str) -> int:
        return self.interest.get(token_address, 0)

    def advance(self, positions: Iterable[VaultPosition]) -> "InterestSnapshot":
        """Return a new snapshot updated with this cycle's positions."""
        updated = dict(self.interest)
        for position in positions:
            updated[position.token.address] = position.accrued_interest
        return InterestSnapshot(interest=updated)

    def to_dict(self) -> dict:
        return {token: str(value) for token, value in self.interest.items()}


@dataclass(frozen=True)
class Call:
    """Single call routed through the execute-batch contract."""

    to: str
    data: str
    value: int = 0

    def as_tuple(self) -> Tuple[str, int, str]:
        return (self.to, self.value, self.data)


@dataclass
class TxBundle:
    """Approvals plus batched calls for one vault operation."""

    approvals: List[dict] = field(default_factory=list)  # Unsigned approval transactions
    calldatas: List[Call] = field(default_factory=list)
    tokens_return: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.calldatas


@dataclass(frozen=True)
class Redemption:
    """How an instruction is funded from the wallet and the token's vault."""

    shares: int  # Vault shares to redeem first, 0 when the wallet suffices
    trade_amount: int  # Amount actually traded, possibly reduced to the fallback size

    @property
    def needs_redeem(self) -> bool:
        return self.shares > 0
