"""Target allocation and drift models."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Set

from rebalancer.core.constants import BPS_DENOMINATOR, WAD
from rebalancer.core.exceptions import AllocationMismatch

from .token import Token


class TradeDirection(Enum):
    """Direction of a rebalancing trade relative to the reference currency."""
    BUY = "buy"    # Spend reference currency for the token
    SELL = "sell"  # Sell the token for reference currency


@dataclass(frozen=True)
class AllocationTarget:
    """Target weights in basis points for one weight set."""

    weights: Dict[str, int]

    @property
    def total_bps(self) -> int:
        return sum(self.weights.values())

    def weight(self, token_address: str) -> int:
        return self.weights.get(token_address, 0)

    def validate(self, tokens: Iterable[str]) -> None:
        """Check the weights cover exactly ``tokens`` and sum to 100%.

        Raises:
            AllocationMismatch: if either condition fails
        """
        expected = set(tokens)
        if set(self.weights) != expected:
            raise AllocationMismatch(
                f"Weights cover {sorted(self.weights)} but portfolio holds {sorted(expected)}",
                total_bps=self.total_bps,
            )
        if self.total_bps != BPS_DENOMINATOR:
            raise AllocationMismatch(
                f"Weights sum to {self.total_bps} bps, expected {BPS_DENOMINATOR}",
                total_bps=self.total_bps,
            )


@dataclass(frozen=True)
class DriftInstruction:
    """One buy or sell needed to bring a token back to target.

    ``amount`` is in token units for sells and reference-currency units for buys.
    """

    token: Token
    direction: TradeDirection
    current_bps: int
    desired_bps: int
    value_to_rebalance: int  # 18-decimal reference value
    amount: int

    @property
    def difference_bps(self) -> int:
        return self.desired_bps - self.current_bps

    @property
    def value_display(self) -> Decimal:
        return Decimal(self.value_to_rebalance) / Decimal(WAD)

    def to_dict(self) -> dict:
        return {
            "token": self.token.address,
            "symbol": self.token.symbol,
            "direction": self.direction.value,
            "current_bps": self.current_bps,
            "desired_bps": self.desired_bps,
            "value_to_rebalance": str(self.value_display),
            "amount": str(self.amount),
        }


@dataclass
class DriftPlan:
    """Sell and buy instructions produced for one cycle."""

    sells: List[DriftInstruction] = field(default_factory=list)
    buys: List[DriftInstruction] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.sells and not self.buys

    @property
    def tokens(self) -> Set[str]:
        """Addresses with a pending buy or sell."""
        return {i.token.address for i in self.sells} | {i.token.address for i in self.buys}
