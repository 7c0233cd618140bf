"""Swap route models."""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Hop:
    """Single pool hop."""

    token_in: str
    token_out: str
    fee: int  # Pool fee tier, e.g. 3000 = 0.3%


@dataclass(frozen=True)
class Route:
    """One or two hops with the minimum output accepted for the whole route."""

    hops: Tuple[Hop, ...]
    amount_in: int
    min_amount_out: int

    @property
    def is_direct(self) -> bool:
        return len(self.hops) == 1

    @property
    def token_in(self) -> str:
        return self.hops[0].token_in

    @property
    def token_out(self) -> str:
        return self.hops[-1].token_out

    @property
    def bridge(self) -> Optional[str]:
        if self.is_direct:
            return None
        return self.hops[0].token_out

    def describe(self) -> str:
        parts = [self.hops[0].token_in]
        for hop in self.hops:
            parts.append(f"--{hop.fee}-->")
            parts.append(hop.token_out)
        return " ".join(parts)
