"""Oracle capability interfaces.

The rebalancer consumes prices and trading signals only through these
interfaces, so concrete implementations can be swapped (or replaced with
deterministic fakes in tests) without touching the engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from rebalancer.core.models import Token


class TrendDirection(Enum):
    """Direction reported by the trend classifier."""
    UP = "up"
    DOWN = "down"
    NONE = "none"


@dataclass(frozen=True)
class MomentumReading:
    """Momentum oscillator reading (RSI-style) for one symbol."""
    value: Decimal
    overbought: bool
    oversold: bool


@dataclass(frozen=True)
class TrendReading:
    """Trend classifier reading."""
    direction: TrendDirection
    crossed: bool


@dataclass(frozen=True)
class Prediction:
    """Price predictor output for the tracked symbol."""
    predicted: Decimal
    actual: Decimal


class PriceOracle(ABC):
    """Resolves a token's unit price in the reference currency."""

    @abstractmethod
    async def price(self, token: Token, chain_id: int) -> Optional[Decimal]:
        """Price of one whole ``token`` in reference units.

        Returns:
            Price, or None when the oracle cannot price the token
        """
        ...

    async def close(self) -> None:
        """Close any open connections."""
        return None


class MomentumSignal(ABC):
    """Momentum oscillator used to gate individual trades."""

    @abstractmethod
    async def read(self, symbol: str) -> MomentumReading:
        ...


class TrendSignal(ABC):
    """Trend classifier used to choose between weight sets."""

    @abstractmethod
    async def read(self) -> TrendReading:
        ...


class PricePredictor(ABC):
    """Price prediction model used alongside the trend signal."""

    @abstractmethod
    async def predict(self) -> Prediction:
        ...
