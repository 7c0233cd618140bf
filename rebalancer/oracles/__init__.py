"""Price oracle adapter and signal capability interfaces."""

from .base import (
    PriceOracle,
    MomentumSignal,
    TrendSignal,
    PricePredictor,
    MomentumReading,
    TrendReading,
    TrendDirection,
    Prediction,
)
from .cache import PriceCache
from .one_inch import OneInchPriceOracle

__all__ = [
    "PriceOracle",
    "MomentumSignal",
    "TrendSignal",
    "PricePredictor",
    "MomentumReading",
    "TrendReading",
    "TrendDirection",
    "Prediction",
    "PriceCache",
    "OneInchPriceOracle",
]
