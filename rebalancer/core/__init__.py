"""Core module - models, constants and errors."""

from .models import Token, Balance, Valuation, DriftInstruction, DriftPlan, Route
from .constants import WAD, BPS_DENOMINATOR

__all__ = [
    "Token",
    "Balance",
    "Valuation",
    "DriftInstruction",
    "DriftPlan",
    "Route",
    "WAD",
    "BPS_DENOMINATOR",
]
