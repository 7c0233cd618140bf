"""Rebalancing engine: valuation, planning, routing and cycle orchestration."""

from .valuation import ValuationEngine, to_wad, scale_to_wad, scale_from_wad
from .vault_accountant import VaultAccountant
from .planner import DriftPlanner
from .router import SwapRouter
from .fees import FeeRecharger, RechargeAction
from .weights import WeightSelector
from .orchestrator import RebalanceOrchestrator
from .scheduler import RebalanceScheduler

__all__ = [
    "ValuationEngine",
    "to_wad",
    "scale_to_wad",
    "scale_from_wad",
    "VaultAccountant",
    "DriftPlanner",
    "SwapRouter",
    "FeeRecharger",
    "RechargeAction",
    "WeightSelector",
    "RebalanceOrchestrator",
    "RebalanceScheduler",
]
