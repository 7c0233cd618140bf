"""Core data models."""

from .token import Token, VaultBinding, Balance
from .vault import VaultPosition, InterestSnapshot, Call, TxBundle, Redemption
from .valuation import Holding, Valuation
from .allocation import AllocationTarget, TradeDirection, DriftInstruction, DriftPlan
from .route import Hop, Route
from .transaction import ConfirmationState, PendingTransaction
from .cycle import (
    CycleStatus,
    InstructionStatus,
    InstructionOutcome,
    WeightDecision,
    CycleReport,
    RunRecord,
)

__all__ = [
    "Token",
    "VaultBinding",
    "Balance",
    "VaultPosition",
    "InterestSnapshot",
    "Call",
    "TxBundle",
    "Redemption",
    "Holding",
    "Valuation",
    "AllocationTarget",
    "TradeDirection",
    "DriftInstruction",
    "DriftPlan",
    "Hop",
    "Route",
    "ConfirmationState",
    "PendingTransaction",
    "CycleStatus",
    "InstructionStatus",
    "InstructionOutcome",
    "WeightDecision",
    "CycleReport",
    "RunRecord",
]
