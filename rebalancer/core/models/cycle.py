"""Cycle outcome and run record models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from .allocation import DriftInstruction
from .valuation import Valuation
from .vault import InterestSnapshot


class CycleStatus(Enum):
    """Terminal state of one orchestrator cycle."""
    IDLE = "idle"            # No drift above threshold
    REBALANCED = "rebalanced"
    ABORTED = "aborted"      # Valuation or allocation failure


class InstructionStatus(Enum):
    """What happened to a single drift instruction."""
    EXECUTED = "executed"
    GATED = "gated"          # Momentum filter not satisfied
    SKIPPED = "skipped"      # Zero amount or insufficient balance
    FAILED = "failed"        # No route, timeout, simulation or unexpected error


@dataclass
class InstructionOutcome:
    """Result of executing one drift instruction."""

    instruction: DriftInstruction
    status: InstructionStatus
    detail: str = ""
    tx_hash: Optional[str] = None

    def to_dict(self) -> dict:
        data = self.instruction.to_dict()
        data.update({"status": self.status.value, "detail": self.detail, "tx_hash": self.tx_hash})
        return data


@dataclass
class WeightDecision:
    """Weight set chosen for a cycle and the signals behind the choice."""

    trend_up: bool
    weights: Dict[str, int]
    trend_direction: Optional[str] = None
    trend_crossed: Optional[bool] = None
    ai_signal: str = "none"

    def signal_dict(self) -> dict:
        return {"direction": self.trend_direction, "cross": self.trend_crossed, "trend_up": self.trend_up}


@dataclass
class CycleReport:
    """Everything one cycle observed and did."""

    started_at: datetime
    snapshot: InterestSnapshot
    status: CycleStatus = CycleStatus.IDLE
    finished_at: Optional[datetime] = None
    valuation: Optional[Valuation] = None
    outcomes: List[InstructionOutcome] = field(default_factory=list)
    deposits: List[str] = field(default_factory=list)  # Token addresses deposited to vaults
    error: str = ""

    def finish(self, status: CycleStatus) -> "CycleReport":
        self.status = status
        self.finished_at = datetime.now(timezone.utc)
        return self

    def outcomes_with(self, status: InstructionStatus) -> List[InstructionOutcome]:
        return [o for o in self.outcomes if o.status is status]

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "status": self.status.value,
            "valuation": self.valuation.to_dict() if self.valuation else None,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "deposits": list(self.deposits),
            "interest_snapshot": self.snapshot.to_dict(),
            "error": self.error,
        }


@dataclass
class RunRecord:
    """Per-cycle observability record written to disk."""

    decision: WeightDecision
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    report: Optional[CycleReport] = None

    def to_dict(self) -> dict:
        return {
            "signal": self.decision.signal_dict(),
            "aiSignal": self.decision.ai_signal,
            "selectedWeights": dict(self.decision.weights),
            "timestamp": self.timestamp.isoformat(),
            "cycle": self.report.to_dict() if self.report else None,
        }
