"""Submitted transaction tracking."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ConfirmationState(Enum):
    """Confirmation state of a submitted transaction."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"  # Still pending or dropped, not distinguished


@dataclass
class PendingTransaction:
    """Transaction submitted by the executor and awaiting its receipt."""

    tx_hash: str
    label: str
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    state: ConfirmationState = ConfirmationState.PENDING
    confirmed_at: Optional[datetime] = None

    def confirm(self) -> None:
        self.state = ConfirmationState.CONFIRMED
        self.confirmed_at = datetime.now(timezone.utc)

    def time_out(self) -> None:
        self.state = ConfirmationState.TIMED_OUT
