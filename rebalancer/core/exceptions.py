"""Exception taxonomy for the rebalancing engine.

Cycle-level errors (PriceUnavailable, AllocationMismatch) abort the whole cycle.
Instruction-level errors abort only the instruction they were raised for.
"""

from typing import Optional


class RebalancerError(RuntimeError):
    """Base class for all rebalancer errors."""


class PriceUnavailable(RebalancerError):
    """Raised when the price oracle cannot price a token."""

    def __init__(self, token: str, original: Optional[Exception] = None):
        super().__init__(f"Price unavailable for {token}")
        self.token = token
        self.original = original


class AllocationMismatch(RebalancerError):
    """Raised when a weight set does not cover the portfolio or does not sum to 100%."""

    def __init__(self, message: str, total_bps: Optional[int] = None):
        super().__init__(message)
        self.total_bps = total_bps


class NoRouteFound(RebalancerError):
    """Raised when neither a direct nor a bridged route exists for a pair."""

    def __init__(self, token_in: str, token_out: str, bridge: Optional[str] = None):
        detail = f" (bridge {bridge})" if bridge else ""
        super().__init__(f"No route from {token_in} to {token_out}{detail}")
        self.token_in = token_in
        self.token_out = token_out
        self.bridge = bridge


class ZeroAmount(RebalancerError):
    """Raised when a swap is requested for a non-positive amount."""

    def __init__(self, token: str, amount: int):
        super().__init__(f"Swap amount for {token} must be positive, got {amount}")
        self.token = token
        self.amount = amount


class BroadcastTimeout(RebalancerError):
    """Raised when a submitted transaction is not confirmed within the polling ceiling.

    The transaction may still be mined later; funds need manual inspection.
    """

    def __init__(self, tx_hash: str, attempts: int):
        super().__init__(f"TX broadcast timeout for {tx_hash} after {attempts} attempts")
        self.tx_hash = tx_hash
        self.attempts = attempts


class InsufficientBalance(RebalancerError):
    """Raised when neither wallet nor vault can fund an instruction."""

    def __init__(self, token: str, required: int, available: int):
        super().__init__(f"Insufficient balance for {token}: required {required}, available {available}")
        self.token = token
        self.required = required
        self.available = available


class SimulationFailed(RebalancerError):
    """Raised when a static-call simulation of a batched call reverts."""

    def __init__(self, target: str, original: Optional[Exception] = None):
        super().__init__(f"Simulation failed for batch call on {target}: {original}")
        self.target = target
        self.original = original


class TransactionReverted(RebalancerError):
    """Raised when a transaction was mined but reverted."""

    def __init__(self, tx_hash: str):
        super().__init__(f"TX {tx_hash} reverted")
        self.tx_hash = tx_hash
