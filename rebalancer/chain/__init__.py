"""Chain access layer: provider, readers, adapters and the transaction executor."""

from .provider import ChainProvider
from .balances import BalanceReader
from .vaults import VaultAdapter
from .quoter import QuotingAdapter
from .executor import TransactionExecutor

__all__ = [
    "ChainProvider",
    "BalanceReader",
    "VaultAdapter",
    "QuotingAdapter",
    "TransactionExecutor",
]
