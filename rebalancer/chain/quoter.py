"""Uniswap V3 quoting adapter."""

import logging
from typing import Iterable, Optional, Tuple

from web3.exceptions import Web3Exception

from rebalancer.chain.abis import QUOTER_ABI
from rebalancer.chain.provider import ChainProvider

logger = logging.getLogger(__name__)


class QuotingAdapter:
    """Quotes exact-input swaps against single pools.

    A quote that reverts means there is no usable pool at that fee tier.
    """

    def __init__(self, provider: ChainProvider, quoter: str):
        self.provider = provider
        self.quoter = quoter

    async def quote(self, token_in: str, token_out: str, amount_in: int, fee: int) -> Optional[int]:
        """Expected output for ``amount_in``, or None when no pool exists."""
        contract = await self.provider.contract(self.quoter, QUOTER_ABI)
        try:
            amount_out = await contract.functions.quoteExactInputSingle(
                token_in, token_out, fee, amount_in, 0
            ).call()
        except Web3Exception as e:
            logger.debug(f"No pool {token_in}->{token_out} at fee {fee}: {e}")
            return None
        if not amount_out:
            return None
        logger.debug(f"Quote {token_in}->{token_out} fee {fee}: {amount_in} -> {amount_out}")
        return int(amount_out)

    async def best_fee(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        fee_tiers: Iterable[int],
    ) -> Optional[Tuple[int, int]]:
        """Fee tier with the highest output across ``fee_tiers``.

        Returns:
            (fee, amount_out) or None if no tier has a pool
        """
        best: Optional[Tuple[int, int]] = None
        for fee in fee_tiers:
            amount_out = await self.quote(token_in, token_out, amount_in, fee)
            if amount_out is not None and (best is None or amount_out > best[1]):
                best = (fee, amount_out)
        return best
