"""Portfolio valuation in the reference currency.

Every value is an 18-decimal fixed-point integer: token amounts are scaled to
18 decimals before the price is applied, and the reference token is valued at
par after the same scaling. The total is therefore an exact integer sum.
"""

import logging
from decimal import Decimal
from typing import Iterable

from rebalancer.core.constants import WAD, WAD_DECIMALS
from rebalancer.core.exceptions import PriceUnavailable
from rebalancer.core.models import Holding, Valuation
from rebalancer.oracles.base import PriceOracle

logger = logging.getLogger(__name__)


def to_wad(price: Decimal) -> int:
    """Convert a decimal price to an 18-decimal integer (truncating)."""
    return int(Decimal(price) * WAD)


def scale_to_wad(raw: int, decimals: int) -> int:
    """Scale a raw token amount to 18 decimals."""
    if decimals <= WAD_DECIMALS:
        return raw * 10 ** (WAD_DECIMALS - decimals)
    return raw // 10 ** (decimals - WAD_DECIMALS)


def scale_from_wad(value: int, decimals: int) -> int:
    """Scale an 18-decimal amount down to a token's native decimals (truncating)."""
    if decimals <= WAD_DECIMALS:
        return value // 10 ** (WAD_DECIMALS - decimals)
    return value * 10 ** (decimals - WAD_DECIMALS)


class ValuationEngine:
    """Values holdings in the reference currency through a price oracle."""

    def __init__(self, oracle: PriceOracle, reference_token: str, chain_id: int):
        self.oracle = oracle
        self.reference_token = reference_token
        self.chain_id = chain_id

    async def value(self, holdings: Iterable[Holding]) -> Valuation:
        """
        Value each holding and the portfolio total.

        Args:
            holdings: Wallet balances, with vault positions for vault-bound tokens

        Returns:
            Valuation keyed by token address

        Raises:
            PriceUnavailable: if any non-reference token cannot be priced
        """
        valuation = Valuation()
        for holding in holdings:
            token = holding.token
            amount = scale_to_wad(holding.effective_raw, token.decimals)

            if token.address == self.reference_token:
                price = Decimal(1)
                value = amount
            else:
                price = await self._price(holding)
                value = amount * to_wad(price) // WAD

            valuation.tokens[token.address] = token
            valuation.prices[token.address] = price
            valuation.values[token.address] = value
            logger.info(
                f"{token.symbol}: {token.to_units(holding.effective_raw)} @ {price} = "
                f"{Decimal(value) / Decimal(WAD)}"
            )

        logger.info(f"Total portfolio value: {valuation.total_display}")
        return valuation

    async def _price(self, holding: Holding) -> Decimal:
        token = holding.token
        try:
            price = await self.oracle.price(token, self.chain_id)
        except Exception as e:
            raise PriceUnavailable(token.address, e) from e
        if price is None or price <= 0:
            logger.error(f"Price unavailable for {token.symbol} ({token.address})")
            raise PriceUnavailable(token.address)
        return price
