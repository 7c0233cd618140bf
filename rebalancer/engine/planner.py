"""Drift planning: current vs. target allocation to buy/sell instructions."""

import logging

from rebalancer.core.constants import BPS_DENOMINATOR
from rebalancer.core.models import (
    AllocationTarget,
    DriftInstruction,
    DriftPlan,
    Token,
    TradeDirection,
    Valuation,
)
from rebalancer.engine.valuation import scale_from_wad, to_wad

logger = logging.getLogger(__name__)


class DriftPlanner:
    """Emits a buy or sell for every token whose drift exceeds ``limit_bps``.

    Drift equal to the limit is inside the band and produces nothing. The
    reference token is never traded: it is skipped and planning continues
    with the remaining tokens.
    """

    def __init__(self, reference_token: str, limit_bps: int):
        self.reference_token = reference_token
        self.limit_bps = limit_bps

    def plan(self, valuation: Valuation, target: AllocationTarget, reference: Token) -> DriftPlan:
        """
        Plan the trades needed to move ``valuation`` to ``target``.

        Sell amounts are in token units, buy amounts in reference units.

        Raises:
            AllocationMismatch: if the weights do not cover the valued tokens or do not sum to 100%
        """
        target.validate(valuation.tokens)
        total = valuation.total
        plan = DriftPlan()
        if total == 0:
            logger.warning("Portfolio value is zero, nothing to rebalance")
            return plan

        for address, token in valuation.tokens.items():
            if address == self.reference_token:
                continue

            current = valuation.allocation_bps(address)
            desired = target.weight(address)
            difference = desired - current
            if abs(difference) <= self.limit_bps:
                logger.debug(f"{token.symbol} within band: current {current} bps, desired {desired} bps")
                continue

            value = total * abs(difference) // BPS_DENOMINATOR
            if difference < 0:
                price_wad = to_wad(valuation.prices[address])
                instruction = DriftInstruction(
                    token=token,
                    direction=TradeDirection.SELL,
                    current_bps=current,
                    desired_bps=desired,
                    value_to_rebalance=value,
                    amount=value * 10**token.decimals // price_wad,
                )
                plan.sells.append(instruction)
            else:
                instruction = DriftInstruction(
                    token=token,
                    direction=TradeDirection.BUY,
                    current_bps=current,
                    desired_bps=desired,
                    value_to_rebalance=value,
                    amount=scale_from_wad(value, reference.decimals),
                )
                plan.buys.append(instruction)

            logger.info(
                f"Plan {instruction.direction.value} {token.symbol}: {current} -> {desired} bps "
                f"({instruction.difference_bps:+d}), value {instruction.value_display}"
            )

        return plan
