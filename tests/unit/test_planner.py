"""Unit tests for DriftPlanner."""

import pytest
from decimal import Decimal

from rebalancer.core.constants import WAD
from rebalancer.core.exceptions import AllocationMismatch
from rebalancer.core.models import AllocationTarget, TradeDirection, Valuation
from rebalancer.engine.planner import DriftPlanner


def make_valuation(*entries) -> Valuation:
    """Build a valuation from (token, whole-unit value, price) tuples."""
    valuation = Valuation()
    for token, value, price in entries:
        valuation.tokens[token.address] = token
        valuation.values[token.address] = value * WAD
        valuation.prices[token.address] = Decimal(price)
    return valuation


class TestDriftPlanner:
    """Tests for DriftPlanner."""

    @pytest.fixture
    def planner(self, usdc):
        return DriftPlanner(usdc.address, limit_bps=100)

    def test_two_token_scenario(self, planner, usdc, weth, wbtc):
        valuation = make_valuation((weth, 9000, "3000"), (wbtc, 1000, "50000"))
        target = AllocationTarget({weth.address: 7000, wbtc.address: 3000})

        plan = planner.plan(valuation, target, usdc)

        assert len(plan.sells) == 1
        assert len(plan.buys) == 1
        sell, buy = plan.sells[0], plan.buys[0]
        expected_value = valuation.total * 2000 // 10000

        assert sell.token == weth
        assert sell.direction is TradeDirection.SELL
        assert sell.value_to_rebalance == expected_value
        assert sell.difference_bps == -2000
        assert sell.amount == 2000 * WAD * 10**18 // (3000 * WAD)

        assert buy.token == wbtc
        assert buy.direction is TradeDirection.BUY
        assert buy.value_to_rebalance == expected_value
        assert buy.difference_bps == 2000
        assert buy.amount == 2_000_000_000  # 2000 USDC

    def test_drift_at_limit_emits_nothing(self, planner, usdc, weth, wbtc):
        valuation = make_valuation((weth, 7100, "3000"), (wbtc, 2900, "50000"))
        target = AllocationTarget({weth.address: 7000, wbtc.address: 3000})

        plan = planner.plan(valuation, target, usdc)

        assert plan.is_empty

    def test_drift_just_above_limit(self, planner, usdc, weth, wbtc):
        valuation = make_valuation((weth, 7101, "3000"), (wbtc, 2899, "50000"))
        target = AllocationTarget({weth.address: 7000, wbtc.address: 3000})

        plan = planner.plan(valuation, target, usdc)

        assert [i.token for i in plan.sells] == [weth]
        assert [i.token for i in plan.buys] == [wbtc]

    def test_reference_token_skipped_and_planning_continues(self, planner, usdc, weth, wbtc):
        valuation = make_valuation((usdc, 5000, "1"), (weth, 4000, "3000"), (wbtc, 1000, "50000"))
        target = AllocationTarget({usdc.address: 2000, weth.address: 4000, wbtc.address: 4000})

        plan = planner.plan(valuation, target, usdc)

        assert usdc.address not in plan.tokens
        assert [i.token for i in plan.buys] == [wbtc]
        assert plan.sells == []

    def test_sell_amount_for_eight_decimal_token(self, planner, usdc, weth, wbtc):
        valuation = make_valuation((wbtc, 6000, "60000"), (weth, 4000, "3000"))
        target = AllocationTarget({wbtc.address: 3000, weth.address: 7000})

        plan = planner.plan(valuation, target, usdc)

        # 3000 USD of WBTC at 60000 = 0.05 WBTC
        assert plan.sells[0].amount == 5_000_000

    def test_weights_not_summing_abort(self, planner, usdc, weth, wbtc):
        valuation = make_valuation((weth, 9000, "3000"), (wbtc, 1000, "50000"))
        target = AllocationTarget({weth.address: 7000, wbtc.address: 2000})

        with pytest.raises(AllocationMismatch) as exc_info:
            planner.plan(valuation, target, usdc)

        assert exc_info.value.total_bps == 9000

    def test_weights_missing_token_abort(self, planner, usdc, weth, wbtc):
        valuation = make_valuation((weth, 9000, "3000"), (wbtc, 1000, "50000"))

        with pytest.raises(AllocationMismatch):
            planner.plan(valuation, AllocationTarget({weth.address: 10000}), usdc)

    def test_zero_total_plans_nothing(self, planner, usdc, weth, wbtc):
        valuation = make_valuation((weth, 0, "3000"), (wbtc, 0, "50000"))
        target = AllocationTarget({weth.address: 7000, wbtc.address: 3000})

        assert planner.plan(valuation, target, usdc).is_empty
