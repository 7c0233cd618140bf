"""Unit tests for SwapRouter."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from rebalancer.core.constants import (
    DIRECT_ROUTE_FEE_TIERS,
    FALLBACK_FEE_TIERS,
    POLYGON_SWAP_ROUTER_ADDRESS,
    SWAP_DEADLINE_SECONDS,
)
from rebalancer.core.exceptions import NoRouteFound, ZeroAmount
from rebalancer.core.models import Hop, PendingTransaction, Route
from rebalancer.engine.router import SwapRouter

NOW = 1_700_000_000


class TestSwapRouter:
    """Tests for SwapRouter."""

    @pytest.fixture
    def quoter(self):
        quoter = MagicMock()
        quoter.best_fee = AsyncMock(return_value=None)
        return quoter

    @pytest.fixture
    def executor(self):
        executor = MagicMock()
        executor.ensure_allowance = AsyncMock(return_value=None)
        executor.execute = AsyncMock(return_value=PendingTransaction(tx_hash="0xswap", label="swap"))
        return executor

    @pytest.fixture
    def swap_contract(self):
        contract = MagicMock()
        call = MagicMock()
        call.build_transaction = AsyncMock(return_value={"to": POLYGON_SWAP_ROUTER_ADDRESS, "data": "0x"})
        contract.functions.exactInputSingle.return_value = call
        contract.functions.exactInput.return_value = call
        return contract

    @pytest.fixture
    def router(self, mock_provider, quoter, executor, swap_contract, wmatic):
        mock_provider.contract = AsyncMock(return_value=swap_contract)
        return SwapRouter(
            mock_provider,
            quoter,
            executor,
            swap_router=POLYGON_SWAP_ROUTER_ADDRESS,
            bridge=wmatic.address,
            slippage_bps=50,
            clock=lambda: NOW,
        )

    def test_min_amount_out(self, router):
        assert router.min_amount_out(10_000) == 9_950

    @pytest.mark.asyncio
    async def test_direct_pool_short_circuits(self, router, quoter, usdc, weth):
        quoter.best_fee.return_value = (3000, 1_000_000)

        route = await router.find_route(usdc.address, weth.address, 500)

        assert route.is_direct
        assert route.hops == (Hop(usdc.address, weth.address, 3000),)
        assert route.min_amount_out == 995_000
        quoter.best_fee.assert_awaited_once_with(usdc.address, weth.address, 500, DIRECT_ROUTE_FEE_TIERS)

    @pytest.mark.asyncio
    async def test_falls_back_to_bridge(self, router, quoter, usdc, wbtc, wmatic):
        quoter.best_fee.side_effect = [None, (500, 10_000), (10000, 2_000)]

        route = await router.find_route(usdc.address, wbtc.address, 100)

        assert not route.is_direct
        assert route.hops == (
            Hop(usdc.address, wmatic.address, 500),
            Hop(wmatic.address, wbtc.address, 10000),
        )
        assert route.bridge == wmatic.address
        assert route.min_amount_out == 1_990
        # Second hop is quoted on the first hop's minimum output
        assert quoter.best_fee.await_args_list[2].args == (wmatic.address, wbtc.address, 9_950, FALLBACK_FEE_TIERS)

    def test_encode_path(self, usdc, wbtc, wmatic):
        route = Route(
            hops=(Hop(usdc.address, wmatic.address, 500), Hop(wmatic.address, wbtc.address, 3000)),
            amount_in=1,
            min_amount_out=1,
        )

        path = SwapRouter.encode_path(route)

        expected = (
            bytes.fromhex(usdc.address[2:])
            + (500).to_bytes(3, "big")
            + bytes.fromhex(wmatic.address[2:])
            + (3000).to_bytes(3, "big")
            + bytes.fromhex(wbtc.address[2:])
        )
        assert path == expected
        assert len(path) == 66

    @pytest.mark.asyncio
    async def test_no_route(self, router, quoter, usdc, wbtc):
        quoter.best_fee.side_effect = [None, (500, 10_000), None]

        with pytest.raises(NoRouteFound) as exc_info:
            await router.find_route(usdc.address, wbtc.address, 100)

        assert exc_info.value.bridge == router.bridge

    @pytest.mark.asyncio
    async def test_no_route_when_bridge_is_an_endpoint(self, router, quoter, usdc, wmatic):
        with pytest.raises(NoRouteFound):
            await router.find_route(usdc.address, wmatic.address, 100)

        assert quoter.best_fee.await_count == 1

    @pytest.mark.asyncio
    async def test_zero_amount_makes_no_calls(self, router, quoter, executor, mock_provider, usdc, weth):
        with pytest.raises(ZeroAmount):
            await router.swap(usdc.address, weth.address, 0)

        quoter.best_fee.assert_not_called()
        executor.ensure_allowance.assert_not_called()
        executor.execute.assert_not_called()
        mock_provider.contract.assert_not_called()
        mock_provider.transaction_params.assert_not_called()

    @pytest.mark.asyncio
    async def test_direct_swap(self, router, quoter, executor, swap_contract, mock_provider, usdc, weth):
        quoter.best_fee.return_value = (3000, 1_000_000)

        pending = await router.swap(usdc.address, weth.address, 500)

        assert pending.tx_hash == "0xswap"
        executor.ensure_allowance.assert_awaited_once_with(usdc.address, POLYGON_SWAP_ROUTER_ADDRESS, 500)
        params = swap_contract.functions.exactInputSingle.call_args.args[0]
        assert params == (
            usdc.address,
            weth.address,
            3000,
            mock_provider.address,
            NOW + SWAP_DEADLINE_SECONDS,
            500,
            995_000,
            0,
        )
        swap_contract.functions.exactInput.assert_not_called()

    @pytest.mark.asyncio
    async def test_bridged_swap(self, router, quoter, swap_contract, mock_provider, usdc, wbtc):
        quoter.best_fee.side_effect = [None, (500, 10_000), (3000, 2_000)]

        await router.swap(usdc.address, wbtc.address, 100)

        path, recipient, deadline, amount_in, min_out = swap_contract.functions.exactInput.call_args.args[0]
        assert len(path) == 66
        assert recipient == mock_provider.address
        assert deadline == NOW + SWAP_DEADLINE_SECONDS
        assert amount_in == 100
        assert min_out == 1_990
        swap_contract.functions.exactInputSingle.assert_not_called()
