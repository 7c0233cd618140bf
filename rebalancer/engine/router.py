"""Uniswap V3 swap routing with a two-hop fallback through a bridge asset."""

import logging
import time
from typing import Callable, Iterable, Optional

from eth_abi.packed import encode_packed

from rebalancer.chain.abis import SWAP_ROUTER_ABI
from rebalancer.chain.executor import TransactionExecutor
from rebalancer.chain.provider import ChainProvider
from rebalancer.chain.quoter import QuotingAdapter
from rebalancer.core.constants import (
    BPS_DENOMINATOR,
    DIRECT_ROUTE_FEE_TIERS,
    FALLBACK_FEE_TIERS,
    SWAP_DEADLINE_SECONDS,
)
from rebalancer.core.exceptions import NoRouteFound, ZeroAmount
from rebalancer.core.models import Hop, PendingTransaction, Route

logger = logging.getLogger(__name__)


class SwapRouter:
    """
    Finds and executes exact-input swaps.

    A direct pool at the direct fee tiers is always preferred; bridged
    discovery runs only when no direct pool quotes. Each route carries a
    minimum output derived from the quote and the slippage tolerance.
    """

    def __init__(
        self,
        provider: ChainProvider,
        quoter: QuotingAdapter,
        executor: TransactionExecutor,
        swap_router: str,
        bridge: str,
        slippage_bps: int,
        direct_fee_tiers: Iterable[int] = DIRECT_ROUTE_FEE_TIERS,
        fallback_fee_tiers: Iterable[int] = FALLBACK_FEE_TIERS,
        clock: Callable[[], float] = time.time,
    ):
        self.provider = provider
        self.quoter = quoter
        self.executor = executor
        self.swap_router = swap_router
        self.bridge = bridge
        self.slippage_bps = slippage_bps
        self.direct_fee_tiers = tuple(direct_fee_tiers)
        self.fallback_fee_tiers = tuple(fallback_fee_tiers)
        self._clock = clock

    def min_amount_out(self, quoted: int) -> int:
        """Quoted output less the slippage tolerance."""
        return quoted * (BPS_DENOMINATOR - self.slippage_bps) // BPS_DENOMINATOR

    async def find_route(self, token_in: str, token_out: str, amount_in: int) -> Route:
        """
        Find a direct route, falling back to a route through the bridge asset.

        Raises:
            ZeroAmount: if ``amount_in`` is not positive
            NoRouteFound: if neither route has liquidity
        """
        if amount_in <= 0:
            raise ZeroAmount(token_in, amount_in)

        route = await self._direct_route(token_in, token_out, amount_in)
        if route is None:
            logger.info(f"No direct pool {token_in} -> {token_out}, trying bridge {self.bridge}")
            route = await self._bridged_route(token_in, token_out, amount_in)
        logger.info(f"Route {route.describe()}: {amount_in} in, min {route.min_amount_out} out")
        return route

    async def _direct_route(self, token_in: str, token_out: str, amount_in: int) -> Optional[Route]:
        best = await self.quoter.best_fee(token_in, token_out, amount_in, self.direct_fee_tiers)
        if best is None:
            return None
        fee, amount_out = best
        return Route(
            hops=(Hop(token_in, token_out, fee),),
            amount_in=amount_in,
            min_amount_out=self.min_amount_out(amount_out),
        )

    async def _bridged_route(self, token_in: str, token_out: str, amount_in: int) -> Route:
        bridge = self.bridge
        if bridge in (token_in, token_out):
            raise NoRouteFound(token_in, token_out, bridge)

        first = await self.quoter.best_fee(token_in, bridge, amount_in, self.fallback_fee_tiers)
        if first is None:
            raise NoRouteFound(token_in, token_out, bridge)
        fee_a, bridge_out = first
        bridge_min = self.min_amount_out(bridge_out)

        second = await self.quoter.best_fee(bridge, token_out, bridge_min, self.fallback_fee_tiers)
        if second is None:
            raise NoRouteFound(token_in, token_out, bridge)
        fee_b, amount_out = second

        return Route(
            hops=(Hop(token_in, bridge, fee_a), Hop(bridge, token_out, fee_b)),
            amount_in=amount_in,
            min_amount_out=self.min_amount_out(amount_out),
        )

    @staticmethod
    def encode_path(route: Route) -> bytes:
        """Packed ``tokenIn, fee, tokenOut[, fee, tokenOut]`` path for exactInput."""
        types = ["address"]
        values = [route.hops[0].token_in]
        for hop in route.hops:
            types.extend(["uint24", "address"])
            values.extend([hop.fee, hop.token_out])
        return encode_packed(types, values)

    async def swap(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        recipient: Optional[str] = None,
    ) -> PendingTransaction:
        """
        Route, approve and execute a swap of ``amount_in`` of ``token_in``.

        Returns:
            The confirmed swap transaction

        Raises:
            ZeroAmount: before any network call when ``amount_in`` is not positive
            NoRouteFound: if no route exists
            BroadcastTimeout: if the approval or swap is not confirmed
        """
        if amount_in <= 0:
            raise ZeroAmount(token_in, amount_in)

        route = await self.find_route(token_in, token_out, amount_in)
        await self.executor.ensure_allowance(token_in, self.swap_router, amount_in)

        recipient = recipient or self.provider.address
        deadline = int(self._clock()) + SWAP_DEADLINE_SECONDS
        contract = await self.provider.contract(self.swap_router, SWAP_ROUTER_ABI)

        if route.is_direct:
            hop = route.hops[0]
            call = contract.functions.exactInputSingle(
                (hop.token_in, hop.token_out, hop.fee, recipient, deadline, amount_in, route.min_amount_out, 0)
            )
        else:
            call = contract.functions.exactInput(
                (self.encode_path(route), recipient, deadline, amount_in, route.min_amount_out)
            )

        tx = await call.build_transaction(await self.provider.transaction_params())
        return await self.executor.execute(tx, f"swap {route.describe()}")
