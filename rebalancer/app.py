"""Process entry point: wires settings into components and runs the scheduler."""

import asyncio
import logging
from typing import Optional

from config.settings import Settings, get_settings
from rebalancer.chain import BalanceReader, ChainProvider, QuotingAdapter, TransactionExecutor, VaultAdapter
from rebalancer.engine import (
    DriftPlanner,
    FeeRecharger,
    RebalanceOrchestrator,
    RebalanceScheduler,
    SwapRouter,
    ValuationEngine,
    VaultAccountant,
    WeightSelector,
)
from rebalancer.oracles import MomentumSignal, OneInchPriceOracle, PriceCache, PricePredictor, TrendSignal
from rebalancer.persistence import RunRecordStorage

logger = logging.getLogger(__name__)


class RebalancerApp:
    """Builds the component graph for one run and owns its closeable resources."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        trend_signal: Optional[TrendSignal] = None,
        momentum: Optional[MomentumSignal] = None,
        predictor: Optional[PricePredictor] = None,
    ):
        self.settings = settings or get_settings()
        s = self.settings

        self.provider = ChainProvider(s)
        self.oracle = OneInchPriceOracle(s, cache=PriceCache(s))
        executor = TransactionExecutor(
            self.provider,
            attempts=s.confirmation_attempts,
            interval_seconds=s.confirmation_interval_seconds,
        )
        balances = BalanceReader(self.provider)
        router = SwapRouter(
            self.provider,
            QuotingAdapter(self.provider, s.quoter),
            executor,
            swap_router=s.swap_router,
            bridge=s.route_bridge,
            slippage_bps=s.slippage_bps,
        )

        accountant = None
        if s.active_vaults:
            accountant = VaultAccountant(
                VaultAdapter(self.provider, s.batch_router),
                executor,
                batch_gas_limit=s.batch_gas_limit,
            )

        fees = FeeRecharger(
            self.provider,
            balances,
            executor,
            router,
            reference_token=s.reference_token,
            wrapped_native=s.wrapped_native,
            native_floor=s.native_floor,
            native_ceiling=s.native_ceiling,
            recharge_amount=s.native_recharge_amount,
            fee_swap_reference_amount=s.fee_swap_reference_amount,
        )

        orchestrator = RebalanceOrchestrator(
            balances,
            ValuationEngine(self.oracle, s.reference_token, s.chain_id),
            DriftPlanner(s.reference_token, s.limit_bps),
            router,
            tokens=s.tokens,
            reference_token=s.reference_token,
            vaults=s.active_vaults,
            accountant=accountant,
            fees=fees,
            momentum=momentum,
            technical_analysis=s.technical_analysis,
            deposit_idle_reference=s.deposit_idle_reference,
            cooldown_seconds=s.cooldown_seconds,
        )
        selector = WeightSelector(
            s.weights_up,
            s.weights_down,
            trend_signal=trend_signal,
            predictor=predictor if s.prediction else None,
            trend_following=s.trend_following,
        )
        self.scheduler = RebalanceScheduler(
            orchestrator,
            selector,
            interval_seconds=s.interval_seconds,
            storage=RunRecordStorage(s.artifacts_dir),
        )

    async def run(self, max_cycles: Optional[int] = None) -> int:
        logger.info(
            f"Rebalancing {len(self.settings.tokens)} token(s) from {self.provider.address} "
            f"every {self.settings.interval_seconds}s"
        )
        try:
            return await self.scheduler.run(max_cycles)
        finally:
            await self.oracle.close()
            await self.provider.close()


def main():
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(RebalancerApp(settings).run())
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
