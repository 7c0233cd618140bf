"""One rebalancing cycle: fee recharge, valuation, planning and execution."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from rebalancer.chain.balances import BalanceReader
from rebalancer.core.exceptions import (
    AllocationMismatch,
    BroadcastTimeout,
    InsufficientBalance,
    NoRouteFound,
    PriceUnavailable,
    RebalancerError,
    ZeroAmount,
)
from rebalancer.core.models import (
    AllocationTarget,
    CycleReport,
    CycleStatus,
    DriftInstruction,
    DriftPlan,
    Holding,
    InstructionOutcome,
    InstructionStatus,
    InterestSnapshot,
    PendingTransaction,
    Token,
    TradeDirection,
)
from rebalancer.engine.fees import FeeRecharger
from rebalancer.engine.planner import DriftPlanner
from rebalancer.engine.router import SwapRouter
from rebalancer.engine.valuation import ValuationEngine
from rebalancer.engine.vault_accountant import VaultAccountant
from rebalancer.oracles.base import MomentumSignal

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class RebalanceOrchestrator:
    """
    Runs one strictly sequential rebalancing cycle.

    Phases: fee recharge, valuation, drift plan, sells, buys, vault deposits.
    A valuation or allocation failure aborts the cycle. Failures of a single
    instruction are logged and recorded, and the remaining instructions still run.
    """

    def __init__(
        self,
        balances: BalanceReader,
        valuation: ValuationEngine,
        planner: DriftPlanner,
        router: SwapRouter,
        tokens: List[str],
        reference_token: str,
        vaults: Optional[Dict[str, str]] = None,
        accountant: Optional[VaultAccountant] = None,
        fees: Optional[FeeRecharger] = None,
        momentum: Optional[MomentumSignal] = None,
        technical_analysis: bool = False,
        deposit_idle_reference: bool = True,
        cooldown_seconds: float = 10.0,
        sleep: Sleep = asyncio.sleep,
    ):
        if technical_analysis and momentum is None:
            raise ValueError("Technical analysis requires a momentum signal")
        self.balances = balances
        self.valuation = valuation
        self.planner = planner
        self.router = router
        self.tokens = list(tokens)
        self.reference_token = reference_token
        self.vaults = dict(vaults or {})
        self.accountant = accountant
        self.fees = fees
        self.momentum = momentum
        self.technical_analysis = technical_analysis
        self.deposit_idle_reference = deposit_idle_reference
        self.cooldown_seconds = cooldown_seconds
        self._sleep = sleep

    async def run_cycle(self, weights: Dict[str, int], snapshot: InterestSnapshot) -> CycleReport:
        """
        Run one cycle against ``weights``.

        Args:
            weights: Target weights in basis points for this cycle
            snapshot: Interest snapshot returned by the previous cycle

        Returns:
            Cycle report; ``report.snapshot`` is the snapshot for the next cycle
        """
        report = CycleReport(started_at=datetime.now(timezone.utc), snapshot=snapshot)

        await self._recharge_fees()

        reference, holdings = await self._load(snapshot)
        try:
            valuation = await self.valuation.value(holdings)
        except PriceUnavailable as e:
            logger.error(f"Valuation failed, aborting cycle: {e}")
            report.error = str(e)
            return report.finish(CycleStatus.ABORTED)
        report.valuation = valuation
        report.snapshot = snapshot.advance(h.position for h in holdings if h.position is not None)

        try:
            plan = self.planner.plan(valuation, AllocationTarget(weights), reference)
        except AllocationMismatch as e:
            logger.error(f"Weight set rejected, aborting cycle: {e}")
            report.error = str(e)
            return report.finish(CycleStatus.ABORTED)

        if plan.is_empty:
            logger.info("No drift above threshold")
            return report.finish(CycleStatus.IDLE)

        logger.info(f"Sell phase: {len(plan.sells)} instruction(s)")
        for index, instruction in enumerate(plan.sells):
            if index > 0:
                await self._cooldown()
            report.outcomes.append(await self._run_instruction(instruction, reference))

        logger.info(f"Buy phase: {len(plan.buys)} instruction(s)")
        for index, instruction in enumerate(plan.buys):
            if index > 0 or plan.sells:
                await self._cooldown()
            report.outcomes.append(await self._run_instruction(instruction, reference))

        report.deposits = await self._deposit_idle(holdings, reference, plan)
        return report.finish(CycleStatus.REBALANCED)

    async def _recharge_fees(self) -> None:
        if self.fees is None:
            return
        try:
            await self.fees.recharge()
        except RebalancerError as e:
            logger.error(f"Fee recharge failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error during fee recharge: {e}")

    async def _load(self, snapshot: InterestSnapshot) -> Tuple[Token, List[Holding]]:
        """Fresh token metadata, balances and vault positions for this cycle."""
        reference = await self.balances.token(self.reference_token, self.vaults.get(self.reference_token))
        holdings = []
        for address in self.tokens:
            balance = await self.balances.read(address, self.vaults.get(address))
            if self.accountant is not None:
                holdings.append(await self.accountant.holding(balance, snapshot))
            else:
                holdings.append(Holding(wallet=balance))
        return reference, holdings

    async def _cooldown(self) -> None:
        if self.cooldown_seconds > 0:
            await self._sleep(self.cooldown_seconds)

    async def _run_instruction(self, instruction: DriftInstruction, reference: Token) -> InstructionOutcome:
        symbol = instruction.token.symbol
        direction = instruction.direction.value
        try:
            if not await self._momentum_allows(instruction):
                return InstructionOutcome(instruction, InstructionStatus.GATED, "momentum condition not met")
            if instruction.direction is TradeDirection.SELL:
                tx = await self._sell(instruction, reference)
            else:
                tx = await self._buy(instruction, reference)
        except ZeroAmount as e:
            logger.info(f"Skipping {direction} {symbol}: {e}")
            return InstructionOutcome(instruction, InstructionStatus.SKIPPED, str(e))
        except InsufficientBalance as e:
            logger.warning(f"Skipping {direction} {symbol}: {e}")
            return InstructionOutcome(instruction, InstructionStatus.SKIPPED, str(e))
        except NoRouteFound as e:
            logger.error(f"Cannot {direction} {symbol}: {e}")
            return InstructionOutcome(instruction, InstructionStatus.FAILED, str(e))
        except BroadcastTimeout as e:
            logger.error(f"Aborted {direction} {symbol}: {e}")
            return InstructionOutcome(instruction, InstructionStatus.FAILED, str(e), tx_hash=e.tx_hash)
        except RebalancerError as e:
            logger.error(f"Failed to {direction} {symbol}: {e}")
            return InstructionOutcome(instruction, InstructionStatus.FAILED, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error during {direction} {symbol}: {e}")
            return InstructionOutcome(instruction, InstructionStatus.FAILED, str(e))

        logger.info(f"Executed {direction} {symbol}: {tx.tx_hash}")
        return InstructionOutcome(instruction, InstructionStatus.EXECUTED, tx_hash=tx.tx_hash)

    async def _momentum_allows(self, instruction: DriftInstruction) -> bool:
        """Sells need an overbought reading and buys an oversold one, when enabled."""
        if not self.technical_analysis:
            return True
        reading = await self.momentum.read(instruction.token.symbol)
        if instruction.direction is TradeDirection.SELL:
            allowed = reading.overbought
            condition = "overbought"
        else:
            allowed = reading.oversold
            condition = "oversold"
        if not allowed:
            logger.warning(f"Waiting for {instruction.token.symbol} {condition} (momentum {reading.value})")
        return allowed

    async def _fund(self, token: Token, required: int) -> int:
        """Redeem from the token's vault if needed; returns the amount to trade."""
        wallet = await self.balances.balance_of(token)
        shares = 0
        if self.accountant is not None and token.is_vault_bound:
            shares = await self.accountant.share_balance(token)
        redemption = VaultAccountant.plan_redemption(token, required, wallet.raw, shares)
        if redemption.needs_redeem:
            await self.accountant.redeem(token, redemption.shares)
        return redemption.trade_amount

    async def _sell(self, instruction: DriftInstruction, reference: Token) -> PendingTransaction:
        token = instruction.token
        if instruction.amount <= 0:
            raise ZeroAmount(token.address, instruction.amount)
        amount = await self._fund(token, instruction.amount)
        logger.info(f"Selling {token.to_units(amount)} {token.symbol}")
        return await self.router.swap(token.address, reference.address, amount)

    async def _buy(self, instruction: DriftInstruction, reference: Token) -> PendingTransaction:
        token = instruction.token
        if instruction.amount <= 0:
            raise ZeroAmount(reference.address, instruction.amount)
        amount = await self._fund(reference, instruction.amount)
        logger.info(f"Buying {token.symbol} with {reference.to_units(amount)} {reference.symbol}")
        return await self.router.swap(reference.address, token.address, amount)

    async def _deposit_idle(self, holdings: List[Holding], reference: Token, plan: DriftPlan) -> List[str]:
        """Deposit idle wallet balances of vault-bound tokens with no trade this cycle."""
        if self.accountant is None:
            return []

        candidates = [h.token for h in holdings if h.token.address != reference.address]
        if reference.is_vault_bound and self.deposit_idle_reference and not plan.buys:
            candidates.append(reference)

        deposited = []
        for token in candidates:
            if not token.is_vault_bound or token.address in plan.tokens:
                continue
            try:
                wallet = await self.balances.balance_of(token)
                if wallet.raw == 0:
                    continue
                await self.accountant.deposit(token, wallet.raw)
                deposited.append(token.address)
            except RebalancerError as e:
                logger.error(f"Deposit of {token.symbol} failed: {e}")
            except Exception as e:
                logger.exception(f"Unexpected error depositing {token.symbol}: {e}")
        return deposited
