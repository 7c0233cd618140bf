"""Native gas balance maintenance from the wrapped-native reserve."""

import logging
from decimal import Decimal
from enum import Enum

from web3 import Web3

from rebalancer.chain.abis import WRAPPED_NATIVE_ABI
from rebalancer.chain.balances import BalanceReader
from rebalancer.chain.executor import TransactionExecutor
from rebalancer.chain.provider import ChainProvider
from rebalancer.engine.router import SwapRouter

logger = logging.getLogger(__name__)


class RechargeAction(Enum):
    """What the fee recharge step did this cycle."""
    NONE = "none"
    UNWRAP = "unwrap"  # Native topped up from the wrapped reserve
    WRAP = "wrap"      # Excess native moved into the wrapped reserve


class FeeRecharger:
    """Keeps the native gas balance between a floor and a ceiling.

    Below the floor, wrapped native is unwrapped, after first buying more
    wrapped native with the reference token if the reserve is short. Above
    the ceiling, the excess is wrapped.
    """

    def __init__(
        self,
        provider: ChainProvider,
        balances: BalanceReader,
        executor: TransactionExecutor,
        router: SwapRouter,
        reference_token: str,
        wrapped_native: str,
        native_floor: Decimal,
        native_ceiling: Decimal,
        recharge_amount: Decimal,
        fee_swap_reference_amount: Decimal,
    ):
        self.provider = provider
        self.balances = balances
        self.executor = executor
        self.router = router
        self.reference_token = reference_token
        self.wrapped_native = wrapped_native
        self.floor = Web3.to_wei(native_floor, "ether")
        self.ceiling = Web3.to_wei(native_ceiling, "ether")
        self.recharge_amount = Web3.to_wei(recharge_amount, "ether")
        self.fee_swap_reference_amount = fee_swap_reference_amount

    async def recharge(self) -> RechargeAction:
        native = await self.provider.native_balance()
        logger.info(f"Native balance: {Web3.from_wei(native, 'ether')}")

        if native < self.floor:
            if await self._unwrap():
                return RechargeAction.UNWRAP
            return RechargeAction.NONE
        if native > self.ceiling:
            await self._wrap(native - self.ceiling)
            return RechargeAction.WRAP
        return RechargeAction.NONE

    async def _unwrap(self) -> bool:
        wrapped = await self.balances.read(self.wrapped_native)
        if wrapped.raw < self.recharge_amount:
            await self._refill_reserve()
            wrapped = await self.balances.balance_of(wrapped.token)

        amount = min(self.recharge_amount, wrapped.raw)
        if amount == 0:
            logger.warning("Native balance below floor and wrapped reserve is empty")
            return False

        contract = await self.provider.contract(self.wrapped_native, WRAPPED_NATIVE_ABI)
        tx = await contract.functions.withdraw(amount).build_transaction(
            await self.provider.transaction_params()
        )
        await self.executor.execute(tx, "unwrap native")
        logger.info(f"Unwrapped {wrapped.token.to_units(amount)} {wrapped.token.symbol} for gas")
        return True

    async def _refill_reserve(self) -> None:
        """Swap the configured reference amount into the wrapped reserve."""
        reference = await self.balances.read(self.reference_token)
        amount = reference.token.to_raw(self.fee_swap_reference_amount)
        if amount <= 0 or reference.raw <= amount:
            logger.warning(f"Cannot refill wrapped reserve, reference balance is {reference}")
            return
        logger.info(f"Swapping {reference.token.to_units(amount)} {reference.token.symbol} into wrapped native")
        await self.router.swap(self.reference_token, self.wrapped_native, amount)

    async def _wrap(self, amount: int) -> None:
        contract = await self.provider.contract(self.wrapped_native, WRAPPED_NATIVE_ABI)
        tx = await contract.functions.deposit().build_transaction(
            await self.provider.transaction_params(value=amount)
        )
        await self.executor.execute(tx, "wrap native")
        logger.info(f"Wrapped {Web3.from_wei(amount, 'ether')} excess native")
