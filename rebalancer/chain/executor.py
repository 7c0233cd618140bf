"""Transaction submission and confirmation polling."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from web3.exceptions import Web3Exception

from rebalancer.chain.abis import BATCH_ROUTER_ABI, ERC20_ABI
from rebalancer.chain.provider import ChainProvider
from rebalancer.core.constants import (
    DEFAULT_CONFIRMATION_ATTEMPTS,
    DEFAULT_CONFIRMATION_INTERVAL_SECONDS,
)
from rebalancer.core.exceptions import BroadcastTimeout, SimulationFailed, TransactionReverted
from rebalancer.core.models import PendingTransaction, TxBundle

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class TransactionExecutor:
    """Submits transactions one at a time and polls for their receipts.

    Polling is a fixed number of attempts at a fixed interval, with no backoff.
    "Still pending" and "dropped" are not distinguished: both time out.
    """

    def __init__(
        self,
        provider: ChainProvider,
        attempts: int = DEFAULT_CONFIRMATION_ATTEMPTS,
        interval_seconds: float = DEFAULT_CONFIRMATION_INTERVAL_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ):
        self.provider = provider
        self.attempts = attempts
        self.interval_seconds = interval_seconds
        self._sleep = sleep

    async def wait_for_tx(self, tx_hash: str) -> bool:
        """Poll for the receipt of ``tx_hash``.

        Returns:
            True once a receipt is observed, False after ``attempts`` misses
        """
        for attempt in range(1, self.attempts + 1):
            receipt = await self.provider.get_receipt(tx_hash)
            if receipt is not None:
                if receipt.get("status", 1) == 0:
                    raise TransactionReverted(tx_hash)
                logger.info(f"TX {tx_hash} broadcasted")
                return True
            logger.debug(f"TX {tx_hash} not mined yet (attempt {attempt}/{self.attempts})")
            if attempt < self.attempts:
                await self._sleep(self.interval_seconds)
        return False

    async def submit(self, tx: Dict[str, Any], label: str) -> PendingTransaction:
        tx_hash = await self.provider.send_transaction(tx)
        logger.info(f"Submitted {label}: {tx_hash}")
        return PendingTransaction(tx_hash=tx_hash, label=label)

    async def confirm(self, pending: PendingTransaction) -> PendingTransaction:
        """Wait for ``pending`` to be mined.

        Raises:
            BroadcastTimeout: if no receipt appears within the polling ceiling
        """
        if await self.wait_for_tx(pending.tx_hash):
            pending.confirm()
            return pending
        pending.time_out()
        logger.critical(
            f"{pending.label} not confirmed after {self.attempts} attempts: {pending.tx_hash}. "
            "Funds may be in an ambiguous state, inspect manually."
        )
        raise BroadcastTimeout(pending.tx_hash, self.attempts)

    async def execute(self, tx: Dict[str, Any], label: str) -> PendingTransaction:
        """Submit ``tx`` and block until it is confirmed."""
        pending = await self.submit(tx, label)
        return await self.confirm(pending)

    async def ensure_allowance(self, token: str, spender: str, amount: int) -> Optional[PendingTransaction]:
        """Approve ``spender`` for ``amount`` of ``token`` unless already allowed."""
        contract = await self.provider.contract(token, ERC20_ABI)
        allowance = await contract.functions.allowance(self.provider.address, spender).call()
        if allowance >= amount:
            logger.debug(f"Allowance of {token} for {spender} already sufficient ({allowance})")
            return None
        tx = await contract.functions.approve(spender, amount).build_transaction(
            await self.provider.transaction_params()
        )
        return await self.execute(tx, f"approve {token}")

    async def execute_bundle(
        self,
        bundle: TxBundle,
        batch_router: str,
        label: str,
        gas_limit: Optional[int] = None,
    ) -> PendingTransaction:
        """Send bundle approvals, simulate the batched call, then submit it.

        Raises:
            SimulationFailed: if the static-call simulation reverts; nothing is submitted
        """
        for approval in bundle.approvals:
            await self.execute(approval, f"{label} approval")

        router = await self.provider.contract(batch_router, BATCH_ROUTER_ABI)
        call = router.functions.execute(
            [c.as_tuple() for c in bundle.calldatas],
            list(bundle.tokens_return),
        )
        simulation_params: Dict[str, Any] = {"from": self.provider.address}
        if gas_limit:
            simulation_params["gas"] = gas_limit
        try:
            await call.call(simulation_params)
        except Web3Exception as e:
            logger.error(f"Simulation of {label} failed, not submitting: {e}")
            raise SimulationFailed(batch_router, e) from e
        logger.info(f"Simulation of {label} successful")

        tx = await call.build_transaction(await self.provider.transaction_params())
        return await self.execute(tx, label)
