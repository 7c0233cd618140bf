"""Vault share accounting, redemptions and deposits."""

import logging
from typing import Optional

from rebalancer.chain.executor import TransactionExecutor
from rebalancer.chain.vaults import VaultAdapter
from rebalancer.core.constants import BPS_DENOMINATOR, REDEEM_FALLBACK_BPS
from rebalancer.core.exceptions import InsufficientBalance
from rebalancer.core.models import (
    Balance,
    Holding,
    InterestSnapshot,
    PendingTransaction,
    Redemption,
    Token,
    VaultPosition,
)

logger = logging.getLogger(__name__)


class VaultAccountant:
    """Turns vault shares into effective balances and funds trades from vaults.

    Shares are treated as redeemable 1:1 against the underlying when sizing
    redemptions. The interest snapshot is never held here: it is passed in
    and a new one is returned by the orchestrator each cycle.
    """

    def __init__(
        self,
        adapter: VaultAdapter,
        executor: TransactionExecutor,
        batch_gas_limit: Optional[int] = None,
    ):
        self.adapter = adapter
        self.executor = executor
        self.batch_gas_limit = batch_gas_limit

    async def read_position(self, token: Token, snapshot: InterestSnapshot) -> Optional[VaultPosition]:
        """Read the vault position for ``token``, or None if it is not vault-bound."""
        if not token.is_vault_bound:
            return None
        vault = token.vault.vault
        shares = await self.adapter.share_balance(vault)
        redeemable = await self.adapter.preview_withdraw(vault, shares)
        position = VaultPosition(
            vault=vault,
            token=token,
            shares=shares,
            redeemable=redeemable,
            last_interest=snapshot.last(token.address),
        )
        logger.info(
            f"{token.symbol} vault: {token.to_units(shares)} shares, "
            f"interest {token.to_units(position.accrued_interest)} "
            f"({token.to_units(position.interest_delta)} since last cycle)"
        )
        return position

    async def share_balance(self, token: Token) -> int:
        """Vault shares held for ``token``, 0 if it is not vault-bound."""
        if not token.is_vault_bound:
            return 0
        return await self.adapter.share_balance(token.vault.vault)

    async def holding(self, balance: Balance, snapshot: InterestSnapshot) -> Holding:
        """Wallet balance combined with the token's vault position."""
        position = await self.read_position(balance.token, snapshot)
        return Holding(wallet=balance, position=position)

    @staticmethod
    def plan_redemption(token: Token, required: int, wallet_raw: int, vault_shares: int) -> Redemption:
        """
        Decide how to fund ``required`` units of ``token``.

        Order: wallet alone, full redemption, fallback-size redemption,
        fallback-size trade from the wallet.

        Raises:
            InsufficientBalance: if no option can fund even the fallback size
        """
        if wallet_raw >= required:
            return Redemption(shares=0, trade_amount=required)

        if vault_shares >= required:
            return Redemption(shares=required, trade_amount=required)

        reduced = required * REDEEM_FALLBACK_BPS // BPS_DENOMINATOR
        if reduced > 0 and vault_shares >= reduced:
            logger.warning(
                f"Vault cannot cover {token.to_units(required)} {token.symbol}, "
                f"redeeming fallback size {token.to_units(reduced)}"
            )
            return Redemption(shares=reduced, trade_amount=reduced)

        if reduced > 0 and wallet_raw >= reduced:
            logger.warning(
                f"Wallet cannot cover {token.to_units(required)} {token.symbol}, "
                f"trading fallback size {token.to_units(reduced)}"
            )
            return Redemption(shares=0, trade_amount=reduced)

        raise InsufficientBalance(token.address, required, wallet_raw + vault_shares)

    async def redeem(self, token: Token, shares: int) -> PendingTransaction:
        """Redeem ``shares`` of the token's vault back into the wallet."""
        bundle = await self.adapter.redeem(token.vault.vault, shares)
        logger.info(f"Redeeming {token.to_units(shares)} {token.symbol} from vault")
        return await self.executor.execute_bundle(
            bundle,
            self.adapter.batch_router,
            f"redeem {token.symbol}",
            gas_limit=self.batch_gas_limit,
        )

    async def deposit(self, token: Token, amount: int) -> PendingTransaction:
        """Deposit ``amount`` of ``token`` from the wallet into its vault."""
        bundle = await self.adapter.deposit(token.address, token.vault.vault, amount)
        logger.info(f"Depositing {token.to_units(amount)} {token.symbol} into vault")
        return await self.executor.execute_bundle(
            bundle,
            self.adapter.batch_router,
            f"deposit {token.symbol}",
            gas_limit=self.batch_gas_limit,
        )
