"""On-chain ERC-20 balance reader."""

import logging
from typing import Optional

from rebalancer.chain.abis import ERC20_ABI
from rebalancer.chain.provider import ChainProvider
from rebalancer.core.models import Balance, Token, VaultBinding

logger = logging.getLogger(__name__)


class BalanceReader:
    """Reads token metadata and balances for the rebalancing wallet.

    Decimals and symbol are re-read on every call; nothing is cached across cycles.
    """

    def __init__(self, provider: ChainProvider):
        self.provider = provider

    async def token(self, address: str, vault: Optional[str] = None) -> Token:
        """Load token metadata, optionally bound to a vault."""
        contract = await self.provider.contract(address, ERC20_ABI)
        decimals = await contract.functions.decimals().call()
        symbol = await contract.functions.symbol().call()
        return Token(
            address=address,
            symbol=symbol,
            decimals=int(decimals),
            vault=VaultBinding(vault=vault) if vault else None,
        )

    async def balance_of(self, token: Token, account: Optional[str] = None) -> Balance:
        """Raw balance of ``token`` held by ``account`` (the wallet by default)."""
        contract = await self.provider.contract(token.address, ERC20_ABI)
        raw = await contract.functions.balanceOf(account or self.provider.address).call()
        balance = Balance(token=token, raw=int(raw))
        logger.debug(f"Address {account or self.provider.address} has {balance}")
        return balance

    async def read(self, address: str, vault: Optional[str] = None) -> Balance:
        """Metadata and wallet balance in one call."""
        token = await self.token(address, vault)
        return await self.balance_of(token)

    async def native_balance(self) -> int:
        return await self.provider.native_balance()
