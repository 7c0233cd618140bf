"""ERC-4626 vault adapter.

Deposits and redemptions are expressed as a TxBundle: ERC-20 approvals sent
directly from the wallet, followed by calls executed through the batch router's
per-user agent contract, which returns ``tokens_return`` to the wallet.
"""

import logging
from typing import Optional

from rebalancer.chain.abis import BATCH_ROUTER_ABI, ERC20_ABI, VAULT_ABI
from rebalancer.chain.provider import ChainProvider
from rebalancer.core.models import Call, TxBundle

logger = logging.getLogger(__name__)


class VaultAdapter:
    """Reads vault positions and builds deposit/redeem bundles."""

    def __init__(self, provider: ChainProvider, batch_router: Optional[str]):
        self.provider = provider
        self.batch_router = batch_router
        self._agent: Optional[str] = None

    async def share_balance(self, vault: str, account: Optional[str] = None) -> int:
        contract = await self.provider.contract(vault, VAULT_ABI)
        return int(await contract.functions.balanceOf(account or self.provider.address).call())

    async def preview_withdraw(self, vault: str, shares: int) -> int:
        """Underlying amount redeemable right now for ``shares``."""
        if shares == 0:
            return 0
        contract = await self.provider.contract(vault, VAULT_ABI)
        return int(await contract.functions.previewWithdraw(shares).call())

    async def asset(self, vault: str) -> str:
        contract = await self.provider.contract(vault, VAULT_ABI)
        return await contract.functions.asset().call()

    async def agent_address(self) -> str:
        """Agent contract the batch router executes calls from."""
        if self._agent is None:
            if self.batch_router is None:
                raise ValueError("Batch router not configured. Set BATCH_ROUTER in .env")
            router = await self.provider.contract(self.batch_router, BATCH_ROUTER_ABI)
            self._agent = await router.functions.getAgentAddress(self.provider.address).call()
        return self._agent

    async def _approval(self, token: str, spender: str, amount: int) -> Optional[dict]:
        """Approval transaction if the current allowance is insufficient."""
        contract = await self.provider.contract(token, ERC20_ABI)
        allowance = await contract.functions.allowance(self.provider.address, spender).call()
        if allowance >= amount:
            return None
        return {"to": contract.address, "data": contract.encode_abi("approve", args=[spender, amount])}

    async def deposit(self, asset: str, vault: str, amount: int) -> TxBundle:
        """Bundle depositing ``amount`` of ``asset`` into ``vault`` for the wallet."""
        wallet = self.provider.address
        agent = await self.agent_address()
        asset_contract = await self.provider.contract(asset, ERC20_ABI)
        vault_contract = await self.provider.contract(vault, VAULT_ABI)

        bundle = TxBundle(tokens_return=[asset])
        approval = await self._approval(asset, agent, amount)
        if approval:
            bundle.approvals.append(approval)
        bundle.calldatas = [
            Call(to=asset, data=asset_contract.encode_abi("transferFrom", args=[wallet, agent, amount])),
            Call(to=asset, data=asset_contract.encode_abi("approve", args=[vault, amount])),
            Call(to=vault, data=vault_contract.encode_abi("deposit", args=[amount, wallet])),
        ]
        logger.debug(f"Built deposit bundle: {amount} of {asset} into {vault}")
        return bundle

    async def redeem(self, vault: str, shares: int) -> TxBundle:
        """Bundle redeeming ``shares`` of ``vault``; the underlying returns to the wallet."""
        wallet = self.provider.address
        agent = await self.agent_address()
        vault_contract = await self.provider.contract(vault, VAULT_ABI)
        asset = await self.asset(vault)

        bundle = TxBundle(tokens_return=[asset])
        approval = await self._approval(vault, agent, shares)
        if approval:
            bundle.approvals.append(approval)
        bundle.calldatas = [
            Call(to=vault, data=vault_contract.encode_abi("transferFrom", args=[wallet, agent, shares])),
            Call(to=vault, data=vault_contract.encode_abi("redeem", args=[shares, agent, agent])),
        ]
        logger.debug(f"Built redeem bundle: {shares} shares of {vault}")
        return bundle
