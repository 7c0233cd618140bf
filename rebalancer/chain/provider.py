"""Web3 provider and signer for the rebalancing wallet."""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.contract import AsyncContract
from web3.exceptions import TransactionNotFound

from config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class ChainProvider:
    """Async web3 access plus the single wallet that signs every transaction.

    The signer is a serialized resource: callers submit one transaction at a
    time and wait for it before the next, so the pending nonce is always current.
    """

    def __init__(self, settings: Optional[Settings] = None, web3: Optional[AsyncWeb3] = None):
        self.settings = settings or get_settings()
        self._web3 = web3
        self._account: Optional[LocalAccount] = None

    async def _get_web3(self) -> AsyncWeb3:
        """Get or create Web3 instance."""
        if self._web3 is None:
            if not self.settings.rpc_url:
                raise ValueError("RPC URL not configured. Set RPC_URL in .env")
            self._web3 = AsyncWeb3(AsyncHTTPProvider(self.settings.rpc_url))
        return self._web3

    @property
    def account(self) -> LocalAccount:
        if self._account is None:
            self._account = Account.from_key(self.settings.wallet_private_key.get_secret_value())
        return self._account

    @property
    def address(self) -> str:
        """Checksum address of the rebalancing wallet."""
        return self.account.address

    @property
    def chain_id(self) -> int:
        return self.settings.chain_id

    async def contract(self, address: str, abi: List[Dict[str, Any]]) -> AsyncContract:
        web3 = await self._get_web3()
        return web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def gas_price(self) -> int:
        """Provider gas price scaled by the configured multiplier."""
        web3 = await self._get_web3()
        base = await web3.eth.gas_price
        return int(Decimal(base) * self.settings.gas_price_multiplier)

    async def native_balance(self, account: Optional[str] = None) -> int:
        web3 = await self._get_web3()
        return await web3.eth.get_balance(account or self.address)

    async def transaction_params(self, value: int = 0) -> Dict[str, Any]:
        """Base parameters for a transaction sent from the wallet."""
        web3 = await self._get_web3()
        return {
            "from": self.address,
            "nonce": await web3.eth.get_transaction_count(self.address, "pending"),
            "gasPrice": await self.gas_price(),
            "chainId": self.chain_id,
            "value": value,
        }

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        """Fill missing fields, sign with the wallet key and broadcast.

        Returns:
            Transaction hash as 0x-prefixed hex
        """
        web3 = await self._get_web3()
        tx = dict(tx)
        for key, value in (await self.transaction_params(tx.get("value", 0))).items():
            tx.setdefault(key, value)
        if "gas" not in tx:
            tx["gas"] = await web3.eth.estimate_gas(tx)
        signed = self.account.sign_transaction(tx)
        tx_hash = await web3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    async def get_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Receipt for ``tx_hash``, or None while it is unknown or pending."""
        web3 = await self._get_web3()
        try:
            return await web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    async def close(self):
        """Close the provider."""
        if self._web3 is not None:
            provider = self._web3.provider
            if hasattr(provider, "disconnect"):
                await provider.disconnect()
        self._web3 = None
