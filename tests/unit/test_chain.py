"""Unit tests for the on-chain adapters."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from web3.exceptions import ContractLogicError, TransactionNotFound

from rebalancer.chain.balances import BalanceReader
from rebalancer.chain.provider import ChainProvider
from rebalancer.chain.quoter import QuotingAdapter
from rebalancer.chain.vaults import VaultAdapter
from rebalancer.core.constants import FALLBACK_FEE_TIERS, POLYGON_QUOTER_ADDRESS
from rebalancer.core.models import Call

BATCH_ROUTER = "0x6bcb0ba386e9de0c29705c74a9a4f3a4a3e1b2c3"
AGENT = "0x9a8b7c6d5e4f3a2b1c0d9e8f7a6b5c4d3e2f1a0b"
VAULT = "0x305f25377d0a4fa4e3b4b1b5a5d4a4e1f3b3cb8e"
ASSET = "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619"


def token_contract(address, allowance=0):
    """ERC-20 style contract whose encode_abi returns (function, args)."""
    contract = MagicMock()
    contract.address = address
    contract.encode_abi = MagicMock(side_effect=lambda fn_name, args: (fn_name, tuple(args)))
    contract.functions.allowance.return_value.call = AsyncMock(return_value=allowance)
    return contract


class TestQuotingAdapter:
    """Tests for QuotingAdapter."""

    @pytest.fixture
    def quote_call(self, mock_provider):
        contract = MagicMock()
        contract.functions.quoteExactInputSingle.return_value.call = AsyncMock(return_value=1_000)
        mock_provider.contract = AsyncMock(return_value=contract)
        return contract.functions.quoteExactInputSingle.return_value.call

    @pytest.fixture
    def quoter(self, mock_provider, quote_call):
        return QuotingAdapter(mock_provider, POLYGON_QUOTER_ADDRESS)

    @pytest.mark.asyncio
    async def test_quote(self, quoter, quote_call, usdc, weth):
        amount_out = await quoter.quote(usdc.address, weth.address, 500, 3000)

        assert amount_out == 1_000
        quote_call.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reverting_quote_means_no_pool(self, quoter, quote_call, usdc, weth):
        quote_call.side_effect = ContractLogicError("execution reverted")

        assert await quoter.quote(usdc.address, weth.address, 500, 3000) is None

    @pytest.mark.asyncio
    async def test_zero_quote_means_no_pool(self, quoter, quote_call, usdc, weth):
        quote_call.return_value = 0

        assert await quoter.quote(usdc.address, weth.address, 500, 3000) is None

    @pytest.mark.asyncio
    async def test_best_fee_picks_highest_output(self, quoter, quote_call, usdc, weth):
        quote_call.side_effect = [ContractLogicError("execution reverted"), 900, 1_000]

        best = await quoter.best_fee(usdc.address, weth.address, 500, FALLBACK_FEE_TIERS)

        assert best == (FALLBACK_FEE_TIERS[2], 1_000)
        assert quote_call.await_count == 3

    @pytest.mark.asyncio
    async def test_best_fee_none_without_pools(self, quoter, quote_call, usdc, weth):
        quote_call.return_value = 0

        assert await quoter.best_fee(usdc.address, weth.address, 500, FALLBACK_FEE_TIERS) is None


class TestChainProvider:
    """Tests for ChainProvider receipt lookup."""

    @pytest.fixture
    def web3(self):
        web3 = MagicMock()
        web3.eth.get_transaction_receipt = AsyncMock(return_value={"status": 1})
        return web3

    @pytest.fixture
    def provider(self, mock_settings, web3):
        return ChainProvider(settings=mock_settings, web3=web3)

    @pytest.mark.asyncio
    async def test_get_receipt(self, provider, web3):
        receipt = await provider.get_receipt("0xabc")

        assert receipt == {"status": 1}
        web3.eth.get_transaction_receipt.assert_awaited_once_with("0xabc")

    @pytest.mark.asyncio
    async def test_unknown_transaction_is_pending(self, provider, web3):
        web3.eth.get_transaction_receipt.side_effect = TransactionNotFound("Transaction 0xabc not found")

        assert await provider.get_receipt("0xabc") is None


class TestVaultAdapter:
    """Tests for VaultAdapter bundles."""

    @pytest.fixture
    def contracts(self):
        router = MagicMock()
        router.functions.getAgentAddress.return_value.call = AsyncMock(return_value=AGENT)
        vault = token_contract(VAULT)
        vault.functions.asset.return_value.call = AsyncMock(return_value=ASSET)
        return {BATCH_ROUTER: router, VAULT: vault, ASSET: token_contract(ASSET)}

    @pytest.fixture
    def adapter(self, mock_provider, contracts):
        mock_provider.contract = AsyncMock(side_effect=lambda address, abi: contracts[address])
        return VaultAdapter(mock_provider, BATCH_ROUTER)

    @pytest.mark.asyncio
    async def test_deposit_bundle(self, adapter, contracts, mock_provider):
        wallet = mock_provider.address

        bundle = await adapter.deposit(ASSET, VAULT, 500)

        assert bundle.approvals == [{"to": ASSET, "data": ("approve", (AGENT, 500))}]
        assert bundle.calldatas == [
            Call(to=ASSET, data=("transferFrom", (wallet, AGENT, 500))),
            Call(to=ASSET, data=("approve", (VAULT, 500))),
            Call(to=VAULT, data=("deposit", (500, wallet))),
        ]
        assert bundle.tokens_return == [ASSET]

    @pytest.mark.asyncio
    async def test_redeem_bundle(self, adapter, mock_provider):
        wallet = mock_provider.address

        bundle = await adapter.redeem(VAULT, 300)

        assert bundle.approvals == [{"to": VAULT, "data": ("approve", (AGENT, 300))}]
        assert bundle.calldatas == [
            Call(to=VAULT, data=("transferFrom", (wallet, AGENT, 300))),
            Call(to=VAULT, data=("redeem", (300, AGENT, AGENT))),
        ]
        assert bundle.tokens_return == [ASSET]

    @pytest.mark.asyncio
    async def test_sufficient_allowance_skips_approval(self, adapter, contracts):
        contracts[ASSET].functions.allowance.return_value.call.return_value = 10**18
        contracts[VAULT].functions.allowance.return_value.call.return_value = 10**18

        deposit = await adapter.deposit(ASSET, VAULT, 500)
        redeem = await adapter.redeem(VAULT, 300)

        assert deposit.approvals == []
        assert redeem.approvals == []
        assert len(deposit.calldatas) == 3
        assert len(redeem.calldatas) == 2

    @pytest.mark.asyncio
    async def test_agent_address_cached(self, adapter, contracts):
        await adapter.deposit(ASSET, VAULT, 500)
        await adapter.redeem(VAULT, 300)

        contracts[BATCH_ROUTER].functions.getAgentAddress.return_value.call.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_batch_router(self, mock_provider):
        adapter = VaultAdapter(mock_provider, None)

        with pytest.raises(ValueError, match="Batch router"):
            await adapter.agent_address()

    @pytest.mark.asyncio
    async def test_preview_withdraw_of_zero_shares(self, adapter, mock_provider):
        assert await adapter.preview_withdraw(VAULT, 0) == 0
        mock_provider.contract.assert_not_called()


class TestBalanceReader:
    """Tests for BalanceReader."""

    @pytest.fixture
    def contract(self, mock_provider):
        contract = MagicMock()
        contract.functions.decimals.return_value.call = AsyncMock(side_effect=[6, 18])
        contract.functions.symbol.return_value.call = AsyncMock(side_effect=["USDC", "USDC.e"])
        contract.functions.balanceOf.return_value.call = AsyncMock(return_value=1_234)
        mock_provider.contract = AsyncMock(return_value=contract)
        return contract

    @pytest.mark.asyncio
    async def test_token_metadata_read_every_call(self, mock_provider, contract, usdc):
        reader = BalanceReader(mock_provider)

        first = await reader.token(usdc.address)
        second = await reader.token(usdc.address, vault=VAULT)

        assert (first.symbol, first.decimals, first.vault) == ("USDC", 6, None)
        assert (second.symbol, second.decimals) == ("USDC.e", 18)
        assert second.vault.vault == VAULT
        assert contract.functions.decimals.return_value.call.await_count == 2
        assert contract.functions.symbol.return_value.call.await_count == 2

    @pytest.mark.asyncio
    async def test_balance_of_defaults_to_wallet(self, mock_provider, contract, usdc):
        reader = BalanceReader(mock_provider)

        balance = await reader.balance_of(usdc)

        assert balance.raw == 1_234
        assert balance.token is usdc
        contract.functions.balanceOf.assert_called_once_with(mock_provider.address)
