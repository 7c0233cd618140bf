"""Pytest configuration and fixtures."""

import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from rebalancer.core.constants import (
    POLYGON_USDC_ADDRESS,
    POLYGON_WBTC_ADDRESS,
    POLYGON_WETH_ADDRESS,
    POLYGON_WMATIC_ADDRESS,
)
from rebalancer.core.models import Token, VaultBinding

TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
WALLET = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"
WETH_VAULT = "0x305f25377d0a4fa4e3b4b1b5a5d4a4e1f3b3cb8e"
USDC_VAULT = "0x1b5a4ce3e4b1a1f1e2c1d3a4b5c6d7e8f9a0b1c2"


@pytest.fixture
def usdc() -> Token:
    """Reference token (6 decimals)."""
    return Token(address=POLYGON_USDC_ADDRESS, symbol="USDC", decimals=6)


@pytest.fixture
def weth() -> Token:
    return Token(address=POLYGON_WETH_ADDRESS, symbol="WETH", decimals=18)


@pytest.fixture
def wbtc() -> Token:
    """8-decimal token."""
    return Token(address=POLYGON_WBTC_ADDRESS, symbol="WBTC", decimals=8)


@pytest.fixture
def wmatic() -> Token:
    return Token(address=POLYGON_WMATIC_ADDRESS, symbol="WMATIC", decimals=18)


@pytest.fixture
def vault_weth() -> Token:
    """WETH bound to a yield vault."""
    return Token(
        address=POLYGON_WETH_ADDRESS,
        symbol="WETH",
        decimals=18,
        vault=VaultBinding(vault=WETH_VAULT),
    )


@pytest.fixture
def mock_provider():
    """Chain provider with the wallet address and async calls mocked."""
    provider = MagicMock()
    provider.address = WALLET
    provider.chain_id = 137
    provider.contract = AsyncMock()
    provider.transaction_params = AsyncMock(return_value={"from": WALLET, "nonce": 1, "gasPrice": 100, "chainId": 137, "value": 0})
    provider.send_transaction = AsyncMock(return_value="0xabc")
    provider.get_receipt = AsyncMock(return_value=None)
    provider.native_balance = AsyncMock(return_value=0)
    return provider


@pytest.fixture
def mock_settings():
    """Create mock settings for testing."""
    settings = MagicMock()
    settings.cache_dir = Path("/tmp/rebalancer_test_cache")
    settings.price_cache_ttl_seconds = 30
    settings.price_api_url = "https://api.1inch.dev/price/v1.1"
    settings.price_api_key = None
    settings.price_api_rate_limit = 10
    settings.ensure_cache_dir.return_value = settings.cache_dir

    return settings


@pytest.fixture
def settings_env(monkeypatch):
    """Minimal valid environment for Settings."""
    env = {
        "RPC_URL": "https://polygon-rpc.example",
        "WALLET_PRIVATE_KEY": TEST_PRIVATE_KEY,
        "TOKENS": f"{POLYGON_WETH_ADDRESS},{POLYGON_WBTC_ADDRESS}",
        "WEIGHTS_UP": f'{{"{POLYGON_WETH_ADDRESS}": 7000, "{POLYGON_WBTC_ADDRESS}": 3000}}',
        "WEIGHTS_DOWN": f'{{"{POLYGON_WETH_ADDRESS}": 3000, "{POLYGON_WBTC_ADDRESS}": 7000}}',
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env

