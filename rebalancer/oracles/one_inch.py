"""Spot price oracle backed by the 1inch price API."""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

import aiohttp
from aiolimiter import AsyncLimiter

from config.settings import Settings, get_settings
from rebalancer.core.models import Token
from rebalancer.oracles.base import PriceOracle
from rebalancer.oracles.cache import PriceCache

logger = logging.getLogger(__name__)


class OneInchPriceOracle(PriceOracle):
    """
    Prices tokens in USD through the 1inch spot price endpoint.

    Requests are rate limited and results are kept in a short-lived price cache.
    Network and parsing failures are reported as "no price" so the caller
    decides whether that aborts the cycle.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[PriceCache] = None,
    ):
        self.settings = settings or get_settings()
        self.cache = cache
        self._rate_limiter = AsyncLimiter(self.settings.price_api_rate_limit, 1)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            headers = {"Accept": "application/json"}
            if self.settings.price_api_key:
                headers["Authorization"] = f"Bearer {self.settings.price_api_key.get_secret_value()}"
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=10),
                headers=headers,
            )
        return self._session

    async def close(self) -> None:
        """Close the session and the price cache."""
        if self._session and not self._session.closed:
            await self._session.close()
        if self.cache:
            self.cache.close()

    async def price(self, token: Token, chain_id: int) -> Optional[Decimal]:
        if self.cache:
            cached = self.cache.get(chain_id, token.address)
            if cached is not None:
                logger.debug(f"Cached price for {token.symbol}: {cached}")
                return cached

        try:
            data = await self._fetch(token.address, chain_id)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Price request for {token.symbol} failed: {e}")
            return None

        price = self._parse_price(data, token.address)
        if price is None:
            logger.warning(f"No price for {token.symbol} ({token.address}) in response")
            return None

        logger.debug(f"Price for {token.symbol}: {price}")
        if self.cache:
            self.cache.set(chain_id, token.address, price)
        return price

    async def _fetch(self, address: str, chain_id: int) -> Dict[str, Any]:
        url = f"{self.settings.price_api_url.rstrip('/')}/{chain_id}/{address}"
        async with self._rate_limiter:
            session = await self._get_session()
            async with session.get(url, params={"currency": "USD"}) as resp:
                resp.raise_for_status()
                return await resp.json()

    @staticmethod
    def _parse_price(data: Dict[str, Any], address: str) -> Optional[Decimal]:
        """Extract the price from a ``{address: "price"}`` response."""
        if not isinstance(data, dict):
            return None
        value = data.get(address.lower())
        if value is None:
            value = data.get(address)
        if value is None:
            return None
        try:
            price = Decimal(str(value))
        except InvalidOperation:
            return None
        if price <= 0:
            return None
        return price
