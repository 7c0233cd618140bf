"""SQLite-based price cache with TTL support."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import diskcache

from config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class PriceCache:
    """
    Short-lived cache of oracle prices.

    Uses diskcache for persistent caching with automatic expiration, so a price
    fetched during valuation is reused when sizing sells in the same cycle.
    A TTL of 0 disables the cache.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        namespace: str = "prices",
    ):
        self.settings = settings or get_settings()
        self.namespace = namespace
        self.ttl = self.settings.price_cache_ttl_seconds
        self._cache: Optional[diskcache.Cache] = None

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def _get_cache(self) -> diskcache.Cache:
        """Get or create the cache instance."""
        if self._cache is None:
            cache_dir = self.settings.ensure_cache_dir() / self.namespace
            cache_dir.mkdir(parents=True, exist_ok=True)
            self._cache = diskcache.Cache(str(cache_dir))
        return self._cache

    @staticmethod
    def key(chain_id: int, token_address: str) -> str:
        return f"price:{chain_id}:{token_address.lower()}"

    def get(self, chain_id: int, token_address: str) -> Optional[Decimal]:
        """Cached price, or None if missing, expired or unreadable."""
        if not self.enabled:
            return None
        key = self.key(chain_id, token_address)
        try:
            value = self._get_cache().get(key)
        except Exception as e:
            logger.warning(f"Cache get error for key {key}: {e}")
            return None
        if value is None:
            return None
        try:
            return Decimal(value)
        except InvalidOperation:
            logger.warning(f"Discarding unreadable cached price for {key}: {value!r}")
            return None

    def set(self, chain_id: int, token_address: str, price: Decimal) -> bool:
        """Cache a price for the configured TTL."""
        if not self.enabled:
            return False
        key = self.key(chain_id, token_address)
        try:
            self._get_cache().set(key, str(price), expire=self.ttl)
            return True
        except Exception as e:
            logger.warning(f"Cache set error for key {key}: {e}")
            return False

    def clear(self) -> int:
        """
        Clear all cached prices.

        Returns:
            Number of items cleared
        """
        try:
            cache = self._get_cache()
            count = len(cache)
            cache.clear()
            return count
        except Exception as e:
            logger.warning(f"Cache clear error: {e}")
            return 0

    def close(self):
        """Close the cache connection."""
        if self._cache:
            self._cache.close()
            self._cache = None
