"""
Pyth-style price adapter.

Wraps a raw feed that publishes ``price * 10**expo`` values and exposes them
through the ``PriceSource`` contract as 1e18 fixed-point "out per in" prices.

- Feeds are configured per ordered token pair.
- Prices published more than ``max_price_age`` seconds before or after the
  adapter clock are rejected.
- Conversion: ``result = price * 10**(expo + 18)``, floor division when the
  target exponent is negative.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from ..core.price_source import PriceQuote, PriceSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_PRICE_AGE = 3600  # 1 hour
TARGET_DECIMALS = 18
ZERO_PRICE_ID = "0x" + "00" * 32

_PRICE_ID_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


class PriceFeedError(Exception):
    """Base class for adapter failures."""


class PriceFeedNotConfigured(PriceFeedError):
    def __init__(self, token_in: str, token_out: str) -> None:
        self.token_in = token_in
        self.token_out = token_out
        super().__init__(f"no price feed configured for {token_in}/{token_out}")


class StalePrice(PriceFeedError):
    def __init__(self, publish_time: int, now: int, max_age: int) -> None:
        self.publish_time = publish_time
        self.now = now
        self.max_age = max_age
        super().__init__(f"price published at {publish_time} is more than {max_age}s from {now}")


class MalformedPriceData(PriceFeedError):
    """Raised when the raw feed value cannot be converted."""


@dataclass(frozen=True)
class PythPrice:
    """Raw feed value: ``price * 10**expo`` with confidence ``conf``."""

    price: int
    conf: int
    expo: int
    publish_time: int


class PythFeed:
    """Interface for the raw feed contract."""

    def get_price_unsafe(self, price_id: str) -> PythPrice:
        raise NotImplementedError


class InMemoryPythFeed(PythFeed):
    """Feed backed by a dict of the latest published values."""

    def __init__(self) -> None:
        self._prices: Dict[str, PythPrice] = {}

    def publish(self, price_id: str, value: PythPrice) -> None:
        self._prices[_normalize_price_id(price_id)] = value

    def get_price_unsafe(self, price_id: str) -> PythPrice:
        value = self._prices.get(_normalize_price_id(price_id))
        if value is None:
            raise KeyError(f"unknown price feed: {price_id}")
        return value


def _normalize_price_id(price_id: str) -> str:
    if not isinstance(price_id, str) or not _PRICE_ID_RE.match(price_id):
        raise ValueError(f"price_id must be 0x-prefixed 32-byte hex: {price_id!r}")
    return price_id.lower()


def convert_to_scaled(price: int, expo: int, *, decimals: int = TARGET_DECIMALS) -> int:
    """Convert ``price * 10**expo`` to an integer scaled by ``10**decimals``."""
    if not isinstance(price, int) or isinstance(price, bool):
        raise MalformedPriceData(f"price must be an int, got {type(price).__name__}")
    if not isinstance(expo, int) or isinstance(expo, bool):
        raise MalformedPriceData(f"expo must be an int, got {type(expo).__name__}")
    if price <= 0:
        raise MalformedPriceData(f"price must be positive: {price}")
    target_expo = expo + decimals
    if target_expo >= 0:
        return price * 10**target_expo
    return price // 10**(-target_expo)


class PythPriceAdapter(PriceSource):
    """``PriceSource`` over a ``PythFeed`` with per-pair feed ids and a staleness bound."""

    def __init__(
        self,
        feed: PythFeed,
        *,
        max_price_age: int = DEFAULT_MAX_PRICE_AGE,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if max_price_age <= 0:
            raise ValueError(f"max_price_age must be positive: {max_price_age}")
        self._feed = feed
        self.max_price_age = max_price_age
        self._clock = clock or time.time
        self._price_ids: Dict[Tuple[str, str], str] = {}

    def set_price_feed(self, token_in: str, token_out: str, price_id: str) -> None:
        if not token_in or not token_out:
            raise ValueError("token_in and token_out must be non-empty")
        normalized = _normalize_price_id(price_id)
        self._price_ids[(token_in, token_out)] = normalized
        logger.info("price feed configured: %s/%s -> %s", token_in, token_out, normalized)

    def get_price_feed_info(self, token_in: str, token_out: str) -> Tuple[str, bool]:
        price_id = self._price_ids.get((token_in, token_out))
        if price_id is None:
            return ZERO_PRICE_ID, False
        return price_id, True

    def get_raw_price(self, token_in: str, token_out: str) -> PythPrice:
        price_id, configured = self.get_price_feed_info(token_in, token_out)
        if not configured:
            raise PriceFeedNotConfigured(token_in, token_out)
        raw = self._feed.get_price_unsafe(price_id)
        if not isinstance(raw, PythPrice):
            raise MalformedPriceData(f"feed returned {type(raw).__name__}, expected PythPrice")
        return raw

    def get_price(self, token_in: str, token_out: str) -> PriceQuote:
        raw = self.get_raw_price(token_in, token_out)
        now = int(self._clock())
        if abs(now - raw.publish_time) > self.max_price_age:
            raise StalePrice(raw.publish_time, now, self.max_price_age)
        return PriceQuote(price=convert_to_scaled(raw.price, raw.expo), published_at=raw.publish_time)
