"""
Price-source contract consumed by the curve-transformation engine.

The engine polls a ``PriceSource`` for the current "out per in" price of a token
pair. Sources are read-only from the engine's point of view.

``read_price()`` is the single decode point: anything other than a well-formed
``PriceQuote`` becomes ``PriceSourceUnavailable``, and a zero price becomes
``InvalidPrice``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from .transform.errors import InvalidPrice, PriceSourceUnavailable


@dataclass(frozen=True)
class PriceQuote:
    """A price (scaled by 1e18) and the time it was published."""

    price: int
    published_at: int


class PriceSource:
    """Interface for a polled price reference."""

    def get_price(self, token_in: str, token_out: str) -> PriceQuote:
        raise NotImplementedError


class StaticPriceSource(PriceSource):
    """In-memory prices per ordered token pair (tests, demos, mock deployments)."""

    def __init__(self) -> None:
        self._quotes: Dict[Tuple[str, str], PriceQuote] = {}

    def set_price(self, token_in: str, token_out: str, price: int, published_at: int = 0) -> None:
        if price < 0:
            raise ValueError(f"price must be non-negative: {price}")
        self._quotes[(token_in, token_out)] = PriceQuote(price=price, published_at=published_at)

    def get_price(self, token_in: str, token_out: str) -> PriceQuote:
        quote = self._quotes.get((token_in, token_out))
        if quote is None:
            raise LookupError(f"no price for {token_in}/{token_out}")
        return quote

    def __repr__(self) -> str:
        return f"StaticPriceSource({len(self._quotes)} pairs)"


def decode_quote(raw: object) -> PriceQuote:
    """Validate the shape of a price-source response."""
    if not isinstance(raw, PriceQuote):
        raise PriceSourceUnavailable(f"malformed price response: {type(raw).__name__}")
    for name in ("price", "published_at"):
        val = getattr(raw, name)
        if not isinstance(val, int) or isinstance(val, bool):
            raise PriceSourceUnavailable(f"malformed price response: {name} is {type(val).__name__}")
        if val < 0:
            raise PriceSourceUnavailable(f"malformed price response: negative {name} {val}")
    return raw


def read_price(source: PriceSource, token_in: str, token_out: str) -> int:
    """Poll *source* once. No retries, no fallback price."""
    try:
        raw = source.get_price(token_in, token_out)
    except Exception as exc:
        raise PriceSourceUnavailable(f"price source call failed for {token_in}/{token_out}: {exc}") from exc

    quote = decode_quote(raw)
    if quote.price == 0:
        raise InvalidPrice(token_in, token_out)
    return quote.price
