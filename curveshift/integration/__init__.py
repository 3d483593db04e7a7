"""
Integration layer: price adapters, configuration, swap consumer
"""

from .config import ConfigError, load_positions, parse_positions
from .pyth import (
    InMemoryPythFeed,
    MalformedPriceData,
    PriceFeedError,
    PriceFeedNotConfigured,
    PythFeed,
    PythPrice,
    PythPriceAdapter,
    StalePrice,
    convert_to_scaled,
)
from .swap_consumer import SwapQuote, constant_product_out, quote_exact_in, swap_exact_in

__all__ = [
    "ConfigError",
    "load_positions",
    "parse_positions",
    "InMemoryPythFeed",
    "MalformedPriceData",
    "PriceFeedError",
    "PriceFeedNotConfigured",
    "PythFeed",
    "PythPrice",
    "PythPriceAdapter",
    "StalePrice",
    "convert_to_scaled",
    "SwapQuote",
    "constant_product_out",
    "quote_exact_in",
    "swap_exact_in",
]
