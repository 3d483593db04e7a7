"""
Core curve-transformation algorithms
"""

from .transform import (
    CurveState,
    SwapAmounts,
    TransformationConfig,
    TransformResult,
    execute,
    quote,
    transform,
)
from .price_source import PriceQuote, PriceSource, StaticPriceSource, read_price

__all__ = [
    "CurveState",
    "SwapAmounts",
    "TransformationConfig",
    "TransformResult",
    "execute",
    "quote",
    "transform",
    "PriceQuote",
    "PriceSource",
    "StaticPriceSource",
    "read_price",
]
