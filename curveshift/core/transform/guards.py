"""Guard predicates for the curve-transformation engine.

Each function inspects the PRE-state and call inputs and decides which branch
the engine takes. None of them mutate anything.
"""

from __future__ import annotations

from .errors import OrderingViolation
from .types import CurveState, SwapAmounts


def require_unpriced_swap(swap: SwapAmounts) -> None:
    """Fail unless the pending trade still has at least one side unset."""
    if swap.amount_in != 0 and swap.amount_out != 0:
        raise OrderingViolation(swap.amount_in, swap.amount_out)


def needs_seed(state: CurveState) -> bool:
    return not state.initialized


def is_rate_limited(state: CurveState, now: int, min_update_interval: int) -> bool:
    """True while ``now`` is inside the minimum interval since the last recompute."""
    return now < state.last_update_time + min_update_interval


def price_unchanged(state: CurveState, price: int) -> bool:
    return price == state.last_reference_price
