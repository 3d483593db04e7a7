"""Pure arithmetic for the curve-transformation engine.

Every function is stateless and operates on plain Python ints.

Rounding is fixed and shared by the quote and execute paths:
- square roots are floor square roots (``math.isqrt``),
- divisions are floor divisions on non-negative operands.

Shift and excess values live in one signed integer domain; they are converted
back to unsigned balances only in ``apply_shift``.
"""

from __future__ import annotations

import math

from .errors import BalanceBoundsError
from .types import ShiftSet, StablePoint

SCALE: int = 10**18
SQRT_SCALE: int = math.isqrt(SCALE)  # exact: 10**9
MAX_BALANCE: int = 2**256 - 1


def invariant_k(balance_in: int, balance_out: int) -> int:
    """Constant product ``balance_in * balance_out``."""
    if balance_in < 0 or balance_out < 0:
        raise ValueError(f"balances must be non-negative: ({balance_in}, {balance_out})")
    return balance_in * balance_out


def stable_point(k: int, price: int) -> StablePoint:
    """Point on ``x * y = k`` where ``y / x == price / SCALE``.

    ``x = sqrt(k * SCALE / price)`` and ``y = sqrt(k * price) / sqrt(SCALE)``.
    Both legs are descaled by exactly ``SCALE`` (``SQRT_SCALE ** 2 == SCALE``),
    so ``x * y`` stays within rounding of ``k``.
    """
    if k < 0:
        raise ValueError(f"k must be non-negative: {k}")
    if price <= 0:
        raise ValueError(f"price must be positive: {price}")
    return StablePoint(
        balance_in=math.isqrt((k * SCALE) // price),
        balance_out=math.isqrt(k * price) // SQRT_SCALE,
    )


def compute_shifts(balance_in: int, balance_out: int, old_price: int, new_price: int) -> ShiftSet:
    """Shifts and excess for moving the reference price from *old_price* to *new_price*.

    Price up (the in token buys more of the out token):
        shift_in = -(old_in - new_in), excess_in = old_in - new_in,
        shift_out = new_out - old_out, excess_out = 0.
    Price down or equal:
        shift_in = new_in - old_in, excess_in = 0,
        shift_out = -(old_out - new_out), excess_out = old_out - new_out.
    """
    k = invariant_k(balance_in, balance_out)
    old = stable_point(k, old_price)
    new = stable_point(k, new_price)

    if new_price > old_price:
        drop_in = old.balance_in - new.balance_in
        gain_out = new.balance_out - old.balance_out
        return ShiftSet(shift_in=-drop_in, shift_out=gain_out, excess_in=drop_in, excess_out=0)

    gain_in = new.balance_in - old.balance_in
    drop_out = old.balance_out - new.balance_out
    return ShiftSet(shift_in=gain_in, shift_out=-drop_out, excess_in=0, excess_out=drop_out)


def apply_shift(balance: int, shift: int, *, side: str) -> int:
    """Balance seen by swap math: ``balance - shift``, checked against the unsigned domain."""
    adjusted = balance - shift
    if adjusted < 0 or adjusted > MAX_BALANCE:
        raise BalanceBoundsError(side, adjusted)
    return adjusted
