"""Invariant checkers for ``CurveState``.

Each function returns True when the invariant holds; ``check_all()`` returns the
list of violated invariant IDs (empty = all pass). The engine runs
``check_all()`` on every state it is about to persist.
"""

from __future__ import annotations

from typing import Callable

from .types import CurveState


def inv_excess_one_sided(s: CurveState) -> bool:
    return s.excess_x == 0 or s.excess_y == 0


def inv_shifts_opposed(s: CurveState) -> bool:
    return s.shift_x * s.shift_y <= 0


def inv_uninitialized_zeroed(s: CurveState) -> bool:
    if s.initialized:
        return True
    return (
        s.shift_x == 0 and s.shift_y == 0
        and s.excess_x == 0 and s.excess_y == 0
        and s.last_reference_price == 0 and s.last_update_time == 0
    )


def inv_initialized_has_price(s: CurveState) -> bool:
    if not s.initialized:
        return True
    return s.last_reference_price > 0


def inv_excess_matches_shift(s: CurveState) -> bool:
    # Excess on a side equals the magnitude of that side's negative shift.
    if s.excess_x > 0 and s.shift_x != -s.excess_x:
        return False
    if s.excess_y > 0 and s.shift_y != -s.excess_y:
        return False
    return True


INVARIANT_REGISTRY: dict[str, Callable[[CurveState], bool]] = {
    "inv_excess_one_sided": inv_excess_one_sided,
    "inv_shifts_opposed": inv_shifts_opposed,
    "inv_uninitialized_zeroed": inv_uninitialized_zeroed,
    "inv_initialized_has_price": inv_initialized_has_price,
    "inv_excess_matches_shift": inv_excess_matches_shift,
}


def check_all(state: CurveState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]
