"""Data types for the curve-transformation engine.

All types are frozen dataclasses (immutable).

Units/conventions:
- prices are "out per in" fixed point scaled by 1e18,
- balances and excess are non-negative integer token units,
- shifts are signed; the swap math sees ``balance - shift``,
- timestamps are integer seconds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..price_source import PriceSource


PositionKey = str


@unique
class TransformPath(Enum):
    """Which branch of the engine produced a result."""
    SEED = "seed"
    RATE_LIMITED = "rate_limited"
    UNCHANGED = "unchanged"
    RECOMPUTE = "recompute"


def _require_int(name: str, value: object) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")


@dataclass(frozen=True)
class CurveState:
    """Per-position transformation state.

    ``CurveState()`` is the uninitialized state a position has before its
    first executed transform.
    """

    shift_x: int = 0
    shift_y: int = 0
    excess_x: int = 0
    excess_y: int = 0
    last_reference_price: int = 0
    last_update_time: int = 0
    initialized: bool = False

    def __post_init__(self) -> None:
        for name in (
            "shift_x", "shift_y", "excess_x", "excess_y",
            "last_reference_price", "last_update_time",
        ):
            _require_int(name, getattr(self, name))
        if not isinstance(self.initialized, bool):
            raise TypeError("initialized must be a bool")
        if self.excess_x < 0 or self.excess_y < 0:
            raise ValueError(f"excess must be non-negative: ({self.excess_x}, {self.excess_y})")
        if self.last_reference_price < 0:
            raise ValueError(f"last_reference_price must be non-negative: {self.last_reference_price}")
        if self.last_update_time < 0:
            raise ValueError(f"last_update_time must be non-negative: {self.last_update_time}")


@dataclass(frozen=True)
class SwapAmounts:
    """Amounts of the pending trade at the moment the engine runs.

    Exact-in callers arrive with ``amount_in`` set, exact-out callers with
    ``amount_out`` set. Both set means the trade was already priced.
    """

    amount_in: int = 0
    amount_out: int = 0


@dataclass(frozen=True)
class TransformationConfig:
    """Per-position transformation parameters, fixed for the position's lifetime."""

    price_source: "PriceSource"
    token_in: str
    token_out: str
    initial_price: int
    min_update_interval: int = 0

    def __post_init__(self) -> None:
        _require_int("initial_price", self.initial_price)
        _require_int("min_update_interval", self.min_update_interval)
        if self.initial_price <= 0:
            raise ValueError(f"initial_price must be positive: {self.initial_price}")
        if self.min_update_interval < 0:
            raise ValueError(f"min_update_interval must be non-negative: {self.min_update_interval}")
        if not self.token_in or not self.token_out:
            raise ValueError("token_in and token_out must be non-empty")


@dataclass(frozen=True)
class StablePoint:
    """Balance pair on ``x * y = k`` whose implied price equals a reference price."""

    balance_in: int
    balance_out: int


@dataclass(frozen=True)
class ShiftSet:
    """Shifts and excess produced by one recompute."""

    shift_in: int
    shift_out: int
    excess_in: int
    excess_out: int


@dataclass(frozen=True)
class TransformationRecord:
    """Audit trail of one persisted recompute."""

    position_key: PositionKey
    old_shift_x: int
    old_shift_y: int
    new_shift_x: int
    new_shift_y: int
    old_excess_x: int
    old_excess_y: int
    new_excess_x: int
    new_excess_y: int
    old_price: int
    new_price: int
    timestamp: int


@dataclass(frozen=True)
class TransformResult:
    """Outcome of a single engine call.

    ``state`` is the state the call computed (persisted only when
    ``committed`` is True). ``record`` is set only for a recompute.
    """

    adjusted_in: int
    adjusted_out: int
    state: CurveState
    path: TransformPath
    committed: bool = False
    record: TransformationRecord | None = None
