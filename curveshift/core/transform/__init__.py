"""``transform``: pseudo-arbitrage curve transformation.

Per-position state machine that shifts the constant-product curve whenever the
reference price moves, instead of leaving the difference to arbitrageurs:
- deterministic, integer-only arithmetic,
- immutable state (frozen dataclasses),
- fail-closed guards and invariant checks,
- quote and execute share one pure computation.

Public API:
- ``transform(store, key, balance_in, balance_out, config, now, ...) -> TransformResult``
- ``quote(...)`` / ``execute(...)``
- ``compute_transform(state, ...)`` (pure, never persists)
"""

from .engine import (
    Committer,
    DiscardCommitter,
    StoreCommitter,
    compute_transform,
    execute,
    quote,
    run_transform,
    transform,
)
from .errors import (
    BalanceBoundsError,
    CurveInvariantError,
    CurveShiftError,
    InvalidPrice,
    OrderingViolation,
    PriceSourceUnavailable,
)
from .state import initial_state, seed_state, state_from_dict, state_to_dict
from .types import (
    CurveState,
    PositionKey,
    ShiftSet,
    StablePoint,
    SwapAmounts,
    TransformationConfig,
    TransformationRecord,
    TransformPath,
    TransformResult,
)

__all__ = [
    "transform",
    "quote",
    "execute",
    "compute_transform",
    "run_transform",
    "Committer",
    "DiscardCommitter",
    "StoreCommitter",
    "initial_state",
    "seed_state",
    "state_from_dict",
    "state_to_dict",
    "CurveState",
    "PositionKey",
    "ShiftSet",
    "StablePoint",
    "SwapAmounts",
    "TransformationConfig",
    "TransformationRecord",
    "TransformPath",
    "TransformResult",
    "CurveShiftError",
    "OrderingViolation",
    "InvalidPrice",
    "PriceSourceUnavailable",
    "BalanceBoundsError",
    "CurveInvariantError",
]
