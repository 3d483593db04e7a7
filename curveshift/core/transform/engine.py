"""Curve-transformation engine.

``transform()`` is the single entry point. It:

1. Checks the ordering guard (the pending trade must not be priced yet).
2. Runs ``compute_transform()``, a pure function of (stored state, balances,
   config, now, price source) that picks one branch: seed, rate-limited,
   unchanged price, or recompute.
3. Checks all invariants on the computed state.
4. Hands the computed state to a ``Committer``. Execute calls get a
   ``StoreCommitter``; quote calls get a ``DiscardCommitter``, so a quote runs
   the identical arithmetic and can never write.

No field is written before every check has passed.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Callable, Optional

from ..price_source import read_price
from .errors import CurveInvariantError
from .guards import is_rate_limited, needs_seed, price_unchanged, require_unpriced_swap
from .invariants import check_all
from .math import apply_shift, compute_shifts
from .state import seed_state
from .types import (
    CurveState,
    PositionKey,
    SwapAmounts,
    TransformationConfig,
    TransformationRecord,
    TransformPath,
    TransformResult,
)

if TYPE_CHECKING:
    from ...state.curve_store import CurveStateStore

logger = logging.getLogger(__name__)

RecordSink = Callable[[TransformationRecord], None]


class Committer:
    """Persistence capability handed to the engine.

    ``commit`` returns True iff it persisted ``state``.
    """

    def commit(
        self,
        position_key: PositionKey,
        state: CurveState,
        record: Optional[TransformationRecord],
    ) -> bool:
        raise NotImplementedError


class DiscardCommitter(Committer):
    """Quote mode: computed state is returned to the caller and dropped."""

    def commit(
        self,
        position_key: PositionKey,
        state: CurveState,
        record: Optional[TransformationRecord],
    ) -> bool:
        return False


class StoreCommitter(Committer):
    """Execute mode: writes the state and emits the record of a recompute.

    The record reaches the sink before the store is written; a failing sink
    leaves the position untouched.
    """

    def __init__(self, store: CurveStateStore, sink: Optional[RecordSink] = None) -> None:
        self._store = store
        self._sink = sink

    def commit(
        self,
        position_key: PositionKey,
        state: CurveState,
        record: Optional[TransformationRecord],
    ) -> bool:
        self._store.validate(position_key, state)
        if record is None:
            self._store.put(position_key, state)
            logger.debug(
                "curve state seeded: position=%s price=%d time=%d",
                position_key, state.last_reference_price, state.last_update_time,
            )
            return True
        if self._sink is not None:
            self._sink(record)
        self._store.put(position_key, state)
        logger.info(
            "curve transformed: position=%s price=%d->%d shift=(%d,%d)->(%d,%d) excess=(%d,%d)->(%d,%d)",
            position_key, record.old_price, record.new_price,
            record.old_shift_x, record.old_shift_y, record.new_shift_x, record.new_shift_y,
            record.old_excess_x, record.old_excess_y, record.new_excess_x, record.new_excess_y,
        )
        return True


def _apply_stored(
    state: CurveState, balance_in: int, balance_out: int, path: TransformPath,
) -> TransformResult:
    return TransformResult(
        adjusted_in=apply_shift(balance_in, state.shift_x, side="in"),
        adjusted_out=apply_shift(balance_out, state.shift_y, side="out"),
        state=state,
        path=path,
    )


def compute_transform(
    state: CurveState,
    position_key: PositionKey,
    balance_in: int,
    balance_out: int,
    config: TransformationConfig,
    now: int,
) -> TransformResult:
    """Pure transform: adjusted balances plus the state an execute call would store."""
    if balance_in < 0 or balance_out < 0:
        raise ValueError(f"balances must be non-negative: ({balance_in}, {balance_out})")
    if now < 0:
        raise ValueError(f"now must be non-negative: {now}")

    if needs_seed(state):
        return TransformResult(
            adjusted_in=balance_in,
            adjusted_out=balance_out,
            state=seed_state(config.initial_price, now),
            path=TransformPath.SEED,
        )

    if is_rate_limited(state, now, config.min_update_interval):
        return _apply_stored(state, balance_in, balance_out, TransformPath.RATE_LIMITED)

    new_price = read_price(config.price_source, config.token_in, config.token_out)
    if price_unchanged(state, new_price):
        return _apply_stored(state, balance_in, balance_out, TransformPath.UNCHANGED)

    shifts = compute_shifts(balance_in, balance_out, state.last_reference_price, new_price)
    new_state = CurveState(
        shift_x=shifts.shift_in,
        shift_y=shifts.shift_out,
        excess_x=shifts.excess_in,
        excess_y=shifts.excess_out,
        last_reference_price=new_price,
        last_update_time=now,
        initialized=True,
    )
    record = TransformationRecord(
        position_key=position_key,
        old_shift_x=state.shift_x,
        old_shift_y=state.shift_y,
        new_shift_x=new_state.shift_x,
        new_shift_y=new_state.shift_y,
        old_excess_x=state.excess_x,
        old_excess_y=state.excess_y,
        new_excess_x=new_state.excess_x,
        new_excess_y=new_state.excess_y,
        old_price=state.last_reference_price,
        new_price=new_price,
        timestamp=now,
    )
    return TransformResult(
        adjusted_in=apply_shift(balance_in, new_state.shift_x, side="in"),
        adjusted_out=apply_shift(balance_out, new_state.shift_y, side="out"),
        state=new_state,
        path=TransformPath.RECOMPUTE,
        record=record,
    )


def run_transform(
    state: CurveState,
    position_key: PositionKey,
    balance_in: int,
    balance_out: int,
    config: TransformationConfig,
    now: int,
    committer: Committer,
    *,
    swap: SwapAmounts = SwapAmounts(),
) -> TransformResult:
    """Guard, compute, check, then commit through *committer*."""
    require_unpriced_swap(swap)

    result = compute_transform(state, position_key, balance_in, balance_out, config, now)
    if result.path in (TransformPath.RATE_LIMITED, TransformPath.UNCHANGED):
        logger.debug("curve state reused: position=%s path=%s", position_key, result.path.value)
        return result

    violations = check_all(result.state)
    if violations:
        raise CurveInvariantError(violations)

    committed = committer.commit(position_key, result.state, result.record)
    return replace(result, committed=committed, record=result.record if committed else None)


def transform(
    store: CurveStateStore,
    position_key: PositionKey,
    balance_in: int,
    balance_out: int,
    config: TransformationConfig,
    now: int,
    *,
    swap: SwapAmounts = SwapAmounts(),
    read_only: bool = False,
    sink: Optional[RecordSink] = None,
) -> TransformResult:
    """Adjust *balance_in*/*balance_out* for the current price regime of a position.

    With ``read_only=True`` the result is numerically identical to an execute
    call on the same inputs but nothing is persisted and no record is emitted.

    Raises:
        OrderingViolation: both swap amounts were already set.
        InvalidPrice: price source reported zero.
        PriceSourceUnavailable: price source failed or returned malformed data.
        BalanceBoundsError: a shifted balance left ``[0, 2**256 - 1]``.
        CurveInvariantError: the computed state violates an invariant.
    """
    committer: Committer = DiscardCommitter() if read_only else StoreCommitter(store, sink)
    return run_transform(
        store.get(position_key), position_key, balance_in, balance_out, config, now, committer,
        swap=swap,
    )


def quote(
    store: CurveStateStore,
    position_key: PositionKey,
    balance_in: int,
    balance_out: int,
    config: TransformationConfig,
    now: int,
    *,
    swap: SwapAmounts = SwapAmounts(),
) -> TransformResult:
    """Side-effect-free ``transform()``."""
    return transform(store, position_key, balance_in, balance_out, config, now, swap=swap, read_only=True)


def execute(
    store: CurveStateStore,
    position_key: PositionKey,
    balance_in: int,
    balance_out: int,
    config: TransformationConfig,
    now: int,
    *,
    swap: SwapAmounts = SwapAmounts(),
    sink: Optional[RecordSink] = None,
) -> TransformResult:
    """Committing ``transform()``."""
    return transform(store, position_key, balance_in, balance_out, config, now, swap=swap, sink=sink)
