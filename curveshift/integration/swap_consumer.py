"""
Exact-in constant-product consumer of transformed balances.

The transformation engine runs first, while only ``amount_in`` is known; the
constant-product formula then prices the trade on the adjusted balances:

    fee_total = ceil(amount_in * fee_bps / 10_000)
    net_in = amount_in - fee_total
    amount_out = floor(adjusted_out * net_in / (adjusted_in + net_in))

Nothing here moves tokens or updates reserves; callers settle the returned
amounts themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..core.transform import SwapAmounts, TransformationConfig, TransformPath, execute, quote
from ..core.transform.engine import RecordSink
from ..core.transform.types import PositionKey, TransformResult
from ..state.curve_store import CurveStateStore

BPS_DENOM = 10_000


@dataclass(frozen=True)
class SwapQuote:
    amount_in: int
    amount_out: int
    fee_total: int
    adjusted_in: int
    adjusted_out: int
    path: TransformPath


def constant_product_out(reserve_in: int, reserve_out: int, amount_in: int, fee_bps: int) -> Tuple[int, int]:
    """Return ``(amount_out, fee_total)`` for an exact-in trade."""
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError(f"cannot swap against an empty reserve: ({reserve_in}, {reserve_out})")
    if amount_in <= 0:
        raise ValueError(f"amount_in must be positive: {amount_in}")
    if not (0 <= fee_bps <= BPS_DENOM):
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOM}]: {fee_bps}")

    fee_total = (amount_in * fee_bps + BPS_DENOM - 1) // BPS_DENOM
    net_in = amount_in - fee_total
    amount_out = (reserve_out * net_in) // (reserve_in + net_in)
    if amount_out <= 0:
        raise ValueError("swap produces zero output")
    return amount_out, fee_total


def _price(result: TransformResult, amount_in: int, fee_bps: int) -> SwapQuote:
    amount_out, fee_total = constant_product_out(result.adjusted_in, result.adjusted_out, amount_in, fee_bps)
    return SwapQuote(
        amount_in=amount_in,
        amount_out=amount_out,
        fee_total=fee_total,
        adjusted_in=result.adjusted_in,
        adjusted_out=result.adjusted_out,
        path=result.path,
    )


def quote_exact_in(
    store: CurveStateStore,
    position_key: PositionKey,
    balance_in: int,
    balance_out: int,
    amount_in: int,
    fee_bps: int,
    config: TransformationConfig,
    now: int,
) -> SwapQuote:
    """Price an exact-in trade without touching the store."""
    result = quote(
        store, position_key, balance_in, balance_out, config, now,
        swap=SwapAmounts(amount_in=amount_in),
    )
    return _price(result, amount_in, fee_bps)


def swap_exact_in(
    store: CurveStateStore,
    position_key: PositionKey,
    balance_in: int,
    balance_out: int,
    amount_in: int,
    fee_bps: int,
    config: TransformationConfig,
    now: int,
    *,
    sink: Optional[RecordSink] = None,
) -> SwapQuote:
    """Price an exact-in trade, committing any curve transformation first."""
    result = execute(
        store, position_key, balance_in, balance_out, config, now,
        swap=SwapAmounts(amount_in=amount_in),
        sink=sink,
    )
    return _price(result, amount_in, fee_bps)
