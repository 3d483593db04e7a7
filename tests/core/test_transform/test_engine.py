"""Tests for curveshift/core/transform/engine.py: branch selection, persistence, records.

Scenarios run against a real CurveStateStore and a StaticPriceSource.
"""

import logging

import pytest

from curveshift.core.price_source import PriceQuote, PriceSource, StaticPriceSource
from curveshift.core.transform import (
    BalanceBoundsError,
    CurveState,
    InvalidPrice,
    OrderingViolation,
    PriceSourceUnavailable,
    SwapAmounts,
    TransformationConfig,
    TransformPath,
    compute_transform,
    execute,
    quote,
    transform,
)
from curveshift.core.transform.math import SCALE
from curveshift.state import CurveStateStore

TOKEN_IN = "0xweth"
TOKEN_OUT = "0xusdc"
KEY = "lp-1"
P3 = 3 * SCALE
P4 = 4 * SCALE
INTERVAL = 60


class _RaisingSource(PriceSource):
    def get_price(self, token_in, token_out):
        raise RuntimeError("rpc down")


class _TupleSource(PriceSource):
    def get_price(self, token_in, token_out):
        return (P4, 0)


def _source(price: int = P3) -> StaticPriceSource:
    src = StaticPriceSource()
    src.set_price(TOKEN_IN, TOKEN_OUT, price)
    return src


def _config(source: PriceSource, interval: int = INTERVAL) -> TransformationConfig:
    return TransformationConfig(
        price_source=source,
        token_in=TOKEN_IN,
        token_out=TOKEN_OUT,
        initial_price=P3,
        min_update_interval=interval,
    )


def _seeded(source: PriceSource, now: int = 100) -> CurveStateStore:
    store = CurveStateStore()
    execute(store, KEY, 1000, 3000, _config(source), now)
    return store


# ---------------------------------------------------------------------------
# First call
# ---------------------------------------------------------------------------

class TestSeed:
    def test_returns_balances_unchanged(self):
        store = CurveStateStore()
        r = execute(store, KEY, 1000, 3000, _config(_source(P4)), 100)
        assert (r.adjusted_in, r.adjusted_out) == (1000, 3000)
        assert r.path == TransformPath.SEED
        assert r.committed is True
        assert r.record is None

    def test_stores_configured_price(self):
        store = _seeded(_source(P4))
        s = store.get(KEY)
        assert s.initialized is True
        assert s.last_reference_price == P3
        assert s.last_update_time == 100
        assert (s.shift_x, s.shift_y, s.excess_x, s.excess_y) == (0, 0, 0, 0)

    def test_ignores_price_source(self):
        store = _seeded(_RaisingSource())
        assert store.get(KEY).initialized is True

    def test_quote_does_not_seed(self):
        store = CurveStateStore()
        r = quote(store, KEY, 1000, 3000, _config(_source()), 100)
        assert r.path == TransformPath.SEED
        assert r.committed is False
        assert KEY not in store

    def test_seed_emits_no_record(self):
        records = []
        execute(CurveStateStore(), KEY, 1000, 3000, _config(_source()), 100, sink=records.append)
        assert records == []


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

class TestRateLimit:
    def test_inside_interval_skips_lookup(self):
        src = _source(P3)
        store = _seeded(src)
        src.set_price(TOKEN_IN, TOKEN_OUT, P4)
        r = execute(store, KEY, 1000, 3000, _config(src), 159)
        assert r.path == TransformPath.RATE_LIMITED
        assert (r.adjusted_in, r.adjusted_out) == (1000, 3000)
        s = store.get(KEY)
        assert s.last_reference_price == P3
        assert s.last_update_time == 100

    def test_inside_interval_never_polls(self):
        store = _seeded(_source())
        r = execute(store, KEY, 1000, 3000, _config(_RaisingSource()), 120)
        assert r.path == TransformPath.RATE_LIMITED

    def test_boundary_is_not_limited(self):
        src = _source(P3)
        store = _seeded(src)
        src.set_price(TOKEN_IN, TOKEN_OUT, P4)
        r = execute(store, KEY, 1000, 3000, _config(src), 160)
        assert r.path == TransformPath.RECOMPUTE

    def test_applies_stored_shifts_to_new_balances(self):
        src = _source(P3)
        store = _seeded(src)
        src.set_price(TOKEN_IN, TOKEN_OUT, P4)
        execute(store, KEY, 1000, 3000, _config(src), 160)
        r = execute(store, KEY, 1100, 2800, _config(src), 170)
        assert r.path == TransformPath.RATE_LIMITED
        assert (r.adjusted_in, r.adjusted_out) == (1234, 2336)

    def test_stored_shift_underflow(self):
        src = _source(P3)
        store = _seeded(src)
        src.set_price(TOKEN_IN, TOKEN_OUT, P4)
        execute(store, KEY, 1000, 3000, _config(src), 160)
        before = store.get(KEY)
        with pytest.raises(BalanceBoundsError):
            execute(store, KEY, 1000, 400, _config(src), 170)
        assert store.get(KEY) == before


# ---------------------------------------------------------------------------
# Price lookup outcomes
# ---------------------------------------------------------------------------

class TestPriceLookup:
    def test_unchanged_price_is_noop(self):
        store = _seeded(_source(P3))
        before = store.get(KEY)
        r = execute(store, KEY, 1000, 3000, _config(_source(P3)), 200)
        assert r.path == TransformPath.UNCHANGED
        assert r.record is None
        assert store.get(KEY) == before

    def test_zero_price_fails_and_keeps_state(self):
        store = _seeded(_source(P3))
        before = store.get(KEY)
        with pytest.raises(InvalidPrice):
            execute(store, KEY, 1000, 3000, _config(_source(0)), 200)
        assert store.get(KEY) == before

    def test_source_failure(self):
        store = _seeded(_source(P3))
        with pytest.raises(PriceSourceUnavailable) as exc:
            execute(store, KEY, 1000, 3000, _config(_RaisingSource()), 200)
        assert isinstance(exc.value.__cause__, RuntimeError)

    def test_malformed_response(self):
        store = _seeded(_source(P3))
        before = store.get(KEY)
        with pytest.raises(PriceSourceUnavailable):
            execute(store, KEY, 1000, 3000, _config(_TupleSource()), 200)
        assert store.get(KEY) == before

    def test_missing_pair(self):
        store = _seeded(_source(P3))
        with pytest.raises(PriceSourceUnavailable):
            execute(store, KEY, 1000, 3000, _config(StaticPriceSource()), 200)


# ---------------------------------------------------------------------------
# Recompute
# ---------------------------------------------------------------------------

class TestRecompute:
    def test_round_trip_price_increase(self):
        store = _seeded(_source(P3))
        r = execute(store, KEY, 1000, 3000, _config(_source(P4)), 200)
        assert r.path == TransformPath.RECOMPUTE
        assert (r.adjusted_in, r.adjusted_out) == (1134, 2536)
        s = store.get(KEY)
        assert s.shift_x == -134
        assert s.shift_y == 464
        assert s.excess_x == 134
        assert s.excess_y == 0
        assert s.last_reference_price == P4
        assert s.last_update_time == 200

    def test_price_decrease(self):
        store = _seeded(_source(P3))
        execute(store, KEY, 1000, 3000, _config(_source(2 * SCALE)), 200)
        s = store.get(KEY)
        assert (s.shift_x, s.shift_y) == (224, -551)
        assert (s.excess_x, s.excess_y) == (0, 551)

    def test_reversal_resets_other_excess(self):
        store = _seeded(_source(P3))
        execute(store, KEY, 1000, 3000, _config(_source(P4)), 200)
        execute(store, KEY, 1000, 3000, _config(_source(P3)), 300)
        s = store.get(KEY)
        assert s.excess_x == 0
        assert s.excess_y == 464
        assert (s.shift_x, s.shift_y) == (134, -464)

    def test_shifts_are_replaced_not_accumulated(self):
        store = _seeded(_source(P3))
        execute(store, KEY, 1000, 3000, _config(_source(P4)), 200)
        execute(store, KEY, 1000, 3000, _config(_source(5 * SCALE)), 300)
        s = store.get(KEY)
        assert (s.shift_x, s.shift_y) == (-92, 408)
        assert s.excess_x == 92

    def test_record_contents(self):
        records = []
        store = _seeded(_source(P3))
        execute(store, KEY, 1000, 3000, _config(_source(P4)), 200, sink=records.append)
        execute(store, KEY, 1000, 3000, _config(_source(5 * SCALE)), 300, sink=records.append)
        assert len(records) == 2
        rec = records[1]
        assert rec.position_key == KEY
        assert (rec.old_shift_x, rec.old_shift_y) == (-134, 464)
        assert (rec.new_shift_x, rec.new_shift_y) == (-92, 408)
        assert (rec.old_excess_x, rec.old_excess_y) == (134, 0)
        assert (rec.new_excess_x, rec.new_excess_y) == (92, 0)
        assert (rec.old_price, rec.new_price) == (P4, 5 * SCALE)
        assert rec.timestamp == 300

    def test_record_only_on_recompute(self):
        records = []
        src = _source(P3)
        store = CurveStateStore()
        cfg = _config(src)
        execute(store, KEY, 1000, 3000, cfg, 100, sink=records.append)  # seed
        execute(store, KEY, 1000, 3000, cfg, 110, sink=records.append)  # rate limited
        execute(store, KEY, 1000, 3000, cfg, 200, sink=records.append)  # unchanged
        assert records == []
        src.set_price(TOKEN_IN, TOKEN_OUT, P4)
        execute(store, KEY, 1000, 3000, cfg, 210, sink=records.append)
        assert len(records) == 1

    def test_logs_recompute(self, caplog):
        store = _seeded(_source(P3))
        with caplog.at_level(logging.INFO, logger="curveshift.core.transform.engine"):
            execute(store, KEY, 1000, 3000, _config(_source(P4)), 200)
        assert any("curve transformed" in m for m in caplog.messages)

    def test_failing_sink_leaves_state_untouched(self):
        store = _seeded(_source(P3))
        before = store.get(KEY)

        def _broken_sink(record):
            raise RuntimeError("sink down")

        with pytest.raises(RuntimeError):
            execute(store, KEY, 1000, 3000, _config(_source(P4)), 200, sink=_broken_sink)
        assert store.get(KEY) == before

        records = []
        res = execute(store, KEY, 1000, 3000, _config(_source(P4)), 210, sink=records.append)
        assert res.path == TransformPath.RECOMPUTE
        assert len(records) == 1
        assert records[0].new_price == P4
        assert store.get(KEY).last_reference_price == P4

    def test_positions_are_independent(self):
        store = _seeded(_source(P3))
        execute(store, "lp-2", 500, 1500, _config(_source(P3)), 100)
        execute(store, KEY, 1000, 3000, _config(_source(P4)), 200)
        assert store.get("lp-2").last_reference_price == P3
        assert store.get("lp-2").shift_x == 0


# ---------------------------------------------------------------------------
# Quote vs execute
# ---------------------------------------------------------------------------

class TestQuoteExecute:
    def test_identical_adjusted_balances(self):
        store = _seeded(_source(P3))
        cfg = _config(_source(P4))
        q = quote(store, KEY, 1000, 3000, cfg, 200)
        e = execute(store, KEY, 1000, 3000, cfg, 200)
        assert (q.adjusted_in, q.adjusted_out) == (e.adjusted_in, e.adjusted_out)
        assert q.state == e.state

    def test_quote_persists_nothing(self):
        records = []
        store = _seeded(_source(P3))
        before = store.get(KEY)
        r = transform(store, KEY, 1000, 3000, _config(_source(P4)), 200, read_only=True, sink=records.append)
        assert r.path == TransformPath.RECOMPUTE
        assert r.committed is False
        assert r.record is None
        assert records == []
        assert store.get(KEY) == before

    def test_compute_transform_is_pure(self):
        state = CurveState(last_reference_price=P3, last_update_time=100, initialized=True)
        r1 = compute_transform(state, KEY, 1000, 3000, _config(_source(P4)), 200)
        r2 = compute_transform(state, KEY, 1000, 3000, _config(_source(P4)), 200)
        assert r1 == r2
        assert state.shift_x == 0


# ---------------------------------------------------------------------------
# Ordering guard
# ---------------------------------------------------------------------------

class TestOrdering:
    def test_both_amounts_set_rejected(self):
        store = CurveStateStore()
        with pytest.raises(OrderingViolation) as exc:
            execute(store, KEY, 1000, 3000, _config(_source()), 100, swap=SwapAmounts(amount_in=5, amount_out=7))
        assert (exc.value.amount_in, exc.value.amount_out) == (5, 7)
        assert KEY not in store

    def test_exact_in_allowed(self):
        store = CurveStateStore()
        r = execute(store, KEY, 1000, 3000, _config(_source()), 100, swap=SwapAmounts(amount_in=5))
        assert r.committed is True

    def test_exact_out_allowed(self):
        store = CurveStateStore()
        r = execute(store, KEY, 1000, 3000, _config(_source()), 100, swap=SwapAmounts(amount_out=7))
        assert r.committed is True

    def test_quote_also_guarded(self):
        with pytest.raises(OrderingViolation):
            quote(CurveStateStore(), KEY, 1000, 3000, _config(_source()), 100, swap=SwapAmounts(1, 1))


class TestInputValidation:
    def test_negative_balance_rejected(self):
        with pytest.raises(ValueError):
            execute(CurveStateStore(), KEY, -1, 3000, _config(_source()), 100)

    def test_config_rejects_zero_initial_price(self):
        with pytest.raises(ValueError):
            TransformationConfig(price_source=_source(), token_in=TOKEN_IN, token_out=TOKEN_OUT, initial_price=0)

    def test_config_rejects_negative_interval(self):
        with pytest.raises(ValueError):
            _config(_source(), interval=-1)

    def test_price_quote_shape(self):
        assert _source(P4).get_price(TOKEN_IN, TOKEN_OUT) == PriceQuote(price=P4, published_at=0)
