"""
Per-position curve-state table.

Implements CurveStateStore[PositionKey] -> CurveState
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from ..core.transform.state import initial_state, state_from_dict, state_to_dict
from ..core.transform.types import CurveState, PositionKey
from .canonical import canonical_json_bytes, sha256_hex


SNAPSHOT_VERSION = 1


class CurveStateStore:
    """
    Table mapping position key -> CurveState.

    Positions never share entries; there is no cross-position state. The
    transformation engine is the only writer. Entries are never removed.
    """

    def __init__(self) -> None:
        self._states: Dict[PositionKey, CurveState] = {}

    def get(self, position_key: PositionKey) -> CurveState:
        """State for *position_key*; the uninitialized state if never written."""
        return self._states.get(position_key, initial_state())

    def validate(self, position_key: PositionKey, state: CurveState) -> None:
        """
        Check that ``put(position_key, state)`` would succeed, without writing.

        Raises:
            TypeError: If state is not a CurveState
            ValueError: If the key is empty or the state is uninitialized
        """
        if not isinstance(state, CurveState):
            raise TypeError(f"state must be a CurveState, got {type(state).__name__}")
        if not position_key:
            raise ValueError("position_key must be non-empty")
        if not state.initialized:
            raise ValueError("cannot store an uninitialized curve state")

    def put(self, position_key: PositionKey, state: CurveState) -> None:
        """Store *state* for *position_key*; see ``validate`` for the checks."""
        self.validate(position_key, state)
        self._states[position_key] = state

    def __contains__(self, position_key: object) -> bool:
        return position_key in self._states

    def __len__(self) -> int:
        return len(self._states)

    def keys(self) -> list[PositionKey]:
        """Position keys in sorted order."""
        return sorted(self._states)

    def excess_reserves(self, position_key: PositionKey) -> Tuple[int, int]:
        """(excess_x, excess_y) currently held outside swap math for a position."""
        state = self.get(position_key)
        return state.excess_x, state.excess_y

    def snapshot(self) -> dict[str, Any]:
        """Plain, JSON-safe dump of the table."""
        return {
            "version": SNAPSHOT_VERSION,
            "positions": {key: state_to_dict(self._states[key]) for key in self.keys()},
        }

    def state_root(self) -> str:
        """sha256 over the canonical encoding of ``snapshot()``."""
        return sha256_hex(canonical_json_bytes(self.snapshot()))

    @classmethod
    def from_snapshot(cls, snap: Mapping[str, Any]) -> "CurveStateStore":
        version = snap.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"unsupported snapshot version: {version!r}")
        positions = snap.get("positions")
        if not isinstance(positions, Mapping):
            raise TypeError("snapshot positions must be a mapping")
        store = cls()
        for key, raw in positions.items():
            store.put(key, state_from_dict(raw))
        return store

    def __repr__(self) -> str:
        return f"CurveStateStore({len(self._states)} positions)"
