"""State construction and serialization for ``CurveState``.

Round-trip property (tested): ``state_from_dict(state_to_dict(s)) == s`` for all valid states.
"""

from __future__ import annotations

from typing import Any, Mapping

from .types import CurveState

# Auto-derived from CurveState field definitions (single source of truth).
STATE_VAR_NAMES: tuple[str, ...] = tuple(CurveState.__dataclass_fields__)


def initial_state() -> CurveState:
    """State of a position that has never been transformed."""
    return CurveState()


def seed_state(reference_price: int, now: int) -> CurveState:
    """First-call state: configured price, no shifts, no excess."""
    return CurveState(
        last_reference_price=reference_price,
        last_update_time=now,
        initialized=True,
    )


def state_to_dict(state: CurveState) -> dict[str, bool | int]:
    """Serialize a CurveState to a plain dict."""
    return {name: getattr(state, name) for name in STATE_VAR_NAMES}


def state_from_dict(d: Mapping[str, Any]) -> CurveState:
    """Deserialize a dict to a CurveState. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in STATE_VAR_NAMES:
        val = d[name]
        if name == "initialized":
            if not isinstance(val, bool):
                raise TypeError(f"state var {name!r} must be bool, got {type(val).__name__}")
            kwargs[name] = val
        elif isinstance(val, int) and not isinstance(val, bool):
            kwargs[name] = int(val)
        else:
            raise TypeError(f"state var {name!r} must be int, got {type(val).__name__}")
    return CurveState(**kwargs)
