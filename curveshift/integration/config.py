"""
Position configuration loader.

Reads a YAML document of transformation configs and validates it fail-closed:

    schema: curveshift/positions/v1
    positions:
      - key: weth-usdc-lp-1
        price_source: pyth
        token_in: "0x..."
        token_out: "0x..."
        initial_price: 3000000000000000000000
        min_update_interval: 300

``price_source`` names are resolved against a mapping supplied by the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from ..core.price_source import PriceSource
from ..core.transform.types import TransformationConfig

SCHEMA = "curveshift/positions/v1"


class ConfigError(Exception):
    """Raised when a positions document is invalid."""


def _require_mapping(obj: Any, *, name: str) -> Mapping[str, Any]:
    if not isinstance(obj, Mapping):
        raise ConfigError(f"{name} must be an object")
    return obj


def _require_list(obj: Any, *, name: str) -> list[Any]:
    if not isinstance(obj, list):
        raise ConfigError(f"{name} must be a list")
    return obj


def _require_str(obj: Any, *, name: str) -> str:
    if not isinstance(obj, str) or not obj.strip():
        raise ConfigError(f"{name} must be a non-empty string")
    return obj.strip()


def _require_int(obj: Any, *, name: str, minimum: int) -> int:
    # Large fixed-point prices may be quoted as strings to survive YAML tooling.
    if isinstance(obj, str) and obj.strip().isascii() and obj.strip().isdecimal():
        obj = int(obj.strip())
    if not isinstance(obj, int) or isinstance(obj, bool):
        raise ConfigError(f"{name} must be an integer")
    if obj < minimum:
        raise ConfigError(f"{name} must be >= {minimum}: {obj}")
    return obj


def parse_positions(
    doc: Any, sources: Mapping[str, PriceSource],
) -> dict[str, TransformationConfig]:
    """Validate a parsed positions document and build one config per key."""
    root = _require_mapping(doc, name="document")
    schema = _require_str(root.get("schema"), name="document.schema")
    if schema != SCHEMA:
        raise ConfigError(f"unsupported schema: {schema}")

    configs: dict[str, TransformationConfig] = {}
    for idx, entry_obj in enumerate(_require_list(root.get("positions"), name="document.positions")):
        entry = _require_mapping(entry_obj, name=f"positions[{idx}]")
        key = _require_str(entry.get("key"), name=f"positions[{idx}].key")
        if key in configs:
            raise ConfigError(f"duplicate position key: {key}")

        source_name = _require_str(entry.get("price_source"), name=f"positions[{idx}].price_source")
        source = sources.get(source_name)
        if source is None:
            raise ConfigError(f"positions[{idx}].price_source unknown: {source_name}")

        configs[key] = TransformationConfig(
            price_source=source,
            token_in=_require_str(entry.get("token_in"), name=f"positions[{idx}].token_in"),
            token_out=_require_str(entry.get("token_out"), name=f"positions[{idx}].token_out"),
            initial_price=_require_int(entry.get("initial_price"), name=f"positions[{idx}].initial_price", minimum=1),
            min_update_interval=_require_int(
                entry.get("min_update_interval", 0), name=f"positions[{idx}].min_update_interval", minimum=0,
            ),
        )
    return configs


def load_positions(path: Path, sources: Mapping[str, PriceSource]) -> dict[str, TransformationConfig]:
    """Load and validate a positions YAML file."""
    raw = Path(path).read_text(encoding="utf-8")
    try:
        doc = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    return parse_positions(doc, sources)
