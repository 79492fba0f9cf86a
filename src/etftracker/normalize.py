"""Field normalization for heterogeneous external payloads.

External sources return the same concept in several shapes: a bare list or
a list wrapped under ``data``/``holdings``/``countryWeightings``; weights as
numbers, numeric strings, ``"97.49%"`` strings or fractions; alternate key
names per endpoint version. Every function here is total: malformed input
degrades to ``""``, ``0`` or ``[]`` and never raises.
"""

from __future__ import annotations

import math
from typing import Any

from etftracker.models.holding import CountryWeighting, Holding, SectorWeighting

DEFAULT_ARRAY_KEYS: tuple[str, ...] = (
    "data",
    "holdings",
    "countryWeightings",
    "sectorWeightings",
    "results",
)


def extract_array(payload: Any, *keys: str) -> list[dict[str, Any]]:
    """Return the list of records carried by ``payload``.

    Accepts a bare list, or a dict wrapping the list under one of ``keys``
    (``DEFAULT_ARRAY_KEYS`` when none are given). Non-dict items are dropped.
    Any other shape yields ``[]``.
    """
    items: Any = None
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        for key in keys or DEFAULT_ARRAY_KEYS:
            candidate = payload.get(key)
            if isinstance(candidate, list):
                items = candidate
                break
    if not items:
        return []
    return [item for item in items if isinstance(item, dict)]


def parse_percent(value: Any) -> float:
    """Parse a number, numeric string or ``"12.5%"`` string; NaN if unparseable."""
    if isinstance(value, bool) or value is None:
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if text.endswith("%"):
            text = text[:-1].strip()
        if not text:
            return math.nan
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def normalize_weight(raw: Any) -> float:
    """Coerce a raw weight into percent.

    Fractions in ``(0, 1]`` are scaled by 100. NaN, infinite and negative
    values become 0. Anything else is returned unchanged, so the function is
    idempotent on ``(1, 100]``.
    """
    value = parse_percent(raw)
    if not math.isfinite(value) or value < 0:
        return 0.0
    if 0 < value <= 1:
        return value * 100
    return value


def as_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def as_float(value: Any) -> float | None:
    """Best-effort float coercion; None when the value is not numeric."""
    parsed = parse_percent(value)
    return parsed if math.isfinite(parsed) else None


def _percent_field(raw: Any) -> float:
    # endpoint weight fields are already in percent; no fraction rescaling
    value = parse_percent(raw)
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def map_holding(raw: Any) -> Holding:
    """Build a ``Holding`` from any of the known constituent shapes."""
    if not isinstance(raw, dict):
        return Holding()
    asset = as_text(_first(raw, "asset", "title", "name"))
    name = as_text(_first(raw, "name", "title", "asset"))
    return Holding(
        asset=asset,
        name=name,
        symbol=as_text(_first(raw, "symbol", "ticker")),
        weight_percentage=_percent_field(_first(raw, "weightPercentage", "pctVal", "weight")),
    )


def map_country(raw: Any) -> CountryWeighting:
    if not isinstance(raw, dict):
        return CountryWeighting()
    return CountryWeighting(
        country=as_text(_first(raw, "country", "name")),
        weight_percentage=_percent_field(_first(raw, "weightPercentage", "weight")),
    )


def map_sector(raw: Any) -> SectorWeighting:
    if not isinstance(raw, dict):
        return SectorWeighting()
    return SectorWeighting(
        sector=as_text(_first(raw, "sector", "name")),
        weight_percentage=_percent_field(_first(raw, "weightPercentage", "weight")),
    )
