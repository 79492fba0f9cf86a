"""Holding and weighting breakdown models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Holding:
    """Single ETF constituent.

    Attributes:
        asset: Asset identifier as reported by the source (often the ticker).
        name: Constituent name.
        symbol: Constituent ticker, empty when unknown.
        weight_percentage: Portfolio weight in percent (0-100).
    """

    asset: str = ""
    name: str = ""
    symbol: str = ""
    weight_percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset": self.asset,
            "name": self.name,
            "symbol": self.symbol,
            "weightPercentage": self.weight_percentage,
        }


@dataclass(frozen=True)
class CountryWeighting:
    """Share of an ETF allocated to one country."""

    country: str = ""
    weight_percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"country": self.country, "weightPercentage": self.weight_percentage}


@dataclass(frozen=True)
class SectorWeighting:
    """Share of an ETF allocated to one sector."""

    sector: str = ""
    weight_percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"sector": self.sector, "weightPercentage": self.weight_percentage}
