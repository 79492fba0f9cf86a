"""On-demand ETF detail response model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from etftracker.models.etf import CUSIP_UNKNOWN, NO_EXPOSURE
from etftracker.models.holding import CountryWeighting, Holding, SectorWeighting
from etftracker.models.info import EtfInfo


@dataclass
class EtfDetail:
    """Detail payload for one ticker: reconciled fields plus live market data.

    ``info`` and the weighting/chart/news lists are only populated for
    extended requests. ``error`` is set when reconciliation fell back to
    cached and knowledge-base data.
    """

    symbol: str
    quote: dict[str, Any] | None = None
    holdings: list[Holding] = field(default_factory=list)
    crypto_weight: float = 0.0
    crypto_exposure: str = NO_EXPOSURE
    cusip: str | None = None
    sponsored_by: str | None = None
    sponsored_badge: str | None = None
    extended: bool = False
    info: EtfInfo | None = None
    country_weightings: list[CountryWeighting] = field(default_factory=list)
    sector_weightings: list[SectorWeighting] = field(default_factory=list)
    chart: list[dict[str, Any]] = field(default_factory=list)
    news: list[dict[str, Any]] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "symbol": self.symbol,
            "quote": self.quote,
            "holdings": [h.to_dict() for h in self.holdings],
            "cryptoWeight": self.crypto_weight,
            "cryptoExposure": self.crypto_exposure,
            "cusip": self.cusip or CUSIP_UNKNOWN,
            "sponsoredBy": self.sponsored_by,
            "sponsoredBadge": self.sponsored_badge,
        }
        if self.extended:
            out["info"] = self.info.to_dict() if self.info else None
            out["countryWeightings"] = [c.to_dict() for c in self.country_weightings]
            out["sectorWeightings"] = [s.to_dict() for s in self.sector_weightings]
            out["chart"] = self.chart
            out["news"] = self.news
        if self.error:
            out["error"] = self.error
        return out
