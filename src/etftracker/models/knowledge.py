"""Static knowledge-base entry."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class KnowledgeEntry:
    """Hand-curated fallback data for a known ticker.

    Attributes:
        name: Fund name.
        crypto_weight: Crypto weight in percent.
        crypto_exposure: Exposure label.
        region: Country/region.
        cusip: CUSIP, None when not known.
        digital_asset_indicator: Whether the fund is a digital-asset product.
    """

    name: str
    crypto_weight: float
    crypto_exposure: str
    region: str = "United States"
    cusip: str | None = None
    digital_asset_indicator: bool = True
