"""ETF listing and reference-info models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EtfListing:
    """Entry of the ETF universe listing (symbol + raw listing name)."""

    symbol: str
    name: str = ""


@dataclass(frozen=True)
class EtfInfo:
    """Reference data for an ETF.

    Attributes:
        symbol: Ticker symbol.
        name: Fund name.
        cusip: CUSIP identifier, None when the source omits it.
        isin: ISIN identifier.
        exchange: Listing exchange.
        currency: Trading currency.
        asset_class: Asset class reported by the source.
        raw: Original payload, passed through to extended detail responses.
    """

    symbol: str
    name: str = ""
    cusip: str | None = None
    isin: str | None = None
    exchange: str | None = None
    currency: str | None = None
    asset_class: str | None = None
    raw: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.raw is not None:
            return dict(self.raw)
        return {
            "symbol": self.symbol,
            "name": self.name,
            "cusip": self.cusip,
            "isin": self.isin,
            "exchange": self.exchange,
            "currency": self.currency,
            "assetClass": self.asset_class,
        }
