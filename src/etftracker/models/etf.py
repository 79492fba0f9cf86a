"""Canonical ETF record."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

CUSIP_UNKNOWN = "—"
NO_EXPOSURE = "—"


@dataclass(frozen=True)
class EtfRecord:
    """One reconciled row per ticker.

    Attributes:
        ticker: Uppercase ticker, unique key.
        name: Display name.
        region: Country/region of the top country weighting.
        crypto_weight: Percent of holdings identified as crypto-related, 0-100.
        crypto_exposure: Exposure label, "—" when none.
        cusip: 9-character CUSIP, or None when unknown.
        digital_asset_indicator: Derived flag, see ``reconcile.is_digital_asset``.
        sponsored_by: Sponsor display name.
        sponsored_badge: Sponsor badge text.
        btc_holdings: BTC units held, only when taken from the Bitcoin feed.
    """

    ticker: str
    name: str
    region: str = "United States"
    crypto_weight: float = 0.0
    crypto_exposure: str = NO_EXPOSURE
    cusip: str | None = None
    digital_asset_indicator: bool = False
    sponsored_by: str | None = None
    sponsored_badge: str | None = None
    btc_holdings: float | None = None

    def __post_init__(self) -> None:
        weight = self.crypto_weight
        if not isinstance(weight, (int, float)) or not math.isfinite(weight) or weight < 0:
            object.__setattr__(self, "crypto_weight", 0.0)
        if self.cusip is not None and (not self.cusip.strip() or self.cusip == CUSIP_UNKNOWN):
            object.__setattr__(self, "cusip", None)

    @property
    def cusip_display(self) -> str:
        return self.cusip or CUSIP_UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys the dashboard expects."""
        out: dict[str, Any] = {
            "ticker": self.ticker,
            "name": self.name,
            "region": self.region,
            "cryptoWeight": self.crypto_weight,
            "cryptoExposure": self.crypto_exposure,
            "cusip": self.cusip_display,
            "digitalAssetIndicator": self.digital_asset_indicator,
        }
        if self.sponsored_by:
            out["sponsoredBy"] = self.sponsored_by
            if self.sponsored_badge:
                out["sponsoredBadge"] = self.sponsored_badge
        if self.btc_holdings is not None:
            out["btcHoldings"] = self.btc_holdings
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> EtfRecord:
        """Rebuild a record from its stored JSON form (tolerant of missing keys)."""
        ticker = str(raw.get("ticker") or "").upper()
        try:
            weight = float(raw.get("cryptoWeight") or 0)
        except (TypeError, ValueError):
            weight = 0.0
        btc = raw.get("btcHoldings")
        return cls(
            ticker=ticker,
            name=str(raw.get("name") or ticker),
            region=str(raw.get("region") or "United States"),
            crypto_weight=weight,
            crypto_exposure=str(raw.get("cryptoExposure") or NO_EXPOSURE),
            cusip=raw.get("cusip") if isinstance(raw.get("cusip"), str) else None,
            digital_asset_indicator=bool(raw.get("digitalAssetIndicator", False)),
            sponsored_by=raw.get("sponsoredBy"),
            sponsored_badge=raw.get("sponsoredBadge"),
            btc_holdings=float(btc) if isinstance(btc, (int, float)) else None,
        )
