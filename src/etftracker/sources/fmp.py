"""Financial Modeling Prep (FMP) data source.

Several FMP concerns are served by more than one endpoint depending on the
plan and API generation (``/stable`` vs ``/api/v3``/``/api/v4``). Each
method declares its endpoints in priority order and returns the first
non-empty result.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Callable, TypeVar

import httpx

from etftracker.knowledge import CRYPTO_LISTING_KEYWORDS, KNOWN_CRYPTO_ETFS
from etftracker.log import get_logger
from etftracker.models.holding import CountryWeighting, Holding, SectorWeighting
from etftracker.models.info import EtfInfo, EtfListing
from etftracker.normalize import (
    as_text,
    extract_array,
    map_country,
    map_holding,
    map_sector,
)
from etftracker.sources.base import DEFAULT_TIMEOUT, BaseMarketDataSource, HttpJsonClient

logger = get_logger(__name__)

FMP_BASE = "https://financialmodelingprep.com"
LISTING_FALLBACK_SIZE = 50

T = TypeVar("T")

_warned_no_key = False


def _warn_missing_key_once() -> None:
    global _warned_no_key
    if not _warned_no_key:
        _warned_no_key = True
        logger.warning(
            "fmp_api_key_missing",
            detail="FMP_API_KEY not set; records will use knowledge-base fallbacks only",
        )


def filter_crypto_listings(listings: list[EtfListing]) -> list[EtfListing]:
    """Keep listings whose name or symbol contains a crypto keyword."""
    out = []
    for listing in listings:
        text = f"{listing.name} {listing.symbol}".lower()
        if any(k in text for k in CRYPTO_LISTING_KEYWORDS):
            out.append(listing)
    return out


def cusip_from_isin(isin: str | None) -> str | None:
    """A US ISIN embeds the CUSIP at characters 2..11."""
    if isin and isin.upper().startswith("US") and len(isin) >= 11:
        return isin[2:11]
    return None


class FmpSource(BaseMarketDataSource):
    """Fetch ETF data from financialmodelingprep.com.

    A missing API key is not an error: a warning is logged once per process
    and requests go out unauthenticated, which FMP rejects, so every call
    degrades to its empty value.
    """

    name = "fmp"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = FMP_BASE,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        if not self.api_key:
            _warn_missing_key_once()
        self.http = HttpJsonClient(base_url, timeout=timeout, client=client)
        self.http.name = self.name
        self.base_url = base_url.rstrip("/")

    # ------------------------------------------------------------- listing

    async def get_etf_list(self) -> list[EtfListing]:
        data = await self._get("/stable/etf-list", {"query": "bitcoin"})
        if data is None:
            return [EtfListing(symbol=t, name=t) for t in KNOWN_CRYPTO_ETFS]

        listings = [
            EtfListing(symbol=as_text(r.get("symbol")).upper(), name=as_text(r.get("name")))
            for r in extract_array(data, "data")
        ]
        listings = [entry for entry in listings if entry.symbol]
        result = filter_crypto_listings(listings) or listings[:LISTING_FALLBACK_SIZE]

        seen = {entry.symbol for entry in result}
        for ticker in KNOWN_CRYPTO_ETFS:
            if ticker not in seen:
                result.append(EtfListing(symbol=ticker, name=ticker))
                seen.add(ticker)
        return result

    # --------------------------------------------------------------- quote

    async def get_quote(self, symbol: str) -> dict[str, Any] | None:
        sym = symbol.upper()
        endpoints = [
            ("/stable/batch-etf-quotes", {"symbols": sym}),
            ("/stable/quote", {"symbol": sym}),
        ]
        rows = await self._first_non_empty(endpoints, lambda d: extract_array(d, "data"))
        return rows[0] if rows else None

    # ------------------------------------------------------------ holdings

    async def get_holdings(self, symbol: str) -> list[Holding]:
        sym = symbol.upper()
        endpoints = [
            (f"/api/v3/etf-holder/{sym}", None),
            ("/stable/etf/holdings", {"symbol": sym}),
        ]
        return await self._first_non_empty(
            endpoints,
            lambda d: [map_holding(r) for r in extract_array(d, "holdings", "data")],
        )

    # ---------------------------------------------------------------- info

    async def get_info(self, symbol: str) -> EtfInfo | None:
        sym = symbol.upper()
        endpoints = [
            ("/stable/etf/info", {"symbol": sym}),
            (f"/api/v3/profile/{sym}", None),
        ]
        rows = await self._first_non_empty(endpoints, lambda d: extract_array(d, "data"))
        if not rows:
            return None
        raw = rows[0]
        isin = as_text(raw.get("isin")) or None
        return EtfInfo(
            symbol=as_text(raw.get("symbol")).upper() or sym,
            name=as_text(raw.get("name") or raw.get("companyName")),
            cusip=as_text(raw.get("cusip")) or None,
            isin=isin,
            exchange=as_text(raw.get("exchangeShortName") or raw.get("exchange")) or None,
            currency=as_text(raw.get("currency")) or None,
            asset_class=as_text(raw.get("assetClass") or raw.get("assetType")) or None,
            raw=raw,
        )

    # ----------------------------------------------------------- weightings

    async def get_country_weightings(self, symbol: str) -> list[CountryWeighting]:
        sym = symbol.upper()
        endpoints = [
            ("/api/v4/etf-country-weightings", {"symbol": sym}),
            ("/stable/etf/country-weightings", {"symbol": sym}),
        ]
        return await self._first_non_empty(
            endpoints,
            lambda d: [
                c for c in (map_country(r) for r in extract_array(d, "countryWeightings", "data"))
                if c.country
            ],
        )

    async def get_sector_weightings(self, symbol: str) -> list[SectorWeighting]:
        data = await self._get("/stable/etf/sector-weightings", {"symbol": symbol.upper()})
        return [
            s for s in (map_sector(r) for r in extract_array(data, "sectorWeightings", "data"))
            if s.sector
        ]

    # ---------------------------------------------------------- news/chart

    async def get_news(self, symbol: str, limit: int = 5) -> list[dict[str, Any]]:
        data = await self._get(
            "/stable/news/stock",
            {"symbols": symbol.upper(), "page": 0, "limit": limit},
        )
        return extract_array(data, "data")[:limit]

    async def get_historical_prices(self, symbol: str, days: int = 90) -> list[dict[str, Any]]:
        to = date.today()
        start = to - timedelta(days=days)
        data = await self._get(
            "/stable/historical-price-eod/light",
            {"symbol": symbol.upper(), "from": start.isoformat(), "to": to.isoformat()},
        )
        points = extract_array(data, "data", "historical")
        return sorted(points, key=lambda p: as_text(p.get("date")))

    # --------------------------------------------------------------- cusip

    async def get_cusip(self, symbol: str) -> str | None:
        sym = symbol.upper()
        data = await self._get("/stable/search-symbol", {"query": sym})
        for row in extract_array(data, "data"):
            if as_text(row.get("symbol")).upper() != sym:
                continue
            cusip = as_text(row.get("cusip"))
            if cusip:
                return cusip
            return cusip_from_isin(as_text(row.get("isin")))
        return None

    async def aclose(self) -> None:
        await self.http.aclose()

    # ------------------------------------------------------------ internal

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        query: dict[str, Any] = dict(params or {})
        if self.api_key:
            query["apikey"] = self.api_key
        return await self.http.get_json_or_none(
            f"{self.base_url}{path}", params=query, endpoint=path,
        )

    async def _first_non_empty(
        self,
        endpoints: list[tuple[str, dict[str, Any] | None]],
        decode: Callable[[Any], list[T]],
    ) -> list[T]:
        """Try endpoints in order; the first one decoding to a non-empty list wins."""
        for path, params in endpoints:
            data = await self._get(path, params)
            if data is None:
                continue
            rows = decode(data)
            if rows:
                return rows
        return []
