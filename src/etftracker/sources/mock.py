"""Mock source for tests and offline runs: no API keys or network required."""

from __future__ import annotations

from typing import Any

from etftracker.knowledge import KNOWN_CRYPTO_ETFS
from etftracker.models.holding import CountryWeighting, Holding, SectorWeighting
from etftracker.models.info import EtfInfo, EtfListing
from etftracker.sources.base import BaseMarketDataSource


class MockSource(BaseMarketDataSource):
    """In-memory source returning configurable static data.

    Use ``set_holdings``, ``set_info``, etc. to pre-load data. Unset symbols
    return empty values, like a live source whose endpoints all failed.
    ``fail_on`` makes the named method raise, to exercise callers' isolation.
    """

    def __init__(self) -> None:
        self._listings: list[EtfListing] | None = None
        self._quotes: dict[str, dict[str, Any]] = {}
        self._holdings: dict[str, list[Holding]] = {}
        self._info: dict[str, EtfInfo] = {}
        self._countries: dict[str, list[CountryWeighting]] = {}
        self._sectors: dict[str, list[SectorWeighting]] = {}
        self._news: dict[str, list[dict[str, Any]]] = {}
        self._chart: dict[str, list[dict[str, Any]]] = {}
        self._cusips: dict[str, str] = {}
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    # --- Pre-load helpers ---

    def set_listings(self, listings: list[EtfListing]) -> None:
        self._listings = list(listings)

    def set_quote(self, symbol: str, quote: dict[str, Any]) -> None:
        self._quotes[symbol.upper()] = quote

    def set_holdings(self, symbol: str, holdings: list[Holding]) -> None:
        self._holdings[symbol.upper()] = holdings

    def set_info(self, symbol: str, info: EtfInfo) -> None:
        self._info[symbol.upper()] = info

    def set_country_weightings(self, symbol: str, countries: list[CountryWeighting]) -> None:
        self._countries[symbol.upper()] = countries

    def set_sector_weightings(self, symbol: str, sectors: list[SectorWeighting]) -> None:
        self._sectors[symbol.upper()] = sectors

    def set_news(self, symbol: str, news: list[dict[str, Any]]) -> None:
        self._news[symbol.upper()] = news

    def set_chart(self, symbol: str, points: list[dict[str, Any]]) -> None:
        self._chart[symbol.upper()] = points

    def set_cusip(self, symbol: str, cusip: str) -> None:
        self._cusips[symbol.upper()] = cusip

    # --- Source interface ---

    async def get_etf_list(self) -> list[EtfListing]:
        self._record("get_etf_list", "")
        if self._listings is not None:
            return list(self._listings)
        return [EtfListing(symbol=t, name=t) for t in KNOWN_CRYPTO_ETFS]

    async def get_quote(self, symbol: str) -> dict[str, Any] | None:
        self._record("get_quote", symbol)
        return self._quotes.get(symbol.upper())

    async def get_holdings(self, symbol: str) -> list[Holding]:
        self._record("get_holdings", symbol)
        return list(self._holdings.get(symbol.upper(), []))

    async def get_info(self, symbol: str) -> EtfInfo | None:
        self._record("get_info", symbol)
        return self._info.get(symbol.upper())

    async def get_country_weightings(self, symbol: str) -> list[CountryWeighting]:
        self._record("get_country_weightings", symbol)
        return list(self._countries.get(symbol.upper(), []))

    async def get_sector_weightings(self, symbol: str) -> list[SectorWeighting]:
        self._record("get_sector_weightings", symbol)
        return list(self._sectors.get(symbol.upper(), []))

    async def get_news(self, symbol: str, limit: int = 5) -> list[dict[str, Any]]:
        self._record("get_news", symbol)
        return self._news.get(symbol.upper(), [])[:limit]

    async def get_historical_prices(self, symbol: str, days: int = 90) -> list[dict[str, Any]]:
        self._record("get_historical_prices", symbol)
        return list(self._chart.get(symbol.upper(), []))

    async def get_cusip(self, symbol: str) -> str | None:
        self._record("get_cusip", symbol)
        return self._cusips.get(symbol.upper())

    def call_count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def _record(self, method: str, symbol: str) -> None:
        self.calls.append((method, symbol.upper()))
        if method in self.fail_on:
            raise RuntimeError(f"mock failure in {method}")
