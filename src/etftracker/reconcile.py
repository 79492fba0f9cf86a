"""Reconciliation engine: merge every source signal into one record per ticker.

Each output field is resolved by an ordered chain of resolvers, each
returning a value or None; ``first_some`` picks the first value. Sources are
fetched concurrently and settled before merging, so one failing source only
removes its own resolvers from the chains, never the whole ticker.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable, Iterable, TypeVar

from etftracker.knowledge import (
    CRYPTO_ASSET_INDICATORS,
    get_cusip_override,
    get_knowledge,
    get_sponsor,
)
from etftracker.log import get_logger
from etftracker.models.detail import EtfDetail
from etftracker.models.etf import CUSIP_UNKNOWN, NO_EXPOSURE, EtfRecord
from etftracker.models.feed import BtcFeedEntry
from etftracker.models.holding import CountryWeighting, Holding
from etftracker.models.info import EtfInfo, EtfListing
from etftracker.models.knowledge import KnowledgeEntry
from etftracker.normalize import as_text
from etftracker.sources.base import BaseMarketDataSource, settle, settled_or

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_REGION = "United States"
DIGITAL_ASSET_THRESHOLD = 0.1
SPOT_BTC_WEIGHT = 99.5
DIGITAL_ASSET_NAME_RE = re.compile(r"bitcoin|btc|crypto|eth|ethereum", re.IGNORECASE)

DETAIL_CHART_DAYS = 60
DETAIL_NEWS_LIMIT = 5


def first_some(*resolvers: Callable[[], T | None]) -> T | None:
    """Return the first non-None resolver result, evaluating lazily in order."""
    for resolve in resolvers:
        value = resolve()
        if value is not None:
            return value
    return None


def valid_cusip(value: Any) -> str | None:
    """Treat the "—" sentinel and blanks as missing."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text == CUSIP_UNKNOWN:
        return None
    return text


def is_crypto_holding(holding: Holding) -> bool:
    text = f"{(holding.name or holding.asset).lower()} {holding.symbol.lower()}"
    return any(ind in text for ind in CRYPTO_ASSET_INDICATORS)


def crypto_weight_from_holdings(holdings: Iterable[Holding]) -> float:
    """Sum the weights of holdings whose name or symbol marks them as crypto."""
    return sum(_finite_weight(h.weight_percentage) for h in holdings if is_crypto_holding(h))


def infer_crypto_exposure(name: str) -> str:
    """Derive an exposure label from a fund name."""
    n = (name or "").lower()
    exposures: list[str] = []
    if "bitcoin" in n or "btc" in n:
        exposures.append("BTC")
    if "ethereum" in n or "eth" in n:
        exposures.append("ETH")
    if "crypto" in n or "digital asset" in n:
        exposures.append("Various")
    if "blockchain" in n and not exposures:
        exposures.append("Blockchain equities")
    return ", ".join(exposures) if exposures else NO_EXPOSURE


def is_digital_asset(
    crypto_weight: float,
    knowledge: KnowledgeEntry | None,
    listing_name: str,
) -> bool:
    return (
        crypto_weight > DIGITAL_ASSET_THRESHOLD
        or bool(knowledge and knowledge.digital_asset_indicator)
        or bool(DIGITAL_ASSET_NAME_RE.search(listing_name or ""))
    )


def top_country(countries: Iterable[CountryWeighting]) -> str | None:
    ranked = sorted(countries, key=lambda c: c.weight_percentage, reverse=True)
    for entry in ranked:
        if entry.country:
            return entry.country
    return None


def _finite_weight(value: float) -> float:
    return value if math.isfinite(value) and value > 0 else 0.0


def _positive(value: float) -> float | None:
    return value if value > 0 else None


def _clamp_weight(value: float) -> float:
    return round(min(max(value, 0.0), 100.0), 2)


# ------------------------------------------------------------ field chains


def resolve_name(
    info: EtfInfo | None,
    knowledge: KnowledgeEntry | None,
    listing_name: str,
    ticker: str,
) -> str:
    return first_some(
        lambda: (info.name or None) if info else None,
        lambda: knowledge.name if knowledge else None,
        lambda: listing_name or None,
    ) or ticker


def resolve_crypto_weight(
    cached: EtfRecord | None,
    holdings_weight: float,
    knowledge: KnowledgeEntry | None,
) -> float:
    weight = first_some(
        lambda: cached.crypto_weight if cached else None,
        lambda: _positive(holdings_weight),
        lambda: knowledge.crypto_weight if knowledge else None,
    )
    return _clamp_weight(weight or 0.0)


def resolve_crypto_exposure(
    cached: EtfRecord | None,
    knowledge: KnowledgeEntry | None,
    display_name: str,
) -> str:
    return first_some(
        lambda: cached.crypto_exposure if cached else None,
        lambda: knowledge.crypto_exposure if knowledge else None,
    ) or infer_crypto_exposure(display_name)


def resolve_cusip(
    ticker: str,
    *,
    cached: EtfRecord | None = None,
    info: EtfInfo | None = None,
    lookup: str | None = None,
    knowledge: KnowledgeEntry | None = None,
    external: dict[str, str] | None = None,
) -> str | None:
    """Resolve the CUSIP chain; None means unknown (serialized as "—")."""
    return first_some(
        lambda: valid_cusip(cached.cusip) if cached else None,
        lambda: valid_cusip(info.cusip) if info else None,
        lambda: valid_cusip(lookup),
        lambda: valid_cusip(knowledge.cusip) if knowledge else None,
        lambda: valid_cusip(get_cusip_override(ticker)),
        lambda: valid_cusip((external or {}).get(ticker)),
    )


def resolve_region(
    countries: Iterable[CountryWeighting],
    knowledge: KnowledgeEntry | None,
) -> str:
    return first_some(
        lambda: top_country(countries),
        lambda: knowledge.region if knowledge else None,
    ) or DEFAULT_REGION


def _with_sponsor(ticker: str, **fields: Any) -> EtfRecord:
    sponsor = get_sponsor(ticker)
    if sponsor:
        fields["sponsored_by"] = sponsor.sponsored_by
        fields["sponsored_badge"] = sponsor.badge
    return EtfRecord(ticker=ticker, **fields)


class Reconciler:
    """Produce canonical records from a market-data source plus static tables."""

    def __init__(self, source: BaseMarketDataSource) -> None:
        self.source = source

    async def reconcile(
        self,
        listing: EtfListing,
        *,
        btc_entry: BtcFeedEntry | None = None,
        cached: EtfRecord | None = None,
        external_cusips: dict[str, str] | None = None,
    ) -> EtfRecord:
        """Reconcile one ticker for the sync path.

        Funds with a usable Bitcoin-feed entry take the spot-BTC shortcut;
        every other fund goes through holdings, info, countries and CUSIP
        lookup.
        """
        ticker = listing.symbol.upper()
        if btc_entry is not None and btc_entry.usable:
            return await self._reconcile_spot_btc(listing, btc_entry, cached, external_cusips)

        info, holdings, countries, lookup = await settle(
            self.source.get_info(ticker),
            self.source.get_holdings(ticker),
            self.source.get_country_weightings(ticker),
            self.source.get_cusip(ticker),
        )
        info = settled_or(info, None)
        holdings = settled_or(holdings, [])
        countries = settled_or(countries, [])
        lookup = settled_or(lookup, None)

        knowledge = get_knowledge(ticker)
        name = resolve_name(info, knowledge, listing.name, ticker)
        weight = resolve_crypto_weight(cached, crypto_weight_from_holdings(holdings), knowledge)

        return _with_sponsor(
            ticker,
            name=name,
            region=resolve_region(countries, knowledge),
            crypto_weight=weight,
            crypto_exposure=resolve_crypto_exposure(cached, knowledge, name),
            cusip=resolve_cusip(
                ticker,
                cached=cached,
                info=info,
                lookup=lookup,
                knowledge=knowledge,
                external=external_cusips,
            ),
            digital_asset_indicator=is_digital_asset(weight, knowledge, listing.name),
        )

    async def _reconcile_spot_btc(
        self,
        listing: EtfListing,
        btc_entry: BtcFeedEntry,
        cached: EtfRecord | None,
        external_cusips: dict[str, str] | None,
    ) -> EtfRecord:
        ticker = listing.symbol.upper()
        info, lookup = await settle(
            self.source.get_info(ticker),
            self.source.get_cusip(ticker),
        )
        info = settled_or(info, None)
        lookup = settled_or(lookup, None)
        knowledge = get_knowledge(ticker)

        return _with_sponsor(
            ticker,
            name=resolve_name(info, knowledge, listing.name, ticker),
            region=knowledge.region if knowledge else DEFAULT_REGION,
            crypto_weight=SPOT_BTC_WEIGHT,
            crypto_exposure="BTC",
            cusip=resolve_cusip(
                ticker,
                cached=cached,
                info=info,
                lookup=lookup,
                knowledge=knowledge,
                external=external_cusips,
            ),
            digital_asset_indicator=True,
            btc_holdings=round(btc_entry.holdings, 2),
        )

    def fallback_record(
        self,
        listing: EtfListing,
        *,
        btc_entry: BtcFeedEntry | None = None,
        external_cusips: dict[str, str] | None = None,
    ) -> EtfRecord:
        """Knowledge-base-only record used when a ticker's reconciliation fails."""
        ticker = listing.symbol.upper()
        knowledge = get_knowledge(ticker)
        name = resolve_name(None, knowledge, listing.name, ticker)
        cusip = resolve_cusip(ticker, knowledge=knowledge, external=external_cusips)

        if btc_entry is not None and btc_entry.usable:
            return _with_sponsor(
                ticker,
                name=name,
                region=knowledge.region if knowledge else DEFAULT_REGION,
                crypto_weight=SPOT_BTC_WEIGHT,
                crypto_exposure="BTC",
                cusip=cusip,
                digital_asset_indicator=True,
                btc_holdings=round(btc_entry.holdings, 2),
            )

        weight = _clamp_weight(knowledge.crypto_weight if knowledge else 0.0)
        return _with_sponsor(
            ticker,
            name=name,
            region=knowledge.region if knowledge else DEFAULT_REGION,
            crypto_weight=weight,
            crypto_exposure=resolve_crypto_exposure(None, knowledge, name),
            cusip=cusip,
            digital_asset_indicator=is_digital_asset(weight, knowledge, listing.name),
        )

    # ------------------------------------------------------------- detail

    async def detail(
        self,
        symbol: str,
        *,
        cached: EtfRecord | None = None,
        extended: bool = False,
    ) -> EtfDetail:
        """Lighter reconciliation for the on-demand detail path.

        The cached snapshot row outranks live data for weight, exposure and
        CUSIP; live calls supply the quote and holdings.
        """
        ticker = symbol.upper()
        quote, holdings, info, lookup = await settle(
            self.source.get_quote(ticker),
            self.source.get_holdings(ticker),
            self.source.get_info(ticker),
            self.source.get_cusip(ticker),
        )
        quote = settled_or(quote, None)
        holdings = settled_or(holdings, [])
        info = settled_or(info, None)
        lookup = settled_or(lookup, None)

        knowledge = get_knowledge(ticker)
        display_name = first_some(
            lambda: as_text(quote.get("name")) or None if isinstance(quote, dict) else None,
            lambda: (info.name or None) if info else None,
            lambda: knowledge.name if knowledge else None,
        ) or ticker

        detail = EtfDetail(
            symbol=ticker,
            quote=quote,
            holdings=list(holdings),
            crypto_weight=resolve_crypto_weight(
                cached, crypto_weight_from_holdings(holdings), knowledge,
            ),
            crypto_exposure=resolve_crypto_exposure(cached, knowledge, display_name),
            cusip=resolve_cusip(
                ticker, cached=cached, info=info, lookup=lookup, knowledge=knowledge,
            ),
            extended=extended,
        )
        self._apply_sponsor(detail, cached)

        if extended:
            countries, sectors, chart, news = await settle(
                self.source.get_country_weightings(ticker),
                self.source.get_sector_weightings(ticker),
                self.source.get_historical_prices(ticker, DETAIL_CHART_DAYS),
                self.source.get_news(ticker, DETAIL_NEWS_LIMIT),
            )
            detail.info = info
            detail.country_weightings = list(settled_or(countries, []))
            detail.sector_weightings = list(settled_or(sectors, []))
            detail.chart = list(settled_or(chart, []))
            detail.news = list(settled_or(news, []))

        if quote is None and not holdings and info is None:
            logger.info("detail_without_live_data", ticker=ticker, cached=cached is not None)
            detail.error = f"No live market data available for {ticker}"
        return detail

    def fallback_detail(
        self,
        symbol: str,
        *,
        cached: EtfRecord | None = None,
        extended: bool = False,
        error: str,
    ) -> EtfDetail:
        """Detail built only from the snapshot row and static tables."""
        ticker = symbol.upper()
        knowledge = get_knowledge(ticker)
        detail = EtfDetail(
            symbol=ticker,
            crypto_weight=resolve_crypto_weight(cached, 0.0, knowledge),
            crypto_exposure=resolve_crypto_exposure(cached, knowledge, ticker),
            cusip=resolve_cusip(ticker, cached=cached, knowledge=knowledge),
            extended=extended,
            error=error,
        )
        self._apply_sponsor(detail, cached)
        return detail

    @staticmethod
    def _apply_sponsor(detail: EtfDetail, cached: EtfRecord | None) -> None:
        if cached and cached.sponsored_by:
            detail.sponsored_by = cached.sponsored_by
            detail.sponsored_badge = cached.sponsored_badge
            return
        sponsor = get_sponsor(detail.symbol)
        if sponsor:
            detail.sponsored_by = sponsor.sponsored_by
            detail.sponsored_badge = sponsor.badge
