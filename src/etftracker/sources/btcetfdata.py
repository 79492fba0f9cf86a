"""Spot-Bitcoin ETF holdings from btcetfdata.com (free, no API key)."""

from __future__ import annotations

import httpx

from etftracker.log import get_logger
from etftracker.models.feed import BtcFeedEntry
from etftracker.normalize import as_float, as_text
from etftracker.sources.base import DEFAULT_TIMEOUT, HttpJsonClient

logger = get_logger(__name__)

BTCETFDATA_URL = "https://www.btcetfdata.com/v1/current.json"


class BtcEtfDataSource:
    """Fetch the current BTC holdings per fund.

    The feed payload is ``{"data": {TICKER: {...}}, "batch_ts": ...}``.
    Any failure yields an empty mapping.
    """

    name = "btcetfdata"

    def __init__(
        self,
        url: str = BTCETFDATA_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.http = HttpJsonClient(timeout=timeout, client=client)
        self.http.name = self.name

    async def get_holdings(self) -> dict[str, BtcFeedEntry]:
        payload = await self.http.get_json_or_none(self.url)
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            if payload is not None:
                logger.warning("btc_feed_unexpected_shape", url=self.url)
            return {}

        entries: dict[str, BtcFeedEntry] = {}
        for key, raw in payload["data"].items():
            if not isinstance(raw, dict):
                continue
            holdings = as_float(raw.get("holdings"))
            ticker = (as_text(raw.get("ticker")) or str(key)).upper()
            entries[ticker] = BtcFeedEntry(
                ticker=ticker,
                holdings=holdings if holdings is not None else 0.0,
                dt=as_text(raw.get("dt")),
                change=as_float(raw.get("change")) or 0.0,
                update_ts=as_text(raw.get("update_ts")),
                # An entry without a usable holdings figure is as good as an error.
                error=bool(raw.get("error")) or holdings is None,
            )
        return entries

    async def aclose(self) -> None:
        await self.http.aclose()
