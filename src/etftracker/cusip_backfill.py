"""Offline CUSIP backfill: look up CUSIPs for a symbol list via FMP search.

Synchronous REST over ``requests``, one symbol at a time with a fixed
pause. The output is a ``{"TICKER": "CUSIP" | "—"}`` map, suitable for the
knowledge base or for serving as ``CUSIP_DATA_URL``.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Iterable

import requests

from etftracker.errors import TrackerError, TrackerErrorCode
from etftracker.log import get_logger
from etftracker.models.etf import CUSIP_UNKNOWN
from etftracker.normalize import as_text, extract_array
from etftracker.sources.fmp import FMP_BASE, cusip_from_isin

logger = get_logger(__name__)

BACKFILL_DELAY_SECONDS = 0.25

BACKFILL_SYMBOLS: tuple[str, ...] = (
    "IBIT", "BITB", "FBTC", "ARKB", "BRRR", "BTCW", "HODL", "BITO", "BITS", "BTF",
    "DEFI", "BLOK", "BITQ", "CRYP", "BTEK", "DAPP", "BLCN", "GBTC", "BTC", "BTCC",
    "ETCG", "ETHB", "BCHG", "GDLC", "OBTC", "SATO", "BKCH", "FINX", "KOIN", "CETH",
    "EETH", "ETHE", "ETHV", "ETHA", "QETH", "TETH", "WGMI", "BTCO", "BTGD", "BPI",
    "BITX", "BITI", "KRYP", "BETE", "CRPT", "BLKC", "DECO", "ARKF", "ETHW", "NEHI",
    "YETH", "XBCI", "YBIT", "EZBC",
)


class FmpCusipLookup:
    """Blocking FMP ``search-symbol`` client."""

    def __init__(
        self,
        api_key: str,
        *,
        session: requests.Session | None = None,
        base_url: str = FMP_BASE,
        timeout: float = 8.0,
    ) -> None:
        if not api_key:
            raise TrackerError(
                "FMP API key required. Set FMP_API_KEY env var or pass api_key.",
                code=TrackerErrorCode.AUTH_FAILED,
            )
        self.api_key = api_key
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def lookup(self, symbol: str) -> str | None:
        """Return the CUSIP for an exact symbol match, else None."""
        sym = symbol.upper()
        resp = self.session.get(
            f"{self.base_url}/stable/search-symbol",
            params={"query": sym, "apikey": self.api_key},
            timeout=self.timeout,
        )
        self._check_response(resp)
        for row in extract_array(resp.json(), "data"):
            if as_text(row.get("symbol")).upper() != sym:
                continue
            return as_text(row.get("cusip")) or cusip_from_isin(as_text(row.get("isin")))
        return None

    def _check_response(self, resp: Any) -> None:
        if resp.status_code == 429:
            raise TrackerError(
                "FMP rate limited",
                code=TrackerErrorCode.RATE_LIMITED,
                retryable=True,
            )
        if resp.status_code in (401, 403):
            raise TrackerError(
                "FMP authentication failed",
                code=TrackerErrorCode.AUTH_FAILED,
            )
        resp.raise_for_status()


def backfill_cusips(
    lookup: FmpCusipLookup,
    symbols: Iterable[str] = BACKFILL_SYMBOLS,
    *,
    delay_seconds: float = BACKFILL_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    on_result: Callable[[str, str], None] | None = None,
) -> dict[str, str]:
    """Look up each symbol in order; failures and misses map to "—"."""
    results: dict[str, str] = {}
    for sym in symbols:
        key = sym.upper()
        try:
            cusip = lookup.lookup(key)
        except (TrackerError, requests.RequestException, ValueError) as exc:
            logger.warning("cusip_lookup_failed", ticker=key, error=str(exc))
            cusip = None
        results[key] = cusip or CUSIP_UNKNOWN
        if on_result is not None:
            on_result(key, results[key])
        if delay_seconds > 0:
            sleep(delay_seconds)
    return results
