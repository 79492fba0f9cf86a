"""Abstract base for market-data sources and the shared async HTTP plumbing."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import httpx

from etftracker.errors import SourceError, TrackerErrorCode
from etftracker.log import get_logger
from etftracker.models.holding import CountryWeighting, Holding, SectorWeighting
from etftracker.models.info import EtfInfo, EtfListing

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 8.0


class BaseMarketDataSource(ABC):
    """Abstract base for market-data sources.

    Every method is best-effort: implementations catch their own failures and
    return an empty value (``[]`` or ``None``) instead of raising. Callers can
    therefore fan out with ``asyncio.gather`` without guarding each call.
    """

    @abstractmethod
    async def get_etf_list(self) -> list[EtfListing]:
        """Crypto-related ETF universe, always including the known tickers."""
        ...

    @abstractmethod
    async def get_quote(self, symbol: str) -> dict[str, Any] | None:
        """Latest quote payload (price, change, volume...) or None."""
        ...

    @abstractmethod
    async def get_holdings(self, symbol: str) -> list[Holding]:
        ...

    @abstractmethod
    async def get_info(self, symbol: str) -> EtfInfo | None:
        ...

    @abstractmethod
    async def get_country_weightings(self, symbol: str) -> list[CountryWeighting]:
        ...

    async def get_sector_weightings(self, symbol: str) -> list[SectorWeighting]:
        return []

    async def get_news(self, symbol: str, limit: int = 5) -> list[dict[str, Any]]:
        return []

    async def get_historical_prices(self, symbol: str, days: int = 90) -> list[dict[str, Any]]:
        return []

    @abstractmethod
    async def get_cusip(self, symbol: str) -> str | None:
        """CUSIP found by searching the symbol, or None."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""


class HttpJsonClient:
    """Thin wrapper over ``httpx.AsyncClient`` that maps failures to ``SourceError``.

    ``get_json`` raises; the ``*_or_none`` helpers used by the public source
    methods never do.
    """

    name = "http"

    def __init__(
        self,
        base_url: str = "",
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self._client.get(url, params=params, timeout=self.timeout)
        except httpx.TimeoutException as exc:
            raise SourceError(
                f"{self.name} request timed out: {url}",
                code=TrackerErrorCode.TIMEOUT,
                retryable=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceError(
                f"{self.name} request failed: {exc}",
                code=TrackerErrorCode.PROVIDER_ERROR,
                retryable=True,
            ) from exc

        self._check_response(resp)
        try:
            return resp.json()
        except ValueError as exc:
            raise SourceError(
                f"{self.name} returned malformed JSON",
                code=TrackerErrorCode.BAD_PAYLOAD,
                retryable=True,
            ) from exc

    async def get_json_or_none(
        self, url: str, params: dict[str, Any] | None = None, **context: Any,
    ) -> Any:
        """Like ``get_json`` but logs and returns None on any failure."""
        try:
            return await self.get_json(url, params=params)
        except SourceError as exc:
            logger.warning(
                "source_request_failed",
                source=self.name,
                url=url,
                code=exc.code.value,
                error=str(exc),
                **context,
            )
            return None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _check_response(self, resp: httpx.Response) -> None:
        if resp.status_code == 429:
            raise SourceError(
                f"{self.name} rate limited",
                code=TrackerErrorCode.RATE_LIMITED,
                retryable=True,
            )
        if resp.status_code in (401, 403):
            raise SourceError(
                f"{self.name} authentication failed",
                code=TrackerErrorCode.AUTH_FAILED,
            )
        if resp.status_code == 404:
            raise SourceError(
                f"{self.name} resource not found",
                code=TrackerErrorCode.NOT_FOUND,
            )
        if resp.status_code >= 400:
            raise SourceError(
                f"{self.name} error {resp.status_code}: {resp.text[:200]}",
                code=TrackerErrorCode.PROVIDER_ERROR,
                retryable=resp.status_code >= 500,
            )


async def settle(*aws: Any) -> list[Any]:
    """Await all awaitables; exceptions come back as values instead of cancelling siblings."""
    return list(await asyncio.gather(*aws, return_exceptions=True))


def settled_or(value: Any, default: Any) -> Any:
    """Map a settled result to ``default`` when it is an exception or None."""
    if isinstance(value, BaseException) or value is None:
        return default
    return value
