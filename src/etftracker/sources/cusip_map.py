"""Optional external ``{"TICKER": "CUSIP"}`` map served from a URL."""

from __future__ import annotations

import httpx

from etftracker.sources.base import DEFAULT_TIMEOUT, HttpJsonClient

CUSIP_LENGTH = 9


class CusipMapSource:
    """Load a ticker → CUSIP map from ``CUSIP_DATA_URL``.

    Only string values of exactly nine characters are kept. The map is
    memoized after the first successful load.
    """

    name = "cusip_map"

    def __init__(
        self,
        url: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.http = HttpJsonClient(timeout=timeout, client=client)
        self.http.name = self.name
        self._cached: dict[str, str] | None = None

    async def get_map(self) -> dict[str, str]:
        if not self.url:
            return {}
        if self._cached is not None:
            return self._cached

        payload = await self.http.get_json_or_none(self.url)
        if not isinstance(payload, dict):
            return {}
        self._cached = {
            str(k).upper(): v
            for k, v in payload.items()
            if isinstance(k, str) and isinstance(v, str) and len(v) == CUSIP_LENGTH
        }
        return self._cached

    async def aclose(self) -> None:
        await self.http.aclose()
