"""EtfTracker: central orchestrator for the snapshot, detail cache and sync job."""

from __future__ import annotations

from typing import Any

from etftracker.cache import DetailCache
from etftracker.config import SourceType, TrackerConfig
from etftracker.log import get_logger
from etftracker.models.detail import EtfDetail
from etftracker.models.snapshot import Snapshot
from etftracker.reconcile import Reconciler
from etftracker.sources import create_source
from etftracker.sources.base import BaseMarketDataSource
from etftracker.sources.btcetfdata import BtcEtfDataSource
from etftracker.sources.cusip_map import CusipMapSource
from etftracker.store import JsonSnapshotStore, SnapshotStore
from etftracker.sync import SyncJob

logger = get_logger(__name__)

ENDPOINTS = {
    "etfs": "/api/etfs",
    "etfDetail": "/api/etf/{ticker}",
    "etfDetailExtended": "/api/etf/{ticker}?extended=1",
    "sync": "/api/sync",
}


def describe_schedule(interval_seconds: float) -> str:
    if interval_seconds <= 0:
        return "disabled"
    if interval_seconds == 3600:
        return "hourly"
    return f"every {interval_seconds:g}s"


class EtfTracker:
    """Read paths serve the stored snapshot; writes go through the sync job.

    Usage::

        from etftracker import create_tracker_from_env
        tracker = create_tracker_from_env()
        snapshot = await tracker.sync()
        detail = await tracker.get_detail("IBIT", extended=True)
    """

    def __init__(
        self,
        config: TrackerConfig,
        *,
        source: BaseMarketDataSource | None = None,
        feed: BtcEtfDataSource | None = None,
        cusip_map: CusipMapSource | None = None,
        store: SnapshotStore | None = None,
        cache: DetailCache[EtfDetail] | None = None,
    ) -> None:
        self.config = config
        timeout = config.request_timeout_seconds

        if source is None:
            kwargs: dict[str, Any] = {}
            if config.source is SourceType.FMP:
                kwargs["api_key"] = config.fmp_api_key
                kwargs["timeout"] = timeout
            source = create_source(config.source, **kwargs)
        self.source = source
        self.feed = feed if feed is not None else BtcEtfDataSource(timeout=timeout)
        self.cusip_map = (
            cusip_map if cusip_map is not None
            else CusipMapSource(config.cusip_data_url, timeout=timeout)
        )
        self.store = store if store is not None else JsonSnapshotStore(config.snapshot_path)
        self.cache: DetailCache[EtfDetail] = (
            cache if cache is not None else DetailCache(config.detail_cache_ttl_seconds)
        )

        self.reconciler = Reconciler(self.source)
        self.sync_job = SyncJob(
            self.source,
            self.feed,
            self.cusip_map,
            self.store,
            self.reconciler,
            max_etfs=config.max_etfs,
            request_delay_seconds=config.request_delay_seconds,
        )

    # ------------------------------------------------------------- snapshot

    def list_etfs(self) -> Snapshot:
        return self.store.load()

    async def sync(self) -> Snapshot:
        """Run a full sync. Raises ``SyncInProgressError`` if one is running."""
        return await self.sync_job.run()

    # --------------------------------------------------------------- detail

    async def get_detail(self, symbol: str, extended: bool = False) -> EtfDetail:
        """Detail for one ticker: TTL cache, then live reconciliation.

        Never raises for missing data. If reconciliation itself fails the
        response is built from the snapshot row and static tables and is not
        cached.
        """
        ticker = symbol.strip().upper()
        hit = self.cache.get(ticker, extended)
        if hit is not None:
            return hit

        cached_row = self.store.load().find(ticker)
        try:
            detail = await self.reconciler.detail(ticker, cached=cached_row, extended=extended)
        except Exception as exc:
            logger.warning("detail_failed", ticker=ticker, error=str(exc))
            return self.reconciler.fallback_detail(
                ticker, cached=cached_row, extended=extended, error=str(exc) or type(exc).__name__,
            )

        self.cache.set(ticker, extended, detail)
        return detail

    # --------------------------------------------------------------- health

    def health(self) -> dict[str, Any]:
        snapshot = self.store.load()
        return {
            "ok": True,
            "etfCount": snapshot.count,
            "lastSync": snapshot.synced_at.isoformat() if snapshot.synced_at else None,
            "fmpKeySet": self.config.fmp_key_set,
            "syncSchedule": describe_schedule(self.config.sync_interval_seconds),
            "endpoints": dict(ENDPOINTS),
        }

    async def aclose(self) -> None:
        await self.source.aclose()
        await self.feed.aclose()
        await self.cusip_map.aclose()
