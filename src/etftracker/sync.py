"""Sync job: rebuild the whole snapshot from the sources."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from enum import Enum

from etftracker.errors import SyncInProgressError
from etftracker.knowledge import KNOWN_CRYPTO_ETFS
from etftracker.log import get_logger
from etftracker.models.etf import EtfRecord
from etftracker.models.info import EtfListing
from etftracker.models.snapshot import Snapshot
from etftracker.reconcile import Reconciler
from etftracker.sources.base import BaseMarketDataSource, settle, settled_or
from etftracker.sources.btcetfdata import BtcEtfDataSource
from etftracker.sources.cusip_map import CusipMapSource
from etftracker.store import SnapshotStore

logger = get_logger(__name__)


class SyncState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SyncJob:
    """Fetch the ETF universe, reconcile each ticker, and replace the snapshot.

    Tickers are reconciled one at a time with ``request_delay_seconds``
    between them to stay under the market-data provider's per-minute limit.
    Only one run may be in flight; a second ``run()`` raises
    ``SyncInProgressError``.
    """

    def __init__(
        self,
        source: BaseMarketDataSource,
        feed: BtcEtfDataSource,
        cusip_map: CusipMapSource,
        store: SnapshotStore,
        reconciler: Reconciler | None = None,
        *,
        max_etfs: int = 50,
        request_delay_seconds: float = 0.9,
    ) -> None:
        self.source = source
        self.feed = feed
        self.cusip_map = cusip_map
        self.store = store
        self.reconciler = reconciler if reconciler is not None else Reconciler(source)
        self.max_etfs = max_etfs
        self.request_delay_seconds = request_delay_seconds

        self.state = SyncState.IDLE
        self.last_error: str | None = None
        self.last_completed_at: datetime | None = None

    @property
    def running(self) -> bool:
        return self.state is SyncState.RUNNING

    async def run(self) -> Snapshot:
        if self.running:
            raise SyncInProgressError()

        self.state = SyncState.RUNNING
        self.last_error = None
        logger.info("sync_started", max_etfs=self.max_etfs)
        try:
            snapshot = await self._run()
        except Exception as exc:
            self.state = SyncState.FAILED
            self.last_error = str(exc) or type(exc).__name__
            logger.exception("sync_failed")
            raise

        self.state = SyncState.COMPLETED
        self.last_completed_at = snapshot.synced_at
        logger.info("sync_completed", count=snapshot.count)
        return snapshot

    async def _run(self) -> Snapshot:
        listings, btc_entries, external_cusips = await settle(
            self.source.get_etf_list(),
            self.feed.get_holdings(),
            self.cusip_map.get_map(),
        )
        listings = settled_or(listings, [])
        if not listings:
            logger.warning("etf_list_unavailable", fallback=len(KNOWN_CRYPTO_ETFS))
            listings = [EtfListing(symbol=t, name=t) for t in KNOWN_CRYPTO_ETFS]
        btc_entries = settled_or(btc_entries, {})
        external_cusips = settled_or(external_cusips, {})

        selected = listings[: self.max_etfs]
        records: list[EtfRecord] = []
        for i, listing in enumerate(selected):
            if i > 0 and self.request_delay_seconds > 0:
                await asyncio.sleep(self.request_delay_seconds)

            btc_entry = btc_entries.get(listing.symbol.upper())
            try:
                record = await self.reconciler.reconcile(
                    listing, btc_entry=btc_entry, external_cusips=external_cusips,
                )
            except Exception as exc:
                logger.warning("ticker_reconcile_failed", ticker=listing.symbol, error=str(exc))
                record = self.reconciler.fallback_record(
                    listing, btc_entry=btc_entry, external_cusips=external_cusips,
                )
            records.append(record)

        # sorted() is stable, so equal weights keep listing order
        records = sorted(records, key=lambda r: -r.crypto_weight)
        snapshot = Snapshot(etfs=tuple(records), synced_at=datetime.now(timezone.utc))
        self.store.replace(snapshot)
        return snapshot
