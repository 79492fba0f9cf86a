"""etftracker: crypto exposure tracker for exchange-traded funds.

Merges the FMP market-data API, the btcetfdata.com Bitcoin holdings feed,
an optional external CUSIP map and a static knowledge base into one record
per ETF, refreshed by a throttled sync job and served over HTTP.

Quick start::

    from etftracker import create_tracker_from_env
    tracker = create_tracker_from_env()
    snapshot = await tracker.sync()
    detail = await tracker.get_detail("IBIT", extended=True)
"""

from __future__ import annotations

import os

from etftracker.cache import DetailCache
from etftracker.config import SourceType, TrackerConfig
from etftracker.errors import SourceError, SyncInProgressError, TrackerError, TrackerErrorCode
from etftracker.models.detail import EtfDetail
from etftracker.models.etf import CUSIP_UNKNOWN, EtfRecord
from etftracker.models.snapshot import Snapshot
from etftracker.reconcile import Reconciler
from etftracker.store import JsonSnapshotStore, MemorySnapshotStore, SnapshotStore
from etftracker.sync import SyncJob, SyncState
from etftracker.tracker import EtfTracker

__version__ = "0.1.0"

__all__ = [
    # Tracker
    "EtfTracker",
    "create_tracker_from_env",
    "load_config_from_env",
    # Config
    "TrackerConfig",
    "SourceType",
    # Errors
    "TrackerError",
    "TrackerErrorCode",
    "SourceError",
    "SyncInProgressError",
    # Engine
    "Reconciler",
    "SyncJob",
    "SyncState",
    "DetailCache",
    # Storage
    "SnapshotStore",
    "JsonSnapshotStore",
    "MemorySnapshotStore",
    # Models
    "CUSIP_UNKNOWN",
    "EtfRecord",
    "EtfDetail",
    "Snapshot",
]


def load_config_from_env() -> TrackerConfig:
    """Build a ``TrackerConfig`` from env vars.

    Environment variables:
        FMP_API_KEY: Financial Modeling Prep API key.
        CUSIP_DATA_URL: URL of a ``{"TICKER": "CUSIP"}`` JSON map.
        SYNC_API_KEY: Bearer token required by ``POST /api/sync``.
        STRIPE_SECRET_KEY, STRIPE_PRICE_ID: Billing provider (entitlement gating).
        ETF_SOURCE: "fmp" or "mock" (default: "fmp").
        ETF_SNAPSHOT_PATH: Snapshot file (default: "data/etfs.json").
        ETF_SYNC_INTERVAL_SECONDS: Scheduled sync period (default: 3600).
        ETF_REQUEST_DELAY_SECONDS: Pause between tickers in a sync (default: 0.9).
        ETF_MAX_ETFS: Tickers per sync (default: 50).
        ETF_DETAIL_CACHE_TTL_SECONDS: Detail cache TTL (default: 600).
        ETF_REQUEST_TIMEOUT_SECONDS: Per-call timeout (default: 8).
        LOG_LEVEL: Root log level (default: "INFO").
        LOG_FORMAT: "console" or "json" (default: "console").
    """
    return TrackerConfig(
        source=SourceType(os.getenv("ETF_SOURCE", "fmp").strip().lower()),
        fmp_api_key=(os.getenv("FMP_API_KEY") or "").strip() or None,
        cusip_data_url=os.getenv("CUSIP_DATA_URL") or None,
        sync_api_key=os.getenv("SYNC_API_KEY") or None,
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY") or None,
        stripe_price_id=os.getenv("STRIPE_PRICE_ID") or None,
        snapshot_path=os.getenv("ETF_SNAPSHOT_PATH", "data/etfs.json"),
        sync_interval_seconds=float(os.getenv("ETF_SYNC_INTERVAL_SECONDS", "3600")),
        request_delay_seconds=float(os.getenv("ETF_REQUEST_DELAY_SECONDS", "0.9")),
        max_etfs=int(os.getenv("ETF_MAX_ETFS", "50")),
        detail_cache_ttl_seconds=float(os.getenv("ETF_DETAIL_CACHE_TTL_SECONDS", "600")),
        request_timeout_seconds=float(os.getenv("ETF_REQUEST_TIMEOUT_SECONDS", "8")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "console"),
    )


def create_tracker_from_env() -> EtfTracker:
    """Zero-config factory: reads sources, keys and tuning from env vars."""
    return EtfTracker(load_config_from_env())
