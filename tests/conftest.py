"""Shared fixtures for etftracker tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

# Ensure src/ is on the path for editable-style imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from etftracker.cache import DetailCache
from etftracker.config import SourceType, TrackerConfig
from etftracker.models.etf import EtfRecord
from etftracker.models.holding import Holding
from etftracker.models.snapshot import Snapshot
from etftracker.sources.btcetfdata import BtcEtfDataSource
from etftracker.sources.cusip_map import CusipMapSource
from etftracker.sources.mock import MockSource
from etftracker.store import MemorySnapshotStore
from etftracker.tracker import EtfTracker


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def json_transport(routes: dict[str, object], status: int = 200) -> httpx.MockTransport:
    """MockTransport answering by URL path; unknown paths get 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path in routes:
            return httpx.Response(status, json=routes[request.url.path])
        return httpx.Response(404, json={"error": "not found"})

    return httpx.MockTransport(handler)


def offline_client() -> httpx.AsyncClient:
    """AsyncClient whose every request fails with 503."""
    return httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down")),
    )


@pytest.fixture
def mock_source() -> MockSource:
    return MockSource()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture
def offline_feed() -> BtcEtfDataSource:
    return BtcEtfDataSource(client=offline_client())


@pytest.fixture
def offline_cusip_map() -> CusipMapSource:
    return CusipMapSource(client=offline_client())


@pytest.fixture
def tracker_config() -> TrackerConfig:
    return TrackerConfig(
        source=SourceType.MOCK,
        request_delay_seconds=0,
        sync_interval_seconds=0,
    )


@pytest.fixture
def tracker(tracker_config, mock_source, offline_feed, offline_cusip_map, store, clock) -> EtfTracker:
    return EtfTracker(
        tracker_config,
        source=mock_source,
        feed=offline_feed,
        cusip_map=offline_cusip_map,
        store=store,
        cache=DetailCache(ttl_seconds=600, clock=clock),
    )


@pytest.fixture
def sample_holdings() -> list[Holding]:
    return [
        Holding(asset="COIN", name="Coinbase Global", symbol="COIN", weight_percentage=12.5),
        Holding(asset="AAPL", name="Apple Inc", symbol="AAPL", weight_percentage=5.0),
        Holding(asset="MSTR", name="MicroStrategy Inc", symbol="MSTR", weight_percentage=7.25),
    ]


@pytest.fixture
def sample_snapshot() -> Snapshot:
    return Snapshot(
        etfs=(
            EtfRecord("IBIT", "iShares Bitcoin Trust", crypto_weight=99.5,
                      crypto_exposure="BTC", cusip="46438F101",
                      digital_asset_indicator=True, btc_holdings=350000.25),
            EtfRecord("BLOK", "Amplify Transformational Data Sharing ETF", crypto_weight=25,
                      crypto_exposure="Blockchain equities", cusip="03208U303",
                      digital_asset_indicator=True),
            EtfRecord("ZZZZ", "Plain Fund"),
        ),
        synced_at=datetime(2024, 6, 3, 14, 0, tzinfo=timezone.utc),
    )
