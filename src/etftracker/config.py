"""ETF tracker configuration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SourceType(Enum):
    """Supported market-data source backends."""

    FMP = "fmp"
    MOCK = "mock"


@dataclass
class TrackerConfig:
    """Configuration for the tracker, its sync job and its HTTP surface.

    Attributes:
        source: Market-data backend used for quotes, holdings and info.
        fmp_api_key: Financial Modeling Prep API key. Without it every
            market-data call degrades and records come from the knowledge base.
        cusip_data_url: Optional URL of a ``{"TICKER": "CUSIP"}`` JSON map.
        sync_api_key: Shared secret required as a bearer token by ``POST /sync``.
        stripe_secret_key: Billing provider key (entitlement gating).
        stripe_price_id: Billing price identifier (entitlement gating).
        snapshot_path: JSON file holding the last synced snapshot.
        sync_interval_seconds: Period of the scheduled sync; 0 disables it.
        request_delay_seconds: Pause between tickers during a sync.
        max_etfs: Maximum number of tickers reconciled per sync.
        detail_cache_ttl_seconds: TTL for on-demand detail responses.
        request_timeout_seconds: Per-call timeout for external requests.
        log_level: Root log level.
        log_format: "console" or "json".
    """

    source: SourceType = SourceType.FMP
    fmp_api_key: str | None = None
    cusip_data_url: str | None = None
    sync_api_key: str | None = None
    stripe_secret_key: str | None = None
    stripe_price_id: str | None = None

    snapshot_path: str = "data/etfs.json"
    sync_interval_seconds: float = 3600.0
    request_delay_seconds: float = 0.9
    max_etfs: int = 50
    detail_cache_ttl_seconds: float = 600.0
    request_timeout_seconds: float = 8.0

    log_level: str = "INFO"
    log_format: str = "console"

    @property
    def fmp_key_set(self) -> bool:
        return bool((self.fmp_api_key or "").strip())

    @property
    def billing_enabled(self) -> bool:
        """Entitlement gating is active only when the billing provider is configured."""
        return bool(self.stripe_secret_key and self.stripe_price_id)
