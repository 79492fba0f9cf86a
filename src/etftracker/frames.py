"""pandas views over snapshots and holdings."""

from __future__ import annotations

import pandas as pd

from etftracker.models.holding import Holding
from etftracker.models.snapshot import Snapshot

SNAPSHOT_COLUMNS = [
    "ticker", "name", "region", "crypto_weight", "crypto_exposure",
    "cusip", "digital_asset", "btc_holdings", "sponsored_by",
]
HOLDING_COLUMNS = ["asset", "name", "symbol", "weight_percentage"]


def snapshot_to_frame(snapshot: Snapshot) -> pd.DataFrame:
    """One row per record, in snapshot order."""
    if not snapshot.etfs:
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

    records = []
    for r in snapshot.etfs:
        records.append(
            {
                "ticker": r.ticker,
                "name": r.name,
                "region": r.region,
                "crypto_weight": float(r.crypto_weight),
                "crypto_exposure": r.crypto_exposure,
                "cusip": r.cusip_display,
                "digital_asset": r.digital_asset_indicator,
                "btc_holdings": r.btc_holdings,
                "sponsored_by": r.sponsored_by,
            }
        )
    return pd.DataFrame(records, columns=SNAPSHOT_COLUMNS)


def holdings_to_frame(holdings: list[Holding]) -> pd.DataFrame:
    if not holdings:
        return pd.DataFrame(columns=HOLDING_COLUMNS)
    df = pd.DataFrame(
        [
            {
                "asset": h.asset,
                "name": h.name,
                "symbol": h.symbol,
                "weight_percentage": float(h.weight_percentage),
            }
            for h in holdings
        ],
        columns=HOLDING_COLUMNS,
    )
    return df.sort_values("weight_percentage", ascending=False, kind="stable").reset_index(drop=True)


def exposure_summary(snapshot: Snapshot) -> pd.DataFrame:
    """Fund count and mean crypto weight per exposure label."""
    df = snapshot_to_frame(snapshot)
    if df.empty:
        return pd.DataFrame(columns=["crypto_exposure", "funds", "mean_weight"])
    out = (
        df.groupby("crypto_exposure", sort=False)
        .agg(funds=("ticker", "count"), mean_weight=("crypto_weight", "mean"))
        .reset_index()
    )
    return out.sort_values("funds", ascending=False, kind="stable").reset_index(drop=True)
