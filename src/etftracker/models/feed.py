"""Bitcoin-holdings feed entry."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BtcFeedEntry:
    """Holdings of one spot-Bitcoin fund as published by btcetfdata.com.

    Attributes:
        ticker: Fund ticker.
        dt: Date of the holdings figure.
        holdings: BTC units held.
        change: Change in BTC units since the previous report.
        update_ts: Feed update timestamp.
        error: True when the feed could not refresh this fund.
    """

    ticker: str
    holdings: float
    dt: str = ""
    change: float = 0.0
    update_ts: str = ""
    error: bool = False

    @property
    def usable(self) -> bool:
        return not self.error
