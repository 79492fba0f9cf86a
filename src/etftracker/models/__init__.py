"""ETF tracker data models."""

from etftracker.models.detail import EtfDetail
from etftracker.models.etf import CUSIP_UNKNOWN, NO_EXPOSURE, EtfRecord
from etftracker.models.feed import BtcFeedEntry
from etftracker.models.holding import CountryWeighting, Holding, SectorWeighting
from etftracker.models.info import EtfInfo, EtfListing
from etftracker.models.knowledge import KnowledgeEntry
from etftracker.models.snapshot import Snapshot

__all__ = [
    "CUSIP_UNKNOWN",
    "NO_EXPOSURE",
    "BtcFeedEntry",
    "CountryWeighting",
    "EtfDetail",
    "EtfInfo",
    "EtfListing",
    "EtfRecord",
    "Holding",
    "KnowledgeEntry",
    "SectorWeighting",
    "Snapshot",
]
