"""Snapshot model: the full synced list of ETF records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from etftracker.models.etf import EtfRecord


@dataclass(frozen=True)
class Snapshot:
    """Reconciled ETF records plus the time of the sync that produced them.

    Attributes:
        etfs: Records sorted descending by crypto weight.
        synced_at: Completion time of the sync, None if never synced.
    """

    etfs: tuple[EtfRecord, ...] = field(default_factory=tuple)
    synced_at: datetime | None = None

    @property
    def count(self) -> int:
        return len(self.etfs)

    def find(self, ticker: str) -> EtfRecord | None:
        key = ticker.upper()
        for record in self.etfs:
            if record.ticker == key:
                return record
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "etfs": [r.to_dict() for r in self.etfs],
            "syncedAt": self.synced_at.isoformat() if self.synced_at else None,
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Snapshot:
        rows = raw.get("etfs")
        etfs = tuple(
            EtfRecord.from_dict(r) for r in (rows if isinstance(rows, list) else [])
            if isinstance(r, dict)
        )
        synced_at = None
        if isinstance(raw.get("syncedAt"), str):
            try:
                synced_at = datetime.fromisoformat(raw["syncedAt"].replace("Z", "+00:00"))
            except ValueError:
                synced_at = None
        return cls(etfs=etfs, synced_at=synced_at)

    @classmethod
    def empty(cls) -> Snapshot:
        return cls()
