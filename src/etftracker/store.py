"""Snapshot store: a single slot holding the last synced snapshot.

The store has wholesale-replace semantics and no locking. Concurrent writers
are not coordinated here (the sync job refuses overlapping runs), so with
several processes the last writer wins.
"""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from etftracker.log import get_logger
from etftracker.models.snapshot import Snapshot

logger = get_logger(__name__)


class SnapshotStore(ABC):
    """Abstract snapshot slot."""

    @abstractmethod
    def load(self) -> Snapshot:
        """Return the stored snapshot, or an empty one if nothing is stored."""
        ...

    @abstractmethod
    def replace(self, snapshot: Snapshot) -> None:
        """Overwrite the slot with ``snapshot``."""
        ...


class MemorySnapshotStore(SnapshotStore):
    """In-process store, for tests and ephemeral runs."""

    def __init__(self, snapshot: Snapshot | None = None) -> None:
        self._snapshot = snapshot or Snapshot.empty()

    def load(self) -> Snapshot:
        return self._snapshot

    def replace(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot


class JsonSnapshotStore(SnapshotStore):
    """Snapshot persisted as one JSON file, rewritten atomically.

    Writes go to a temp file in the target directory followed by
    ``os.replace``, so readers see either the old or the new file.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> Snapshot:
        if not self.path.exists():
            return Snapshot.empty()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("snapshot_read_failed", path=str(self.path), error=str(exc))
            return Snapshot.empty()
        if not isinstance(raw, dict):
            logger.warning("snapshot_unexpected_shape", path=str(self.path))
            return Snapshot.empty()
        return Snapshot.from_dict(raw)

    def replace(self, snapshot: Snapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(snapshot.to_dict(), fh, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
