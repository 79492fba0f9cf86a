"""Market-data source registry."""

from __future__ import annotations

import importlib

from etftracker.config import SourceType
from etftracker.sources.base import BaseMarketDataSource

# Lazy registry: classes are imported on demand.
SOURCE_CLASSES: dict[SourceType, str] = {
    SourceType.FMP: "etftracker.sources.fmp.FmpSource",
    SourceType.MOCK: "etftracker.sources.mock.MockSource",
}


def create_source(source_type: SourceType, **kwargs) -> BaseMarketDataSource:
    """Instantiate a source by type, forwarding kwargs to its constructor."""
    module_path, cls_name = SOURCE_CLASSES[source_type].rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls = getattr(module, cls_name)
    return cls(**kwargs)


__all__ = ["BaseMarketDataSource", "SOURCE_CLASSES", "create_source"]
