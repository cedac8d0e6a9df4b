"""Metrics and topology adapters over the sysfs readers."""

from pcie_exporter.exporter.metrics import (
    DeviceCollector,
    ScrapeCounters,
    ScrapeResult,
    render_metrics,
    scrape_devices,
)
from pcie_exporter.exporter.tree import render_tree

__all__ = [
    "DeviceCollector",
    "ScrapeCounters",
    "ScrapeResult",
    "render_metrics",
    "render_tree",
    "scrape_devices",
]
