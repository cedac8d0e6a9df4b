"""Prometheus exposition of PCIe link negotiation state."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.metrics_core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from pcie_exporter.backends import SysfsAccess
from pcie_exporter.devices import SPEED_TOLERANCE, Device, read_devices
from pcie_exporter.errors import ScrapeError

logger = logging.getLogger(__name__)

DEVICE_LABELS = [
    "device",
    "vendor_id",
    "device_id",
    "class",
    "current_link_speed",
    "max_link_speed",
    "current_link_width",
    "max_link_width",
]


class ScrapeCounters:
    """Process-wide scrape totals, safe to share between request threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._scrapes = 0
        self._errors = 0

    def record(self, success: bool) -> None:
        """Count one scrape, and one error if it failed."""
        with self._lock:
            self._scrapes += 1
            if not success:
                self._errors += 1

    @property
    def scrapes(self) -> int:
        with self._lock:
            return self._scrapes

    @property
    def errors(self) -> int:
        with self._lock:
            return self._errors


@dataclass(frozen=True)
class ScrapeResult:
    """Outcome of one device scrape."""

    devices: list[Device]
    duration_seconds: float
    error: ScrapeError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def scrape_devices(
    sysfs_root: str,
    counters: ScrapeCounters,
    fs: SysfsAccess | None = None,
    *,
    speed_tolerance: float = SPEED_TOLERANCE,
) -> ScrapeResult:
    """Read devices once, timing the scrape and updating counters.

    Scrape failures are captured in the result rather than raised.
    """
    start = time.perf_counter()
    error: ScrapeError | None = None
    devices: list[Device] = []
    try:
        devices = read_devices(sysfs_root, fs, speed_tolerance=speed_tolerance)
    except ScrapeError as e:
        logger.warning("Scrape of %s failed: %s", sysfs_root, e)
        error = e
    duration = time.perf_counter() - start

    counters.record(error is None)
    return ScrapeResult(devices=devices, duration_seconds=duration, error=error)


def _label_values(device: Device) -> list[str]:
    return [
        device.address,
        device.vendor_id,
        device.device_id,
        device.class_code,
        device.current_link_speed,
        device.max_link_speed,
        device.current_link_width,
        device.max_link_width,
    ]


class DeviceCollector(Collector):
    """Collector exposing one scrape result plus the process counters."""

    def __init__(self, result: ScrapeResult, counters: ScrapeCounters) -> None:
        self.result = result
        self.counters = counters

    def collect(self) -> Iterator[Metric]:
        yield GaugeMetricFamily(
            "pcie_devices_total",
            "Number of PCIe devices with link data in sysfs.",
            value=len(self.result.devices),
        )

        negotiated = GaugeMetricFamily(
            "pcie_link_negotiated_ok",
            "Whether negotiated PCIe link speed and width match maximum supported values.",
            labels=DEVICE_LABELS,
        )
        speed_ratio = GaugeMetricFamily(
            "pcie_link_speed_ratio",
            "Negotiated link speed divided by max supported link speed.",
            labels=DEVICE_LABELS,
        )
        width_ratio = GaugeMetricFamily(
            "pcie_link_width_ratio",
            "Negotiated link width divided by max supported link width.",
            labels=DEVICE_LABELS,
        )
        for device in self.result.devices:
            labels = _label_values(device)
            negotiated.add_metric(labels, 1 if device.negotiated_ok else 0)
            # Undefined ratios are omitted rather than exported as NaN
            if device.speed_ratio is not None:
                speed_ratio.add_metric(labels, device.speed_ratio)
            if device.width_ratio is not None:
                width_ratio.add_metric(labels, device.width_ratio)
        yield negotiated
        yield speed_ratio
        yield width_ratio

        yield CounterMetricFamily(
            "pcie_exporter_scrapes_total",
            "Total number of metrics scrapes.",
            value=self.counters.scrapes,
        )
        yield CounterMetricFamily(
            "pcie_exporter_scrape_errors_total",
            "Total number of scrape-level errors.",
            value=self.counters.errors,
        )
        yield GaugeMetricFamily(
            "pcie_exporter_last_scrape_duration_seconds",
            "Duration of the most recent scrape in seconds.",
            value=self.result.duration_seconds,
        )
        yield GaugeMetricFamily(
            "pcie_exporter_last_scrape_success",
            "Whether the most recent scrape succeeded.",
            value=1 if self.result.success else 0,
        )


def escape_comment_value(value: str) -> str:
    """Escape backslashes, quotes and newlines for a single-line comment."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def render_metrics(result: ScrapeResult, counters: ScrapeCounters) -> bytes:
    """Render a scrape as Prometheus text exposition.

    A failed scrape still renders the process counters, followed by a
    "# pcie_exporter_error" comment carrying the error message.
    """
    registry = CollectorRegistry()
    registry.register(DeviceCollector(result, counters))
    output = generate_latest(registry)
    if result.error is not None:
        comment = f"# pcie_exporter_error {escape_comment_value(str(result.error))}\n"
        output += comment.encode("utf-8")
    return output
