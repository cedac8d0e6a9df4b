"""PCIe generation bandwidth table.

Static reference data mapping a PCIe generation and lane count to the
theoretical single-direction throughput. The table is lazy-initialized on
first access.

Example usage:
    >>> from pcie_exporter.bandwidth import throughput_gbps, version_for_speed
    >>> round(throughput_gbps("4.0", 16), 6)
    31.507696
    >>> version_for_speed("8.0 GT/s PCIe").version
    '3.0'
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pcie_exporter.bandwidth.models import LANE_COUNTS, PCIeGen, VersionBandwidth
from pcie_exporter.parsing import parse_leading_float

if TYPE_CHECKING:
    from pcie_exporter.bandwidth._registry import BandwidthTable

__all__ = [
    # Models
    "LANE_COUNTS",
    "PCIeGen",
    "VersionBandwidth",
    # Lookup functions
    "get_table",
    "lookup_version",
    "throughput_gbps",
    "version_for_speed",
]

# Lazy-initialized singleton table
_table: BandwidthTable | None = None


def get_table() -> BandwidthTable:
    """Get the bandwidth table singleton."""
    global _table
    if _table is None:
        from pcie_exporter.bandwidth._registry import BandwidthTable
        from pcie_exporter.bandwidth._versions import VERSIONS

        _table = BandwidthTable(VERSIONS)
    return _table


def lookup_version(version: str) -> VersionBandwidth | None:
    """Look up a generation entry by version label."""
    return get_table().lookup_version(version)


def throughput_gbps(version: str, lanes: int) -> float:
    """Theoretical single-direction throughput in GB/s.

    Args:
        version: PCIe version label, "1.0" through "5.0".
        lanes: Lane count, one of 1, 2, 4, 8, 16.

    Raises:
        ValueError: Naming the unsupported version or lane count.
    """
    return get_table().throughput_gbps(version, lanes)


def version_for_speed(speed: str) -> VersionBandwidth | None:
    """Map a sysfs link speed string ("16.0 GT/s PCIe") to its generation."""
    rate = parse_leading_float(speed)
    if rate is None:
        return None
    return get_table().lookup_rate(rate)
