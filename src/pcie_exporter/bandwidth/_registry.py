"""Bandwidth table registry with indexed lookups."""

from __future__ import annotations

from collections.abc import Iterator

from pcie_exporter.bandwidth.models import VersionBandwidth

# Matching tolerance for transfer rates parsed from sysfs text
RATE_TOLERANCE = 1e-6


class BandwidthTable:
    """Table of PCIe generations with lookups by version and transfer rate.

    The table is populated at construction time and never modified.
    """

    def __init__(self, versions: list[VersionBandwidth]) -> None:
        """Initialize table with version entries.

        Args:
            versions: List of generation bandwidth entries.
        """
        self._by_version: dict[str, VersionBandwidth] = {v.version: v for v in versions}
        self._versions = list(versions)

    def lookup_version(self, version: str) -> VersionBandwidth | None:
        """Look up an entry by version label (e.g., "4.0")."""
        return self._by_version.get(version)

    def lookup_rate(self, transfer_rate_gtps: float) -> VersionBandwidth | None:
        """Look up an entry by transfer rate in GT/s (e.g., 16.0)."""
        for entry in self._versions:
            if abs(entry.transfer_rate_gtps - transfer_rate_gtps) < RATE_TOLERANCE:
                return entry
        return None

    def throughput_gbps(self, version: str, lanes: int) -> float:
        """Theoretical single-direction throughput for a version and lane count.

        Raises:
            ValueError: If the version or lane count is not in the table.
        """
        entry = self.lookup_version(version)
        if entry is None:
            raise ValueError(f"unsupported PCIe version {version!r}")
        throughput = entry.throughput_gbps.get(lanes)
        if throughput is None:
            raise ValueError(f"unsupported lane count {lanes}")
        return throughput

    @property
    def versions(self) -> list[VersionBandwidth]:
        """All entries, oldest generation first."""
        return list(self._versions)

    def __len__(self) -> int:
        return len(self._versions)

    def __iter__(self) -> Iterator[VersionBandwidth]:
        return iter(self._versions)
