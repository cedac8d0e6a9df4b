"""Data models for the PCIe bandwidth table."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

# Standard lane widths reported in the table
LANE_COUNTS = (1, 2, 4, 8, 16)


class PCIeGen(Enum):
    """PCIe generation (link speed)."""

    GEN1 = 1  # 2.5 GT/s
    GEN2 = 2  # 5.0 GT/s
    GEN3 = 3  # 8.0 GT/s
    GEN4 = 4  # 16.0 GT/s
    GEN5 = 5  # 32.0 GT/s

    def __str__(self) -> str:
        return f"Gen{self.value}"


@dataclass(frozen=True)
class VersionBandwidth:
    """Theoretical single-direction throughput of one PCIe generation.

    Values account for line encoding only, not for higher-layer protocol
    overhead. Throughput scales linearly with the lane count.
    """

    version: str  # e.g. "4.0"
    transfer_rate_gtps: float
    throughput_gbps: Mapping[int, float]

    @classmethod
    def build(cls, version: str, transfer_rate_gtps: float, x1_gbps: float) -> VersionBandwidth:
        """Build an entry from its single-lane throughput."""
        return cls(
            version=version,
            transfer_rate_gtps=transfer_rate_gtps,
            throughput_gbps=MappingProxyType({lanes: x1_gbps * lanes for lanes in LANE_COUNTS}),
        )

    @property
    def generation(self) -> PCIeGen:
        """Generation enum for this version ("4.0" -> Gen4)."""
        return PCIeGen(int(self.version.split(".")[0]))

    def format_specs(self) -> str:
        """Return a compact string like 'Gen4 16.0 GT/s'."""
        return f"{self.generation} {self.transfer_rate_gtps:.1f} GT/s"
