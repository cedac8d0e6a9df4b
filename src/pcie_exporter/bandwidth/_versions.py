"""Bandwidth entries for PCIe generations 1.0 through 5.0.

Per-lane throughput in GB/s after line encoding:
8b/10b for Gen1/Gen2, 128b/130b for Gen3 onwards.
"""

from pcie_exporter.bandwidth.models import VersionBandwidth

VERSIONS: list[VersionBandwidth] = [
    VersionBandwidth.build("1.0", 2.5, 0.250000),
    VersionBandwidth.build("2.0", 5.0, 0.500000),
    VersionBandwidth.build("3.0", 8.0, 0.984615),
    VersionBandwidth.build("4.0", 16.0, 1.969231),
    VersionBandwidth.build("5.0", 32.0, 3.938462),
]
