"""PCIe link health and topology exporter for Prometheus."""

__version__ = "0.1.0"
