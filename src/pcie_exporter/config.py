"""Exporter configuration from YAML files, environment and flags."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from pcie_exporter.devices import SPEED_TOLERANCE
from pcie_exporter.sysfs import DEFAULT_SYSFS_ROOT

DEFAULT_LISTEN_ADDRESS = ":9808"
SYSFS_ROOT_ENV = "PCIE_EXPORTER_SYSFS"


@dataclass(frozen=True)
class ExporterConfig:
    """Runtime settings for the exporter."""

    listen_address: str = DEFAULT_LISTEN_ADDRESS
    sysfs_root: str = DEFAULT_SYSFS_ROOT
    speed_tolerance: float = SPEED_TOLERANCE
    log_level: str = "INFO"


def _parse_config(data: dict[str, Any]) -> ExporterConfig:
    """Parse a config mapping, rejecting unknown keys."""
    known = {f.name for f in fields(ExporterConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

    config = ExporterConfig()
    if "listen_address" in data:
        config = replace(config, listen_address=str(data["listen_address"]))
    if "sysfs_root" in data:
        config = replace(config, sysfs_root=str(data["sysfs_root"]))
    if "speed_tolerance" in data:
        tolerance = float(data["speed_tolerance"])
        if tolerance < 0:
            raise ValueError(f"speed_tolerance must be non-negative, got {tolerance}")
        config = replace(config, speed_tolerance=tolerance)
    if "log_level" in data:
        config = replace(config, log_level=str(data["log_level"]).upper())
    return config


def load_config(path: Path) -> ExporterConfig:
    """Load exporter configuration from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        ExporterConfig with file values over the defaults.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the file is not a mapping or has unknown keys.
    """
    with path.open() as f:
        data = yaml.safe_load(f)

    if data is None:
        return ExporterConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return _parse_config(data)


def resolve_sysfs_root(flag: str | None, config: ExporterConfig | None = None) -> str:
    """Pick the sysfs root: flag, then $PCIE_EXPORTER_SYSFS, then config file."""
    if flag:
        return flag
    from_env = os.environ.get(SYSFS_ROOT_ENV)
    if from_env:
        return from_env
    if config is not None:
        return config.sysfs_root
    return DEFAULT_SYSFS_ROOT


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split "host:port" (host optional, as in ":9808") into its parts.

    Raises:
        ValueError: If the port is missing or out of range.
    """
    host, sep, port_str = address.rpartition(":")
    if not sep:
        raise ValueError(f"Invalid listen address {address!r}: expected [host]:port")
    try:
        port = int(port_str)
    except ValueError:
        raise ValueError(f"Invalid listen address {address!r}: bad port {port_str!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"Invalid listen address {address!r}: port out of range")
    return host.strip("[]"), port
