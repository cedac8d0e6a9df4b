"""PCIe device enumeration and link negotiation checks."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from typing import NamedTuple

from pcie_exporter.backends import LocalSysfs, SysfsAccess
from pcie_exporter.parsing import parse_first_int, parse_leading_float
from pcie_exporter.sysfs import list_device_entries, read_attribute

logger = logging.getLogger(__name__)

# Absorbs float rounding when comparing parsed link speeds
SPEED_TOLERANCE = 1e-9

LINK_ATTRIBUTES = (
    "current_link_speed",
    "max_link_speed",
    "current_link_width",
    "max_link_width",
)


@dataclass(frozen=True)
class Device:
    """One PCIe function with negotiated link information.

    Raw attribute values are kept verbatim for labelling. A ratio of None
    means the current/max values could not be compared numerically and
    were not identical strings either.
    """

    address: str
    vendor_id: str
    device_id: str
    class_code: str
    current_link_speed: str
    max_link_speed: str
    current_link_width: str
    max_link_width: str
    negotiated_ok: bool
    speed_ratio: float | None
    width_ratio: float | None


class LinkComparison(NamedTuple):
    """Result of comparing a current link value against its maximum."""

    ratio: float | None
    at_max: bool


def _compare_raw(current: str, maximum: str) -> LinkComparison:
    """Fall back to exact string equality when values don't parse."""
    if current and current == maximum:
        return LinkComparison(1.0, True)
    return LinkComparison(None, False)


def compare_speed(
    current: str,
    maximum: str,
    tolerance: float = SPEED_TOLERANCE,
) -> LinkComparison:
    """Compare current and maximum link speed strings.

    Uses the leading numeric token of each ("8.0 GT/s PCIe" -> 8.0).

    Args:
        current: Negotiated speed text.
        maximum: Maximum supported speed text.
        tolerance: Slack allowed when deciding the link runs at maximum.
    """
    current_value = parse_leading_float(current)
    max_value = parse_leading_float(maximum)
    if current_value is not None and max_value is not None and max_value > 0:
        return LinkComparison(current_value / max_value, current_value + tolerance >= max_value)
    return _compare_raw(current, maximum)


def compare_width(current: str, maximum: str) -> LinkComparison:
    """Compare current and maximum link width strings ("x8", "16", ...)."""
    current_value = parse_first_int(current)
    max_value = parse_first_int(maximum)
    if current_value is not None and max_value is not None and max_value > 0:
        return LinkComparison(current_value / max_value, current_value >= max_value)
    return _compare_raw(current, maximum)


def _read_device(
    fs: SysfsAccess,
    device_dir: str,
    address: str,
    speed_tolerance: float,
) -> Device | None:
    """Read a single device, or None if it exposes no link information."""
    link = {name: read_attribute(fs, device_dir, address, name) for name in LINK_ATTRIBUTES}
    if any(value is None for value in link.values()):
        logger.debug("Skipping %s: no link attributes", address)
        return None

    current_speed = link["current_link_speed"] or ""
    max_speed = link["max_link_speed"] or ""
    current_width = link["current_link_width"] or ""
    max_width = link["max_link_width"] or ""

    speed = compare_speed(current_speed, max_speed, speed_tolerance)
    width = compare_width(current_width, max_width)

    return Device(
        address=address,
        vendor_id=read_attribute(fs, device_dir, address, "vendor") or "",
        device_id=read_attribute(fs, device_dir, address, "device") or "",
        class_code=read_attribute(fs, device_dir, address, "class") or "",
        current_link_speed=current_speed,
        max_link_speed=max_speed,
        current_link_width=current_width,
        max_link_width=max_width,
        negotiated_ok=speed.at_max and width.at_max,
        speed_ratio=speed.ratio,
        width_ratio=width.ratio,
    )


def read_devices(
    sysfs_root: str,
    fs: SysfsAccess | None = None,
    *,
    speed_tolerance: float = SPEED_TOLERANCE,
) -> list[Device]:
    """Enumerate PCIe devices with link data under <sysfs_root>/bus/pci/devices.

    Devices missing any of the four link attributes are skipped. Any I/O
    failure aborts the whole scan; partial results are never returned.

    Args:
        sysfs_root: Root of the sysfs tree (normally "/sys").
        fs: Filesystem backend; defaults to the local filesystem.
        speed_tolerance: Slack for the at-maximum speed check.

    Returns:
        Devices sorted by bus address.

    Raises:
        EnumerationError: If the device directory cannot be listed.
        AttributeReadError: If an existing attribute cannot be read.
    """
    if fs is None:
        fs = LocalSysfs()

    path, entries = list_device_entries(fs, sysfs_root)

    devices: list[Device] = []
    for address in entries:
        device = _read_device(fs, posixpath.join(path, address), address, speed_tolerance)
        if device is not None:
            devices.append(device)

    return sorted(devices, key=lambda d: d.address)
