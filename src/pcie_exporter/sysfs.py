"""Shared sysfs walking helpers for the device and topology readers."""

import posixpath

from pcie_exporter.backends import SysfsAccess
from pcie_exporter.errors import AttributeReadError, EnumerationError

DEFAULT_SYSFS_ROOT = "/sys"


def devices_path(sysfs_root: str) -> str:
    """Return <sysfs_root>/bus/pci/devices."""
    return posixpath.join(sysfs_root, "bus", "pci", "devices")


def list_device_entries(fs: SysfsAccess, sysfs_root: str) -> tuple[str, list[str]]:
    """List the device-bus directory.

    Returns:
        Tuple of (devices directory path, entry names).

    Raises:
        EnumerationError: If the directory cannot be listed.
    """
    path = devices_path(sysfs_root)
    try:
        return path, fs.listdir(path)
    except OSError as e:
        raise EnumerationError(path, e) from e


def read_attribute(fs: SysfsAccess, device_dir: str, address: str, attribute: str) -> str | None:
    """Read one attribute file of a device.

    Returns:
        Trimmed text, or None if the attribute file is absent.

    Raises:
        AttributeReadError: If the file exists but cannot be read.
    """
    try:
        return fs.read_text(posixpath.join(device_dir, attribute))
    except OSError as e:
        raise AttributeReadError(address, attribute, e) from e
