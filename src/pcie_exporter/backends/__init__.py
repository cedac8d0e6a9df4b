"""Filesystem access backends for sysfs readers."""

from pcie_exporter.backends.base import BaseSysfs, SysfsAccess
from pcie_exporter.backends.local import LocalSysfs
from pcie_exporter.backends.mock import MockSysfs

__all__ = [
    "BaseSysfs",
    "LocalSysfs",
    "MockSysfs",
    "SysfsAccess",
]
