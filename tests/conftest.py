"""Shared fixtures: fake sysfs trees on disk and in memory."""

from __future__ import annotations

from pathlib import Path

import pytest

from pcie_exporter.backends import MockSysfs


class SysfsTree:
    """Build a fake sysfs tree imitating the Linux symlink layout.

    Device directories nest under devices/pci0000:00/ following their
    upstream bridges, and bus/pci/devices/<bdf> symlinks point at them.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.bus = root / "bus" / "pci" / "devices"
        self.drivers = root / "bus" / "pci" / "drivers"
        self.bus.mkdir(parents=True)
        self.drivers.mkdir(parents=True)

    def add_device(
        self,
        chain: str,
        *,
        vendor: str | None = None,
        device: str | None = None,
        pci_class: str | None = None,
        label: str | None = None,
        driver: str | None = None,
        link: tuple[str, str, str, str] | None = None,
        bus_entry: bool = True,
    ) -> Path:
        """Create a device directory.

        Args:
            chain: Slash-separated addresses from topmost bridge to device.
            link: (current_speed, max_speed, current_width, max_width).
            bus_entry: Whether to add the bus/pci/devices symlink.
        """
        path = self.root / "devices" / "pci0000:00"
        for fragment in chain.split("/"):
            path = path / fragment
        path.mkdir(parents=True, exist_ok=True)

        attributes = {"vendor": vendor, "device": device, "class": pci_class, "label": label}
        if link is not None:
            attributes.update(
                current_link_speed=link[0],
                max_link_speed=link[1],
                current_link_width=link[2],
                max_link_width=link[3],
            )
        for name, value in attributes.items():
            if value is not None:
                (path / name).write_text(f"{value}\n")

        if driver is not None:
            driver_dir = self.drivers / driver
            driver_dir.mkdir(exist_ok=True)
            (path / "driver").symlink_to(driver_dir, target_is_directory=True)

        if bus_entry:
            (self.bus / chain.split("/")[-1]).symlink_to(path, target_is_directory=True)
        return path


@pytest.fixture
def sysfs_tree(tmp_path: Path) -> SysfsTree:
    """Empty fake sysfs tree."""
    return SysfsTree(tmp_path / "sys")


@pytest.fixture
def sample_sysfs(sysfs_tree: SysfsTree) -> SysfsTree:
    """Host bridge, root port with a degraded GPU, and a link-less NIC.

    Device reader sees 0000:00:01.0 (full link) and 0000:01:00.0 (half
    speed, half width); the others have no link attributes.
    """
    sysfs_tree.add_device(
        "0000:00:00.0",
        vendor="0x8086",
        device="0x1237",
        pci_class="0x060000",
    )
    sysfs_tree.add_device(
        "0000:00:01.0",
        vendor="0x8086",
        device="0x1234",
        pci_class="0x060400",
        link=("16.0 GT/s PCIe", "16.0 GT/s PCIe", "16", "16"),
    )
    sysfs_tree.add_device(
        "0000:00:01.0/0000:01:00.0",
        vendor="0x10de",
        device="0x2331",
        pci_class="0x030200",
        label="NVIDIA H100",
        driver="nvidia",
        link=("16.0 GT/s PCIe", "32.0 GT/s PCIe", "8", "16"),
    )
    sysfs_tree.add_device(
        "0000:02:00.0",
        vendor="0x15b3",
        device="0x1017",
        pci_class="0x020000",
    )
    return sysfs_tree


@pytest.fixture
def mock_sysfs() -> MockSysfs:
    """In-memory sysfs with one linked device under a bridge."""
    fs = MockSysfs()
    bridge = "/sys/devices/pci0000:00/0000:00:01.0"
    gpu = f"{bridge}/0000:01:00.0"
    for path, speed, width in ((bridge, "8.0 GT/s PCIe", "x4"), (gpu, "8.0 GT/s PCIe", "x4")):
        fs.add_file(f"{path}/current_link_speed", speed)
        fs.add_file(f"{path}/max_link_speed", speed)
        fs.add_file(f"{path}/current_link_width", width)
        fs.add_file(f"{path}/max_link_width", width)
    fs.add_file(f"{bridge}/vendor", "0x8086\n")
    fs.add_file(f"{bridge}/device", "0x1234\n")
    fs.add_file(f"{gpu}/vendor", "0x10de\n")
    fs.add_file(f"{gpu}/device", "0x2331\n")
    # Child listed before its parent
    fs.add_symlink("/sys/bus/pci/devices/0000:01:00.0", "../../../devices/pci0000:00/0000:00:01.0/0000:01:00.0")
    fs.add_symlink("/sys/bus/pci/devices/0000:00:01.0", "../../../devices/pci0000:00/0000:00:01.0")
    return fs
