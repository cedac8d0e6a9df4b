"""PCIe topology reconstruction from sysfs paths.

sysfs does not expose a parent attribute for PCI functions. Instead the
canonical path of each device directory nests every upstream bridge:

    /sys/devices/pci0000:00/0000:00:01.0/0000:01:00.0

so the parent of a device is the PCI address immediately preceding its own
in that path.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from pcie_exporter.backends import LocalSysfs, SysfsAccess
from pcie_exporter.errors import SymlinkResolutionError
from pcie_exporter.parsing import format_link_summary, is_pci_address, trim_hex_prefix
from pcie_exporter.sysfs import list_device_entries, read_attribute

logger = logging.getLogger(__name__)


@dataclass
class TreeNode:
    """One device in the PCIe topology forest."""

    bus_id: str
    name: str
    link_capacity: str
    link_status: str
    children: list[TreeNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict, omitting empty children."""
        data: dict[str, Any] = {
            "bus_id": self.bus_id,
            "name": self.name,
            "link_capacity": self.link_capacity,
            "link_status": self.link_status,
        }
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


def pci_address_chain(path: str) -> list[str]:
    """Extract PCI addresses from a canonical path, topmost bridge first."""
    return [part.lower() for part in path.split("/") if is_pci_address(part)]


def parent_from_chain(chain: list[str], address: str) -> str | None:
    """Return the address preceding address in chain, or None for a root."""
    if len(chain) < 2:
        return None
    for index in range(len(chain) - 1, -1, -1):
        if chain[index] != address:
            continue
        if index == 0:
            return None
        return chain[index - 1]
    return None


def resolve_parent_address(fs: SysfsAccess, device_dir: str, address: str) -> str | None:
    """Find the upstream device of address from its canonical path.

    Raises:
        SymlinkResolutionError: If device_dir cannot be resolved.
    """
    try:
        resolved = fs.realpath(device_dir)
    except OSError as e:
        raise SymlinkResolutionError(address, e) from e
    return parent_from_chain(pci_address_chain(resolved), address)


def _read_driver_name(fs: SysfsAccess, device_dir: str) -> str | None:
    """Name of the bound driver, taken from the driver symlink target."""
    target = fs.resolve_link(posixpath.join(device_dir, "driver"))
    if target is None:
        return None
    name = posixpath.basename(target.rstrip("/")).strip()
    if name in ("", ".", "/"):
        return None
    return name


def read_device_name(fs: SysfsAccess, device_dir: str, address: str) -> str:
    """Pick a display name for a device.

    Priority: firmware label, bound driver, "vendor:device" IDs, then the
    bus address itself.
    """
    label = read_attribute(fs, device_dir, address, "label")
    if label:
        return label

    driver = _read_driver_name(fs, device_dir)
    if driver is not None:
        return driver

    vendor_id = trim_hex_prefix(read_attribute(fs, device_dir, address, "vendor") or "")
    device_id = trim_hex_prefix(read_attribute(fs, device_dir, address, "device") or "")
    if vendor_id or device_id:
        return f"{vendor_id}:{device_id}"

    return address


def _read_tree_node(fs: SysfsAccess, device_dir: str, address: str) -> TreeNode:
    name = read_device_name(fs, device_dir, address)

    current_speed = read_attribute(fs, device_dir, address, "current_link_speed") or ""
    max_speed = read_attribute(fs, device_dir, address, "max_link_speed") or ""
    current_width = read_attribute(fs, device_dir, address, "current_link_width") or ""
    max_width = read_attribute(fs, device_dir, address, "max_link_width") or ""

    return TreeNode(
        bus_id=address,
        name=name,
        link_capacity=format_link_summary(max_speed, max_width),
        link_status=format_link_summary(current_speed, current_width),
    )


def _in_cycle(address: str, parents: dict[str, str], nodes: dict[str, TreeNode]) -> bool:
    """Check whether following parent links from address leads back to it."""
    seen: set[str] = set()
    current = parents.get(address)
    while current is not None and current in nodes and current not in seen:
        if current == address:
            return True
        seen.add(current)
        current = parents.get(current)
    return False


def _sort_tree(nodes: list[TreeNode]) -> None:
    nodes.sort(key=lambda n: n.bus_id)
    for node in nodes:
        _sort_tree(node.children)


def read_tree(sysfs_root: str, fs: SysfsAccess | None = None) -> list[TreeNode]:
    """Build the PCIe topology forest from <sysfs_root>/bus/pci/devices.

    Devices whose parent is not itself enumerated become roots. Children
    and roots are sorted by bus address at every level.

    Args:
        sysfs_root: Root of the sysfs tree (normally "/sys").
        fs: Filesystem backend; defaults to the local filesystem.

    Returns:
        List of root nodes.

    Raises:
        EnumerationError: If the device directory cannot be listed.
        AttributeReadError: If an existing attribute cannot be read.
        SymlinkResolutionError: If a device directory cannot be resolved.
    """
    if fs is None:
        fs = LocalSysfs()

    path, entries = list_device_entries(fs, sysfs_root)

    # First pass: every node and its parent address, keyed by bus address
    nodes: dict[str, TreeNode] = {}
    parents: dict[str, str] = {}
    for entry in entries:
        address = entry.lower()
        device_dir = posixpath.join(path, entry)
        nodes[address] = _read_tree_node(fs, device_dir, address)
        parent = resolve_parent_address(fs, device_dir, address)
        if parent is not None:
            parents[address] = parent

    # Second pass: link children to parents that were enumerated too
    roots: list[TreeNode] = []
    for address, node in nodes.items():
        parent_node = nodes.get(parents.get(address, ""))
        if parent_node is not None and not _in_cycle(address, parents, nodes):
            parent_node.children.append(node)
        else:
            if address in parents:
                logger.debug("Treating %s as root, parent %s not attachable", address, parents[address])
            roots.append(node)

    _sort_tree(roots)
    return roots


def iter_tree(roots: Iterable[TreeNode], depth: int = 0) -> Iterator[tuple[int, TreeNode]]:
    """Walk the forest depth-first, yielding (depth, node)."""
    for node in roots:
        yield depth, node
        yield from iter_tree(node.children, depth + 1)


def find_node(roots: Iterable[TreeNode], bus_id: str) -> TreeNode | None:
    """Find a node anywhere in the forest by bus address."""
    bus_id = bus_id.lower()
    for _, node in iter_tree(roots):
        if node.bus_id == bus_id:
            return node
    return None
