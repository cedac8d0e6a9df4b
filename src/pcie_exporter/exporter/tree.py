"""JSON rendering of the PCIe topology forest."""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import Any

from pcie_exporter.backends import SysfsAccess
from pcie_exporter.errors import ScrapeError
from pcie_exporter.topology import TreeNode, read_tree

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json; charset=utf-8"


def _dumps(payload: Any) -> bytes:
    return (json.dumps(payload, separators=(",", ":")) + "\n").encode("utf-8")


def tree_to_json(roots: list[TreeNode]) -> bytes:
    """Serialize a forest as a compact JSON array of root nodes."""
    return _dumps([root.to_dict() for root in roots])


def render_tree(sysfs_root: str, fs: SysfsAccess | None = None) -> tuple[HTTPStatus, bytes]:
    """Read the topology and render it for the HTTP layer.

    Returns:
        Tuple of (status, body). On failure the body is {"error": message}.
    """
    try:
        roots = read_tree(sysfs_root, fs)
    except ScrapeError as e:
        logger.warning("Topology read of %s failed: %s", sysfs_root, e)
        return HTTPStatus.INTERNAL_SERVER_ERROR, _dumps({"error": str(e)})
    return HTTPStatus.OK, tree_to_json(roots)
