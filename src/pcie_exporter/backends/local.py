"""Local filesystem backend."""

import logging
from pathlib import Path

from pcie_exporter.backends.base import BaseSysfs

logger = logging.getLogger(__name__)


class LocalSysfs(BaseSysfs):
    """Read sysfs attributes from the local filesystem.

    Works equally for the real /sys and for fixture trees that mimic its
    layout (bus/pci/devices/<bdf> symlinks into a devices/ hierarchy).
    """

    def listdir(self, path: str) -> list[str]:
        return [entry.name for entry in Path(path).iterdir()]

    def read_text(self, path: str) -> str | None:
        # Firmware strings (label) are not guaranteed to be valid UTF-8
        try:
            return Path(path).read_text(encoding="utf-8", errors="replace").strip()
        except FileNotFoundError:
            return None

    def realpath(self, path: str) -> str:
        try:
            return str(Path(path).resolve(strict=True))
        except RuntimeError as e:
            # Symlink loops raise RuntimeError before Python 3.13
            raise OSError(f"Cannot resolve {path}: {e}") from e

    def resolve_link(self, path: str) -> str | None:
        try:
            return str(Path(path).resolve(strict=True))
        except (OSError, RuntimeError) as e:
            logger.debug("Unresolvable link %s: %s", path, e)
            return None
