"""Mock backend for testing without a real sysfs tree."""

import errno
import os
import posixpath

from pcie_exporter.backends.base import BaseSysfs


class MockSysfs(BaseSysfs):
    """In-memory sysfs tree with files, directories and symlinks.

    Paths are absolute POSIX strings. Symlink targets may be absolute or
    relative to the directory holding the link, as on a real system.
    Listings keep insertion order so tests can control enumeration order.

    Attributes:
        files: Dict mapping canonical paths to file contents.
        dirs: Set of canonical directory paths.
        links: Dict mapping symlink paths to their targets.
        errors: Dict mapping paths to OSErrors raised on access.
    """

    MAX_SYMLINK_DEPTH = 40

    def __init__(self) -> None:
        self.files: dict[str, str] = {}
        self.dirs: set[str] = {"/"}
        self.links: dict[str, str] = {}
        self.errors: dict[str, OSError] = {}
        self._order: dict[str, None] = {}

    # --- Test setup ---

    def add_dir(self, path: str) -> None:
        """Create a directory and all of its parents."""
        path = posixpath.normpath(path)
        while path not in self.dirs:
            self.dirs.add(path)
            self._order[path] = None
            path = posixpath.dirname(path)

    def add_file(self, path: str, content: str) -> None:
        """Create a file, creating parent directories as needed."""
        path = posixpath.normpath(path)
        self.add_dir(posixpath.dirname(path))
        self.files[path] = content
        self._order[path] = None

    def add_symlink(self, path: str, target: str) -> None:
        """Create a symlink at path pointing to target."""
        path = posixpath.normpath(path)
        self.add_dir(posixpath.dirname(path))
        self.links[path] = target
        self._order[path] = None

    def set_error(self, path: str, error: OSError) -> None:
        """Make any access to path raise the given error."""
        self.errors[posixpath.normpath(path)] = error

    # --- SysfsAccess ---

    def listdir(self, path: str) -> list[str]:
        real = self._resolve(path)
        self._check_error(path, real)
        if real not in self.dirs:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
        return [
            posixpath.basename(entry)
            for entry in self._order
            if entry != real and posixpath.dirname(entry) == real
        ]

    def read_text(self, path: str) -> str | None:
        real = self._resolve(path)
        self._check_error(path, real)
        if real in self.files:
            return self.files[real].strip()
        if real in self.dirs:
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), path)
        return None

    def realpath(self, path: str) -> str:
        real = self._resolve(path)
        self._check_error(path, real)
        if real not in self.files and real not in self.dirs:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)
        return real

    def resolve_link(self, path: str) -> str | None:
        try:
            return self.realpath(path)
        except OSError:
            return None

    # --- Internals ---

    def _check_error(self, path: str, real: str) -> None:
        for key in (posixpath.normpath(path), real):
            if key in self.errors:
                raise self.errors[key]

    def _resolve(self, path: str, depth: int = 0) -> str:
        """Follow symlinks component by component."""
        if depth > self.MAX_SYMLINK_DEPTH:
            raise OSError(errno.ELOOP, os.strerror(errno.ELOOP), path)
        current = "/"
        for part in posixpath.normpath(path).split("/"):
            if not part:
                continue
            candidate = posixpath.join(current, part)
            target = self.links.get(candidate)
            if target is None:
                current = candidate
                continue
            if not posixpath.isabs(target):
                target = posixpath.join(current, target)
            current = self._resolve(target, depth + 1)
        return current
