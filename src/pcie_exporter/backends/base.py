"""Abstract base classes for sysfs access backends."""

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable


@runtime_checkable
class SysfsAccess(Protocol):
    """Protocol for read-only access to a sysfs-like tree.

    The device and topology readers only talk to the filesystem through
    this interface, so they can run against the real /sys, a fixture
    directory, or an in-memory tree.

    This is a structural typing Protocol - classes don't need to explicitly
    inherit from it, they just need to implement the methods.
    """

    def listdir(self, path: str) -> list[str]:
        """List entry names in a directory.

        Raises:
            OSError: If the directory cannot be listed.
        """
        ...

    def read_text(self, path: str) -> str | None:
        """Read a text attribute, stripped of surrounding whitespace.

        Returns:
            The trimmed contents, or None if the file does not exist.

        Raises:
            OSError: If the file exists but cannot be read.
        """
        ...

    def realpath(self, path: str) -> str:
        """Resolve a path to its canonical, symlink-free absolute form.

        Raises:
            OSError: If the path cannot be resolved.
        """
        ...

    def resolve_link(self, path: str) -> str | None:
        """Resolve a symlink to its canonical target.

        Returns:
            The resolved target, or None if the link is absent or broken.
        """
        ...


class BaseSysfs(ABC):
    """Abstract base class for sysfs access backends.

    Subclasses must implement all four read-only operations of the
    SysfsAccess protocol.
    """

    @abstractmethod
    def listdir(self, path: str) -> list[str]:
        """List entry names in a directory."""
        ...

    @abstractmethod
    def read_text(self, path: str) -> str | None:
        """Read a trimmed text attribute, None if absent."""
        ...

    @abstractmethod
    def realpath(self, path: str) -> str:
        """Resolve a path to its canonical form."""
        ...

    @abstractmethod
    def resolve_link(self, path: str) -> str | None:
        """Resolve a symlink target, None if absent or broken."""
        ...
