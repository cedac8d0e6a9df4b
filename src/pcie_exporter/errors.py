"""Fatal scrape errors.

Every error here aborts a whole scrape. Absent attributes and unparsable
link values are never errors; the readers absorb them into fallbacks.
"""


class ScrapeError(OSError):
    """Base class for errors that abort a sysfs scrape."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class EnumerationError(ScrapeError):
    """The device-bus directory could not be listed."""

    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(f"read pci devices from {path}: {cause}")
        self.path = path


class AttributeReadError(ScrapeError):
    """An attribute file exists but could not be read."""

    def __init__(self, address: str, attribute: str, cause: OSError) -> None:
        super().__init__(f"read {attribute} for {address}: {cause}")
        self.address = address
        self.attribute = attribute


class SymlinkResolutionError(ScrapeError):
    """A device directory could not be resolved to its canonical path."""

    def __init__(self, address: str, cause: OSError) -> None:
        super().__init__(f"resolve symlink for {address}: {cause}")
        self.address = address
