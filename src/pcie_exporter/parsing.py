"""Text helpers shared by the device and topology readers.

sysfs link attributes are free-form and vendor-dependent ("16.0 GT/s PCIe",
"8", "x16", "Unknown"), so everything here is tolerant: parse failures
return None instead of raising.
"""

import re

# Strict PCI address: DDDD:BB:DD.F with an octal function number
PCI_ADDRESS_PATTERN = re.compile(r"[0-9a-fA-F]{4}:[0-9a-fA-F]{2}:[0-9a-fA-F]{2}\.[0-7]")

_DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_DIGITS_PATTERN = re.compile(r"[0-9]+")


def is_pci_address(value: str) -> bool:
    """Check whether value is a strict DDDD:BB:DD.F address."""
    return PCI_ADDRESS_PATTERN.fullmatch(value) is not None


def validate_bdf(bdf: str) -> None:
    """Validate a user-supplied PCI address.

    Raises:
        ValueError: If bdf is not in DDDD:BB:DD.F form.
    """
    if not is_pci_address(bdf):
        raise ValueError(f"Invalid BDF format: {bdf!r} (expected DDDD:BB:DD.F)")


def parse_leading_float(value: str) -> float | None:
    """Parse the first whitespace-separated token as a decimal number.

    "16.0 GT/s PCIe" -> 16.0, "Unknown" -> None, "" -> None.
    """
    fields = value.split()
    if not fields:
        return None
    if _DECIMAL_PATTERN.fullmatch(fields[0]) is None:
        return None
    return float(fields[0])


def parse_first_int(value: str) -> int | None:
    """Parse the first run of decimal digits found anywhere in value.

    "x8" -> 8, "width16" -> 16, "n/a" -> None.
    """
    match = _DIGITS_PATTERN.search(value)
    if match is None:
        return None
    return int(match.group())


def trim_hex_prefix(value: str) -> str:
    """Strip whitespace and a leading 0x/0X from a hex ID."""
    return value.strip().removeprefix("0x").removeprefix("0X")


def format_width(width: str) -> str:
    """Normalize a link width to "x<N>" where possible.

    Values that carry no digits and no leading "x" pass through unchanged.
    """
    width = width.strip()
    if not width:
        return ""
    if width.lower().startswith("x"):
        return "x" + width.removeprefix("x").removeprefix("X")
    lanes = parse_first_int(width)
    if lanes is None:
        return width
    return f"x{lanes}"


def format_link_summary(speed: str, width: str) -> str:
    """Combine a link speed and width into one display string.

    Returns "unknown" when both are empty, the non-empty one alone when
    only one is present, and "<speed> <width>" otherwise.
    """
    speed = speed.strip()
    width = format_width(width)
    if not speed and not width:
        return "unknown"
    if not speed:
        return width
    if not width:
        return speed
    return f"{speed} {width}"
