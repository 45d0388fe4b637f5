"""
Pure checksum helpers for Teleinfo historical-mode data sets.

The checksum of a data set is the sum of the byte values of
``label + SEP + value`` (the separator that precedes the checksum byte is not
included), keeping the low six bits and shifting the result into the
printable range::

    checksum = (sum(label + SEP + value) & 0x3F) + 0x20

No side effects, no I/O.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

DEFAULT_SEPARATOR: str = "\t"
"""Separator between label, value and checksum."""


def compute_checksum(label: str, value: str, *, separator: str = DEFAULT_SEPARATOR) -> int:
    """Return the checksum byte value for a label/value pair.

    Args:
        label: Data-set label.
        value: Data-set value.
        separator: Byte placed between label and value on the wire.

    Returns:
        An integer in ``0x20..0x5F``.
    """
    total = sum((label + separator + value).encode("ascii"))
    return (total & 0x3F) + 0x20


def validate_checksum(
    label: str,
    value: str,
    checksum: int,
    *,
    separator: str = DEFAULT_SEPARATOR,
) -> bool:
    """Return True when *checksum* matches the label/value pair."""
    return compute_checksum(label, value, separator=separator) == checksum
