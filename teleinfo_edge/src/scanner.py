"""
Data-set scanner: splits one frame body into label/value/checksum triples.

A frame body (the bytes between STX and ETX) is a run of data sets, each
shaped as::

    LF <label> SEP <value> SEP <checksum> CR

where SEP is a horizontal tab (the separator is configurable so that meters
emitting a space can be read too).  The checksum is the single byte before
CR; it is *not* validated here, only extracted.  Any byte other than TAB,
LF or CR is accepted in that position so that a corrupted checksum still
reaches validation.

Segments that do not match the grammar are reported as
:class:`~teleinfo_edge.src.errors.DatasetGrammarError` and skipped, and the
scan continues with the next LF-prefixed segment.

CHANGELOG:
- 2026-10-18: Initial creation
- 2026-10-18: Accept out-of-range checksum bytes; only delimiters are
  grammar errors

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Iterator

from teleinfo_edge.src.checksum import DEFAULT_SEPARATOR
from teleinfo_edge.src.errors import DatasetGrammarError, Reporter, log_event
from teleinfo_edge.src.models import DataSet

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LF: bytes = b"\n"
"""Start of a data set."""

CR: bytes = b"\r"
"""End of a data set."""

_DELIMITER_BYTES = frozenset(b"\t\n\r")
"""Bytes that can never be a checksum because they delimit the grammar."""

_PRINTABLE_MIN = 0x20
_PRINTABLE_MAX = 0x7E


def _is_printable(data: bytes) -> bool:
    return all(_PRINTABLE_MIN <= b <= _PRINTABLE_MAX for b in data)


# ---------------------------------------------------------------------------
# Single-segment parsing
# ---------------------------------------------------------------------------


def parse_segment(segment: bytes, *, separator: str = DEFAULT_SEPARATOR) -> DataSet:
    """Parse one data-set segment (leading LF already stripped).

    Args:
        segment: Bytes from just after LF up to and including CR.
        separator: Single-character field separator.

    Returns:
        The extracted :class:`DataSet`.

    Raises:
        DatasetGrammarError: If the segment does not match the grammar.
    """
    sep = separator.encode("ascii")

    if not segment.endswith(CR):
        raise DatasetGrammarError(segment, "missing CR terminator")
    body = segment[: -len(CR)]

    # Shortest valid body: one-byte label, SEP, empty value, SEP, checksum.
    if len(body) < 4:
        raise DatasetGrammarError(segment, "too short")

    checksum = body[-1]
    if checksum in _DELIMITER_BYTES:
        raise DatasetGrammarError(segment, "delimiter byte in checksum position")
    if body[-2:-1] != sep:
        raise DatasetGrammarError(segment, "missing separator before checksum")

    fields = body[:-2].split(sep)
    if len(fields) != 2:
        raise DatasetGrammarError(segment, f"expected 2 fields, got {len(fields)}")

    label, value = fields
    if not label:
        raise DatasetGrammarError(segment, "empty label")
    if not (_is_printable(label) and _is_printable(value)):
        raise DatasetGrammarError(segment, "non-printable character")

    return DataSet(label.decode("ascii"), value.decode("ascii"), checksum)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def scan_datasets(
    frame: bytes,
    *,
    separator: str = DEFAULT_SEPARATOR,
    report: Reporter | None = None,
) -> Iterator[DataSet]:
    """Lazily yield the data sets of one frame body.

    Malformed segments are handed to *report* and skipped.  Anything before
    the first LF is a malformed segment unless it is empty.

    Args:
        frame: Frame body, STX and ETX excluded.
        separator: Single-character field separator.
        report: Observability callback; defaults to
            :func:`~teleinfo_edge.src.errors.log_event`.

    Yields:
        One :class:`DataSet` per well-formed segment, in frame order.
    """
    if report is None:
        report = log_event

    leading, *segments = frame.split(LF)
    if leading:
        report(DatasetGrammarError(leading, "data before first LF"))

    for segment in segments:
        try:
            dataset = parse_segment(segment, separator=separator)
        except DatasetGrammarError as exc:
            report(exc)
            continue
        yield dataset
