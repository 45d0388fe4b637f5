"""
Error taxonomy for the Teleinfo decoding pipeline.

Every per-dataset and per-frame problem is represented by an exception class
but is *reported*, not raised: the pipeline components accept a ``report``
callable and hand it an instance, then carry on with the next dataset or
frame.  Only :class:`SourceExhaustedError` is ever raised to the consumer of a
record stream.

Errors (dataset or frame is dropped):
- FramingError: start/end markers out of order, frame too long, or the stream
  ended mid-frame.
- DatasetGrammarError: a segment does not match ``\\n LABEL SEP VALUE SEP CHK \\r``.
- ChecksumMismatchError: the checksum byte does not match label + value.
- IncompleteFrameError: fewer than ten known labels at the end of a frame.
- SourceExhaustedError: the byte source closed or failed.

Warnings (informational, assembly continues):
- DuplicateFieldWarning: a known label seen twice in one frame.
- UnknownFieldWarning: a label outside the ten known ones.

CHANGELOG:
- 2026-10-18: Initial creation
- 2026-10-18: Log a clean end of source at INFO

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)

Reporter = Callable[[Exception], None]
"""Observability channel: receives each error or warning instance."""


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TeleinfoError(Exception):
    """Base class for all Teleinfo pipeline errors."""


class FramingError(TeleinfoError):
    """A frame could not be delimited and was discarded.

    Attributes:
        reason: Short description of why the frame was dropped.
        discarded: Number of frame bytes thrown away.
    """

    def __init__(self, reason: str, discarded: int = 0) -> None:
        super().__init__(f"{reason} ({discarded} bytes discarded)")
        self.reason = reason
        self.discarded = discarded


class DatasetGrammarError(TeleinfoError):
    """A data-set segment does not match the expected grammar.

    Attributes:
        segment: The raw segment bytes, without the leading ``\\n``.
        reason: What was wrong with it.
    """

    def __init__(self, segment: bytes, reason: str) -> None:
        super().__init__(f"Malformed dataset {segment!r}: {reason}")
        self.segment = segment
        self.reason = reason


class ChecksumMismatchError(TeleinfoError):
    """A data set failed checksum validation.

    Attributes:
        label: Data-set label.
        value: Data-set value.
        expected: Checksum byte computed from label and value.
        received: Checksum byte carried on the wire.
    """

    def __init__(self, label: str, value: str, expected: int, received: int) -> None:
        super().__init__(
            f"Checksum mismatch for {label}={value!r}: "
            f"expected {chr(expected)!r}, received {chr(received)!r}"
        )
        self.label = label
        self.value = value
        self.expected = expected
        self.received = received


class IncompleteFrameError(TeleinfoError):
    """A frame ended without all known labels; no record was produced.

    Attributes:
        missing: Labels that were never set, in schema order.
    """

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(f"Incomplete frame, missing: {', '.join(self.missing)}")


class SourceExhaustedError(TeleinfoError):
    """The underlying byte source closed or failed; the stream is over."""


# ---------------------------------------------------------------------------
# Warnings
# ---------------------------------------------------------------------------


class TeleinfoWarning(UserWarning):
    """Base class for informational pipeline events."""


class DuplicateFieldWarning(TeleinfoWarning):
    """A known label appeared more than once in the same frame.

    The first value is kept; *dropped* is the value that was ignored.
    """

    def __init__(self, label: str, kept: str, dropped: str) -> None:
        super().__init__(f"Duplicate {label}: kept {kept!r}, dropped {dropped!r}")
        self.label = label
        self.kept = kept
        self.dropped = dropped


class UnknownFieldWarning(TeleinfoWarning):
    """A label outside the known schema was ignored."""

    def __init__(self, label: str, value: str) -> None:
        super().__init__(f"Unknown label {label}={value!r}")
        self.label = label
        self.value = value


# ---------------------------------------------------------------------------
# Default reporter
# ---------------------------------------------------------------------------


def log_event(event: Exception) -> None:
    """Log a pipeline event.

    Warnings go to DEBUG and a clean end of source to INFO; errors go to
    WARNING.
    """
    if isinstance(event, TeleinfoWarning):
        logger.debug("%s: %s", type(event).__name__, event)
    elif isinstance(event, SourceExhaustedError):
        logger.info("%s: %s", type(event).__name__, event)
    else:
        logger.warning("%s: %s", type(event).__name__, event)
