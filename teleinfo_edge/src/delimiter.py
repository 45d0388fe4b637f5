"""
Frame delimiter: cuts a continuous TIC byte stream into frame bodies.

A frame starts with STX (0x02) and ends with ETX (0x03); the delimiter hands
out the bytes strictly between the two.  It is fed chunks of any size and
only keeps the in-progress frame between calls.

Resynchronisation rules:

- Bytes outside a frame (before the first STX, between ETX and the next STX)
  are dropped silently.
- STX inside an open frame: the partial frame is dropped with a
  :class:`~teleinfo_edge.src.errors.FramingError` and a new frame starts.
- EOT (0x04) inside an open frame: the meter aborted the transmission; the
  frame is dropped and the delimiter waits for the next STX.
- A frame longer than ``max_frame_size`` is dropped; the delimiter waits for
  the next STX.
- :meth:`FrameDelimiter.close` drops a frame left open at end of stream.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from teleinfo_edge.src.errors import FramingError, Reporter, log_event

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

STX: int = 0x02
"""Start of frame."""

ETX: int = 0x03
"""End of frame."""

EOT: int = 0x04
"""Transmission interrupted by the meter."""

DEFAULT_MAX_FRAME_SIZE: int = 1024
"""Upper bound on a frame body; a full historical frame is ~200 bytes."""


def _next_marker(data: bytes, start: int) -> int:
    """Return the index of the next STX, ETX or EOT at or after *start*, or -1."""
    hits = [i for i in (data.find(m, start) for m in (STX, ETX, EOT)) if i >= 0]
    return min(hits) if hits else -1


class FrameDelimiter:
    """Incremental STX/ETX frame splitter.

    Args:
        max_frame_size: Largest accepted frame body in bytes.
        report: Observability callback for :class:`FramingError`; defaults to
            :func:`~teleinfo_edge.src.errors.log_event`.
    """

    def __init__(
        self,
        *,
        max_frame_size: int = DEFAULT_MAX_FRAME_SIZE,
        report: Reporter | None = None,
    ) -> None:
        if max_frame_size < 1:
            raise ValueError("max_frame_size must be >= 1")
        self._max_frame_size = max_frame_size
        self._report = report if report is not None else log_event
        # None while outside a frame.
        self._buffer: bytearray | None = None

    @property
    def in_frame(self) -> bool:
        """True while a frame has been opened but not yet closed."""
        return self._buffer is not None

    def feed(self, data: bytes) -> list[bytes]:
        """Consume a chunk and return the frames it completed, in order.

        Args:
            data: Any number of raw bytes from the link, possibly empty.

        Returns:
            The frame bodies closed by this chunk (often empty).
        """
        frames: list[bytes] = []
        pos = 0
        size = len(data)

        while pos < size:
            if self._buffer is None:
                start = data.find(STX, pos)
                if start < 0:
                    break
                self._buffer = bytearray()
                pos = start + 1
                continue

            idx = _next_marker(data, pos)
            end = size if idx < 0 else idx
            self._buffer += data[pos:end]
            pos = end

            if len(self._buffer) > self._max_frame_size:
                self._drop(f"frame exceeds {self._max_frame_size} bytes")
                continue
            if idx < 0:
                break

            marker = data[idx]
            pos = idx + 1
            if marker == ETX:
                frames.append(bytes(self._buffer))
                self._buffer = None
            elif marker == STX:
                self._drop("start marker before end marker")
                self._buffer = bytearray()
            else:
                self._drop("transmission interrupted (EOT)")

        return frames

    def close(self) -> None:
        """Resolve the in-flight frame at end of stream.

        A frame still open is dropped with a :class:`FramingError`.
        """
        if self._buffer is not None:
            self._drop("stream ended mid-frame")

    def _drop(self, reason: str) -> None:
        discarded = len(self._buffer) if self._buffer is not None else 0
        self._buffer = None
        self._report(FramingError(reason, discarded))


def iter_frames(
    chunks: Iterable[bytes],
    *,
    max_frame_size: int = DEFAULT_MAX_FRAME_SIZE,
    report: Reporter | None = None,
) -> Iterator[bytes]:
    """Lazily yield frame bodies from an iterable of byte chunks.

    Example::

        for body in iter_frames(port.iter_chunks()):
            ...
    """
    delimiter = FrameDelimiter(max_frame_size=max_frame_size, report=report)
    for chunk in chunks:
        yield from delimiter.feed(chunk)
    delimiter.close()
