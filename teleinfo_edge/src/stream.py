"""
Record stream: raw TIC bytes in, validated Teleinfo records out.

Composes the pipeline stages for each frame, strictly in arrival order::

    byte chunks -> FrameDelimiter -> scan_datasets -> validate_checksum
                -> FrameAssembler -> TeleinfoRecord

The stream is a lazy, single-pass iterator.  It can be driven synchronously
(``for record in stream``) from an iterable of chunks, or asynchronously
(``async for record in stream``) from an iterable or async iterable of chunks.

Error policy:
- Dataset and frame errors are reported through the ``report`` callback and
  counted in :class:`StreamStats`; the stream moves on to the next frame.
- When the source ends, the in-flight frame is resolved and a
  :class:`~teleinfo_edge.src.errors.SourceExhaustedError` is reported once;
  iteration then stops.
- When the source raises :class:`OSError` (a serial failure, for instance),
  the in-flight frame is resolved and :class:`SourceExhaustedError` is
  raised once to the consumer.

CHANGELOG:
- 2026-10-18: Initial creation
- 2026-10-18: Validate checksums through validate_checksum; fold frame and
  record counts into the end-of-source notice

TODO:
- None
"""

from __future__ import annotations

from collections import Counter
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from dataclasses import dataclass, field

from teleinfo_edge.src.assembler import FrameAssembler
from teleinfo_edge.src.checksum import DEFAULT_SEPARATOR, compute_checksum, validate_checksum
from teleinfo_edge.src.delimiter import DEFAULT_MAX_FRAME_SIZE, FrameDelimiter
from teleinfo_edge.src.errors import (
    ChecksumMismatchError,
    FramingError,
    IncompleteFrameError,
    Reporter,
    SourceExhaustedError,
    log_event,
)
from teleinfo_edge.src.models import TeleinfoRecord
from teleinfo_edge.src.scanner import scan_datasets


@dataclass
class StreamStats:
    """Counters for one :class:`RecordStream`.

    Attributes:
        frames: Frames delimited and handed to the scanner.
        records: Records emitted.
        events: Reported events keyed by class name.
    """

    frames: int = 0
    records: int = 0
    events: Counter[str] = field(default_factory=Counter)

    @property
    def dropped_frames(self) -> int:
        """Frames that produced no record (framing or completeness errors)."""
        return self.events[FramingError.__name__] + self.events[IncompleteFrameError.__name__]


class RecordStream:
    """Lazy sequence of :class:`TeleinfoRecord` decoded from byte chunks.

    Args:
        source: Iterable or async iterable of ``bytes`` chunks of any size.
        report: Observability callback receiving every error and warning;
            defaults to :func:`~teleinfo_edge.src.errors.log_event`.
        separator: Field separator used by the meter.
        max_frame_size: Largest accepted frame body in bytes.

    Usage::

        with SerialSource(device="/dev/ttyAMA0") as port:
            for record in RecordStream(port.iter_chunks()):
                publisher.publish(record)
    """

    def __init__(
        self,
        source: Iterable[bytes] | AsyncIterable[bytes],
        *,
        report: Reporter | None = None,
        separator: str = DEFAULT_SEPARATOR,
        max_frame_size: int = DEFAULT_MAX_FRAME_SIZE,
    ) -> None:
        self._source = source
        self._report = report if report is not None else log_event
        self._separator = separator
        self._delimiter = FrameDelimiter(max_frame_size=max_frame_size, report=self._emit)
        self._iterator: Iterator[TeleinfoRecord] | None = None
        self._aiterator: AsyncIterator[TeleinfoRecord] | None = None
        self.stats = StreamStats()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process_frame(self, frame: bytes) -> TeleinfoRecord | None:
        """Decode one frame body (STX/ETX excluded) into a record.

        Returns:
            The record, or ``None`` when the frame was incomplete.
        """
        self.stats.frames += 1
        assembler = FrameAssembler(report=self._emit)

        for dataset in scan_datasets(frame, separator=self._separator, report=self._emit):
            if not validate_checksum(
                dataset.label, dataset.value, dataset.checksum, separator=self._separator
            ):
                expected = compute_checksum(dataset.label, dataset.value, separator=self._separator)
                self._emit(
                    ChecksumMismatchError(
                        dataset.label, dataset.value, expected, dataset.checksum
                    )
                )
                continue
            assembler.add(dataset)

        record = assembler.finalize()
        if record is not None:
            self.stats.records += 1
        return record

    def close(self) -> None:
        """Close the underlying source, if it can be closed.

        Iteration ends once the source notices, after the in-flight frame
        has been resolved.
        """
        close = getattr(self._source, "close", None)
        if callable(close):
            close()

    # ------------------------------------------------------------------
    # Iterator protocols
    # ------------------------------------------------------------------

    def __iter__(self) -> RecordStream:
        if not isinstance(self._source, Iterable):
            raise TypeError("Async byte source: use 'async for' on this stream")
        return self

    def __next__(self) -> TeleinfoRecord:
        if self._iterator is None:
            self._iterator = self._generate(iter(self._source))  # type: ignore[arg-type]
        return next(self._iterator)

    def __aiter__(self) -> RecordStream:
        return self

    async def __anext__(self) -> TeleinfoRecord:
        if self._aiterator is None:
            self._aiterator = self._agenerate()
        return await self._aiterator.__anext__()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _emit(self, event: Exception) -> None:
        self.stats.events[type(event).__name__] += 1
        self._report(event)

    def _feed(self, chunk: bytes) -> list[TeleinfoRecord]:
        records = []
        for frame in self._delimiter.feed(chunk):
            record = self.process_frame(frame)
            if record is not None:
                records.append(record)
        return records

    def _exhausted(self) -> None:
        self._delimiter.close()
        self._emit(
            SourceExhaustedError(
                f"byte source closed after {self.stats.frames} frames, "
                f"{self.stats.records} records"
            )
        )

    def _failed(self, exc: OSError) -> SourceExhaustedError:
        self._delimiter.close()
        return SourceExhaustedError(f"byte source failed: {exc}")

    def _generate(self, chunks: Iterator[bytes]) -> Iterator[TeleinfoRecord]:
        while True:
            try:
                chunk = next(chunks)
            except StopIteration:
                break
            except OSError as exc:
                raise self._failed(exc) from exc
            yield from self._feed(chunk)
        self._exhausted()

    async def _agenerate(self) -> AsyncIterator[TeleinfoRecord]:
        if not isinstance(self._source, AsyncIterable):
            for record in self._generate(iter(self._source)):
                yield record
            return

        chunks = aiter(self._source)
        while True:
            try:
                chunk = await anext(chunks)
            except StopAsyncIteration:
                break
            except OSError as exc:
                raise self._failed(exc) from exc
            for record in self._feed(chunk):
                yield record
        self._exhausted()
