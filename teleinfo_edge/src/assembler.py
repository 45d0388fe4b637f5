"""
Frame assembler: turns the validated data sets of one frame into a record.

Each assembler lives for exactly one frame and moves through two states:
*collecting* (``add`` accepted) and *finalized* (``finalize`` called once).
A :class:`~teleinfo_edge.src.models.TeleinfoRecord` is only produced when
every label in :data:`~teleinfo_edge.src.labels.ALL_LABELS` was seen.

Policies:
- Repeated known label: the first value is kept, the later one is reported
  as :class:`~teleinfo_edge.src.errors.DuplicateFieldWarning` and dropped.
- Unknown label: reported as
  :class:`~teleinfo_edge.src.errors.UnknownFieldWarning` and ignored.
- Missing labels at finalize: reported as
  :class:`~teleinfo_edge.src.errors.IncompleteFrameError`, no record.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Iterable

from teleinfo_edge.src.errors import (
    DuplicateFieldWarning,
    IncompleteFrameError,
    Reporter,
    UnknownFieldWarning,
    log_event,
)
from teleinfo_edge.src.labels import ALL_LABELS, field_for_label
from teleinfo_edge.src.models import DataSet, TeleinfoRecord


class FrameAssembler:
    """Per-frame record builder.

    Args:
        report: Observability callback; defaults to
            :func:`~teleinfo_edge.src.errors.log_event`.
    """

    def __init__(self, *, report: Reporter | None = None) -> None:
        self._report = report if report is not None else log_event
        self._values: dict[str, str] = {}
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def missing(self) -> tuple[str, ...]:
        """Known labels not yet seen, in schema order."""
        return tuple(label for label in ALL_LABELS if label not in self._values)

    def add(self, dataset: DataSet) -> None:
        """Record one checksum-validated data set.

        Raises:
            RuntimeError: If the assembler was already finalized.
        """
        if self._finalized:
            raise RuntimeError("FrameAssembler already finalized")

        label, value = dataset.label, dataset.value
        if field_for_label(label) is None:
            self._report(UnknownFieldWarning(label, value))
            return
        if label in self._values:
            self._report(DuplicateFieldWarning(label, self._values[label], value))
            return
        self._values[label] = value

    def finalize(self) -> TeleinfoRecord | None:
        """Close the frame and build the record.

        Returns:
            The complete record, or ``None`` when labels are missing (an
            :class:`IncompleteFrameError` is reported in that case).

        Raises:
            RuntimeError: If called twice.
        """
        if self._finalized:
            raise RuntimeError("FrameAssembler already finalized")
        self._finalized = True

        missing = self.missing
        if missing:
            self._report(IncompleteFrameError(missing))
            return None

        return TeleinfoRecord(
            **{field_for_label(label): value for label, value in self._values.items()}
        )


def assemble(
    datasets: Iterable[DataSet],
    *,
    report: Reporter | None = None,
) -> TeleinfoRecord | None:
    """Build a record from the validated data sets of a single frame."""
    assembler = FrameAssembler(report=report)
    for dataset in datasets:
        assembler.add(dataset)
    return assembler.finalize()
