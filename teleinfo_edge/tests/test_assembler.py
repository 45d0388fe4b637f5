"""
Tests for the per-frame record assembler.

Verifies complete and incomplete finalization, keep-first duplicate policy,
unknown label handling, and the two-state lifecycle.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

import pytest
from teleinfo_edge.src.assembler import FrameAssembler, assemble
from teleinfo_edge.src.checksum import compute_checksum
from teleinfo_edge.src.errors import (
    DuplicateFieldWarning,
    IncompleteFrameError,
    UnknownFieldWarning,
)
from teleinfo_edge.src.models import DataSet, TeleinfoRecord


def _ds(label: str, value: str) -> DataSet:
    return DataSet(label, value, compute_checksum(label, value))


def _datasets(values: dict[str, str]) -> list[DataSet]:
    return [_ds(label, value) for label, value in values.items()]


class TestCompleteFrame:
    """All ten labels produce a record with the values verbatim."""

    def test_builds_record(self, full_values: dict[str, str]) -> None:
        events: list[Exception] = []

        record = assemble(_datasets(full_values), report=events.append)

        assert isinstance(record, TeleinfoRecord)
        assert record.adco == "012345678912"
        assert record.optarif == "BASE"
        assert record.isousc == "30"
        assert record.base == "002809718"
        assert record.ptec == "TH.."
        assert record.iinst == "002"
        assert record.imax == "090"
        assert record.papp == "00390"
        assert record.hhphc == "A"
        assert record.motdetat == "000000"
        assert events == []

    def test_order_does_not_matter(self, full_values: dict[str, str]) -> None:
        reversed_values = dict(reversed(list(full_values.items())))
        record = assemble(_datasets(reversed_values), report=lambda e: None)
        assert record is not None
        assert record.adco == full_values["ADCO"]


class TestIncompleteFrame:
    """A missing label yields no record and one IncompleteFrameError."""

    @pytest.mark.parametrize("missing", ["ADCO", "PAPP", "MOTDETAT"])
    def test_missing_label(self, missing: str, full_values: dict[str, str]) -> None:
        events: list[Exception] = []
        del full_values[missing]

        record = assemble(_datasets(full_values), report=events.append)

        assert record is None
        assert len(events) == 1
        assert isinstance(events[0], IncompleteFrameError)
        assert events[0].missing == (missing,)

    def test_empty_frame_lists_every_label(self) -> None:
        events: list[Exception] = []
        assert assemble([], report=events.append) is None
        assert len(events[0].missing) == 10  # type: ignore[attr-defined]


class TestDuplicateAndUnknown:
    """Duplicates keep the first value; unknown labels are ignored."""

    def test_duplicate_keeps_first(self, full_values: dict[str, str]) -> None:
        events: list[Exception] = []
        datasets = _datasets(full_values)
        datasets.insert(3, _ds("PAPP", "99999"))
        datasets.append(_ds("PAPP", "11111"))

        record = assemble(datasets, report=events.append)

        assert record is not None
        assert record.papp == "99999"
        assert len(events) == 2
        assert all(isinstance(e, DuplicateFieldWarning) for e in events)
        assert events[0].kept == "99999"  # type: ignore[attr-defined]
        assert events[0].dropped == "00390"  # type: ignore[attr-defined]

    def test_unknown_label_ignored(self, full_values: dict[str, str]) -> None:
        events: list[Exception] = []
        datasets = _datasets(full_values) + [_ds("ADPS", "045")]

        record = assemble(datasets, report=events.append)

        assert record is not None
        assert len(events) == 1
        assert isinstance(events[0], UnknownFieldWarning)
        assert events[0].label == "ADPS"  # type: ignore[attr-defined]

    def test_labels_are_case_sensitive(self, full_values: dict[str, str]) -> None:
        events: list[Exception] = []
        del full_values["ADCO"]
        datasets = _datasets(full_values) + [_ds("adco", "012345678912")]

        assert assemble(datasets, report=events.append) is None
        assert [type(e) for e in events] == [UnknownFieldWarning, IncompleteFrameError]


class TestLifecycle:
    """collecting -> finalized, once."""

    def test_add_after_finalize_raises(self) -> None:
        assembler = FrameAssembler(report=lambda e: None)
        assembler.finalize()
        assert assembler.finalized
        with pytest.raises(RuntimeError):
            assembler.add(_ds("ADCO", "012345678912"))

    def test_finalize_twice_raises(self) -> None:
        assembler = FrameAssembler(report=lambda e: None)
        assembler.finalize()
        with pytest.raises(RuntimeError):
            assembler.finalize()

    def test_missing_shrinks_as_labels_arrive(self) -> None:
        assembler = FrameAssembler(report=lambda e: None)
        assert "ADCO" in assembler.missing
        assembler.add(_ds("ADCO", "012345678912"))
        assert "ADCO" not in assembler.missing
        assert len(assembler.missing) == 9
