"""
Data models for the Teleinfo pipeline.

Defines the :class:`DataSet` triple extracted from a frame body and the
:class:`TeleinfoRecord` pydantic model emitted once per complete frame.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict


class DataSet(NamedTuple):
    """One ``label / value / checksum`` group from a frame.

    Attributes:
        label: Label text, e.g. ``"PAPP"``.
        value: Value text exactly as sent, e.g. ``"00390"``.
        checksum: Checksum byte value as received (0x20..0x5F when valid).
    """

    label: str
    value: str
    checksum: int


class TeleinfoRecord(BaseModel):
    """A complete historical-mode Teleinfo frame.

    All ten fields are required and hold the raw text values verbatim; no
    unit conversion is applied.  Instances are immutable.

    Attributes:
        adco: Meter address (``ADCO``).
        optarif: Tariff option (``OPTARIF``).
        isousc: Subscribed current in A (``ISOUSC``).
        base: Base option index in Wh (``BASE``).
        ptec: Current tariff period (``PTEC``).
        iinst: Instantaneous current in A (``IINST``).
        imax: Peak current in A (``IMAX``).
        papp: Apparent power in VA (``PAPP``).
        hhphc: Peak/off-peak schedule (``HHPHC``).
        motdetat: Meter status word (``MOTDETAT``).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    adco: str
    optarif: str
    isousc: str
    base: str
    ptec: str
    iinst: str
    imax: str
    papp: str
    hhphc: str
    motdetat: str
