"""
Teleinfo historical-mode label map -- single source of truth.

Defines the ten labels a single-phase "base" meter sends in every frame, the
record field each one feeds, its unit, and a short description.  The
assembler uses this map to decide which labels are known and when a frame is
complete; the record model declares one field per entry.

References:
    - Enedis-NOI-CPT_02E, "Sorties de télé-information client des appareils
      de comptage électroniques" (historical TIC)

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LabelDef:
    """Definition of a single Teleinfo label.

    Attributes:
        label: Label exactly as sent on the wire (case-sensitive).
        field: Attribute name on :class:`~teleinfo_edge.src.models.TeleinfoRecord`.
        unit: Engineering unit of the value, empty when it is a code.
        description: Free-text description of the value.
    """

    label: str
    field: str
    unit: str = ""
    description: str = ""


# ---------------------------------------------------------------------------
# Label definitions (wire order)
# ---------------------------------------------------------------------------

ADCO = LabelDef("ADCO", "adco", description="Meter address")
OPTARIF = LabelDef("OPTARIF", "optarif", description="Tariff option")
ISOUSC = LabelDef("ISOUSC", "isousc", "A", "Subscribed current")
BASE = LabelDef("BASE", "base", "Wh", "Base option index")
PTEC = LabelDef("PTEC", "ptec", description="Current tariff period")
IINST = LabelDef("IINST", "iinst", "A", "Instantaneous current")
IMAX = LabelDef("IMAX", "imax", "A", "Peak current")
PAPP = LabelDef("PAPP", "papp", "VA", "Apparent power, rounded to 10 VA")
HHPHC = LabelDef("HHPHC", "hhphc", description="Peak/off-peak schedule")
MOTDETAT = LabelDef("MOTDETAT", "motdetat", description="Meter status word")

ALL_LABELS: dict[str, LabelDef] = {
    d.label: d
    for d in (ADCO, OPTARIF, ISOUSC, BASE, PTEC, IINST, IMAX, PAPP, HHPHC, MOTDETAT)
}
"""Label -> LabelDef, in the order labels appear in a frame."""


def field_for_label(label: str) -> str | None:
    """Return the record field fed by *label*, or ``None`` if it is unknown."""
    label_def = ALL_LABELS.get(label)
    return label_def.field if label_def is not None else None
