"""
classify.py — Route catalog items to a datasheet category.

Checks run in a fixed order and the first hit wins:
  1. Valve       (attribute scan, type keywords, valve-only attribute names)
  2. Gasket      ("GASKET" in the text blob)
  3. Bolt / Nut  ("BOLT" or "NUT" in the text blob)
  4. Piping part (with a sub-category from keyword groups)

Classification is recomputed from the current attributes on every run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pipingsheets.attributes import first_non_empty, resolve_exact
from pipingsheets.records import Record


class Category(str, Enum):
    PIPING_PART = "PipingPart"
    GASKET = "Gasket"
    VALVE = "Valve"
    BOLT = "Bolt"


class SubCategory(str, Enum):
    PIPE = "PIPE"
    FITTINGS = "FITTINGS"
    BRANCH_FITTINGS = "BRANCH FITTINGS"
    FLANGES = "FLANGES"
    OTHER = "PIPING PARTS"


VALVE_WORDS: tuple[str, ...] = (
    "VALVE", "GATE", "GLOBE", "CHECK", "BALL", "BUTTERFLY", "PLUG", "DIAPHRAGM",
    "CONTROL", "SOLENOID", "SAFETY", "RELIEF", "PRESSURE REDUCING",
    "PSV", "PRV", "SRV", "NRV",
)

# Attributes that only valve catalog entries carry
VALVE_KEYS: tuple[str, ...] = (
    "Medium", "Media", "Service", "Design pressure", "Design temperature",
    "Design code", "Piping connection", "End connection",
    "Additional specification 1", "Additional specification 2",
    "Body material", "Seat material", "Trim material",
)

# Tested top to bottom; a "FLANGE ... PIPE" text is a flange.
SUB_CATEGORY_KEYWORDS: tuple[tuple[SubCategory, tuple[str, ...]], ...] = (
    (SubCategory.FLANGES, ("FLANGE", "WELD NECK", "WN", "SLIP ON", "SO ", "BLIND")),
    (SubCategory.BRANCH_FITTINGS, ("OLET", "BRANCH")),
    (SubCategory.FITTINGS, ("ELBOW", "TEE", "REDUCER", "COUPLING", "CAP", "BEND")),
    (SubCategory.PIPE, ("PIPE", "SEAMLESS", "WELDED", "SMLS")),
)


@dataclass(frozen=True)
class Classification:
    category: Category
    sub_category: SubCategory | None = None


def _attr(record: Record, key: str) -> str:
    return resolve_exact(record, key)


def type_hint(record: Record) -> str:
    """Best single descriptive text for an item."""
    return first_non_empty(
        _attr(record, "Type"),
        _attr(record, "Valve type"),
        _attr(record, "Additional Comment"),
        _attr(record, "Specification"),
        _attr(record, "Comment"),
        record.name,
    )


def _category_blob(record: Record) -> str:
    parts = (
        type_hint(record),
        _attr(record, "Type"),
        _attr(record, "Additional Comment"),
        _attr(record, "Comment"),
        record.name,
    )
    return " ".join(parts).upper()


def is_likely_valve(record: Record) -> bool:
    for key, value in record.attributes.items():
        if "VALVE" in key.upper() or "VALVE" in (value or "").upper():
            return True

    blob = first_non_empty(
        _attr(record, "Valve type"),
        _attr(record, "Type"),
        _attr(record, "Additional Comment"),
        _attr(record, "Specification"),
        _attr(record, "Comment"),
        record.name,
    ).upper()
    if any(word in blob for word in VALVE_WORDS):
        return True

    return any(_attr(record, key) for key in VALVE_KEYS)


def detect_sub_category(record: Record) -> SubCategory:
    blob = first_non_empty(
        _attr(record, "Type"),
        _attr(record, "Additional Comment"),
        _attr(record, "Specification"),
        _attr(record, "Body/Fitting type"),
        _attr(record, "Comment"),
        record.name,
    ).upper()
    for sub, words in SUB_CATEGORY_KEYWORDS:
        if any(w in blob for w in words):
            return sub
    return SubCategory.OTHER


def classify(record: Record) -> Classification:
    """Category (and piping-part sub-category) for one item."""
    if is_likely_valve(record):
        return Classification(Category.VALVE)

    blob = _category_blob(record)
    if "GASKET" in blob:
        return Classification(Category.GASKET)
    if "BOLT" in blob or "NUT" in blob:
        return Classification(Category.BOLT)

    return Classification(Category.PIPING_PART, detect_sub_category(record))
