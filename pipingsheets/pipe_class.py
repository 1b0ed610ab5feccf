"""
pipe_class.py — Pipe class codes: recognition, rating groups, discovery.

A pipe class code is a rating token, a literal J, one or two family letters
and a two-digit serial, e.g. 150JX00 or 10JZ02. Codes with a rating of 150 or
more belong to the ASME/ANSI family; lower numeric ratings are DIN.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from pipingsheets.catalog import CatalogNode, narrowed_roots, node_to_record, walk_deep
from pipingsheets.records import Record

CLASS_CODE_RE = re.compile(r"^[0-9]{1,4}J[A-Z]{1,2}[0-9]{2}$", re.IGNORECASE)

CLASS_ATTRIBUTES: tuple[str, ...] = (
    "JLE Pipe Class",
    "JLE Pipe Class 1",
    "JLE Possible Pipe Class",
    "Piping class",
    "Pipe class",
    "Piping classes that use this item (for piping class)",
)

_TOKEN_SPLIT_RE = re.compile(r"[,;/\\\r\n\t ]+")
_DIGITS_RE = re.compile(r"(\d+)")

HIGH_RATING_MIN = 150.0


def is_class_code(token: str | None) -> bool:
    return bool(token) and CLASS_CODE_RE.match(token.strip()) is not None


def extract_rating_token(code: str | None) -> str:
    """'150JX00' -> '150'. Empty when there is no J or nothing precedes it."""
    if not code:
        return ""
    j = code.strip().upper().find("J")
    return code.strip()[:j] if j > 0 else ""


def is_high_rating(token: str | None) -> bool:
    try:
        return float(token) >= HIGH_RATING_MIN
    except (TypeError, ValueError):
        return False


def _natural_key(text: str) -> list:
    return [int(part) if part.isdigit() else part.casefold() for part in _DIGITS_RE.split(text)]


def natural_sort(codes: Iterable[str]) -> list[str]:
    """Digit-aware, case-insensitive order: 2JZ02 before 10JZ02."""
    return sorted(codes, key=_natural_key)


def partition(codes: Iterable[str]) -> tuple[list[str], list[str]]:
    """(high-rating codes, everything else), each naturally sorted."""
    high, other = [], []
    for code in codes:
        (high if is_high_rating(extract_rating_token(code)) else other).append(code)
    return natural_sort(high), natural_sort(other)


@dataclass
class ClassGroups:
    high: list[str] = field(default_factory=list)     # ASME / ANSI, rating >= 150
    low: list[str] = field(default_factory=list)      # DIN, numeric rating < 150
    other: list[str] = field(default_factory=list)    # no numeric rating
    ordered: list[str] = field(default_factory=list)

    def __iter__(self) -> Iterator[str]:
        return iter(self.ordered)

    def __len__(self) -> int:
        return len(self.ordered)


def group_by_rating(codes: Iterable[str]) -> ClassGroups:
    groups = ClassGroups()
    for code in codes:
        if not code or not code.strip():
            continue
        token = extract_rating_token(code)
        if is_high_rating(token):
            groups.high.append(code)
        else:
            try:
                float(token)
            except ValueError:
                groups.other.append(code)
            else:
                groups.low.append(code)

    groups.high = natural_sort(groups.high)
    groups.low = natural_sort(groups.low)
    groups.other = natural_sort(groups.other)
    groups.ordered = groups.high + groups.low + groups.other
    return groups


GENERATION_MODES = {
    "single": "A single pipe class",
    "asme": "All ASME (ANSI) pipe classes",
    "din": "All DIN pipe classes",
    "all": "All pipe classes",
}


def classes_for_mode(codes: Iterable[str], mode: str, single: str | None = None) -> list[str]:
    """Class codes a generation menu choice covers. DIN means every non-ASME code."""
    codes = list(codes)
    if mode == "single":
        return [single] if single and single.strip() else []
    high, other = partition(codes)
    if mode == "asme":
        return high
    if mode == "din":
        return other
    if mode == "all":
        return natural_sort(codes)
    raise ValueError(f"Unknown generation mode: {mode}")


# ── Catalog scanning ───────────────────────────────────────

def class_tokens(text: str | None) -> list[str]:
    """Upper-cased class codes found in a free-text attribute value."""
    if not text:
        return []
    tokens = (t.strip().upper() for t in _TOKEN_SPLIT_RE.split(text))
    return [t for t in tokens if is_class_code(t)]


def _membership_values(node: CatalogNode, attributes: Sequence[str]) -> Iterator[str]:
    for name in attributes:
        value = node.attributes.get(name, "")
        if value.strip():
            yield value


def discover_classes(
    roots: Iterable[CatalogNode],
    attributes: Sequence[str] = CLASS_ATTRIBUTES,
) -> list[str]:
    """Every distinct class code under the roots, from attributes and node names."""
    found: set[str] = set()
    for root in roots:
        for node in walk_deep(root):
            for value in _membership_values(node, attributes):
                found.update(class_tokens(value))
            name = (node.name or "").strip().upper()
            if is_class_code(name):
                found.add(name)
    return natural_sort(found)


def belongs_to_class(node: CatalogNode, code: str, attributes: Sequence[str] = CLASS_ATTRIBUTES) -> bool:
    want = (code or "").strip().upper()
    if not want:
        return False
    return any(want in class_tokens(value) for value in _membership_values(node, attributes))


def collect_items_for_class(
    roots: Iterable[CatalogNode],
    code: str,
    attributes: Sequence[str] = CLASS_ATTRIBUTES,
) -> list[Record]:
    """Records of every node under the roots listing the class as a member."""
    items = []
    for root in roots:
        for node in walk_deep(root):
            if belongs_to_class(node, code, attributes):
                items.append(node_to_record(node, root.name))
    return items


def menu_classes(catalog: CatalogNode | None, rules: dict) -> ClassGroups:
    """Classes offered for summary generation; the whole tree when the material folders are absent."""
    roots = narrowed_roots(catalog, rules)
    if not roots and catalog is not None:
        roots = list(catalog.children)
    return group_by_rating(discover_classes(roots, rules.get("class_attributes") or CLASS_ATTRIBUTES))
