"""
sizes.py — Nominal pipe sizes and size-range expansion.

One canonical ordered table of 27 nominal sizes (1/2" to 36"), each with an
inch token and a DN token. Catalog size attributes arrive in either form and
with assorted decorations (1-1/2", 1½ IN, DN 40); they are normalized before
lookup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

NPS_SIZES: tuple[str, ...] = (
    "1/2", "3/4", "1", "1 1/4", "1 1/2", "2", "2 1/2", "3", "3 1/2", "4", "5", "6",
    "8", "10", "12", "14", "16", "18", "20", "22", "24", "26", "28", "30", "32", "34", "36",
)

DN_SIZES: tuple[str, ...] = (
    "DN15", "DN20", "DN25", "DN32", "DN40", "DN50", "DN65", "DN80", "DN90", "DN100",
    "DN125", "DN150", "DN200", "DN250", "DN300", "DN350", "DN400", "DN450", "DN500",
    "DN550", "DN600", "DN650", "DN700", "DN750", "DN800", "DN850", "DN900",
)

INCH_TO_DN: dict[str, str] = dict(zip(NPS_SIZES, DN_SIZES))
DN_TO_INCH: dict[str, str] = dict(zip(DN_SIZES, NPS_SIZES))

_INCH_INDEX: dict[str, int] = {s: i for i, s in enumerate(NPS_SIZES)}

_UNICODE_FRACTIONS = {"½": "1/2", "¼": "1/4", "¾": "3/4", "⅛": "1/8", "⅜": "3/8"}

_DECORATION_RE = re.compile(r"(?<![A-Z])(?:INCHES|INCH|IN|NPS)(?![A-Z])")
_MIXED_FRACTION_RE = re.compile(r"(\d)\s*-\s*(\d+/\d+)")
_DN_RE = re.compile(r"\bDN\s*(\d+)\b")
# Numeric spreadsheet cells: 0.5 -> 1/2, 1.25 -> 1 1/4, 2.0 -> 2
_DECIMAL_RE = re.compile(r"^(\d*)\.(\d+)$")
_DECIMAL_FRACTIONS = {"": "", "25": "1/4", "5": "1/2", "75": "3/4"}


@dataclass(frozen=True)
class NominalSize:
    index: int
    inch: str
    dn: str


def normalize_token(token: str | None) -> str:
    """Canonical text form of a size token, e.g. '1-1/2"' -> '1 1/2', 'dn 40' -> 'DN40'."""
    if token is None:
        return ""
    s = str(token).upper()
    for frac, ascii_frac in _UNICODE_FRACTIONS.items():
        s = s.replace(frac, f" {ascii_frac}")
    s = s.replace("''", "").replace('"', "").replace("”", "").replace("″", "")
    s = _DECORATION_RE.sub(" ", s)
    s = _MIXED_FRACTION_RE.sub(r"\1 \2", s)
    s = _DN_RE.sub(r"DN\1", s)
    s = " ".join(s.split())

    m = _DECIMAL_RE.match(s)
    if m and m.group(2).rstrip("0") in _DECIMAL_FRACTIONS:
        whole = m.group(1).lstrip("0")
        frac = _DECIMAL_FRACTIONS[m.group(2).rstrip("0")]
        s = " ".join(p for p in (whole, frac) if p) or "0"
    return s


def to_inch(token: str | None) -> str:
    """Inch token for a DN or inch size; unknown tokens come back unchanged."""
    key = normalize_token(token)
    if key in DN_TO_INCH:
        return DN_TO_INCH[key]
    if key in _INCH_INDEX:
        return key
    return "" if token is None else token


def to_dn(token: str | None) -> str:
    """DN token for an inch or DN size; unknown tokens come back unchanged."""
    key = normalize_token(token)
    if key in INCH_TO_DN:
        return INCH_TO_DN[key]
    if key in DN_TO_INCH:
        return key
    return "" if token is None else token


def index_of(token: str | None) -> int | None:
    """Position in the canonical table, accepting either representation."""
    key = normalize_token(token)
    if not key:
        return None
    key = DN_TO_INCH.get(key, key)
    return _INCH_INDEX.get(key)


def size_at(index: int) -> NominalSize:
    return NominalSize(index, NPS_SIZES[index], DN_SIZES[index])


def expand(min_token: str | None, max_token: str | None) -> list[NominalSize]:
    """
    Every nominal size from min to max inclusive, smallest first.

    Bounds declared in reverse are swapped. Either bound missing from the
    table gives an empty list.
    """
    lo = index_of(min_token)
    hi = index_of(max_token)
    if lo is None or hi is None:
        return []
    if hi < lo:
        lo, hi = hi, lo
    return [size_at(i) for i in range(lo, hi + 1)]
