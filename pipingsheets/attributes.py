"""
attributes.py — Priority-ordered attribute resolution.

Catalog items from different subsystems spell the same field differently
("Acc to Standard", "Material Standard", "ACC. TO STANDARD"). Lookups therefore
run in two passes:

1. Exact match (case-insensitive), candidate keys in order
2. Contains match (case-insensitive substring), candidate keys in order

Blank values never count as a match. A miss is an empty string, never an error.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pipingsheets.records import Record


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _as_keys(keys: str | Iterable[str]) -> list[str]:
    if isinstance(keys, str):
        return [keys]
    return [k for k in keys if k]


def resolve_exact(record: Record | None, keys: str | Iterable[str]) -> str:
    """Pass 1 only: first non-blank value stored under one of the keys."""
    if record is None:
        return ""
    attrs = record.attributes
    for key in _as_keys(keys):
        value = attrs.get(key)
        if not _blank(value):
            return value
    return ""


def resolve_like(record: Record | None, fragment: str) -> str:
    """Pass 2 only: first non-blank value whose key contains the fragment."""
    if record is None or _blank(fragment):
        return ""
    needle = fragment.strip().casefold()
    for key, value in record.attributes.items():
        if needle in key.casefold() and not _blank(value):
            return value
    return ""


def resolve(record: Record | None, keys: str | Iterable[str], fuzzy: bool = True) -> str:
    """
    Resolve candidate keys against a record.

    Exact candidates are all tried before any contains match, so a precise
    spelling always beats a loose one further up the list.
    """
    keys = _as_keys(keys)
    value = resolve_exact(record, keys)
    if value or not fuzzy:
        return value
    for key in keys:
        value = resolve_like(record, key)
        if value:
            return value
    return ""


def first_non_empty(*values: str | None) -> str:
    """Return the first non-blank value, else ''."""
    for v in values:
        if not _blank(v):
            return v
    return ""


def first_resolved(
    record: Record | None,
    *candidate_sets: str | Sequence[str],
    fuzzy: bool = True,
) -> str:
    """
    "Prefer A, else B, else C" over candidate key sets.

    Each set is resolved on its own (both passes when fuzzy); the first set
    yielding a value wins.
    """
    for keys in candidate_sets:
        value = resolve(record, keys, fuzzy=fuzzy)
        if value:
            return value
    return ""
