"""
records.py — Catalog record model.

A Record is one catalog item: its name, where it sits in the catalog tree, and
a flat attribute map whose keys compare case-insensitively.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field


class AttributeMap(MutableMapping):
    """String-keyed map with case-insensitive keys.

    The spelling of the most recent write is kept for iteration, so scans over
    keys see the names the catalog actually used. Duplicate keys that differ
    only by case collapse to one entry (last write wins).
    """

    def __init__(self, data: Mapping[str, object] | Iterable[tuple[str, object]] | None = None):
        self._store: dict[str, tuple[str, str]] = {}
        if data is not None:
            items = data.items() if isinstance(data, Mapping) else data
            for k, v in items:
                self[k] = v

    @staticmethod
    def _fold(key: str) -> str:
        return str(key).strip().casefold()

    def __setitem__(self, key: str, value: object) -> None:
        self._store[self._fold(key)] = (str(key).strip(), "" if value is None else str(value))

    def __getitem__(self, key: str) -> str:
        return self._store[self._fold(key)][1]

    def __delitem__(self, key: str) -> None:
        del self._store[self._fold(key)]

    def __iter__(self) -> Iterator[str]:
        return (orig for orig, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._fold(key) in self._store

    def copy(self) -> "AttributeMap":
        return AttributeMap(self.items())

    def __repr__(self) -> str:
        return f"AttributeMap({dict(self.items())!r})"


@dataclass
class Record:
    """One catalog item as handed to classification and population."""

    name: str
    attributes: AttributeMap = field(default_factory=AttributeMap)
    path: tuple[str, ...] = ()      # ancestor folder names, root first
    group: str = ""                 # first-level folder label, e.g. "Valves"

    def __post_init__(self):
        self.name = "" if self.name is None else str(self.name)
        if not isinstance(self.attributes, AttributeMap):
            self.attributes = AttributeMap(self.attributes or {})
        self.path = tuple(self.path or ())

    @property
    def code(self) -> str:
        """Code shown in selection lists; falls back to the name."""
        code = self.attributes.get("Code", "")
        return code if code.strip() else self.name

    @property
    def type(self) -> str:
        return self.attributes.get("Type", "")
