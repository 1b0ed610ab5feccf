"""
catalog.py — Catalog tree, folder narrowing, and catalog export loading.

The engineering catalog is a tree of named nodes, each with a flat attribute
map. Item lists for datasheets come from the leaves; pipe-class discovery and
membership walk whole subtrees.

Catalog exports are tabular files (.numbers, .xlsx, .csv, .tsv) with either a
'/'-separated path column ending in the item name, or a folder column plus a
name column. Every other column is an attribute. Column roles are located with
the mappings in config/datasheet_rules.yaml.

Two loading modes:
- load_catalog(): reads export files from disk
- load_from_uploads(): processes Streamlit UploadedFile objects
"""

from __future__ import annotations

import io
import math
import tempfile
import warnings
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd
import yaml

from pipingsheets.records import AttributeMap, Record

SUPPORTED_EXTS = {".numbers", ".xlsx", ".csv", ".tsv"}


# ── Config ─────────────────────────────────────────────────

def _repo_root() -> Path:
    return Path(__file__).resolve().parent.parent


def load_rules() -> dict:
    cfg_path = _repo_root() / "config" / "datasheet_rules.yaml"
    with open(cfg_path) as f:
        return yaml.safe_load(f)


def project_dirs(rules: dict) -> tuple[Path, Path]:
    """(templates folder, output folder) from the rules' paths section."""
    paths = rules["paths"]
    root = Path(paths.get("project_root") or ".").expanduser()
    if not root.is_absolute():
        root = _repo_root() / root
    return root / paths["templates"], root / paths["output"]


# ── Tree model ─────────────────────────────────────────────

@dataclass(eq=False)
class CatalogNode:
    name: str
    attributes: AttributeMap = field(default_factory=AttributeMap)
    children: list[CatalogNode] = field(default_factory=list)
    parent: CatalogNode | None = field(default=None, repr=False)

    def __post_init__(self):
        if not isinstance(self.attributes, AttributeMap):
            self.attributes = AttributeMap(self.attributes or {})

    def add(self, child: CatalogNode) -> CatalogNode:
        child.parent = self
        self.children.append(child)
        return child

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def ancestors(self) -> tuple[str, ...]:
        """Names of the enclosing folders, root first."""
        names = []
        node = self.parent
        while node is not None:
            names.append(node.name)
            node = node.parent
        return tuple(reversed(names))


def walk_deep(root: CatalogNode | None) -> Iterator[CatalogNode]:
    """Depth-first, pre-order, children in stored order. Includes the root."""
    stack = [root] if root is not None else []
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def walk_leaves(root: CatalogNode | None) -> Iterator[CatalogNode]:
    return (n for n in walk_deep(root) if n.is_leaf)


# ── Folder narrowing ───────────────────────────────────────

_FOLDER_KEY_DROP = str.maketrans("", "", " /\\-_.:(),'\"&")


def normalize_folder_key(name: str | None) -> str:
    """'Bolts & Nuts' and 'bolts-nuts' compare equal."""
    return (name or "").lower().translate(_FOLDER_KEY_DROP)


def find_child(parent: CatalogNode | None, name: str) -> CatalogNode | None:
    if parent is None:
        return None
    want = normalize_folder_key(name)
    for child in parent.children:
        if normalize_folder_key(child.name) == want:
            return child
    return None


def narrowed_roots(catalog: CatalogNode | None, rules: dict | None = None) -> list[CatalogNode]:
    """
    Material folders under Catalogs → JLE → Materials, in configured order.
    Empty when the materials folder or all of its configured children are absent.
    """
    if rules is None:
        rules = load_rules()
    cfg = rules["catalog"]

    node = catalog
    for step in cfg["materials_path"]:
        node = find_child(node, step)
        if node is None:
            return []

    roots = []
    for folder in cfg["folders"]:
        child = find_child(node, folder)
        if child is not None:
            roots.append(child)
    return roots


def node_to_record(node: CatalogNode, group: str = "") -> Record:
    return Record(
        name=node.name,
        attributes=node.attributes.copy(),
        path=node.ancestors,
        group=group,
    )


def collect_leaf_records(catalog: CatalogNode | None, rules: dict | None = None) -> list[Record]:
    """
    Selectable items: leaves under the narrowed material folders, grouped by
    folder. Without those folders, leaves of the whole tree grouped by
    first-level folder.
    """
    if catalog is None:
        return []
    roots = narrowed_roots(catalog, rules)
    if not roots:
        roots = list(catalog.children)

    records = []
    for root in roots:
        group = root.name if root.children else ""
        records.extend(node_to_record(leaf, group) for leaf in walk_leaves(root))
    return records


# ── File reading ───────────────────────────────────────────

def _read_file(filepath: Path) -> pd.DataFrame | None:
    ext = filepath.suffix.lower()
    try:
        if ext == ".numbers":
            return _read_numbers(filepath)
        elif ext == ".xlsx":
            return pd.read_excel(filepath, engine="openpyxl")
        elif ext in (".csv", ".tsv"):
            sep = "\t" if ext == ".tsv" else ","
            return pd.read_csv(filepath, sep=sep, dtype=str)
        else:
            return None
    except Exception as e:
        warnings.warn(f"Could not read {filepath.name}: {e}")
        return None


def _read_numbers(filepath: Path) -> pd.DataFrame:
    from numbers_parser import Document
    doc = Document(str(filepath))
    table = doc.sheets[0].tables[0]
    headers = []
    for c in range(table.num_cols):
        val = table.cell(0, c).value
        headers.append(str(val).strip() if val is not None else f"col_{c}")
    rows = []
    for r in range(1, table.num_rows):
        rows.append([table.cell(r, c).value for c in range(table.num_cols)])
    return pd.DataFrame(rows, columns=headers)


def _read_uploaded_file(uploaded_file) -> pd.DataFrame | None:
    """Read a Streamlit UploadedFile into a DataFrame."""
    name = uploaded_file.name
    ext = Path(name).suffix.lower()
    try:
        if ext == ".numbers":
            # numbers-parser needs a real file
            with tempfile.NamedTemporaryFile(suffix=".numbers", delete=False) as tmp:
                tmp.write(uploaded_file.getvalue())
            tmp_path = Path(tmp.name)
            try:
                return _read_numbers(tmp_path)
            finally:
                tmp_path.unlink(missing_ok=True)
        elif ext == ".xlsx":
            return pd.read_excel(io.BytesIO(uploaded_file.getvalue()), engine="openpyxl")
        elif ext in (".csv", ".tsv"):
            sep = "\t" if ext == ".tsv" else ","
            return pd.read_csv(io.BytesIO(uploaded_file.getvalue()), sep=sep, dtype=str)
        else:
            return None
    except Exception as e:
        warnings.warn(f"Could not read uploaded file {name}: {e}")
        return None


# ── Column mapping ─────────────────────────────────────────

def _map_columns(df: pd.DataFrame, mapping: dict[str, dict]) -> dict[str, str]:
    """
    Map role names (path, folder, name) to actual column names:
    1. Exact match (case-insensitive, stripped)
    2. Contains match (case-insensitive substring)
    Returns {role: actual_column_name}.
    """
    df_cols_lower = {str(c).strip().lower(): c for c in df.columns}
    result: dict[str, str] = {}

    for role, candidates in mapping.items():
        for cand in candidates.get("exact") or []:
            cand_lower = cand.strip().lower()
            if cand_lower in df_cols_lower:
                result[role] = df_cols_lower[cand_lower]
                break
        if role in result:
            continue
        for cand in candidates.get("contains") or []:
            cand_lower = cand.strip().lower()
            hit = next(
                (orig for low, orig in df_cols_lower.items()
                 if cand_lower in low and orig not in result.values()),
                None,
            )
            if hit is not None:
                result[role] = hit
                break

    return result


def _cell_text(value) -> str:
    """Export cell → attribute text. NaN and None are blank; 2.0 reads as '2'."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if value is pd.NA or value is pd.NaT:
        return ""
    return str(value).strip()


def _split_path(text: str) -> list[str]:
    return [p.strip() for p in text.replace("\\", "/").split("/") if p.strip()]


def _ensure_folder(root: CatalogNode, parts: list[str]) -> CatalogNode:
    node = root
    for part in parts:
        nxt = next((c for c in node.children if c.name == part), None)
        node = nxt if nxt is not None else node.add(CatalogNode(part))
    return node


def build_tree(df: pd.DataFrame, rules: dict, root: CatalogNode | None = None) -> tuple[CatalogNode, int]:
    """
    Add every row of an export to the tree. Returns (root, rows added).

    A path column wins over folder + name columns. Raises KeyError when
    neither a path nor a name column can be found.
    """
    if root is None:
        root = CatalogNode("Catalogs")
    col_map = _map_columns(df, rules["export_columns"])
    if "path" not in col_map and "name" not in col_map:
        raise KeyError(f"No path or name column. Columns: {list(df.columns)}")

    role_cols = set(col_map.values())
    attr_cols = [c for c in df.columns if c not in role_cols]

    added = 0
    for _, row in df.iterrows():
        if "path" in col_map:
            parts = _split_path(_cell_text(row[col_map["path"]]))
        else:
            parts = _split_path(_cell_text(row[col_map["folder"]])) if "folder" in col_map else []
            parts.append(_cell_text(row[col_map["name"]]))
        parts = [p for p in parts if p]
        if not parts:
            continue

        parent = _ensure_folder(root, parts[:-1])
        item = parent.add(CatalogNode(parts[-1]))
        for col in attr_cols:
            text = _cell_text(row[col])
            if text:
                item.attributes[str(col)] = text
        added += 1

    return root, added


# ── Public API ─────────────────────────────────────────────

class CatalogData:
    """Container for a loaded catalog tree."""

    def __init__(self):
        self.root = CatalogNode("Catalogs")
        self.warnings: list[str] = []
        self.loaded_files: list[dict] = []
        self.skipped_files: list[dict] = []

    def records(self, rules: dict | None = None) -> list[Record]:
        return collect_leaf_records(self.root, rules)

    def summary(self) -> dict:
        leaves = sum(1 for _ in walk_leaves(self.root)) if self.root.children else 0
        return {
            "files": len(self.loaded_files),
            "skipped": len(self.skipped_files),
            "items": leaves,
        }


def _process_frame(fname: str, df: pd.DataFrame, rules: dict, data: CatalogData):
    try:
        _, added = build_tree(df, rules, data.root)
    except KeyError as e:
        data.skipped_files.append({"file": fname, "reason": str(e)})
        data.warnings.append(f"Skipped (no path/name column): {fname}")
        return
    data.loaded_files.append({"file": fname, "rows": added})


def load_catalog(paths: Path | str | list, rules: dict | None = None) -> CatalogData:
    """
    Read catalog export files (or every supported file in a folder) into one tree.
    """
    if rules is None:
        rules = load_rules()

    data = CatalogData()
    if isinstance(paths, (str, Path)):
        paths = [Path(paths)]
    files: list[Path] = []
    for p in map(Path, paths):
        if p.is_dir():
            files.extend(sorted(f for f in p.iterdir()
                                if f.is_file() and f.suffix.lower() in SUPPORTED_EXTS))
        elif p.exists():
            files.append(p)
        else:
            data.warnings.append(f"Catalog file not found: {p}")

    if not files and not data.warnings:
        data.warnings.append("No catalog export files found.")

    for filepath in files:
        df = _read_file(filepath)
        if df is None or df.empty:
            data.skipped_files.append({"file": filepath.name, "reason": "Empty or unreadable"})
            data.warnings.append(f"Skipped (empty/unreadable): {filepath.name}")
            continue
        _process_frame(filepath.name, df, rules, data)

    return data


def load_from_uploads(uploaded_files: list, rules: dict | None = None) -> CatalogData:
    """Same as load_catalog() but reads Streamlit UploadedFile objects."""
    if rules is None:
        rules = load_rules()

    data = CatalogData()
    if not uploaded_files:
        data.warnings.append("No files uploaded. Use the file uploader in the sidebar.")
        return data

    for uploaded_file in uploaded_files:
        fname = uploaded_file.name
        df = _read_uploaded_file(uploaded_file)
        if df is None or df.empty:
            data.skipped_files.append({"file": fname, "reason": "Empty or unreadable"})
            data.warnings.append(f"Skipped (empty/unreadable): {fname}")
            continue
        _process_frame(fname, df, rules, data)

    return data
