"""
summary.py — Pipe class summary workbooks.

One workbook per pipe class, built from a single-sheet template. The sheet
lists every catalog item of the class in fixed 4-row blocks:

  PIPING PARTS   grouped PIPE / FITTINGS / BRANCH FITTINGS / FLANGES
  BOLTING
  GASKET
  VALVE

Columns: A type, E description lines, J size min, K size max,
L schedule / class / design code, N item code.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from openpyxl.worksheet.worksheet import Worksheet

from pipingsheets.catalog import CatalogNode, load_rules, narrowed_roots, project_dirs
from pipingsheets.classify import Category, classify
from pipingsheets.fields import (
    BoltFields,
    GasketFields,
    PipingPartFields,
    ValveFields,
    bolt_fields,
    gasket_fields,
    join_nonblank,
    piping_part_fields,
    valve_fields,
)
from pipingsheets.pipe_class import CLASS_ATTRIBUTES, collect_items_for_class
from pipingsheets.records import Record
from pipingsheets.workbook import (
    clear_contents,
    left_align,
    open_template_copy,
    put,
    sanitize_file_name,
    set_bold,
    unmerge_row,
)

log = logging.getLogger(__name__)

COL_TYPE = 1        # A
COL_DESC = 5        # E
COL_SIZE_MIN = 10   # J
COL_SIZE_MAX = 11   # K
COL_SCHCLASS = 12   # L
COL_CODE = 14       # N
BLOCK_COLS = (COL_TYPE, COL_DESC, COL_SIZE_MIN, COL_SIZE_MAX, COL_SCHCLASS, COL_CODE)

BLOCK_ROWS = 4
FIRST_ROW = 8
HEADER_WIDTH = 20
SHEET_TITLE = "PIPING PARTS"
TITLE_ROW, TITLE_COL = 3, 4   # D3

GROUP_HEADERS = {"1": "PIPE", "2": "FITTINGS", "3": "BRANCH FITTINGS", "4": "FLANGES"}
UNGROUPED = 99


class _Block:
    """One item's 4-row block. Cells not written are cleared on close."""

    def __init__(self, ws: Worksheet, row: int):
        self.ws = ws
        self.row = row
        self._written: set[tuple[int, int]] = set()

    def put(self, offset: int, col: int, value):
        if offset >= BLOCK_ROWS:
            return None
        self._written.add((offset, col))
        return put(self.ws, self.row + offset, col, (value or "").strip() if isinstance(value, str) else value)

    def lines(self, col: int, values: Iterable[str]) -> None:
        kept = [v for v in values if v and v.strip()]
        for offset, value in enumerate(kept[:BLOCK_ROWS]):
            self.put(offset, col, value)

    def close(self) -> int:
        for offset in range(BLOCK_ROWS):
            for col in BLOCK_COLS:
                if (offset, col) not in self._written:
                    clear_contents(self.ws, self.row + offset, col)
        return self.row + BLOCK_ROWS


# ── Writers ────────────────────────────────────────────────

def write_header(ws: Worksheet, row: int, text: str) -> int:
    """Bold section title in column A; the row is unmerged first."""
    unmerge_row(ws, row, 1, HEADER_WIDTH)
    cell = put(ws, row, COL_TYPE, (text or "").upper())
    set_bold(cell)
    return row + 1


def _pp_block(ws: Worksheet, row: int, f: PipingPartFields) -> int:
    block = _Block(ws, row)
    block.put(0, COL_TYPE, f.line_type)
    block.put(1, COL_TYPE, f.seamless_welded)

    block.put(0, COL_DESC, f.material)
    block.put(1, COL_DESC, f.acc_to_standard)
    block.put(2, COL_DESC, f.connection_1)

    block.put(0, COL_SIZE_MIN, f.size_min)
    block.put(0, COL_SIZE_MAX, f.size_max)

    if f.schedule.strip():
        block.put(0, COL_SCHCLASS, "SCH" + f.schedule.strip())
    else:
        block.put(0, COL_SCHCLASS, f.cls)

    block.put(0, COL_CODE, f.item_code)
    return block.close()


def write_pp_rows(ws: Worksheet, row: int, record: Record) -> int:
    return _pp_block(ws, row, piping_part_fields(record))


def _bolt_block(ws: Worksheet, row: int, f: BoltFields) -> int:
    block = _Block(ws, row)
    block.put(0, COL_TYPE, f.line_type)

    block.put(0, COL_DESC, f.acc_to_standard)
    block.put(1, COL_DESC, f.coated(f.bolt_material))
    block.put(2, COL_DESC, f.coated(f.nut_material))

    left_align(block.put(0, COL_SIZE_MIN, "MATCHING FLANGE"))
    block.put(0, COL_CODE, f.item_code)
    return block.close()


def write_bolt_rows(ws: Worksheet, row: int, record: Record) -> int:
    return _bolt_block(ws, row, bolt_fields(record))


def _gasket_block(ws: Worksheet, row: int, f: GasketFields) -> int:
    block = _Block(ws, row)
    block.put(0, COL_TYPE, f.line_type)
    block.put(1, COL_TYPE, f.ring)

    lines = [join_nonblank(left, " - ", right) for left, right in f.materials[:2] if left.strip()]
    lines.append(f.acc_to_standard)
    if f.thickness.strip():
        lines.append(f"THICKNESS = {f.thickness.strip()}")
    block.lines(COL_DESC, lines)

    block.put(0, COL_SIZE_MIN, f.size_min)
    block.put(0, COL_SIZE_MAX, f.size_max)
    block.put(0, COL_SCHCLASS, f.cls)
    block.put(0, COL_CODE, f.item_code)
    return block.close()


def write_gasket_rows(ws: Worksheet, row: int, record: Record) -> int:
    return _gasket_block(ws, row, gasket_fields(record))


def split_valve_type(text: str) -> tuple[str, str]:
    """'BALL VALVE, FULL BORE, FLOATING' -> ('BALL VALVE', 'FULL BORE, FLOATING').

    The second line only appears when there are more than two parts.
    """
    parts = [p.strip() for p in (text or "").split(",") if p.strip()]
    if not parts:
        return "", ""
    second = ", ".join(parts[1:]) if len(parts) > 2 else ""
    return parts[0], second


def _valve_block(ws: Worksheet, row: int, f: ValveFields) -> int:
    block = _Block(ws, row)
    first, second = split_valve_type(f.line_type)
    block.put(0, COL_TYPE, first)
    block.put(1, COL_TYPE, second)

    lines = []
    for c1, c2, c3 in f.descriptions:
        label = c1.strip()
        if not label:
            continue
        value = (c3 or c2).strip()
        lines.append(f"{label} : {value}" if value else label)
    lines.extend([f.add_spec_1, f.add_spec_2, f.mounting])
    block.lines(COL_DESC, lines)

    block.put(0, COL_SIZE_MIN, f.size_min)
    block.put(0, COL_SIZE_MAX, f.size_max)
    block.put(0, COL_SCHCLASS, f.summary_design_code)
    block.put(0, COL_CODE, f.item_code)
    return block.close()


def write_valve_rows(ws: Worksheet, row: int, record: Record) -> int:
    return _valve_block(ws, row, valve_fields(record))


# ── Sheet ──────────────────────────────────────────────────

def _group_rank(group: str) -> int:
    return int(group) if group in GROUP_HEADERS else UNGROUPED


def fill_sheet_for_class(ws: Worksheet, code: str, records: list[Record]) -> int:
    """
    Write every record of one pipe class into the summary sheet.
    Returns the row after the last block.
    """
    ws.title = SHEET_TITLE
    put(ws, TITLE_ROW, TITLE_COL, f"PIPING CLASS BASIC DATAs - {code}")

    parts, bolts, gaskets, valves = [], [], [], []
    for record in records:
        category = classify(record).category
        if category is Category.VALVE:
            valves.append(valve_fields(record))
        elif category is Category.GASKET:
            gaskets.append(gasket_fields(record))
        elif category is Category.BOLT:
            bolts.append(bolt_fields(record))
        else:
            parts.append(piping_part_fields(record))

    parts.sort(key=lambda f: (_group_rank(f.sort_group), f.item_code.casefold()))

    row = FIRST_ROW
    current = None
    for f in parts:
        if f.sort_group != current:
            current = f.sort_group
            header = GROUP_HEADERS.get(current)
            if header:
                row += 1
                row = write_header(ws, row, header)
                row += 1
        row = _pp_block(ws, row, f)

    for title, items, writer in (
        ("BOLTING", bolts, _bolt_block),
        ("GASKET", gaskets, _gasket_block),
        ("VALVE", valves, _valve_block),
    ):
        if not items:
            continue
        row = write_header(ws, row, title)
        for f in items:
            row = writer(ws, row, f)

    ws.print_area = f"A1:N{row}"
    return row


def generate_for_classes(
    catalog: CatalogNode | None,
    classes: Iterable[str] | None,
    rules: dict | None = None,
) -> str:
    """
    One summary workbook per class. Never raises; returns a status line with
    success and failure counts. A single code may be passed as a plain string.
    """
    if isinstance(classes, str):
        classes = [classes]

    try:
        if rules is None:
            rules = load_rules()
        templates_dir, output_dir = project_dirs(rules)
        template = templates_dir / rules["pipe_class"]["template"]
        roots = narrowed_roots(catalog, rules)
        attributes = rules.get("class_attributes") or CLASS_ATTRIBUTES
    except Exception as e:
        log.exception("Could not read pipe class rules")
        return f"Configuration missing: {e!r}"
    if not template.is_file():
        return f"Template not found: {template}"

    ok = failed = 0
    for code in classes or []:
        if not code or not code.strip():
            continue
        code = code.strip()
        try:
            out = output_dir / f"{sanitize_file_name(code)}.xlsx"
            wb = open_template_copy(template, out)
            if not wb.worksheets:
                raise ValueError("Template workbook has no sheets.")
            records = collect_items_for_class(roots, code, attributes)
            fill_sheet_for_class(wb.worksheets[0], code, records)
            wb.save(out)
            ok += 1
        except Exception:
            failed += 1
            log.exception("Pipe class summary for %s failed", code)

    return f"Pipe class summaries generated: OK={ok}, Failed={failed}. Output: {output_dir}"
