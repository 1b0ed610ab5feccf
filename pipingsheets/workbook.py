"""
workbook.py — openpyxl helpers shared by the datasheet and summary writers.

Writes into a merged range land on the range's top-left cell; clears keep the
cell style. Total-price formulas are only placed into blank cells so a
user-entered formula survives a re-run.
"""

from __future__ import annotations

import re
import shutil
from copy import copy
from pathlib import Path

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.styles import Alignment
from openpyxl.utils.cell import coordinate_to_tuple, get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

MAX_SHEET_NAME = 31

_BAD_SHEET_CHARS = re.compile(r'[\\/:*?"<>|\[\]]')
_BAD_FILE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


# ── Names ──────────────────────────────────────────────────

def safe_sheet_name(name: str | None) -> str:
    """Valid Excel sheet title: bad characters become '_', at most 31 characters."""
    cleaned = _BAD_SHEET_CHARS.sub("_", (name or "").strip())
    cleaned = cleaned[:MAX_SHEET_NAME].strip()
    return cleaned or "Item"


def unique_sheet_name(wb: Workbook, name: str) -> str:
    """name, or name (2), name (3) … when a sheet already uses it."""
    taken = {t.casefold() for t in wb.sheetnames}
    if name.casefold() not in taken:
        return name
    n = 2
    while True:
        suffix = f" ({n})"
        candidate = name[:MAX_SHEET_NAME - len(suffix)].rstrip() + suffix
        if candidate.casefold() not in taken:
            return candidate
        n += 1


def sanitize_file_name(name: str | None) -> str:
    cleaned = _BAD_FILE_CHARS.sub("_", (name or "").strip())
    return cleaned or "PIPECLASS"


# ── Workbooks & sheets ─────────────────────────────────────

def open_template_copy(template: Path, dest: Path) -> Workbook:
    """Copy a template to dest (overwriting) and open the copy."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(template, dest)
    return load_workbook(dest)


def find_template_sheet(wb: Workbook, name: str) -> Worksheet | None:
    if name in wb.sheetnames:
        return wb[name]
    return wb.worksheets[0] if wb.worksheets else None


def clone_sheet(wb: Workbook, template: Worksheet, title: str) -> Worksheet:
    ws = wb.copy_worksheet(template)
    ws.title = title
    return ws


def drop_sheets(wb: Workbook, sheets: list[Worksheet]) -> None:
    """Remove sheets, never leaving the workbook without one."""
    for ws in sheets:
        if ws.title in wb.sheetnames and len(wb.worksheets) > 1:
            wb.remove(ws)


# ── Cells ──────────────────────────────────────────────────

def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _anchor(ws: Worksheet, row: int, col: int):
    """Cell that actually holds the value at (row, col)."""
    cell = ws.cell(row=row, column=col)
    if not isinstance(cell, MergedCell):
        return cell
    for rng in ws.merged_cells.ranges:
        if rng.min_row <= row <= rng.max_row and rng.min_col <= col <= rng.max_col:
            return ws.cell(row=rng.min_row, column=rng.min_col)
    return cell


def set_value(ws: Worksheet, coord: str, value) -> bool:
    """Write value at an A1 address only when it is non-blank."""
    if _blank(value):
        return False
    row, col = coordinate_to_tuple(coord)
    _anchor(ws, row, col).value = value
    return True


def put(ws: Worksheet, row: int, col: int, value):
    """Unconditional write; blank text clears the cell."""
    cell = _anchor(ws, row, col)
    cell.value = None if _blank(value) else value
    return cell


def clear_contents(ws: Worksheet, row: int, col: int) -> None:
    """Drop the value and keep the style. Inner cells of a merge hold nothing."""
    cell = ws.cell(row=row, column=col)
    if not isinstance(cell, MergedCell):
        cell.value = None


def set_bold(cell) -> None:
    font = copy(cell.font)
    font.bold = True
    cell.font = font


def left_align(cell) -> None:
    cell.alignment = Alignment(
        horizontal="left",
        vertical=cell.alignment.vertical,
        wrap_text=cell.alignment.wrap_text,
    )


def total_formula(row: int, price_col: int, qty_col: int) -> str:
    price = get_column_letter(price_col)
    qty = get_column_letter(qty_col)
    return f"=IFERROR({price}{row}*{qty}{row},0)"


def set_total_formula(ws: Worksheet, row: int, total_col: int, price_col: int, qty_col: int) -> bool:
    """Place price × quantity into a blank total cell; never replace a formula."""
    cell = ws.cell(row=row, column=total_col)
    if isinstance(cell, MergedCell) or not _blank(cell.value):
        return False
    cell.value = total_formula(row, price_col, qty_col)
    return True


# ── Lookup ─────────────────────────────────────────────────

def find_cell_by_text(ws: Worksheet, text: str):
    """
    First cell whose text equals `text` (upper-case, trimmed), scanning rows
    top to bottom. A second pass ignores dots ("SIZE." matches "Size").
    """
    want = (text or "").strip().upper()
    if not want:
        return None

    def scan(norm):
        target = norm(want)
        for row in ws.iter_rows():
            for cell in row:
                if isinstance(cell.value, str) and norm(cell.value.strip().upper()) == target:
                    return cell
        return None

    return scan(lambda s: s) or scan(lambda s: s.replace(".", "").strip())


def detect_size_table_start_row(ws: Worksheet, header: str = "Size", min_row: int = 29) -> int:
    """Row under the size header, never above min_row."""
    hdr = find_cell_by_text(ws, header)
    candidate = hdr.row + 1 if hdr is not None else min_row
    return max(candidate, min_row)


def unmerge_row(ws: Worksheet, row: int, first_col: int = 1, last_col: int = 20) -> None:
    for rng in list(ws.merged_cells.ranges):
        if rng.min_row <= row <= rng.max_row and rng.min_col <= last_col and rng.max_col >= first_col:
            ws.unmerge_cells(rng.coord)


def set_named_range(wb: Workbook, name: str, template: Worksheet | None, target: Worksheet, value) -> bool:
    """
    Write value at a workbook defined name. Names pointing at the template
    sheet are redirected to target. Missing names and blank values are ignored.
    """
    if _blank(value):
        return False
    defn = wb.defined_names.get(name)
    if defn is None and template is not None:
        defn = template.defined_names.get(name)
    if defn is None:
        return False

    for sheet_title, ref in defn.destinations:
        if template is not None and sheet_title == template.title:
            ws = target
        elif sheet_title == target.title:
            ws = target
        else:
            continue
        first = ref.replace("$", "").split(":")[0]
        set_value(ws, first, value)
        return True
    return False
