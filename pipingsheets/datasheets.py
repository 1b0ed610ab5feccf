"""
datasheets.py — One datasheet per selected catalog item.

Each category has its own template workbook (config/datasheet_rules.yaml).
The template is copied to the output folder, the template sheet is cloned once
per item, filled at fixed JJ-Lurgi coordinates, and finally removed.

Cell writes are conditional: blank values leave the template untouched and a
section label only appears when its values do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from openpyxl.worksheet.worksheet import Worksheet

from pipingsheets.attributes import first_non_empty, resolve
from pipingsheets.catalog import load_rules, project_dirs
from pipingsheets.classify import Category, classify
from pipingsheets.fields import bolt_fields, gasket_fields, piping_part_fields, valve_fields
from pipingsheets.records import Record
from pipingsheets.sizes import expand
from pipingsheets.workbook import (
    clear_contents,
    clone_sheet,
    detect_size_table_start_row,
    drop_sheets,
    find_template_sheet,
    open_template_copy,
    put,
    safe_sheet_name,
    set_bold,
    set_named_range,
    set_total_formula,
    set_value,
    unique_sheet_name,
)

log = logging.getLogger(__name__)

REVISION = "1.0"


# ── Size tables ────────────────────────────────────────────

@dataclass(frozen=True)
class SizeTableLayout:
    min_row: int = 29
    size_col: int = 4       # D
    qty_col: int = 6        # F
    price_col: int = 7      # G
    total_col: int = 8      # H
    header: str = "Size"
    default_qty: float = 0.0


PIPING_PART_SIZES = SizeTableLayout()
GASKET_SIZES = SizeTableLayout()
VALVE_SIZES = SizeTableLayout(min_row=33, price_col=6, qty_col=7)


def write_size_table(
    ws: Worksheet,
    size_min: str,
    size_max: str,
    layout: SizeTableLayout = PIPING_PART_SIZES,
    as_dn: bool = False,
) -> int:
    """
    One row per nominal size between the bounds, under the size header.
    Returns the number of rows written (0 when the range is unusable).
    """
    sizes = expand(size_min, size_max)
    if not sizes:
        return 0

    start = detect_size_table_start_row(ws, layout.header, layout.min_row)
    for offset, size in enumerate(sizes):
        row = start + offset
        put(ws, row, layout.size_col, size.dn if as_dn else size.inch)
        put(ws, row, layout.qty_col, layout.default_qty)
        clear_contents(ws, row, layout.price_col)
        set_total_formula(ws, row, layout.total_col, layout.price_col, layout.qty_col)
    return len(sizes)


# ── Populators ─────────────────────────────────────────────

def populate_piping_part(ws: Worksheet, record: Record) -> None:
    f = piping_part_fields(record)

    set_value(ws, "G7", f.code)
    set_value(ws, "G9", f.type)

    if f.seamless_welded:
        set_value(ws, "G10", f.seamless_welded)
        set_value(ws, "D10", "SEAMLESS/WELDED")

    set_value(ws, "G12", f.material)
    set_value(ws, "G13", f.acc_to_standard)

    if f.schedule:
        set_value(ws, "G14", f.schedule)
        set_value(ws, "D14", "SCHEDULE")

    if f.cls:
        set_value(ws, "G15", f.cls)
        set_value(ws, "D15", f.class_label)

    if f.length:
        set_value(ws, "G16", f.length)
        set_value(ws, "D16", "LENGTH")

    if f.connection_1 or f.connection_2:
        set_value(ws, "D18", "PIPING CONNECTIONS")
        set_value(ws, "G18", f.connection_1)
        set_value(ws, "G19", f.connection_2)

    if f.add_spec_1 or f.add_spec_2:
        set_value(ws, "D20", "ADDITIONAL SPECIFICATION")
        set_value(ws, "G20", f.add_spec_1)
        set_value(ws, "G21", f.add_spec_2)

    if f.colour_1 or f.colour_2:
        set_value(ws, "D21", "COLOUR MARKING")
        set_value(ws, "F21", "1ST")
        set_value(ws, "F22", "2ND")
        set_value(ws, "G21", f.colour_1)
        set_value(ws, "G22", f.colour_2)
        set_value(ws, "D23", "*along entire length of item")

    set_value(ws, "G24", f.piping_class)

    set_value(ws, "D4", "FITTING SPECIFICATION")
    cell = put(ws, 5, 4, f.sub_category.value)
    set_bold(cell)
    set_value(ws, "D57", REVISION)

    write_size_table(ws, f.size_min, f.size_max, PIPING_PART_SIZES)


def populate_gasket(ws: Worksheet, record: Record) -> None:
    f = gasket_fields(record)

    set_value(ws, "G7", f.code)
    set_value(ws, "G9", f.type_text)

    for row, (left, right) in enumerate(f.materials, start=12):
        set_value(ws, f"G{row}", left)
        set_value(ws, f"I{row}", right)

    set_value(ws, "G16", f.acc_to_standard)
    set_value(ws, "G17", f.cls)
    set_value(ws, "G18", f.facing)
    set_value(ws, "G19", f.thickness)

    if f.design_pressure:
        set_value(ws, "G21", f.design_pressure)
        set_value(ws, "D21", "DESIGN PRESSURE")
    if f.design_temperature:
        set_value(ws, "G22", f.design_temperature)
        set_value(ws, "D22", "DESIGN TEMPERATURE")

    set_value(ws, "D4", "GASKET DATA SHEET")
    set_value(ws, "D57", REVISION)

    write_size_table(ws, f.size_min, f.size_max, GASKET_SIZES, as_dn=True)


def populate_valve(ws: Worksheet, record: Record) -> None:
    f = valve_fields(record)

    set_value(ws, "F7", f.code)
    set_value(ws, "F9", f.type)
    set_value(ws, "F11", f.medium)
    set_value(ws, "F12", f.corrosive)

    set_value(ws, "F14", f.design_pressure_1)
    set_value(ws, "F15", f.design_temperature_1)
    set_value(ws, "G14", f.design_pressure_2)
    set_value(ws, "G15", f.design_temperature_2)
    set_value(ws, "H14", f.design_pressure_3)
    set_value(ws, "H15", f.design_temperature_3)

    set_value(ws, "F17", f.design_code)
    set_value(ws, "D17", f.rating_label)

    # Material block: C1 -> F, C2 -> H, C3 -> I, rows 19..22
    for row, (c1, c2, c3) in enumerate(f.descriptions, start=19):
        if row == 19:
            c2 = first_non_empty(c2, f.material_group)
        if row == 20:
            c3 = first_non_empty(c3, f.material_number)
        set_value(ws, f"F{row}", c1)
        set_value(ws, f"H{row}", c2)
        set_value(ws, f"I{row}", c3)

    if f.connection:
        set_value(ws, "D24", "PIPING CONNECTION")
        set_value(ws, "F24", f.connection)
    if f.operation:
        set_value(ws, "D25", "OPERATION")
        set_value(ws, "F25", f.operation)
    set_value(ws, "F26", f.add_spec_1)
    set_value(ws, "F27", f.add_spec_2)

    set_value(ws, "F29", f.piping_class)

    set_value(ws, "D4", "VALVE DATA SHEET")
    set_value(ws, "D57", REVISION)

    write_size_table(ws, f.size_min, f.size_max, VALVE_SIZES)


# Workbook defined name -> BoltFields attribute
BOLT_NAMED_RANGES: tuple[tuple[str, str], ...] = (
    ("Code", "code"),
    ("Type", "type"),
    ("MaterialBolts", "bolt_material"),
    ("MaterialNuts", "nut_material"),
    ("Coating", "coating"),
    ("AccToStandard", "acc_to_standard"),
    ("Remarks", "remarks"),
)


def populate_bolts(ws: Worksheet, record: Record, template: Worksheet | None = None) -> None:
    f = bolt_fields(record)

    set_value(ws, "G7", f.code)
    set_value(ws, "G9", f.type)
    set_value(ws, "G11", f.bolt_material)
    set_value(ws, "G12", f.nut_material)
    set_value(ws, "G13", f.coating)
    set_value(ws, "G15", f.acc_to_standard)
    set_value(ws, "G20", f.remarks)

    for range_name, attr in BOLT_NAMED_RANGES:
        set_named_range(ws.parent, range_name, template, ws, getattr(f, attr))


def populate(ws: Worksheet, record: Record, category: Category, template: Worksheet | None = None) -> None:
    if category is Category.VALVE:
        populate_valve(ws, record)
    elif category is Category.GASKET:
        populate_gasket(ws, record)
    elif category is Category.BOLT:
        populate_bolts(ws, record, template)
    else:
        populate_piping_part(ws, record)


# ── Generation run ─────────────────────────────────────────

@dataclass
class GenerationResult:
    created: int = 0
    skipped: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)
    output_files: list[Path] = field(default_factory=list)
    message: str = ""


def sheet_name_for(record: Record) -> str:
    seed = first_non_empty(
        resolve(record, "Code", fuzzy=False),
        resolve(record, "Device designation", fuzzy=False),
        resolve(record, "Comment", fuzzy=False),
        record.name,
    )
    return safe_sheet_name(seed)


def _open_category_books(rules: dict, templates_dir: Path, output_dir: Path) -> dict:
    """category -> (workbook, template sheet, output path) for every template present."""
    books = {}
    for category in Category:
        cfg = rules["templates"][category.value]
        src = templates_dir / cfg["file"]
        if not src.is_file():
            log.warning("No %s template at %s", category.value, src)
            continue
        out = output_dir / cfg["output"]
        wb = open_template_copy(src, out)
        template = find_template_sheet(wb, cfg["sheet"])
        if template is None:
            log.warning("%s has no sheets", src.name)
            continue
        books[category] = (wb, template, out)
    return books


def _summary_message(result: GenerationResult, output_dir: Path) -> str:
    if result.created:
        msg = f"Generated {result.created} datasheet(s).\nOutput: {output_dir}"
    else:
        msg = "No datasheets generated."
    if result.skipped:
        msg += "\n\nItems skipped (missing category template/workbook):\n - " + "\n - ".join(result.skipped)
    if result.failed:
        msg += "\n\nItems failed:\n - " + "\n - ".join(f"{name}: {reason}" for name, reason in result.failed)
    return msg


def generate_for_selection(records: list[Record] | None, rules: dict | None = None) -> GenerationResult:
    """
    Write one sheet per record into the category workbooks.

    Never raises: missing templates, skipped items and per-item failures are
    all reported through the returned result.
    """
    result = GenerationResult()
    if not records:
        result.message = "No items selected."
        return result

    try:
        if rules is None:
            rules = load_rules()
        templates_dir, output_dir = project_dirs(rules)
    except Exception as e:
        log.exception("Could not read datasheet rules")
        result.message = f"Configuration missing: {e!r}"
        return result
    if not templates_dir.is_dir():
        result.message = f"Templates folder not found at:\n{templates_dir}"
        return result

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        books = _open_category_books(rules, templates_dir, output_dir)
    except Exception as e:
        log.exception("Could not prepare output workbooks")
        result.message = f"Could not prepare output workbooks: {e}"
        return result

    used: set[Category] = set()
    for record in records:
        category = classify(record).category
        name = sheet_name_for(record)
        book = books.get(category)
        if book is None:
            result.skipped.append(name)
            continue

        wb, template, _ = book
        ws = None
        try:
            ws = clone_sheet(wb, template, unique_sheet_name(wb, name))
            populate(ws, record, category, template)
        except Exception as e:
            log.exception("Datasheet for %s failed", name)
            result.failed.append((name, str(e)))
            if ws is not None and ws.title in wb.sheetnames:
                wb.remove(ws)
            continue
        result.created += 1
        used.add(category)

    for category, (wb, template, out) in books.items():
        drop_sheets(wb, [template])
        try:
            wb.save(out)
        except Exception as e:
            log.exception("Could not save %s", out)
            result.failed.append((out.name, str(e)))
            continue
        if category in used:
            result.output_files.append(out)

    result.message = _summary_message(result, output_dir)
    log.info("Datasheets: created=%d skipped=%d failed=%d",
             result.created, len(result.skipped), len(result.failed))
    return result
