"""
fields.py — Field extraction per category.

Every catalog attribute the datasheet and pipe-class summary writers need is
resolved here, once, into a frozen dataclass. Writers only place values.

Datasheet slots resolve exact keys (with the occasional explicit contains
lookup); summary-only slots resolve fuzzily, since pipe-class members come
from several catalog folders with looser naming.
"""

from __future__ import annotations

from dataclasses import dataclass

from pipingsheets.attributes import first_non_empty, first_resolved, resolve, resolve_like
from pipingsheets.classify import SubCategory, detect_sub_category
from pipingsheets.records import Record

SIZE_MIN_KEYS = ("Size (Min)", "Size min", "Size Min", "MIN SIZE")
SIZE_MAX_KEYS = ("Size (Max)", "Size max", "Size Max", "MAX SIZE")
ITEM_CODE_KEYS = ("Code", "Item code", "Part code")
TAG_KEYS = ("Comment", "Additional Comment", "Item Tag", "Tag")

_UNIT_NOISE = ("BAR(G)", "BAR (G)", "(G)", "BARG", "BAR", "°C", "DEGC")


def _exact(record: Record, *keys: str) -> str:
    return resolve(record, keys, fuzzy=False)


def _fuzzy(record: Record, *keys: str) -> str:
    return resolve(record, keys, fuzzy=True)


def looks_numeric(text: str | None) -> bool:
    """Catalog type codes like '1765' carry no meaning on a sheet."""
    return bool(text) and text.strip().isdigit()


def _readable_type(record: Record, raw: str) -> str:
    if looks_numeric(raw):
        return first_non_empty(
            _fuzzy(record, "Additional Comment"),
            _fuzzy(record, "Comment", "Item Tag", "Tag"),
            raw,
        )
    return raw


def _item_code(record: Record) -> str:
    """Code for the summary's N column."""
    return first_resolved(record, ITEM_CODE_KEYS, TAG_KEYS)


def _sizes(record: Record, extra_min=(), extra_max=()) -> tuple[str, str]:
    lo = first_non_empty(_exact(record, *SIZE_MIN_KEYS, *extra_min), resolve_like(record, "min size"))
    hi = first_non_empty(_exact(record, *SIZE_MAX_KEYS, *extra_max), resolve_like(record, "max size"))
    return lo, hi


def strip_units(text: str | None) -> str:
    """'10 BAR(G)' -> '10', '120 °C' -> '120'. Upper-cased."""
    if not text or not text.strip():
        return ""
    s = text.upper()
    for noise in _UNIT_NOISE:
        s = s.replace(noise, "")
    return s.strip()


def format_pressure_range(min_raw: str, max_raw: str) -> str:
    """Gasket design pressure: '-1 / +10 BARG'. Either side may be missing."""
    lo = strip_units(min_raw)
    hi = strip_units(max_raw)
    if hi and not hi.startswith(("-", "+")):
        hi = "+" + hi
    if lo and hi:
        text = f"{lo} / {hi}"
    else:
        text = (lo + hi).strip()
    return f"{text} BARG" if text else ""


def format_temperature(raw: str) -> str:
    t = strip_units(raw)
    return f"{t} °C" if t else ""


def join_nonblank(left: str, sep: str, right: str) -> str:
    if not left or not left.strip():
        return right if right and right.strip() else ""
    if not right or not right.strip():
        return left
    return f"{left}{sep}{right}"


# ── Piping parts ───────────────────────────────────────────

@dataclass(frozen=True)
class PipingPartFields:
    code: str
    item_code: str
    type: str
    line_type: str
    seamless_welded: str
    material: str
    acc_to_standard: str
    schedule: str
    cls: str
    rating: str
    length: str
    connection_1: str
    connection_2: str
    add_spec_1: str
    add_spec_2: str
    colour_1: str
    colour_2: str
    piping_class: str
    sub_category: SubCategory
    size_min: str
    size_max: str
    sort_group: str

    @property
    def class_label(self) -> str:
        return "RATING" if self.rating else "CLASS"


def _seamless_welded(record: Record) -> str:
    explicit = _exact(record, "Seamless / Welded", "Seamless/Welded", "Seamless - Welded")
    if explicit:
        return explicit
    bft = _exact(record, "Body/Fitting type", "Body / Fitting type")
    up = bft.upper()
    if "SEAMLESS" in up:
        return "SEAMLESS"
    if "WELDED" in up:
        return "WELDED"
    return bft


def _sort_group(record: Record) -> str:
    sort = _fuzzy(record, "Sorting for piping class")
    return sort.strip()[0] if sort.strip() else "0"


def piping_part_fields(record: Record) -> PipingPartFields:
    rating = _exact(record, "Rating")
    bft = _exact(record, "Body/Fitting type", "Body / Fitting type")
    length = _exact(record, "Length")
    if not length and "LENGTH" in bft.upper():
        length = bft
    size_min, size_max = _sizes(record)

    return PipingPartFields(
        code=first_non_empty(
            _exact(record, "Comment"),
            _exact(record, "Device designation"),
            _exact(record, "Code"),
            record.name,
        ),
        item_code=_item_code(record),
        type=first_non_empty(
            _exact(record, "Additional Comment"),
            _exact(record, "Type"),
            _exact(record, "Specification"),
        ),
        line_type=_readable_type(record, first_non_empty(_exact(record, "Type"), bft)),
        seamless_welded=_seamless_welded(record),
        material=_exact(record, "Material number", "Material Number", "Material"),
        acc_to_standard=_exact(record, "Material Standard", "Acc to Standard", "ACC. TO STANDARD"),
        schedule=_exact(record, "Pipe schedule no", "Pipe schedule number", "Schedule"),
        cls=first_non_empty(_exact(record, "Class"), rating),
        rating=rating,
        length=length,
        connection_1=_exact(record, "Piping Connection 1", "End Connection 1"),
        connection_2=_exact(record, "Piping Connection 2", "End Connection 2"),
        add_spec_1=_exact(record, "Additional specification 1"),
        add_spec_2=_exact(record, "Additional specification 2"),
        colour_1=_exact(record, "Color Mark 1", "Colour marking 1"),
        colour_2=_exact(record, "Color Mark 2", "Colour marking 2"),
        piping_class=_exact(record, "JLE Pipe Class", "JLE Pipe Class 1", "Piping class"),
        sub_category=detect_sub_category(record),
        size_min=size_min,
        size_max=size_max,
        sort_group=_sort_group(record),
    )


# ── Gaskets ────────────────────────────────────────────────

@dataclass(frozen=True)
class GasketFields:
    code: str
    item_code: str
    type: str
    line_type: str
    ring: str
    materials: tuple[tuple[str, str], ...]   # (column 1, column 2) per material row
    acc_to_standard: str
    cls: str
    facing: str
    thickness: str
    design_pressure: str
    design_temperature: str
    size_min: str
    size_max: str

    @property
    def type_text(self) -> str:
        if not self.ring:
            return self.type
        return f"{self.type}\nWITH {self.ring.upper()}"


def _material_pair(record: Record, n: int) -> tuple[str, str]:
    left = first_non_empty(_exact(record, f"Description {n} (C1)"), _exact(record, f"Material {n} column 1"))
    right = first_non_empty(_exact(record, f"Description {n} (C2)"), _exact(record, f"Material {n} column 2"))
    return left, right


def gasket_fields(record: Record) -> GasketFields:
    size_min, size_max = _sizes(record)
    dp_min = first_non_empty(
        _exact(record, "JLE Design pressure min"),
        resolve_like(record, "JLE Design pressure min"),
        resolve_like(record, "Design pressure min"),
    )
    dp_max = first_non_empty(
        _exact(record, "JLE Design pressure max"),
        resolve_like(record, "JLE Design pressure max"),
        resolve_like(record, "Design pressure max"),
    )
    dt = first_non_empty(
        _exact(record, "JLE Design temperature max", "Design temperature"),
        resolve_like(record, "Design temperature"),
    )

    return GasketFields(
        code=first_non_empty(
            _exact(record, "Device designation"),
            _exact(record, "Code"),
            _exact(record, "Comment"),
            record.name,
        ),
        item_code=_item_code(record),
        type=first_non_empty(
            _exact(record, "Additional Comment"),
            _exact(record, "Type"),
            _exact(record, "Specification"),
            _exact(record, "Comment"),
        ),
        line_type=_readable_type(record, _exact(record, "Type")),
        ring=first_non_empty(
            _exact(record, "Gasket Inside/Outside Ring", "Inside / Outside Ring", "Inside/Outside Ring"),
            resolve_like(record, "Inside/Outside"),
            resolve_like(record, "Inside / Outside"),
        ),
        materials=tuple(_material_pair(record, n) for n in range(1, 5)),
        acc_to_standard=_exact(record, "Material Standard", "Acc to Standard", "ACC. TO STANDARD", "Standard"),
        cls=_exact(record, "Class"),
        facing=_exact(record, "Facing", "Flange Facing"),
        thickness=first_non_empty(_exact(record, "Thickness"), resolve_like(record, "thickness")),
        design_pressure=format_pressure_range(dp_min, dp_max),
        design_temperature=format_temperature(dt),
        size_min=size_min,
        size_max=size_max,
    )


# ── Valves ─────────────────────────────────────────────────

@dataclass(frozen=True)
class ValveFields:
    code: str
    item_code: str
    type: str
    line_type: str
    medium: str
    corrosive: str
    design_pressure_1: str
    design_temperature_1: str
    design_pressure_2: str
    design_temperature_2: str
    design_pressure_3: str
    design_temperature_3: str
    design_code: str
    summary_design_code: str
    rating: str
    cls: str
    descriptions: tuple[tuple[str, str, str], ...]   # (C1, C2, C3) per row 1..4
    material_group: str
    material_number: str
    connection: str
    mounting: str
    add_spec_1: str
    add_spec_2: str
    operation: str
    piping_class: str
    size_min: str
    size_max: str

    @property
    def rating_label(self) -> str:
        if self.rating:
            return "RATING"
        return "CLASS" if self.cls else ""


def _description_row(record: Record, n: int) -> tuple[str, str, str]:
    return tuple(
        first_non_empty(
            _exact(record, f"Description {n} (C{c})", f"Description{n} (C{c})"),
            _exact(record, f"Material {n} column {c}", f"Material {n} col {c}"),
        )
        for c in (1, 2, 3)
    )


def _min_max(lo: str, hi: str) -> str:
    lo, hi = lo.strip(), hi.strip()
    if lo and hi:
        return f"{lo} / {hi}"
    return lo + hi


def valve_fields(record: Record) -> ValveFields:
    size_min, size_max = _sizes(record, ("DN min", "DN Min"), ("DN max", "DN Max"))
    connection = first_non_empty(
        _exact(record, "Piping Connection 1"),
        resolve_like(record, "Piping Connection 1"),
        _exact(record, "Piping connection", "End connection", "Connection", "Ends", "Flange Facing", "Facing"),
    )
    dp_min = first_non_empty(
        _exact(record, "JLE Design pressure min"),
        resolve_like(record, "JLE Design pressure min"),
        resolve_like(record, "Design pressure min"),
    )
    dp_max = first_non_empty(
        _exact(record, "JLE Design pressure max"),
        resolve_like(record, "JLE Design pressure max"),
        resolve_like(record, "Design pressure max"),
    )

    return ValveFields(
        code=first_non_empty(
            _exact(record, "Code"),
            _exact(record, "Device designation"),
            _exact(record, "Tag"),
            _exact(record, "Valve code"),
            _exact(record, "Comment"),
            record.name,
        ),
        item_code=_item_code(record),
        type=first_non_empty(
            _exact(record, "Additional Comment"),
            _exact(record, "Valve Type"),
            _exact(record, "Type"),
            _exact(record, "Specification"),
            _exact(record, "Comment"),
        ),
        line_type=_readable_type(record, _fuzzy(record, "Type", "Valve Type")),
        medium=first_non_empty(
            _exact(record, "Fluid Name"),
            resolve_like(record, "Fluid Name"),
            _exact(record, "Medium", "Media", "Fluid", "Service"),
        ),
        corrosive=first_non_empty(
            _exact(record, "Corrosive Component"),
            resolve_like(record, "Corrosive Component"),
            _exact(record, "Corrosive", "Corrosion component", "Corrosive media"),
        ),
        design_pressure_1=_min_max(dp_min, dp_max),
        design_temperature_1=first_non_empty(
            _exact(record, "JLE Design temperature max"),
            resolve_like(record, "JLE Design temperature max"),
            _exact(record, "Design temperature 1", "Design temperature"),
        ),
        design_pressure_2=_exact(record, "Design pressure 2", "Design pressure 2 (bar g)", "DP2"),
        design_temperature_2=_exact(record, "Design temperature 2", "Design temperature 2 (°C)", "DT2"),
        design_pressure_3=_exact(record, "Design pressure 3", "Design pressure 3 (bar g)", "DP3"),
        design_temperature_3=_exact(record, "Design temperature 3", "Design temperature 3 (°C)", "DT3"),
        design_code=_exact(record, "Design code", "Standard", "Code"),
        summary_design_code=first_non_empty(
            _exact(record, "Design code", "DIN/ANSI", "DIN / ANSI", "Standard"),
            resolve_like(record, "design code"),
        ),
        rating=_exact(record, "Rating"),
        cls=_exact(record, "Class"),
        descriptions=tuple(_description_row(record, n) for n in range(1, 5)),
        material_group=_exact(record, "Material Group"),
        material_number=_exact(record, "Material number", "Material"),
        connection=connection,
        mounting=first_non_empty(connection, resolve_like(record, "MOUNTING")),
        add_spec_1=first_non_empty(
            _exact(record, "Additional specification 1", "Remark 1"),
            resolve_like(record, "Remark 1"),
        ),
        add_spec_2=first_non_empty(
            _exact(record, "Additional specification 2", "Remark 2"),
            resolve_like(record, "Remark 2"),
        ),
        operation=_exact(record, "Operation", "Operator"),
        piping_class=_exact(
            record, "Piping class", "Pipe class", "JLE Possible Pipe Class", "JLE Pipe Class", "JLE Pipe Class 1",
        ),
        size_min=size_min,
        size_max=size_max,
    )


# ── Bolts & nuts ───────────────────────────────────────────

@dataclass(frozen=True)
class BoltFields:
    code: str
    item_code: str
    type: str
    line_type: str
    bolt_material: str
    nut_material: str
    coating: str
    acc_to_standard: str
    remarks: str

    @property
    def has_coating(self) -> bool:
        return bool(self.coating.strip()) and self.coating.strip().upper() != "NONE"

    def coated(self, material: str) -> str:
        """'A193 B7' -> 'A193 B7 - HDG' when a real coating is set."""
        if not self.has_coating:
            return material
        return join_nonblank(material, " - ", self.coating)


def bolt_fields(record: Record) -> BoltFields:
    return BoltFields(
        code=first_non_empty(_exact(record, "Device designation"), _exact(record, "Code"), record.name),
        item_code=_item_code(record),
        type=first_non_empty(
            _exact(record, "Additional Comment"),
            _exact(record, "Type"),
            _exact(record, "Comment"),
        ),
        line_type=_readable_type(record, _exact(record, "Type")),
        bolt_material=first_non_empty(
            _exact(record, "Material - Bolts", "Material number", "Bolt Material", "Bolts Material"),
            resolve_like(record, "bolt material"),
        ),
        nut_material=first_non_empty(
            _exact(record, "Material - Nuts", "Nut Material", "Nuts Material"),
            resolve_like(record, "nut material"),
        ),
        coating=_exact(record, "Coating"),
        acc_to_standard=_exact(record, "Acc to standard", "ACC. TO STANDARD", "Material Standard", "Standard"),
        remarks=_exact(record, "Remark 1", "Remark 2", "Remarks"),
    )
