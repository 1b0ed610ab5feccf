from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import Workbook
from openpyxl.workbook.defined_name import DefinedName

from pipingsheets.catalog import CatalogNode, load_rules
from pipingsheets.records import Record


def _template(path: Path, sheet: str, size_header_row: int | None = 28) -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet
    ws["D3"] = "JJ-LURGI"
    if size_header_row is not None:
        ws.cell(row=size_header_row, column=4, value="Size")
        ws.cell(row=size_header_row, column=6, value="Qty")
        ws.cell(row=size_header_row, column=7, value="Price")
        ws.cell(row=size_header_row, column=8, value="Total")
    if sheet == "Template-B":
        wb.defined_names.add(DefinedName("Code", attr_text="'Template-B'!$G$30"))
    wb.save(path)


@pytest.fixture
def rules(tmp_path):
    rules = load_rules()
    rules["paths"] = {"project_root": str(tmp_path), "templates": "templates", "output": "output"}
    return rules


@pytest.fixture
def templates_dir(tmp_path, rules):
    folder = tmp_path / "templates"
    folder.mkdir()
    _template(folder / rules["templates"]["PipingPart"]["file"], "Template-PP")
    _template(folder / rules["templates"]["Gasket"]["file"], "Template-G")
    _template(folder / rules["templates"]["Valve"]["file"], "Template-V", size_header_row=32)
    _template(folder / rules["templates"]["Bolt"]["file"], "Template-B", size_header_row=None)

    wb = Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    ws["D3"] = "PIPING CLASS BASIC DATAs"
    wb.save(folder / rules["pipe_class"]["template"])
    return folder


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "output"


@pytest.fixture
def elbow():
    return Record(name="EL-90", attributes={
        "Code": "EL-90-LR",
        "Type": "ELBOW 90 LR",
        "Material number": "1.0345",
        "Material Standard": "EN 10253-2",
        "Pipe schedule no": "40",
        "Size (Min)": "1/2",
        "Size (Max)": "2",
        "JLE Pipe Class": "150JX00",
        "Sorting for piping class": "2 fittings",
    })


@pytest.fixture
def pipe():
    return Record(name="P-SMLS", attributes={
        "Code": "P-SMLS",
        "Type": "PIPE SMLS",
        "Material number": "1.0345",
        "Size (Min)": "1/2",
        "Size (Max)": "24",
        "JLE Pipe Class": "150JX00",
        "Sorting for piping class": "1",
    })


@pytest.fixture
def gasket():
    return Record(name="GS-01", attributes={
        "Code": "GS-01",
        "Type": "SPIRAL WOUND GASKET",
        "Gasket Inside/Outside Ring": "Inner ring",
        "Description 1 (C1)": "WINDING",
        "Description 1 (C2)": "316L",
        "Thickness": "4.5",
        "JLE Design pressure min": "-1 BAR(G)",
        "JLE Design pressure max": "10 BARG",
        "JLE Design temperature max": "120 °C",
        "Size (Min)": "DN15",
        "Size (Max)": "DN50",
        "JLE Pipe Class": "150JX00, 10JZ02",
    })


@pytest.fixture
def valve():
    return Record(name="BV-150", attributes={
        "Code": "BV-150",
        "Type": "BALL VALVE, FULL BORE, FLOATING",
        "Fluid Name": "Steam",
        "Design code": "API 6D",
        "Rating": "150",
        "Material Group": "CS",
        "Description 1 (C1)": "BODY",
        "Description 1 (C3)": "A105",
        "Piping Connection 1": "RF",
        "Size (Min)": "1/2",
        "Size (Max)": "1",
        "JLE Pipe Class": "150JX00",
    })


@pytest.fixture
def bolt():
    return Record(name="SB-01", attributes={
        "Code": "SB-01",
        "Type": "STUD BOLT",
        "Material - Bolts": "A193 B7",
        "Material - Nuts": "A194 2H",
        "Coating": "HDG",
        "JLE Pipe Class": "150JX00",
    })


@pytest.fixture
def catalog(elbow, pipe, gasket, valve, bolt):
    """Catalogs/JLE/Materials/{Bolts & Nuts, Pipe & Fittings, Valves} holding the fixture records."""
    root = CatalogNode("Catalogs")
    materials = root.add(CatalogNode("JLE")).add(CatalogNode("Materials"))
    bolts = materials.add(CatalogNode("Bolts & Nuts"))
    pipes = materials.add(CatalogNode("Pipe & Fittings"))
    valves = materials.add(CatalogNode("Valves"))
    root.add(CatalogNode("Other")).add(CatalogNode("Ignored", {"JLE Pipe Class": "300JA01"}))

    for folder, rec in ((pipes, elbow), (pipes, pipe), (pipes, gasket), (valves, valve), (bolts, bolt)):
        folder.add(CatalogNode(rec.name, rec.attributes.copy()))
    return root
