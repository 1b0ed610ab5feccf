from openpyxl import Workbook, load_workbook

from pipingsheets.datasheets import (
    generate_for_selection,
    populate_piping_part,
    sheet_name_for,
    write_size_table,
)
from pipingsheets.records import Record
from pipingsheets.workbook import safe_sheet_name, unique_sheet_name


def _output(output_dir, rules, category):
    return load_workbook(output_dir / rules["templates"][category]["output"])


def test_piping_part_size_table_half_to_two_inch(templates_dir, output_dir, rules, elbow):
    result = generate_for_selection([elbow], rules)

    assert result.created == 1
    assert not result.skipped and not result.failed
    assert [p.name for p in result.output_files] == ["Piping parts data sheets.xlsx"]

    wb = _output(output_dir, rules, "PipingPart")
    assert wb.sheetnames == ["EL-90-LR"]
    ws = wb["EL-90-LR"]

    assert [ws.cell(row=r, column=4).value for r in range(29, 35)] == ["1/2", "3/4", "1", "1 1/4", "1 1/2", "2"]
    assert ws["D35"].value is None
    for r in range(29, 35):
        assert ws.cell(row=r, column=6).value == 0
        assert ws.cell(row=r, column=7).value is None
    assert ws["H29"].value == "=IFERROR(G29*F29,0)"
    assert ws["H34"].value == "=IFERROR(G34*F34,0)"


def test_piping_part_header_cells(templates_dir, output_dir, rules, elbow):
    generate_for_selection([elbow], rules)
    ws = _output(output_dir, rules, "PipingPart")["EL-90-LR"]

    assert ws["G7"].value == "EL-90-LR"
    assert ws["G9"].value == "ELBOW 90 LR"
    assert ws["G12"].value == "1.0345"
    assert ws["G13"].value == "EN 10253-2"
    assert ws["D14"].value == "SCHEDULE" and ws["G14"].value == "40"
    assert ws["G24"].value == "150JX00"
    assert ws["D5"].value == "FITTINGS"
    assert ws["D5"].font.bold
    assert ws["D57"].value == "1.0"
    # no length attribute: label stays off
    assert ws["D16"].value is None


def test_existing_total_formula_is_kept():
    wb = Workbook()
    ws = wb.active
    ws["D28"] = "Size"
    ws["G29"] = 12.5
    ws["H29"] = "=G29*F29*1.2"

    assert write_size_table(ws, "1/2", "2") == 6
    assert ws["H29"].value == "=G29*F29*1.2"
    assert ws["G29"].value is None
    assert ws["H30"].value == "=IFERROR(G30*F30,0)"


def test_repopulating_a_sheet_keeps_formulas(elbow):
    wb = Workbook()
    ws = wb.active
    ws["D28"] = "Size"
    ws["H30"] = "=G30*F30*1.1"

    populate_piping_part(ws, elbow)
    populate_piping_part(ws, elbow)

    assert [ws[f"D{r}"].value for r in range(29, 35)] == ["1/2", "3/4", "1", "1 1/4", "1 1/2", "2"]
    assert ws["H29"].value == "=IFERROR(G29*F29,0)"
    assert ws["H30"].value == "=G30*F30*1.1"
    assert ws["G7"].value == "EL-90-LR"


def test_size_table_never_starts_above_row_29():
    wb = Workbook()
    ws = wb.active
    ws["D5"] = "SIZE."
    assert write_size_table(ws, "1", "1") == 1
    assert ws["D29"].value == "1"
    assert ws["D6"].value is None


def test_unusable_size_range_writes_nothing():
    wb = Workbook()
    ws = wb.active
    assert write_size_table(ws, "1/2", "") == 0
    assert ws.max_row == 1


def test_gasket_sizes_as_dn_and_pressure_text(templates_dir, output_dir, rules, gasket):
    generate_for_selection([gasket], rules)
    ws = _output(output_dir, rules, "Gasket")["GS-01"]

    assert [ws.cell(row=r, column=4).value for r in range(29, 35)] == [
        "DN15", "DN20", "DN25", "DN32", "DN40", "DN50",
    ]
    assert ws["G9"].value == "SPIRAL WOUND GASKET\nWITH INNER RING"
    assert ws["G12"].value == "WINDING" and ws["I12"].value == "316L"
    assert ws["G19"].value == "4.5"
    assert ws["D21"].value == "DESIGN PRESSURE"
    assert ws["G21"].value == "-1 / +10 BARG"
    assert ws["G22"].value == "120 °C"


def test_valve_fields_and_size_layout(templates_dir, output_dir, rules, valve):
    generate_for_selection([valve], rules)
    ws = _output(output_dir, rules, "Valve")["BV-150"]

    assert ws["F7"].value == "BV-150"
    assert ws["F9"].value == "BALL VALVE, FULL BORE, FLOATING"
    assert ws["F11"].value == "Steam"
    assert ws["F17"].value == "API 6D"
    assert ws["D17"].value == "RATING"
    assert ws["F19"].value == "BODY"
    assert ws["H19"].value == "CS"
    assert ws["I19"].value == "A105"
    assert ws["D24"].value == "PIPING CONNECTION" and ws["F24"].value == "RF"
    assert ws["F29"].value == "150JX00"

    assert [ws.cell(row=r, column=4).value for r in range(33, 36)] == ["1/2", "3/4", "1"]
    assert ws["G33"].value == 0
    assert ws["H33"].value == "=IFERROR(F33*G33,0)"


def test_bolt_named_range_follows_clone(templates_dir, output_dir, rules, bolt):
    generate_for_selection([bolt], rules)
    ws = _output(output_dir, rules, "Bolt")["SB-01"]

    assert ws["G7"].value == "SB-01"
    assert ws["G11"].value == "A193 B7"
    assert ws["G12"].value == "A194 2H"
    assert ws["G13"].value == "HDG"
    assert ws["G30"].value == "SB-01"


def test_empty_selection(rules):
    result = generate_for_selection([], rules)
    assert result.message == "No items selected."
    assert result.created == 0


def test_missing_templates_folder(rules, elbow):
    result = generate_for_selection([elbow], rules)
    assert result.message.startswith("Templates folder not found at:\n")
    assert result.created == 0


def test_missing_configuration_is_reported(elbow):
    result = generate_for_selection([elbow], {"templates": {}})
    assert result.message.startswith("Configuration missing: ")
    assert result.created == 0
    assert result.output_files == []


def test_generating_twice_gives_the_same_sheet(templates_dir, output_dir, rules, elbow):
    def snapshot():
        ws = _output(output_dir, rules, "PipingPart")["EL-90-LR"]
        return {c.coordinate: c.value for row in ws.iter_rows() for c in row}

    generate_for_selection([elbow], rules)
    first = snapshot()
    generate_for_selection([elbow], rules)
    assert snapshot() == first


def test_item_without_category_template_is_skipped(templates_dir, output_dir, rules, elbow, valve):
    (templates_dir / rules["templates"]["Valve"]["file"]).unlink()

    result = generate_for_selection([valve, elbow], rules)

    assert result.created == 1
    assert result.skipped == ["BV-150"]
    assert "Items skipped" in result.message
    assert "BV-150" in result.message
    assert not (output_dir / rules["templates"]["Valve"]["output"]).exists()


def test_duplicate_codes_get_distinct_sheets(templates_dir, output_dir, rules, elbow):
    twin = Record("EL-90 copy", elbow.attributes.copy())

    result = generate_for_selection([elbow, twin], rules)

    assert result.created == 2
    assert _output(output_dir, rules, "PipingPart").sheetnames == ["EL-90-LR", "EL-90-LR (2)"]


def test_sheet_names_are_sanitized():
    assert safe_sheet_name("DN50/PN16: [A]?") == "DN50_PN16_ _A__"
    assert len(safe_sheet_name("X" * 40)) == 31
    assert safe_sheet_name("  ") == "Item"
    assert sheet_name_for(Record("fallback", {})) == "fallback"

    wb = Workbook()
    wb.active.title = "EL-90"
    assert unique_sheet_name(wb, "el-90") == "el-90 (2)"
    assert unique_sheet_name(wb, "TEE") == "TEE"
