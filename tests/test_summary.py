from openpyxl import Workbook, load_workbook

from pipingsheets.records import Record
from pipingsheets.summary import (
    fill_sheet_for_class,
    generate_for_classes,
    split_valve_type,
    write_pp_rows,
    write_valve_rows,
)


def _column(ws, col, rows):
    return [ws[f"{col}{r}"].value for r in rows]


def test_summary_sections_and_blocks(templates_dir, output_dir, rules, catalog):
    status = generate_for_classes(catalog, ["150JX00"], rules)
    assert status == f"Pipe class summaries generated: OK=1, Failed=0. Output: {output_dir}"

    wb = load_workbook(output_dir / "150JX00.xlsx")
    assert wb.sheetnames == ["PIPING PARTS"]
    ws = wb["PIPING PARTS"]
    assert ws["D3"].value == "PIPING CLASS BASIC DATAs - 150JX00"

    # group headers, then BOLTING, GASKET and VALVE sections
    assert ws["A9"].value == "PIPE" and ws["A9"].font.bold
    assert ws["A16"].value == "FITTINGS"
    assert ws["A22"].value == "BOLTING"
    assert ws["A27"].value == "GASKET"
    assert ws["A32"].value == "VALVE"

    # pipe block, rows 11-14
    assert _column(ws, "A", range(11, 15)) == ["PIPE SMLS", None, None, None]
    assert (ws["J11"].value, ws["K11"].value) == ("1/2", "24")
    assert ws["N11"].value == "P-SMLS"

    # elbow block, rows 18-21
    assert ws["A18"].value == "ELBOW 90 LR"
    assert _column(ws, "E", range(18, 21)) == ["1.0345", "EN 10253-2", None]
    assert ws["L18"].value == "SCH40"

    # bolt block, rows 23-26
    assert _column(ws, "E", range(24, 26)) == ["A193 B7 - HDG", "A194 2H - HDG"]
    assert ws["J23"].value == "MATCHING FLANGE"
    assert ws["N23"].value == "SB-01"

    # gasket block, rows 28-31
    assert _column(ws, "E", range(28, 31)) == ["WINDING - 316L", "THICKNESS = 4.5", None]
    assert ws["A29"].value == "Inner ring"

    # valve block, rows 33-36
    assert _column(ws, "A", range(33, 35)) == ["BALL VALVE", "FULL BORE, FLOATING"]
    assert _column(ws, "E", range(33, 35)) == ["BODY : A105", "RF"]
    assert ws["L33"].value == "API 6D"
    assert ws["N33"].value == "BV-150"

    assert ws.print_area.endswith("$A$1:$N$37")


def test_block_clears_stale_template_cells():
    wb = Workbook()
    ws = wb.active
    for r in range(8, 20):
        ws[f"E{r}"] = "stale"

    assert fill_sheet_for_class(ws, "10JZ02", []) == 8

    tee = Record("TEE-1", {"Code": "TEE-1", "Type": "TEE EQUAL", "Material number": "1.4571"})
    assert fill_sheet_for_class(ws, "10JZ02", [tee]) == 12
    assert _column(ws, "E", range(8, 12)) == ["1.4571", None, None, None]
    assert ws["E12"].value == "stale"
    assert ws["N8"].value == "TEE-1"


def test_one_workbook_per_class_and_blank_codes_ignored(templates_dir, output_dir, rules, catalog):
    status = generate_for_classes(catalog, ["150JX00", " ", "10JZ02"], rules)

    assert "OK=2, Failed=0" in status
    assert sorted(p.name for p in output_dir.iterdir()) == ["10JZ02.xlsx", "150JX00.xlsx"]


def test_missing_template(rules, catalog):
    status = generate_for_classes(catalog, ["150JX00"], rules)
    assert status.startswith("Template not found: ")


def test_missing_pipe_class_configuration(rules, catalog):
    del rules["pipe_class"]
    status = generate_for_classes(catalog, ["150JX00"], rules)
    assert status.startswith("Configuration missing: ")


def test_single_code_string_is_one_class(templates_dir, output_dir, rules, catalog):
    status = generate_for_classes(catalog, "150JX00", rules)

    assert "OK=1, Failed=0" in status
    assert [p.name for p in output_dir.iterdir()] == ["150JX00.xlsx"]


def test_split_valve_type():
    assert split_valve_type("BALL VALVE, FULL BORE, FLOATING") == ("BALL VALVE", "FULL BORE, FLOATING")
    assert split_valve_type("GATE VALVE, OS&Y") == ("GATE VALVE", "")
    assert split_valve_type("") == ("", "")


def test_row_writers_advance_four_rows(elbow, valve):
    ws = Workbook().active
    assert write_pp_rows(ws, 5, elbow) == 9
    assert ws["A5"].value == "ELBOW 90 LR"
    assert ws["L5"].value == "SCH40"
    assert write_valve_rows(ws, 9, valve) == 13
    assert ws["A10"].value == "FULL BORE, FLOATING"
