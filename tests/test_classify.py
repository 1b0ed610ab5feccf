from pipingsheets.classify import Category, SubCategory, classify, is_likely_valve
from pipingsheets.records import Record


def test_fixture_items_land_in_their_categories(elbow, pipe, gasket, valve, bolt):
    assert classify(valve).category is Category.VALVE
    assert classify(gasket).category is Category.GASKET
    assert classify(bolt).category is Category.BOLT
    assert classify(elbow).category is Category.PIPING_PART
    assert classify(elbow).sub_category is SubCategory.FITTINGS
    assert classify(pipe).sub_category is SubCategory.PIPE


def test_valve_attribute_name_wins_over_gasket_text():
    rec = Record("GSKT-V", {"Type": "GASKET", "Valve body": "A105"})
    assert classify(rec).category is Category.VALVE


def test_valve_only_attribute_marks_a_valve():
    rec = Record("X-1", {"Type": "1765", "Seat material": "PTFE"})
    assert is_likely_valve(rec)


def test_nut_is_a_bolt():
    assert classify(Record("HEX NUT M16", {})).category is Category.BOLT


def test_flange_keyword_beats_pipe_keyword():
    rec = Record("x", {"Type": "WELD NECK FLANGE FOR PIPE"})
    assert classify(rec).sub_category is SubCategory.FLANGES


def test_branch_fittings_and_fallback():
    assert classify(Record("x", {"Type": "WELDOLET"})).sub_category is SubCategory.BRANCH_FITTINGS
    other = classify(Record("x", {"Type": "STRAINER BASKET"}))
    assert other.category is Category.PIPING_PART
    assert other.sub_category is SubCategory.OTHER
    assert other.sub_category.value == "PIPING PARTS"


def test_classify_is_repeatable_and_uncached(elbow):
    first = classify(elbow)
    assert {classify(elbow) for _ in range(5)} == {first}

    elbow.attributes["Type"] = "SPIRAL WOUND GASKET"
    assert classify(elbow).category is Category.GASKET
