import pytest

from pipingsheets.sizes import DN_SIZES, NPS_SIZES, expand, index_of, normalize_token, to_dn, to_inch


def test_size_table_has_27_sizes():
    assert len(NPS_SIZES) == len(DN_SIZES) == 27
    assert NPS_SIZES[0] == "1/2" and DN_SIZES[0] == "DN15"
    assert NPS_SIZES[-1] == "36" and DN_SIZES[-1] == "DN900"


@pytest.mark.parametrize("raw, expected", [
    ('1-1/2"', "1 1/2"),
    ("1½ IN", "1 1/2"),
    ("dn 40", "DN40"),
    ('2"', "2"),
    ("3/4 inch", "3/4"),
    ("  ", ""),
    ("0.5", "1/2"),
    ("1.5", "1 1/2"),
    ("1.50", "1 1/2"),
    ("2.0", "2"),
    ("3.5", "3 1/2"),
    ("0.75", "3/4"),
    ("2.3", "2.3"),
])
def test_normalize_token(raw, expected):
    assert normalize_token(raw) == expected


def test_inch_and_dn_are_symmetric():
    for inch, dn in zip(NPS_SIZES, DN_SIZES):
        assert to_dn(inch) == dn
        assert to_inch(dn) == inch
        assert to_inch(to_dn(inch)) == inch


def test_unknown_tokens_pass_through():
    assert to_dn("7") == "7"
    assert to_inch("DN999") == "DN999"
    assert to_inch(None) == ""


def test_index_accepts_either_form():
    assert index_of("DN50") == index_of('2"') == 5
    assert index_of("XL") is None
    assert index_of("") is None


def test_expand_half_to_two_inch():
    sizes = expand("1/2", "2")
    assert [s.inch for s in sizes] == ["1/2", "3/4", "1", "1 1/4", "1 1/2", "2"]
    assert [s.dn for s in sizes] == ["DN15", "DN20", "DN25", "DN32", "DN40", "DN50"]


def test_expand_swaps_reversed_bounds():
    assert [s.inch for s in expand("4", "3")] == ["3", "3 1/2", "4"]


def test_expand_mixed_representations():
    assert [s.dn for s in expand("DN15", '3/4"')] == ["DN15", "DN20"]


def test_expand_invalid_bound_is_empty():
    assert expand("1/2", "99") == []
    assert expand(None, "2") == []


def test_expand_numeric_cell_values():
    assert [s.inch for s in expand("0.5", "2.0")] == ["1/2", "3/4", "1", "1 1/4", "1 1/2", "2"]


def test_expand_ignores_bound_order():
    for a, b in [("1/2", "2"), ("DN50", "3/4"), ("36", "1/2"), ("DN15", "DN15")]:
        assert expand(a, b) == expand(b, a)
