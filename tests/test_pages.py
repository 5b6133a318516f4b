import pytest

from table_recovery.pages import PageSelection


@pytest.mark.parametrize("expr,expected", [
    ("1", {1}),
    ("2-5", {2, 3, 4, 5}),
    ("1,3-4", {1, 3, 4}),
    (" 7 , 2 ", {2, 7}),
])
def test_parse_explicit_pages(expr, expected):
    assert PageSelection.parse(expr).pages == frozenset(expected)


def test_parse_all():
    selection = PageSelection.parse("ALL")
    assert selection.is_all
    assert str(selection) == "all"


def test_blank_expression_selects_first_page():
    assert PageSelection.parse("").pages == frozenset({1})
    assert PageSelection.parse(None).pages == frozenset({1})


@pytest.mark.parametrize("expr", ["abc", "3-1", "1-x", "0", ","])
def test_parse_rejects_bad_expressions(expr):
    with pytest.raises(ValueError):
        PageSelection.parse(expr)


def test_resolve_all_pages():
    assert PageSelection.all().resolve(3) == [1, 2, 3]


def test_resolve_skips_missing_pages():
    assert PageSelection.of(4, 1, 2).resolve(2) == [1, 2]


def test_coerce_shapes():
    assert PageSelection.coerce(None).is_all
    assert PageSelection.coerce(2) == PageSelection.of(2)
    assert PageSelection.coerce("1-2") == PageSelection.of(1, 2)
    assert PageSelection.coerce([3, 1]) == PageSelection.of(1, 3)
    selection = PageSelection.of(5)
    assert PageSelection.coerce(selection) is selection


def test_coerce_rejects_bool():
    with pytest.raises(TypeError):
        PageSelection.coerce(True)


def test_str_lists_sorted_pages():
    assert str(PageSelection.of(3, 1)) == "1,3"
