import pytest

from table_recovery.postprocessing import (
    TablePostprocessor,
    is_likely_numeric,
    normalize_amount,
    normalize_date,
)


@pytest.mark.parametrize("text,expected", [
    ("1,234.50", True),
    ("$12.00CR", True),
    ("-5", True),
    ("CR", False),
    ("Coffee", False),
    ("", False),
    (None, False),
])
def test_is_likely_numeric(text, expected):
    assert is_likely_numeric(text) is expected


@pytest.mark.parametrize("text,expected", [
    ("1 234.50", "1234.50"),
    ("1O.5O", "10.50"),
    ("1.234,56", "1,234.56"),
    ("12,50", "12.50"),
    ("1,234.56", "1,234.56"),
    ("", ""),
    (None, ""),
])
def test_normalize_amount(text, expected):
    assert normalize_amount(text) == expected


@pytest.mark.parametrize("text,expected", [
    ("5JAN", "5 JAN"),
    ("12Feb 2024", "12 Feb 2024"),
    ("  3   Mar ", "3 Mar"),
    ("5January", "5January"),
])
def test_normalize_date(text, expected):
    assert normalize_date(text) == expected


def test_numeric_column_is_normalized():
    grid = [["a", "10,00"], ["b", "2,50"], ["c", "3.O0"], ["d", ""]]
    TablePostprocessor().normalize_columns(grid)
    assert [row[1] for row in grid] == ["10.00", "2.50", "3.00", ""]
    assert [row[0] for row in grid] == ["a", "b", "c", "d"]


def test_date_column_is_normalized():
    grid = [["01Jan"], ["02 Feb"], ["misc"]]
    TablePostprocessor().normalize_columns(grid)
    assert [row[0] for row in grid] == ["01 Jan", "02 Feb", "misc"]


def test_mixed_column_left_alone():
    grid = [["12.00"], ["text"], ["more text"]]
    TablePostprocessor().normalize_columns(grid)
    assert grid == [["12.00"], ["text"], ["more text"]]


def test_empty_grid():
    assert TablePostprocessor().normalize_columns([]) == []
