import math

from table_recovery.config import Config
from table_recovery.pdf_loader import Glyph, PdfDocument
from table_recovery.stream import (
    StreamStrategy,
    build_spans,
    group_lines,
    infer_column_bounds,
    table_from_glyphs,
)

from conftest import FakeDocument, make_pdf


def glyphs_at(y, *placed, width=5.0):
    return [Glyph(text, x, y, width, 10.0) for text, x in placed]


def two_group_page():
    return (
        glyphs_at(100, ("A", 5), ("B", 12), ("C", 35), ("D", 42))
        + glyphs_at(80, ("E", 5), ("F", 12), ("G", 35), ("H", 42))
    )


def test_two_columns_from_persistent_gap():
    table = table_from_glyphs(two_group_page(), page_height=800)
    assert table.ncols == 2
    assert table.col_boundaries == (0.0, 30.0, math.inf)
    assert table.as_list() == (("A B", "C D"), ("E F", "G H"))


def test_rows_run_top_down_with_increasing_positions():
    table = table_from_glyphs(two_group_page(), page_height=800)
    assert table.row_boundaries == (700.0, 720.0)


def test_column_inference_is_deterministic():
    lines = group_lines(two_group_page())
    assert infer_column_bounds(lines) == infer_column_bounds(lines)


def test_gaps_left_of_the_page_edge_add_no_separator():
    glyphs = glyphs_at(100, ("a", -60), ("b", -30), ("c", 50))
    table = table_from_glyphs(glyphs, page_height=800)
    assert table.col_boundaries == (0.0, 10.0, math.inf)
    assert table.as_list() == (("a b", "c"),)


def test_no_glyphs_gives_empty_table():
    table = table_from_glyphs([])
    assert table.nrows == 0 and table.ncols == 0
    assert table.col_boundaries == (0.0, math.inf)


def test_no_gaps_gives_single_column():
    table = table_from_glyphs(glyphs_at(50, ("x", 10), ("y", 17)))
    assert table.col_boundaries == (0.0, math.inf)
    assert table.as_list() == (("x y",),)


def test_spans_split_on_wide_gaps_and_join_adjacent_glyphs():
    line = glyphs_at(0, ("a", 0), ("b", 5), ("c", 10), ("d", 30))
    spans = build_spans(line)
    assert [(s.x, s.text) for s in spans] == [(0, "abc"), (30, "d")]


def test_glyphs_with_close_baselines_share_a_line():
    lines = group_lines(glyphs_at(100.4, ("a", 0)) + glyphs_at(99.8, ("b", 10)))
    assert len(lines) == 1
    assert [g.text for g in lines[0]] == ["a", "b"]


def test_strategy_returns_one_table_per_page():
    document = FakeDocument([
        {"glyphs": two_group_page(), "height": 800},
        {"glyphs": [], "height": 800},
    ])
    tables = StreamStrategy(Config(mode="stream")).extract(document)
    assert len(tables) == 2
    assert tables[0].as_list()[0] == ("A B", "C D")
    assert tables[1].is_empty()


def test_strategy_honours_page_selection():
    document = FakeDocument([
        {"glyphs": glyphs_at(10, ("p", 0))},
        {"glyphs": glyphs_at(10, ("q", 0))},
    ])
    tables = StreamStrategy(Config(mode="stream")).extract(document, "2")
    assert [t.as_list() for t in tables] == [(("q",),)]


def test_stream_on_generated_pdf(table_pdf_lines):
    with PdfDocument(make_pdf(table_pdf_lines)) as document:
        tables = StreamStrategy(Config(mode="stream")).extract(document)
    assert len(tables) == 1
    assert tables[0].as_list() == (("1001", "2001"), ("1002", "2002"))
