import math

from table_recovery.scoring import score_table, score_tables
from table_recovery.table import Table


def test_empty_table_scores_zero():
    assert score_table(Table([])) == 0.0
    assert score_tables([]) == 0.0


def test_dense_two_by_two_beats_sparse_two_by_three():
    dense = Table([["a", "b"], ["c", "d"]])
    sparse = Table([["a", "", ""], ["", "", ""]])
    assert score_table(dense) > score_table(sparse)


def test_score_non_decreasing_in_fill():
    # one row, structure fixed at 1, richness fixed by width
    scores = []
    for filled in range(2, 11):
        row = ["x"] * filled + [""] * (10 - filled)
        scores.append(score_table(Table([row])))
    assert scores == sorted(scores)


def test_known_score():
    table = Table([["a", "b"], ["c", ""]])
    expected = 0.6 * 0.75 + 0.3 * 0.5 + 0.1 * math.log(3) / math.log(4)
    assert math.isclose(score_table(table), expected)


def test_blank_cells_do_not_count():
    assert score_table(Table([["  ", ""]])) == 0.1 * math.log(3) / math.log(4)


def test_score_tables_is_mean():
    a = Table([["a", "b"]])
    b = Table([])
    assert math.isclose(score_tables([a, b]), score_table(a) / 2)
