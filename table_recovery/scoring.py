"""
Heuristic quality score for recovered tables.
"""

import math
from typing import Sequence

from .table import Table


FILL_WEIGHT = 0.6
STRUCTURE_WEIGHT = 0.3
RICHNESS_WEIGHT = 0.1


def score_table(table: Table) -> float:
    """
    Score a table in ``[0, 1]``.

    ``0.6 * fill + 0.3 * structure + 0.1 * richness`` where fill is the share
    of non-blank cells, structure the share of rows with more than one
    non-blank cell, and richness ``log(1 + ncols) / log(4)``.

    Args:
        table: Table to score

    Returns:
        Score, 0.0 for an empty table
    """
    if table.is_empty():
        return 0.0

    rows = table.as_list()
    total = table.nrows * table.ncols
    filled = 0
    structured_rows = 0
    for row in rows:
        row_filled = sum(1 for v in row if v.strip())
        filled += row_filled
        if row_filled > 1:
            structured_rows += 1

    fill = filled / total
    structure = structured_rows / table.nrows
    richness = math.log(1 + table.ncols) / math.log(4)
    return FILL_WEIGHT * fill + STRUCTURE_WEIGHT * structure + RICHNESS_WEIGHT * richness


def score_tables(tables: Sequence[Table]) -> float:
    """Mean score of the tables, 0.0 when there are none."""
    if not tables:
        return 0.0
    return sum(score_table(t) for t in tables) / len(tables)
