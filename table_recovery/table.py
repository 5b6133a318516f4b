"""
Table value type and CSV serialization.
"""

import csv
from io import StringIO
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd


class Table:
    """
    Rectangular grid of cell text plus advisory boundary positions.

    Boundaries live in the coordinate space of the strategy that produced the
    table (PDF points for stream, image pixels for lattice and ocr-stream).
    Cells are copied on construction; ``set_cell`` is only meant for grid
    assembly inside a strategy.
    """

    def __init__(self,
                 cells: Iterable[Sequence[Optional[str]]],
                 col_boundaries: Iterable[float] = (),
                 row_boundaries: Iterable[float] = ()):
        """
        Args:
            cells: Rows of cell values; every row must have the same length
            col_boundaries: Non-decreasing column edge positions
            row_boundaries: Non-decreasing row positions

        Raises:
            ValueError: If rows are ragged or boundaries decrease
        """
        self._cells: List[List[str]] = [
            ["" if v is None else str(v) for v in row] for row in cells
        ]
        if self._cells:
            width = len(self._cells[0])
            for r, row in enumerate(self._cells):
                if len(row) != width:
                    raise ValueError(
                        f"Row {r} has {len(row)} cells, expected {width}"
                    )

        self._col_boundaries = _checked_boundaries(col_boundaries, "column")
        self._row_boundaries = _checked_boundaries(row_boundaries, "row")

    @property
    def nrows(self) -> int:
        return len(self._cells)

    @property
    def ncols(self) -> int:
        return len(self._cells[0]) if self._cells else 0

    @property
    def col_boundaries(self) -> Tuple[float, ...]:
        return self._col_boundaries

    @property
    def row_boundaries(self) -> Tuple[float, ...]:
        return self._row_boundaries

    def cell(self, r: int, c: int) -> str:
        return self._cells[r][c]

    def set_cell(self, r: int, c: int, value: Optional[str]) -> None:
        self._cells[r][c] = "" if value is None else str(value)

    def as_list(self) -> Tuple[Tuple[str, ...], ...]:
        """Immutable snapshot of the cells."""
        return tuple(tuple(row) for row in self._cells)

    def is_empty(self) -> bool:
        return self.nrows == 0 or self.ncols == 0

    def is_blank(self) -> bool:
        """True when no cell holds any text."""
        return all(not v.strip() for row in self._cells for v in row)

    def to_csv(self, sep: str = ",") -> str:
        """
        Serialize the table to CSV.

        Fields containing the separator, a double quote or a newline are
        quoted and embedded quotes are doubled. Rows are joined with ``\\n``
        and no trailing newline is written.

        Args:
            sep: Single character field separator

        Returns:
            CSV text
        """
        if len(sep) != 1:
            raise ValueError(f"CSV separator must be a single character, got {sep!r}")

        lines = []
        for row in self._cells:
            fields = []
            for value in row:
                if sep in value or '"' in value or "\n" in value:
                    value = '"' + value.replace('"', '""') + '"'
                fields.append(value)
            lines.append(sep.join(fields))
        return "\n".join(lines)

    @classmethod
    def from_csv(cls, text: str, sep: str = ",") -> "Table":
        """
        Parse CSV text written by ``to_csv`` back into a table.

        Boundaries are not part of the CSV format and come back empty.
        """
        if len(sep) != 1:
            raise ValueError(f"CSV separator must be a single character, got {sep!r}")
        if not text:
            return cls([])

        rows = list(csv.reader(StringIO(text, newline=""), delimiter=sep,
                               quotechar='"', doublequote=True, strict=True))
        width = max((len(r) for r in rows), default=0)
        return cls([r + [""] * (width - len(r)) for r in rows])

    def to_dataframe(self) -> pd.DataFrame:
        """Return the cells as a DataFrame with positional column labels."""
        return pd.DataFrame([list(row) for row in self._cells],
                            columns=range(self.ncols), dtype=object)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return (self._cells == other._cells
                and self._col_boundaries == other._col_boundaries
                and self._row_boundaries == other._row_boundaries)

    def __repr__(self) -> str:
        return f"Table(nrows={self.nrows}, ncols={self.ncols})"


def _checked_boundaries(values: Iterable[float], kind: str) -> Tuple[float, ...]:
    out = tuple(float(v) for v in values)
    for a, b in zip(out, out[1:]):
        if b < a:
            raise ValueError(f"{kind} boundaries must be non-decreasing: {out}")
    return out
