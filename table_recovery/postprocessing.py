"""
Postprocessing of OCR-built grids: numeric and date column normalization.
"""

from typing import List
import re

from .utils import setup_logger


logger = setup_logger(__name__)

NUM_LIKE = re.compile(r"^[\s$\-.,0-9CR]+$", re.IGNORECASE)
DATE_LIKE = re.compile(r"^\d{1,2}\s?[A-Za-z]{3}(?:\s?\d{2,4})?$")

# Share of non-empty cells a column needs before it is normalized
COLUMN_MAJORITY = 0.6

_OCR_DIGIT_FIXES = str.maketrans({"O": "0", "I": "1", "L": "1", "S": "5"})
_DOTTED_THOUSANDS = re.compile(r"^(\d{1,3}(?:\.\d{3})+),(\d{2})$")
_DECIMAL_COMMA = re.compile(r"(\d),(\d{2})$")
_DAY_MONTH = re.compile(r"^(\d{1,2})([A-Za-z]{3})(?![A-Za-z])")


def is_likely_numeric(text: str) -> bool:
    """True for amount-like tokens such as ``1,234.50`` or ``$12.00CR``."""
    if text is None:
        return False
    stripped = text.strip().upper().replace("CR", "")
    return bool(stripped) and bool(NUM_LIKE.match(stripped))


def normalize_amount(text: str) -> str:
    """
    Clean an OCR'd amount.

    Whitespace is removed, common letter/digit confusions are fixed, dotted
    thousands with a decimal comma (``1.234,56``) are rewritten with comma
    thousands, and a trailing decimal comma becomes a decimal point.
    """
    if text is None:
        return ""
    s = re.sub(r"\s+", "", text).upper()
    s = s.translate(_OCR_DIGIT_FIXES)
    dotted = _DOTTED_THOUSANDS.match(s)
    if dotted:
        s = dotted.group(1).replace(".", ",") + "," + dotted.group(2)
    return _DECIMAL_COMMA.sub(r"\1.\2", s)


def normalize_date(text: str) -> str:
    """Collapse whitespace and split a leading day number from the month (``5JAN`` -> ``5 JAN``)."""
    if text is None:
        return ""
    s = " ".join(text.split())
    return _DAY_MONTH.sub(r"\1 \2", s)


class TablePostprocessor:
    """Normalizes numeric-looking and date-looking columns of a grid in place."""

    def __init__(self, majority: float = COLUMN_MAJORITY):
        self.majority = majority

    def classify_column(self, grid: List[List[str]], col: int) -> str:
        """
        Return ``"numeric"``, ``"date"`` or ``""`` for a column.
        """
        numeric = dates = non_empty = 0
        for row in grid:
            if col >= len(row):
                continue
            value = row[col]
            if not value or not value.strip():
                continue
            non_empty += 1
            amount = value.replace("CR", "").strip()
            if amount and NUM_LIKE.match(amount):
                numeric += 1
            elif DATE_LIKE.match(value.strip()):
                dates += 1

        if non_empty == 0:
            return ""
        if numeric / non_empty >= self.majority:
            return "numeric"
        if dates / non_empty >= self.majority:
            return "date"
        return ""

    def normalize_columns(self, grid: List[List[str]]) -> List[List[str]]:
        """
        Normalize every cell of columns that are mostly amounts or mostly dates.

        Args:
            grid: Rows of cell text, modified in place

        Returns:
            The same grid
        """
        if not grid:
            return grid

        for col in range(len(grid[0])):
            kind = self.classify_column(grid, col)
            if kind == "numeric":
                fix = normalize_amount
            elif kind == "date":
                fix = normalize_date
            else:
                continue
            logger.debug(f"Normalizing column {col} as {kind}")
            for row in grid:
                if col < len(row):
                    row[col] = fix(row[col])
        return grid
