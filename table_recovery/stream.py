"""
Stream strategy: tables from text-layer glyph positions, without ruling lines.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import math

from .base import BaseStrategy
from .pdf_loader import Glyph
from .table import Table
from .utils import setup_logger, locate


logger = setup_logger(__name__)

LINE_TOLERANCE = 2.0
SPAN_GAP = 6.0
WORD_GAP = 1.0
COLUMN_GAP = 12.0
COLUMN_BUCKET = 10.0


@dataclass
class Span:
    """Run of glyphs on one line that belong to the same cell."""
    x: float
    text: str


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def group_lines(glyphs: Sequence[Glyph], tolerance: float = LINE_TOLERANCE) -> List[List[Glyph]]:
    """
    Bucket glyphs into visual lines by baseline.

    Returns:
        Lines from the top of the page down, each sorted left to right
    """
    buckets: Dict[int, List[Glyph]] = {}
    for g in glyphs:
        buckets.setdefault(_round_half_up(g.y / tolerance), []).append(g)
    return [sorted(buckets[k], key=lambda g: g.x) for k in sorted(buckets, reverse=True)]


def build_spans(line: Sequence[Glyph]) -> List[Span]:
    """
    Merge adjacent glyphs into spans.

    Glyphs closer than ``SPAN_GAP`` share a span; inside a span a gap wider
    than ``WORD_GAP`` becomes a single space.
    """
    spans: List[Span] = []
    current: Optional[Span] = None
    last_right = 0.0
    for g in line:
        gap = g.x - last_right
        if current is None or gap > SPAN_GAP:
            current = Span(x=g.x, text=g.text)
            spans.append(current)
        elif gap > WORD_GAP:
            current.text += " " + g.text
        else:
            current.text += g.text
        last_right = g.x + g.width
    for span in spans:
        span.text = span.text.strip()
    return spans


def infer_column_bounds(lines: Sequence[Sequence[Glyph]]) -> List[float]:
    """
    Column boundaries from recurring horizontal gaps.

    Every gap wider than ``COLUMN_GAP`` votes for the bucket of its midpoint;
    each bucket right of the page edge that received a vote becomes a
    separator.

    Returns:
        ``[0, separators..., inf]``
    """
    hist: Counter = Counter()
    for line in lines:
        for prev, nxt in zip(line, line[1:]):
            right = prev.x + prev.width
            gap = nxt.x - right
            if gap > COLUMN_GAP:
                hist[_round_half_up((right + gap / 2) / COLUMN_BUCKET)] += 1

    bounds = [0.0]
    bounds.extend(k * COLUMN_BUCKET for k in sorted(hist) if k > 0)
    bounds.append(math.inf)
    return bounds


def table_from_glyphs(glyphs: Sequence[Glyph], strip_text: bool = True,
                      page_height: Optional[float] = None) -> Table:
    """
    Build a table from the glyphs of one page.

    Args:
        glyphs: Text-layer glyphs (PDF points, bottom-left origin)
        strip_text: Trim whitespace around cell text
        page_height: Page height used to express row positions from the top
            of the page; defaults to the top of the highest glyph

    Returns:
        Table with one row per visual line; 0x0 when there are no glyphs
    """
    if not glyphs:
        return Table([], [0.0, math.inf], [])

    lines = group_lines(glyphs)
    bounds = infer_column_bounds(lines)
    ncols = len(bounds) - 1

    grid: List[List[str]] = []
    for line in lines:
        row = [""] * ncols
        for span in build_spans(line):
            col = locate(bounds, span.x)
            row[col] = span.text if not row[col] else row[col] + " " + span.text
        if strip_text:
            row = [v.strip() for v in row]
        grid.append(row)

    if page_height is None:
        page_height = max(g.y + g.height for g in glyphs)
    row_bounds = [page_height - sum(g.y for g in line) / len(line) for line in lines]

    return Table(grid, bounds, row_bounds)


class StreamStrategy(BaseStrategy):
    """Infers columns from whitespace gaps in the PDF text layer."""

    name = "stream"

    def extract_page(self, document, page_number: int) -> Optional[Table]:
        try:
            glyphs = document.glyphs(page_number)
        except Exception as e:
            logger.error(f"Failed to read text layer of page {page_number}: {e}")
            return None

        table = table_from_glyphs(
            glyphs,
            strip_text=self.config.strip_text,
            page_height=document.page_height(page_number),
        )
        logger.info(f"[stream] page {page_number}: {table.nrows}x{table.ncols} table "
                    f"from {len(glyphs)} glyphs")
        return table
