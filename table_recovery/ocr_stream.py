"""
OCR stream strategy: tables from OCR word boxes on scanned pages.

Rules are removed from the page before OCR. Columns are anchored on a
recognized header line when possible, otherwise inferred from recurring
whitespace gaps between words.
"""

from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from .base import BaseStrategy
from .config import Config
from .headers import (
    EXPECTED_HEADERS,
    header_positions,
    looks_like_header,
    match_header,
    matches_required_headers,
)
from .ocr_engine import OcrEngine, OcrWord, NullOcrEngine
from .postprocessing import TablePostprocessor, is_likely_numeric
from .preprocessing import clean_for_ocr, save_debug_image
from .table import Table
from .utils import setup_logger, locate


logger = setup_logger(__name__)

# Header search window, as a fraction of the page height below the first line
HEADER_REGION = 0.35
MIN_HEADER_MATCHES = 4
MIN_HEADER_POSITIONS = 3

WORD_GAP = 18
SEPARATOR_BIN = 20
SEPARATOR_MERGE = 30
EDGE_MARGIN = 25


def group_lines(words: Sequence[OcrWord]) -> List[List[OcrWord]]:
    """
    Regroup OCR words into lines by their (block, paragraph, line) locator.

    Blank words are dropped. Lines are ordered by their topmost word, words
    within a line left to right.
    """
    groups: Dict[Tuple[int, int, int], List[OcrWord]] = {}
    for w in words:
        if not w.text or not w.text.strip():
            continue
        groups.setdefault(w.locator, []).append(w)

    lines = [sorted(ws, key=lambda w: w.left) for ws in groups.values()]
    lines.sort(key=lambda ln: min(w.top for w in ln))
    return lines


def _line_top(line: Sequence[OcrWord]) -> int:
    return min(w.top for w in line)


def header_anchored_bounds(lines: Sequence[Sequence[OcrWord]], page_width: float,
                           page_height: float) -> Optional[List[float]]:
    """
    Column bounds from a recognized header line near the top of the table.

    Returns:
        ``[0, midpoints..., page_width]`` or None when no header is found
    """
    if not lines:
        return None

    cutoff = _line_top(lines[0]) + page_height * HEADER_REGION
    for line in lines:
        if _line_top(line) > cutoff:
            break
        match = match_header(line, EXPECTED_HEADERS)
        if len(match) < MIN_HEADER_MATCHES:
            continue
        xs = sorted(header_positions(match, EXPECTED_HEADERS))
        if len(xs) < MIN_HEADER_POSITIONS:
            continue
        logger.debug(f"Anchoring columns on header line: {' '.join(w.text for w in line)}")
        bounds = [0.0]
        bounds.extend((a + b) / 2.0 for a, b in zip(xs, xs[1:]))
        bounds.append(float(page_width))
        return bounds
    return None


def infer_separators(lines: Sequence[Sequence[OcrWord]], page_width: int) -> List[int]:
    """
    Column separators voted for by wide gaps between neighbouring words.

    Gap midpoints are binned; bins with enough votes become separators,
    close peaks are collapsed and separators near the page edges dropped.
    """
    votes: Counter = Counter()
    for line in lines:
        for a, b in zip(line, line[1:]):
            gap = b.left - a.right
            if gap > WORD_GAP:
                mid = max(0, min(page_width, a.right + gap // 2))
                votes[mid // SEPARATOR_BIN] += 1

    if not votes:
        return []

    min_votes = max(3, len(lines) // 3)
    peaks = sorted(k * SEPARATOR_BIN for k, n in votes.items() if n >= min_votes)

    seps: List[int] = []
    for x in peaks:
        if not seps or abs(x - seps[-1]) > SEPARATOR_MERGE:
            seps.append(x)
    return [x for x in seps if EDGE_MARGIN < x < page_width - EDGE_MARGIN]


def word_anchor(word: OcrWord) -> float:
    """Right edge for amounts (right-aligned columns), centre otherwise."""
    if is_likely_numeric(word.text):
        return word.left + word.width - 1
    return word.left + word.width / 2.0


def table_from_lines(lines: Sequence[Sequence[OcrWord]], page_width: int, page_height: int,
                     postprocessor: Optional[TablePostprocessor] = None) -> Table:
    """
    Assemble a table from grouped OCR lines.

    Args:
        lines: Output of ``group_lines``
        page_width: Width of the OCR'd image in pixels
        page_height: Height of the OCR'd image in pixels
        postprocessor: Column normalizer; a default one is used when omitted

    Returns:
        Table; 0x0 when there are no lines
    """
    if not lines:
        return Table([])

    bounds = header_anchored_bounds(lines, page_width, page_height)
    if bounds is None:
        seps = infer_separators(lines, page_width)
        bounds = [0.0] + [float(s) for s in seps] + [float(page_width)]
        logger.debug(f"Inferred {len(seps)} column separator(s) from word gaps")
    ncols = max(1, len(bounds) - 1)

    grid: List[List[str]] = []
    row_tops: List[float] = []
    header_skipped = False
    for line in lines:
        if not header_skipped and looks_like_header(line):
            header_skipped = True
            continue
        row = [""] * ncols
        for w in line:
            col = locate(bounds, word_anchor(w))
            row[col] = w.text if not row[col] else row[col] + " " + w.text
        row = [v.strip() for v in row]
        if any(row):
            grid.append(row)
            row_tops.append(float(_line_top(line)))

    (postprocessor or TablePostprocessor()).normalize_columns(grid)
    return Table(grid, bounds, row_tops)


def table_from_words(words: Sequence[OcrWord], page_width: int, page_height: int) -> Table:
    """Group raw OCR words into lines and assemble the table."""
    return table_from_lines(group_lines(words), page_width, page_height)


class OcrStreamStrategy(BaseStrategy):
    """Column reconstruction from OCR words on a rule-free rendering of the page."""

    name = "ocrstream"

    def __init__(self, config: Optional[Config] = None, ocr_engine: Optional[OcrEngine] = None):
        super().__init__(config)
        self.ocr_engine = ocr_engine or NullOcrEngine()
        self.postprocessor = TablePostprocessor()

    def extract_page(self, document, page_number: int) -> Optional[Table]:
        try:
            gray = document.render(page_number - 1, self.config.ocr_dpi)
        except Exception as e:
            logger.error(f"Failed to render page {page_number}: {e}")
            return None

        bin_inv, cleaned = clean_for_ocr(gray)
        if self.config.debug:
            save_debug_image(bin_inv, self.config.debug_dir, f"ocrstream_binInv_page{page_number}.png")
            save_debug_image(cleaned, self.config.debug_dir, f"ocrstream_cleaned_page{page_number}.png")

        words = self.ocr_engine.image_to_words(cleaned)
        lines = group_lines(words)
        if not lines:
            logger.info(f"[ocrstream] page {page_number}: no words recognized")
            return Table([])

        required = self.config.required_header_tokens
        if required and not any(matches_required_headers(ln, required) for ln in lines):
            logger.info(f"[ocrstream] page {page_number}: no line matches required headers {list(required)}")
            return None

        height, width = cleaned.shape[:2]
        table = table_from_lines(lines, width, height, self.postprocessor)
        logger.info(f"[ocrstream] page {page_number}: {table.nrows}x{table.ncols} table "
                    f"from {len(words)} words")
        return table
