"""
Hybrid strategy: run every strategy on each page and keep the best result.
"""

from typing import List, NamedTuple, Optional, Sequence

from .base import BaseStrategy, PagesArg
from .config import Config
from .exceptions import ScoreThresholdError
from .lattice import LatticeStrategy
from .ocr_engine import OcrEngine
from .ocr_stream import OcrStreamStrategy
from .pages import PageSelection
from .scoring import score_tables
from .stream import StreamStrategy
from .table import Table
from .utils import setup_logger


logger = setup_logger(__name__)


class Candidate(NamedTuple):
    name: str
    tables: List[Table]
    score: float


class HybridStrategy(BaseStrategy):
    """
    Runs lattice, ocr-stream and stream per page and keeps the highest scoring
    result.

    Ties go to the earlier strategy in ``strategies`` (lattice, then
    ocr-stream, then stream by default).
    """

    name = "hybrid"

    def __init__(self, config: Optional[Config] = None, ocr_engine: Optional[OcrEngine] = None,
                 strategies: Optional[Sequence[BaseStrategy]] = None):
        """
        Args:
            config: Shared configuration for the sub-strategies
            ocr_engine: OCR backend for lattice and ocr-stream
            strategies: Sub-strategies in tie-break priority order
        """
        super().__init__(config)
        if strategies is None:
            strategies = (
                LatticeStrategy(self.config, ocr_engine),
                OcrStreamStrategy(self.config, ocr_engine),
                StreamStrategy(self.config),
            )
        self.strategies = list(strategies)

    def extract(self, document, pages: PagesArg = None) -> List[Table]:
        selection = PageSelection.coerce(pages if pages is not None else self.config.pages)
        tables: List[Table] = []
        for page_number in selection.resolve(document.page_count):
            tables.extend(self.extract_page_tables(document, page_number))
        if not tables:
            logger.info(f"[hybrid] No tables detected on pages {selection}")
        return tables

    def extract_page(self, document, page_number: int) -> Optional[Table]:
        tables = self.extract_page_tables(document, page_number)
        return tables[0] if tables else None

    def extract_page_tables(self, document, page_number: int) -> List[Table]:
        """
        Tables of the best strategy for one page.

        Tables without any text do not count as candidates, so a blank page
        yields no tables rather than a score violation.

        Raises:
            ScoreThresholdError: If the best score is below ``config.min_score``
        """
        one_page = PageSelection.of(page_number)
        candidates = []
        for strategy in self.strategies:
            tables = [t for t in strategy.extract(document, one_page) if not t.is_blank()]
            candidates.append(Candidate(strategy.name, tables, score_tables(tables)))

        if all(not c.tables for c in candidates):
            logger.info(f"[hybrid] page {page_number}: no strategy produced a table")
            return []

        best = candidates[0]
        for c in candidates[1:]:
            if c.score > best.score:
                best = c

        scores = ", ".join(f"{c.name}={c.score:.3f}" for c in candidates)
        logger.info(f"[hybrid] page {page_number}: {scores} -> {best.name}")

        if best.score < self.config.min_score:
            raise ScoreThresholdError(page_number, best.score, self.config.min_score)
        return best.tables
