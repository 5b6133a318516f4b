"""
Main table extraction pipeline: open a document, run a strategy, save CSVs.
"""

from typing import List, Optional, Union
from pathlib import Path

from .base import BaseStrategy
from .config import Config, DEFAULT_CONFIG
from .hybrid import HybridStrategy
from .lattice import LatticeStrategy
from .ocr_engine import OcrEngine, create_ocr_engine
from .ocr_stream import OcrStreamStrategy
from .pdf_loader import PdfDocument
from .stream import StreamStrategy
from .table import Table
from .utils import setup_logger, ensure_dir


logger = setup_logger(__name__)


def build_strategy(mode: str, config: Config, ocr_engine: Optional[OcrEngine] = None) -> BaseStrategy:
    """
    Create the strategy for an extraction mode.

    Args:
        mode: ``stream``, ``lattice``, ``ocrstream`` (or ``ocr-stream``) or ``hybrid``
        config: Configuration handed to the strategy
        ocr_engine: OCR backend for the OCR-capable strategies

    Returns:
        Strategy instance
    """
    mode = mode.lower().strip()
    if mode == "stream":
        return StreamStrategy(config)
    if mode == "lattice":
        return LatticeStrategy(config, ocr_engine)
    if mode in ("ocrstream", "ocr-stream"):
        return OcrStreamStrategy(config, ocr_engine)
    if mode == "hybrid":
        return HybridStrategy(config, ocr_engine)
    raise ValueError(f"Unknown extraction mode: {mode!r}")


class TableExtractionPipeline:
    """
    Complete pipeline for extracting tables from PDFs.

    This pipeline:
    1. Opens the PDF
    2. Builds the strategy selected by ``config.mode``
    3. Recovers tables on the selected pages
    4. Saves results as CSV
    """

    def __init__(self, config: Optional[Config] = None, ocr_engine: Optional[OcrEngine] = None):
        """
        Initialize extraction pipeline.

        Args:
            config: Configuration object (uses DEFAULT_CONFIG if None)
            ocr_engine: OCR backend; selected from ``config.ocr_mode`` on first use if None
        """
        self.config = config or DEFAULT_CONFIG
        self.ocr_engine = ocr_engine
        logger.info(f"Pipeline initialized (mode={self.config.mode}, pages={self.config.pages})")

    def _ensure_ocr_engine(self) -> Optional[OcrEngine]:
        """Lazy initialize OCR engine only if the mode needs it."""
        if self.ocr_engine is None and self.config.mode != "stream":
            logger.info("Initializing OCR engine (lazy)...")
            self.ocr_engine = create_ocr_engine(self.config)
        return self.ocr_engine

    def extract(self, input_path: Union[str, Path],
                output_dir: Optional[Union[str, Path]] = None) -> List[Table]:
        """
        Extract tables from a PDF file.

        Args:
            input_path: Path to PDF file
            output_dir: Optional output directory for saving results;
                defaults to ``config.output_dir``

        Returns:
            List of tables in page order

        Raises:
            FileNotFoundError: If the input does not exist
            DocumentError: If the PDF cannot be read
            ScoreThresholdError: If hybrid mode rejects a page
        """
        input_path = Path(input_path)
        logger.info(f"Starting extraction from: {input_path}")

        if not input_path.exists():
            raise FileNotFoundError(f"Input file not found: {input_path}")

        with PdfDocument(input_path) as document:
            tables = self._run(document)

        output_dir = output_dir or self.config.output_dir
        if output_dir:
            self.save_results(tables, output_dir)

        return tables

    def extract_bytes(self, data: bytes) -> List[Table]:
        """
        Extract tables from PDF content held in memory.

        Args:
            data: PDF bytes

        Returns:
            List of tables in page order
        """
        with PdfDocument(data) as document:
            return self._run(document)

    def _run(self, document: PdfDocument) -> List[Table]:
        logger.info(f"Loaded {document.page_count} page(s)")
        strategy = build_strategy(self.config.mode, self.config, self._ensure_ocr_engine())
        tables = strategy.extract(document, self.config.pages)
        logger.info(f"Total tables extracted: {len(tables)}")
        return tables

    def save_results(self, tables: List[Table], output_dir: Union[str, Path]) -> List[Path]:
        """
        Save tables as ``table_{i}.csv`` files.

        Args:
            tables: Tables to save
            output_dir: Output directory path

        Returns:
            Paths written
        """
        output_dir = Path(ensure_dir(str(output_dir)))
        logger.info(f"Saving results to: {output_dir}")

        written = []
        for i, table in enumerate(tables, 1):
            csv_path = output_dir / f"table_{i}.csv"
            try:
                csv_path.write_text(table.to_csv(self.config.csv_separator) + "\n", encoding="utf-8")
                written.append(csv_path)
                logger.debug(f"Saved CSV: {csv_path}")
            except OSError as e:
                logger.error(f"Failed to save CSV: {e}")

        logger.info(f"Successfully saved {len(written)} table(s)")
        return written
